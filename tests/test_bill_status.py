from ledge.utils.bill_status import (
    STATUS_RULES,
    BillStatus,
    is_significant_change,
    parse_status_from_action,
)


def test_referred_action_maps_to_committee() -> None:
    status = parse_status_from_action("Referred to the Committee on Energy and Commerce.")

    assert status == BillStatus.REFERRED_TO_COMMITTEE


def test_public_law_maps_to_signed() -> None:
    assert parse_status_from_action("Became Public Law No: 119-45.") == BillStatus.SIGNED_INTO_LAW


def test_public_law_wins_over_passed() -> None:
    text = "Passed Senate without amendment. Became Public Law No: 119-12."

    assert parse_status_from_action(text) == BillStatus.SIGNED_INTO_LAW


def test_chamber_specific_passage() -> None:
    assert parse_status_from_action("Passed/agreed to in House: On passage Passed by recorded vote") == BillStatus.PASSED_HOUSE
    assert parse_status_from_action("Passed Senate with an amendment by Unanimous Consent.") == BillStatus.PASSED_SENATE
    assert parse_status_from_action("Passed by the assembly") == BillStatus.PASSED


def test_other_stages() -> None:
    assert parse_status_from_action("Vetoed by President.") == BillStatus.VETOED
    assert parse_status_from_action("Presented to President.") == BillStatus.SENT_TO_PRESIDENT
    assert parse_status_from_action("Received in the Senate.") == BillStatus.RECEIVED_IN_SENATE
    assert parse_status_from_action("Placed on the Union Calendar, Calendar No. 12.") == BillStatus.ON_CALENDAR
    assert parse_status_from_action("Ordered to be Reported in the Nature of a Substitute.") == BillStatus.REPORTED_BY_COMMITTEE
    assert parse_status_from_action("Introduced in House") == BillStatus.INTRODUCED


def test_unknown_or_empty_text_is_introduced() -> None:
    assert parse_status_from_action("Sponsor introductory remarks on measure.") == BillStatus.INTRODUCED
    assert parse_status_from_action("Motion to reconsider laid on the table") == BillStatus.INTRODUCED
    assert parse_status_from_action("") == BillStatus.INTRODUCED
    assert parse_status_from_action(None) == BillStatus.INTRODUCED


def test_rules_are_evaluated_in_order() -> None:
    orders = [rule.order for rule in STATUS_RULES]

    assert orders == sorted(orders)
    assert STATUS_RULES[0].status == BillStatus.SIGNED_INTO_LAW
    assert STATUS_RULES[-1].status == BillStatus.INTRODUCED


def test_first_observation_is_significant() -> None:
    assert is_significant_change(None, "Referred to Committee") is True
    assert is_significant_change("", "Referred to Committee") is True


def test_same_status_is_not_significant() -> None:
    assert is_significant_change("Passed House", "Passed House") is False
    assert is_significant_change(BillStatus.PASSED, "Passed") is False


def test_forward_move_is_significant() -> None:
    assert is_significant_change("Referred to Committee", "Passed House") is True
    assert is_significant_change("Passed Senate", "Signed into Law") is True


def test_move_into_early_stage_is_not_significant() -> None:
    assert is_significant_change("Introduced", "Referred to Committee") is False
