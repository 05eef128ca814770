"""
Bill status classification.

Maps the free-text latest action reported by Congress.gov or LegiScan
("Referred to the Committee on Energy and Commerce", "Became Public Law
No: 119-45", ...) onto a fixed status taxonomy, and decides which status
transitions count as forward progress worth flagging on starred bills.

Rules are evaluated strictly in ``order``: the most advanced stage is
checked first, so text mentioning both "became public law" and "passed"
resolves to Signed into Law.

Responsibility: Pure status parsing and significance checks
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Pattern, Tuple


class BillStatus(str, Enum):
    """Fixed set of legislative status labels"""
    INTRODUCED = "Introduced"
    REFERRED_TO_COMMITTEE = "Referred to Committee"
    REPORTED_BY_COMMITTEE = "Reported by Committee"
    ON_CALENDAR = "On Calendar"
    PASSED_HOUSE = "Passed House"
    PASSED_SENATE = "Passed Senate"
    PASSED = "Passed"
    RECEIVED_IN_SENATE = "Received in Senate"
    RECEIVED_IN_HOUSE = "Received in House"
    RESOLVING_DIFFERENCES = "Resolving Differences"
    SENT_TO_PRESIDENT = "Sent to President"
    SIGNED_INTO_LAW = "Signed into Law"
    VETOED = "Vetoed"


@dataclass(frozen=True)
class StatusRule:
    """One classification rule: any pattern matching yields ``status``."""

    order: int
    status: BillStatus
    patterns: Tuple[Pattern[str], ...]

    def matches(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self.patterns)


def _rule(order: int, status: BillStatus, *patterns: str) -> StatusRule:
    return StatusRule(
        order=order,
        status=status,
        patterns=tuple(re.compile(p, re.IGNORECASE) for p in patterns),
    )


STATUS_RULES: Tuple[StatusRule, ...] = tuple(sorted(
    (
        _rule(1, BillStatus.SIGNED_INTO_LAW, r"became public law", r"signed by.*president"),
        _rule(2, BillStatus.VETOED, r"vetoed"),
        _rule(3, BillStatus.SENT_TO_PRESIDENT, r"sent to.*president", r"presented to.*president"),
        _rule(4, BillStatus.RESOLVING_DIFFERENCES, r"resolving differences"),
        _rule(5, BillStatus.PASSED_SENATE, r"passed senate", r"passed.*senate", r"agreed to in.*senate"),
        _rule(6, BillStatus.PASSED_HOUSE, r"passed house", r"passed.*house", r"agreed to in.*house"),
        _rule(7, BillStatus.PASSED, r"passed"),
        _rule(8, BillStatus.RECEIVED_IN_SENATE, r"received in the senate"),
        _rule(9, BillStatus.RECEIVED_IN_HOUSE, r"received in the house"),
        _rule(10, BillStatus.ON_CALENDAR, r"placed on.*calendar"),
        _rule(11, BillStatus.REPORTED_BY_COMMITTEE, r"ordered to be reported", r"reported.*committee"),
        _rule(12, BillStatus.REFERRED_TO_COMMITTEE, r"referred to"),
        _rule(13, BillStatus.INTRODUCED, r"introduced"),
    ),
    key=lambda rule: rule.order,
))

# Transitions into any of these are forward progress; anything else is lateral
SIGNIFICANT_STATUSES = frozenset({
    BillStatus.REPORTED_BY_COMMITTEE,
    BillStatus.ON_CALENDAR,
    BillStatus.PASSED_HOUSE,
    BillStatus.PASSED_SENATE,
    BillStatus.PASSED,
    BillStatus.RECEIVED_IN_SENATE,
    BillStatus.RECEIVED_IN_HOUSE,
    BillStatus.RESOLVING_DIFFERENCES,
    BillStatus.SENT_TO_PRESIDENT,
    BillStatus.SIGNED_INTO_LAW,
    BillStatus.VETOED,
})


def parse_status_from_action(action_text: Optional[str]) -> BillStatus:
    """
    Classify a latest-action string.

    Args:
        action_text: Raw action text from the legislative source

    Returns:
        First matching status in rule order, Introduced when nothing matches
        or the input is empty / not a string
    """
    if not isinstance(action_text, str) or not action_text.strip():
        return BillStatus.INTRODUCED

    for rule in STATUS_RULES:
        if rule.matches(action_text):
            return rule.status

    return BillStatus.INTRODUCED


def is_significant_change(old_status: Optional[str], new_status: Optional[str]) -> bool:
    """
    Decide whether moving from ``old_status`` to ``new_status`` should flag
    starred bills as updated.

    Args:
        old_status: Previously stored status label; None or empty on first observation
        new_status: Freshly parsed status label

    Returns:
        True on first observation or on a move into a forward-progress status
    """
    if not old_status:
        return True

    old_value = _status_value(old_status)
    new_value = _status_value(new_status)

    if old_value == new_value:
        return False

    return new_value in {status.value for status in SIGNIFICANT_STATUSES}


def _status_value(status: Optional[str]) -> Optional[str]:
    if isinstance(status, BillStatus):
        return status.value
    return status
