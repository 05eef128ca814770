import pytest

from ledge.config import ScoringConfig
from ledge.db.repositories import BillRepository, StarredBillRepository
from ledge.models.bill import LatestAction
from ledge.orchestration.status_tracker import BillStatusDriver

from conftest import add_bill, add_subscriber


class FakeCongress:
    def __init__(self, actions):
        self.actions = actions
        self.requested = []

    async def fetch_bill_action(self, bill_id):
        self.requested.append(bill_id)
        action = self.actions.get(bill_id)
        if isinstance(action, Exception):
            raise action
        return action


def introduced() -> dict:
    return {"actionDate": "2026-09-01", "text": "Introduced in House"}


@pytest.mark.asyncio
async def test_significant_change_flags_starred_rows(database, config, clock, sleep) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org")
    bill_id = await add_bill(database, "HR1-119", latest_action=introduced(), status="Introduced")
    async with database.session() as session:
        await StarredBillRepository(session).star(subscriber_id, bill_id, status="Introduced")
    congress = FakeCongress({
        "HR1-119": LatestAction(action_date="2026-10-10", text="Passed House by recorded vote."),
    })

    result = await BillStatusDriver(database, congress, config=config, clock=clock, sleep=sleep).run()

    assert result.success
    assert result.checked == 1
    assert result.updated == 1
    assert result.starred_highlighted == 1
    async with database.session() as session:
        bill = await BillRepository(session).get_by_id(bill_id)
        star = await StarredBillRepository(session).get(subscriber_id, bill_id)
    assert bill.status == "Passed House"
    assert bill.status_date == "2026-10-10"
    assert star.has_update
    assert star.last_status == "Passed House"


@pytest.mark.asyncio
async def test_lateral_change_updates_without_flagging(database, config, clock, sleep) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org")
    bill_id = await add_bill(database, "HR1-119", latest_action=introduced(), status="Introduced")
    async with database.session() as session:
        await StarredBillRepository(session).star(subscriber_id, bill_id)
    congress = FakeCongress({
        "HR1-119": LatestAction(action_date="2026-10-10", text="Referred to the Committee on Agriculture."),
    })

    result = await BillStatusDriver(database, congress, config=config, clock=clock, sleep=sleep).run()

    assert result.updated == 1
    assert result.starred_highlighted == 0
    async with database.session() as session:
        star = await StarredBillRepository(session).get(subscriber_id, bill_id)
    assert not star.has_update


@pytest.mark.asyncio
async def test_unchanged_action_is_left_alone(database, config, clock, sleep) -> None:
    await add_bill(database, "HR1-119", latest_action=introduced(), status="Introduced")
    congress = FakeCongress({"HR1-119": LatestAction(action_date="2026-09-01", text="Introduced in House")})

    result = await BillStatusDriver(database, congress, config=config, clock=clock, sleep=sleep).run()

    assert result.checked == 1
    assert result.updated == 0


@pytest.mark.asyncio
async def test_state_bills_are_not_checked(database, config, clock, sleep) -> None:
    await add_bill(database, "STATE-OH-5", source="legiscan", state_code="OH")
    await add_bill(database, "HR2-119", latest_action=introduced())
    congress = FakeCongress({"HR2-119": None})

    result = await BillStatusDriver(database, congress, config=config, clock=clock, sleep=sleep).run()

    assert congress.requested == ["HR2-119"]
    assert result.unavailable == 1


@pytest.mark.asyncio
async def test_lookup_failure_is_counted_and_run_continues(database, config, clock, sleep) -> None:
    await add_bill(database, "HR1-119", latest_action=introduced(), status="Introduced")
    await add_bill(database, "HR2-119", latest_action=introduced(), status="Introduced")
    congress = FakeCongress({
        "HR1-119": RuntimeError("boom"),
        "HR2-119": LatestAction(action_date="2026-10-02", text="Became Public Law No: 119-3."),
    })

    result = await BillStatusDriver(database, congress, config=config, clock=clock, sleep=sleep).run()

    assert result.success
    assert result.failed == 1
    assert result.updated == 1


@pytest.mark.asyncio
async def test_budget_stops_the_run(database, config, clock, sleep) -> None:
    await add_bill(database, "HR1-119", latest_action=introduced())
    await add_bill(database, "HR2-119", latest_action=introduced())
    congress = FakeCongress({})
    original = congress.fetch_bill_action

    async def slow_lookup(bill_id):
        clock.advance(config.status_budget_seconds + 1)
        return await original(bill_id)

    congress.fetch_bill_action = slow_lookup

    result = await BillStatusDriver(database, congress, config=config, clock=clock, sleep=sleep).run()

    assert result.stopped_early
    assert result.checked == 1


@pytest.mark.asyncio
async def test_pauses_every_ten_checks(database, clock, sleep) -> None:
    for number in range(21):
        await add_bill(database, f"HR{number}-119", latest_action=introduced(), status="Introduced")
    paced = ScoringConfig(status_pause_every=10, status_pause_seconds=1)

    result = await BillStatusDriver(database, FakeCongress({}), config=paced, clock=clock, sleep=sleep).run()

    assert result.checked == 21
    assert result.unavailable == 21
    assert sleep.calls == [1, 1]
