import pytest

from ledge.db.repositories import BillRepository, MatchRepository, SubscriberRepository
from ledge.models.bill import StateBill
from ledge.orchestration.explore import ExploreDriver, state_interest
from ledge.orchestration.snapshots import SubscriberRef

from conftest import FakeLLM, add_bill, add_subscriber, full_reply, make_engine


class FakeLegiScan:
    def __init__(self, bills):
        self.bills = bills
        self.requested = []

    async def fetch_state_bills(self, state, limit=25):
        self.requested.append((state, limit))
        return list(self.bills)


def score_by_title(scores):
    def reply(system, user):
        for title, score in scores.items():
            if title in user:
                return str(score)
        return "0"
    return reply


def ohio_bill(legiscan_id: int, title: str) -> StateBill:
    return StateBill(
        legiscan_id=legiscan_id,
        bill_number=f"HB {legiscan_id}",
        title=title,
        description=f"{title} description",
        state="OH",
        last_action="Referred to committee",
        last_action_date="2026-10-01",
    )


@pytest.mark.asyncio
async def test_short_query_is_rejected(database, config, clock, sleep) -> None:
    driver = ExploreDriver(database, make_engine(FakeLLM()), config=config, clock=clock, sleep=sleep)

    with pytest.raises(ValueError):
        await driver.explore_topic(" x ")


@pytest.mark.asyncio
async def test_topic_results_are_filtered_and_sorted(database, config, clock, sleep) -> None:
    await add_bill(database, "HR1-119", title="Wildfire Insurance Act")
    await add_bill(database, "HR2-119", title="Forest Management Act")
    await add_bill(database, "HR3-119", title="Postal Naming Act")
    llm = FakeLLM(quick=score_by_title({
        "Wildfire Insurance": 90,
        "Forest Management": 40,
        "Postal Naming": 24,
    }))
    driver = ExploreDriver(database, make_engine(llm), config=config, clock=clock, sleep=sleep)

    result = await driver.explore_topic("wildfire insurance")

    assert result.success
    assert result.total_scored == 3
    assert [hit.bill_id for hit in result.results] == ["HR1-119", "HR2-119"]
    assert result.results[0].explore_score == 90
    assert "wildfire insurance" in llm.calls[0]["system"]


@pytest.mark.asyncio
async def test_topic_explore_writes_nothing(database, config, clock, sleep) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org")
    await add_bill(database, "HR1-119")
    driver = ExploreDriver(database, make_engine(FakeLLM(quick="95")), config=config, clock=clock, sleep=sleep)

    await driver.explore_topic("anything")

    async with database.session() as session:
        assert await MatchRepository(session).matched_legislation_ids(subscriber_id) == set()


@pytest.mark.asyncio
async def test_state_explore_stores_bills_and_matches(database, config, clock, sleep) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org", goal="rural broadband")
    legiscan = FakeLegiScan([
        ohio_bill(101, "Broadband Expansion Grants"),
        ohio_bill(102, "Liquor Permit Changes"),
    ])
    llm = FakeLLM(
        quick=score_by_title({"Broadband Expansion": 80, "Liquor Permit": 30}),
        full=full_reply(70, summary="Grants for rural towers."),
    )
    driver = ExploreDriver(database, make_engine(llm), legiscan=legiscan, config=config, clock=clock, sleep=sleep)
    async with database.session() as session:
        subscriber = SubscriberRef.from_model(await SubscriberRepository(session).get_by_id(subscriber_id))

    result = await driver.explore_state(subscriber, "oh")

    assert result.success
    assert result.state == "OH"
    assert result.fetched == 2
    assert result.inserted == 2
    assert result.added == 1
    assert legiscan.requested == [("OH", config.state_bill_limit)]

    async with database.session() as session:
        stored = await BillRepository(session).get_by_bill_id("STATE-OH-101")
        rows = await MatchRepository(session).list_for_subscriber(subscriber_id)
        model = await SubscriberRepository(session).get_by_id(subscriber_id)

    assert stored.source == "legiscan"
    assert stored.state_code == "OH"
    assert len(rows) == 1
    match, bill = rows[0]
    assert bill.bill_id == "STATE-OH-101"
    assert match.summary.startswith('Matched via interest: "State: OH".')
    assert state_interest("oh") in model.search_interests


@pytest.mark.asyncio
async def test_state_explore_reuses_stored_bills(database, config, clock, sleep) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org")
    legiscan = FakeLegiScan([ohio_bill(101, "Broadband Expansion Grants")])
    driver = ExploreDriver(database, make_engine(FakeLLM(quick="5")), legiscan=legiscan,
                           config=config, clock=clock, sleep=sleep)
    async with database.session() as session:
        subscriber = SubscriberRef.from_model(await SubscriberRepository(session).get_by_id(subscriber_id))

    await driver.explore_state(subscriber, "OH")
    second = await driver.explore_state(subscriber, "OH")

    assert second.inserted == 0
    assert second.added == 0
    async with database.session() as session:
        assert await BillRepository(session).count() == 1


@pytest.mark.asyncio
async def test_state_explore_with_no_bills(database, config, clock, sleep) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org")
    driver = ExploreDriver(database, make_engine(FakeLLM()), legiscan=FakeLegiScan([]),
                           config=config, clock=clock, sleep=sleep)
    async with database.session() as session:
        subscriber = SubscriberRef.from_model(await SubscriberRepository(session).get_by_id(subscriber_id))

    result = await driver.explore_state(subscriber, "OH")

    assert result.success
    assert result.fetched == 0
    assert result.added == 0
