import pytest

from ledge.db.repositories import MatchRepository, StarredBillRepository, SubscriberRepository
from ledge.models.relevance import RelevanceResult
from ledge.services.subscriber_service import (
    InvalidSubscriberInput,
    LegislationNotFound,
    SubscriberNotFound,
    SubscriberService,
    validate_email,
)

from conftest import add_bill, add_subscriber


def test_validate_email_normalizes() -> None:
    assert validate_email("  Person@Example.ORG ") == "person@example.org"


@pytest.mark.parametrize("email", [None, "", "a@b", "no-at-sign.org"])
def test_validate_email_rejects(email) -> None:
    with pytest.raises(InvalidSubscriberInput):
        validate_email(email)


@pytest.mark.asyncio
async def test_onboard_creates_subscriber(database) -> None:
    async with database.session() as session:
        outcome = await SubscriberService(session).onboard("New@Example.org", "  clean water  ", "Ohio")

    assert outcome.created
    async with database.session() as session:
        model = await SubscriberRepository(session).get_by_email("new@example.org")
    assert model.org_goal == "clean water"
    assert model.state_focus == "OH"
    assert model.search_interests == ["clean water"]
    assert model.subscription_source == "onboarding"
    assert model.preferences == {"frequency": "realtime"}
    assert model.accepted_terms_at is not None


@pytest.mark.asyncio
async def test_onboard_goal_change_deletes_matches(database) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org", goal="clean water")
    bill_id = await add_bill(database, "HR1-119")
    async with database.session() as session:
        await MatchRepository(session).upsert(subscriber_id, bill_id, RelevanceResult.scored(80))

    async with database.session() as session:
        outcome = await SubscriberService(session).onboard("a@example.org", "wildfire policy", "all")

    assert not outcome.created
    assert outcome.goal_changed
    async with database.session() as session:
        assert await MatchRepository(session).matched_legislation_ids(subscriber_id) == set()


@pytest.mark.asyncio
async def test_onboard_same_goal_keeps_matches(database) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org", goal="clean water")
    bill_id = await add_bill(database, "HR1-119")
    async with database.session() as session:
        await MatchRepository(session).upsert(subscriber_id, bill_id, RelevanceResult.scored(80))

    async with database.session() as session:
        outcome = await SubscriberService(session).onboard("a@example.org", "clean water", "CA")

    assert not outcome.goal_changed
    async with database.session() as session:
        assert await MatchRepository(session).matched_legislation_ids(subscriber_id) == {bill_id}


@pytest.mark.asyncio
@pytest.mark.parametrize("goal,state", [("ab", "OH"), ("clean water", "Atlantis")])
async def test_onboard_rejects_bad_input(database, goal, state) -> None:
    with pytest.raises(InvalidSubscriberInput):
        async with database.session() as session:
            await SubscriberService(session).onboard("a@example.org", goal, state)


@pytest.mark.asyncio
async def test_subscribe_twice_returns_existing(database) -> None:
    async with database.session() as session:
        first = await SubscriberService(session).subscribe("a@example.org", {"frequency": "daily"})
    async with database.session() as session:
        second = await SubscriberService(session).subscribe("A@example.org")

    assert first.created
    assert not second.created
    assert second.subscriber.preferences == {"frequency": "daily"}


@pytest.mark.asyncio
async def test_update_profile(database) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org", goal="clean water")
    bill_id = await add_bill(database, "HR1-119")
    async with database.session() as session:
        await MatchRepository(session).upsert(subscriber_id, bill_id, RelevanceResult.scored(80))

    async with database.session() as session:
        update = await SubscriberService(session).update_profile(
            "a@example.org",
            org_goal="farm subsidies",
            state_focus="nowhere",
            search_interests=["Dairy", "dairy", " ", "crop insurance"],
        )

    assert update.changed
    assert update.goal_changed
    assert update.deleted_matches == 1
    async with database.session() as session:
        model = await SubscriberRepository(session).get_by_id(subscriber_id)
    assert model.state_focus == "all"
    assert model.search_interests == ["Dairy", "crop insurance"]


@pytest.mark.asyncio
async def test_update_profile_without_changes(database) -> None:
    await add_subscriber(database, "a@example.org", goal="clean water")

    async with database.session() as session:
        update = await SubscriberService(session).update_profile("a@example.org", org_goal="clean water")

    assert not update.changed


@pytest.mark.asyncio
async def test_unknown_subscriber(database) -> None:
    with pytest.raises(SubscriberNotFound):
        async with database.session() as session:
            await SubscriberService(session).update_profile("ghost@example.org", org_goal="x y z")


@pytest.mark.asyncio
async def test_add_and_remove_interest(database) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org", interests=["rural broadband"])
    picked = await add_bill(database, "HR1-119")
    other = await add_bill(database, "HR2-119")
    async with database.session() as session:
        await MatchRepository(session).upsert(subscriber_id, other, RelevanceResult.scored(30))

    async with database.session() as session:
        saved = await SubscriberService(session).add_interest(
            "a@example.org", "wildfire", legislation_ids=[picked, 9999], scores={str(picked): 88}
        )

    assert saved == 1
    async with database.session() as session:
        match = await MatchRepository(session).get(subscriber_id, picked)
        model = await SubscriberRepository(session).get_by_id(subscriber_id)
    assert match.match_score == 88
    assert match.summary.startswith('Matched via interest: "wildfire".')
    assert model.search_interests == ["rural broadband", "wildfire"]

    async with database.session() as session:
        deleted = await SubscriberService(session).remove_interest("a@example.org", "wildfire")

    assert deleted == 1
    async with database.session() as session:
        assert await MatchRepository(session).matched_legislation_ids(subscriber_id) == {other}
        model = await SubscriberRepository(session).get_by_id(subscriber_id)
    assert model.search_interests == ["rural broadband"]


@pytest.mark.asyncio
async def test_add_interest_requires_topic(database) -> None:
    await add_subscriber(database, "a@example.org")

    with pytest.raises(InvalidSubscriberInput):
        async with database.session() as session:
            await SubscriberService(session).add_interest("a@example.org", "   ")


@pytest.mark.asyncio
async def test_star_lifecycle(database) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org")
    bill_id = await add_bill(database, "HR1-119", status="Introduced")

    async with database.session() as session:
        assert await SubscriberService(session).update_star("a@example.org", bill_id) == {"starred": True}
    async with database.session() as session:
        star = await StarredBillRepository(session).get(subscriber_id, bill_id)
        assert star.last_status == "Introduced"
        await StarredBillRepository(session).flag_updates(bill_id, "Passed House")

    async with database.session() as session:
        result = await SubscriberService(session).update_star("a@example.org", bill_id, "dismiss_update")
    assert result == {"dismissed": True}
    async with database.session() as session:
        assert not (await StarredBillRepository(session).get(subscriber_id, bill_id)).has_update

    async with database.session() as session:
        assert await SubscriberService(session).update_star("a@example.org", bill_id, "unstar") == {"starred": False}
    async with database.session() as session:
        assert await StarredBillRepository(session).get(subscriber_id, bill_id) is None


@pytest.mark.asyncio
async def test_star_errors(database) -> None:
    await add_subscriber(database, "a@example.org")

    with pytest.raises(LegislationNotFound):
        async with database.session() as session:
            await SubscriberService(session).update_star("a@example.org", 404)

    with pytest.raises(InvalidSubscriberInput):
        async with database.session() as session:
            await SubscriberService(session).update_star("a@example.org", 1, "bookmark")
