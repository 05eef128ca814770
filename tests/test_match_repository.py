import pytest

from ledge.db.repositories import MatchRepository
from ledge.db.repositories.match_repository import interest_marker
from ledge.models.relevance import RelevanceResult

from conftest import add_bill, add_subscriber


@pytest.mark.asyncio
async def test_upsert_twice_leaves_one_row(database) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org")
    bill_id = await add_bill(database, "HR1-119")

    async with database.session() as session:
        repo = MatchRepository(session)
        await repo.upsert(subscriber_id, bill_id, RelevanceResult.scored(40, summary="first"))
        await session.commit()
        await repo.upsert(subscriber_id, bill_id, RelevanceResult.scored(75, summary="second"))
        await session.commit()

    async with database.session() as session:
        rows = await MatchRepository(session).list_for_subscriber(subscriber_id)

    assert len(rows) == 1
    match, bill = rows[0]
    assert match.match_score == 75
    assert match.summary == "second"
    assert bill.bill_id == "HR1-119"


@pytest.mark.asyncio
async def test_zero_score_is_persisted(database) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org")
    bill_id = await add_bill(database, "HR1-119")

    async with database.session() as session:
        await MatchRepository(session).upsert(subscriber_id, bill_id, RelevanceResult.scored(0))

    async with database.session() as session:
        match = await MatchRepository(session).get(subscriber_id, bill_id)
        ids = await MatchRepository(session).matched_legislation_ids(subscriber_id)

    assert match.match_score == 0
    assert match.why_it_matters == ""
    assert ids == {bill_id}


@pytest.mark.asyncio
async def test_unavailable_result_is_rejected(database) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org")
    bill_id = await add_bill(database, "HR1-119")

    async with database.session() as session:
        with pytest.raises(ValueError):
            await MatchRepository(session).upsert(subscriber_id, bill_id, RelevanceResult.unavailable("down"))


@pytest.mark.asyncio
async def test_rescoring_resets_notified(database) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org")
    bill_id = await add_bill(database, "HR1-119")

    async with database.session() as session:
        repo = MatchRepository(session)
        await repo.upsert(subscriber_id, bill_id, RelevanceResult.scored(90))
        await session.commit()
        match = await repo.get(subscriber_id, bill_id)
        await repo.mark_notified([match.id])
        await session.commit()

    async with database.session() as session:
        repo = MatchRepository(session)
        assert await repo.list_unnotified(subscriber_id, min_score=50) == []
        await repo.upsert(subscriber_id, bill_id, RelevanceResult.scored(91))

    async with database.session() as session:
        rows = await MatchRepository(session).list_unnotified(subscriber_id, min_score=50)

    assert [match.match_score for match, _ in rows] == [91]


@pytest.mark.asyncio
async def test_matched_pairs_bulk_read(database) -> None:
    alice = await add_subscriber(database, "alice@example.org")
    bob = await add_subscriber(database, "bob@example.org")
    first = await add_bill(database, "HR1-119")
    second = await add_bill(database, "HR2-119")

    async with database.session() as session:
        repo = MatchRepository(session)
        await repo.upsert(alice, first, RelevanceResult.scored(10))
        await repo.upsert(bob, second, RelevanceResult.scored(20))

    async with database.session() as session:
        pairs = await MatchRepository(session).matched_pairs([first, second])

    assert pairs == {(alice, first), (bob, second)}


@pytest.mark.asyncio
async def test_delete_for_interest_only_removes_tagged_matches(database) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org")
    tagged = await add_bill(database, "STATE-OH-1", source="legiscan", state_code="OH")
    regular = await add_bill(database, "HR1-119")

    async with database.session() as session:
        repo = MatchRepository(session)
        await repo.upsert(subscriber_id, tagged, RelevanceResult.scored(60, summary="Fits."),
                          summary_prefix=interest_marker("State: OH"))
        await repo.upsert(subscriber_id, regular, RelevanceResult.scored(60, summary="Fits."))

    async with database.session() as session:
        deleted = await MatchRepository(session).delete_for_interest(subscriber_id, "State: OH")

    async with database.session() as session:
        remaining = await MatchRepository(session).matched_legislation_ids(subscriber_id)

    assert deleted == 1
    assert remaining == {regular}


@pytest.mark.asyncio
async def test_delete_for_subscriber(database) -> None:
    subscriber_id = await add_subscriber(database, "a@example.org")
    other = await add_subscriber(database, "b@example.org")
    bill_id = await add_bill(database, "HR1-119")

    async with database.session() as session:
        repo = MatchRepository(session)
        await repo.upsert(subscriber_id, bill_id, RelevanceResult.scored(10))
        await repo.upsert(other, bill_id, RelevanceResult.scored(10))

    async with database.session() as session:
        assert await MatchRepository(session).delete_for_subscriber(subscriber_id) == 1

    async with database.session() as session:
        assert await MatchRepository(session).matched_pairs([bill_id]) == {(other, bill_id)}
