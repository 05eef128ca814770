import pytest

from ledge.llm.relevance import combine_goal, parse_quick_score
from ledge.models.relevance import ScoreStatus, clamp_score

from conftest import FULL_MODEL, QUICK_MODEL, FakeLLM, full_reply, make_engine


def test_parse_quick_score_strips_non_digits() -> None:
    assert parse_quick_score(" 72.") == 72
    assert parse_quick_score("Score: 5") == 5


def test_parse_quick_score_defaults_to_zero() -> None:
    assert parse_quick_score("none") == 0
    assert parse_quick_score("") == 0
    assert parse_quick_score(None) == 0


def test_parse_quick_score_clamps() -> None:
    assert parse_quick_score("150") == 100
    assert parse_quick_score("0042") == 42


def test_parse_quick_score_handles_runaway_digits() -> None:
    assert parse_quick_score("9" * 5000) == 100
    assert parse_quick_score("0" * 5000) == 0


def test_combine_goal_drops_repeated_interests() -> None:
    assert combine_goal("Clean water", ["clean water", "PFAS", "pfas"]) == "Clean water; PFAS"


def test_combine_goal_without_interests() -> None:
    assert combine_goal("Rural broadband", None) == "Rural broadband"


@pytest.mark.asyncio
async def test_low_quick_score_skips_full_check() -> None:
    llm = FakeLLM(quick="18")
    engine = make_engine(llm)

    result = await engine.score_bill_for_goal("Broadband Act", "Expands broadband", "rural broadband")

    assert result.is_scored
    assert result.match_score == 18
    assert result.summary == ""
    assert result.why_it_matters == ""
    assert len(llm.calls) == 1


@pytest.mark.asyncio
async def test_high_quick_score_uses_full_result() -> None:
    llm = FakeLLM(quick="72", full=full_reply(64, summary="Funds rural fiber."))
    engine = make_engine(llm)

    result = await engine.score_bill_for_goal("Broadband Act", "Expands broadband", "rural broadband")

    assert result.match_score == 64
    assert result.summary == "Funds rural fiber."
    assert len(llm.calls_for(QUICK_MODEL)) == 1
    assert len(llm.calls_for(FULL_MODEL)) == 1
    assert llm.calls_for(FULL_MODEL)[0]["json_mode"] is True


@pytest.mark.asyncio
async def test_threshold_is_inclusive() -> None:
    llm = FakeLLM(quick="25", full=full_reply(30))
    engine = make_engine(llm)

    result = await engine.score_bill_for_goal("T", "S", "goal")

    assert result.match_score == 30
    assert len(llm.calls) == 2


@pytest.mark.asyncio
async def test_quick_failure_is_unavailable() -> None:
    llm = FakeLLM(quick=RuntimeError("429 Too Many Requests"))
    engine = make_engine(llm)

    result = await engine.score_bill_for_goal("T", "S", "goal")

    assert result.status == ScoreStatus.UNAVAILABLE
    assert result.rate_limited is True
    assert result.match_score == 0


@pytest.mark.asyncio
async def test_full_failure_keeps_quick_score() -> None:
    llm = FakeLLM(quick="80", full="not json")
    engine = make_engine(llm)

    result = await engine.score_bill_for_goal("T", "S", "goal")

    assert result.is_scored
    assert result.match_score == 80
    assert result.why_it_matters == ""


@pytest.mark.asyncio
async def test_full_check_clamps_and_coerces() -> None:
    llm = FakeLLM(full='{"match_score": "140", "summary": null}')
    engine = make_engine(llm)

    result = await engine.full_check("T", "S", "goal")

    assert result.match_score == 100
    assert result.summary == ""


@pytest.mark.asyncio
async def test_summary_falls_back_to_title() -> None:
    llm = FakeLLM(quick="3")
    engine = make_engine(llm)

    await engine.score_bill_for_goal("Water Act", "", "goal")

    assert 'Summary: "Water Act"' in llm.calls[0]["user"]


@pytest.mark.asyncio
@pytest.mark.parametrize("raw_score", ["NaN", "Infinity", "-Infinity", "1e999"])
async def test_non_finite_full_score_is_zero(raw_score) -> None:
    llm = FakeLLM(quick="80", full=f'{{"match_score": {raw_score}, "summary": "Odd."}}')
    engine = make_engine(llm)

    result = await engine.score_bill_for_goal("T", "S", "goal")

    assert result.is_scored
    assert result.match_score == 0
    assert result.summary == "Odd."


@pytest.mark.asyncio
async def test_runaway_quick_reply_still_scores() -> None:
    llm = FakeLLM(quick="9" * 5000, full=full_reply(55))
    engine = make_engine(llm)

    result = await engine.score_bill_for_goal("T", "S", "goal")

    assert result.match_score == 55


def test_clamp_score_rejects_non_finite() -> None:
    assert clamp_score(float("nan")) == 0
    assert clamp_score(float("inf")) == 0
    assert clamp_score(99.6) == 100
