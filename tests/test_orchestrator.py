"""
Testing the orchestrator (round lifecycle) on top of the in-memory store.
"""

import asyncio

import pytest

from guessit.errors import (
    EvaluatorLengthError,
    InvalidLengthError,
    PersistenceError,
    RepeatedDigitsError,
    RoundNotActiveError,
)
from guessit.orchestrator import GameOrchestrator
from guessit.store import InMemoryRoundStore
from guessit.types import DigitMark, RoundState


async def test_current_state_creates_a_round(orchestrator, store):
    assert await orchestrator.current_state() is RoundState.IN_PROGRESS
    assert await orchestrator.current_state() is RoundState.IN_PROGRESS

    assert (await store.fetch_in_progress_round()) is not None
    assert len(store._rounds) == 1


async def test_submit_feedback(orchestrator):
    await orchestrator.current_state()

    result = await orchestrator.submit_guess("15432")

    assert result.guess_text == "15432"
    assert result.feedback.exact_count == 1
    assert result.feedback.partial_count == 4
    assert result.resulting_state is RoundState.IN_PROGRESS
    assert not result.did_win


async def test_no_match_feedback(orchestrator):
    await orchestrator.current_state()

    result = await orchestrator.submit_guess("67890")

    assert result.feedback.is_no_match


async def test_winning_guess_closes_the_round(orchestrator):
    await orchestrator.current_state()

    result = await orchestrator.submit_guess("12345")

    assert result.did_win
    assert result.resulting_state is RoundState.WON

    with pytest.raises(RoundNotActiveError) as info:
        await orchestrator.submit_guess("15432")
    assert info.value.current_state is RoundState.WON
    assert "won" in info.value.message


async def test_guess_without_any_round(orchestrator):
    with pytest.raises(RoundNotActiveError) as info:
        await orchestrator.submit_guess("12345")
    assert info.value.current_state is RoundState.ABANDONED


async def test_validation_errors_propagate_and_record_nothing(orchestrator):
    await orchestrator.current_state()

    with pytest.raises(InvalidLengthError):
        await orchestrator.submit_guess("123")
    with pytest.raises(RepeatedDigitsError):
        await orchestrator.submit_guess("11234")

    detail = await orchestrator.active_round()
    assert detail.attempts == ()


async def test_repeated_guess_is_flagged(orchestrator):
    await orchestrator.current_state()
    await orchestrator.submit_guess("67890")
    await orchestrator.submit_guess("67890")

    detail = await orchestrator.active_round()
    assert [a.is_repeated for a in detail.attempts] == [True, False]


async def test_reset_abandons_and_starts_fresh(orchestrator):
    await orchestrator.current_state()
    await orchestrator.submit_guess("67890")

    new_round = await orchestrator.reset_round()

    assert new_round.state is RoundState.IN_PROGRESS
    summaries = await orchestrator.round_summaries()
    assert len(summaries) == 1
    assert summaries[0].state is RoundState.ABANDONED
    assert summaries[0].attempts_count == 1

    # The fresh round accepts guesses
    assert (await orchestrator.submit_guess("12345")).did_win


async def test_reset_after_win_yields_a_new_round(orchestrator):
    await orchestrator.current_state()
    await orchestrator.submit_guess("12345")

    new_round = await orchestrator.reset_round()

    assert new_round.state is RoundState.IN_PROGRESS
    assert await orchestrator.current_state() is RoundState.IN_PROGRESS
    summaries = await orchestrator.round_summaries()
    assert [s.state for s in summaries] == [RoundState.WON]


class FailingAbandonStore(InMemoryRoundStore):
    async def mark_abandoned(self, round_id):
        raise PersistenceError()


async def test_reset_survives_a_failed_abandon():
    store = FailingAbandonStore(secret_factory=lambda: "12345")
    orchestrator = GameOrchestrator(store)
    old = await store.create_round()

    new_round = await orchestrator.reset_round()

    assert new_round.id != old.id
    # The newest in-progress round is the active one
    assert (await store.fetch_in_progress_round()).id == new_round.id


async def test_wiring_bug_in_secret_length_escalates():
    orchestrator = GameOrchestrator(InMemoryRoundStore(secret_factory=lambda: "1234"))
    await orchestrator.current_state()

    with pytest.raises(EvaluatorLengthError):
        await orchestrator.submit_guess("12345")


async def test_debug_secret(orchestrator):
    assert await orchestrator.debug_secret() == "12345"


async def test_toggle_cycles_through_every_mark(orchestrator):
    marks = [(await orchestrator.toggle_digit_mark(4)).mark for _ in range(4)]

    assert marks == [DigitMark.RULED_OUT, DigitMark.PRESENT, DigitMark.CONFIRMED, DigitMark.UNKNOWN]


async def test_reset_digit_marks(orchestrator):
    await orchestrator.toggle_digit_mark(1)
    await orchestrator.toggle_digit_mark(2)

    await orchestrator.reset_digit_marks()

    detail = await orchestrator.active_round()
    assert all(n.mark is DigitMark.UNKNOWN for n in detail.digit_notes)


async def test_hint_request_never_carries_the_secret(orchestrator):
    await orchestrator.current_state()
    await orchestrator.submit_guess("15432")

    request, secret = await orchestrator.hint_request()

    assert secret == "12345"
    assert not hasattr(request, "secret")
    assert [a.guess_text for a in request.attempts] == ["15432"]


class SlowStore(InMemoryRoundStore):
    """Yields to the loop mid-query so unserialized callers would interleave."""

    async def fetch_in_progress_round(self):
        result = await super().fetch_in_progress_round()
        await asyncio.sleep(0.01)
        return result


async def test_concurrent_callers_share_one_active_round():
    store = SlowStore(secret_factory=lambda: "12345")
    orchestrator = GameOrchestrator(store)

    states = await asyncio.gather(*(orchestrator.current_state() for _ in range(10)))

    assert set(states) == {RoundState.IN_PROGRESS}
    assert len(store._rounds) == 1


async def test_concurrent_winning_guesses_win_once():
    store = SlowStore(secret_factory=lambda: "12345")
    orchestrator = GameOrchestrator(store)
    await orchestrator.current_state()

    results = await asyncio.gather(
        orchestrator.submit_guess("12345"),
        orchestrator.submit_guess("12345"),
        return_exceptions=True,
    )

    assert sum(1 for r in results if not isinstance(r, Exception) and r.did_win) == 1
    assert sum(1 for r in results if isinstance(r, RoundNotActiveError)) == 1
