"""
Testing the in-memory round store
- Create a round, record attempts, and check state/history/notes, etc.
"""

import pytest

from guessit.engine import evaluate
from guessit.errors import IllegalTransitionError, RoundNotActiveError, RoundNotFoundError
from guessit.types import DigitMark, RoundState


async def test_fetch_or_create_reuses_the_active_round(store):
    assert await store.fetch_in_progress_round() is None

    first = await store.fetch_or_create_in_progress_round()
    second = await store.fetch_or_create_in_progress_round()

    assert first.id == second.id
    assert first.state is RoundState.IN_PROGRESS
    assert first.secret == "12345"


async def test_record_attempts_and_win(store):
    rnd = await store.create_round()

    miss = await store.record_attempt(rnd.id, "67890", evaluate("12345", "67890"), won=False)
    again = await store.record_attempt(rnd.id, "67890", evaluate("12345", "67890"), won=False)
    assert miss.is_no_match
    assert not miss.is_repeated
    assert again.is_repeated

    await store.record_attempt(rnd.id, "12345", evaluate("12345", "12345"), won=True)
    won = await store.fetch_round(rnd.id)
    assert won.state is RoundState.WON
    assert won.finished_at is not None

    # Frozen once terminal
    with pytest.raises(RoundNotActiveError):
        await store.record_attempt(rnd.id, "54321", evaluate("12345", "54321"), won=False)


async def test_cannot_abandon_a_finished_round(store):
    rnd = await store.create_round()
    await store.mark_abandoned(rnd.id)

    with pytest.raises(IllegalTransitionError):
        await store.mark_abandoned(rnd.id)


async def test_detail_hides_secret_until_won(store):
    rnd = await store.create_round()
    await store.record_attempt(rnd.id, "15432", evaluate("12345", "15432"), won=False)

    detail = await store.fetch_detail_snapshot(rnd.id)
    assert detail.secret is None
    assert [n.digit for n in detail.digit_notes] == list(range(10))
    assert all(n.mark is DigitMark.UNKNOWN for n in detail.digit_notes)

    await store.record_attempt(rnd.id, "12345", evaluate("12345", "12345"), won=True)
    detail = await store.fetch_detail_snapshot(rnd.id)
    assert detail.secret == "12345"
    # newest first
    assert [a.guess_text for a in detail.attempts] == ["12345", "15432"]


async def test_summaries_only_list_finished_rounds(store):
    first = await store.create_round()
    await store.mark_abandoned(first.id)
    second = await store.create_round()
    await store.record_attempt(second.id, "12345", evaluate("12345", "12345"), won=True)
    await store.create_round()  # still in progress

    summaries = await store.fetch_finished_summaries()

    assert [s.id for s in summaries] == [second.id, first.id]
    assert summaries[0].attempts_count == 1
    assert summaries[1].state is RoundState.ABANDONED


async def test_digit_notes(store):
    rnd = await store.create_round()
    note = await store.set_digit_mark(rnd.id, 7, DigitMark.PRESENT)
    assert note.mark is DigitMark.PRESENT

    await store.reset_digit_notes(rnd.id)
    detail = await store.fetch_detail_snapshot(rnd.id)
    assert all(n.mark is DigitMark.UNKNOWN for n in detail.digit_notes)


async def test_unknown_round(store):
    with pytest.raises(RoundNotFoundError):
        await store.fetch_round("missing")
