"""
Game orchestrator: the one place where rounds change.

Flow for a guess: load active round -> validate -> evaluate -> persist attempt
(+ win transition, same commit) -> return a SubmitResult.

Every public coroutine runs under a single asyncio.Lock, so two callers can
never interleave (e.g. both creating an "active" round). The orchestrator
keeps no cached round: each operation asks the gateway for the in-progress
round again.
"""

import asyncio
import logging

from . import validator
from .constants import ALPHABET_MAX, ALPHABET_MIN, CODE_LENGTH
from .dto import DigitNoteSnapshot, RoundData, RoundDetail, RoundGateway, RoundSummary, SubmitResult
from .engine import evaluate, is_win
from .errors import DigitOutOfRangeError, EvaluatorLengthError, GuessItError, RoundNotActiveError
from .hints import HintAttempt, HintDigitNote, HintRequest
from .types import Digit, RoundState

logger = logging.getLogger(__name__)


class GameOrchestrator:
    def __init__(self, gateway: RoundGateway):
        self.gateway = gateway
        self._lock = asyncio.Lock()

    async def _require_active_round(self) -> RoundData:
        # Callers hold the lock
        rnd = await self.gateway.fetch_in_progress_round()
        if rnd is None:
            # Report how the last round ended; with no rounds at all, treat it as abandoned
            latest = await self.gateway.fetch_latest_round()
            raise RoundNotActiveError(latest.state if latest is not None else RoundState.ABANDONED)
        return rnd

    # ---------------- Core ----------------

    async def current_state(self) -> RoundState:
        async with self._lock:
            rnd = await self.gateway.fetch_or_create_in_progress_round()
            return rnd.state

    async def reset_round(self) -> RoundData:
        """
        Abandon the in-progress round (if any) and start a fresh one.
        Failing to abandon is logged, not raised: a stuck player is worse
        than a round that did not close cleanly.
        """
        async with self._lock:
            existing = await self.gateway.fetch_in_progress_round()
            if existing is not None:
                try:
                    await self.gateway.mark_abandoned(existing.id)
                    logger.info("Abandoned round %s", existing.id)
                except GuessItError:
                    logger.exception("Could not mark round %s as abandoned, starting a new one anyway", existing.id)

            new_round = await self.gateway.create_round()
            logger.info("Started round %s", new_round.id)
            return new_round

    async def submit_guess(self, text: str) -> SubmitResult:
        async with self._lock:
            # 1) Source of truth is the persisted round; do NOT create one here
            rnd = await self._require_active_round()

            # 2) Validation errors go straight back to the caller
            validator.validate(text)

            # 3) Evaluate; a length mismatch here means the wiring is broken
            try:
                feedback = evaluate(rnd.secret, text)
            except EvaluatorLengthError:
                logger.error("Evaluator contract violated for round %s", rnd.id)
                raise

            # 4 + 5) Attempt and win transition are committed together
            won = is_win(feedback, CODE_LENGTH)
            await self.gateway.record_attempt(rnd.id, text, feedback, won)

            resulting_state = RoundState.WON if won else RoundState.IN_PROGRESS
            if won:
                logger.info("Round %s won", rnd.id)

            return SubmitResult(guess_text=text, feedback=feedback, resulting_state=resulting_state)

    async def debug_secret(self) -> str:
        """Diagnostics only. Never wire this into anything a player can reach."""
        async with self._lock:
            rnd = await self.gateway.fetch_or_create_in_progress_round()
            return rnd.secret

    # ---------------- History & board ----------------

    async def active_round(self) -> RoundDetail:
        async with self._lock:
            rnd = await self.gateway.fetch_or_create_in_progress_round()
            return await self.gateway.fetch_detail_snapshot(rnd.id)

    async def round_summaries(self) -> list[RoundSummary]:
        async with self._lock:
            return await self.gateway.fetch_finished_summaries()

    async def round_detail(self, round_id: str) -> RoundDetail:
        async with self._lock:
            return await self.gateway.fetch_detail_snapshot(round_id)

    async def toggle_digit_mark(self, digit: Digit) -> DigitNoteSnapshot:
        if digit < ALPHABET_MIN or digit > ALPHABET_MAX:
            raise DigitOutOfRangeError(ALPHABET_MIN, ALPHABET_MAX)
        async with self._lock:
            rnd = await self.gateway.fetch_or_create_in_progress_round()
            detail = await self.gateway.fetch_detail_snapshot(rnd.id)
            current = next(n.mark for n in detail.digit_notes if n.digit == digit)
            return await self.gateway.set_digit_mark(rnd.id, digit, current.next())

    async def reset_digit_marks(self) -> None:
        async with self._lock:
            rnd = await self.gateway.fetch_or_create_in_progress_round()
            await self.gateway.reset_digit_notes(rnd.id)

    # ---------------- Hints ----------------

    async def hint_request(self) -> tuple[HintRequest, str]:
        """
        Snapshot what a hint engine may see, plus the secret for the output check.
        The hint itself is generated outside the lock.
        """
        async with self._lock:
            rnd = await self._require_active_round()
            detail = await self.gateway.fetch_detail_snapshot(rnd.id)

        request = HintRequest(
            round_id=rnd.id,
            attempts=tuple(
                HintAttempt(
                    guess_text=a.guess_text,
                    exact_count=a.exact_count,
                    partial_count=a.partial_count,
                    is_no_match=a.is_no_match,
                    is_repeated=a.is_repeated,
                )
                for a in reversed(detail.attempts)
            ),
            digit_notes=tuple(HintDigitNote(digit=n.digit, mark=n.mark) for n in detail.digit_notes),
        )
        return request, rnd.secret
