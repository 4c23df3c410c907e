"""
In-memory round store.
Same async gateway API as the DB repository, handy for tests and for running
without a database.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from itertools import count
from threading import RLock
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from .constants import ALPHABET
from .dto import AttemptRecord, DigitNoteSnapshot, RoundData, RoundDetail, RoundSummary
from .engine import EvaluationResult
from .errors import IllegalTransitionError, RoundNotActiveError, RoundNotFoundError
from .secret_generator import generate
from .types import Code, Digit, DigitMark, RoundState


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Round:
    id: str
    secret: Code
    state: RoundState = RoundState.IN_PROGRESS
    attempts: List[AttemptRecord] = field(default_factory=list)
    digit_notes: Dict[Digit, DigitMark] = field(
        default_factory=lambda: {d: DigitMark.UNKNOWN for d in ALPHABET}
    )
    created_at: datetime = field(default_factory=_now)
    finished_at: Optional[datetime] = None

    def to_data(self) -> RoundData:
        return RoundData(
            id=self.id,
            secret=self.secret,
            state=self.state,
            created_at=self.created_at,
            finished_at=self.finished_at,
        )


class InMemoryRoundStore:
    def __init__(self, secret_factory: Callable[[], Code] = generate) -> None:
        self._rounds: Dict[str, Round] = {}
        self._lock = RLock()
        self._secret_factory = secret_factory
        self._attempt_ids = count(1)

    def _get(self, round_id: str) -> Round:
        rnd = self._rounds.get(round_id)
        if rnd is None:
            raise RoundNotFoundError(round_id)
        return rnd

    # dicts keep insertion order, so the last match is the newest round
    def _newest(self, rounds: List[Round]) -> Optional[Round]:
        return rounds[-1] if rounds else None

    async def fetch_in_progress_round(self) -> Optional[RoundData]:
        with self._lock:
            active = [r for r in self._rounds.values() if r.state is RoundState.IN_PROGRESS]
            newest = self._newest(active)
            return newest.to_data() if newest else None

    async def fetch_or_create_in_progress_round(self) -> RoundData:
        existing = await self.fetch_in_progress_round()
        if existing is not None:
            return existing
        return await self.create_round()

    async def fetch_latest_round(self) -> Optional[RoundData]:
        with self._lock:
            newest = self._newest(list(self._rounds.values()))
            return newest.to_data() if newest else None

    async def create_round(self) -> RoundData:
        rnd = Round(id=str(uuid4()), secret=self._secret_factory())
        with self._lock:
            self._rounds[rnd.id] = rnd
        return rnd.to_data()

    async def fetch_round(self, round_id: str) -> RoundData:
        with self._lock:
            return self._get(round_id).to_data()

    async def record_attempt(
        self, round_id: str, guess_text: str, result: EvaluationResult, won: bool
    ) -> AttemptRecord:
        with self._lock:
            rnd = self._get(round_id)
            if rnd.state is not RoundState.IN_PROGRESS:
                raise RoundNotActiveError(rnd.state)

            is_repeated = any(a.guess_text == guess_text for a in rnd.attempts)
            attempt = AttemptRecord(
                id=next(self._attempt_ids),
                guess_text=guess_text,
                exact_count=result.exact_count,
                partial_count=result.partial_count,
                is_no_match=result.is_no_match,
                is_repeated=is_repeated,
                created_at=_now(),
            )
            rnd.attempts.append(attempt)

            if won:
                rnd.state = RoundState.WON
                rnd.finished_at = _now()
            return attempt

    async def mark_abandoned(self, round_id: str) -> None:
        with self._lock:
            rnd = self._get(round_id)
            if rnd.state is not RoundState.IN_PROGRESS:
                raise IllegalTransitionError(rnd.state, RoundState.ABANDONED)
            rnd.state = RoundState.ABANDONED
            rnd.finished_at = _now()

    async def fetch_finished_summaries(self) -> List[RoundSummary]:
        with self._lock:
            ordered = list(enumerate(self._rounds.values()))
            ordered.sort(key=lambda pair: (pair[1].finished_at or pair[1].created_at, pair[0]), reverse=True)
            finished = [r for _, r in ordered if r.state.is_terminal]
            return [
                RoundSummary(
                    id=r.id,
                    state=r.state,
                    created_at=r.created_at,
                    finished_at=r.finished_at,
                    attempts_count=len(r.attempts),
                )
                for r in finished
            ]

    async def fetch_detail_snapshot(self, round_id: str) -> RoundDetail:
        with self._lock:
            rnd = self._get(round_id)
            return RoundDetail(
                id=rnd.id,
                state=rnd.state,
                created_at=rnd.created_at,
                finished_at=rnd.finished_at,
                secret=rnd.secret if rnd.state is RoundState.WON else None,
                attempts=tuple(reversed(rnd.attempts)),
                digit_notes=tuple(
                    DigitNoteSnapshot(digit=d, mark=rnd.digit_notes[d]) for d in sorted(rnd.digit_notes)
                ),
            )

    async def set_digit_mark(self, round_id: str, digit: Digit, mark: DigitMark) -> DigitNoteSnapshot:
        with self._lock:
            rnd = self._get(round_id)
            rnd.digit_notes[digit] = mark
            return DigitNoteSnapshot(digit=digit, mark=mark)

    async def reset_digit_notes(self, round_id: str) -> None:
        with self._lock:
            rnd = self._get(round_id)
            rnd.digit_notes = {d: DigitMark.UNKNOWN for d in ALPHABET}
