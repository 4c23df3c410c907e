"""
Plain data objects passed between the gateway, the orchestrator and the API.

DTOs: simple frozen objects that carry data between layers, so the routes and
the orchestrator never hold a live ORM row.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol

from .engine import EvaluationResult
from .types import Code, Digit, DigitMark, RoundState


@dataclass(frozen=True)
class RoundData:
    """What the orchestrator needs to play a round."""
    id: str
    secret: Code
    state: RoundState
    created_at: datetime
    finished_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttemptRecord:
    id: int
    guess_text: str
    exact_count: int
    partial_count: int
    is_no_match: bool
    is_repeated: bool
    created_at: datetime


@dataclass(frozen=True)
class DigitNoteSnapshot:
    digit: Digit
    mark: DigitMark


@dataclass(frozen=True)
class RoundSummary:
    id: str
    state: RoundState
    created_at: datetime
    finished_at: Optional[datetime]
    attempts_count: int


@dataclass(frozen=True)
class RoundDetail:
    """
    Full snapshot of one round.
    - attempts: newest first
    - digit_notes: always 10 entries, ordered 0..9
    - secret: only filled in for won rounds
    """
    id: str
    state: RoundState
    created_at: datetime
    finished_at: Optional[datetime]
    secret: Optional[Code]
    attempts: tuple[AttemptRecord, ...] = field(default_factory=tuple)
    digit_notes: tuple[DigitNoteSnapshot, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SubmitResult:
    guess_text: str
    feedback: EvaluationResult
    resulting_state: RoundState

    @property
    def did_win(self) -> bool:
        return self.resulting_state is RoundState.WON


class RoundGateway(Protocol):
    """
    Async persistence gateway. Every method may raise PersistenceError;
    methods taking a round id raise RoundNotFoundError for unknown ids.
    """

    async def fetch_in_progress_round(self) -> Optional[RoundData]: ...

    async def fetch_or_create_in_progress_round(self) -> RoundData: ...

    async def fetch_latest_round(self) -> Optional[RoundData]: ...

    async def create_round(self) -> RoundData: ...

    async def fetch_round(self, round_id: str) -> RoundData: ...

    async def record_attempt(
        self, round_id: str, guess_text: str, result: EvaluationResult, won: bool
    ) -> AttemptRecord: ...

    async def mark_abandoned(self, round_id: str) -> None: ...

    async def fetch_finished_summaries(self) -> list[RoundSummary]: ...

    async def fetch_detail_snapshot(self, round_id: str) -> RoundDetail: ...

    async def set_digit_mark(self, round_id: str, digit: Digit, mark: DigitMark) -> DigitNoteSnapshot: ...

    async def reset_digit_notes(self, round_id: str) -> None: ...
