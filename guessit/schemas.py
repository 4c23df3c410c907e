"""
Explicit validation & Pydantic models
- Defines the structure of API requests and responses.
- Guess *shape* rules (length, digits, repeats) live in validator.py, not
  here, so the API returns the same typed errors as any other caller.
"""

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .dto import AttemptRecord, DigitNoteSnapshot, RoundDetail, RoundSummary, SubmitResult
from .engine import EvaluationResult

RoundStateLiteral = Literal["in_progress", "won", "abandoned"]
DigitMarkLiteral = Literal["unknown", "ruled_out", "present", "confirmed"]


# 1. Player's guess (raw text, validated by the domain)
class GuessRequest(BaseModel):
    guess: str = Field(..., description="The guessed number, e.g. '50317'")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"guess": "50317"},
            ]
        }
    }


# 2. Feedback for a single guess
class FeedbackOut(BaseModel):
    exact_count: int = Field(..., description="Right digit, right position")
    partial_count: int = Field(..., description="Right digit, wrong position")
    is_no_match: bool = Field(..., description="True only when nothing matched")

    @classmethod
    def from_result(cls, result: EvaluationResult) -> "FeedbackOut":
        return cls(
            exact_count=result.exact_count,
            partial_count=result.partial_count,
            is_no_match=result.is_no_match,
        )


# 3. Result of submitting a guess
class SubmitResultOut(BaseModel):
    guess: str = Field(..., description="The guess as submitted")
    feedback: FeedbackOut
    state: RoundStateLiteral = Field(..., description="Round state after this guess")
    did_win: bool = Field(..., description="True when this guess solved the round")

    @classmethod
    def from_result(cls, result: SubmitResult) -> "SubmitResultOut":
        return cls(
            guess=result.guess_text,
            feedback=FeedbackOut.from_result(result.feedback),
            state=result.resulting_state.value,
            did_win=result.did_win,
        )


# 4. History entries
class AttemptOut(BaseModel):
    id: int
    guess: str
    exact_count: int
    partial_count: int
    is_no_match: bool
    is_repeated: bool = Field(..., description="Same guess was already tried in this round")
    created_at: datetime

    @classmethod
    def from_record(cls, a: AttemptRecord) -> "AttemptOut":
        return cls(
            id=a.id,
            guess=a.guess_text,
            exact_count=a.exact_count,
            partial_count=a.partial_count,
            is_no_match=a.is_no_match,
            is_repeated=a.is_repeated,
            created_at=a.created_at,
        )


class DigitNoteOut(BaseModel):
    digit: int
    mark: DigitMarkLiteral

    @classmethod
    def from_snapshot(cls, n: DigitNoteSnapshot) -> "DigitNoteOut":
        return cls(digit=n.digit, mark=n.mark.value)


# 5. Round views
class RoundStateOut(BaseModel):
    state: RoundStateLiteral


class RoundOut(BaseModel):
    round_id: str
    state: RoundStateLiteral
    created_at: datetime
    finished_at: Optional[datetime] = None
    secret: Optional[str] = Field(None, description="Only revealed once the round is won")
    attempts: List[AttemptOut] = Field(default_factory=list, description="Newest first")
    digit_notes: List[DigitNoteOut] = Field(default_factory=list, description="Digits 0..9")

    @classmethod
    def from_detail(cls, d: RoundDetail) -> "RoundOut":
        return cls(
            round_id=d.id,
            state=d.state.value,
            created_at=d.created_at,
            finished_at=d.finished_at,
            secret=d.secret,
            attempts=[AttemptOut.from_record(a) for a in d.attempts],
            digit_notes=[DigitNoteOut.from_snapshot(n) for n in d.digit_notes],
        )


class RoundSummaryOut(BaseModel):
    round_id: str
    state: RoundStateLiteral
    created_at: datetime
    finished_at: Optional[datetime] = None
    attempts_count: int

    @classmethod
    def from_summary(cls, s: RoundSummary) -> "RoundSummaryOut":
        return cls(
            round_id=s.id,
            state=s.state.value,
            created_at=s.created_at,
            finished_at=s.finished_at,
            attempts_count=s.attempts_count,
        )


# 6. Hint
class HintOut(BaseModel):
    text: str
    engine: str


# 7. Daily challenge
class DailyChallengeOut(BaseModel):
    challenge_id: str = Field(..., description="YYYY-MM-DD")
    length: int = Field(..., description="Digits in today's code")


class DailyGuessRequest(BaseModel):
    guess: str
    day: Optional[date] = Field(None, description="Defaults to today (UTC)")


class DailyGuessOut(BaseModel):
    challenge_id: str
    guess: str
    feedback: FeedbackOut
    solved: bool


# 8. Errors
class ErrorOut(BaseModel):
    detail: str
    kind: str
