"""
Daily challenge: everyone gets the same short secret on a given day.

Seed = POSIX timestamp of that day's midnight in UTC, fed into a seeded
random.Random, then the regular secret generator. No storage, no scheduling;
a daily guess is evaluated statelessly.
"""

import random
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Optional

from . import validator
from .constants import DAILY_CHALLENGE_LENGTH, REQUIRES_UNIQUE_DIGITS
from .engine import EvaluationResult, evaluate_daily_challenge
from .secret_generator import generate
from .types import Code


@dataclass(frozen=True)
class DailyChallenge:
    day: date
    secret: Code
    seed: int

    @property
    def challenge_id(self) -> str:
        return self.day.isoformat()  # YYYY-MM-DD


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def daily_seed(day: date) -> int:
    midnight = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return int(midnight.timestamp())


def generate_daily(day: Optional[date] = None) -> DailyChallenge:
    day = day or today_utc()
    seed = daily_seed(day)
    secret = generate(DAILY_CHALLENGE_LENGTH, REQUIRES_UNIQUE_DIGITS, random.Random(seed))
    return DailyChallenge(day=day, secret=secret, seed=seed)


def verify_daily(secret: Code, day: Optional[date] = None) -> bool:
    return generate_daily(day).secret == secret


def evaluate_daily_guess(text: str, day: Optional[date] = None) -> EvaluationResult:
    validator.validate(text, length=DAILY_CHALLENGE_LENGTH)
    return evaluate_daily_challenge(generate_daily(day).secret, text)
