"""
Pure game logic (no HTTP, no storage).
We compute two feedback numbers for each guess:
- exact_count: right digit, right place
- partial_count: digit is in the secret but somewhere else
  (never counting one secret digit twice)

The algorithm works whether or not repeated digits are allowed, so loosening
that rule later does not require touching this file.
"""

from collections import Counter
from dataclasses import dataclass

from .constants import CODE_LENGTH, DAILY_CHALLENGE_LENGTH, SHOW_NO_MATCH_ONLY_WHEN_ZERO_MATCHES
from .errors import EvaluatorLengthError
from .types import Code


@dataclass(frozen=True)
class EvaluationResult:
    exact_count: int
    partial_count: int
    is_no_match: bool


def evaluate(secret: Code, guess: Code) -> EvaluationResult:
    """
    Example:
      secret = "12345"
      guess  = "15432"
      exact_count   = 1  (the leading 1)
      partial_count = 4  (2, 3, 4 and 5 are all there, in other places)
    """
    _check_lengths(secret, guess, CODE_LENGTH)
    return _evaluate(secret, guess)


def evaluate_daily_challenge(secret: Code, guess: Code) -> EvaluationResult:
    """Same algorithm, for the shorter daily-challenge code."""
    _check_lengths(secret, guess, DAILY_CHALLENGE_LENGTH)
    return _evaluate(secret, guess)


def _check_lengths(secret: Code, guess: Code, expected: int) -> None:
    if len(secret) != expected:
        raise EvaluatorLengthError("secret", expected, len(secret))
    if len(guess) != expected:
        raise EvaluatorLengthError("guess", expected, len(guess))


def _evaluate(secret: Code, guess: Code) -> EvaluationResult:
    # 1. Exact matches; keep what did not match for the second pass
    exact = 0
    secret_rest = []
    guess_rest = []
    for s, g in zip(secret, guess):
        if s == g:
            exact += 1
        else:
            secret_rest.append(s)
            guess_rest.append(g)

    # 2. Partial matches by frequency, so a single secret digit is only used once
    remaining = Counter(secret_rest)
    partial = 0
    for g in guess_rest:
        if remaining[g] > 0:
            partial += 1
            remaining[g] -= 1

    no_match = (exact + partial == 0) if SHOW_NO_MATCH_ONLY_WHEN_ZERO_MATCHES else False

    return EvaluationResult(exact_count=exact, partial_count=partial, is_no_match=no_match)


def is_win(result: EvaluationResult, length: int = CODE_LENGTH) -> bool:
    """Win = every position is an exact match."""
    return result.exact_count == length
