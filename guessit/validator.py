"""
Guess validation: runs before anything is evaluated or stored.

Checks, in order (first failure wins):
1. length
2. only digit characters
3. every digit inside the alphabet range
4. no repeated digits (when the rules require it)

Does not know the secret, the database or HTTP.
"""

from .constants import ALPHABET_MAX, ALPHABET_MIN, CODE_LENGTH, REQUIRES_UNIQUE_DIGITS
from .errors import (
    DigitOutOfRangeError,
    InvalidLengthError,
    NonNumericError,
    RepeatedDigitsError,
)

_ASCII_DIGITS = frozenset("0123456789")


def validate(text: str, length: int = CODE_LENGTH) -> None:
    _check_length(text, length)
    _check_numeric(text)
    _check_range(text)
    _check_unique(text)


def _check_length(text: str, length: int) -> None:
    if len(text) != length:
        raise InvalidLengthError(expected=length)


def _check_numeric(text: str) -> None:
    # str.isdigit() also accepts things like "²", so compare against ASCII
    if not all(ch in _ASCII_DIGITS for ch in text):
        raise NonNumericError()


def _check_range(text: str) -> None:
    for ch in text:
        digit = int(ch)
        if digit < ALPHABET_MIN or digit > ALPHABET_MAX:
            raise DigitOutOfRangeError(ALPHABET_MIN, ALPHABET_MAX)


def _check_unique(text: str) -> None:
    if not REQUIRES_UNIQUE_DIGITS:
        return
    if len(set(text)) != len(text):
        raise RepeatedDigitsError()
