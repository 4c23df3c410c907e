"""
Game rules in one place.
If one of these changes, the nature of the game changes too.
"""

from typing import Final

# Secret / guess shape
CODE_LENGTH: Final[int] = 5
REQUIRES_UNIQUE_DIGITS: Final[bool] = True

# Digit alphabet (0..9)
ALPHABET_MIN: Final[int] = 0
ALPHABET_MAX: Final[int] = 9
ALPHABET: Final[tuple[int, ...]] = tuple(range(ALPHABET_MIN, ALPHABET_MAX + 1))
ALPHABET_SIZE: Final[int] = len(ALPHABET)

# Feedback display rule: only flag "no match" when nothing matched at all
SHOW_NO_MATCH_ONLY_WHEN_ZERO_MATCHES: Final[bool] = True

# Daily challenge uses a shorter code
DAILY_CHALLENGE_LENGTH: Final[int] = 3
