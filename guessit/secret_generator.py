"""
Pure secret generation (no HTTP, no storage).

The randomness source is injected so tests (and the daily challenge) can pass
a seeded `random.Random` and always get the same secret back.
"""

import random
from secrets import SystemRandom
from typing import Optional

from .constants import ALPHABET, ALPHABET_SIZE, CODE_LENGTH, REQUIRES_UNIQUE_DIGITS
from .errors import SecretConfigurationError
from .types import Code


def generate(
    length: int = CODE_LENGTH,
    requires_unique: bool = REQUIRES_UNIQUE_DIGITS,
    rng: Optional[random.Random] = None,
) -> Code:
    """
    Example:
      generate(5, True, random.Random(7)) -> always the same 5 distinct digits

    Unique digits: shuffle the whole pool and keep the first `length`
    (sampling without replacement, uniform over permutations).
    Repeats allowed: `length` independent draws from the pool.
    """
    if length <= 0:
        raise SecretConfigurationError(f"Secret length must be positive, got {length}.")
    if requires_unique and length > ALPHABET_SIZE:
        raise SecretConfigurationError(
            f"Cannot pick {length} unique digits from an alphabet of {ALPHABET_SIZE}."
        )

    if rng is None:
        rng = SystemRandom()

    pool = list(ALPHABET)
    if requires_unique:
        rng.shuffle(pool)
        chosen = pool[:length]
    else:
        chosen = [rng.choice(pool) for _ in range(length)]

    return "".join(str(d) for d in chosen)
