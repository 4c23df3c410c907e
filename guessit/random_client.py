"""
- HTTP call with clear fallback
Get a shuffled 0..9 sequence from random.org and keep the first CODE_LENGTH
digits (same "shuffle and take the prefix" rule as the local generator).
If anything goes wrong (no internet, timeout, bad response), we fall back to
the local secure generator so the game still works.

This is blocking I/O: async callers run it through asyncio.to_thread.
"""

import logging
import os

import requests

from .constants import ALPHABET_MAX, ALPHABET_MIN, CODE_LENGTH, REQUIRES_UNIQUE_DIGITS
from .secret_generator import generate
from .types import Code

logger = logging.getLogger(__name__)

RANDOM_URL = "https://www.random.org/sequences/"
TIMEOUT_SECONDS = 3.0


def use_random_org() -> bool:
    return os.getenv("USE_RANDOM_ORG", "0").lower() in ("1", "true", "yes")


def fetch_secret(length: int = CODE_LENGTH) -> Code:
    # This endpoint only produces permutations, so it can't serve repeated digits
    if not REQUIRES_UNIQUE_DIGITS:
        return generate(length)

    params = {
        "min": ALPHABET_MIN,  # smallest allowed digit
        "max": ALPHABET_MAX,  # largest allowed digit
        "col": 1,             # one number per line
        "format": "plain",    # plain text response
        "rnd": "new",         # always a fresh sequence
    }

    try:
        response = requests.get(RANDOM_URL, params=params, timeout=TIMEOUT_SECONDS)
        response.raise_for_status()

        # The body looks like: 3\n0\n9\n...\n
        digits = [int(line) for line in response.text.splitlines() if line.strip()]

        expected = ALPHABET_MAX - ALPHABET_MIN + 1
        if sorted(digits) != list(range(ALPHABET_MIN, ALPHABET_MAX + 1)):
            raise ValueError(f"random.org returned {len(digits)} values, expected a permutation of {expected}.")

        return "".join(str(d) for d in digits[:length])

    except (requests.RequestException, ValueError) as exc:
        logger.warning("random.org unavailable (%s), using the local generator", exc.__class__.__name__)
        return generate(length)


def default_secret_factory():
    """random.org when USE_RANDOM_ORG is set, otherwise the local generator."""
    return fetch_secret if use_random_org() else generate
