"""
Testing secret generation with seeded randomness.
"""

import random

import pytest

from guessit.errors import SecretConfigurationError
from guessit.secret_generator import generate


def test_unique_secret_for_any_seed():
    for seed in range(200):
        secret = generate(rng=random.Random(seed))

        assert len(secret) == 5
        assert secret.isdigit()
        assert len(set(secret)) == 5


def test_same_seed_same_secret():
    assert generate(rng=random.Random(42)) == generate(rng=random.Random(42))


def test_full_alphabet_is_a_permutation():
    secret = generate(10, True, random.Random(3))
    assert sorted(secret) == list("0123456789")


def test_too_long_for_unique_digits():
    with pytest.raises(SecretConfigurationError):
        generate(11, True, random.Random(0))


def test_non_positive_length():
    with pytest.raises(SecretConfigurationError):
        generate(0)


def test_repeats_allowed_can_exceed_alphabet():
    secret = generate(20, False, random.Random(9))
    assert len(secret) == 20
    assert secret.isdigit()


def test_default_rng_is_system_random():
    secret = generate()
    assert len(secret) == 5
    assert len(set(secret)) == 5
