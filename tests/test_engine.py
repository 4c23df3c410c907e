"""
Testing pure game logic.
"""

import random

import pytest

import guessit.engine as engine
from guessit.engine import EvaluationResult, evaluate, evaluate_daily_challenge, is_win
from guessit.errors import EvaluatorLengthError
from guessit.secret_generator import generate


def test_one_exact_four_partial():
    result = evaluate("12345", "15432")

    # Only the leading 1 is in place, every other digit is elsewhere
    assert result.exact_count == 1
    assert result.partial_count == 4
    assert result.is_no_match is False


def test_no_matches_raises_no_match_flag():
    result = evaluate("12345", "67890")

    assert result == EvaluationResult(exact_count=0, partial_count=0, is_no_match=True)


def test_no_match_flag_stays_off_when_rule_is_off(monkeypatch):
    monkeypatch.setattr(engine, "SHOW_NO_MATCH_ONLY_WHEN_ZERO_MATCHES", False)

    result = evaluate("12345", "67890")

    assert result.exact_count == 0
    assert result.partial_count == 0
    assert result.is_no_match is False


def test_self_evaluation_is_a_win():
    result = evaluate("12345", "12345")

    assert result.exact_count == 5
    assert result.partial_count == 0
    assert is_win(result)


def test_partial_matches_only():
    result = evaluate("50317", "05371")

    assert result.exact_count == 1  # the 3
    assert result.partial_count == 4
    assert not is_win(result)


def test_repeated_guess_digit_counts_secret_digit_once():
    # A naive double loop would report 4 partials here
    result = evaluate("12345", "11111")

    assert result.exact_count == 1
    assert result.partial_count == 0


def test_duplicates_on_both_sides():
    secret = "11223"
    guess = "12121"

    result = evaluate(secret, guess)

    # exact: positions 0 and 3; leftover secret {1,2,3} vs guess {2,1,1}
    assert result.exact_count == 2
    assert result.partial_count == 2


def test_counts_stay_in_bounds_for_random_pairs():
    rng = random.Random(1234)
    for _ in range(300):
        secret = generate(rng=rng)
        guess = generate(requires_unique=False, rng=rng)

        result = evaluate(secret, guess)

        assert 0 <= result.exact_count <= 5
        assert 0 <= result.partial_count <= 5
        assert result.exact_count + result.partial_count <= 5
        assert result.is_no_match == (result.exact_count + result.partial_count == 0)


def test_evaluation_is_pure():
    assert evaluate("50317", "57310") == evaluate("50317", "57310")


def test_length_mismatch_is_a_typed_error():
    with pytest.raises(EvaluatorLengthError) as info:
        evaluate("1234", "12345")
    assert info.value.which == "secret"
    assert info.value.expected == 5
    assert info.value.got == 4

    with pytest.raises(EvaluatorLengthError) as info:
        evaluate("12345", "123")
    assert info.value.which == "guess"


def test_length_error_never_contains_the_secret():
    with pytest.raises(EvaluatorLengthError) as info:
        evaluate("98765", "123")
    assert "98765" not in str(info.value)


def test_daily_challenge_uses_the_shorter_length():
    result = evaluate_daily_challenge("123", "321")
    assert result.exact_count == 1
    assert result.partial_count == 2
    assert is_win(evaluate_daily_challenge("907", "907"), length=3)

    with pytest.raises(EvaluatorLengthError):
        evaluate_daily_challenge("12345", "12345")
