"""
Typed errors for the game.

Every error carries a `message` that is safe to show to the player.
None of them ever include the secret.

- Validation errors: bad guess shape, fix it and try again.
- Domain-state errors: the round is not in progress, start a new one.
- Contract errors: a bug in the wiring (wrong length passed to the evaluator,
  impossible generator config). Logged and escalated.
- I/O errors: the persistence gateway failed. Passed through, no retries.
"""

from typing import Optional

from .types import RoundState


class GuessItError(Exception):
    kind: str = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ---------------- Validation ----------------

class GuessValidationError(GuessItError, ValueError):
    kind = "validation"


class InvalidLengthError(GuessValidationError):
    kind = "invalid_length"

    def __init__(self, expected: int):
        super().__init__(f"The number must have exactly {expected} digits.")
        self.expected = expected


class NonNumericError(GuessValidationError):
    kind = "non_numeric"

    def __init__(self):
        super().__init__("The number can only contain digits (0-9).")


class DigitOutOfRangeError(GuessValidationError):
    kind = "out_of_range"

    def __init__(self, minimum: int, maximum: int):
        super().__init__(f"Every digit must be between {minimum} and {maximum}.")
        self.minimum = minimum
        self.maximum = maximum


class RepeatedDigitsError(GuessValidationError):
    kind = "repeated_digits"

    def __init__(self):
        super().__init__("The number cannot contain repeated digits.")


# ---------------- Domain state ----------------

class RoundNotActiveError(GuessItError):
    kind = "round_not_active"

    def __init__(self, current_state: RoundState):
        if current_state is RoundState.WON:
            msg = "This round is already over (you won). Start a new round to play again."
        elif current_state is RoundState.ABANDONED:
            msg = "This round was abandoned. Start a new round to play again."
        else:
            # Should not happen if the orchestrator is wired correctly
            msg = "This round is still in progress."
        super().__init__(msg)
        self.current_state = current_state


class RoundNotFoundError(GuessItError, LookupError):
    kind = "round_not_found"

    def __init__(self, round_id: str):
        super().__init__(f"Round {round_id} not found.")
        self.round_id = round_id


# ---------------- Programming contract ----------------

class EvaluatorLengthError(GuessItError):
    kind = "evaluator_length"

    def __init__(self, which: str, expected: int, got: int):
        super().__init__(f"The {which} must have length {expected}, got {got}.")
        self.which = which
        self.expected = expected
        self.got = got


class SecretConfigurationError(GuessItError):
    kind = "secret_configuration"


class IllegalTransitionError(GuessItError):
    kind = "illegal_transition"

    def __init__(self, current_state: RoundState, target: RoundState):
        super().__init__(
            f"Cannot move a round from {current_state.value} to {target.value}."
        )
        self.current_state = current_state
        self.target = target


# ---------------- I/O ----------------

class PersistenceError(GuessItError):
    kind = "persistence"

    def __init__(self, message: str = "Storage is unavailable. Please try again."):
        super().__init__(message)


# ---------------- Hints ----------------

class HintError(GuessItError):
    kind = "hint"


class HintUnavailableError(HintError):
    kind = "hint_unavailable"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Hints are not available right now.")


class HintGenerationError(HintError):
    kind = "hint_generation_failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "The hint could not be generated.")


class UnsafeHintError(HintError):
    kind = "hint_unsafe"

    def __init__(self):
        super().__init__("The generated hint was rejected.")
