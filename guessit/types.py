"""
Labels for clarity.
"""

from enum import Enum

Digit = int  # 0 -> 9
Code = str   # "50317"


class RoundState(str, Enum):
    IN_PROGRESS = "in_progress"
    WON = "won"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self is not RoundState.IN_PROGRESS


class DigitMark(str, Enum):
    """What the player believes about one digit. Never read by the evaluator."""

    UNKNOWN = "unknown"
    RULED_OUT = "ruled_out"
    PRESENT = "present"        # in the secret, wrong position
    CONFIRMED = "confirmed"    # in the secret, right position

    def next(self) -> "DigitMark":
        # unknown -> ruled_out -> present -> confirmed -> unknown
        order = list(DigitMark)
        return order[(order.index(self) + 1) % len(order)]
