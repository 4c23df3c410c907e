"""
Optional hints from an external text-generation engine.

The engine only ever sees a HintRequest (attempt history + digit board),
never the secret. The secret is passed to the service separately, only so the
output can be rejected if it leaks the answer.

Cancellation: asyncio raises CancelledError at the awaits below; it is never
swallowed, and nothing here touches round state, so a cancelled hint leaves
nothing half-done.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Optional, Protocol

from .constants import CODE_LENGTH
from .errors import HintError, HintGenerationError, HintUnavailableError, UnsafeHintError
from .types import Digit, DigitMark

logger = logging.getLogger(__name__)


# ---------------- Input / output ----------------

@dataclass(frozen=True)
class HintAttempt:
    guess_text: str
    exact_count: int
    partial_count: int
    is_no_match: bool
    is_repeated: bool


@dataclass(frozen=True)
class HintDigitNote:
    digit: Digit
    mark: DigitMark


@dataclass(frozen=True)
class HintRequest:
    round_id: str  # logging only, never put in the prompt
    attempts: tuple[HintAttempt, ...]
    digit_notes: tuple[HintDigitNote, ...]


@dataclass(frozen=True)
class HintOutput:
    text: str
    engine: str


@dataclass
class HintDebugInfo:
    request_count: int = 0
    last_error: Optional[str] = None
    last_engine: Optional[str] = None


class HintEngine(Protocol):
    name: str

    @property
    def is_available(self) -> bool: ...

    async def generate(self, prompt: str) -> str: ...


# ---------------- Prompt & output check ----------------

def build_prompt(request: HintRequest) -> str:
    lines = [
        f"A player is guessing a secret {CODE_LENGTH}-digit number with no repeated digits.",
        "Give one short strategy tip. Do not name digits or positions.",
        "",
        "Attempts so far (exact / partial):",
    ]
    if not request.attempts:
        lines.append("- none yet")
    for a in request.attempts:
        note = " (no match)" if a.is_no_match else ""
        repeat = " (repeated)" if a.is_repeated else ""
        lines.append(f"- {a.guess_text}: {a.exact_count} / {a.partial_count}{note}{repeat}")

    marked = [n for n in request.digit_notes if n.mark is not DigitMark.UNKNOWN]
    if marked:
        lines.append("")
        lines.append("Player notes:")
        for n in marked:
            lines.append(f"- {n.digit}: {n.mark.value}")
    return "\n".join(lines)


_FULL_CODE = re.compile(r"\d{%d,}" % CODE_LENGTH)


def is_output_safe(text: str, secret: str) -> bool:
    if not text.strip():
        return False
    if secret and secret in text:
        return False
    # Any full-length digit run reads like an answer
    return _FULL_CODE.search(text) is None


# ---------------- Engines ----------------

FALLBACK_TIPS = (
    "Try swapping the positions of digits that scored partial matches.",
    "If several digits are already exact, focus on the remaining positions.",
    "Bring in digits you have not tried yet to explore the search space.",
    "A no-match guess rules out every digit it contains.",
    "A guess with many partial matches has the right digits in the wrong places.",
    "Compare your best-scoring attempts to spot which positions stay fixed.",
)


class FallbackHintEngine:
    """Heuristic tips, always available. Picks a tip based on the prompt."""

    name = "fallback"

    @property
    def is_available(self) -> bool:
        return True

    async def generate(self, prompt: str) -> str:
        await asyncio.sleep(0)
        return FALLBACK_TIPS[len(prompt) % len(FALLBACK_TIPS)]


# ---------------- Service ----------------

class HintService:
    def __init__(self, engine: Optional[HintEngine] = None, fallback: Optional[HintEngine] = None):
        self.engine = engine or FallbackHintEngine()
        self.fallback = fallback if fallback is not None else FallbackHintEngine()
        self._debug = HintDebugInfo()

    async def generate_hint(self, request: HintRequest, secret: str) -> HintOutput:
        self._debug.request_count += 1
        try:
            if not self.engine.is_available:
                raise HintUnavailableError()

            prompt = build_prompt(request)

            used = self.engine
            try:
                raw = await self.engine.generate(prompt)
            except HintGenerationError:
                if self.fallback is self.engine:
                    raise
                logger.warning("Hint engine %s failed, using %s", self.engine.name, self.fallback.name)
                used = self.fallback
                raw = await self.fallback.generate(prompt)

            if not is_output_safe(raw, secret):
                logger.warning("Rejected hint from %s for round %s", used.name, request.round_id)
                raise UnsafeHintError()

            self._debug.last_engine = used.name
            self._debug.last_error = None
            return HintOutput(text=raw.strip(), engine=used.name)

        except HintError as exc:
            self._debug.last_error = exc.message
            raise
        except asyncio.CancelledError:
            self._debug.last_error = "cancelled"
            raise

    def debug_info(self) -> HintDebugInfo:
        return HintDebugInfo(**vars(self._debug))
