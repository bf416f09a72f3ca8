"""
SocialCue — Response Formatter
Shapes every AI turn into STOP-TALK form BEFORE it reaches validation / TTS:

    feedback + content + turn signal, capped at the grade's word budget.

The turn signal always comes from the candidate list, so a formatted turn
always carries a phrase the validator recognizes (unless truncation cuts it).
Choice is random by default. Pass a seeded random.Random (or a
selector callable) for deterministic output.
"""

import logging
import random
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from socialcue.content.stop_talk import TURN_SIGNALS
from socialcue.tutor.grade_profile import GradeBand, resolve

logger = logging.getLogger("socialcue.tutor.formatter")


@dataclass
class UtteranceDraft:
    """One AI turn before formatting. None fields are treated as empty."""
    feedback_text: Optional[str] = ""
    content_text: Optional[str] = ""
    # Replaced on formatting: the spoken signal is always a canonical one.
    turn_signal_text: Optional[str] = ""


@dataclass(frozen=True)
class FormattedResponse:
    """Result of formatting. word_count <= profile.max_words always."""
    text: str
    word_count: int
    grade_label: GradeBand
    truncated: bool = False


def _clean(value: Optional[str]) -> str:
    return " ".join((value or "").split())


class ResponseFormatter:
    """
    Assembles and truncates AI utterances.

    Args:
        rng: object with .choice(seq), e.g. random.Random(42)
        selector: callable(candidates) -> str; wins over rng when given
        turn_signals: candidate turn signals
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        selector: Optional[Callable[[Sequence[str]], str]] = None,
        turn_signals: Sequence[str] = TURN_SIGNALS,
    ):
        self._rng = rng or random.Random()
        self._selector = selector
        self._turn_signals = tuple(turn_signals)

    def choose_turn_signal(self) -> str:
        if self._selector is not None:
            return self._selector(self._turn_signals)
        return self._rng.choice(self._turn_signals)

    def format(
        self,
        draft: Optional[UtteranceDraft],
        grade_level,
        signal: bool = True,
    ) -> FormattedResponse:
        """
        Build the spoken text for one AI turn.

        signal=False leaves the turn signal off (in-character lines).
        Never raises on empty input: an all-empty draft yields a
        turn signal alone.
        """
        draft = draft or UtteranceDraft()
        profile = resolve(grade_level)

        parts = [_clean(draft.feedback_text), _clean(draft.content_text)]
        if signal or not any(parts):
            parts.append(self.choose_turn_signal())
        words = " ".join(p for p in parts if p).split()

        truncated = False
        if len(words) > profile.max_words:
            logger.debug(
                f"Truncating {len(words)} words to {profile.max_words} "
                f"for {profile.grade_label.value}"
            )
            words = words[:profile.max_words]
            words[-1] = words[-1] + "!"
            truncated = True

        return FormattedResponse(
            text=" ".join(words),
            word_count=len(words),
            grade_label=profile.grade_label,
            truncated=truncated,
        )

    def format_parts(self, feedback: str, content: str, grade_level) -> FormattedResponse:
        """Shorthand: feedback + content, formatter picks the turn signal."""
        return self.format(UtteranceDraft(feedback, content), grade_level)
