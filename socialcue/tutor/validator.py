"""
SocialCue — Response Validator
Every formatted AI turn passes through here BEFORE it is spoken.
3 structural rules. All evaluated, never short-circuited.

    TooLong            word count > grade word limit
    MultipleQuestions  more than one "?"
    MissingTurnSignal  no canonical invitation phrase

Violations are DATA, not exceptions. The utterance is still deliverable;
the result is appended to the session's diagnostics log.

Character-mode dialogue is exempt (exempt=True): no rules run.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Tuple

from socialcue.config import DEFAULT_WORD_LIMIT, DIAGNOSTICS_ENABLED, MAX_QUESTIONS_PER_TURN
from socialcue.content.stop_talk import CANONICAL_TURN_SIGNALS
from socialcue.tutor.grade_profile import GRADE_PROFILES, GradeBand

logger = logging.getLogger("socialcue.tutor.validator")


class IssueKind(str, Enum):
    TOO_LONG = "TooLong"
    MULTIPLE_QUESTIONS = "MultipleQuestions"
    MISSING_TURN_SIGNAL = "MissingTurnSignal"


# ─── Word Limits ─────────────────────────────────────────────────────────────
# Tabulated independently of GradeProfile.max_words. Keyed by band label;
# a raw grade ("7") is not a key and gets DEFAULT_WORD_LIMIT.

VALIDATOR_WORD_LIMITS = MappingProxyType({
    "K-2": 8,
    "3-5": 12,
    "6-8": 15,
    "9-12": 20,
})

EXEMPT_NOTE = "character mode: structural rules skipped"


@dataclass(frozen=True)
class ValidationResult:
    """One validated utterance. Never mutated after creation."""
    timestamp: datetime
    response: str
    grade_label: str
    word_count: int
    issues: Tuple[IssueKind, ...] = ()
    warnings: Tuple[str, ...] = ()
    exempt: bool = False

    @property
    def passed(self) -> bool:
        return not self.issues

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "response": self.response,
            "grade_label": self.grade_label,
            "word_count": self.word_count,
            "issues": [issue.value for issue in self.issues],
            "warnings": list(self.warnings),
            "exempt": self.exempt,
        }


# ─── Helpers ─────────────────────────────────────────────────────────────────

def grade_key(grade_level) -> str:
    """Lookup key for the word-limit table. No numeric coercion here."""
    if isinstance(grade_level, GradeBand):
        return grade_level.value
    return str(grade_level if grade_level is not None else "").strip()


def get_word_limit(grade_level) -> int:
    return VALIDATOR_WORD_LIMITS.get(grade_key(grade_level), DEFAULT_WORD_LIMIT)


def count_words(text: str) -> int:
    stripped = (text or "").strip()
    return len(stripped.split()) if stripped else 0


def has_turn_signal(text: str) -> bool:
    return any(signal in text for signal in CANONICAL_TURN_SIGNALS)


def word_limit_discrepancies() -> dict:
    """
    Bands where the validator limit differs from the profile's max_words.
    Reported for product review; the two tables are never merged.
    """
    diffs = {}
    for band, profile in GRADE_PROFILES.items():
        limit = VALIDATOR_WORD_LIMITS.get(band.value, DEFAULT_WORD_LIMIT)
        if limit != profile.max_words:
            diffs[band.value] = {"validator": limit, "profile": profile.max_words}
    return diffs


# ─── Rules ───────────────────────────────────────────────────────────────────

def _check_length(word_count: int, grade_level) -> bool:
    """Rule 1: within the grade's word limit."""
    return word_count <= get_word_limit(grade_level)


def _check_single_question(text: str) -> bool:
    """Rule 2: at most one question per turn."""
    return text.count("?") <= MAX_QUESTIONS_PER_TURN


def _check_turn_signal(text: str) -> bool:
    """Rule 3: explicit invitation to speak."""
    return has_turn_signal(text)


def _collect_warnings(text: str) -> list[str]:
    """Advisory only. Never counted as issues."""
    warnings = []
    if text and not text.endswith(("!", "?", ".")):
        warnings.append("no terminal punctuation")
    if has_turn_signal(text):
        tail = text.rstrip(" !?.")
        if not any(tail.endswith(signal) for signal in CANONICAL_TURN_SIGNALS):
            warnings.append("turn signal not at end of utterance")
    return warnings


def check_response(text: str, grade_level) -> Tuple[IssueKind, ...]:
    """
    Pure rule evaluation. Same text + grade → same issues, same order.
    """
    text = (text or "").strip()
    issues = []

    if not _check_length(count_words(text), grade_level):
        issues.append(IssueKind.TOO_LONG)

    if not _check_single_question(text):
        issues.append(IssueKind.MULTIPLE_QUESTIONS)

    if not _check_turn_signal(text):
        issues.append(IssueKind.MISSING_TURN_SIGNAL)

    return tuple(issues)


# ─── Validator ───────────────────────────────────────────────────────────────

class ResponseValidator:
    """
    Validates utterances and appends results to ONE session's diagnostics.

    Args:
        diagnostics: the owning session's SessionDiagnostics (or None to
            evaluate without recording)
        log_enabled: emit per-response log lines
    """

    def __init__(self, diagnostics=None, log_enabled: bool = DIAGNOSTICS_ENABLED):
        self.diagnostics = diagnostics
        self.log_enabled = log_enabled

    def evaluate(self, text: str, grade_level, exempt: bool = False) -> ValidationResult:
        """Build the ValidationResult without recording it."""
        text = (text or "").strip()

        if exempt:
            issues: Tuple[IssueKind, ...] = ()
            warnings = (EXEMPT_NOTE,)
        else:
            issues = check_response(text, grade_level)
            warnings = tuple(_collect_warnings(text))

        return ValidationResult(
            timestamp=datetime.now(timezone.utc),
            response=text,
            grade_label=grade_key(grade_level),
            word_count=count_words(text),
            issues=issues,
            warnings=warnings,
            exempt=exempt,
        )

    def commit(self, result: ValidationResult) -> ValidationResult:
        """Append to the session log. The validator's only mutation."""
        if self.diagnostics is not None:
            self.diagnostics.record(result)
        self._log(result)
        return result

    def validate(
        self,
        text: str,
        grade_level,
        exempt: bool = False,
    ) -> ValidationResult:
        """
        Validate one AI utterance and record it.

        Args:
            text: finished utterance
            grade_level: band label or GradeBand
            exempt: True for scripted character dialogue

        Returns:
            ValidationResult (issues empty when the turn is clean)
        """
        return self.commit(self.evaluate(text, grade_level, exempt=exempt))

    def _log(self, result: ValidationResult) -> None:
        if not self.log_enabled:
            return
        if result.issues:
            issues = ", ".join(issue.value for issue in result.issues)
            logger.warning(
                f"AI response issues [{issues}] ({result.word_count} words, "
                f"{result.grade_label}): '{result.response[:60]}'"
            )
        elif result.warnings:
            logger.info(f"AI response warnings {list(result.warnings)}: '{result.response[:60]}'")
        else:
            logger.debug(f"AI response OK: '{result.response[:60]}'")


def validate(
    text: str,
    grade_level,
    exempt: bool = False,
    diagnostics=None,
) -> ValidationResult:
    """Module-level shorthand. Pass the session's diagnostics to record."""
    return ResponseValidator(diagnostics).validate(text, grade_level, exempt=exempt)

