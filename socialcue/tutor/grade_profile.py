"""
SocialCue — Grade Profile Resolver

Maps a learner's grade level to a fixed pacing profile.
This is the ONLY place a raw grade value (str / int / None) is accepted.
Everything downstream receives a GradeBand.

PURE FUNCTION module — no I/O. Malformed input never blocks a session:
it falls back to DEFAULT_GRADE_BAND with a logged warning.
"""

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Optional, Union

from socialcue.config import DEFAULT_GRADE_BAND

logger = logging.getLogger("socialcue.tutor.grade_profile")


class GradeBand(str, Enum):
    """Four grade bands, youngest first."""
    K_2 = "K-2"
    G3_5 = "3-5"
    G6_8 = "6-8"
    G9_12 = "9-12"


@dataclass(frozen=True)
class GradeProfile:
    """Pacing constants for one grade band. Looked up, never mutated."""
    grade_label: GradeBand
    help_timeout_ms: int         # silence before a help prompt is offered
    post_response_delay_ms: int  # STOP pause after the learner finishes
    max_words: int               # formatter word budget per AI turn
    response_speed_tier: str     # slow | moderate | natural
    pause_tolerance: str         # high | moderate | low
    speech_rate: float           # TTS playback-rate multiplier
    pace_label: str


# ─── Profile Table ───────────────────────────────────────────────────────────

GRADE_PROFILES = MappingProxyType({
    GradeBand.K_2: GradeProfile(
        grade_label=GradeBand.K_2,
        help_timeout_ms=2000,
        post_response_delay_ms=1000,
        max_words=8,
        response_speed_tier="slow",
        pause_tolerance="high",
        speech_rate=0.85,
        pace_label="LIVELY",
    ),
    GradeBand.G3_5: GradeProfile(
        grade_label=GradeBand.G3_5,
        help_timeout_ms=2000,
        post_response_delay_ms=800,
        max_words=12,
        response_speed_tier="moderate",
        pause_tolerance="moderate",
        speech_rate=0.90,
        pace_label="MOMENTUM",
    ),
    GradeBand.G6_8: GradeProfile(
        grade_label=GradeBand.G6_8,
        help_timeout_ms=2500,
        post_response_delay_ms=500,
        max_words=15,
        response_speed_tier="moderate",
        pause_tolerance="moderate",
        speech_rate=0.95,
        pace_label="NATURAL",
    ),
    GradeBand.G9_12: GradeProfile(
        grade_label=GradeBand.G9_12,
        help_timeout_ms=3000,
        post_response_delay_ms=500,
        max_words=20,
        response_speed_tier="natural",
        pause_tolerance="low",
        speech_rate=1.00,
        pace_label="REAL-TIME",
    ),
})

_KINDERGARTEN = frozenset({"k", "kg", "kindergarten"})
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _default_band() -> GradeBand:
    try:
        return GradeBand(DEFAULT_GRADE_BAND)
    except ValueError:
        return GradeBand.G6_8


def _band_for_grade(grade: int) -> GradeBand:
    if grade <= 2:
        return GradeBand.K_2
    if grade <= 5:
        return GradeBand.G3_5
    if grade <= 8:
        return GradeBand.G6_8
    return GradeBand.G9_12


def _parse_grade(grade_level) -> Optional[int]:
    """Leading integer of the input, or None."""
    if isinstance(grade_level, bool):
        return None
    if isinstance(grade_level, int):
        return grade_level
    if isinstance(grade_level, float):
        return int(grade_level) if math.isfinite(grade_level) else None
    if isinstance(grade_level, str):
        match = _LEADING_INT.match(grade_level)
        if match:
            return int(match.group(1))
    return None


def resolve_band(grade_level: Union[str, int, GradeBand, None]) -> GradeBand:
    """
    Normalize a loosely-typed grade level into a GradeBand.

    "1" / 1 → K-2, "4th" → 3-5, "K" → K-2, "9-12" → 9-12.
    Anything unparsable → DEFAULT_GRADE_BAND.
    """
    if isinstance(grade_level, GradeBand):
        return grade_level

    if isinstance(grade_level, str):
        label = grade_level.strip()
        try:
            return GradeBand(label.upper())
        except ValueError:
            pass
        if label.lower() in _KINDERGARTEN:
            return GradeBand.K_2

    grade = _parse_grade(grade_level)
    if grade is None:
        fallback = _default_band()
        logger.warning(f"Unparsable grade level {grade_level!r}, defaulting to {fallback.value}")
        return fallback

    return _band_for_grade(grade)


def resolve(grade_level: Union[str, int, GradeBand, None]) -> GradeProfile:
    """Grade level in, pacing profile out."""
    return GRADE_PROFILES[resolve_band(grade_level)]
