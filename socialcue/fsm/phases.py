"""
SocialCue — Leadership Method Phase Matrix

4 phases × 3 triggers = 12 combinations. Every one is defined.
Strictly forward. Variation is the last phase; ending the session is
the caller's decision.

    Demonstrate → GuidedRepetition → ScenarioPractice → Variation

ScenarioPractice runs in character mode, bounded by max_exchanges.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Optional

from socialcue.config import CHARACTER_MAX_EXCHANGES
from socialcue.content.leadership_method import PHASE_SCRIPTS


class Phase(str, Enum):
    DEMONSTRATE = "Demonstrate"
    GUIDED_REPETITION = "GuidedRepetition"
    SCENARIO_PRACTICE = "ScenarioPractice"
    VARIATION = "Variation"


PHASE_ORDER = (
    Phase.DEMONSTRATE,
    Phase.GUIDED_REPETITION,
    Phase.SCENARIO_PRACTICE,
    Phase.VARIATION,
)

# ─── Triggers ────────────────────────────────────────────────────────────────

TRIGGERS = frozenset({
    "LEARNER_TURN",  # learner finished speaking
    "AI_TURN",       # AI produced an utterance
    "ADVANCE",       # caller asks for the next phase
})

# Learner turns a phase needs before LEARNER_TURN moves it forward.
# None → not turn-driven (ScenarioPractice waits for character exit).
LEARNER_TURNS_TO_ADVANCE = MappingProxyType({
    Phase.DEMONSTRATE: 1,
    Phase.GUIDED_REPETITION: 3,
    Phase.SCENARIO_PRACTICE: None,
    Phase.VARIATION: None,
})


@dataclass(frozen=True)
class PhaseTransition:
    """
    next_phase: where to go if the transition fires
    action: what the orchestrator does
    special: extra condition/side effect flag
    """
    next_phase: Phase
    action: str
    special: Optional[str] = None


# ─── The Complete Phase Matrix ───────────────────────────────────────────────

TRANSITIONS: dict[tuple[Phase, str], PhaseTransition] = {
    # Demonstrate
    (Phase.DEMONSTRATE, "LEARNER_TURN"): PhaseTransition(
        next_phase=Phase.GUIDED_REPETITION,
        action="open_phase",
        special="learner_turn_threshold",
    ),
    (Phase.DEMONSTRATE, "AI_TURN"): PhaseTransition(
        next_phase=Phase.DEMONSTRATE,
        action="coach_turn",
    ),
    (Phase.DEMONSTRATE, "ADVANCE"): PhaseTransition(
        next_phase=Phase.GUIDED_REPETITION,
        action="open_phase",
    ),

    # Guided Repetition
    (Phase.GUIDED_REPETITION, "LEARNER_TURN"): PhaseTransition(
        next_phase=Phase.SCENARIO_PRACTICE,
        action="open_phase",
        special="learner_turn_threshold",
    ),
    (Phase.GUIDED_REPETITION, "AI_TURN"): PhaseTransition(
        next_phase=Phase.GUIDED_REPETITION,
        action="coach_turn",
    ),
    (Phase.GUIDED_REPETITION, "ADVANCE"): PhaseTransition(
        next_phase=Phase.SCENARIO_PRACTICE,
        action="open_phase",
    ),

    # Scenario Practice (character mode)
    (Phase.SCENARIO_PRACTICE, "LEARNER_TURN"): PhaseTransition(
        next_phase=Phase.VARIATION,  # Only once character mode has exited
        action="open_phase",
        special="after_character_exit",
    ),
    (Phase.SCENARIO_PRACTICE, "AI_TURN"): PhaseTransition(
        next_phase=Phase.SCENARIO_PRACTICE,
        action="character_turn",
        special="count_exchange",
    ),
    (Phase.SCENARIO_PRACTICE, "ADVANCE"): PhaseTransition(
        next_phase=Phase.VARIATION,
        action="open_phase",
        special="force_character_exit",
    ),

    # Variation (last phase)
    (Phase.VARIATION, "LEARNER_TURN"): PhaseTransition(
        next_phase=Phase.VARIATION,
        action="stay",
    ),
    (Phase.VARIATION, "AI_TURN"): PhaseTransition(
        next_phase=Phase.VARIATION,
        action="coach_turn",
    ),
    (Phase.VARIATION, "ADVANCE"): PhaseTransition(
        next_phase=Phase.VARIATION,
        action="stay",
        special="last_phase",
    ),
}


def get_transition(phase: Phase, trigger: str) -> PhaseTransition:
    """Matrix lookup. Unknown triggers are a programming error."""
    if trigger not in TRIGGERS:
        raise ValueError(f"Unknown phase trigger: {trigger}")
    return TRANSITIONS[(phase, trigger)]


def validate_matrix_completeness() -> list[tuple[Phase, str]]:
    """Return missing (phase, trigger) pairs. Empty list = complete."""
    return [
        (phase, trigger)
        for phase in PHASE_ORDER
        for trigger in sorted(TRIGGERS)
        if (phase, trigger) not in TRANSITIONS
    ]


def script_cue(phase: Phase) -> str:
    """Opening utterance content for a phase."""
    return PHASE_SCRIPTS[phase.value]["script_cue"]


# ─── Character Mode ──────────────────────────────────────────────────────────

@dataclass
class CharacterModeState:
    """
    Bounded role-play inside ScenarioPractice.
    exchange_count never exceeds max_exchanges.
    """
    active: bool = False
    exchange_count: int = 0
    max_exchanges: int = CHARACTER_MAX_EXCHANGES

    def enter(self) -> None:
        self.active = True
        self.exchange_count = 0

    def record_exchange(self) -> bool:
        """Count one AI turn. Returns True when the limit is reached."""
        if not self.active:
            return False
        self.exchange_count = min(self.exchange_count + 1, self.max_exchanges)
        return self.exchange_count >= self.max_exchanges

    def exit(self) -> None:
        self.active = False

    @property
    def exhausted(self) -> bool:
        return self.exchange_count >= self.max_exchanges

    def to_dict(self) -> dict:
        return {
            "active": self.active,
            "exchange_count": self.exchange_count,
            "max_exchanges": self.max_exchanges,
        }
