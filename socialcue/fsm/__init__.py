"""
SocialCue — FSM Package

Leadership-method phase matrix and the per-session orchestrator.
All 12 phase × trigger combinations are defined.
"""
from socialcue.fsm.phases import TRANSITIONS, Phase, PhaseTransition, get_transition
from socialcue.fsm.orchestrator import PhaseMethodOrchestrator, TurnOutcome

__all__ = [
    "TRANSITIONS", "Phase", "PhaseTransition", "get_transition",
    "PhaseMethodOrchestrator", "TurnOutcome",
]
