"""
SocialCue — Phase Method Orchestrator

Drives one learner session through the four phases. Python decides what
happens; the AI only supplies the words (as UtteranceDrafts).

Every AI turn:
    draft → ResponseFormatter → ResponseValidator → SessionDiagnostics

Character mode (ScenarioPractice):
    - entered on phase entry: {active: True, exchange_count: 0, max: 5}
    - every AI turn while active is exempt from STOP-TALK validation
      and counts as one exchange
    - the max-th exchange forces the exit: praise + reflection, active False
    - only after the exit can the phase move on to Variation

Results of one operation are committed to the log together at the end.
close() discards anything not yet committed.
"""

import functools
import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from socialcue.config import CHARACTER_MAX_EXCHANGES
from socialcue.content.leadership_method import CHARACTER_EXIT_PRAISE, CHARACTER_EXIT_REFLECTION
from socialcue.content.stop_talk import HELP_PROMPTS
from socialcue.content.feedback import ENCOURAGEMENT
from socialcue.fsm.phases import (
    CharacterModeState, LEARNER_TURNS_TO_ADVANCE, Phase, get_transition, script_cue,
)
from socialcue.tutor.diagnostics import SessionDiagnostics
from socialcue.tutor.formatter import FormattedResponse, ResponseFormatter, UtteranceDraft
from socialcue.tutor.grade_profile import GradeProfile, resolve
from socialcue.tutor.validator import ResponseValidator, ValidationResult
from socialcue.voice.events import (
    ERROR_KINDS, PlaybackError, RecognitionError, SessionClosedError, TurnCompleted, parse_event,
)

logger = logging.getLogger("socialcue.fsm.orchestrator")


def _discard_pending_on_error(operation):
    """Results produced by a failed operation are never committed later."""
    @functools.wraps(operation)
    def wrapper(self, *args, **kwargs):
        try:
            return operation(self, *args, **kwargs)
        except Exception:
            if self._pending:
                logger.warning(
                    f"{operation.__name__} failed; discarding {len(self._pending)} uncommitted results"
                )
            self._pending.clear()
            raise
    return wrapper


@dataclass(frozen=True)
class SpokenTurn:
    """One AI utterance and its validation."""
    response: FormattedResponse
    validation: ValidationResult

    def to_dict(self) -> dict:
        return {
            "text": self.response.text,
            "word_count": self.response.word_count,
            "truncated": self.response.truncated,
            "validation": self.validation.to_dict(),
        }


@dataclass
class TurnOutcome:
    """What happened on one orchestrator call."""
    action: str
    phase: Phase
    turns: list = field(default_factory=list)  # [SpokenTurn]
    character: dict = field(default_factory=dict)
    phase_changed: bool = False
    replay: Optional[SpokenTurn] = None

    @property
    def texts(self) -> list[str]:
        return [turn.response.text for turn in self.turns]

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "phase": self.phase.value,
            "phase_changed": self.phase_changed,
            "turns": [turn.to_dict() for turn in self.turns],
            "character": self.character,
            "replay": self.replay.to_dict() if self.replay else None,
        }


class PhaseMethodOrchestrator:
    """
    Args:
        grade_level: raw grade; resolved ONCE into the session's profile
        diagnostics: the session's log (new one if omitted)
        formatter: ResponseFormatter (seeded from rng if omitted)
        max_exchanges: character-mode bound
        rng: random source for formatter + phrase choice
    """

    def __init__(
        self,
        grade_level,
        diagnostics: Optional[SessionDiagnostics] = None,
        formatter: Optional[ResponseFormatter] = None,
        max_exchanges: int = CHARACTER_MAX_EXCHANGES,
        rng: Optional[random.Random] = None,
    ):
        self.profile: GradeProfile = resolve(grade_level)
        self.diagnostics = diagnostics if diagnostics is not None else SessionDiagnostics()
        self._rng = rng or random.Random()
        self.formatter = formatter or ResponseFormatter(rng=self._rng)
        self.validator = ResponseValidator(self.diagnostics)

        self.phase = Phase.DEMONSTRATE
        self.character = CharacterModeState(max_exchanges=max_exchanges)
        self.learner_turns = 0
        self.help_offers = 0  # since the learner last spoke
        self.last_turn: Optional[SpokenTurn] = None
        self.errors: list = []  # speech error events, arrival order
        self.closed = False
        self._pending: list[ValidationResult] = []

    # ─── Public API ──────────────────────────────────────────────────────────

    @_discard_pending_on_error
    def start(self) -> TurnOutcome:
        """Opening utterance of the first phase."""
        turn = self._speak(UtteranceDraft(content_text=script_cue(self.phase)))
        return self._finish(TurnOutcome("open_phase", self.phase, turns=[turn]))

    @_discard_pending_on_error
    def take_ai_turn(self, draft: Optional[UtteranceDraft], coaching: bool = False) -> TurnOutcome:
        """
        Format + validate one AI turn in the current phase.

        coaching=True marks a turn outside the scripted character dialogue.
        While character mode is active such turns are still exempt.
        """
        transition = get_transition(self.phase, "AI_TURN")

        if not self.character.active:
            turn = self._speak(draft)
            return self._finish(TurnOutcome("coach_turn", self.phase, turns=[turn]))

        turn = self._speak(draft, exempt=True, signal=coaching)
        turns = [turn]
        action = transition.action

        if transition.special == "count_exchange" and self.character.record_exchange():
            logger.info(
                f"Character mode reached {self.character.max_exchanges} exchanges, exiting"
            )
            turns.append(self._exit_character_mode())
            action = "character_exit"

        return self._finish(TurnOutcome(action, self.phase, turns=turns))

    @_discard_pending_on_error
    def learner_turn_completed(self, transcript: str = "") -> TurnOutcome:
        """Learner finished speaking. May move the phase forward."""
        self._ensure_open()
        self.learner_turns += 1
        self.help_offers = 0
        transition = get_transition(self.phase, "LEARNER_TURN")

        if transition.special == "learner_turn_threshold":
            if self.learner_turns >= LEARNER_TURNS_TO_ADVANCE[self.phase]:
                return self._finish(self._enter(transition.next_phase))
        elif transition.special == "after_character_exit":
            if not self.character.active:
                return self._finish(self._enter(transition.next_phase))

        logger.debug(f"Learner turn {self.learner_turns} in {self.phase.value}: '{transcript[:40]}'")
        return self._finish(TurnOutcome("listen", self.phase))

    @_discard_pending_on_error
    def advance(self) -> TurnOutcome:
        """Caller-triggered move to the next phase. No-op on the last phase."""
        self._ensure_open()
        transition = get_transition(self.phase, "ADVANCE")

        if transition.special == "last_phase":
            logger.warning(f"advance() called in {self.phase.value}; already the last phase")
            return self._finish(TurnOutcome("stay", self.phase))

        turns = []
        if transition.special == "force_character_exit" and self.character.active:
            turns.append(self._exit_character_mode())

        outcome = self._enter(transition.next_phase)
        outcome.turns = turns + outcome.turns
        return self._finish(outcome)

    @_discard_pending_on_error
    def offer_help(self) -> TurnOutcome:
        """Help timeout elapsed with no learner speech."""
        tier = "gentle" if self.help_offers == 0 else "specific"
        self.help_offers += 1
        prompt = self._rng.choice(HELP_PROMPTS[tier])
        return self.take_ai_turn(UtteranceDraft(content_text=prompt), coaching=True)

    @_discard_pending_on_error
    def handle_event(self, payload) -> TurnOutcome:
        """
        Consume one speech event. Raises EventPayloadError on bad payloads
        and SessionClosedError after close().
        """
        self._ensure_open()
        event = parse_event(payload)

        if isinstance(event, TurnCompleted):
            if event.speaker == "learner":
                return self.learner_turn_completed(event.transcript)
            logger.debug(f"AI playback complete in {self.phase.value}")
            return self._finish(TurnOutcome("ai_turn_completed", self.phase))

        self.errors.append(event)
        if event.error_kind not in ERROR_KINDS:
            logger.warning(f"Unrecognized speech error kind: {event.error_kind!r}")

        if isinstance(event, RecognitionError):
            logger.warning(f"Recognition error ({event.error_kind}) in {self.phase.value}")
            retry = self._rng.choice(ENCOURAGEMENT["follow_up"])
            outcome = self.take_ai_turn(UtteranceDraft(feedback_text=retry), coaching=True)
            outcome.action = "retry_prompt"
            return outcome

        if isinstance(event, PlaybackError):
            logger.warning(f"Playback error ({event.error_kind}); replaying last utterance")
            return self._finish(TurnOutcome("replay_last", self.phase, replay=self.last_turn))

        raise AssertionError(f"Unhandled event {event!r}")

    def validate_text(self, text: str) -> ValidationResult:
        """Validate and log arbitrary text. Exempt only while in character."""
        self._ensure_open()
        return self.validator.validate(text, self.profile.grade_label, exempt=self.character.active)

    def close(self) -> None:
        """Tear down. Uncommitted validation results are discarded."""
        if self._pending:
            logger.info(f"Discarding {len(self._pending)} uncommitted validation results")
        self._pending.clear()
        self.character.exit()
        self.closed = True

    # ─── Internals ───────────────────────────────────────────────────────────

    def _ensure_open(self) -> None:
        if self.closed:
            raise SessionClosedError("Session already closed")

    def _speak(
        self,
        draft: Optional[UtteranceDraft],
        exempt: bool = False,
        signal: bool = True,
    ) -> SpokenTurn:
        self._ensure_open()
        response = self.formatter.format(draft, self.profile.grade_label, signal=signal)
        result = self.validator.evaluate(response.text, self.profile.grade_label, exempt=exempt)
        self._pending.append(result)
        turn = SpokenTurn(response, result)
        self.last_turn = turn
        return turn

    def _finish(self, outcome: TurnOutcome) -> TurnOutcome:
        """Commit this operation's results and attach the character snapshot."""
        if not self.closed:
            for result in self._pending:
                self.validator.commit(result)
        self._pending.clear()
        outcome.character = self.character.to_dict()
        return outcome

    def _enter(self, phase: Phase) -> TurnOutcome:
        previous = self.phase
        if previous is Phase.SCENARIO_PRACTICE:
            self.character.exit()

        self.phase = phase
        self.learner_turns = 0
        logger.info(f"Phase {previous.value} → {phase.value}")

        if phase is Phase.SCENARIO_PRACTICE:
            self.character.enter()

        # The ScenarioPractice cue is spoken with character mode already active.
        turn = self._speak(
            UtteranceDraft(content_text=script_cue(phase)),
            exempt=self.character.active,
        )
        return TurnOutcome("open_phase", phase, turns=[turn], phase_changed=True)

    def _exit_character_mode(self) -> SpokenTurn:
        self.character.exit()
        return self._speak(UtteranceDraft(CHARACTER_EXIT_PRAISE, CHARACTER_EXIT_REFLECTION))
