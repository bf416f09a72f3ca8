"""
Tests for orchestrator.py — phase flow, character mode, speech events,
teardown. Multi-turn conversations with a fixed turn signal.
"""

import random

import pytest

from socialcue.content.feedback import ENCOURAGEMENT
from socialcue.content.stop_talk import HELP_PROMPTS, TURN_SIGNALS
from socialcue.fsm.orchestrator import PhaseMethodOrchestrator
from socialcue.fsm.phases import Phase
from socialcue.tutor.diagnostics import SessionDiagnostics
from socialcue.tutor.formatter import ResponseFormatter, UtteranceDraft
from socialcue.tutor.grade_profile import GradeBand
from socialcue.tutor.validator import IssueKind, check_response, has_turn_signal
from socialcue.voice.events import EventPayloadError, SessionClosedError


def make_orchestrator(grade="9", signal="Your turn!", **kwargs):
    formatter = ResponseFormatter(selector=lambda candidates: signal)
    return PhaseMethodOrchestrator(grade, formatter=formatter, rng=random.Random(1), **kwargs)


def to_scenario(orch):
    orch.start()
    orch.learner_turn_completed("ok")
    for _ in range(3):
        orch.learner_turn_completed("Hi, I'm Sam.")
    assert orch.phase == Phase.SCENARIO_PRACTICE
    return orch


LINE = UtteranceDraft(content_text="Oh hey. I'm new here. Who are you? Where's the gym?")


class TestPhaseFlow:
    def test_start_in_demonstrate(self):
        orch = make_orchestrator()
        outcome = orch.start()
        assert outcome.phase == Phase.DEMONSTRATE
        assert outcome.texts == ["Watch me first. Listen to my words and tone... Your turn!"]
        assert outcome.turns[0].validation.issues == ()
        assert len(orch.diagnostics) == 1

    def test_learner_turn_moves_to_guided_repetition(self):
        orch = make_orchestrator()
        orch.start()
        outcome = orch.learner_turn_completed("I watched")
        assert outcome.phase_changed is True
        assert outcome.phase == Phase.GUIDED_REPETITION
        assert outcome.texts == ["Repeat after me: Your turn!"]

    def test_guided_repetition_needs_three_turns(self):
        orch = make_orchestrator()
        orch.start()
        orch.learner_turn_completed()
        assert orch.learner_turn_completed().action == "listen"
        assert orch.learner_turn_completed().action == "listen"
        outcome = orch.learner_turn_completed()
        assert outcome.phase == Phase.SCENARIO_PRACTICE
        assert outcome.phase_changed

    def test_explicit_advance(self):
        orch = make_orchestrator()
        orch.start()
        assert orch.advance().phase == Phase.GUIDED_REPETITION
        assert orch.advance().phase == Phase.SCENARIO_PRACTICE

    def test_advance_past_variation_is_noop(self):
        orch = to_scenario(make_orchestrator())
        orch.advance()
        assert orch.phase == Phase.VARIATION
        outcome = orch.advance()
        assert outcome.action == "stay"
        assert outcome.turns == []
        assert orch.phase == Phase.VARIATION

    def test_coach_turn_validated_normally(self):
        orch = make_orchestrator()
        orch.start()
        outcome = orch.take_ai_turn(UtteranceDraft("Nice!", "What's your name? Where do you live?"))
        validation = outcome.turns[0].validation
        assert validation.exempt is False
        assert IssueKind.MULTIPLE_QUESTIONS in validation.issues

    def test_profile_fixed_for_session(self):
        orch = make_orchestrator("2")
        profile = orch.profile
        to_scenario(orch)
        orch.take_ai_turn(LINE)
        assert orch.profile is profile
        assert profile.grade_label == GradeBand.K_2


class TestCharacterMode:
    def test_entering_scenario_initializes_character_mode(self):
        orch = to_scenario(make_orchestrator())
        assert orch.character.to_dict() == {"active": True, "exchange_count": 0, "max_exchanges": 5}

    def test_character_turns_are_exempt_and_counted(self):
        orch = to_scenario(make_orchestrator())
        outcome = orch.take_ai_turn(LINE)
        turn = outcome.turns[0]
        assert turn.validation.exempt is True
        assert turn.validation.issues == ()
        assert turn.response.text == "Oh hey. I'm new here. Who are you? Where's the gym?"
        assert orch.character.exchange_count == 1

    def test_coaching_while_in_character_is_exempt(self):
        orch = to_scenario(make_orchestrator())
        outcome = orch.take_ai_turn(UtteranceDraft("Try smiling?", "Ask their name?"), coaching=True)
        assert outcome.turns[0].validation.exempt is True
        assert outcome.turns[0].validation.issues == ()
        assert orch.character.exchange_count == 1

    def test_fifth_turn_forces_exit(self):
        orch = to_scenario(make_orchestrator())
        for i in range(4):
            outcome = orch.take_ai_turn(LINE)
            assert outcome.action == "character_turn"
            assert orch.character.active is True
            assert orch.character.exchange_count == i + 1

        outcome = orch.take_ai_turn(LINE)
        assert outcome.action == "character_exit"
        assert orch.character.active is False
        assert orch.character.exchange_count == 5
        assert outcome.character["active"] is False
        assert len(outcome.turns) == 2

        exit_turn = outcome.turns[1]
        assert exit_turn.response.text == "Great job! Tell me what felt easy. Your turn!"
        assert exit_turn.validation.exempt is False
        assert exit_turn.validation.issues == ()
        assert orch.phase == Phase.SCENARIO_PRACTICE

    def test_learner_turn_waits_for_exit(self):
        orch = to_scenario(make_orchestrator())
        assert orch.learner_turn_completed("hello").action == "listen"
        assert orch.phase == Phase.SCENARIO_PRACTICE

    def test_learner_turn_after_exit_moves_to_variation(self):
        orch = to_scenario(make_orchestrator(max_exchanges=2))
        orch.take_ai_turn(LINE)
        orch.take_ai_turn(LINE)
        outcome = orch.learner_turn_completed("Talking was easy")
        assert outcome.phase == Phase.VARIATION
        assert outcome.texts == ["Great! Let's make it a little harder by adding... Your turn!"]

    def test_advance_mid_character_exits_first(self):
        orch = to_scenario(make_orchestrator())
        orch.take_ai_turn(LINE)
        outcome = orch.advance()
        assert outcome.texts == [
            "Great job! Tell me what felt easy. Your turn!",
            "Great! Let's make it a little harder by adding... Your turn!",
        ]
        assert orch.phase == Phase.VARIATION
        assert orch.character.active is False

    def test_after_exit_turns_are_validated_again(self):
        orch = to_scenario(make_orchestrator(max_exchanges=1))
        orch.take_ai_turn(LINE)
        outcome = orch.take_ai_turn(UtteranceDraft("Who? What?"))
        assert outcome.turns[0].validation.exempt is False
        assert IssueKind.MULTIPLE_QUESTIONS in outcome.turns[0].validation.issues


class TestK2Pacing:
    def test_truncated_turn_loses_signal(self):
        orch = make_orchestrator("1", signal="What would you say?")
        outcome = orch.take_ai_turn(UtteranceDraft("Great job!", "Now ask their name."))
        turn = outcome.turns[0]
        assert turn.response.truncated is True
        assert turn.response.text == "Great job! Now ask their name. What would!"
        assert turn.validation.issues == (IssueKind.MISSING_TURN_SIGNAL,)


class TestSpeechEvents:
    def test_learner_event_routes_to_turn_completed(self):
        orch = make_orchestrator()
        orch.start()
        outcome = orch.handle_event({"type": "turn_completed", "speaker": "learner", "transcript": "hi"})
        assert outcome.phase == Phase.GUIDED_REPETITION

    def test_ai_playback_complete_changes_nothing(self):
        orch = make_orchestrator()
        orch.start()
        outcome = orch.handle_event({"type": "turn_completed", "speaker": "ai"})
        assert outcome.action == "ai_turn_completed"
        assert orch.phase == Phase.DEMONSTRATE

    def test_recognition_error_prompts_retry(self):
        orch = make_orchestrator()
        orch.start()
        outcome = orch.handle_event({"type": "recognition_error", "error_kind": "no-speech"})
        assert outcome.action == "retry_prompt"
        assert len(outcome.turns) == 1
        assert outcome.texts[0].endswith("Your turn!")
        assert len(orch.errors) == 1

    def test_playback_error_replays_last(self):
        orch = make_orchestrator()
        opening = orch.start().turns[0]
        outcome = orch.handle_event({"type": "playback_error", "error_kind": "network"})
        assert outcome.action == "replay_last"
        assert outcome.replay == opening
        assert len(orch.diagnostics) == 1

    def test_help_prompt(self):
        orch = make_orchestrator()
        orch.start()
        outcome = orch.offer_help()
        assert len(outcome.turns) == 1
        assert len(orch.diagnostics) == 2

    @pytest.mark.parametrize("payload", [
        None,
        "turn_completed",
        {"type": "shout"},
        {"type": "turn_completed"},
        {"type": "turn_completed", "speaker": "parent"},
        {"type": "turn_completed", "speaker": "learner", "transcript": 42},
        {"type": "playback_error", "error_kind": 7},
    ])
    def test_malformed_payload_raises_typed_failure(self, payload):
        orch = make_orchestrator()
        orch.start()
        with pytest.raises(EventPayloadError):
            orch.handle_event(payload)
        assert orch.phase == Phase.DEMONSTRATE


class TestTeardown:
    def test_closed_session_rejects_turns(self):
        orch = make_orchestrator()
        orch.start()
        orch.close()
        with pytest.raises(SessionClosedError):
            orch.take_ai_turn(UtteranceDraft("Hi."))
        with pytest.raises(SessionClosedError):
            orch.handle_event({"type": "turn_completed", "speaker": "learner"})

    def test_pending_validation_discarded_on_close(self):
        diagnostics = SessionDiagnostics()
        orch = make_orchestrator(diagnostics=diagnostics)
        orch.start()
        orch._speak(UtteranceDraft("Half-finished turn."))
        orch.close()
        assert len(diagnostics) == 1
        assert orch.character.active is False

    def test_failed_operation_commits_nothing_later(self):
        broken = {"on": False}

        def selector(candidates):
            if broken["on"]:
                raise RuntimeError("tts signal table unavailable")
            return "Your turn!"

        diagnostics = SessionDiagnostics()
        orch = PhaseMethodOrchestrator(
            "9", diagnostics=diagnostics, formatter=ResponseFormatter(selector=selector),
            max_exchanges=1,
        )
        to_scenario(orch)
        logged = len(diagnostics)

        # The in-character line is spoken, then the exit turn's signal choice fails.
        broken["on"] = True
        with pytest.raises(RuntimeError):
            orch.take_ai_turn(LINE)
        assert orch._pending == []
        assert len(diagnostics) == logged

        broken["on"] = False
        orch.take_ai_turn(UtteranceDraft("Nice!", "Say hi."))
        assert len(diagnostics) == logged + 1
        assert diagnostics.log[-1].response == "Nice! Say hi. Your turn!"

    def test_uses_injected_diagnostics(self):
        diagnostics = SessionDiagnostics("mine")
        orch = make_orchestrator(diagnostics=diagnostics)
        orch.start()
        assert orch.diagnostics is diagnostics
        assert len(diagnostics) == 1


class TestHelpPrompts:
    def test_gentle_then_specific(self):
        orch = make_orchestrator()
        orch.start()
        first = orch.offer_help().turns[0].response.text
        second = orch.offer_help().turns[0].response.text
        assert any(first.startswith(p.split()[0]) for p in HELP_PROMPTS["gentle"])
        assert any(second.startswith(p.split()[0]) for p in HELP_PROMPTS["specific"])

    def test_learner_speech_resets_help_tier(self):
        orch = make_orchestrator()
        orch.start()
        orch.offer_help()
        orch.learner_turn_completed("hi")
        assert orch.help_offers == 0

    @pytest.mark.parametrize("signal", TURN_SIGNALS)
    def test_engine_prompts_leave_one_question(self, signal):
        formatter = ResponseFormatter(selector=lambda candidates: signal)
        phrases = HELP_PROMPTS["gentle"] + HELP_PROMPTS["specific"] + ENCOURAGEMENT["follow_up"]
        for phrase in phrases:
            assert not has_turn_signal(phrase)
            text = formatter.format(UtteranceDraft(feedback_text=phrase), "9").text
            assert IssueKind.MULTIPLE_QUESTIONS not in check_response(text, "9-12"), text

    def test_retry_after_recognition_error_passes(self):
        for seed in range(10):
            orch = PhaseMethodOrchestrator(
                "9",
                formatter=ResponseFormatter(selector=lambda candidates: "What would you say?"),
                rng=random.Random(seed),
            )
            orch.start()
            outcome = orch.handle_event({"type": "recognition_error", "error_kind": "no-speech"})
            assert outcome.turns[0].validation.issues == ()
            help_turn = orch.offer_help().turns[0]
            assert help_turn.validation.issues == ()
