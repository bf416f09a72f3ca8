"""
SocialCue — Speech Events

The browser owns the microphone and the speaker. The engine only sees
completion and error signals, delivered one at a time:

    {"type": "turn_completed",    "speaker": "learner", "transcript": "Hi!"}
    {"type": "turn_completed",    "speaker": "ai"}
    {"type": "recognition_error", "error_kind": "no-speech"}
    {"type": "playback_error",    "error_kind": "network"}

Malformed payloads raise EventPayloadError. The caller decides whether
the session continues.
"""

from dataclasses import dataclass
from typing import Optional, Union


class EventPayloadError(ValueError):
    """Speech event payload could not be understood."""


class SessionClosedError(RuntimeError):
    """Event delivered to a session that was already torn down."""


SPEAKERS = frozenset({"learner", "ai"})

# Known recognition/playback error kinds. Others are kept verbatim.
ERROR_KINDS = frozenset({
    "no-speech", "audio-capture", "not-allowed", "network",
    "aborted", "timeout", "decode", "unknown",
})


@dataclass(frozen=True)
class TurnCompleted:
    speaker: str
    transcript: str = ""


@dataclass(frozen=True)
class RecognitionError:
    error_kind: str


@dataclass(frozen=True)
class PlaybackError:
    error_kind: str


SpeechEvent = Union[TurnCompleted, RecognitionError, PlaybackError]


def _error_kind(payload: dict) -> str:
    kind = payload.get("error_kind") or "unknown"
    if not isinstance(kind, str):
        raise EventPayloadError(f"error_kind must be a string, got {type(kind).__name__}")
    return kind.strip().lower()


def parse_event(payload) -> SpeechEvent:
    """Turn a raw event dict into a typed event."""
    if isinstance(payload, (TurnCompleted, RecognitionError, PlaybackError)):
        return payload
    if not isinstance(payload, dict):
        raise EventPayloadError(f"Event payload must be an object, got {type(payload).__name__}")

    event_type = payload.get("type")

    if event_type == "turn_completed":
        speaker = payload.get("speaker")
        if speaker not in SPEAKERS:
            raise EventPayloadError(f"turn_completed needs speaker in {sorted(SPEAKERS)}, got {speaker!r}")
        transcript: Optional[str] = payload.get("transcript") or ""
        if not isinstance(transcript, str):
            raise EventPayloadError("transcript must be a string")
        return TurnCompleted(speaker=speaker, transcript=transcript.strip())

    if event_type == "recognition_error":
        return RecognitionError(error_kind=_error_kind(payload))

    if event_type == "playback_error":
        return PlaybackError(error_kind=_error_kind(payload))

    raise EventPayloadError(f"Unknown event type: {event_type!r}")
