"""
SocialCue — Session Router
HTTP surface for the pacing engine. The browser does speech; this does rules.

    POST   /api/sessions                    start (grade level → profile + opening cue)
    GET    /api/sessions/{id}/profile       active pacing profile
    POST   /api/sessions/{id}/turns         format + validate one AI turn
    POST   /api/sessions/{id}/validate      validate arbitrary text
    POST   /api/sessions/{id}/events        speech event (turn completed / errors)
    POST   /api/sessions/{id}/advance       next phase
    POST   /api/sessions/{id}/help          help-timeout prompt
    GET    /api/sessions/{id}/summary       compliance stats
    GET    /api/sessions/{id}/export        full log snapshot
    GET    /api/sessions/{id}/report        session pacing report
    DELETE /api/sessions/{id}               tear down
"""

import json
import logging
from dataclasses import asdict
from typing import Optional, Union

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel

from socialcue.content.intro_scripts import get_introduction_sequence
from socialcue.state.session import LearnerSession, SessionStore
from socialcue.tutor.formatter import UtteranceDraft
from socialcue.tutor.validator import word_limit_discrepancies
from socialcue.voice.events import EventPayloadError, SessionClosedError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/sessions", tags=["sessions"])

# Module-level store. Sessions live for the process lifetime only.
_store = SessionStore()


def get_store() -> SessionStore:
    return _store


def _get_session(session_id: str, store: SessionStore) -> LearnerSession:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(404, "Session not found")
    return session


# ─── Request/Response Models ─────────────────────────────────────────────────

class SessionStartRequest(BaseModel):
    grade_level: Optional[Union[int, str]] = None


class SessionStartResponse(BaseModel):
    session_id: str
    grade_label: str
    profile: dict
    intro: str
    first_prompt: str
    opening: dict


class TurnRequest(BaseModel):
    feedback: Optional[str] = ""
    content: Optional[str] = ""
    coaching: bool = False


class ValidateRequest(BaseModel):
    text: str


def _profile_dict(session: LearnerSession) -> dict:
    profile = asdict(session.profile)
    profile["grade_label"] = session.profile.grade_label.value
    return profile


# ─── Session Lifecycle ───────────────────────────────────────────────────────

@router.post("", response_model=SessionStartResponse)
async def start_session(
    req: SessionStartRequest,
    store: SessionStore = Depends(get_store),
):
    session = store.create(req.grade_level)
    opening = await session.start()
    intro = get_introduction_sequence(session.profile.grade_label.value)

    return SessionStartResponse(
        session_id=session.session_id,
        grade_label=session.profile.grade_label.value,
        profile=_profile_dict(session),
        intro=intro["full_intro"],
        first_prompt=intro["first_prompt"],
        opening=opening.to_dict(),
    )


@router.delete("/{session_id}")
def end_session(session_id: str, store: SessionStore = Depends(get_store)):
    session = store.close(session_id)
    if session is None:
        raise HTTPException(404, "Session not found")
    return {
        "session_id": session_id,
        "summary": session.diagnostics.summarize().to_dict(),
    }


@router.get("/{session_id}/profile")
def get_profile(session_id: str, store: SessionStore = Depends(get_store)):
    session = _get_session(session_id, store)
    return {
        "profile": _profile_dict(session),
        "word_limit_discrepancies": word_limit_discrepancies(),
    }


# ─── Turns & Events ──────────────────────────────────────────────────────────

async def _run_or_409(coro):
    try:
        outcome = await coro
    except SessionClosedError as e:
        raise HTTPException(409, str(e))
    return outcome.to_dict()


@router.post("/{session_id}/turns")
async def post_turn(
    session_id: str,
    req: TurnRequest,
    store: SessionStore = Depends(get_store),
):
    session = _get_session(session_id, store)
    draft = UtteranceDraft(feedback_text=req.feedback, content_text=req.content)
    return await _run_or_409(session.take_ai_turn(draft, coaching=req.coaching))


@router.post("/{session_id}/events")
async def post_event(
    session_id: str,
    payload: dict = Body(...),
    store: SessionStore = Depends(get_store),
):
    session = _get_session(session_id, store)
    try:
        return await _run_or_409(session.handle_event(payload))
    except EventPayloadError as e:
        logger.warning(f"Bad speech event for {session_id}: {e}")
        raise HTTPException(422, str(e))


@router.post("/{session_id}/advance")
async def advance_phase(session_id: str, store: SessionStore = Depends(get_store)):
    session = _get_session(session_id, store)
    return await _run_or_409(session.advance())


@router.post("/{session_id}/help")
async def offer_help(session_id: str, store: SessionStore = Depends(get_store)):
    session = _get_session(session_id, store)
    return await _run_or_409(session.offer_help())


@router.post("/{session_id}/validate")
async def validate_text(
    session_id: str,
    req: ValidateRequest,
    store: SessionStore = Depends(get_store),
):
    session = _get_session(session_id, store)
    try:
        result = await session.validate(req.text)
    except SessionClosedError as e:
        raise HTTPException(409, str(e))
    return result.to_dict()


# ─── Diagnostics ─────────────────────────────────────────────────────────────

@router.get("/{session_id}/summary")
def get_summary(session_id: str, store: SessionStore = Depends(get_store)):
    session = _get_session(session_id, store)
    return session.diagnostics.summarize().to_dict()


@router.get("/{session_id}/export")
def export_log(session_id: str, store: SessionStore = Depends(get_store)):
    session = _get_session(session_id, store)
    return json.loads(session.diagnostics.export_log())


@router.get("/{session_id}/report")
def get_report(session_id: str, store: SessionStore = Depends(get_store)):
    session = _get_session(session_id, store)
    return session.diagnostics.validate_session()
