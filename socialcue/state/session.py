"""
SocialCue — Learner Session State

Every session has ONE state object. It owns:
- the orchestrator (phase, character mode, active GradeProfile)
- the diagnostics log (append-only, never shared across sessions)
- a lock so speech events are processed one at a time, in arrival order

Speech callbacks arrive asynchronously; the engine itself is synchronous.
A new AI turn never starts while a previous one is still being handled.
"""

import asyncio
import logging
import random
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from socialcue.fsm.orchestrator import PhaseMethodOrchestrator, TurnOutcome
from socialcue.tutor.diagnostics import SessionDiagnostics
from socialcue.tutor.formatter import UtteranceDraft
from socialcue.voice.events import SessionClosedError

logger = logging.getLogger("socialcue.state.session")


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class LearnerSession:
    """One practice session. Create with LearnerSession.create()."""
    session_id: str
    orchestrator: PhaseMethodOrchestrator
    started_at: datetime = field(default_factory=_now)
    ended_at: Optional[datetime] = None
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @classmethod
    def create(
        cls,
        grade_level,
        session_id: Optional[str] = None,
        rng: Optional[random.Random] = None,
        **orchestrator_kwargs,
    ) -> "LearnerSession":
        session_id = session_id or str(uuid.uuid4())
        diagnostics = SessionDiagnostics(session_id)
        orchestrator = PhaseMethodOrchestrator(
            grade_level, diagnostics=diagnostics, rng=rng, **orchestrator_kwargs,
        )
        return cls(session_id=session_id, orchestrator=orchestrator)

    # ─── Read-only views ─────────────────────────────────────────────────────

    @property
    def profile(self):
        return self.orchestrator.profile

    @property
    def diagnostics(self) -> SessionDiagnostics:
        return self.orchestrator.diagnostics

    @property
    def closed(self) -> bool:
        return self.orchestrator.closed

    @property
    def busy(self) -> bool:
        """True while a turn is being processed."""
        return self._lock.locked()

    # ─── Serialized operations ───────────────────────────────────────────────

    async def _run(self, operation, *args, **kwargs) -> TurnOutcome:
        async with self._lock:
            if self.closed:
                raise SessionClosedError(f"Session {self.session_id} is closed")
            t0 = time.perf_counter()
            result = operation(*args, **kwargs)
            self.diagnostics.log_timing(
                getattr(operation, "__name__", "operation"), (time.perf_counter() - t0) * 1000,
            )
            return result

    async def start(self) -> TurnOutcome:
        return await self._run(self.orchestrator.start)

    async def take_ai_turn(self, draft: Optional[UtteranceDraft], coaching: bool = False) -> TurnOutcome:
        return await self._run(self.orchestrator.take_ai_turn, draft, coaching=coaching)

    async def handle_event(self, payload) -> TurnOutcome:
        return await self._run(self.orchestrator.handle_event, payload)

    async def advance(self) -> TurnOutcome:
        return await self._run(self.orchestrator.advance)

    async def offer_help(self) -> TurnOutcome:
        return await self._run(self.orchestrator.offer_help)

    async def validate(self, text: str):
        """
        Validate arbitrary text against this session's grade band and log it.
        Exempt only while character mode is active.
        """
        return await self._run(self.orchestrator.validate_text, text)

    def close(self) -> None:
        """Tear down. Queued events will see a closed session."""
        if self.closed:
            return
        self.orchestrator.close()
        self.ended_at = _now()
        logger.info(f"Session {self.session_id} closed after {len(self.diagnostics)} validated turns")


class SessionStore:
    """In-process registry of live sessions. Storage is someone else's job."""

    def __init__(self):
        self._sessions: dict[str, LearnerSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, grade_level, **kwargs) -> LearnerSession:
        session = LearnerSession.create(grade_level, **kwargs)
        self._sessions[session.session_id] = session
        logger.info(
            f"Session {session.session_id} started "
            f"(grade={grade_level!r} → {session.profile.grade_label.value})"
        )
        return session

    def get(self, session_id: str) -> Optional[LearnerSession]:
        return self._sessions.get(session_id)

    def close(self, session_id: str) -> Optional[LearnerSession]:
        session = self._sessions.pop(session_id, None)
        if session is not None:
            session.close()
        return session
