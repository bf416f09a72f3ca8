"""
SocialCue — Main Application
FastAPI app. Mounts the session router and CORS. Configures logging on startup.

Run: uvicorn socialcue.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from socialcue import __version__
from socialcue.config import CORS_ORIGINS, LOG_LEVEL
from socialcue.tutor.validator import word_limit_discrepancies

logger = logging.getLogger("socialcue")


# ─── Lifespan (startup/shutdown) ─────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    diffs = word_limit_discrepancies()
    if diffs:
        logger.warning(f"Validator and profile word limits disagree: {diffs}")

    logger.info(f"SocialCue engine v{__version__} ready")
    yield
    logger.info("Shutting down")


# ─── App ─────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="SocialCue Pacing Engine",
    description="STOP-TALK pacing and response validation for social-skill practice",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from socialcue.routers import session  # noqa: E402
app.include_router(session.router)


@app.get("/health")
@app.get("/healthz")
async def health():
    return {"status": "ok", "version": __version__}
