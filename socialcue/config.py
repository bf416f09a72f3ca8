"""
SocialCue — Configuration
All environment variables and constants. Single source of truth.
No other file reads os.environ directly.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# ─── Paths ───────────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env file if present (real environment wins)
load_dotenv(BASE_DIR / ".env", override=False)

# ─── Grade Bands ─────────────────────────────────────────────────────────────
# Fallback band when a grade level cannot be parsed. Middle school.
DEFAULT_GRADE_BAND = os.getenv("DEFAULT_GRADE_BAND", "6-8")

# ─── STOP-TALK Limits ────────────────────────────────────────────────────────
DEFAULT_WORD_LIMIT = int(os.getenv("DEFAULT_WORD_LIMIT", "15"))
MAX_QUESTIONS_PER_TURN = 1

# ─── Character Mode ──────────────────────────────────────────────────────────
CHARACTER_MAX_EXCHANGES = int(os.getenv("CHARACTER_MAX_EXCHANGES", "5"))

# ─── Diagnostics ─────────────────────────────────────────────────────────────
DIAGNOSTICS_ENABLED = os.getenv("DIAGNOSTICS_ENABLED", "true").lower() == "true"
TOP_ISSUES_LIMIT = int(os.getenv("TOP_ISSUES_LIMIT", "5"))

# ─── Session Pacing Targets ──────────────────────────────────────────────────
SESSION_MIN_TURNS = 5
SESSION_IDEAL_TURNS = 8
SESSION_MAX_TURNS = 12
SESSION_TARGET_SECONDS = 600  # projections are for a 10-minute session

# ─── CORS ────────────────────────────────────────────────────────────────────
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

# ─── Logging ─────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
