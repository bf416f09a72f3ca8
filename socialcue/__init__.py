"""
SocialCue — Conversation Pacing & Response Validation Engine
STOP-TALK turn-taking for spoken social-skill practice.
"""

__version__ = "1.0.0"
