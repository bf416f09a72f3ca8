"""
SocialCue — STOP-TALK Phrase Tables

STOP:  brief pause after the learner speaks.
TALK:  feedback + content + turn signal, then yield the floor.

Two separate signal lists exist:
- TURN_SIGNALS: what the formatter appends (with punctuation).
- CANONICAL_TURN_SIGNALS: what the validator searches for (substrings).
"""

from types import MappingProxyType

# ─── Turn signals appended by the formatter ──────────────────────────────────

TURN_SIGNALS = (
    "Your turn!",
    "What would you say?",
    "Now you try!",
    "Go ahead!",
)

# ─── Phrases the validator accepts as an explicit invitation ─────────────────
# Case-sensitive substring match.

CANONICAL_TURN_SIGNALS = (
    "Your turn",
    "Go ahead",
    "Now you try",
    "What would you say",
)

# ─── Help prompts (offered after the grade's help timeout) ──────────────────
# First prompt is gentle; repeated silence gets a concrete starter line.
# No "?" and no turn signal: the formatter appends the one signal.

HELP_PROMPTS = MappingProxyType({
    "gentle": (
        "Take your time and think it over.",
        "It's okay to pause and think.",
        "Here's a hint: start with a greeting.",
    ),
    "specific": (
        "Try saying: 'Hi, my name is...'",
        "You could ask what they like to do.",
        "Remember to make eye contact and smile!",
    ),
})
