"""
SocialCue — Feedback Phrase Banks
Encouragement used when the learner needs another go.
Statements only. The appended turn signal is the single question.
"""

from types import MappingProxyType

ENCOURAGEMENT = MappingProxyType({
    "follow_up": (
        "Let's try one more together.",
        "Add a little more detail this time.",
        "Take a breath, then give it another go.",
    ),
})
