"""
SocialCue — Grade-Specific Onboarding Scripts
Greeting, introduction, safety note, consent, first prompt.
"""

from types import MappingProxyType

INTRODUCTION_SCRIPTS = MappingProxyType({
    "K-2": MappingProxyType({
        "greeting": "Hi! I'm Cue, and I'm so excited to practice with you today!",
        "introduction": (
            "I help friends learn how to talk with other people. We're going to "
            "play some fun games where we practice saying hi, making friends, "
            "and having good conversations!"
        ),
        "safety": (
            "This is a safe place to try new things. There are no wrong answers, "
            "and we can practice as many times as you want!"
        ),
        "consent": "Are you ready to practice with me?",
        "first_prompt": "Let's start with something fun! Can you tell me your favorite thing to play?",
    }),
    "3-5": MappingProxyType({
        "greeting": "Hey there! I'm Cue, your practice coach!",
        "introduction": (
            "I'm here to help you get really good at starting conversations, "
            "making friends, and talking with people in different situations."
        ),
        "safety": (
            "This is a totally safe space. No one else is watching, and there "
            "are no wrong answers. We're just going to practice together!"
        ),
        "consent": "Sound good?",
        "first_prompt": "Let's start! What's one thing you'd like to get better at when talking to people?",
    }),
    "6-8": MappingProxyType({
        "greeting": "Hi, I'm Cue.",
        "introduction": (
            "I'm an AI coach designed to help you practice social situations "
            "before you face them in real life."
        ),
        "safety": "This is completely private, and you can practice anything you want. No judgment, just practice.",
        "consent": "Where do you want to start?",
        "first_prompt": "What's a social situation you want to practice today?",
    }),
    "9-12": MappingProxyType({
        "greeting": "Hi, I'm Cue.",
        "introduction": (
            "I'm here to help you refine your communication and social skills, "
            "whether that's for job interviews, college, relationships, or daily "
            "interactions."
        ),
        "safety": "This is a private space to practice and experiment. Everything we discuss stays here.",
        "consent": "What would you like to focus on?",
        "first_prompt": "Tell me about a situation you want to prepare for or improve.",
    }),
})


def get_introduction_sequence(grade_label: str) -> dict:
    """Full onboarding intro + first prompt for a grade band label."""
    script = INTRODUCTION_SCRIPTS[grade_label]
    return {
        "full_intro": " ".join((
            script["greeting"], script["introduction"],
            script["safety"], script["consent"],
        )),
        "first_prompt": script["first_prompt"],
        "grade_range": grade_label,
    }
