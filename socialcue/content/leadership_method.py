"""
SocialCue — Leadership Method Scripts

Four phases: Demonstrate → Guided Repetition → Scenario Practice → Variation.
Each phase opens with a scripted cue. Scenario Practice runs in character
mode, which is bounded and closed with explicit praise + reflection.
"""

from types import MappingProxyType

PHASE_SCRIPTS = MappingProxyType({
    "Demonstrate": MappingProxyType({
        "title": "Demonstrate",
        "description": "AI models the skill first, playing both roles.",
        "script_cue": "Watch me first. Listen to my words and tone...",
    }),
    "GuidedRepetition": MappingProxyType({
        "title": "Guided Repetition",
        "description": "Learner repeats line-by-line with coaching.",
        "script_cue": "Repeat after me: ",
    }),
    "ScenarioPractice": MappingProxyType({
        "title": "Scenario Practice",
        "description": "AI acts in character while learner applies skill.",
        "script_cue": "Now I'm going to be the other person. Ready? Go!",
    }),
    "Variation": MappingProxyType({
        "title": "Variation",
        "description": "Add variations to solidify skill and adaptability.",
        "script_cue": "Great! Let's make it a little harder by adding...",
    }),
})

# Exit utterance: praise, then a reflection prompt, then the turn signal.
# Reflection is not phrased as a question so the signal stays the only one.
CHARACTER_EXIT_PRAISE = "Great job!"
CHARACTER_EXIT_REFLECTION = "Tell me what felt easy."
