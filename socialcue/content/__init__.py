"""
SocialCue — Static Content Tables

Phrase banks and scripted cues. Plain data. The engine reads these and
never mutates them (tuples and read-only mappings only).
"""
