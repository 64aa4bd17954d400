"""
LyricPrompter - hands-free lyric prompts for live performance.

Listens to the performer through a local speech recognizer (Vosk),
follows their position in the lyrics and speaks the opening of the
next line just before it is needed.
"""

__version__ = "0.1.0"

from .fuzzy_matcher import FuzzyMatcher, find_best_match, match_score
from .lyrics_parser import LyricLine, Song, process_lyrics
from .prompt_trigger import PromptTrigger, lines_skipped, should_prompt
from .tracker import (
    LineCompleted,
    PositionTracker,
    PromptEvent,
    SongFinished,
    SpeakPrompt,
    TrackingState,
)
from .word_matcher import words_match

__all__ = [
    "FuzzyMatcher",
    "find_best_match",
    "match_score",
    "LyricLine",
    "Song",
    "process_lyrics",
    "PromptTrigger",
    "lines_skipped",
    "should_prompt",
    "LineCompleted",
    "PositionTracker",
    "PromptEvent",
    "SongFinished",
    "SpeakPrompt",
    "TrackingState",
    "words_match",
]
