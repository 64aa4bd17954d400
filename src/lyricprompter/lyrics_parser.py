# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Lyrics parsing module that turns raw lyrics text into a playable script.

Each line keeps two representations:
1. Display text - the line as written (original casing and punctuation)
2. Words - lowercase tokens used for matching against recognized speech

Each line also carries its prompt text, which is the opening of the
FOLLOWING line. Prompts are always one line ahead of the singer.
"""

import re
from dataclasses import dataclass, field, replace
from pathlib import Path

DEFAULT_TRIGGER_PERCENT: int = 70
DEFAULT_PROMPT_WORD_COUNT: int = 4

# Allowed ranges for per-song prompt settings
TRIGGER_PERCENT_RANGE: range = range(40, 91)
PROMPT_WORD_COUNT_RANGE: range = range(2, 7)

# Section markers such as [Verse 1], [Chorus]
_SECTION_MARKER = re.compile(r"\[.*?]")
# Repeat annotations such as (x2) and (repeat)
_REPEAT_COUNT = re.compile(r"\(x\d+\)")
_REPEAT_WORD = re.compile(r"\(repeat\)", re.IGNORECASE)
_EXTRA_BLANK_LINES = re.compile(r"\n{3,}")

# Anything that is not a letter, digit, apostrophe or whitespace
_NON_WORD_CHARS = re.compile(r"[^a-z0-9'\s]")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class LyricLine:
    """A single line of lyrics with its matching words and prompt."""
    index: int  # 0-based line number
    text: str  # Original text (e.g. "Is this the real life?")
    words: tuple[str, ...]  # Normalized words (e.g. ("is", "this", ...))
    prompt_text: str  # Opening words of the NEXT line ("" on the last line)

    @property
    def word_count(self) -> int:
        """Number of matchable words in the line."""
        return len(self.words)


@dataclass
class Song:
    """A song's script plus the settings used while performing it."""
    title: str
    artist: str
    lines: tuple[LyricLine, ...] = ()
    vocabulary: frozenset[str] = field(default_factory=frozenset)
    trigger_percent: int = DEFAULT_TRIGGER_PERCENT
    prompt_word_count: int = DEFAULT_PROMPT_WORD_COUNT

    @property
    def line_count(self) -> int:
        """Return the total number of lines."""
        return len(self.lines)

    @property
    def lyrics_text(self) -> str:
        """Return the lyrics as display text, one line per line."""
        return "\n".join(line.text for line in self.lines)


def normalize_word(word: str) -> str:
    """Normalize a recognized word for matching (lowercase, trimmed)."""
    return word.lower().strip()


def clean_lyrics(raw: str) -> str:
    """
    Clean up raw lyrics text.

    Removes section markers and repeat annotations, normalizes line
    endings and collapses runs of blank lines.
    """
    text: str = _SECTION_MARKER.sub("", raw)
    text = _REPEAT_COUNT.sub("", text)
    text = _REPEAT_WORD.sub("", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _EXTRA_BLANK_LINES.sub("\n\n", text)
    return text.strip()


def split_into_lines(text: str) -> list[str]:
    """Split lyrics into trimmed, non-empty lines."""
    return [line.strip() for line in text.split("\n") if line.strip()]


def extract_words(line: str) -> list[str]:
    """
    Extract normalized words from a line for matching.

    Apostrophes are kept so contractions ("don't", "I'm") stay whole.

    Examples:
        "Is this the real life?" -> ["is", "this", "the", "real", "life"]
        "Don't stop me now!" -> ["don't", "stop", "me", "now"]
    """
    cleaned: str = _NON_WORD_CHARS.sub("", line.lower())
    return [w for w in _WHITESPACE.split(cleaned) if w and w != "'"]


def generate_prompt(next_line: str | None, word_count: int) -> str:
    """Build prompt text from the opening words of the next line."""
    if next_line is None or not next_line.strip():
        return ""
    words: list[str] = [w for w in _WHITESPACE.split(next_line.strip()) if w]
    return " ".join(words[:word_count])


def build_lines(
    line_texts: list[str],
    prompt_word_count: int = DEFAULT_PROMPT_WORD_COUNT
) -> tuple[LyricLine, ...]:
    """
    Build LyricLine objects, each prompting for the line after it.

    Args:
        line_texts: Display text of each line, in order
        prompt_word_count: Number of words of the next line to speak

    Returns:
        Tuple of lines indexed from 0
    """
    lines: list[LyricLine] = []
    for index, text in enumerate(line_texts):
        next_text: str | None = (
            line_texts[index + 1] if index + 1 < len(line_texts) else None
        )
        lines.append(LyricLine(
            index=index,
            text=text,
            words=tuple(extract_words(text)),
            prompt_text=generate_prompt(next_text, prompt_word_count),
        ))
    return tuple(lines)


def _vocabulary(lines: tuple[LyricLine, ...]) -> frozenset[str]:
    return frozenset(word for line in lines for word in line.words)


def process_lyrics(
    raw_lyrics: str,
    title: str = "",
    artist: str = "",
    prompt_word_count: int = DEFAULT_PROMPT_WORD_COUNT,
    trigger_percent: int = DEFAULT_TRIGGER_PERCENT
) -> Song:
    """
    Process raw lyrics text into a Song ready for performance.

    Args:
        raw_lyrics: The raw lyrics text
        title: The song title
        artist: The artist name
        prompt_word_count: Number of words to include in prompts
        trigger_percent: Percentage of a line to hear before prompting

    Returns:
        A new Song with processed lines and vocabulary
    """
    line_texts: list[str] = split_into_lines(clean_lyrics(raw_lyrics))
    lines: tuple[LyricLine, ...] = build_lines(line_texts, prompt_word_count)

    return Song(
        title=title.strip(),
        artist=artist.strip(),
        lines=lines,
        vocabulary=_vocabulary(lines),
        trigger_percent=trigger_percent,
        prompt_word_count=prompt_word_count,
    )


def reprocess(song: Song, new_lyrics: str) -> Song:
    """Reprocess a song's lyrics (e.g. after editing), keeping its settings."""
    processed: Song = process_lyrics(
        new_lyrics,
        title=song.title,
        artist=song.artist,
        prompt_word_count=song.prompt_word_count,
        trigger_percent=song.trigger_percent,
    )
    return replace(song, lines=processed.lines, vocabulary=processed.vocabulary)


def with_prompt_word_count(song: Song, prompt_word_count: int) -> Song:
    """Return a copy of the song with prompts regenerated for a new word count."""
    line_texts: list[str] = [line.text for line in song.lines]
    return replace(
        song,
        lines=build_lines(line_texts, prompt_word_count),
        prompt_word_count=prompt_word_count,
    )


def load_song_file(
    path: Path,
    title: str | None = None,
    artist: str = "",
    prompt_word_count: int = DEFAULT_PROMPT_WORD_COUNT,
    trigger_percent: int = DEFAULT_TRIGGER_PERCENT
) -> Song:
    """
    Load a lyrics text file as a Song.

    The title defaults to the file name without its extension.
    """
    with open(path, encoding="utf-8") as f:
        raw: str = f.read()
    return process_lyrics(
        raw,
        title=title if title is not None else path.stem,
        artist=artist,
        prompt_word_count=prompt_word_count,
        trigger_percent=trigger_percent,
    )
