# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Position tracking module that follows a performer through a song.

Recognized words go into a rolling buffer, which is matched against a
narrow window of upcoming lines. When enough of a line has been heard,
the tracker emits an event telling the caller to speak the opening of
the next line.

The tracker is not thread-safe. Each call runs to completion and
mutates state in place; see ThreadedTracker for multi-threaded hosts.
"""

import logging
from collections import deque
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .fuzzy_matcher import FuzzyMatcher
from .lyrics_parser import DEFAULT_TRIGGER_PERCENT, LyricLine, Song, normalize_word
from .prompt_trigger import PromptTrigger

logger = logging.getLogger(__name__)

# Max words to keep in the recognition buffer
MAX_BUFFER_SIZE: int = 15

# Words to keep after prompting (the rest would cause stale matches)
KEEP_AFTER_PROMPT: int = 3

# Lines to look ahead of the current line when matching
SEARCH_WINDOW_AFTER: int = 1

# Lines ahead of the current line used for a focused vocabulary
GRAMMAR_LINES_AHEAD: int = 3


@dataclass(frozen=True)
class SpeakPrompt:
    """Speak the prompt for the line after ``line_index``."""
    line_index: int
    prompt_text: str


@dataclass(frozen=True)
class LineCompleted:
    """A line finished but there is nothing to speak for the next one."""
    line_index: int


@dataclass(frozen=True)
class SongFinished:
    """The last line has been sung."""


PromptEvent = SpeakPrompt | LineCompleted | SongFinished


@dataclass(frozen=True)
class TrackingState:
    """Snapshot of the tracker for display purposes."""
    current_line_index: int
    total_lines: int
    last_prompted_line: int
    buffer_size: int
    current_line_text: str | None
    recognized_words: tuple[str, ...] = ()


class PositionTracker:
    """
    Tracks the performer's position in a song from recognized words.

    Session state is the current line pointer, the last prompted line
    (-1 before anything has been prompted) and a bounded buffer of the
    most recently recognized words. Both pointers only move forward,
    except across reset().

    Usage:
        tracker = PositionTracker()
        tracker.load_song(song)

        event = tracker.on_words_recognized(["is", "this", "the", "real"])
        if isinstance(event, SpeakPrompt):
            speaker.speak(event.prompt_text)
    """

    matcher: FuzzyMatcher
    trigger: PromptTrigger
    max_buffer_size: int
    keep_after_prompt: int
    search_window_after: int

    lines: tuple[LyricLine, ...]
    line_words_list: list[tuple[str, ...]]
    trigger_percent: int

    current_line_index: int
    last_prompted_line: int
    recognized_buffer: deque[str]

    def __init__(
        self,
        matcher: FuzzyMatcher | None = None,
        trigger: PromptTrigger | None = None,
        max_buffer_size: int = MAX_BUFFER_SIZE,
        keep_after_prompt: int = KEEP_AFTER_PROMPT,
        search_window_after: int = SEARCH_WINDOW_AFTER
    ) -> None:
        """
        Initialize the position tracker.

        Args:
            matcher: Sequence matcher used to score lines
            trigger: Policy deciding when to prompt
            max_buffer_size: Number of recognized words kept for matching
            keep_after_prompt: Words kept in the buffer after a prompt fires
            search_window_after: Lines past the current line to consider
        """
        self.matcher = matcher or FuzzyMatcher()
        self.trigger = trigger or PromptTrigger()
        self.max_buffer_size = max_buffer_size
        self.keep_after_prompt = keep_after_prompt
        self.search_window_after = search_window_after

        self.lines = ()
        self.line_words_list = []
        self.trigger_percent = DEFAULT_TRIGGER_PERCENT

        self.current_line_index = 0
        self.last_prompted_line = -1
        self.recognized_buffer = deque(maxlen=max_buffer_size)

    def load_song(self, song: Song) -> None:
        """Load a song for tracking, using its trigger percentage."""
        self.load_script(song.lines, song.trigger_percent)

    def load_script(
        self,
        lines: Sequence[LyricLine],
        trigger_percent: int = DEFAULT_TRIGGER_PERCENT
    ) -> None:
        """Load a script and reset the session to its first line."""
        self.lines = tuple(lines)
        self.line_words_list = [line.words for line in self.lines]
        self.trigger_percent = trigger_percent
        self.reset()
        logger.debug("Loaded script: %d lines, trigger=%d%%",
                     len(self.lines), trigger_percent)

    def reset(self) -> None:
        """Reset tracking state to the beginning of the song."""
        self.current_line_index = 0
        self.last_prompted_line = -1
        self.recognized_buffer.clear()

    @property
    def last_line_index(self) -> int:
        """Index of the last line (-1 for an empty script)."""
        return len(self.lines) - 1

    @property
    def lines_skipped(self) -> int:
        """Lines passed without a prompt firing."""
        return self.trigger.lines_skipped(self.current_line_index, self.last_prompted_line)

    def search_window(self) -> tuple[int, int]:
        """
        Inclusive range of lines to match against.

        Never goes back to a prompted line, and looks at most
        ``search_window_after`` lines past the current one.
        """
        start: int = max(self.current_line_index, self.last_prompted_line + 1)
        return start, self.current_line_index + self.search_window_after

    def on_words_recognized(self, new_words: Iterable[str]) -> PromptEvent | None:
        """
        Process newly recognized words and check for prompt events.

        Args:
            new_words: Words just recognized (from a partial or final result)

        Returns:
            A PromptEvent if the caller needs to act, None otherwise
        """
        normalized: list[str] = [w for w in (normalize_word(w) for w in new_words) if w]
        # The deque drops the oldest words once full
        self.recognized_buffer.extend(normalized)

        if not self.lines or not normalized:
            return None

        window: tuple[int, int] = self.search_window()
        match: tuple[int, float] | None = self.matcher.find_best_match(
            list(self.recognized_buffer), self.line_words_list, window
        )

        if match is None:
            logger.debug("No match in window %s, buffer tail: %s",
                         window, list(self.recognized_buffer)[-5:])
            return None

        matched_index, score = match
        logger.debug("Match: line %d (%d%%) '%s' trigger=%d%% last_prompted=%d",
                     matched_index, int(score * 100),
                     self.lines[matched_index].text[:30],
                     self.trigger_percent, self.last_prompted_line)

        if matched_index > self.current_line_index:
            logger.debug("Advanced from line %d to %d",
                         self.current_line_index, matched_index)
            self.current_line_index = matched_index

        if not self.trigger.should_prompt(
            matched_index,
            score,
            self.trigger_percent,
            self.last_prompted_line,
            len(self.line_words_list[matched_index])
        ):
            return None

        return self._trigger_prompt(matched_index)

    def _trigger_prompt(self, line_index: int) -> PromptEvent:
        """Record a prompt for ``line_index`` and build the event to emit."""
        self.last_prompted_line = line_index

        # Keep the last few words for continuity, drop the rest
        while len(self.recognized_buffer) > self.keep_after_prompt:
            self.recognized_buffer.popleft()

        # Stay within the script once the last line is done
        self.current_line_index = min(line_index + 1, self.last_line_index)

        prompt_text: str = self.lines[line_index].prompt_text
        if not prompt_text:
            if line_index >= self.last_line_index:
                logger.info("Song finished at line %d", line_index)
                return SongFinished()
            logger.info("Line %d completed (no prompt text)", line_index)
            return LineCompleted(line_index)

        logger.info("PROMPT line %d: '%s'", line_index, prompt_text)
        return SpeakPrompt(line_index=line_index, prompt_text=prompt_text)

    def jump_to_line(self, line_index: int) -> None:
        """
        Manually set the current line (e.g. the performer resyncs).

        The last prompted line is left alone so lines already done are
        never prompted again.
        """
        self.current_line_index = max(0, min(line_index, self.last_line_index))
        self.recognized_buffer.clear()
        logger.debug("Jumped to line %d", self.current_line_index)

    def focused_vocabulary(self, lines_ahead: int = GRAMMAR_LINES_AHEAD) -> set[str]:
        """Words of the current line and the next ``lines_ahead`` lines."""
        end: int = min(self.last_line_index, self.current_line_index + lines_ahead)
        words: set[str] = set()
        for index in range(self.current_line_index, end + 1):
            words.update(self.line_words_list[index])
        return words

    def get_state(self) -> TrackingState:
        """Get the current tracking state for display."""
        current_text: str | None = None
        if 0 <= self.current_line_index < len(self.lines):
            current_text = self.lines[self.current_line_index].text
        return TrackingState(
            current_line_index=self.current_line_index,
            total_lines=len(self.lines),
            last_prompted_line=self.last_prompted_line,
            buffer_size=len(self.recognized_buffer),
            current_line_text=current_text,
            recognized_words=tuple(self.recognized_buffer),
        )
