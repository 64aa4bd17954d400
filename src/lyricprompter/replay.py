# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Debug tool for replaying a transcript through the position tracker.

This CLI tool takes a transcript file and a lyrics file, simulates
recognition results arriving, and writes a report of every match and
prompt to help debug missed or early prompts.
"""

import argparse
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Literal, TextIO

from .lyrics_parser import Song, load_song_file
from .tracker import LineCompleted, PositionTracker, PromptEvent, SongFinished, SpeakPrompt
from .transcribe import TranscriptFeed

EventType = Literal["prompt", "completed", "finished", "advance", "no_change"]


@dataclass
class ReplayEvent:
    """What happened after one recognition result was replayed."""
    transcript_line: int
    text: str
    new_words: list[str]
    line_before: int
    line_after: int
    event_type: EventType
    prompt_text: str = ""
    lines_skipped: int = 0


def load_transcript(path: Path) -> list[str]:
    """Load transcript file and extract transcript lines.

    Filters out metadata lines (starting with '===').
    Returns list of transcript text lines.
    """
    lines: list[str] = []
    with open(path, encoding='utf-8') as f:
        for line in f:
            stripped_line: str = line.strip()
            if stripped_line.startswith('===') or not stripped_line:
                continue
            lines.append(stripped_line)
    return lines


def _recognition_results(text: str, word_by_word: bool) -> list[tuple[str, bool]]:
    """Results the recognizer would have produced for one utterance."""
    if not word_by_word:
        return [(text, False)]
    words: list[str] = text.split()
    partials = [(" ".join(words[:i]), True) for i in range(1, len(words))]
    return partials + [(text, False)]


def _classify(event: PromptEvent | None, before: int, after: int) -> EventType:
    match event:
        case SpeakPrompt():
            return "prompt"
        case LineCompleted():
            return "completed"
        case SongFinished():
            return "finished"
    return "advance" if after > before else "no_change"


def replay_transcript(
    transcript_lines: list[str],
    song: Song,
    output: TextIO,
    verbose: bool = False,
    word_by_word: bool = False
) -> list[ReplayEvent]:
    """Replay transcript through the tracker and log events.

    Args:
        transcript_lines: Lines of transcript text (one utterance each)
        song: The song being performed
        output: File handle to write log output
        verbose: If True, log every result. If False, only log prompts and advances.
        word_by_word: If True, simulate partial results growing one word at a time

    Returns:
        List of all replay events
    """
    tracker = PositionTracker()
    tracker.load_song(song)
    feed = TranscriptFeed()
    events: list[ReplayEvent] = []
    finished = False

    output.write("=" * 80 + "\n")
    output.write("TRANSCRIPT REPLAY LOG\n")
    output.write(f"Generated: {datetime.now().isoformat()}\n")
    output.write(f"Song: {song.title} ({song.line_count} lines, "
                 f"trigger {song.trigger_percent}%)\n")
    output.write(f"Transcript lines: {len(transcript_lines)}\n")
    output.write("=" * 80 + "\n\n")

    output.write("LYRICS:\n")
    output.write("-" * 40 + "\n")
    for line in song.lines:
        output.write(f"  [{line.index:3d}] {line.text}\n")
    output.write("\n" + "=" * 80 + "\n\n")

    output.write("TRACKING LOG:\n")
    output.write("-" * 40 + "\n")

    for line_num, line in enumerate(transcript_lines, start=1):
        if finished:
            break

        line_display: str = f"--- Line {line_num}: \"{line[:60]}"
        line_display += '...' if len(line) > 60 else ''
        line_display += "\" ---"
        output.write(f"\n{line_display}\n")

        for text, is_partial in _recognition_results(line, word_by_word):
            new_words: list[str] = feed.push(text, is_partial)
            line_before: int = tracker.current_line_index
            event: PromptEvent | None = tracker.on_words_recognized(new_words)
            line_after: int = tracker.current_line_index

            event_type: EventType = _classify(event, line_before, line_after)
            replay_event = ReplayEvent(
                transcript_line=line_num,
                text=text,
                new_words=new_words,
                line_before=line_before,
                line_after=line_after,
                event_type=event_type,
                prompt_text=event.prompt_text if isinstance(event, SpeakPrompt) else "",
                lines_skipped=tracker.lines_skipped,
            )
            events.append(replay_event)

            match event:
                case SpeakPrompt(line_index=index, prompt_text=prompt):
                    output.write(f"  *** PROMPT after line {index}: \"{prompt}\"\n")
                case LineCompleted(line_index=index):
                    output.write(f"  *** LINE {index} COMPLETED (no prompt) ***\n")
                case SongFinished():
                    output.write("  *** SONG FINISHED ***\n")
                    finished = True
                case None if event_type == "advance" or verbose:
                    output.write(
                        f"  words={new_words} line: {line_before} -> {line_after} "
                        f"({event_type})\n")

            if replay_event.lines_skipped and verbose:
                output.write(f"  [SKIPPED] {replay_event.lines_skipped} line(s) "
                             "passed without a prompt\n")

            if finished:
                break

    prompts = [e for e in events if e.event_type == "prompt"]
    completed = [e for e in events if e.event_type == "completed"]

    output.write("\n" + "=" * 80 + "\n")
    output.write("SUMMARY:\n")
    output.write("-" * 40 + "\n")
    output.write(f"Total lines processed: {len(transcript_lines)}\n")
    output.write(f"Prompts spoken: {len(prompts)}\n")
    output.write(f"Lines completed without prompt: {len(completed)}\n")
    output.write(f"Song finished: {'yes' if finished else 'no'}\n")
    state = tracker.get_state()
    output.write(f"Final position: line {state.current_line_index} of "
                 f"{state.total_lines} (last prompted {state.last_prompted_line})\n")

    return events


def main() -> None:
    """Main entry point for the replay tool."""
    parser = argparse.ArgumentParser(
        description="Replay a transcript through the lyric tracker for debugging"
    )
    parser.add_argument("transcript", type=Path, help="Path to transcript file")
    parser.add_argument("lyrics", type=Path, help="Path to lyrics file")
    parser.add_argument("-o", "--output", type=Path, default=None,
                        help="Output file (default: stdout)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log every recognition result, not just prompts")
    parser.add_argument("--word-by-word", action="store_true",
                        help="Simulate partial results arriving one word at a time")
    parser.add_argument("--trigger-percent", type=int, default=70,
                        help="Trigger percentage for the song (default: 70)")
    parser.add_argument("--prompt-words", type=int, default=4,
                        help="Words of the next line to speak (default: 4)")

    args = parser.parse_args()

    for path in (args.transcript, args.lyrics):
        if not path.exists():
            print(f"Error: file not found: {path}", file=sys.stderr)
            sys.exit(1)

    transcript_lines = load_transcript(args.transcript)
    song = load_song_file(
        args.lyrics,
        prompt_word_count=args.prompt_words,
        trigger_percent=args.trigger_percent,
    )

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            replay_transcript(transcript_lines, song, f, args.verbose, args.word_by_word)
        print(f"Replay log written to: {args.output}")
    else:
        replay_transcript(transcript_lines, song, sys.stdout, args.verbose, args.word_by_word)


if __name__ == "__main__":
    main()
