"""Tests for replaying saved transcripts through the tracker.

These tests check that a performance recorded as a transcript:
1. Prompts every line once, in order
2. Finishes on the last line
3. Behaves the same whether results arrive whole or word by word
"""

import io
import sys
from pathlib import Path

import pytest

from lyricprompter import replay
from lyricprompter.lyrics_parser import Song, process_lyrics
from lyricprompter.replay import load_transcript, replay_transcript

LYRICS = """[Verse]
Caught in a landslide
No escape from reality
Open your eyes
Look up to the skies and see
"""

TRANSCRIPT = """=== Transcript started at 2025-01-01T20:00:00 ===

caught in a landslide
no escape from reality

open your eyes
look up to the skies and see
=== Transcript ended ===
"""


@pytest.fixture
def song() -> Song:
    return process_lyrics(LYRICS, title="Landslide")


@pytest.fixture
def transcript_lines() -> list[str]:
    return [
        "caught in a landslide",
        "no escape from reality",
        "open your eyes",
        "look up to the skies and see",
    ]


class TestLoadTranscript:
    """Transcript file parsing."""

    def test_skips_markers_and_blank_lines(self, tmp_path: Path, transcript_lines) -> None:
        path = tmp_path / "transcript.txt"
        path.write_text(TRANSCRIPT, encoding="utf-8")

        assert load_transcript(path) == transcript_lines


class TestReplay:
    """Replaying whole utterances and growing partial results."""

    def test_final_results(self, song: Song, transcript_lines: list[str]) -> None:
        output = io.StringIO()
        events = replay_transcript(transcript_lines, song, output)

        assert [e.event_type for e in events] == ["prompt", "prompt", "prompt", "finished"]
        assert [e.prompt_text for e in events[:3]] == [
            "No escape from reality",
            "Open your eyes",
            "Look up to the",
        ]
        log = output.getvalue()
        assert "Prompts spoken: 3" in log
        assert "Song finished: yes" in log

    def test_word_by_word(self, song: Song, transcript_lines: list[str]) -> None:
        """Prompts fire on partial results, before each line is finished."""
        events = replay_transcript(transcript_lines, song, io.StringIO(), word_by_word=True)

        prompts = [e for e in events if e.event_type == "prompt"]
        assert [e.text for e in prompts] == ["caught in a", "no escape from", "open your"]
        assert [e.line_before for e in prompts] == [0, 1, 2]
        assert events[-1].event_type == "finished"
        assert events[-1].text == "look up to the skies"

    def test_line_positions_never_decrease(self, song: Song, transcript_lines) -> None:
        events = replay_transcript(transcript_lines, song, io.StringIO(), word_by_word=True)
        positions = [e.line_after for e in events]
        assert positions == sorted(positions)

    def test_stops_after_finish(self, song: Song, transcript_lines: list[str]) -> None:
        events = replay_transcript(transcript_lines + ["caught in a landslide"], song,
                                   io.StringIO())
        assert len(events) == 4

    def test_unrelated_speech(self, song: Song) -> None:
        output = io.StringIO()
        events = replay_transcript(["thank you very much"], song, output, verbose=True)

        assert [e.event_type for e in events] == ["no_change"]
        assert "Prompts spoken: 0" in output.getvalue()
        assert "Song finished: no" in output.getvalue()


class TestReplayCommand:
    """The command-line entry point."""

    def test_writes_report(self, tmp_path: Path, monkeypatch) -> None:
        transcript = tmp_path / "transcript.txt"
        transcript.write_text(TRANSCRIPT, encoding="utf-8")
        lyrics = tmp_path / "landslide.txt"
        lyrics.write_text(LYRICS, encoding="utf-8")
        report = tmp_path / "report.txt"

        monkeypatch.setattr(sys, "argv", [
            "lyricprompter-replay", str(transcript), str(lyrics), "-o", str(report)])
        replay.main()

        content = report.read_text(encoding="utf-8")
        assert "Song: landslide (4 lines, trigger 70%)" in content
        assert "*** SONG FINISHED ***" in content

    def test_missing_file(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr(sys, "argv", [
            "lyricprompter-replay", str(tmp_path / "missing.txt"), str(tmp_path / "x.txt")])
        with pytest.raises(SystemExit):
            replay.main()
