# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Tests for turning raw lyrics into a playable song.
"""

from pathlib import Path

from lyricprompter.lyrics_parser import (
    LyricLine,
    Song,
    build_lines,
    clean_lyrics,
    extract_words,
    generate_prompt,
    load_song_file,
    normalize_word,
    process_lyrics,
    reprocess,
    split_into_lines,
    with_prompt_word_count,
)

LYRICS = """[Verse 1]
Is this the real life?
Is this just fantasy?

Caught in a landslide,
No escape from reality
"""


class TestNormalizeWord:
    """Tests for the normalize_word function."""

    def test_lowercase_and_trim(self) -> None:
        assert normalize_word("  Hello ") == "hello"
        assert normalize_word("WORLD") == "world"

    def test_blank(self) -> None:
        assert normalize_word("   ") == ""


class TestCleanLyrics:
    """Tests for stripping annotations from raw lyrics."""

    def test_section_markers_removed(self) -> None:
        assert clean_lyrics("[Chorus]\nHey Jude") == "Hey Jude"

    def test_repeat_annotations_removed(self) -> None:
        cleaned = clean_lyrics("Na na na (x4)\nHey Jude (Repeat)")
        assert split_into_lines(cleaned) == ["Na na na", "Hey Jude"]

    def test_line_endings_normalized(self) -> None:
        assert split_into_lines(clean_lyrics("one\r\ntwo\rthree")) == ["one", "two", "three"]

    def test_blank_line_runs_collapsed(self) -> None:
        assert clean_lyrics("one\n\n\n\n\ntwo") == "one\n\ntwo"


class TestExtractWords:
    """Tests for the matching words of a line."""

    def test_punctuation_removed(self) -> None:
        assert extract_words("Is this the real life?") == ["is", "this", "the", "real", "life"]

    def test_contractions_kept(self) -> None:
        assert extract_words("Don't stop me now!") == ["don't", "stop", "me", "now"]

    def test_lone_apostrophe_dropped(self) -> None:
        assert extract_words("Hey - you ' there") == ["hey", "you", "there"]

    def test_numbers_kept(self) -> None:
        assert extract_words("99 red balloons") == ["99", "red", "balloons"]

    def test_empty(self) -> None:
        assert extract_words("...") == []


class TestGeneratePrompt:
    """Tests for prompt text."""

    def test_opening_words(self) -> None:
        assert generate_prompt("Look up to the skies and see", 4) == "Look up to the"

    def test_keeps_display_text(self) -> None:
        assert generate_prompt("Caught in a landslide,", 6) == "Caught in a landslide,"

    def test_no_next_line(self) -> None:
        assert generate_prompt(None, 4) == ""
        assert generate_prompt("   ", 4) == ""


class TestProcessLyrics:
    """Tests for building a song."""

    def test_lines_and_prompts(self) -> None:
        song: Song = process_lyrics(LYRICS, title=" Bohemian Rhapsody ", artist="Queen")

        assert song.title == "Bohemian Rhapsody"
        assert song.artist == "Queen"
        assert song.line_count == 4
        assert song.lines[0] == LyricLine(
            index=0,
            text="Is this the real life?",
            words=("is", "this", "the", "real", "life"),
            prompt_text="Is this just fantasy?",
        )
        assert [line.prompt_text for line in song.lines] == [
            "Is this just fantasy?",
            "Caught in a landslide,",
            "No escape from reality",
            "",
        ]

    def test_indices_sequential(self) -> None:
        song = process_lyrics(LYRICS)
        assert [line.index for line in song.lines] == [0, 1, 2, 3]

    def test_vocabulary(self) -> None:
        song = process_lyrics("Hey Jude\nDon't make it bad")
        assert song.vocabulary == frozenset({"hey", "jude", "don't", "make", "it", "bad"})

    def test_settings_stored(self) -> None:
        song = process_lyrics(LYRICS, prompt_word_count=2, trigger_percent=60)
        assert song.trigger_percent == 60
        assert song.prompt_word_count == 2
        assert song.lines[0].prompt_text == "Is this"

    def test_empty_lyrics(self) -> None:
        song = process_lyrics("[Intro]\n\n")
        assert song.lines == ()
        assert song.vocabulary == frozenset()

    def test_lyrics_text(self) -> None:
        song = process_lyrics("Hey Jude\n\nDon't make it bad")
        assert song.lyrics_text == "Hey Jude\nDon't make it bad"

    def test_word_count(self) -> None:
        song = process_lyrics("Hey Jude, don't")
        assert song.lines[0].word_count == 3


class TestRebuildingSongs:
    """Tests for editing lyrics and settings."""

    def test_reprocess_keeps_settings(self) -> None:
        song = process_lyrics("Hey Jude", title="Hey Jude", prompt_word_count=2,
                              trigger_percent=50)
        updated = reprocess(song, "Hey Jude\nDon't make it bad")

        assert updated.title == "Hey Jude"
        assert updated.trigger_percent == 50
        assert updated.line_count == 2
        assert updated.lines[0].prompt_text == "Don't make"
        assert "bad" in updated.vocabulary

    def test_with_prompt_word_count(self) -> None:
        song = process_lyrics(LYRICS)
        shorter = with_prompt_word_count(song, 2)

        assert shorter.prompt_word_count == 2
        assert shorter.lines[0].prompt_text == "Is this"
        assert song.lines[0].prompt_text == "Is this just fantasy?"

    def test_build_lines(self) -> None:
        lines = build_lines(["Hey Jude", "Don't make it bad"], prompt_word_count=1)
        assert lines[0].prompt_text == "Don't"
        assert lines[1].prompt_text == ""


class TestLoadSongFile:
    """Tests for loading lyrics from disk."""

    def test_title_from_file_name(self, tmp_path: Path) -> None:
        path = tmp_path / "hey_jude.txt"
        path.write_text("Hey Jude\nDon't make it bad\n", encoding="utf-8")

        song = load_song_file(path, trigger_percent=80)

        assert song.title == "hey_jude"
        assert song.line_count == 2
        assert song.trigger_percent == 80

    def test_explicit_title(self, tmp_path: Path) -> None:
        path = tmp_path / "lyrics.txt"
        path.write_text("Hey Jude", encoding="utf-8")
        assert load_song_file(path, title="Hey Jude", artist="The Beatles").artist == \
            "The Beatles"
