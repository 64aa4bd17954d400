# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Tests for LCS-based line matching.
"""

import pytest

from lyricprompter.fuzzy_matcher import (
    FuzzyMatcher,
    find_best_match,
    lcs_length,
    match_score,
    matches_from_start,
)

REAL_LIFE = ["is", "this", "the", "real", "life"]
LANDSLIDE = ["caught", "in", "a", "landslide"]
ESCAPE = ["no", "escape", "from", "reality"]
EYES = ["open", "your", "eyes"]


class TestMatchScore:
    """Tests for scoring one line."""

    def test_exact_words_score_one(self) -> None:
        assert match_score(REAL_LIFE, REAL_LIFE) == 1.0
        assert match_score(LANDSLIDE, LANDSLIDE) == 1.0

    def test_partial_line(self) -> None:
        """Four of five words heard scores 0.8."""
        assert match_score(["is", "this", "the", "real"], REAL_LIFE) == pytest.approx(0.8)

    def test_fuzzy_words_count(self) -> None:
        """'walk' is accepted for 'walking'."""
        line = ["walking", "on", "sunshine"]
        assert match_score(["walk", "on", "sunshine"], line) == pytest.approx(1.0)

    def test_empty_inputs_score_zero(self) -> None:
        assert match_score([], LANDSLIDE) == 0.0
        assert match_score(LANDSLIDE, []) == 0.0

    def test_gaps_are_tolerated(self) -> None:
        """Extra and missing words lower the score without breaking the match."""
        assert match_score(["caught", "um", "in", "landslide"], LANDSLIDE) == pytest.approx(0.75)

    def test_order_matters(self) -> None:
        """Words heard in reverse order are not rewarded."""
        reversed_words = list(reversed(LANDSLIDE))
        assert match_score(reversed_words, LANDSLIDE) == pytest.approx(0.25)

    def test_lcs_length(self) -> None:
        assert lcs_length(["x", "caught", "y", "landslide"], LANDSLIDE) == 2

    def test_longer_buffer_still_scores_line(self) -> None:
        """Words from the previous line in the buffer don't hurt."""
        buffer = ["from", "reality"] + EYES
        assert match_score(buffer, EYES) == 1.0


class TestFindBestMatch:
    """Tests for picking the best line in a window."""

    def setup_method(self) -> None:
        self.lines = [REAL_LIFE, LANDSLIDE, ESCAPE, EYES]

    def test_picks_highest_score(self) -> None:
        result = find_best_match(["no", "escape", "from"], self.lines, (0, 3))
        assert result is not None
        index, score = result
        assert index == 2
        assert score == pytest.approx(0.75)

    def test_window_restricts_candidates(self) -> None:
        """A line outside the window is never returned."""
        assert find_best_match(["no", "escape", "from"], self.lines, (0, 1)) is None

    def test_window_is_clamped(self) -> None:
        result = find_best_match(EYES, self.lines, (-5, 10))
        assert result == (3, 1.0)

    def test_empty_window(self) -> None:
        assert find_best_match(EYES, self.lines, (3, 2)) is None
        assert find_best_match(EYES, self.lines, (4, 5)) is None

    def test_empty_recognized_words(self) -> None:
        assert find_best_match([], self.lines, (0, 3)) is None

    def test_all_zero_scores(self) -> None:
        assert find_best_match(["zzz", "qqq"], self.lines, (0, 3)) is None

    def test_ties_keep_lowest_index(self) -> None:
        lines = [EYES, EYES]
        assert find_best_match(EYES, lines, (0, 1)) == (0, 1.0)


class TestMatchesFromStart:
    """Tests for detecting the start of a line."""

    def test_recent_words_open_line(self) -> None:
        assert matches_from_start(["reality", "caught", "in"], LANDSLIDE)

    def test_recent_words_elsewhere(self) -> None:
        assert not matches_from_start(["caught", "in", "a"], LANDSLIDE)

    def test_too_few_words(self) -> None:
        assert not matches_from_start(["caught"], LANDSLIDE)
        assert not matches_from_start(["caught", "in"], ["caught"])


class TestFuzzyMatcher:
    """The injectable matcher delegates to the module functions."""

    def test_delegates(self) -> None:
        matcher = FuzzyMatcher()
        assert matcher.match_score(EYES, EYES) == 1.0
        assert matcher.find_best_match(EYES, [LANDSLIDE, EYES], (0, 1)) == (1, 1.0)
        assert matcher.matches_from_start(["open", "your"], EYES)
