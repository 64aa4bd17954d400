# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Sequence matching of recognized words against lyric lines.

Uses a Longest Common Subsequence (LCS) over word tokens, where two
tokens are "common" if the word matcher says so. Missed or garbled
words lower the score without breaking the match, and words heard out
of order are not rewarded.
"""

from collections.abc import Sequence

from .word_matcher import words_match

# Inclusive (start, end) range of line indices
SearchWindow = tuple[int, int]


def lcs_length(recognized: Sequence[str], line: Sequence[str]) -> int:
    """
    Length of the longest common subsequence of two token lists.

    Standard O(m*n) dynamic programming table, with tokens compared
    through ``words_match`` rather than strict equality.
    """
    m: int = len(recognized)
    n: int = len(line)

    # table[i][j] = LCS length for recognized[:i] and line[:j]
    table: list[list[int]] = [[0] * (n + 1) for _ in range(m + 1)]

    for i in range(1, m + 1):
        spoken: str = recognized[i - 1]
        for j in range(1, n + 1):
            if words_match(spoken, line[j - 1]):
                table[i][j] = table[i - 1][j - 1] + 1
            else:
                table[i][j] = max(table[i - 1][j], table[i][j - 1])

    return table[m][n]


def match_score(recognized_words: Sequence[str], line_words: Sequence[str]) -> float:
    """
    Calculate how much of a lyric line has been recognized.

    Args:
        recognized_words: Recently recognized words (rolling buffer)
        line_words: Normalized words of a lyric line

    Returns:
        Fraction of the line's words found in order, from 0.0 to 1.0
    """
    if not line_words or not recognized_words:
        return 0.0

    return lcs_length(recognized_words, line_words) / len(line_words)


def find_best_match(
    recognized_words: Sequence[str],
    line_words_list: Sequence[Sequence[str]],
    search_window: SearchWindow
) -> tuple[int, float] | None:
    """
    Find the best matching line within a search window.

    The window is clamped to valid line indices. Ties keep the lowest
    index, since only a strictly higher score replaces the current best.

    Args:
        recognized_words: Recently recognized words
        line_words_list: Word lists for every line of the script
        search_window: Inclusive (start, end) range of line indices

    Returns:
        (line_index, score) for the best line, or None if nothing scored
    """
    if not recognized_words:
        return None

    start: int = max(search_window[0], 0)
    end: int = min(search_window[1], len(line_words_list) - 1)
    if start > end:
        return None

    best_index: int = -1
    best_score: float = 0.0

    for index in range(start, end + 1):
        score: float = match_score(recognized_words, line_words_list[index])
        if score > best_score:
            best_score = score
            best_index = index

    if best_index >= 0 and best_score > 0.0:
        return best_index, best_score
    return None


def matches_from_start(
    recognized_words: Sequence[str],
    line_words: Sequence[str],
    min_match_words: int = 2
) -> bool:
    """
    Check if the most recent words are the opening words of a line.

    Useful for noticing that the performer has started a new line.
    """
    if len(line_words) < min_match_words or len(recognized_words) < min_match_words:
        return False

    recent: list[str] = list(recognized_words[-min_match_words:])
    opening: list[str] = list(line_words[:min_match_words])
    return recent == opening


class FuzzyMatcher:
    """
    Stateless matcher handed to the position tracker.

    Wraps the module-level functions so a tracker can be given a
    different matching strategy (e.g. in tests).
    """

    def match_score(self, recognized_words: Sequence[str], line_words: Sequence[str]) -> float:
        """Fraction of ``line_words`` recognized, in order."""
        return match_score(recognized_words, line_words)

    def find_best_match(
        self,
        recognized_words: Sequence[str],
        line_words_list: Sequence[Sequence[str]],
        search_window: SearchWindow
    ) -> tuple[int, float] | None:
        """Best (line_index, score) inside ``search_window``, or None."""
        return find_best_match(recognized_words, line_words_list, search_window)

    def matches_from_start(
        self,
        recognized_words: Sequence[str],
        line_words: Sequence[str],
        min_match_words: int = 2
    ) -> bool:
        """Whether the last words heard open ``line_words``."""
        return matches_from_start(recognized_words, line_words, min_match_words)
