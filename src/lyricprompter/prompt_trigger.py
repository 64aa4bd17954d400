# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Decides when enough of a line has been sung to speak the next one.
"""

# Lines with this many words or fewer get a lower trigger threshold
SHORT_LINE_MAX_WORDS: int = 4
SHORT_LINE_REDUCTION: float = 0.15
MIN_SHORT_LINE_THRESHOLD: float = 0.25


def trigger_threshold(trigger_percent: int, line_word_count: int) -> float:
    """
    Match score needed before a line prompts.

    Short lines are sung quickly, so they need proportionally less of
    their content recognized.

    Args:
        trigger_percent: Configured trigger percentage (e.g. 70)
        line_word_count: Number of words in the matched line

    Returns:
        Threshold as a fraction (0.0-1.0)
    """
    threshold: float = trigger_percent / 100
    if 1 <= line_word_count <= SHORT_LINE_MAX_WORDS:
        threshold = max(threshold - SHORT_LINE_REDUCTION, MIN_SHORT_LINE_THRESHOLD)
    return threshold


def should_prompt(
    line_index: int,
    match_score: float,
    trigger_percent: int,
    last_prompted_line: int,
    line_word_count: int
) -> bool:
    """
    Determine if a prompt should be triggered.

    Args:
        line_index: Line being matched
        match_score: How well the recognized words match the line (0.0-1.0)
        trigger_percent: Threshold percentage to trigger a prompt (e.g. 70)
        last_prompted_line: The last line that was prompted (-1 if none)
        line_word_count: Number of words in the matched line

    Returns:
        True if the prompt for the following line should be spoken
    """
    # Never re-prompt the same line or an earlier one
    if line_index <= last_prompted_line:
        return False

    return match_score >= trigger_threshold(trigger_percent, line_word_count)


def lines_skipped(current_line_index: int, last_prompted_line: int) -> int:
    """
    Number of lines passed without a prompt firing.

    A non-zero value means the performer is moving faster than the
    tracker is confirming lines.
    """
    return max(0, current_line_index - (last_prompted_line + 1))


class PromptTrigger:
    """Trigger policy handed to the position tracker."""

    def should_prompt(
        self,
        line_index: int,
        match_score: float,
        trigger_percent: int,
        last_prompted_line: int,
        line_word_count: int
    ) -> bool:
        """See :func:`should_prompt`."""
        return should_prompt(
            line_index, match_score, trigger_percent, last_prompted_line, line_word_count
        )

    def lines_skipped(self, current_line_index: int, last_prompted_line: int) -> int:
        """See :func:`lines_skipped`."""
        return lines_skipped(current_line_index, last_prompted_line)
