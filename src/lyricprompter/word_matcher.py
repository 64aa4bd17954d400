# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Error-tolerant comparison of single word tokens.

Speech recognition mangles words in predictable ways: inflections get
dropped or added ("walk" for "walking"), plurals change shape
("cities" for "city"), and a letter or two goes missing. This module
decides whether a recognized token should count as the expected lyric
token. Short words are compared exactly, since "in"/"on"/"an" style
confusions would otherwise match almost anything.
"""

import math
import re

from rapidfuzz.distance import Levenshtein

# Tokens shorter than this are only ever matched exactly
MIN_FUZZY_LENGTH: int = 3

# Fraction of the expected word's length allowed as edit distance
EDIT_DISTANCE_RATIO: float = 0.4

# Endings that turn a stem into an inflected form ("walk" -> "walking")
INFLECTION_SUFFIXES: frozenset[str] = frozenset([
    "s", "es", "ed", "ing", "er", "est", "ly", "'s",
])

# A shared root must be at least this long to count
MIN_ROOT_LENGTH: int = 2

# At most this many characters may be stripped to reach the root
MAX_ROOT_STRIP: int = 3

# What the longer token may have in place of the shorter one's ending
# for a shared root to count ("city" -> "cities", "hero" -> "heroes")
PLURAL_ENDINGS: frozenset[str] = frozenset(["s", "es", "ies", "oes"])

_FINAL_CONSONANTS = re.compile(r"[^aeiouy]+$")
_FINAL_VOWELS = re.compile(r"[aeiouy]+$")


def max_edit_distance(expected: str) -> int:
    """Edit distance allowed when comparing against ``expected``."""
    return max(1, math.ceil(len(expected) * EDIT_DISTANCE_RATIO))


def _root(word: str) -> str:
    """Strip the final consonant run, then the final vowel run."""
    return _FINAL_VOWELS.sub("", _FINAL_CONSONANTS.sub("", word))


def share_stem(a: str, b: str) -> bool:
    """
    Check whether two tokens are variants of the same stem.

    Either the shorter is a prefix of the longer with an inflection suffix
    left over ("sing" / "singing"), or both reduce to the same root once a
    final vowel/consonant cluster is stripped and the longer one ends in a
    plural form of the shorter one's ending ("city" / "cities").

    Words that merely share an onset ("start" / "stop") are not stems
    of each other: the root must keep all but the last letter of the
    shorter token.

    Args:
        a: First token (normalized)
        b: Second token (normalized)

    Returns:
        True if the tokens share a stem
    """
    shorter, longer = (a, b) if len(a) <= len(b) else (b, a)

    if longer.startswith(shorter) and longer[len(shorter):] in INFLECTION_SUFFIXES:
        return True

    root: str = _root(shorter)
    if root != _root(longer):
        return False
    if len(root) < max(MIN_ROOT_LENGTH, len(shorter) - 1):
        return False
    if longer[len(root):] not in PLURAL_ENDINGS:
        return False
    return len(longer) - len(root) <= MAX_ROOT_STRIP


def words_match(recognized: str, expected: str) -> bool:
    """
    Decide whether a recognized token matches an expected lyric token.

    Args:
        recognized: Token produced by speech recognition (normalized)
        expected: Token from the lyric line (normalized)

    Returns:
        True if the tokens should be treated as the same word
    """
    if recognized == expected:
        return True

    if not recognized or not expected:
        return False

    if len(recognized) < MIN_FUZZY_LENGTH or len(expected) < MIN_FUZZY_LENGTH:
        return False

    if share_stem(recognized, expected):
        return True

    allowed: int = max_edit_distance(expected)
    # The distance can never be smaller than the length difference
    if abs(len(recognized) - len(expected)) > allowed:
        return False

    return Levenshtein.distance(recognized, expected, score_cutoff=allowed) <= allowed
