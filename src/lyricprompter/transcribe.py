# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Speech transcription module using Vosk for offline recognition.

Also turns the recognizer's stream of partial and final results into
plain word batches for the position tracker. Vosk repeats itself: each
partial result contains the whole utterance so far, so only the words
not already delivered are passed on.
"""

import json
import logging
import os
import tempfile
import urllib.request
import zipfile
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vosk import KaldiRecognizer, Model, SetLogLevel

from .lyrics_parser import normalize_word

logger = logging.getLogger(__name__)

# Suppress Vosk's verbose logging
SetLogLevel(-1)

# Placeholder Vosk emits for sounds outside the grammar (coughs, mumbles)
UNKNOWN_TOKEN: str = "[unk]"

MODEL_CACHE_DIR: Path = Path.home() / ".cache" / "lyricprompter" / "models"

# Available Vosk models with metadata
MODELS: dict[str, dict[str, Any]] = {
    "vosk-en-us-small": {
        "dir": "vosk-model-small-en-us-0.15",
        "name": "English US - Small",
        "size_mb": 40,
        "url": "https://alphacephei.com/vosk/models/vosk-model-small-en-us-0.15.zip",
    },
    "vosk-en-us-medium": {
        "dir": "vosk-model-en-us-0.22",
        "name": "English US - Medium",
        "size_mb": 1800,
        "url": "https://alphacephei.com/vosk/models/vosk-model-en-us-0.22.zip",
    },
    "vosk-en-gb-small": {
        "dir": "vosk-model-small-en-gb-0.15",
        "name": "English GB - Small",
        "size_mb": 40,
        "url": "https://alphacephei.com/vosk/models/vosk-model-small-en-gb-0.15.zip",
    },
}


@dataclass
class TranscriptionResult:
    """Represents a transcription result from the recognizer."""

    text: str
    is_partial: bool

    def __repr__(self) -> str:
        status: str = "partial" if self.is_partial else "final"
        return f"TranscriptionResult({status}: '{self.text}')"


def words_from_text(text: str) -> list[str]:
    """Split recognized text into lowercase words, dropping unknown tokens."""
    return [
        w for w in (normalize_word(w) for w in text.split())
        if w and w != UNKNOWN_TOKEN
    ]


def build_grammar(vocabulary: Iterable[str]) -> str:
    """
    Build a Vosk grammar restricting recognition to the given words.

    The unknown token is always included so out-of-vocabulary sounds
    don't get forced onto lyric words.
    """
    words: list[str] = sorted({normalize_word(w) for w in vocabulary} - {""})
    return json.dumps(words + [UNKNOWN_TOKEN])


class TranscriptFeed:
    """
    Extracts only the NEW words from successive recognition results.

    A partial result usually extends the previous one for the same
    utterance; a final result ends the utterance, so the next result
    starts fresh.

    Usage:
        feed = TranscriptFeed()
        feed.push("is this", is_partial=True)        # ["is", "this"]
        feed.push("is this the", is_partial=True)    # ["the"]
        feed.push("is this the real", is_partial=False)  # ["real"]
    """

    def __init__(self) -> None:
        self._delivered: list[str] = []

    def push(self, text: str, is_partial: bool) -> list[str]:
        """
        Take a recognition result and return the words not yet delivered.

        Args:
            text: Recognized text for the current utterance
            is_partial: True if the utterance is still in progress

        Returns:
            Words to hand to the tracker (may be empty)
        """
        words: list[str] = words_from_text(text)

        match_len: int = 0
        for current, previous in zip(words, self._delivered):
            if current != previous:
                break
            match_len += 1

        # No shared prefix means a new utterance (or a full rewrite)
        new_words: list[str] = words[match_len:]

        if is_partial:
            self._delivered = words
        else:
            self._delivered = []
        return new_words

    def reset(self) -> None:
        """Forget the current utterance."""
        self._delivered = []


class VoskTranscriber:
    """Streams audio chunks through a Vosk recognizer."""

    sample_rate: int
    model_path: str
    grammar: str | None
    model: Model
    recognizer: KaldiRecognizer

    def __init__(
        self,
        model_path: str,
        sample_rate: int = 16000,
        vocabulary: Iterable[str] | None = None
    ) -> None:
        """
        Initialize the transcriber.

        Args:
            model_path: Path to an unpacked Vosk model directory
            sample_rate: Audio sample rate (must match audio capture)
            vocabulary: Words to restrict recognition to, or None for
                free-form recognition
        """
        self.sample_rate = sample_rate
        self.model_path = model_path
        self.grammar = build_grammar(vocabulary) if vocabulary is not None else None

        logger.info("Loading Vosk model from: %s", model_path)
        if not os.path.exists(model_path):
            raise RuntimeError(
                f"Vosk model not found at {model_path}. "
                f"Please download it with: lyricprompter --download-model"
            )

        self.model = Model(model_path)
        self.recognizer = self._create_recognizer()

    def _create_recognizer(self) -> KaldiRecognizer:
        if self.grammar is not None:
            recognizer = KaldiRecognizer(self.model, self.sample_rate, self.grammar)
        else:
            recognizer = KaldiRecognizer(self.model, self.sample_rate)
        recognizer.SetWords(True)
        return recognizer

    def process_audio(self, audio_data: bytes) -> TranscriptionResult | None:
        """
        Process an audio chunk and return transcription result.

        Args:
            audio_data: Raw audio bytes (16-bit PCM, mono)

        Returns:
            TranscriptionResult with partial or final text, or None if no speech
        """
        if self.recognizer.AcceptWaveform(audio_data):
            result: dict[str, Any] = json.loads(self.recognizer.Result())
            text: str = result.get("text", "").strip()
            if text and not self._is_vosk_artifact(text):
                return TranscriptionResult(text, is_partial=False)
        else:
            result = json.loads(self.recognizer.PartialResult())
            text = result.get("partial", "").strip()
            if text and not self._is_vosk_artifact(text):
                return TranscriptionResult(text, is_partial=True)

        return None

    def update_grammar(self, vocabulary: Iterable[str]) -> None:
        """
        Narrow recognition to ``vocabulary`` (e.g. the next few lines).

        Does nothing for free-form recognition.
        """
        if self.grammar is None:
            return
        self.grammar = build_grammar(vocabulary)
        self.recognizer.SetGrammar(self.grammar)
        logger.debug("Updated grammar: %s", self.grammar[:80])

    def reset(self) -> None:
        """Reset the recognizer state (e.g., when performing again)."""
        self.recognizer = self._create_recognizer()

    def get_final(self) -> TranscriptionResult | None:
        """Get any remaining buffered speech as final result."""
        result: dict[str, Any] = json.loads(self.recognizer.FinalResult())
        text: str = result.get("text", "").strip()
        if text and not self._is_vosk_artifact(text):
            return TranscriptionResult(text, is_partial=False)
        return None

    def _is_vosk_artifact(self, text: str) -> bool:
        """
        Check if the text is a known Vosk artifact from no/bad audio input.

        Vosk sometimes returns "the" (or only unknown tokens) when there
        is no valid sound input.
        """
        return text.lower() == "the" or not words_from_text(text)


def get_model_path(model_id: str, model_path: str | None = None) -> str:
    """Resolve the directory of a model, preferring an explicit path."""
    if model_path:
        return model_path
    model_info: dict[str, Any] | None = MODELS.get(model_id)
    if not model_info:
        # Assume the id is itself a custom model path
        return model_id
    return str(MODEL_CACHE_DIR / model_info["dir"])


def download_model(
    model_id: str = "vosk-en-us-small",
    target_dir: str | None = None,
    progress_callback: Callable[[str, int], None] | None = None
) -> str:
    """
    Download a Vosk model if not already present.

    Args:
        model_id: Model identifier (e.g., "vosk-en-us-small")
        target_dir: Directory to save the model, or None for default
        progress_callback: Optional callback(stage, percent) for progress updates

    Returns:
        Path to the downloaded model as a string.
    """
    model_info: dict[str, Any] | None = MODELS.get(model_id)
    if not model_info:
        raise ValueError(
            f"Unknown Vosk model: {model_id}. "
            f"Choose from: {list(MODELS.keys())}"
        )

    target_path: Path = Path(target_dir) if target_dir else MODEL_CACHE_DIR
    target_path.mkdir(parents=True, exist_ok=True)
    model_path: Path = target_path / model_info["dir"]

    if model_path.exists():
        print(f"Model already exists at {model_path}")
        if progress_callback:
            progress_callback("complete", 100)
        return str(model_path)

    url: str = model_info["url"]
    print(f"Downloading {model_id} from {url}...")

    with tempfile.NamedTemporaryFile(suffix=".zip", delete=False) as tmp:
        tmp_path = tmp.name
        if progress_callback:
            progress_callback("downloading", 0)

        def download_hook(block_count: int, block_size: int, total_size: int) -> None:
            if progress_callback and total_size > 0:
                downloaded = block_count * block_size
                percent = min(100, int((downloaded / total_size) * 100))
                progress_callback("downloading", percent)

        urllib.request.urlretrieve(url, tmp_path, download_hook)

    # File handle is now closed, safe to extract and delete on Windows
    try:
        print("Extracting model...")
        if progress_callback:
            progress_callback("extracting", 0)

        with zipfile.ZipFile(tmp_path, "r") as zf:
            zf.extractall(target_path)

        if progress_callback:
            progress_callback("complete", 100)
    finally:
        try:
            os.unlink(tmp_path)
        except OSError as e:
            print(f"Warning: Could not delete temporary file {tmp_path}: {e}")

    print(f"Model installed to {model_path}")
    return str(model_path)
