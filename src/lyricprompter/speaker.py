# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Text-to-speech output for lyric prompts, using pyttsx3.

pyttsx3 blocks while speaking and its engine must stay on the thread
that created it, so a worker thread owns the engine and speaks queued
prompts. Only the newest prompt is kept: if the singer has already
moved on, an older prompt is stale.
"""

import logging
import queue
import threading
from collections.abc import Callable

import pyttsx3

logger = logging.getLogger(__name__)


class PromptSpeaker:
    """
    Speaks prompt text on a background thread.

    Usage:
        speaker = PromptSpeaker(rate=180)
        speaker.speak("Caught in a landslide")
        ...
        speaker.shutdown()
    """

    def __init__(
        self,
        rate: int | None = None,
        volume: float | None = None,
        on_start: Callable[[], None] | None = None,
        on_done: Callable[[], None] | None = None
    ) -> None:
        """
        Initialize the speaker and start its worker thread.

        Args:
            rate: Speech rate in words per minute, or None for the engine default
            volume: Volume from 0.0 to 1.0, or None for the engine default
            on_start: Called on the worker thread before each prompt is spoken
            on_done: Called on the worker thread after each prompt is spoken
        """
        self.rate = rate
        self.volume = volume
        self.on_start = on_start
        self.on_done = on_done

        # Single slot: a new prompt replaces one still waiting to be spoken
        self._pending: queue.Queue[str | None] = queue.Queue(maxsize=1)
        self._lock = threading.Lock()
        self._ready = threading.Event()
        self._worker = threading.Thread(
            target=self._worker_loop,
            name="PromptSpeaker",
            daemon=True
        )
        self._worker.start()
        self._ready.wait(timeout=5.0)

    def _create_engine(self) -> pyttsx3.Engine:
        engine = pyttsx3.init()
        if self.rate is not None:
            engine.setProperty("rate", self.rate)
        if self.volume is not None:
            engine.setProperty("volume", max(0.0, min(1.0, self.volume)))
        return engine

    def _worker_loop(self) -> None:
        """Own the engine and speak prompts until shut down."""
        engine = self._create_engine()
        self._ready.set()
        logger.info("PromptSpeaker worker started")

        try:
            while True:
                text: str | None = self._pending.get()
                if text is None:
                    break
                try:
                    if self.on_start:
                        self.on_start()
                    engine.say(text)
                    engine.runAndWait()
                except Exception as e:  # pylint: disable=broad-except
                    logger.error("Error speaking prompt %r: %s", text, e, exc_info=True)
                finally:
                    if self.on_done:
                        self.on_done()
        finally:
            engine.stop()
            logger.info("PromptSpeaker worker stopped")

    def _replace_pending(self, item: str | None) -> None:
        with self._lock:
            try:
                dropped = self._pending.get_nowait()
                if dropped is not None:
                    logger.debug("Dropping stale prompt: %r", dropped)
            except queue.Empty:
                pass
            self._pending.put_nowait(item)

    def speak(self, text: str) -> None:
        """Queue ``text`` to be spoken, replacing any prompt not yet spoken."""
        if not text.strip():
            return
        self._replace_pending(text)

    def stop(self) -> None:
        """Discard any prompt waiting to be spoken."""
        with self._lock:
            try:
                self._pending.get_nowait()
            except queue.Empty:
                pass

    def shutdown(self) -> None:
        """Stop the worker thread after the current prompt finishes."""
        self._replace_pending(None)
        self._worker.join(timeout=2.0)
