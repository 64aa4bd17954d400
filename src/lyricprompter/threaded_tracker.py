# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Threaded wrapper for PositionTracker for hosts with several threads.

PositionTracker mutates its state in place with no locking. When
recognition callbacks arrive on one thread and a display reads state on
another, this wrapper gives the tracker a single writer: a worker thread
that owns it and processes queued word batches in order. Readers get the
latest snapshot from a cache guarded by a lock.

Word batches and control commands share one pending deque guarded by a
condition, so a reset or jump always lands after every batch submitted
before it, even while backpressure is dropping batches.
"""

import logging
import queue
import threading
import time
from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from .lyrics_parser import Song
from .tracker import PositionTracker, PromptEvent, TrackingState

logger = logging.getLogger(__name__)


@dataclass
class WordBatch:
    """A batch of recognized words to process."""
    words: list[str]
    timestamp: float
    request_id: int


@dataclass
class TrackingResult:
    """An event emitted while processing a word batch."""
    event: PromptEvent
    state: TrackingState
    request_id: int
    processing_time: float


@dataclass
class ControlCommand:
    """Control command for the worker thread."""
    command: str  # 'load_song', 'reset', 'jump_to', 'sync', 'shutdown'
    param: Any = None


class ThreadedTracker:
    """
    Thread-safe wrapper around PositionTracker.

    Features:
    - Non-blocking submit_words() that queues word batches
    - Backpressure handling (drops the oldest word batch when the queue is full)
    - Events delivered to a callback and a result queue
    - Cached state snapshot for immediate reads

    Usage:
        tracker = ThreadedTracker(song, on_event=handle_event)

        # From the recognition thread
        tracker.submit_words(["is", "this", "the", "real"])

        # From the display thread
        state = tracker.get_state()
    """

    def __init__(
        self,
        song: Song | None = None,
        on_event: Callable[[PromptEvent], None] | None = None,
        max_queue_size: int = 32,
        **tracker_options: Any
    ):
        """
        Initialize the threaded tracker.

        Args:
            song: Song to load before any words arrive
            on_event: Called on the worker thread for every emitted event
            max_queue_size: Maximum queue size before backpressure kicks in
            **tracker_options: Passed through to PositionTracker
        """
        self.on_event = on_event
        self.max_queue_size = max_queue_size
        self.tracker_options = tracker_options

        # Pending work, oldest first. Guarded by pending_cond.
        self.pending: deque[WordBatch | ControlCommand] = deque()
        self.pending_cond = threading.Condition()
        self.result_queue: queue.Queue[TrackingResult] = queue.Queue()

        self.worker_thread: threading.Thread | None = None
        self.shutdown_flag = threading.Event()
        self.started = threading.Event()

        # Cached state (thread-safe with lock)
        self.state_lock = threading.Lock()
        self.latest_state: TrackingState = TrackingState(
            current_line_index=0,
            total_lines=0,
            last_prompted_line=-1,
            buffer_size=0,
            current_line_text=None,
        )
        self.request_counter = 0
        self.dropped_batches = 0

        self._start_worker(song)

        self.started.wait(timeout=5.0)
        if not self.started.is_set():
            raise RuntimeError("Worker thread failed to start")

    def _start_worker(self, song: Song | None) -> None:
        """Start the worker thread."""
        self.worker_thread = threading.Thread(
            target=self._worker_loop,
            args=(song,),
            name="TrackerWorker",
            daemon=True
        )
        self.worker_thread.start()

    def _worker_loop(self, song: Song | None) -> None:
        """Main loop for the worker thread."""
        try:
            # The tracker lives only on this thread
            tracker = PositionTracker(**self.tracker_options)
            if song is not None:
                tracker.load_song(song)
            self._publish_state(tracker)

            logger.info("ThreadedTracker worker started")
            self.started.set()

            while not self.shutdown_flag.is_set():
                with self.pending_cond:
                    if not self.pending_cond.wait_for(
                            lambda: len(self.pending) > 0, timeout=0.1):
                        continue
                    item = self.pending.popleft()

                try:
                    if isinstance(item, ControlCommand):
                        self._handle_control_command(tracker, item)
                    else:
                        self._handle_word_batch(tracker, item)
                except Exception as e:  # pylint: disable=broad-except
                    logger.error("Error in worker loop: %s", e, exc_info=True)

        finally:
            logger.info("ThreadedTracker worker stopped")

    def _publish_state(self, tracker: PositionTracker) -> TrackingState:
        state = tracker.get_state()
        with self.state_lock:
            self.latest_state = state
        return state

    def _handle_control_command(self, tracker: PositionTracker, cmd: ControlCommand) -> None:
        """Handle control commands."""
        if cmd.command == 'load_song':
            tracker.load_song(cmd.param)
            logger.debug("Song loaded: %s", cmd.param.title)

        elif cmd.command == 'reset':
            tracker.reset()
            logger.debug("Tracker reset")

        elif cmd.command == 'jump_to':
            tracker.jump_to_line(cmd.param)
            logger.debug("Tracker jumped to line %d", cmd.param)

        elif cmd.command == 'sync':
            cmd.param.set()

        elif cmd.command == 'shutdown':
            self.shutdown_flag.set()

        self._publish_state(tracker)

    def _handle_word_batch(self, tracker: PositionTracker, batch: WordBatch) -> None:
        """Run one word batch through the tracker."""
        start_time = time.time()
        event = tracker.on_words_recognized(batch.words)
        state = self._publish_state(tracker)

        if event is None:
            return

        result = TrackingResult(
            event=event,
            state=state,
            request_id=batch.request_id,
            processing_time=time.time() - start_time
        )
        self.result_queue.put_nowait(result)

        if self.on_event:
            self.on_event(event)

    def submit_words(self, words: Sequence[str]) -> bool:
        """
        Submit recognized words for tracking (non-blocking).

        Args:
            words: Words from the recognizer

        Returns:
            True if the batch was queued without dropping anything
        """
        if not words:
            return False

        with self.pending_cond:
            self.request_counter += 1
            batch = WordBatch(words=list(words), timestamp=time.time(),
                              request_id=self.request_counter)

            if len(self.pending) < self.max_queue_size:
                self.pending.append(batch)
                self.pending_cond.notify()
                return True

            # Queue is full - drop the oldest word batch, keep control commands
            self.dropped_batches += 1
            for index, item in enumerate(self.pending):
                if isinstance(item, WordBatch):
                    del self.pending[index]
                    break
            else:
                logger.warning("Backpressure: dropping current word batch")
                return False

            self.pending.append(batch)
            self.pending_cond.notify()

        logger.warning("Backpressure: dropped oldest word batch")
        return False

    def get_event(self, timeout: float = 0) -> TrackingResult | None:
        """
        Get the next emitted event.

        Args:
            timeout: How long to wait for an event (0 = don't wait)

        Returns:
            Next result or None if no event is available
        """
        try:
            if timeout > 0:
                return self.result_queue.get(timeout=timeout)
            return self.result_queue.get_nowait()
        except queue.Empty:
            return None

    def get_state(self) -> TrackingState:
        """Get the latest state snapshot without waiting for the worker."""
        with self.state_lock:
            return self.latest_state

    def _send(self, cmd: ControlCommand) -> None:
        # Control commands are never dropped, so they may go past max_queue_size
        with self.pending_cond:
            self.pending.append(cmd)
            self.pending_cond.notify()

    def load_song(self, song: Song) -> None:
        """Load a new song, resetting the session."""
        self._send(ControlCommand(command='load_song', param=song))

    def reset(self) -> None:
        """Reset tracker to the beginning of the song."""
        self._send(ControlCommand(command='reset'))

    def jump_to_line(self, line_index: int) -> None:
        """
        Jump to a specific line.

        Args:
            line_index: The line to continue from
        """
        self._send(ControlCommand(command='jump_to', param=line_index))

    def wait_until_idle(self, timeout: float = 2.0) -> bool:
        """
        Block until everything queued so far has been processed.

        Returns:
            True if the worker caught up within ``timeout``
        """
        done = threading.Event()
        self._send(ControlCommand(command='sync', param=done))
        return done.wait(timeout=timeout)

    def shutdown(self) -> None:
        """Shutdown the worker thread."""
        self._send(ControlCommand(command='shutdown'))
        self.shutdown_flag.set()

        if self.worker_thread and self.worker_thread.is_alive():
            self.worker_thread.join(timeout=2.0)
