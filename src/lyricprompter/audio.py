# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Microphone capture for following the singer, using sounddevice.

Audio arrives from PortAudio on its own thread in small chunks of 16-bit
mono PCM, the format Vosk expects. Chunks wait in a queue until the
performance loop picks them up. While a prompt is being spoken the
capture is muted so the recognizer never hears the prompt itself.
"""

import logging
import queue
from dataclasses import dataclass
from typing import Any

import numpy as np
import sounddevice as sd

logger = logging.getLogger(__name__)

# Vosk models are trained on 16 kHz audio
SAMPLE_RATE: int = 16000


@dataclass
class InputDevice:
    """An audio device that can record."""
    index: int
    name: str
    channels: int
    is_default: bool


class AudioCapture:
    """Queues microphone audio in fixed-size chunks for the recognizer."""

    sample_rate: int
    chunk_duration_ms: int
    chunk_size: int
    device: int | None
    audio_queue: queue.Queue[bytes]
    stream: sd.RawInputStream | None
    running: bool
    muted: bool

    def __init__(
        self,
        sample_rate: int = SAMPLE_RATE,
        chunk_duration_ms: int = 100,
        device: int | None = None
    ) -> None:
        """
        Args:
            sample_rate: Sample rate in Hz (must match the recognizer)
            chunk_duration_ms: Length of each queued chunk in milliseconds
            device: Input device index, or None for the system default
        """
        self.sample_rate = sample_rate
        self.chunk_duration_ms = chunk_duration_ms
        self.chunk_size = sample_rate * chunk_duration_ms // 1000
        self.device = device

        self.audio_queue = queue.Queue()
        self.stream = None
        self.running = False
        self.muted = False

    def _audio_callback(self, indata: Any, frames: int, time: Any,
                        status: sd.CallbackFlags | None) -> None:
        # Runs on the PortAudio thread: no blocking work here
        if status:
            logger.warning("Audio input status: %s", status)
        if self.muted:
            return
        self.audio_queue.put(bytes(indata))

    def start(self) -> None:
        """Open the input stream and begin queueing chunks."""
        if self.running:
            return

        self.stream = sd.RawInputStream(
            samplerate=self.sample_rate,
            blocksize=self.chunk_size,
            device=self.device,
            dtype=np.int16,
            channels=1,
            callback=self._audio_callback
        )
        self.stream.start()
        self.running = True
        logger.info("Listening on device %s (%d ms chunks)",
                    "default" if self.device is None else self.device,
                    self.chunk_duration_ms)

    def stop(self) -> None:
        """Close the input stream. Queued chunks are kept."""
        self.running = False
        if self.stream:
            self.stream.stop()
            self.stream.close()
            self.stream = None

    def get_chunk(self, timeout: float = 0.5) -> bytes | None:
        """Next chunk of PCM audio, or None if nothing arrived within ``timeout``."""
        try:
            return self.audio_queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def mute(self) -> None:
        """Drop incoming audio until unmute() is called."""
        self.muted = True

    def unmute(self) -> None:
        """Resume queueing audio, discarding anything captured before now."""
        self.clear_queue()
        self.muted = False

    def clear_queue(self) -> None:
        """Discard pending chunks."""
        while True:
            try:
                self.audio_queue.get_nowait()
            except queue.Empty:
                break


def input_devices() -> list[InputDevice]:
    """Audio devices with at least one input channel."""
    default_input = sd.default.device[0]
    devices: list[InputDevice] = []
    for index, info in enumerate(sd.query_devices()):
        dev: dict[str, Any] = dict(info)
        channels: int = int(dev.get('max_input_channels', 0))
        if channels > 0:
            devices.append(InputDevice(
                index=index,
                name=str(dev.get('name', 'Unknown')),
                channels=channels,
                is_default=index == default_input,
            ))
    return devices


def list_devices() -> list[InputDevice]:
    """Print the available input devices."""
    devices = input_devices()
    print("Available audio input devices:")
    for device in devices:
        marker: str = " (default)" if device.is_default else ""
        print(f"  [{device.index}] {device.name} (inputs: {device.channels}){marker}")
    return devices
