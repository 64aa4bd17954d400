"""Tests for audio capture muting and device listing (no audio hardware needed)."""

from unittest import mock

import numpy as np
import pytest

try:
    from lyricprompter import audio
    from lyricprompter.audio import AudioCapture, InputDevice, input_devices
except OSError:
    pytest.skip("PortAudio library not available", allow_module_level=True)


def _chunk() -> np.ndarray:
    return np.zeros(160, dtype=np.int16)


def test_chunk_size():
    capture = AudioCapture(sample_rate=16000, chunk_duration_ms=100)
    assert capture.chunk_size == 1600


def test_callback_queues_audio():
    capture = AudioCapture()
    capture._audio_callback(_chunk(), 160, None, None)

    assert capture.get_chunk(timeout=0.1) == bytes(_chunk())


def test_muted_audio_dropped():
    capture = AudioCapture()
    capture.mute()
    capture._audio_callback(_chunk(), 160, None, None)

    assert capture.get_chunk(timeout=0.01) is None


def test_unmute_discards_queued_audio():
    capture = AudioCapture()
    capture._audio_callback(_chunk(), 160, None, None)
    capture.mute()
    capture.unmute()

    assert capture.get_chunk(timeout=0.01) is None
    capture._audio_callback(_chunk(), 160, None, None)
    assert capture.get_chunk(timeout=0.1) is not None


def test_stop_without_start():
    capture = AudioCapture()
    capture.stop()
    assert not capture.running


def test_input_devices_skips_outputs():
    with mock.patch.object(audio, "sd") as sd:
        sd.default.device = [2, 3]
        sd.query_devices.return_value = [
            {"name": "Speakers", "max_input_channels": 0},
            {"name": "Built-in Mic", "max_input_channels": 1},
            {"name": "USB Interface", "max_input_channels": 2},
        ]
        devices = input_devices()

    assert devices == [
        InputDevice(index=1, name="Built-in Mic", channels=1, is_default=False),
        InputDevice(index=2, name="USB Interface", channels=2, is_default=True),
    ]
