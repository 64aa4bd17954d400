"""Tests for the debug_log module enable/disable functionality."""

from pathlib import Path
from unittest import mock

import pytest

from lyricprompter import debug_log


@pytest.fixture
def log_dir(tmp_path: Path):
    """Point the log files at a temporary directory with logging enabled."""
    with mock.patch.multiple(
        debug_log,
        LOG_DIR=tmp_path,
        RECOGNITION_LOG=tmp_path / "recognition.log",
        PROMPTS_LOG=tmp_path / "prompts.log",
    ):
        debug_log.enable()
        yield tmp_path
    debug_log.disable()


class TestDebugLogEnableDisable:
    """Test the enable/disable functionality of debug logging."""

    def setup_method(self):
        """Reset debug log state before each test."""
        debug_log.disable()

    def test_enable(self):
        """enable() should turn on debug logging."""
        debug_log.enable()
        assert debug_log.is_enabled()
        debug_log.disable()

    def test_disable(self):
        """disable() should turn off debug logging."""
        debug_log.enable()
        debug_log.disable()
        assert not debug_log.is_enabled()

    def test_clear_logs_no_op_when_disabled(self):
        with mock.patch.object(debug_log, '_ensure_log_dir') as mock_ensure:
            debug_log.clear_logs()
            mock_ensure.assert_not_called()

    def test_log_recognition_no_op_when_disabled(self):
        with mock.patch.object(debug_log, '_ensure_log_dir') as mock_ensure:
            debug_log.log_recognition("is this", True, ["is", "this"])
            mock_ensure.assert_not_called()

    def test_log_position_update_no_op_when_disabled(self):
        with mock.patch.object(debug_log, '_ensure_log_dir') as mock_ensure:
            debug_log.log_position_update(0, 1, -1)
            mock_ensure.assert_not_called()

    def test_log_event_no_op_when_disabled(self):
        with mock.patch.object(debug_log, '_ensure_log_dir') as mock_ensure:
            debug_log.log_event("prompt", 0, "Is this just fantasy")
            mock_ensure.assert_not_called()


class TestDebugLogWriting:
    """Test what gets written when logging is enabled."""

    def test_clear_logs_writes_headers(self, log_dir: Path):
        debug_log.clear_logs()

        assert "New session started" in (log_dir / "recognition.log").read_text()
        assert "New session started" in (log_dir / "prompts.log").read_text()

    def test_log_recognition(self, log_dir: Path):
        debug_log.log_recognition("is this the", True, ["the"])
        debug_log.log_recognition("is this the real", False, ["real"])

        content = (log_dir / "recognition.log").read_text()
        assert 'partial "is this the" new_words=[\'the\']' in content
        assert 'final   "is this the real"' in content

    def test_log_position_update(self, log_dir: Path):
        debug_log.log_position_update(2, 3, 1)

        content = (log_dir / "prompts.log").read_text()
        assert "POSITION CHANGE: 2 -> 3 (last_prompted=1)" in content

    def test_log_event(self, log_dir: Path):
        debug_log.log_event("prompt", 4, "Look up to the")

        content = (log_dir / "prompts.log").read_text()
        assert "prompt" in content
        assert "line=   4" in content
        assert '"Look up to the"' in content

    def test_clear_logs_truncates(self, log_dir: Path):
        debug_log.log_event("prompt", 0, "old prompt")
        debug_log.clear_logs()

        assert "old prompt" not in (log_dir / "prompts.log").read_text()
