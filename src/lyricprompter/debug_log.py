# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Debug logging for tracking down missed or early prompts.

Creates two log files:
- recognition.log: Recognized text and the new words taken from it
- prompts.log: Line matches, position changes and emitted events

Logging is disabled by default. Call enable() to turn it on.
"""

from datetime import datetime
from pathlib import Path
from typing import List

# Log files location (in the working directory)
LOG_DIR: Path = Path.cwd() / "logs"
RECOGNITION_LOG: Path = LOG_DIR / "recognition.log"
PROMPTS_LOG: Path = LOG_DIR / "prompts.log"

# Global flag to control whether debug logging is enabled
_ENABLED: bool = False  # pylint: disable=invalid-name


def enable() -> None:
    """Enable debug logging."""
    global _ENABLED  # pylint: disable=global-statement
    _ENABLED = True


def disable() -> None:
    """Disable debug logging."""
    global _ENABLED  # pylint: disable=global-statement
    _ENABLED = False


def is_enabled() -> bool:
    """Check if debug logging is enabled."""
    return _ENABLED


def _ensure_log_dir() -> None:
    """Create log directory if it doesn't exist."""
    LOG_DIR.mkdir(exist_ok=True)


def _timestamp() -> str:
    """Get current timestamp."""
    return datetime.now().strftime("%H:%M:%S.%f")[:-3]


def clear_logs() -> None:
    """Clear both log files for a fresh session."""
    if not _ENABLED:
        return
    _ensure_log_dir()
    log_file: Path
    for log_file in [RECOGNITION_LOG, PROMPTS_LOG]:
        with open(log_file, 'w', encoding='utf-8') as f:
            f.write(
                f"=== New session started at {datetime.now().isoformat()} ===\n\n")


def log_recognition(text: str, is_partial: bool, new_words: List[str]) -> None:
    """Log a recognition result and the new words extracted from it."""
    if not _ENABLED:
        return
    _ensure_log_dir()
    kind: str = "partial" if is_partial else "final"
    with open(RECOGNITION_LOG, 'a', encoding='utf-8') as f:
        f.write(
            f"[{_timestamp()}] {kind:7} \"{text[-60:]}\" new_words={new_words}\n")


def log_position_update(old_line: int, new_line: int, last_prompted: int) -> None:
    """
    Log a change of the current line.

    Args:
        old_line: Previous line index
        new_line: New line index
        last_prompted: Last prompted line at the time of the change
    """
    if not _ENABLED:
        return
    _ensure_log_dir()
    with open(PROMPTS_LOG, 'a', encoding='utf-8') as f:
        f.write(
            f"[{_timestamp()}] POSITION CHANGE: {old_line} -> {new_line} "
            f"(last_prompted={last_prompted})\n")


def log_event(event: str, line_index: int, detail: str = "") -> None:
    """
    Log an event emitted by the tracker.

    Args:
        event: Event name (started, prompt, completed, finished, reset)
        line_index: The line the event refers to
        detail: Extra text, e.g. the prompt spoken
    """
    if not _ENABLED:
        return
    _ensure_log_dir()
    with open(PROMPTS_LOG, 'a', encoding='utf-8') as f:
        f.write(
            f"[{_timestamp()}] {event:10} line={line_index:4d} \"{detail}\"\n")
