# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Configuration management for LyricPrompter.
Handles loading and saving settings from a YAML config file.
"""

from pathlib import Path
from typing import Any, TypedDict

import yaml

from .lyrics_parser import PROMPT_WORD_COUNT_RANGE, TRIGGER_PERCENT_RANGE

CONFIG_FILENAME: str = ".lyricprompter.yaml"


class TranscriptionConfig(TypedDict):
    """Type definition for transcription configuration settings."""
    model_id: str  # Model identifier (e.g., "vosk-en-us-small")
    model_path: str | None  # Optional custom path


class PromptSettings(TypedDict):
    """Type definition for default per-song prompt settings."""
    trigger_percent: int
    prompt_word_count: int


class TrackingSettings(TypedDict):
    """Type definition for tracking configuration settings."""
    max_buffer_size: int
    keep_after_prompt: int
    search_window_after: int
    grammar_lines_ahead: int


class SpeechSettings(TypedDict):
    """Type definition for prompt speech settings."""
    enabled: bool
    rate: int | None  # Words per minute, or None for the engine default
    volume: float | None  # 0.0-1.0, or None for the engine default


class Config(TypedDict):
    """Type definition for the complete configuration."""
    transcription: TranscriptionConfig
    audio_device: int | None
    chunk_ms: int
    prompt: PromptSettings
    tracking: TrackingSettings
    speech: SpeechSettings


# Default configuration values
DEFAULT_CONFIG: Config = {
    "transcription": {
        "model_id": "vosk-en-us-small",
        "model_path": None,
    },

    # Audio settings
    "audio_device": None,
    "chunk_ms": 100,

    # Defaults for songs loaded from the command line
    "prompt": {
        "trigger_percent": 70,
        "prompt_word_count": 4,
    },

    # Tracking tuning
    "tracking": {
        "max_buffer_size": 15,
        "keep_after_prompt": 3,
        # Lines past the current line considered when matching
        "search_window_after": 1,
        # Narrow the recognizer grammar to the current line and this many
        # lines after it (0 keeps the whole song vocabulary)
        "grammar_lines_ahead": 0,
    },

    # Spoken prompts
    "speech": {
        "enabled": True,
        "rate": None,
        "volume": None,
    },
}


def get_config_path() -> Path:
    """Get the path to the config file in the current working directory."""
    return Path.cwd() / CONFIG_FILENAME


def _deep_merge(base, override):
    """
    Deep merge two dictionaries, with override taking precedence.
    Returns a new dictionary without modifying the originals.

    Args:
        base: Base dictionary to merge from.
        override: Dictionary with values that take precedence over base.

    Returns:
        New dictionary with merged values.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        elif isinstance(value, dict):
            # Copy nested sections so callers can't mutate the defaults
            result[key] = _deep_merge({}, value)
        else:
            result[key] = value
    return result


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file, merged with defaults.

    Args:
        config_path: Optional path to config file. If None, uses default location.

    Returns:
        Configuration dictionary with all values (defaults + overrides from file).
    """
    if config_path is None:
        config_path = get_config_path()

    config: dict[str, Any] = _deep_merge({}, DEFAULT_CONFIG)

    if config_path.exists():
        try:
            with open(config_path, encoding='utf-8') as f:
                file_config: dict[str, Any] | None = yaml.safe_load(f)
                if file_config:
                    config = _deep_merge(config, file_config)
        except (OSError, yaml.YAMLError) as e:
            print(f"Warning: Could not load config from {config_path}: {e}")

    return config  # type: ignore[return-value]


def save_config(config: Config, config_path: Path | None = None) -> bool:
    """
    Save configuration to file.

    Args:
        config: Configuration dictionary to save.
        config_path: Optional path to config file. If None, uses default location.

    Returns:
        True if save was successful, False otherwise.
    """
    if config_path is None:
        config_path = get_config_path()

    try:
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(dict(config), f, default_flow_style=False, sort_keys=False)
        return True
    except (OSError, yaml.YAMLError) as e:
        print(f"Error saving config to {config_path}: {e}")
        return False


def _clamp(value: int, allowed: range) -> int:
    return max(allowed.start, min(value, allowed.stop - 1))


def get_prompt_settings(config: Config) -> PromptSettings:
    """
    Extract prompt settings from config, clamped to their allowed ranges.

    Args:
        config: Configuration dictionary.

    Returns:
        Prompt settings dictionary.
    """
    settings: dict[str, Any] = _deep_merge(
        DEFAULT_CONFIG["prompt"], config.get("prompt", {}))
    return {
        "trigger_percent": _clamp(int(settings["trigger_percent"]), TRIGGER_PERCENT_RANGE),
        "prompt_word_count": _clamp(int(settings["prompt_word_count"]), PROMPT_WORD_COUNT_RANGE),
    }


def get_tracking_settings(config: Config) -> TrackingSettings:
    """
    Extract tracking settings from config.

    Args:
        config: Configuration dictionary.

    Returns:
        Tracking settings dictionary.
    """
    return _deep_merge(DEFAULT_CONFIG["tracking"],
                       config.get("tracking", {}))  # type: ignore[return-value]


def get_speech_settings(config: Config) -> SpeechSettings:
    """Extract prompt speech settings from config."""
    return _deep_merge(DEFAULT_CONFIG["speech"],
                       config.get("speech", {}))  # type: ignore[return-value]


def get_transcription_settings(config: Config) -> TranscriptionConfig:
    """
    Extract transcription settings from config.

    Args:
        config: Configuration dictionary.

    Returns:
        Transcription settings dictionary.
    """
    return config.get("transcription",
                      DEFAULT_CONFIG["transcription"]
                      ).copy()  # type: ignore[return-value]
