# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Main lyricprompter application.
Orchestrates audio capture, transcription, position tracking and spoken prompts.
"""

import argparse
import logging
import signal
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from . import debug_log
from .config import (
    Config,
    get_config_path,
    get_prompt_settings,
    get_speech_settings,
    get_tracking_settings,
    get_transcription_settings,
    load_config,
    save_config,
)
from .lyrics_parser import Song, load_song_file
from .speaker import PromptSpeaker
from .tracker import LineCompleted, PositionTracker, PromptEvent, SongFinished, SpeakPrompt
from .transcribe import TranscriptFeed, VoskTranscriber, download_model, get_model_path

if TYPE_CHECKING:
    from .audio import AudioCapture

logger = logging.getLogger(__name__)


# Transcript files location (in the working directory)
TRANSCRIPT_DIR = Path.cwd() / "transcripts"


class PerformanceSession:
    """
    One performance of one song.

    Feeds recognition results through the tracker and acts on the events
    it emits: speaking prompts and stopping once the song is finished.
    """

    def __init__(
        self,
        song: Song,
        tracker: PositionTracker,
        transcriber: VoskTranscriber | None = None,
        audio: "AudioCapture | None" = None,
        speaker: PromptSpeaker | None = None,
        transcript_file: Path | None = None,
        grammar_lines_ahead: int = 0
    ) -> None:
        self.song: Song = song
        self.tracker: PositionTracker = tracker
        self.transcriber: VoskTranscriber | None = transcriber
        self.audio: "AudioCapture | None" = audio
        self.speaker: PromptSpeaker | None = speaker
        self.transcript_file: Path | None = transcript_file
        self.grammar_lines_ahead: int = grammar_lines_ahead

        self.feed: TranscriptFeed = TranscriptFeed()
        # Line whose opening words were last heard
        self.started_line: int = -1
        self.running: bool = False
        self.finished: bool = False

        self.tracker.load_song(song)

    def write_transcript(self, text: str, is_partial: bool) -> None:
        """Write recognized text to the transcript file."""
        if not self.transcript_file:
            return
        # Only write final results to avoid duplicates
        if not is_partial and text.strip():
            with open(self.transcript_file, 'a', encoding='utf-8') as f:
                f.write(f"{text}\n")

    def handle_text(self, text: str, is_partial: bool) -> PromptEvent | None:
        """
        Handle one recognition result.

        Args:
            text: Recognized text for the current utterance
            is_partial: True if the utterance is still in progress

        Returns:
            The event emitted by the tracker, if any
        """
        self.write_transcript(text, is_partial)

        new_words: list[str] = self.feed.push(text, is_partial)
        debug_log.log_recognition(text, is_partial, new_words)
        if not new_words:
            return None

        line_before: int = self.tracker.current_line_index
        event: PromptEvent | None = self.tracker.on_words_recognized(new_words)
        if self.tracker.current_line_index != line_before:
            debug_log.log_position_update(
                line_before, self.tracker.current_line_index, self.tracker.last_prompted_line)
            self.focus_grammar()

        self.note_line_start()
        self.dispatch(event)
        return event

    def note_line_start(self) -> bool:
        """Log when the opening words of the current line are heard."""
        index: int = self.tracker.current_line_index
        if index == self.started_line or index >= len(self.tracker.line_words_list):
            return False
        if not self.tracker.matcher.matches_from_start(
                list(self.tracker.recognized_buffer), self.tracker.line_words_list[index]):
            return False
        self.started_line = index
        debug_log.log_event("started", index)
        return True

    def focus_grammar(self) -> None:
        """Restrict recognition to the words of the upcoming lines, if enabled."""
        if self.transcriber and self.grammar_lines_ahead > 0:
            self.transcriber.update_grammar(
                self.tracker.focused_vocabulary(self.grammar_lines_ahead))

    def dispatch(self, event: PromptEvent | None) -> None:
        """Act on a tracker event."""
        match event:
            case SpeakPrompt(line_index=index, prompt_text=prompt):
                debug_log.log_event("prompt", index, prompt)
                print(f"[{index + 1}/{self.song.line_count}] > {prompt}")
                if self.speaker:
                    self.speaker.speak(prompt)
            case LineCompleted(line_index=index):
                debug_log.log_event("completed", index)
            case SongFinished():
                debug_log.log_event("finished", self.song.line_count - 1)
                print("Song finished.")
                self.finished = True
                self.running = False
            case None:
                pass

    def restart(self) -> None:
        """Go back to the first line to perform again."""
        self.tracker.reset()
        self.feed.reset()
        self.started_line = -1
        if self.transcriber:
            self.transcriber.reset()
            self.focus_grammar()
        self.finished = False
        debug_log.log_event("reset", 0)

    def run(self) -> None:
        """Process audio until the song finishes or stop() is called."""
        if self.audio is None or self.transcriber is None:
            raise RuntimeError("Audio capture and transcriber are required to run")

        self.running = True
        self.focus_grammar()
        self.audio.start()
        print(f"Listening... ({self.song.line_count} lines, "
              f"trigger {self.song.trigger_percent}%)")

        try:
            while self.running:
                chunk: bytes | None = self.audio.get_chunk(timeout=0.1)
                if not chunk:
                    continue
                result = self.transcriber.process_audio(chunk)
                if result and result.text:
                    self.handle_text(result.text, result.is_partial)

            if not self.finished:
                final = self.transcriber.get_final()
                if final:
                    self.handle_text(final.text, final.is_partial)
        finally:
            self.audio.stop()

    def stop(self) -> None:
        """Stop listening."""
        self.running = False


def _start_transcript() -> Path:
    TRANSCRIPT_DIR.mkdir(exist_ok=True)
    timestamp: str = datetime.now().strftime("%Y%m%d_%H%M%S")
    transcript_file = TRANSCRIPT_DIR / f"transcript_{timestamp}.txt"
    with open(transcript_file, 'w', encoding='utf-8') as f:
        f.write(f"=== Transcript started at {datetime.now().isoformat()} ===\n\n")
    print(f"Transcript recording started: {transcript_file}")
    return transcript_file


def build_parser(config: Config) -> argparse.ArgumentParser:
    """Build the command-line parser, using config values as defaults."""
    transcription_config = get_transcription_settings(config)
    prompt_settings = get_prompt_settings(config)

    parser = argparse.ArgumentParser(
        description="LyricPrompter - speaks the next lyric line while you sing"
    )

    parser.add_argument(
        "lyrics",
        nargs="?",
        type=Path,
        help="Path to a lyrics text file (one line per lyric line)"
    )

    parser.add_argument(
        "--title",
        default=None,
        help="Song title (default: lyrics file name)"
    )

    parser.add_argument(
        "--trigger-percent", "-t",
        type=int,
        default=prompt_settings["trigger_percent"],
        help="Percent of a line to hear before prompting (default: from config or 70)"
    )

    parser.add_argument(
        "--prompt-words", "-w",
        type=int,
        default=prompt_settings["prompt_word_count"],
        help="Words of the next line to speak (default: from config or 4)"
    )

    parser.add_argument(
        "--model-id",
        default=transcription_config.get("model_id"),
        help="Vosk model identifier (e.g., 'vosk-en-us-small')"
    )

    parser.add_argument(
        "--model-path",
        default=transcription_config.get("model_path"),
        help="Path to custom model directory (optional)"
    )

    parser.add_argument(
        "--device", "-d",
        type=int,
        default=config.get("audio_device"),
        help="Audio input device index"
    )

    parser.add_argument(
        "--chunk-ms",
        type=int,
        default=config.get("chunk_ms", 100),
        help="Audio chunk size in milliseconds (default: from config or 100)"
    )

    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="List available audio input devices and exit"
    )

    parser.add_argument(
        "--download-model",
        action="store_true",
        help="Download the configured model and exit"
    )

    parser.add_argument(
        "--save-config",
        action="store_true",
        help="Save current CLI options to config file and exit"
    )

    parser.add_argument(
        "--no-speech",
        action="store_true",
        help="Print prompts instead of speaking them"
    )

    parser.add_argument(
        "--free-vocabulary",
        action="store_true",
        help="Don't restrict recognition to the song's words"
    )

    parser.add_argument(
        "--save-transcript",
        action="store_true",
        help="Save a transcript of all recognized speech to ./transcripts/"
    )

    parser.add_argument(
        "--debug-log",
        action="store_true",
        help="Enable debug logging to ./logs/"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show tracker matching details"
    )

    return parser


def main() -> None:
    """Main entry point."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )

    # sounddevice needs PortAudio, so only load it when actually listening
    from .audio import AudioCapture, list_devices

    config: Config = load_config()
    args: argparse.Namespace = build_parser(config).parse_args()

    if args.verbose:
        logging.getLogger("lyricprompter").setLevel(logging.DEBUG)

    if args.list_devices:
        list_devices()
        return

    if args.download_model:
        print(f"Downloading model: {args.model_id}")
        download_model(args.model_id)
        return

    if args.save_config:
        config["transcription"]["model_id"] = args.model_id
        config["transcription"]["model_path"] = args.model_path
        config["audio_device"] = args.device
        config["chunk_ms"] = args.chunk_ms
        config["prompt"]["trigger_percent"] = args.trigger_percent
        config["prompt"]["prompt_word_count"] = args.prompt_words
        if save_config(config):
            print(f"Configuration saved to {get_config_path()}")
        return

    if args.lyrics is None:
        print("Error: a lyrics file is required", file=sys.stderr)
        sys.exit(2)
    if not args.lyrics.exists():
        print(f"Error: lyrics file not found: {args.lyrics}", file=sys.stderr)
        sys.exit(1)

    if args.debug_log:
        debug_log.enable()
        debug_log.clear_logs()
        print("Debug logging enabled (logs will be saved to ./logs/)")

    # Clamp CLI values the same way config values are
    prompt_settings = get_prompt_settings({  # type: ignore[typeddict-item]
        "prompt": {
            "trigger_percent": args.trigger_percent,
            "prompt_word_count": args.prompt_words,
        }
    })
    song: Song = load_song_file(
        args.lyrics,
        title=args.title,
        prompt_word_count=prompt_settings["prompt_word_count"],
        trigger_percent=prompt_settings["trigger_percent"],
    )
    if not song.lines:
        print(f"Error: no lyric lines found in {args.lyrics}", file=sys.stderr)
        sys.exit(1)
    print(f"Loaded '{song.title}': {song.line_count} lines, "
          f"{len(song.vocabulary)} unique words")

    tracking = get_tracking_settings(config)
    tracker = PositionTracker(
        max_buffer_size=tracking["max_buffer_size"],
        keep_after_prompt=tracking["keep_after_prompt"],
        search_window_after=tracking["search_window_after"],
    )

    model_path: str = get_model_path(args.model_id, args.model_path)
    print(f"Loading transcription model: {model_path}")
    transcriber = VoskTranscriber(
        model_path,
        vocabulary=None if args.free_vocabulary else song.vocabulary,
    )

    audio = AudioCapture(chunk_duration_ms=args.chunk_ms, device=args.device)

    speaker: PromptSpeaker | None = None
    speech = get_speech_settings(config)
    if speech["enabled"] and not args.no_speech:
        # Don't let the microphone hear the prompt being spoken
        speaker = PromptSpeaker(
            rate=speech["rate"],
            volume=speech["volume"],
            on_start=audio.mute,
            on_done=audio.unmute,
        )

    session = PerformanceSession(
        song,
        tracker,
        transcriber=transcriber,
        audio=audio,
        speaker=speaker,
        transcript_file=_start_transcript() if args.save_transcript else None,
        grammar_lines_ahead=tracking["grammar_lines_ahead"],
    )

    def shutdown(sig: int, frame: object) -> None:
        """Handle shutdown signals (SIGINT, SIGTERM) gracefully."""
        print("\nReceived shutdown signal...")
        session.stop()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        session.run()
    finally:
        if speaker:
            speaker.shutdown()
        state = tracker.get_state()
        print(f"Stopped at line {state.current_line_index + 1} of {state.total_lines}.")


if __name__ == "__main__":
    main()
