"""Command line entrypoint for headless dictation."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

from .audio.capture import ChunkSource, FileSource, MicrophoneSource
from .metrics import serve_metrics
from .pipeline.controller import DictationPipeline
from .pipeline.processor import SegmentProcessor
from .services.cleanup_engine import CleanupEngine
from .services.context import NullContextProvider, X11ContextProvider
from .services.output import ClipboardSink, ConsoleSink, KeystrokeSink, OutputSink
from .services.whisper_engine import WhisperEngine
from .settings import PipelineSettings, get_settings

LOGGER = logging.getLogger("murmur.cli")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def build_sinks(settings: PipelineSettings) -> list[OutputSink]:
    sinks: list[OutputSink] = [ConsoleSink()]
    if settings.clipboard_enabled:
        sinks.append(ClipboardSink())
    if settings.injection_enabled:
        try:
            sinks.append(KeystrokeSink(delay_sec=settings.injection_delay_sec))
        except Exception as exc:
            LOGGER.error("Failed to initialize keystroke injection: %s", exc)
    return sinks


def build_processor(
    settings: PipelineSettings,
    *,
    on_complete: Optional[Callable[[], None]] = None,
) -> SegmentProcessor:
    transcriber = WhisperEngine(settings)
    cleaner = CleanupEngine(settings) if settings.cleanup_enabled else None
    context = X11ContextProvider() if settings.context_enabled else NullContextProvider()
    return SegmentProcessor(
        transcriber,
        cleaner=cleaner,
        context_provider=context,
        sinks=build_sinks(settings),
        on_complete=on_complete,
        min_duration_sec=settings.min_duration_sec,
        min_word_count=settings.min_word_count,
    )


def build_pipeline(settings: PipelineSettings, source: Optional[ChunkSource] = None) -> DictationPipeline:
    if source is None:
        source = MicrophoneSource(
            settings.sample_rate,
            channels=settings.channels,
            block_size=settings.block_size,
            device=settings.input_device,
        )
    processor = build_processor(settings, on_complete=lambda: LOGGER.debug("Pipeline processing completed"))
    return DictationPipeline.from_settings(settings, source, processor)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="murmur", description="Push-to-talk dictation")
    parser.add_argument("--file", type=Path, help="Replay an audio file as a single utterance and exit")
    parser.add_argument("--max-duration", help="Maximum utterance length, e.g. 30s, 2m, infinite")
    parser.add_argument("--min-duration", type=float, help="Drop utterances shorter than this many seconds")
    parser.add_argument("--min-words", type=int, help="Drop transcripts with fewer words")
    parser.add_argument("--no-cleanup", action="store_true", help="Skip the generative cleanup pass")
    parser.add_argument("--no-clipboard", action="store_true", help="Do not copy results to the clipboard")
    parser.add_argument("--no-inject", action="store_true", help="Do not paste results into the focused window")
    parser.add_argument("--mock-asr", action="store_true", help="Use the placeholder transcriber")
    parser.add_argument("--metrics-port", type=int, help="Expose Prometheus metrics on this port")
    parser.add_argument("--log-level", help="debug, info, warning or error")
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace, base: PipelineSettings) -> PipelineSettings:
    update: dict = {}
    if args.max_duration is not None:
        update["max_duration"] = args.max_duration
    if args.min_duration is not None:
        update["min_duration_sec"] = args.min_duration
    if args.min_words is not None:
        update["min_word_count"] = args.min_words
    if args.no_cleanup:
        update["cleanup_enabled"] = False
    if args.no_clipboard:
        update["clipboard_enabled"] = False
    if args.no_inject or args.file is not None:
        update["injection_enabled"] = False
    if args.mock_asr:
        update["whisper_mock_transcriber"] = True
    if args.metrics_port is not None:
        update["metrics_port"] = args.metrics_port
    if args.log_level:
        update["log_level"] = args.log_level
    return base.model_copy(update=update)


def run_file(settings: PipelineSettings, path: Path) -> int:
    source = FileSource(path, settings.sample_rate, block_size=settings.block_size, realtime=False)
    pipeline = build_pipeline(settings, source)
    pipeline.start_recording()
    pipeline.start()
    try:
        while not source.finished.wait(0.1):
            if not pipeline.capturing:
                LOGGER.error("Audio capture ended before %s was replayed", path)
                return 1
        pipeline.flush(timeout=None)
        pipeline.stop_recording()
    finally:
        pipeline.stop()
    return 0


def run_interactive(settings: PipelineSettings) -> int:
    pipeline = build_pipeline(settings)
    transcriber = pipeline.processor.transcriber
    if isinstance(transcriber, WhisperEngine):
        # Load the model before the first utterance rather than during it.
        transcriber.warm_up()
    pipeline.start()
    print("Press Enter to start recording, Enter again to stop. Ctrl+C to quit.", file=sys.stderr)
    try:
        for _line in sys.stdin:
            if pipeline.is_recording:
                LOGGER.info("Transcribing...")
                pipeline.stop_recording()
            else:
                LOGGER.info("Listening...")
                pipeline.start_recording()
    except KeyboardInterrupt:
        LOGGER.info("Received interrupt, shutting down...")
    finally:
        pipeline.stop()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    settings = settings_from_args(args, get_settings())
    configure_logging(settings.log_level)
    LOGGER.info("Starting %s", settings.app_name)
    serve_metrics(settings.metrics_port)
    if args.file is not None:
        return run_file(settings, args.file)
    return run_interactive(settings)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
