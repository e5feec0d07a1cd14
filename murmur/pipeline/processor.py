"""Per-segment orchestration: gates, transcription, cleanup, validation, sinks."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Protocol, Sequence

import numpy as np

from ..audio.types import Segment
from ..metrics import CLEANUP_REJECTIONS, PROCESSING_SECONDS, SEGMENTS, SINK_ERRORS
from ..services.context import ContextInfo, ContextProvider
from ..services.output import OutputSink
from .types import ProcessResult, SegmentOutcome
from .validator import review_cleanup

LOGGER = logging.getLogger("murmur.pipeline")


class Transcriber(Protocol):
    def transcribe(self, samples: np.ndarray) -> str: ...


class Cleaner(Protocol):
    def cleanup(self, raw_text: str) -> str: ...


class SegmentProcessor:
    """Turns one finished segment into at most one piece of output text.

    Gate failures (empty, too short, too few words) drop the segment quietly.
    Collaborator failures are logged and handled locally: a failed
    transcription drops the segment, a failed cleanup or context lookup falls
    back, a failed sink does not stop the others. ``on_complete`` fires once
    per segment no matter how processing ended.
    """

    def __init__(
        self,
        transcriber: Transcriber,
        *,
        cleaner: Optional[Cleaner] = None,
        context_provider: Optional[ContextProvider] = None,
        sinks: Sequence[OutputSink] = (),
        on_complete: Optional[Callable[[], None]] = None,
        min_duration_sec: float = 2.0,
        min_word_count: int = 4,
    ) -> None:
        self.transcriber = transcriber
        self.cleaner = cleaner
        self.context_provider = context_provider
        self.sinks = list(sinks)
        self.on_complete = on_complete
        self.min_duration_sec = min_duration_sec
        self.min_word_count = min_word_count

    def process(self, segment: Segment) -> ProcessResult:
        start = time.perf_counter()
        try:
            result = self._run(segment)
        except Exception:
            LOGGER.exception("Segment processing crashed")
            result = ProcessResult(SegmentOutcome.FAILED)
        finally:
            self._complete()
        SEGMENTS.labels(outcome=result.outcome.value).inc()
        PROCESSING_SECONDS.observe(time.perf_counter() - start)
        return result

    def _run(self, segment: Segment) -> ProcessResult:
        if len(segment) == 0:
            LOGGER.info("Empty audio buffer, skipping processing")
            return ProcessResult(SegmentOutcome.EMPTY)

        duration = segment.duration_sec
        LOGGER.info("Processing segment (%d samples, %.2fs)", len(segment), duration)
        if duration < self.min_duration_sec:
            LOGGER.info("Recording too short (%.2fs < %.1fs), skipping transcription", duration, self.min_duration_sec)
            return ProcessResult(SegmentOutcome.TOO_SHORT)

        try:
            raw = self.transcriber.transcribe(segment.samples)
        except Exception as exc:
            LOGGER.error("ASR failed: %s", exc)
            return ProcessResult(SegmentOutcome.ASR_FAILED)

        raw = (raw or "").strip()
        words = raw.split()
        if not words or len(words) < self.min_word_count:
            LOGGER.info("Transcription too short (%d words), ignoring: %r", len(words), raw)
            return ProcessResult(SegmentOutcome.TOO_FEW_WORDS, raw_text=raw)
        LOGGER.debug("ASR output: %s", raw)

        context = self._fetch_context()
        cleaned = self._cleanup(raw)
        candidate = review_cleanup(raw, cleaned)
        if not candidate.accepted:
            CLEANUP_REJECTIONS.inc()
            LOGGER.warning("Cleanup output rejected, falling back to raw transcript: %r", cleaned)
        final = candidate.final_text

        LOGGER.info(
            "Final output: %r (raw=%r, app=%s, window=%s)",
            final,
            raw,
            context.app_name,
            context.window_title,
        )
        self._dispatch(final)
        return ProcessResult(
            SegmentOutcome.DISPATCHED,
            raw_text=raw,
            final_text=final,
            candidate=candidate,
            context=context,
        )

    def _fetch_context(self) -> ContextInfo:
        if self.context_provider is None:
            return ContextInfo()
        try:
            return self.context_provider.get_context()
        except Exception as exc:
            LOGGER.warning("Failed to get context: %s", exc)
            return ContextInfo()

    def _cleanup(self, raw: str) -> str:
        if self.cleaner is None:
            return raw
        try:
            return self.cleaner.cleanup(raw)
        except Exception as exc:
            LOGGER.error("Cleanup failed, using raw transcript: %s", exc)
            return raw

    def _dispatch(self, text: str) -> None:
        for sink in self.sinks:
            name = getattr(sink, "name", type(sink).__name__)
            try:
                sink.emit(text)
            except Exception as exc:
                SINK_ERRORS.labels(sink=name).inc()
                LOGGER.error("Output sink %s failed: %s", name, exc)

    def _complete(self) -> None:
        if self.on_complete is None:
            return
        try:
            self.on_complete()
        except Exception:
            LOGGER.exception("Completion callback failed")


__all__ = ["Cleaner", "SegmentProcessor", "Transcriber"]
