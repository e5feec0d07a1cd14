"""Idle/recording state machine around the streaming accumulator."""

from __future__ import annotations

import logging
import queue

import numpy as np

from ..audio.accumulator import StreamingAccumulator
from ..audio.types import AppendStatus, Segment
from ..metrics import FORCED_STOPS

LOGGER = logging.getLogger("murmur.recorder")


class RecordingStateMachine:
    def __init__(
        self,
        accumulator: StreamingAccumulator,
        chunks: "queue.Queue[np.ndarray]",
        sample_rate: int,
    ) -> None:
        self.accumulator = accumulator
        self.chunks = chunks
        self.sample_rate = sample_rate

    @property
    def is_recording(self) -> bool:
        return self.accumulator.is_recording

    def start_recording(self) -> bool:
        started = self.accumulator.start(before=self._drain_stale)
        if started:
            LOGGER.info("Recording started")
        return started

    def stop_recording(self) -> Segment | None:
        samples = self.accumulator.stop()
        if samples is None:
            return None
        LOGGER.info("Recording stopped (%d samples)", len(samples))
        return Segment(samples=samples, sample_rate=self.sample_rate)

    def feed(self, chunk: np.ndarray) -> Segment | None:
        """Append one captured chunk; returns a segment when the ceiling cut it off."""
        result = self.accumulator.append(chunk)
        if result.status is not AppendStatus.CEILING:
            return None
        FORCED_STOPS.inc()
        LOGGER.warning(
            "Max recording duration reached, forcing stop (%d samples)",
            self.accumulator.max_samples or 0,
        )
        return Segment(samples=result.samples, sample_rate=self.sample_rate, forced=True)

    def _drain_stale(self) -> int:
        # Runs under the accumulator lock: audio queued before the trigger
        # must not leak into the utterance.
        drained = 0
        while True:
            try:
                self.chunks.get_nowait()
            except queue.Empty:
                return drained
            self.chunks.task_done()
            drained += 1


__all__ = ["RecordingStateMachine"]
