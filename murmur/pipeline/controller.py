"""Lifecycle controller: capture thread, segment tasks, ordered shutdown."""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Callable, Optional

import numpy as np

from ..audio.accumulator import StreamingAccumulator
from ..audio.capture import ChunkSource
from ..audio.types import Segment
from ..settings import PipelineSettings
from .processor import SegmentProcessor
from .recorder import RecordingStateMachine
from .types import PipelineState

LOGGER = logging.getLogger("murmur.pipeline")

POLL_INTERVAL_SEC = 0.1


class DictationPipeline:
    """Push-to-talk engine: start/stop triggers in, one text artifact per utterance out.

    The capture thread is the only consumer of the chunk queue. Start and stop
    calls may come from any thread; the accumulator's lock makes them mutually
    exclusive with appends. Every finished utterance runs on its own thread,
    and ``stop()`` waits for all of them.
    """

    def __init__(
        self,
        source: ChunkSource,
        processor: SegmentProcessor,
        *,
        sample_rate: int,
        max_samples: int | None = None,
        queue_size: int = 100,
        on_state_change: Optional[Callable[[PipelineState], None]] = None,
    ) -> None:
        self.source = source
        self.processor = processor
        self.on_state_change = on_state_change
        self.chunks: "queue.Queue[np.ndarray]" = queue.Queue(maxsize=queue_size)
        self.recorder = RecordingStateMachine(StreamingAccumulator(max_samples), self.chunks, sample_rate)
        self._stop_event = threading.Event()
        # Serializes shutdown against trigger calls so a segment taken by
        # stop_recording is always registered before stop() joins tasks.
        self._lifecycle_lock = threading.RLock()
        self._capture_thread: threading.Thread | None = None
        self._tasks: set[threading.Thread] = set()
        self._tasks_lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: PipelineSettings,
        source: ChunkSource,
        processor: SegmentProcessor,
        *,
        on_state_change: Optional[Callable[[PipelineState], None]] = None,
    ) -> "DictationPipeline":
        return cls(
            source,
            processor,
            sample_rate=settings.sample_rate,
            max_samples=settings.max_samples(),
            queue_size=settings.chunk_queue_size,
            on_state_change=on_state_change,
        )

    @property
    def is_recording(self) -> bool:
        return self.recorder.is_recording

    @property
    def capturing(self) -> bool:
        thread = self._capture_thread
        return thread is not None and thread.is_alive()

    @property
    def in_flight(self) -> int:
        with self._tasks_lock:
            return len(self._tasks)

    def start(self) -> None:
        if self._stop_event.is_set():
            raise RuntimeError("pipeline has been stopped")
        if self._capture_thread and self._capture_thread.is_alive():
            return
        LOGGER.info("Starting pipeline...")
        self._capture_thread = threading.Thread(target=self._capture_loop, name="murmur-capture", daemon=True)
        self._capture_thread.start()

    def stop(self) -> None:
        with self._lifecycle_lock:
            if self._stop_event.is_set():
                return
            LOGGER.info("Stopping pipeline...")
            self._stop_event.set()
        if self._capture_thread:
            self._capture_thread.join()
            self._capture_thread = None
        abandoned = self.recorder.stop_recording()
        if abandoned is not None:
            LOGGER.warning("Discarding unfinished utterance at shutdown (%d samples)", len(abandoned))
        self._join_tasks()
        LOGGER.info("Pipeline stopped")

    def start_recording(self) -> bool:
        with self._lifecycle_lock:
            if self._stop_event.is_set():
                LOGGER.warning("Pipeline stopped; ignoring start request")
                return False
            started = self.recorder.start_recording()
            if started:
                self._notify(PipelineState.RECORDING)
            return started

    def stop_recording(self) -> bool:
        """Finish the utterance; True iff a segment was handed to processing."""
        with self._lifecycle_lock:
            if self._stop_event.is_set():
                return False
            segment = self.recorder.stop_recording()
            if segment is None:
                return False
            self._dispatch(segment)
            return True

    def flush(self, timeout: float | None = 5.0) -> bool:
        """Wait until the capture thread consumed every queued chunk."""
        done = self.chunks.all_tasks_done
        with done:
            return done.wait_for(lambda: self.chunks.unfinished_tasks == 0, timeout)

    def wait_idle(self, timeout: float | None = None) -> None:
        """Block until all dispatched segments have finished processing."""
        self._join_tasks(timeout)

    def _capture_loop(self) -> None:
        try:
            self.source.start(self.chunks)
        except Exception:
            LOGGER.exception("Failed to start audio capture")
            return
        try:
            while not self._stop_event.is_set():
                try:
                    chunk = self.chunks.get(timeout=POLL_INTERVAL_SEC)
                except queue.Empty:
                    continue
                try:
                    segment = self.recorder.feed(chunk)
                    if segment is not None:
                        self._dispatch(segment)
                finally:
                    self.chunks.task_done()
        finally:
            try:
                self.source.stop()
            except Exception:
                LOGGER.exception("Failed to stop audio capture")

    def _dispatch(self, segment: Segment) -> None:
        self._notify(PipelineState.TRANSCRIBING)
        task = threading.Thread(target=self._run_segment, args=(segment,), name="murmur-segment", daemon=True)
        with self._tasks_lock:
            self._tasks.add(task)
        task.start()

    def _run_segment(self, segment: Segment) -> None:
        try:
            self.processor.process(segment)
        finally:
            with self._tasks_lock:
                self._tasks.discard(threading.current_thread())
                pending = len(self._tasks)
            if self.recorder.is_recording:
                self._notify(PipelineState.RECORDING)
            elif pending:
                self._notify(PipelineState.TRANSCRIBING)
            else:
                self._notify(PipelineState.IDLE)

    def _join_tasks(self, timeout: float | None = None) -> None:
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._tasks_lock:
                pending = list(self._tasks)
            if not pending:
                return
            for task in pending:
                if deadline is None:
                    task.join()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return
                task.join(remaining)

    def _notify(self, state: PipelineState) -> None:
        if self.on_state_change is None:
            return
        try:
            self.on_state_change(state)
        except Exception:
            LOGGER.exception("State listener failed")


__all__ = ["DictationPipeline"]
