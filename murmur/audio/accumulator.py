"""Thread-safe utterance buffer with a hard sample ceiling."""

from __future__ import annotations

import threading
from typing import Callable, Optional

import numpy as np

from .types import AppendResult, AppendStatus, RecordingState


class StreamingAccumulator:
    """Owns the recording flag and the utterance buffer behind one lock.

    Every state transition and every read of the buffer happens inside the
    same critical section, so start, append, snapshot and stop never
    interleave. Nothing in here blocks on I/O while holding the lock.
    """

    def __init__(self, max_samples: int | None = None) -> None:
        if max_samples is not None and max_samples <= 0:
            raise ValueError("max_samples must be positive or None")
        self.max_samples = max_samples
        self._lock = threading.Lock()
        self._state = RecordingState.IDLE
        self._chunks: list[np.ndarray] = []
        self._count = 0

    @property
    def state(self) -> RecordingState:
        with self._lock:
            return self._state

    @property
    def is_recording(self) -> bool:
        return self.state is RecordingState.RECORDING

    @property
    def sample_count(self) -> int:
        with self._lock:
            return self._count

    def start(self, before: Optional[Callable[[], object]] = None) -> bool:
        """Enter RECORDING with an empty buffer; False if already recording."""
        with self._lock:
            if self._state is RecordingState.RECORDING:
                return False
            if before is not None:
                before()
            self._reset()
            self._state = RecordingState.RECORDING
            return True

    def append(self, chunk: np.ndarray) -> AppendResult:
        with self._lock:
            if self._state is not RecordingState.RECORDING:
                return AppendResult(AppendStatus.IGNORED)
            if self.max_samples is not None and self._count >= self.max_samples:
                samples = self._take()
                return AppendResult(AppendStatus.CEILING, samples)
            data = np.asarray(chunk, dtype=np.float32).reshape(-1)
            if data.size:
                self._chunks.append(data)
                self._count += data.size
            return AppendResult(AppendStatus.APPENDED)

    def snapshot(self) -> np.ndarray:
        """Copy of the current buffer; does not change state."""
        with self._lock:
            return self._concat()

    def stop(self) -> np.ndarray | None:
        """Leave RECORDING and hand back the buffer; None when already idle."""
        with self._lock:
            if self._state is not RecordingState.RECORDING:
                return None
            return self._take()

    # Callers must hold self._lock for the helpers below.

    def _take(self) -> np.ndarray:
        self._state = RecordingState.IDLE
        samples = self._concat()
        self._reset()
        return samples

    def _concat(self) -> np.ndarray:
        if not self._chunks:
            return np.zeros(0, dtype=np.float32)
        return np.concatenate(self._chunks).astype(np.float32, copy=False)

    def _reset(self) -> None:
        self._chunks = []
        self._count = 0


__all__ = ["StreamingAccumulator"]
