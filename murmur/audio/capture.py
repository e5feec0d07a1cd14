"""Chunk sources that feed the pipeline's bounded queue without blocking."""

from __future__ import annotations

import logging
import queue
import threading
import time
from pathlib import Path
from typing import Callable, Protocol

import numpy as np
import soundfile as sf

from ..metrics import CHUNKS_DROPPED
from .types import as_mono_float32, compute_rms

LOGGER = logging.getLogger("murmur.capture")


class ChunkSource(Protocol):
    def start(self, chunks: "queue.Queue[np.ndarray]") -> None: ...

    def stop(self) -> None: ...


def offer(chunks: "queue.Queue[np.ndarray]", chunk: np.ndarray) -> bool:
    """Best-effort delivery: drop the chunk when the queue is full."""
    try:
        chunks.put_nowait(chunk)
    except queue.Full:
        CHUNKS_DROPPED.inc()
        return False
    return True


class MicrophoneSource:
    """Streams float32 microphone blocks from a sounddevice input stream."""

    def __init__(
        self,
        sample_rate: int,
        *,
        channels: int = 1,
        block_size: int = 1024,
        device: int | None = None,
        level_callback: Callable[[float], None] | None = None,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.block_size = block_size
        self.device = device
        self.level_callback = level_callback
        self._stream = None
        self._chunks: "queue.Queue[np.ndarray] | None" = None

    def start(self, chunks: "queue.Queue[np.ndarray]") -> None:
        if self._stream is not None:
            return
        import sounddevice as sd

        self._chunks = chunks
        self._stream = sd.InputStream(
            samplerate=self.sample_rate,
            channels=self.channels,
            blocksize=self.block_size,
            device=self.device,
            dtype="float32",
            callback=self._on_audio,
        )
        self._stream.start()
        LOGGER.info("Microphone capture started (%d Hz, block %d)", self.sample_rate, self.block_size)

    def stop(self) -> None:
        stream = self._stream
        self._stream = None
        if stream is None:
            return
        stream.stop()
        stream.close()
        LOGGER.info("Microphone capture stopped")

    def _on_audio(self, indata, frames, time_info, status) -> None:  # noqa: ARG002
        if status:
            LOGGER.debug("Audio status: %s", status)
        # The driver reuses indata once this callback returns.
        chunk = np.array(as_mono_float32(indata), dtype=np.float32, copy=True)
        self._report_level(chunk)
        if self._chunks is not None:
            offer(self._chunks, chunk)

    def _report_level(self, chunk: np.ndarray) -> None:
        if not self.level_callback:
            return
        try:
            self.level_callback(min(1.0, compute_rms(chunk)))
        except Exception:
            LOGGER.exception("Level callback failed")


class FileSource:
    """Replays an audio file as a stream of chunks."""

    def __init__(
        self,
        path: Path | str,
        sample_rate: int,
        *,
        block_size: int = 1024,
        realtime: bool = True,
    ) -> None:
        self.path = Path(path)
        self.sample_rate = sample_rate
        self.block_size = block_size
        self.realtime = realtime
        self.finished = threading.Event()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self, chunks: "queue.Queue[np.ndarray]") -> None:
        if self._thread and self._thread.is_alive():
            return
        info = sf.info(str(self.path))
        if info.samplerate != self.sample_rate:
            raise ValueError(
                f"{self.path.name} is {info.samplerate} Hz, pipeline expects {self.sample_rate} Hz"
            )
        self._stop.clear()
        self.finished.clear()
        self._thread = threading.Thread(target=self._run, args=(chunks,), daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=2)

    def _run(self, chunks: "queue.Queue[np.ndarray]") -> None:
        pace = self.block_size / float(self.sample_rate)
        try:
            for block in sf.blocks(str(self.path), blocksize=self.block_size, dtype="float32", always_2d=True):
                if self._stop.is_set():
                    break
                self._deliver(chunks, np.array(as_mono_float32(block), dtype=np.float32, copy=True))
                if self.realtime:
                    time.sleep(pace)
        finally:
            self.finished.set()

    def _deliver(self, chunks: "queue.Queue[np.ndarray]", chunk: np.ndarray) -> None:
        if self.realtime:
            offer(chunks, chunk)
            return
        # Offline replay waits for the consumer instead of dropping.
        while not self._stop.is_set():
            try:
                chunks.put(chunk, timeout=0.1)
                return
            except queue.Full:
                continue


__all__ = ["ChunkSource", "FileSource", "MicrophoneSource", "offer"]
