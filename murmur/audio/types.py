"""Dataclasses shared across audio helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


class RecordingState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"


class AppendStatus(str, Enum):
    IGNORED = "ignored"
    APPENDED = "appended"
    CEILING = "ceiling"


@dataclass(frozen=True, slots=True)
class AppendResult:
    """Outcome of one append; ``samples`` is only set for a ceiling cut-off."""

    status: AppendStatus
    samples: np.ndarray | None = None


@dataclass(frozen=True, slots=True)
class Segment:
    """Immutable snapshot of one utterance, handed to processing."""

    samples: np.ndarray
    sample_rate: int
    forced: bool = False

    @property
    def duration_sec(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / float(self.sample_rate)

    def __len__(self) -> int:
        return len(self.samples)


def as_mono_float32(data: np.ndarray) -> np.ndarray:
    """Flatten a (frames, channels) block to mono float32."""
    block = np.asarray(data, dtype=np.float32)
    if block.ndim == 1:
        return block
    if block.shape[1] == 1:
        return block[:, 0]
    return block.mean(axis=1, dtype=np.float32)


def compute_rms(samples: np.ndarray) -> float:
    if samples.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(samples, dtype=np.float64))))
