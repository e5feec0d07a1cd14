"""Dataclasses describing pipeline state and per-segment outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..services.context import ContextInfo
from .validator import CleanupCandidate


class PipelineState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"


class SegmentOutcome(str, Enum):
    EMPTY = "empty"
    TOO_SHORT = "too_short"
    ASR_FAILED = "asr_failed"
    TOO_FEW_WORDS = "too_few_words"
    DISPATCHED = "dispatched"
    FAILED = "failed"

    @property
    def dropped(self) -> bool:
        return self is not SegmentOutcome.DISPATCHED


@dataclass(slots=True)
class ProcessResult:
    outcome: SegmentOutcome
    raw_text: str = ""
    final_text: str = ""
    candidate: Optional[CleanupCandidate] = None
    context: Optional[ContextInfo] = None
