"""Streaming orchestration: recording state, segment processing, lifecycle."""

from .controller import DictationPipeline
from .processor import SegmentProcessor
from .recorder import RecordingStateMachine
from .types import PipelineState, ProcessResult, SegmentOutcome
from .validator import CleanupCandidate, normalize_spacing, review_cleanup, validate_output

__all__ = [
    "CleanupCandidate",
    "DictationPipeline",
    "PipelineState",
    "ProcessResult",
    "RecordingStateMachine",
    "SegmentOutcome",
    "SegmentProcessor",
    "normalize_spacing",
    "review_cleanup",
    "validate_output",
]
