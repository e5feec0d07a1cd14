"""Audio capture and utterance buffering."""

from .accumulator import StreamingAccumulator
from .capture import ChunkSource, FileSource, MicrophoneSource
from .types import AppendResult, AppendStatus, RecordingState, Segment

__all__ = [
    "AppendResult",
    "AppendStatus",
    "ChunkSource",
    "FileSource",
    "MicrophoneSource",
    "RecordingState",
    "Segment",
    "StreamingAccumulator",
]
