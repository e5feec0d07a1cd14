"""Collaborators around the pipeline core (ASR, cleanup, context, sinks)."""

from .cleanup_engine import CleanupEngine, CleanupError
from .context import ContextInfo, NullContextProvider, X11ContextProvider
from .output import ClipboardSink, ConsoleSink, KeystrokeSink
from .whisper_engine import TranscriptionError, WhisperEngine

__all__ = [
    "CleanupEngine",
    "CleanupError",
    "ClipboardSink",
    "ConsoleSink",
    "ContextInfo",
    "KeystrokeSink",
    "NullContextProvider",
    "TranscriptionError",
    "WhisperEngine",
    "X11ContextProvider",
]
