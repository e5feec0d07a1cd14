"""Murmur: push-to-talk dictation with transcription cleanup."""

__version__ = "0.1.0"
