"""Lazy Whisper (faster-whisper) loader with an explicit mock mode."""

from __future__ import annotations

import logging
import threading
from typing import Iterable

import numpy as np

from ..settings import PipelineSettings

LOGGER = logging.getLogger("murmur.whisper")


class TranscriptionError(RuntimeError):
    pass


class WhisperEngine:
    """Thin wrapper that loads Whisper on first use and serializes inference."""

    def __init__(self, settings: PipelineSettings) -> None:
        self.settings = settings
        self._load_lock = threading.Lock()
        self._infer_lock = threading.Lock()
        self._model = None
        self._mock = settings.whisper_mock_transcriber
        if self._mock:
            LOGGER.warning(
                "Whisper mock mode enabled (unset MURMUR_WHISPER_MOCK and configure "
                "MURMUR_WHISPER_MODEL to enable real transcription)."
            )

    def _load_model(self):
        if self._model is None:
            with self._load_lock:
                if self._model is None:
                    from faster_whisper import WhisperModel

                    try:
                        self._model = WhisperModel(
                            self.settings.whisper_model,
                            device=self.settings.whisper_device,
                            compute_type=self.settings.whisper_compute_type,
                        )
                    except Exception as exc:  # pragma: no cover - hardware/env dep
                        LOGGER.error(
                            "Failed to load Whisper model '%s': %s",
                            self.settings.whisper_model,
                            exc,
                        )
                        raise TranscriptionError(str(exc)) from exc
        return self._model

    def warm_up(self) -> None:
        if not self._mock:
            self._load_model()

    def transcribe(self, samples: np.ndarray) -> str:
        """Transcribe one whole segment (16 kHz mono float32) to text."""
        if samples.size == 0:
            return ""
        if self._mock:
            duration = len(samples) / float(self.settings.sample_rate)
            return f"mock transcript of {len(samples)} samples ({duration:.1f}s)"
        model = self._load_model()
        with self._infer_lock:
            try:
                segments, _info = model.transcribe(
                    np.asarray(samples, dtype=np.float32),
                    language=self.settings.whisper_language,
                    beam_size=5,
                    vad_filter=True,
                )
                return _join_segments(segments)
            except Exception as exc:
                raise TranscriptionError(f"transcription failed: {exc}") from exc


def _join_segments(segments: Iterable) -> str:
    pieces = [segment.text.strip() for segment in segments]
    return " ".join(piece for piece in pieces if piece).strip()


__all__ = ["TranscriptionError", "WhisperEngine"]
