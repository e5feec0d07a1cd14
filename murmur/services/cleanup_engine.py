"""Generative cleanup of raw transcripts through an OpenAI-compatible endpoint."""

from __future__ import annotations

import logging
import re
from typing import Optional

from openai import OpenAI, OpenAIError

from ..settings import PipelineSettings

LOGGER = logging.getLogger("murmur.cleanup")

SYSTEM_PROMPT = """You are a professional text editor. Transform raw speech transcriptions into polished written text.

Apply these transformations:
- Remove filler words (um, uh, ah, like, you know, I mean, sort of, kind of, basically, actually, literally)
- Eliminate false starts and self-corrections (keep only the final intended phrase)
- Fix grammar, punctuation, and sentence structure
- Remove repetitions and redundant phrases
- Convert spoken patterns to written prose
- Preserve original meaning, tone, and technical terms

Output only the corrected text with no preamble, labels, or explanations."""

# Everything from one of these on is the model continuing past its answer.
TRUNCATION_MARKERS = ("Input:", "Example:", "<|user|>")

_THINK_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL)


class CleanupError(RuntimeError):
    pass


class CleanupEngine:
    def __init__(self, settings: PipelineSettings, *, client: Optional[OpenAI] = None) -> None:
        self.settings = settings
        self._client = client or OpenAI(
            api_key=settings.cleanup_api_key or "not-needed",
            base_url=settings.cleanup_base_url,
            max_retries=settings.cleanup_max_retries,
        )

    def cleanup(self, raw_text: str) -> str:
        try:
            completion = self._client.chat.completions.create(
                model=self.settings.cleanup_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": raw_text},
                ],
                temperature=self.settings.cleanup_temperature,
                top_p=self.settings.cleanup_top_p,
            )
        except OpenAIError as exc:
            raise CleanupError(f"cleanup request failed: {exc}") from exc
        if not completion.choices:
            raise CleanupError("cleanup response had no choices")
        content = completion.choices[0].message.content or ""
        cleaned = strip_artifacts(content)
        if not cleaned:
            raise CleanupError("cleanup response was empty")
        return cleaned

    def close(self) -> None:
        self._client.close()


def strip_artifacts(text: str) -> str:
    cleaned = _THINK_BLOCK.sub("", text).strip()
    for marker in TRUNCATION_MARKERS:
        idx = cleaned.find(marker)
        if idx != -1:
            cleaned = cleaned[:idx]
    return cleaned.strip()


__all__ = ["CleanupEngine", "CleanupError", "SYSTEM_PROMPT", "strip_artifacts"]
