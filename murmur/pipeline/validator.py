"""Hallucination guard for generative cleanup output."""

from __future__ import annotations

import re
from dataclasses import dataclass

# Openers that mean the model answered the transcript instead of editing it.
HALLUCINATION_PREFIXES = (
    "the user",
    "input:",
    "output:",
    "rewrite",
    "corrected text:",
    "here is",
    "sure, i can",
    "i'm sorry",
    "assistant:",
)

STOP_WORDS = frozenset({"umm", "um", "ah", "uh", "like", "so", "just", "a", "an", "the"})

MAX_LENGTH_RATIO = 2
MIN_LENGTH_FOR_RATIO = 10
MAX_MISSING_RATIO = 0.5
OPENING_CONTEXT_WORDS = 2

_TOKEN_PUNCTUATION = ".,!?-:;\"'()"
_PUNCT_GAP = re.compile(r"(?<=\S)([.!?,])(?=[^\W_])")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class CleanupCandidate:
    raw: str
    cleaned: str
    accepted: bool

    @property
    def final_text(self) -> str:
        if self.accepted:
            return self.cleaned
        return normalize_spacing(self.raw)


def validate_output(raw: str, cleaned: str) -> bool:
    """Return False when ``cleaned`` looks fabricated rather than edited."""
    if len(raw) > MIN_LENGTH_FOR_RATIO and len(cleaned) > len(raw) * MAX_LENGTH_RATIO:
        return False
    if _has_hallucination_prefix(raw, cleaned):
        return False
    return _missing_ratio(raw, cleaned) <= MAX_MISSING_RATIO


def review_cleanup(raw: str, cleaned: str) -> CleanupCandidate:
    return CleanupCandidate(raw=raw, cleaned=cleaned, accepted=validate_output(raw, cleaned))


def significant_words(text: str) -> list[str]:
    words = []
    for token in text.lower().split():
        word = token.strip(_TOKEN_PUNCTUATION)
        if word and word not in STOP_WORDS:
            words.append(word)
    return words


def normalize_spacing(text: str) -> str:
    """Put a space after sentence punctuation glued to the next word."""
    spaced = _PUNCT_GAP.sub(_punctuation_gap, text)
    return _WHITESPACE.sub(" ", spaced).strip()


def _has_hallucination_prefix(raw: str, cleaned: str) -> bool:
    lowered = cleaned.lstrip().lower()
    for prefix in HALLUCINATION_PREFIXES:
        if not lowered.startswith(prefix):
            continue
        # A marker the speaker said is content only when the speaker's
        # following words open the cleaned text too.
        count = len(prefix.split()) + OPENING_CONTEXT_WORDS
        if _opening_words(cleaned, count) != _opening_words(raw, count):
            return True
    return False


def _opening_words(text: str, count: int) -> list[str]:
    return [token.strip(_TOKEN_PUNCTUATION) for token in text.lower().split()[:count]]


def _missing_ratio(raw: str, cleaned: str) -> float:
    words = significant_words(raw)
    if not words:
        return 0.0
    haystack = cleaned.lower()
    missing = sum(1 for word in words if word not in haystack)
    return missing / len(words)


def _punctuation_gap(match: re.Match) -> str:
    mark = match.group(1)
    before = match.string[match.start() - 1]
    after = match.string[match.end()]
    if mark in ".," and before.isdigit() and after.isdigit():
        return mark
    if mark == "." and after.isalpha() and not after.isupper():
        return mark
    return mark + " "


__all__ = [
    "CleanupCandidate",
    "HALLUCINATION_PREFIXES",
    "STOP_WORDS",
    "normalize_spacing",
    "review_cleanup",
    "significant_words",
    "validate_output",
]
