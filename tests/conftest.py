"""Pytest configuration helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_on_path() -> None:
    """Make ``murmur`` and ``tests.fakes`` importable from a source checkout."""
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_ensure_repo_on_path()

from murmur.settings import PipelineSettings, get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def headless_settings() -> PipelineSettings:
    """Settings that never touch a model, an LLM endpoint or the desktop."""
    return PipelineSettings(
        whisper_mock_transcriber=True,
        cleanup_enabled=False,
        clipboard_enabled=False,
        injection_enabled=False,
        context_enabled=False,
    )
