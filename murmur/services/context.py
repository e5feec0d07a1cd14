"""Active window lookup used as informational context."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

UNKNOWN = "unknown"


@dataclass(slots=True)
class ContextInfo:
    app_name: str = ""
    window_title: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __str__(self) -> str:
        return f"[{self.timestamp.isoformat()}] App: {self.app_name}, Window: {self.window_title}"


class ContextProvider(Protocol):
    def get_context(self) -> ContextInfo: ...


class NullContextProvider:
    def get_context(self) -> ContextInfo:
        return ContextInfo()


class X11ContextProvider:
    """Reads the focused window via xdotool and xprop."""

    def __init__(self, timeout: float = 1.0) -> None:
        self.timeout = timeout

    def get_context(self) -> ContextInfo:
        info = ContextInfo()
        try:
            window_id = self._run("xdotool", "getactivewindow")
        except (OSError, subprocess.SubprocessError):
            info.app_name = UNKNOWN
            info.window_title = UNKNOWN
            return info
        try:
            info.app_name = _parse_wm_class(self._run("xprop", "-id", window_id, "WM_CLASS"))
        except (OSError, subprocess.SubprocessError):
            pass
        try:
            info.window_title = self._run("xdotool", "getactivewindow", "getwindowname")
        except (OSError, subprocess.SubprocessError):
            pass
        info.app_name = info.app_name or UNKNOWN
        info.window_title = info.window_title or UNKNOWN
        return info

    def _run(self, *cmd: str) -> str:
        result = subprocess.run(cmd, capture_output=True, text=True, check=True, timeout=self.timeout)
        return result.stdout.strip()


def _parse_wm_class(output: str) -> str:
    # WM_CLASS(STRING) = "navigator", "Firefox"
    end = output.rfind('"')
    if end <= 0:
        return ""
    start = output.rfind('"', 0, end)
    if start < 0:
        return ""
    return output[start + 1 : end]


__all__ = ["ContextInfo", "ContextProvider", "NullContextProvider", "X11ContextProvider"]
