"""Output sinks for the final dictation text."""

from __future__ import annotations

import sys
import time
from typing import Any, Protocol, TextIO

import pyperclip


class OutputSink(Protocol):
    name: str

    def emit(self, text: str) -> None: ...


class ConsoleSink:
    name = "console"

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream

    def emit(self, text: str) -> None:
        print(text, file=self.stream or sys.stdout, flush=True)


class ClipboardSink:
    name = "clipboard"

    def emit(self, text: str) -> None:
        pyperclip.copy(text)


class KeystrokeSink:
    """Types the text into the focused window by pasting it from the clipboard.

    The text is copied first, so the paste never depends on another sink
    having written the clipboard.
    """

    name = "keystroke"

    def __init__(self, *, delay_sec: float = 0.1, controller: Any = None, modifier: Any = None) -> None:
        self.delay_sec = max(0.0, delay_sec)
        if controller is None or modifier is None:
            # pynput needs a display at import time.
            from pynput.keyboard import Controller, Key

            controller = controller or Controller()
            modifier = modifier or (Key.cmd if sys.platform == "darwin" else Key.ctrl)
        self._keyboard = controller
        self._modifier = modifier

    def emit(self, text: str) -> None:
        pyperclip.copy(text)
        # Let the clipboard settle and focus return to the target window.
        if self.delay_sec:
            time.sleep(self.delay_sec)
        with self._keyboard.pressed(self._modifier):
            self._keyboard.press("v")
            self._keyboard.release("v")


__all__ = ["ClipboardSink", "ConsoleSink", "KeystrokeSink", "OutputSink"]
