import subprocess
from types import SimpleNamespace

from murmur.services import context
from murmur.services.context import NullContextProvider, X11ContextProvider


def _fake_run(outputs, failing=()):
    def run(cmd, **kwargs):
        key = " ".join(cmd)
        if key in failing:
            raise subprocess.CalledProcessError(1, cmd)
        return SimpleNamespace(stdout=outputs.get(key, ""))

    return run


def test_reads_class_and_title(monkeypatch):
    outputs = {
        "xdotool getactivewindow": "41943047\n",
        "xprop -id 41943047 WM_CLASS": 'WM_CLASS(STRING) = "navigator", "Firefox"\n',
        "xdotool getactivewindow getwindowname": "Inbox - Mail\n",
    }
    monkeypatch.setattr(context.subprocess, "run", _fake_run(outputs))
    info = X11ContextProvider().get_context()
    assert info.app_name == "Firefox"
    assert info.window_title == "Inbox - Mail"
    assert "App: Firefox" in str(info)


def test_missing_tools_yield_unknown(monkeypatch):
    def missing(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(context.subprocess, "run", missing)
    info = X11ContextProvider().get_context()
    assert info.app_name == "unknown"
    assert info.window_title == "unknown"


def test_partial_failure_keeps_what_was_found(monkeypatch):
    outputs = {"xdotool getactivewindow": "7", "xprop -id 7 WM_CLASS": 'WM_CLASS(STRING) = "term", "Alacritty"'}
    run = _fake_run(outputs, failing={"xdotool getactivewindow getwindowname"})
    monkeypatch.setattr(context.subprocess, "run", run)
    info = X11ContextProvider().get_context()
    assert info.app_name == "Alacritty"
    assert info.window_title == "unknown"


def test_null_provider_is_empty():
    info = NullContextProvider().get_context()
    assert info.app_name == "" and info.window_title == ""
