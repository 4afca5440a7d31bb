import io
import pytest
from rich.console import Console
from fflite.config.models import DEFAULT_PRESETS
from fflite.domain.models import BatchReport, EncodeResult
from fflite.ui.console import TerminalOutput
from fflite.ui.report import render_presets, render_report


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=120)


def test_render_report_lists_failed_inputs(console):
    report = BatchReport(batch=True, results=[
        EncodeResult(input="a.mp4", return_code=0, success=True, finished=True),
        EncodeResult(input="b.mp4", return_code=0, success=True, finished=True,
                     transcript=["\x1b[31;1m     broken frame\x1b[0m\n"]),
        EncodeResult(input="c.mp4", return_code=1),
    ])

    render_report(report, console)

    text = console.file.getvalue()
    assert "Errors:" in text
    assert "a.mp4" not in text
    assert "b.mp4\n     broken frame\n" in text
    assert "c.mp4\nffmpeg exited with code 1\n" in text
    assert "1/3 inputs without errors" in text


def test_render_report_all_good(console):
    report = BatchReport(batch=True, interrupted=True, results=[
        EncodeResult(input="a.mp4", return_code=0, success=True, finished=True),
    ])
    render_report(report, console)
    text = console.file.getvalue()
    assert "Errors:" not in text
    assert "1/1 inputs without errors, interrupted" in text


def test_render_presets(console):
    render_presets(DEFAULT_PRESETS, console)
    text = console.file.getvalue()
    assert "@crf(\\d+)" in text
    assert "-map_metadata -1 -map_chapters -1" in text


def test_terminal_output_keeps_escapes_on_terminal(monkeypatch):
    monkeypatch.setenv("TERM", "xterm-256color")
    buffer = io.StringIO()
    output = TerminalOutput(Console(file=buffer, force_terminal=True))
    output.write("\x1b[33;1m 50%\x1b[0m eta=00:00:10\r")
    text = buffer.getvalue()
    assert "\x1b[33;1m 50%\x1b[0m eta=00:00:10\r" in text
    # The cursor is hidden while writing and shown again afterwards.
    assert text.startswith("\x1b[?25l")
    assert text.endswith("\x1b[?25h")


def test_terminal_output_strips_escapes_elsewhere():
    buffer = io.StringIO()
    output = TerminalOutput(Console(file=buffer, force_terminal=False))
    output.write("\x1b[33;1m 50%\x1b[0m eta=00:00:10\r")
    output.write("")
    assert buffer.getvalue() == " 50% eta=00:00:10\r"


def test_bell(monkeypatch):
    monkeypatch.setenv("TERM", "xterm-256color")
    buffer = io.StringIO()
    output = TerminalOutput(Console(file=buffer, force_terminal=True))
    output.bell(mute=True)
    assert buffer.getvalue() == ""
    output.bell()
    assert buffer.getvalue() == "\x07"
