import threading
from typing import Optional
from rich.console import Console
from fflite.core.timecode import strip_escapes


class TerminalOutput:
    """Writes pre-rendered ANSI strings to the terminal.

    Text goes straight to the console's file because progress lines rely on a bare
    carriage return, which rich would strip from renderables. When the console is not
    a terminal the escape sequences are removed first.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)
        self._lock = threading.Lock()

    @property
    def is_terminal(self) -> bool:
        return self.console.is_terminal

    def write(self, text: str):
        if not text:
            return
        with self._lock:
            if not self.is_terminal:
                self.console.file.write(strip_escapes(text))
                self.console.file.flush()
                return
            self.console.show_cursor(False)
            self.console.file.write(text)
            self.console.file.flush()
            self.console.show_cursor(True)

    def bell(self, mute: bool = False):
        if mute or not self.is_terminal:
            return
        self.console.bell()
