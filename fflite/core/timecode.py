import math
import re
from typing import Optional

NOT_AVAILABLE = "N/A"

_ESCAPE_RE = re.compile(r"\x1b\[\d+(;\d+)*m")
_CURSOR_RE = re.compile(r"\x1b\[\?25[hl]")


def round_half_away(value: float) -> int:
    """Rounds to the nearest integer, halves away from zero."""
    if value < 0:
        return int(math.ceil(value - 0.5))
    return int(math.floor(value + 0.5))


def timecode_to_seconds(timecode: Optional[str]) -> float:
    """Converts `HH:MM:SS.ms` (or `MM:SS.ms`, `SS.ms`) to seconds.

    Malformed text yields 0.0 so a single bad line never aborts a session.
    """
    if not timecode:
        return 0.0
    text = timecode.strip()
    negative = text.startswith("-")
    if negative:
        text = text[1:]
    parts = text.split(":")
    if len(parts) > 3:
        return 0.0
    try:
        seconds = 0.0
        for part in parts:
            seconds = seconds * 60 + float(part)
    except ValueError:
        return 0.0
    if math.isnan(seconds) or math.isinf(seconds):
        return 0.0
    return -seconds if negative else seconds


def seconds_to_hhmmss(seconds: Optional[float]) -> str:
    """Formats seconds as `HH:MM:SS`, rounded to the nearest second.

    Fields are derived by floor division with carry; hours are not capped.
    """
    if seconds is None:
        return NOT_AVAILABLE
    total = max(0, round_half_away(seconds))
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def trunc_pad(text: str, width: int, side: str = "l") -> str:
    """Truncates or pads text to width.

    With side 'r' the text is aligned to the right, otherwise to the left.
    Truncated text ends with a dimmed ellipsis.
    """
    if len(text) > width:
        return text[:max(0, width - 3)] + "\x1b[30;1m...\x1b[0m"
    if side == "r":
        return text.rjust(width)
    return text.ljust(width)


def strip_escapes(text: str) -> str:
    """Removes ANSI colour and cursor escape sequences."""
    return _CURSOR_RE.sub("", _ESCAPE_RE.sub("", text))


def visible_length(text: str) -> int:
    return len(strip_escapes(text))
