import re
from typing import Iterable, Optional, Pattern, Tuple
from fflite.config.models import PatternConfig
from fflite.core.timecode import timecode_to_seconds
from fflite.domain.models import ClassifiedLine, LineKind, Phase

MAPPING_HEADER_RE = re.compile(r"Stream mapping:")
MAPPING_ARROW = "->"
INPUT_RE = re.compile(r"Input #(\d+),.*from '(.*)':")
OUTPUT_RE = re.compile(r"Output #(\d+),.*to '(.*)':")
DURATION_RE = re.compile(r"(Duration:.*)")
DURATION_VALUE_RE = re.compile(r"Duration:\s*(\d+:\d{2}:\d{2}(?:\.\d+)?)")
STREAM_RE = re.compile(
    r"Stream #(\d+:\d+)(?:\[[^\]]*\])?(?:\(([^)]*)\))?(?:\[[^\]]*\])?: (.*)"
)
TIME_RE = re.compile(r"time=\s*(-?\d+:\d{2}:\d{2}(?:\.\d+)?|N/A)")
BITRATE_RE = re.compile(r"bitrate=\s*(\S+)")
SPEED_RE = re.compile(r"speed=\s*(\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)x")
DROP_RE = re.compile(r"drop=\s*(\d+)")
DUP_RE = re.compile(r"dup=\s*(\d+)")
FINISH_RE = re.compile(
    r"video:\s*\S+.*audio:\s*\S+.*subtitle:\s*\S+.*other streams:\s*\S+.*global headers:\s*\S+"
)


class PatternCatalogue:
    """Compiled, read-only error/warning/hide catalogues."""

    __slots__ = ("errors", "warnings", "hide")

    def __init__(self, errors: Iterable[str], warnings: Iterable[str], hide: Iterable[str]):
        self.errors: Tuple[Pattern, ...] = tuple(re.compile(p) for p in errors)
        self.warnings: Tuple[Pattern, ...] = tuple(re.compile(p) for p in warnings)
        self.hide: Tuple[Pattern, ...] = tuple(re.compile(p) for p in hide)

    @classmethod
    def from_config(cls, config: PatternConfig) -> "PatternCatalogue":
        return cls(config.errors, config.warnings, config.hide)

    @classmethod
    def default(cls) -> "PatternCatalogue":
        return cls.from_config(PatternConfig())


def _first_match(patterns: Tuple[Pattern, ...], line: str) -> Optional[re.Match]:
    for pattern in patterns:
        match = pattern.search(line)
        if match:
            return match
    return None


def _int_or_none(match: Optional[re.Match]) -> Optional[int]:
    if not match:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        return None


def parse_duration(line: str) -> Optional[float]:
    """Returns the `Duration:` value in seconds, or None when it is N/A or malformed."""
    match = DURATION_VALUE_RE.search(line)
    if not match:
        return None
    return timecode_to_seconds(match.group(1))


class LineClassifier:
    """Maps one ffmpeg stderr line to a ClassifiedLine.

    Rules are tried in a fixed order and the first match wins. Specific structural
    lines (headers, streams) come before the error and warning catalogues, and the
    catalogues come before progress lines, so the broad `error` entry never shadows them.
    """

    def __init__(self, catalogue: Optional[PatternCatalogue] = None):
        self.catalogue = catalogue or PatternCatalogue.default()

    @staticmethod
    def looks_like_mapping_entry(line: str) -> bool:
        return MAPPING_ARROW in line

    def classify(self, line: str, phase: Phase) -> ClassifiedLine:
        if MAPPING_HEADER_RE.search(line):
            return ClassifiedLine(kind=LineKind.STREAM_MAPPING_HEADER, raw=line)

        match = INPUT_RE.search(line)
        if match:
            return ClassifiedLine(
                kind=LineKind.INPUT_HEADER, raw=line,
                index=int(match.group(1)), path=match.group(2),
            )

        match = OUTPUT_RE.search(line)
        if match:
            return ClassifiedLine(
                kind=LineKind.OUTPUT_HEADER, raw=line,
                index=int(match.group(1)), path=match.group(2),
            )

        match = DURATION_RE.search(line)
        if match:
            return ClassifiedLine(
                kind=LineKind.DURATION_HEADER, raw=line,
                duration_text=match.group(1).strip(),
                duration=parse_duration(line),
            )

        match = STREAM_RE.search(line)
        if match:
            return ClassifiedLine(
                kind=LineKind.STREAM_HEADER, raw=line,
                stream_id=match.group(1),
                language=match.group(2) or None,
                description=match.group(3).strip(),
            )

        if _first_match(self.catalogue.errors, line):
            return ClassifiedLine(kind=LineKind.ERROR, raw=line, message=line.strip())

        match = _first_match(self.catalogue.warnings, line)
        if match:
            message = match.group(1) if match.re.groups else match.group(0)
            return ClassifiedLine(kind=LineKind.WARNING, raw=line, message=(message or line).strip())

        progress = self._classify_progress(line)
        if progress:
            return progress

        if FINISH_RE.search(line):
            return ClassifiedLine(kind=LineKind.FINISH_MARKER, raw=line)

        if _first_match(self.catalogue.hide, line):
            return ClassifiedLine(kind=LineKind.SUPPRESSIBLE, raw=line)

        if phase == Phase.MAPPING_STREAMS and self.looks_like_mapping_entry(line):
            return ClassifiedLine(kind=LineKind.STREAM_MAPPING_ENTRY, raw=line)

        return ClassifiedLine(
            kind=LineKind.UNCLASSIFIED, raw=line,
            encoder_error=phase == Phase.ENCODING,
        )

    def _classify_progress(self, line: str) -> Optional[ClassifiedLine]:
        time_match = TIME_RE.search(line)
        bitrate_match = BITRATE_RE.search(line)
        if not time_match or not bitrate_match:
            return None

        time_text = time_match.group(1)
        fields = dict(
            raw=line,
            time_text=time_text,
            elapsed=timecode_to_seconds(time_text) if time_text != "N/A" else 0.0,
            bitrate=bitrate_match.group(1),
            drop=_int_or_none(DROP_RE.search(line)),
            dup=_int_or_none(DUP_RE.search(line)),
        )
        speed_match = SPEED_RE.search(line)
        if speed_match:
            try:
                speed = float(speed_match.group(1))
            except ValueError:
                speed = 0.0
            return ClassifiedLine(kind=LineKind.PROGRESS_WITH_SPEED, speed=speed, **fields)
        return ClassifiedLine(kind=LineKind.PROGRESS_NO_SPEED, **fields)
