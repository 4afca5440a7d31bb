import re
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Set
from fflite.core.timecode import NOT_AVAILABLE, round_half_away, seconds_to_hhmmss, trunc_pad
from fflite.domain.models import ClassifiedLine, LineKind, Phase, ProgressSample

SPEED_WINDOW = 30
WARNING_LIMIT = 10

_POINTER_RE = re.compile(r"0x[0-9a-fA-F]+")
_DECIMAL_RE = re.compile(r"\d+\.\d+")


def normalize_warning(text: str) -> str:
    """Collapses pointer addresses and decimals so repeats of one warning share a key."""
    return _DECIMAL_RE.sub("#", _POINTER_RE.sub("0x", text.strip()))


def should_suppress(text: str, counts: Dict[str, int], suppressed: Set[str],
                    limit: int = WARNING_LIMIT) -> bool:
    """Counts one occurrence of a warning and reports whether it must be dropped.

    Occurrences up to `limit` are shown; the one that reaches `limit` also marks the
    text as suppressed. Suppressed texts are dropped without further counting.
    """
    key = normalize_warning(text)
    if key in suppressed:
        return True
    counts[key] = counts.get(key, 0) + 1
    if counts[key] >= limit:
        suppressed.add(key)
    return False


class Session:
    """Per-invocation parser state; owned by a single consuming pipeline."""

    def __init__(
        self,
        batch_mode: bool = False,
        cancel_event: Optional[threading.Event] = None,
        speed_window: int = SPEED_WINDOW,
        warning_limit: int = WARNING_LIMIT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.batch_mode = batch_mode
        self.cancel_event = cancel_event or threading.Event()
        self.warning_limit = warning_limit
        self.clock = clock

        self.phase = Phase.IDLE
        self.started_at: Optional[float] = None
        self.finished_at: Optional[float] = None
        self.total_duration: Optional[float] = None

        self.speed_samples: Deque[float] = deque(maxlen=speed_window)
        self.last_sample: Optional[ProgressSample] = None
        self.last_speed = 0.0
        self.percent = NOT_AVAILABLE
        self.eta = NOT_AVAILABLE

        # Text of the latest progress summary (no colours) and the last thing written.
        self.last_progress = ""
        self.last_time_text = NOT_AVAILABLE
        self.last_output = ""
        self.summary_rendered = False

        self.warning_counts: Dict[str, int] = {}
        self.suppressed_warnings: Set[str] = set()

        self.transcript: List[str] = []
        self.last_context: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    @property
    def in_place(self) -> bool:
        """True when the last output was an in-place progress line."""
        return self.last_output.endswith("\r")

    def set_duration(self, seconds: Optional[float]):
        """Records the total media duration; the first usable value wins."""
        if self.total_duration is None and seconds is not None and seconds > 0:
            self.total_duration = seconds

    def push_speed(self, speed: float):
        self.speed_samples.append(speed)

    def mean_speed(self) -> float:
        if not self.speed_samples:
            return 0.0
        return sum(self.speed_samples) / len(self.speed_samples)

    def percent_text(self, elapsed: float) -> str:
        if not self.total_duration:
            return NOT_AVAILABLE
        return trunc_pad(str(int(elapsed * 100 // self.total_duration)), 3, 'r')

    def eta_seconds(self, elapsed: float) -> Optional[int]:
        if not self.total_duration:
            return None
        mean = self.mean_speed()
        if mean == 0:
            return None
        return round_half_away((self.total_duration - elapsed) / mean)

    def eta_text(self, elapsed: float) -> str:
        return seconds_to_hhmmss(self.eta_seconds(elapsed))

    def should_suppress(self, warning: str) -> bool:
        return should_suppress(warning, self.warning_counts, self.suppressed_warnings, self.warning_limit)

    def is_suppressed(self, warning: str) -> bool:
        return normalize_warning(warning) in self.suppressed_warnings

    def record(self, text: str):
        self.transcript.append(text)


def _record_progress(session: Session, item: ClassifiedLine, now: float):
    elapsed = item.elapsed or 0.0
    wall = now - session.started_at if session.started_at is not None else 0.0
    if item.kind == LineKind.PROGRESS_WITH_SPEED:
        speed = item.speed or 0.0
    else:
        previous = session.last_sample
        prev_media = previous.media_seconds if previous else 0.0
        prev_wall = previous.wall_seconds if previous else 0.0
        delta = wall - prev_wall
        speed = max(0.0, (elapsed - prev_media) / delta) if delta > 0 else 0.0
    session.push_speed(speed)
    session.last_speed = speed
    session.last_sample = ProgressSample(media_seconds=elapsed, wall_seconds=wall, speed=speed)
    session.percent = session.percent_text(elapsed)
    session.eta = session.eta_text(elapsed)


def transition(session: Session, item: ClassifiedLine, now: float, mapping_entry: bool = False) -> Phase:
    """Applies one classified line to the session's phase and progress data.

    `mapping_entry` tells whether the raw line looks like a stream-mapping arrow entry.
    """
    phase = session.phase

    if item.kind == LineKind.DURATION_HEADER:
        session.set_duration(item.duration)

    if phase.is_terminal:
        return phase

    if phase == Phase.IDLE and item.kind == LineKind.STREAM_MAPPING_HEADER:
        session.phase = Phase.MAPPING_STREAMS
    elif phase == Phase.MAPPING_STREAMS and item.kind != LineKind.STREAM_MAPPING_HEADER and not mapping_entry:
        session.phase = Phase.IDLE

    if session.phase != Phase.ENCODING and item.kind.is_progress and (item.elapsed or 0.0) > 0:
        session.phase = Phase.ENCODING
        session.started_at = now
        session.last_sample = ProgressSample(media_seconds=0.0, wall_seconds=0.0, speed=0.0)

    if session.phase == Phase.ENCODING:
        if item.kind.is_progress:
            _record_progress(session, item, now)
        elif item.kind == LineKind.FINISH_MARKER:
            session.phase = Phase.INTERRUPTED if session.cancelled else Phase.FINISHED
            session.finished_at = now

    return session.phase
