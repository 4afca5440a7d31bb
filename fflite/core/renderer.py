import re
from fflite.core.session import Session
from fflite.core.timecode import NOT_AVAILABLE, seconds_to_hhmmss, visible_length
from fflite.domain.models import ClassifiedLine, LineKind, Phase

RESET = "\x1b[0m"
RED_B = "\x1b[31;1m"
GREEN = "\x1b[32m"
GREEN_B = "\x1b[32;1m"
YELLOW = "\x1b[33m"
YELLOW_B = "\x1b[33;1m"
CYAN_B = "\x1b[36;1m"
GRAY = "\x1b[30;1m"

_FIELD_SPACING_RE = re.compile(r"=\s+")
_WHITESPACE_RE = re.compile(r"\s+")
_ZERO_COUNTER_RE = re.compile(r"\b(?:dup|drop)=0\b\s*")
_SPEED_FIELD_RE = re.compile(r"\s*speed=\S*")


def _percent_label(percent: str) -> str:
    return percent if percent == NOT_AVAILABLE else f"{percent}%"


class Renderer:
    """Turns classified lines into terminal text and feeds the session transcript."""

    def render(self, session: Session, item: ClassifiedLine, now: float) -> str:
        handler = getattr(self, f"_render_{item.kind.value.lower()}")
        out = handler(session, item, now)
        if out:
            session.last_output = out
        return out

    def _break_line(self, session: Session) -> str:
        # Finish an in-place progress line before printing on a new one.
        return "\n" if session.in_place else ""

    def _pad(self, session: Session, line: str) -> str:
        if session.in_place:
            previous = visible_length(session.last_output.rstrip())
            current = visible_length(line)
            if current < previous:
                line += " " * (previous - current)
        return line

    def _render_stream_mapping_header(self, session: Session, item: ClassifiedLine, now: float) -> str:
        if session.phase != Phase.MAPPING_STREAMS:
            return ""
        return f"{GRAY}  {item.raw.strip()}{RESET}\n"

    _render_stream_mapping_entry = _render_stream_mapping_header

    def _render_input_header(self, session: Session, item: ClassifiedLine, now: float) -> str:
        return f"{GREEN}  INPUT {item.index}:{RESET} {GREEN_B}{item.path}{RESET}\n"

    def _render_output_header(self, session: Session, item: ClassifiedLine, now: float) -> str:
        return f"{YELLOW}  OUTPUT {item.index}:{RESET} {YELLOW_B}{item.path}{RESET}\n"

    def _render_duration_header(self, session: Session, item: ClassifiedLine, now: float) -> str:
        return f"  {item.duration_text}\n"

    def _render_stream_header(self, session: Session, item: ClassifiedLine, now: float) -> str:
        if item.language:
            return f"    {CYAN_B}{item.stream_id}{RESET} {GRAY}{item.language}{RESET} {item.description}\n"
        return f"    {CYAN_B}{item.stream_id}{RESET} {item.description}\n"

    def _render_error(self, session: Session, item: ClassifiedLine, now: float) -> str:
        line = f"     {RED_B}{item.message}{RESET}\n"
        if session.batch_mode:
            session.record(line)
        return self._break_line(session) + line

    def _render_warning(self, session: Session, item: ClassifiedLine, now: float) -> str:
        text = item.message or item.raw.strip()
        if session.should_suppress(text):
            return ""
        out = self._break_line(session) + f"     {YELLOW_B}{text}{RESET}\n"
        if session.is_suppressed(text):
            out += f"     {YELLOW_B}Omitting further warnings: {YELLOW}{text}{RESET}\n"
        return out

    def _progress_body(self, session: Session, item: ClassifiedLine) -> str:
        text = _FIELD_SPACING_RE.sub("=", item.raw.strip())
        text = _WHITESPACE_RE.sub(" ", text)
        text = _ZERO_COUNTER_RE.sub("", text).strip()
        if item.kind == LineKind.PROGRESS_NO_SPEED:
            text = _SPEED_FIELD_RE.sub("", text).strip() + f" speed={session.last_speed:.2f}x"
        return text

    def _render_progress(self, session: Session, item: ClassifiedLine, now: float) -> str:
        if session.phase != Phase.ENCODING:
            return ""
        body = self._progress_body(session, item)
        session.last_progress = body
        session.last_time_text = item.time_text or NOT_AVAILABLE
        line = f"{YELLOW_B}{_percent_label(session.percent)}{RESET} eta={session.eta} {body}"
        return self._pad(session, line) + "\r"

    _render_progress_with_speed = _render_progress
    _render_progress_no_speed = _render_progress

    def _render_finish_marker(self, session: Session, item: ClassifiedLine, now: float) -> str:
        if not session.phase.is_terminal or session.summary_rendered:
            return ""
        session.summary_rendered = True
        if session.phase == Phase.INTERRUPTED:
            line = self._pad(session, f"{RED_B}{_percent_label(session.percent)}{RESET} {session.last_progress}")
            return f"{line}\n{RED_B}Interrupted{RESET}\n"
        elapsed = now - (session.started_at if session.started_at is not None else now)
        line = self._pad(session, f"{GREEN_B}100%{RESET} et={seconds_to_hhmmss(elapsed)} {session.last_progress}")
        return f"{line}\n"

    def _render_suppressible(self, session: Session, item: ClassifiedLine, now: float) -> str:
        return ""

    def _render_unclassified(self, session: Session, item: ClassifiedLine, now: float) -> str:
        if item.encoder_error:
            return self._render_encoder_error(session, item)
        if session.phase.is_terminal:
            return f"{self._break_line(session)}  {item.raw.strip()}\n"
        # Banner text before encoding starts is not shown.
        return ""

    def _render_encoder_error(self, session: Session, item: ClassifiedLine) -> str:
        if session.last_progress != session.last_context:
            session.last_context = session.last_progress
            session.record(
                f"{YELLOW_B}{_percent_label(session.percent)}{RESET} time={session.last_time_text}\n"
            )
        line = f"     {RED_B}{item.raw.strip()}{RESET}\n"
        session.record(line)
        return self._break_line(session) + line
