import logging
from pathlib import Path
from typing import List, Optional
from fflite.core.timecode import strip_escapes
from fflite.domain.events import EncodeFinished
from fflite.infrastructure.event_bus import EventBus

ERROR_LOG_SUFFIX = ".#err"


class ErrorLogWriter:
    """Appends each input's error transcript to `<input>.#err`."""

    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        enabled: bool = True,
        cwd_logs: bool = False,
        cwd: Optional[Path] = None,
    ):
        self.enabled = enabled
        self.cwd_logs = cwd_logs
        self.cwd = cwd
        self.logger = logging.getLogger(__name__)
        if event_bus is not None:
            event_bus.subscribe(EncodeFinished, self.on_encode_finished)

    def log_path(self, input_path: str) -> Path:
        path = Path(input_path)
        if self.cwd_logs:
            return (self.cwd or Path.cwd()) / (path.name + ERROR_LOG_SUFFIX)
        return path.with_name(path.name + ERROR_LOG_SUFFIX)

    def write(self, input_path: str, transcript: List[str]) -> Optional[Path]:
        if not self.enabled or not input_path or not transcript:
            return None
        target = self.log_path(input_path)
        with open(target, "a", encoding="utf-8") as f:
            for line in transcript:
                f.write(strip_escapes(line))
        self.logger.info(f"Wrote {len(transcript)} error lines to {target}")
        return target

    def on_encode_finished(self, event: EncodeFinished):
        result = event.result
        lines = list(result.transcript)
        if not lines and result.spawn_error:
            lines = [result.spawn_error + "\n"]
        try:
            self.write(result.input or "", lines)
        except OSError as e:
            self.logger.error(f"Could not write error log for {result.input}: {e}")
