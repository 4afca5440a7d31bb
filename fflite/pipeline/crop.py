import logging
import re
from typing import List, Optional
from fflite.config.models import CropConfig
from fflite.core.renderer import GRAY, GREEN_B, RED_B, RESET
from fflite.core.timecode import seconds_to_hhmmss
from fflite.domain.models import CropWindow
from fflite.infrastructure.ffmpeg import FFmpegAdapter
from fflite.ui.console import TerminalOutput

CROP_RE = re.compile(r"crop=(\d+):(\d+):(\d+):(\d+)")
CROP_ROUND = 2
CROP_RESET = 0


def parse_crop_windows(text: str) -> List[CropWindow]:
    return [
        CropWindow(width=int(w), height=int(h), x=int(x), y=int(y))
        for w, h, x, y in CROP_RE.findall(text)
    ]


def pick_largest(windows: List[CropWindow]) -> Optional[CropWindow]:
    """Keeps the widest or tallest window seen during one cropdetect pass."""
    if not windows:
        return None
    best = windows[0]
    for window in windows[1:]:
        if window.width > best.width or window.height > best.height:
            best = window
    return best


class CropDetector:
    """Samples a few points of the first input with ffmpeg's cropdetect filter."""

    def __init__(self, config: CropConfig, ffmpeg_adapter: FFmpegAdapter, output: TerminalOutput):
        self.config = config
        self.ffmpeg_adapter = ffmpeg_adapter
        self.output = output
        self.logger = logging.getLogger(__name__)

    @property
    def params(self) -> str:
        return f"{self.config.limit}:{CROP_ROUND}:{CROP_RESET}"

    def offsets(self, duration: float) -> List[float]:
        count = self.config.count
        return [duration * i / (count + 1.0) for i in range(1, count + 1)]

    def build_args(self, input_path: str, offset: float) -> List[str]:
        return [
            "-hide_banner",
            "-ss", f"{offset:.3f}",
            "-i", input_path,
            "-vf", f"cropdetect={self.params}",
            "-t", f"{self.config.sample_seconds:g}",
            "-an",
            "-f", "null",
            "-",
        ]

    def run(self, input_path: str) -> List[CropWindow]:
        durations = self.ffmpeg_adapter.probe_durations([input_path])
        duration = durations[0] if durations and durations[0] else 0.0

        self.output.write(f"{GREEN_B}{input_path}{RESET}\n")
        self.output.write(
            f"{GRAY}Running cropdetect {self.config.count} times, "
            f"with the following parameters {self.params}{RESET}\n"
        )

        found: List[CropWindow] = []
        for offset in self.offsets(duration):
            window = pick_largest(parse_crop_windows(
                self.ffmpeg_adapter.capture(self.build_args(input_path, offset))
            ))
            if window is None:
                self.logger.warning(f"cropdetect found nothing at {offset:.3f}s in {input_path}")
                self.output.write(f"{RED_B}{seconds_to_hhmmss(offset)} no crop values found{RESET}\n")
                continue
            found.append(window)
            self.output.write(
                f"{GRAY}{seconds_to_hhmmss(offset)} crop={RESET}{window.width}{GRAY}:{RESET}"
                f"{window.height}{GRAY}:{RESET}{window.x}{GRAY}:{RESET}{window.y}\n"
            )
        return found
