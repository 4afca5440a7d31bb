import os
from typing import List, Optional, Sequence
from fflite.config.models import SyncConfig
from fflite.core.renderer import GREEN, GREEN_B, RED_B, RESET
from fflite.core.timecode import round_half_away, seconds_to_hhmmss
from fflite.domain.models import EncodeResult
from fflite.infrastructure.ffmpeg import FFmpegAdapter
from fflite.pipeline.arguments import find_inputs
from fflite.ui.console import TerminalOutput


class AudioSync:
    """Stretches the second input's audio so its duration matches the first input."""

    def __init__(self, config: SyncConfig, ffmpeg_adapter: FFmpegAdapter, output: TerminalOutput):
        self.config = config
        self.ffmpeg_adapter = ffmpeg_adapter
        self.output = output

    def target_rate(self, reference: float, audio: float) -> int:
        return round_half_away(self.config.sample_rate * audio / reference)

    def output_path(self, audio_input: str) -> str:
        stem, _ = os.path.splitext(audio_input)
        return f"{stem}{self.config.suffix}.{self.config.codec}"

    def build_args(self, audio_input: str, rate: int) -> List[str]:
        return [
            "-hide_banner",
            "-i", audio_input,
            "-af", f"asetrate={rate},aresample={self.config.sample_rate}",
            "-vn",
            "-acodec", self.config.codec,
            "-compression_level", "0",
            "-map_metadata", "-1",
            "-map_chapters", "-1",
            self.output_path(audio_input),
        ]

    def run(self, args: Sequence[str], batch_mode: bool = False) -> Optional[EncodeResult]:
        inputs = find_inputs(args)
        if len(inputs) < 2:
            self.output.write(f"{RED_B}ERROR: sync mode requires two input files.{RESET}\n")
            return None

        reference_input, audio_input = inputs[0], inputs[1]
        durations = self.ffmpeg_adapter.probe_durations([reference_input, audio_input])
        if len(durations) < 2 or not durations[0] or not durations[1]:
            self.output.write(f"{RED_B}ERROR: cannot determine durations for input files.{RESET}\n")
            return None

        reference, audio = durations[0], durations[1]
        rate = self.target_rate(reference, audio)
        if rate == self.config.sample_rate:
            self.output.write(f"{GREEN}{reference_input}{RESET} Duration: {seconds_to_hhmmss(reference)}\n")
            self.output.write(f"{GREEN}{audio_input}{RESET} Duration: {seconds_to_hhmmss(audio)}\n")
            self.output.write(f"{GREEN_B}AudioSync is not needed.{RESET}\n")
            return None

        return self.ffmpeg_adapter.encode(self.build_args(audio_input, rate), batch_mode=batch_mode)
