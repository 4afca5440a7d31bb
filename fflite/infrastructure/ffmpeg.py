import subprocess
import logging
import threading
import time
from typing import Callable, List, Optional, Sequence
from fflite.config.models import GeneralConfig
from fflite.core.classifier import DURATION_RE, LineClassifier, PatternCatalogue, parse_duration
from fflite.core.processor import StderrProcessor
from fflite.core.renderer import CYAN_B, GRAY, RESET
from fflite.core.session import Session
from fflite.core.splitter import iter_lines
from fflite.domain.events import EncodeFinished, EncodeStarted
from fflite.domain.models import EncodeResult, Phase
from fflite.infrastructure.event_bus import EventBus
from fflite.pipeline.arguments import find_first_input, quote_command
from fflite.ui.console import TerminalOutput


class EncoderSpawnError(RuntimeError):
    """ffmpeg could not be started (missing binary, no pipes)."""

    def __init__(self, message: str, command: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.command = list(command or [])


class FFmpegAdapter:
    """Runs ffmpeg and re-renders its stderr into a compact progress display."""

    def __init__(
        self,
        event_bus: EventBus,
        output: TerminalOutput,
        config: Optional[GeneralConfig] = None,
        catalogue: Optional[PatternCatalogue] = None,
        cancel_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.event_bus = event_bus
        self.output = output
        self.config = config or GeneralConfig()
        self.classifier = LineClassifier(catalogue)
        self.cancel_event = cancel_event or threading.Event()
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    def _build_command(self, args: Sequence[str]) -> List[str]:
        return [self.config.ffmpeg_binary, *args]

    def encode(
        self,
        args: Sequence[str],
        batch_mode: bool = False,
        passthrough: Optional[bool] = None,
        mute: Optional[bool] = None,
    ) -> EncodeResult:
        """Runs one ffmpeg invocation and returns its result and error transcript."""
        passthrough = self.config.passthrough if passthrough is None else passthrough
        mute = self.config.mute if mute is None else mute
        cmd = self._build_command(args)
        first_input = find_first_input(args) or ""

        self.output.write(f"{CYAN_B}> {GRAY}{quote_command(self.config.ffmpeg_binary, args)}{RESET}\n")
        self.logger.info(f"FFMPEG_START: {first_input or '-'} (batch={batch_mode}, passthrough={passthrough})")
        self.event_bus.publish(EncodeStarted(input=first_input, command=cmd))

        session = Session(
            batch_mode=batch_mode,
            cancel_event=self.cancel_event,
            speed_window=self.config.speed_window,
            warning_limit=self.config.warning_limit,
            clock=self.clock,
        )
        processor = StderrProcessor(session, self.classifier, passthrough=passthrough)
        start_time = self.clock()

        try:
            # stdin and stdout stay attached to the terminal so ffmpeg prompts can be answered.
            process = subprocess.Popen(cmd, stderr=subprocess.PIPE)
        except OSError as e:
            message = f"Failed to start {self.config.ffmpeg_binary}: {e}"
            self.logger.error(message)
            raise EncoderSpawnError(message, command=cmd) from e

        try:
            for out in processor.process(iter_lines(process.stderr)):
                self.output.write(out)
        finally:
            process.stderr.close()
            return_code = process.wait()

        if session.in_place:
            self.output.write("\n")

        elapsed = self.clock() - start_time
        result = EncodeResult(
            input=first_input,
            command=cmd,
            transcript=list(session.transcript),
            return_code=return_code,
            success=return_code == 0,
            finished=session.phase == Phase.FINISHED,
            interrupted=session.phase == Phase.INTERRUPTED or self.cancel_event.is_set(),
            elapsed_seconds=elapsed,
        )
        self.logger.info(
            f"FFMPEG_END: {first_input or '-'} phase={session.phase.value} code={return_code} "
            f"errors={len(result.transcript)} elapsed={elapsed:.2f}s"
        )

        if session.phase.is_terminal and not batch_mode:
            self.output.bell(mute)

        self.event_bus.publish(EncodeFinished(result=result))
        return result

    def capture(self, args: Sequence[str]) -> str:
        """Runs ffmpeg to completion and returns its combined output.

        ffmpeg exits non-zero when given inputs only, so the exit code is ignored.
        """
        cmd = self._build_command(args)
        self.logger.debug(f"FFMPEG_CAPTURE: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            raise EncoderSpawnError(f"Failed to start {self.config.ffmpeg_binary}: {e}", command=cmd) from e
        return result.stdout.decode("utf-8", errors="replace")

    def probe_durations(self, inputs: Sequence[str]) -> List[Optional[float]]:
        """Returns the `Duration:` of each input, in order (None when unknown)."""
        args = ["-hide_banner"]
        for path in inputs:
            args.extend(["-i", path])
        text = self.capture(args)
        return [parse_duration(line) for line in text.splitlines() if DURATION_RE.search(line)]
