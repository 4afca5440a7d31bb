import logging
import threading
from typing import Optional, Sequence
from fflite.config.models import AppConfig
from fflite.core.renderer import RED_B, RESET
from fflite.domain.events import BatchFinished, EncodeFinished, InterruptRequested
from fflite.domain.models import BatchReport, EncodeResult
from fflite.infrastructure.event_bus import EventBus
from fflite.infrastructure.ffmpeg import EncoderSpawnError, FFmpegAdapter
from fflite.pipeline.arguments import (
    expand_name_patterns, find_first_input, prepare_arguments, replace_first_input,
)
from fflite.pipeline.inputs import InputSource, expand_inputs
from fflite.ui.console import TerminalOutput


class Orchestrator:
    """Runs one ffmpeg invocation per input file, strictly one after another."""

    def __init__(
        self,
        config: AppConfig,
        event_bus: EventBus,
        ffmpeg_adapter: FFmpegAdapter,
        output: TerminalOutput,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.config = config
        self.event_bus = event_bus
        self.ffmpeg_adapter = ffmpeg_adapter
        self.output = output
        self.cancel_event = cancel_event or ffmpeg_adapter.cancel_event
        self.logger = logging.getLogger(__name__)

        self._setup_subscriptions()

    def _setup_subscriptions(self):
        self.event_bus.subscribe(InterruptRequested, self._on_interrupt)

    def _on_interrupt(self, event: InterruptRequested):
        # The running file finishes on its own; only further files are skipped.
        self.cancel_event.set()
        self.logger.info(f"Interrupt requested (signal {event.signal_number}), no further inputs will start")

    @property
    def shutdown_requested(self) -> bool:
        return self.cancel_event.is_set()

    def _resolve_inputs(self, args: Sequence[str]) -> InputSource:
        first_input = find_first_input(args)
        if first_input is None:
            return InputSource(paths=[], batch=False)
        return expand_inputs(first_input)

    def _process_file(self, args: Sequence[str], input_path: Optional[str], batch: bool) -> EncodeResult:
        file_args = replace_first_input(args, input_path) if input_path is not None else list(args)
        file_args = expand_name_patterns(file_args)
        try:
            return self.ffmpeg_adapter.encode(file_args, batch_mode=batch)
        except EncoderSpawnError as e:
            self.output.write(f"{RED_B}{e}{RESET}\n")
            result = EncodeResult(
                input=input_path or "",
                command=e.command,
                spawn_error=str(e),
            )
            self.event_bus.publish(EncodeFinished(result=result))
            return result

    def run(self, args: Sequence[str]) -> BatchReport:
        general = self.config.general
        args = prepare_arguments(args, self.config.presets, hide_banner=general.hide_banner)

        source = self._resolve_inputs(args)
        report = BatchReport(batch=source.batch)

        if not source.paths:
            if source.batch:
                self.output.write(f"{RED_B}No input files found.{RESET}\n")
                self.logger.warning("Batch expansion produced no input files")
                return report
            # No -i at all: let ffmpeg report what is wrong with the command.
            report.results.append(self._process_file(args, None, batch=False))
            return report

        self.logger.info(f"Processing {len(source.paths)} input(s), batch={source.batch}")
        for path in source.paths:
            if self.shutdown_requested:
                report.interrupted = True
                break
            report.results.append(self._process_file(args, path, batch=source.batch))

        if self.shutdown_requested:
            report.interrupted = True

        if source.batch and any(r.finished for r in report.results):
            self.output.bell(general.mute)

        failed = len(report.failed_sections())
        self.logger.info(f"Finished {len(report.results)} input(s), {failed} with errors")
        self.event_bus.publish(BatchFinished(
            inputs=len(report.results), failed=failed, interrupted=report.interrupted,
        ))
        return report
