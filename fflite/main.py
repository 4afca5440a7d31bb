import typer
import threading
import yaml
from importlib.metadata import PackageNotFoundError, version as package_version
from pathlib import Path
from typing import Optional
from pydantic import ValidationError

from fflite.config.loader import load_config
from fflite.config.models import CropConfig
from fflite.core.classifier import PatternCatalogue
from fflite.infrastructure.logging import setup_logging
from fflite.infrastructure.event_bus import EventBus
from fflite.infrastructure.error_log import ErrorLogWriter
from fflite.infrastructure.ffmpeg import EncoderSpawnError, FFmpegAdapter
from fflite.infrastructure.signals import SignalListener
from fflite.pipeline.arguments import find_first_input, prepare_arguments
from fflite.pipeline.crop import CropDetector
from fflite.pipeline.orchestrator import Orchestrator
from fflite.pipeline.sync import AudioSync
from fflite.ui.console import TerminalOutput
from fflite.ui.report import render_presets, render_report

app = typer.Typer(
    help="fflite - FFmpeg wrapper for a minimal progress line that keeps the flexibility of the CLI.",
    add_completion=False,
)

EPILOG = (
    "fflite options go first, everything else is passed to ffmpeg: "
    "fflite [OPTIONS] [global_options] {[input_options] -i input} ... {[output_options] output} ...  "
    "Use a .txt file list, \"list:a.mp4 b.mp4\" or a glob pattern as the first input for batch runs. "
    "Later arguments may use [prefix?]old::new to name files after the first input. "
    "Filter ranges such as [0:1-6] are expanded to [0:1][0:2]...[0:6]."
)


def _version() -> str:
    try:
        return package_version("fflite")
    except PackageNotFoundError:
        return "unknown"


@app.command(
    epilog=EPILOG,
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    },
)
def run(
    ctx: typer.Context,
    passthrough: bool = typer.Option(False, "--passthrough", help="Show ffmpeg's original text output"),
    no_logs: bool = typer.Option(False, "--no-logs", help="Do not create .#err error log files"),
    cwd_logs: bool = typer.Option(False, "--cwd-logs", help="Save .#err error log files in the current directory"),
    mute: bool = typer.Option(False, "--mute", help="No bell at the end of encoding"),
    crop: bool = typer.Option(False, "--crop", help="Run cropdetect on the first input"),
    crop_count: Optional[int] = typer.Option(None, "--crop-count", help="Number of cropdetect samples"),
    crop_limit: Optional[float] = typer.Option(None, "--crop-limit", help="cropdetect limit (0-1)"),
    sync: bool = typer.Option(False, "--sync", help="Match the 2nd input's audio duration to the 1st input"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to YAML config"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Write the application log to this file"),
    debug: bool = typer.Option(False, "--debug/--no-debug", help="Enable verbose debug logging"),
    list_presets: bool = typer.Option(False, "--list-presets", help="Print argument presets and exit"),
    show_version: bool = typer.Option(False, "--version", help="Print fflite version and exit"),
):
    """Run ffmpeg with a compact progress line."""
    if show_version:
        typer.echo(f"fflite version {_version()}")
        raise typer.Exit()

    try:
        config = load_config(config_path)
        # Apply CLI overrides
        if passthrough: config.general.passthrough = True
        if no_logs: config.general.logs = False
        if cwd_logs: config.general.cwd_logs = True
        if mute: config.general.mute = True
        if log_file: config.general.log_file = log_file
        if debug: config.general.debug = True
        crop_overrides = {k: v for k, v in (("count", crop_count), ("limit", crop_limit)) if v is not None}
        if crop_overrides:
            config.crop = CropConfig(**{**config.crop.model_dump(), **crop_overrides})
    except (ValidationError, ValueError, yaml.YAMLError) as e:
        typer.secho(f"Configuration error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    logger = setup_logging(config.general.log_file, debug=config.general.debug)
    output = TerminalOutput()

    if list_presets:
        render_presets(config.presets, output.console)
        raise typer.Exit()

    args = list(ctx.args)
    if not args:
        typer.secho("Error: no ffmpeg arguments given. See fflite --help.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    logger.info(f"fflite started: args={args}")

    bus = EventBus()
    cancel_event = threading.Event()
    listener = SignalListener(bus, cancel_event)
    ffmpeg = FFmpegAdapter(
        event_bus=bus,
        output=output,
        config=config.general,
        catalogue=PatternCatalogue.from_config(config.patterns),
        cancel_event=cancel_event,
    )
    ErrorLogWriter(bus, enabled=config.general.logs, cwd_logs=config.general.cwd_logs)

    try:
        with listener:
            if crop:
                first_input = find_first_input(args)
                if not first_input:
                    typer.secho("Error: crop mode requires an input file (-i).", fg=typer.colors.RED, err=True)
                    raise typer.Exit(code=2)
                windows = CropDetector(config.crop, ffmpeg, output).run(first_input)
                if not windows:
                    typer.secho(f"Error: no crop values found for {first_input}.", fg=typer.colors.RED, err=True)
                    raise typer.Exit(code=1)
                return

            if sync:
                prepared = prepare_arguments(args, config.presets, hide_banner=config.general.hide_banner)
                result = AudioSync(config.sync, ffmpeg, output).run(prepared)
                if result is not None and result.interrupted:
                    raise typer.Exit(code=130)
                if result is not None and not result.success:
                    raise typer.Exit(code=1)
                return

            orchestrator = Orchestrator(config, bus, ffmpeg, output, cancel_event)
            report = orchestrator.run(args)
    except EncoderSpawnError as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if report.batch:
        render_report(report, output.console)

    if report.interrupted:
        raise typer.Exit(code=130)
    if not report.results or not report.success:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
