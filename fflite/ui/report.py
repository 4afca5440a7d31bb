from typing import Dict
from rich.console import Console
from rich.table import Table
from rich.text import Text
from fflite.domain.models import BatchReport


def render_report(report: BatchReport, console: Console):
    """Prints one section per input that reported errors, then a tally."""
    sections = report.failed_sections()
    if sections:
        console.print()
        console.print(Text("Errors:", style="bold yellow"))
    for input_path, lines in sections:
        console.print(Text(input_path or "<no input>", style="bold red"))
        for line in lines:
            console.print(Text.from_ansi(line.rstrip("\n")))

    total = len(report.results)
    style = "bold green" if not sections else "bold red"
    summary = f"{total - len(sections)}/{total} inputs without errors"
    if report.interrupted:
        summary += ", interrupted"
    console.print(Text(summary, style=style))


def render_presets(presets: Dict[str, str], console: Console):
    table = Table(title="Presets", show_header=True, header_style="bold yellow")
    table.add_column("Preset", style="cyan", no_wrap=True)
    table.add_column("Expands to")
    for key in sorted(presets):
        table.add_row(Text(key.strip("^$")), Text(presets[key]))
    console.print(table)
