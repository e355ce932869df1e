"""``jvmpulse parse``: list the samples of a saved exposition payload."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from jvmpulse.exposition.parser import parse, parse_types
from jvmpulse.metrics.rates import classify

console = Console()


def parse_cmd(
    exposition_file: Path = typer.Argument(
        ...,
        help="Path to a file containing exposition text.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    metric: str | None = typer.Option(
        None,
        "--metric",
        "-m",
        help="Only show samples of this metric.",
    ),
) -> None:
    """Parse an exposition file and print its samples as a table."""
    text = exposition_file.read_text(encoding="utf-8", errors="replace")
    metrics = parse(text)
    types = parse_types(text)

    if metric is not None:
        metrics = {metric: metrics[metric]} if metric in metrics else {}

    table = Table(
        title=exposition_file.name,
        show_header=True,
        header_style="bold cyan",
        expand=True,
    )
    table.add_column("Series")
    table.add_column("Kind")
    table.add_column("Value", justify="right")

    count = 0
    for name, samples in metrics.items():
        kind = classify(name, types).name.lower()
        for sample in samples:
            table.add_row(str(sample.key), kind, f"{sample.value:g}")
            count += 1

    console.print(table)
    console.print(f"[bold]{count}[/bold] samples in [bold]{len(metrics)}[/bold] metrics")
