"""``jvmpulse watch``: poll one target and render its panels live."""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import logging
import signal
from typing import TYPE_CHECKING

import typer
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from jvmpulse._internal.config import load_config
from jvmpulse._internal.errors import ConfigError
from jvmpulse._internal.logging import setup_logging
from jvmpulse.engine.session import MonitorSession
from jvmpulse.metrics.format import format_bytes, format_duration, format_percent
from jvmpulse.panels import CpuPanel, GcPanel, HeapPanel, OverviewPanel

if TYPE_CHECKING:
    from jvmpulse._internal.config import JvmPulseConfig
    from jvmpulse.metrics.models import FeedUpdate
    from jvmpulse.metrics.stats import FetchSummary
    from jvmpulse.panels import CpuView, GcView, HeapView, OverviewView

console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Rich rendering
# ---------------------------------------------------------------------------


def _metric_table(title: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan", expand=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    return table


def _overview_table(view: OverviewView) -> Table:
    table = _metric_table("Overview")
    threads = "N/A" if view.live_threads is None else f"{view.live_threads:.0f}"
    table.add_row("Live Threads", threads)
    table.add_row("CPU Time", format_duration(view.cpu_seconds))
    table.add_row("RSS", format_bytes(view.rss_bytes))
    if view.threads is not None:
        table.add_row("Threads (window max)", f"{view.threads.summary.maximum:.0f}")
    return table


def _heap_table(view: HeapView) -> Table:
    table = _metric_table("Heap")
    table.add_row("Used", format_bytes(view.used))
    table.add_row("Committed", format_bytes(view.committed))
    table.add_row("Max", format_bytes(view.max) if view.max > 0 else "N/A")
    table.add_row("Utilization", format_percent(view.utilization))
    for pool in view.pools:
        table.add_row(f"  {pool.label}", format_bytes(pool.summary.last))
    return table


def _gc_table(view: GcView) -> Table:
    table = Table(
        title="Garbage Collection",
        show_header=True,
        header_style="bold cyan",
        expand=True,
    )
    table.add_column("Collector", style="bold")
    table.add_column("Collections", justify="right")
    table.add_column("Time", justify="right")
    for collector in view.collectors:
        count = "N/A" if collector.count is None else f"{collector.count:.0f}"
        table.add_row(collector.collector, count, format_duration(collector.seconds))
    table.add_row("Total", f"{view.total_count:.0f}", format_duration(view.total_seconds))
    return table


def _cpu_table(view: CpuView) -> Table:
    table = _metric_table("CPU")
    table.add_row("Process CPU", format_duration(view.cpu_seconds))
    table.add_row("Utilization", format_percent(view.utilization))
    if view.usage is not None:
        table.add_row("Avg per poll", f"{view.usage.summary.mean:.3f}s")
    return table


def _status_panel(target: str, summary: FetchSummary, error: str | None) -> Panel:
    lines = [
        f"[bold]Target:[/bold]    {target}",
        f"[bold]Fetches:[/bold]   {summary.fetches} ({summary.failures} failed)",
        f"[bold]Latency:[/bold]   p50 {summary.latency_p50:.1f}ms / "
        f"p95 {summary.latency_p95:.1f}ms",
    ]
    if error is not None:
        lines.append(f"[red]Error:[/red]     {error}")
    return Panel("\n".join(lines), title="JvmPulse", border_style="cyan")


# ---------------------------------------------------------------------------
# Session loop
# ---------------------------------------------------------------------------


async def _watch(target: str, config: JvmPulseConfig) -> None:
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    for signum in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signum, stop.set)

    async with MonitorSession(config) as session:
        overview = OverviewPanel(session.feed)
        heap = HeapPanel(session.feed)
        gc = GcPanel(session.feed)
        cpu = CpuPanel(session.feed)

        def _render() -> Group:
            return Group(
                _status_panel(target, session.stats.summary(), session.feed.error),
                _overview_table(overview.view),
                _heap_table(heap.view),
                _gc_table(gc.view),
                _cpu_table(cpu.view),
            )

        with Live(_render(), console=console, refresh_per_second=2) as live:

            def _on_update(update: FeedUpdate) -> None:
                live.update(_render())

            session.feed.subscribe(_on_update)
            session.select(target)
            await stop.wait()


def watch_cmd(
    target: str = typer.Argument(..., help="Id of the process to observe."),
    base_url: str | None = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Backend base URL (default: $JVMPULSE_BASE_URL).",
    ),
    interval: float | None = typer.Option(
        None,
        "--interval",
        "-i",
        help="Seconds between polls (default: $JVMPULSE_POLL_INTERVAL or 4).",
    ),
    window: int | None = typer.Option(
        None,
        "--window",
        "-w",
        help="Points kept per series (default: $JVMPULSE_WINDOW or 180).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
) -> None:
    """Poll TARGET and render its overview, heap, GC and CPU panels."""
    setup_logging(logging.DEBUG if verbose else logging.WARNING)

    try:
        config = load_config()
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    overrides: dict[str, object] = {}
    if base_url is not None:
        overrides["base_url"] = base_url
    if interval is not None:
        if interval <= 0:
            msg = "--interval must be positive"
            raise typer.BadParameter(msg)
        overrides["poll_interval"] = interval
    if window is not None:
        if window < 1:
            msg = "--window must be >= 1"
            raise typer.BadParameter(msg)
        overrides["window_capacity"] = window
    config = dataclasses.replace(config, **overrides)

    asyncio.run(_watch(target, config))
    console.print("[green]Stopped.[/green]")
