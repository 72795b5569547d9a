"""Terminal output using Rich. Live per-device view plus plain tables and JSON lines."""

from __future__ import annotations

import json
import logging
import math
import sys
import time
from typing import Dict, Iterable, List, Optional, Tuple

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from nodestat import __version__
from nodestat.exporter import NodeExporter
from nodestat.metrics import MetricSample, MetricSink

log = logging.getLogger(__name__)

# Columns shown per device in the live view, in order
DEVICE_COLUMNS = [
    ("receive", "bytes"),
    ("receive", "packets"),
    ("receive", "errs"),
    ("receive", "drop"),
    ("transmit", "bytes"),
    ("transmit", "packets"),
    ("transmit", "errs"),
    ("transmit", "drop"),
]

MAX_CONSECUTIVE_ERRORS = 5


def _format_value(value: float) -> str:
    if math.isfinite(value) and value == int(value):
        return f"{int(value):,}"
    return f"{value:.4g}"


def _human_bytes(value: float) -> str:
    size = float(value)
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if size < 1024 or unit == "TiB":
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TiB"


def render_samples(samples: Iterable[MetricSample], title: Optional[str] = None) -> Table:
    """Generic name / labels / value table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Metric")
    table.add_column("Labels", style="dim")
    table.add_column("Value", justify="right")

    for sample in samples:
        table.add_row(sample.name, sample.label_str(), _format_value(sample.value))
    return table


def device_rows(sink: MetricSink, namespace: str = "node") -> Dict[str, Dict[Tuple[str, str], float]]:
    """Regroup network samples as device -> (direction, field) -> value."""
    prefix = f"{namespace}_network_"
    rows: Dict[str, Dict[Tuple[str, str], float]] = {}
    for sample in sink.samples():
        if not sample.name.startswith(prefix) or "device" not in sample.labels:
            continue
        direction, _, field = sample.name[len(prefix):].partition("_")
        rows.setdefault(sample.labels["device"], {})[(direction, field)] = sample.value
    return rows


def failed_collectors(sink: MetricSink, namespace: str = "node") -> List[str]:
    name = f"{namespace}_scrape_collector_success"
    return [s.labels["collector"] for s in sink.samples() if s.name == name and s.value == 0]


def build_device_table(sink: MetricSink, namespace: str = "node") -> Table:
    table = Table(show_header=True, header_style="bold cyan", expand=True)
    table.add_column("Device", style="bold")
    for direction, field in DEVICE_COLUMNS:
        short = "rx" if direction == "receive" else "tx"
        table.add_column(f"{short} {field}", justify="right")

    for dev, values in sorted(device_rows(sink, namespace).items()):
        cells = []
        for key in DEVICE_COLUMNS:
            value = values.get(key)
            if value is None:
                cells.append("[dim]-[/dim]")
            elif key[1] == "bytes":
                cells.append(_human_bytes(value))
            elif key[1] in ("errs", "drop") and value > 0:
                cells.append(f"[yellow]{_format_value(value)}[/yellow]")
            else:
                cells.append(_format_value(value))
        table.add_row(dev, *cells)
    return table


def build_display(sink: MetricSink, source_name: str, namespace: str = "node") -> Layout:
    layout = Layout()

    failed = failed_collectors(sink, namespace)
    if failed:
        status_text, status_style = f"FAILING: {', '.join(failed)}", "bold red"
    else:
        status_text, status_style = "HEALTHY", "bold green"

    header = Text(f"  nodestat v{__version__}  |  {source_name}", style="bold white on blue")
    header.append(f"\n  {sink.timestamp.strftime('%Y-%m-%d %H:%M:%S')}  ", style="dim")
    header.append(f"  STATUS: {status_text}", style=status_style)

    layout.split_column(
        Layout(Panel(header, border_style="blue"), size=4),
        Layout(Panel(build_device_table(sink, namespace), title="Network devices", border_style="cyan")),
        Layout(Panel(Text("  Press Ctrl+C to stop", style="dim"), border_style="dim"), size=3),
    )
    return layout


def run_watch(exporter: NodeExporter, refresh_interval: float = 2.0, namespace: str = "node"):

    console = Console()
    source_name = exporter.name()

    log.info("Starting watch: collectors=%s, refresh=%.1fs", source_name, refresh_interval)
    console.print(f"\n[bold]Starting nodestat v{__version__}...[/bold]")
    console.print(f"Collectors: {source_name}")
    console.print(f"Refresh: every {refresh_interval}s")
    console.print()
    time.sleep(1)

    consecutive_errors = 0

    with Live(console=console, refresh_per_second=1, screen=True) as live:
        try:
            while True:
                sink = exporter.scrape()
                failed = failed_collectors(sink, namespace)
                if failed and len(failed) == len(exporter.collector_names):
                    consecutive_errors += 1
                    log.warning("All collectors failed (attempt %d/%d)",
                                consecutive_errors, MAX_CONSECUTIVE_ERRORS)
                    if consecutive_errors >= MAX_CONSECUTIVE_ERRORS:
                        log.error("Giving up after %d failed scrapes", MAX_CONSECUTIVE_ERRORS)
                        break
                else:
                    consecutive_errors = 0

                live.update(build_display(sink, source_name, namespace))
                time.sleep(refresh_interval)
        except KeyboardInterrupt:
            pass

    console.print("\n[dim]Watch stopped.[/dim]")


def run_jsonl(exporter: NodeExporter, refresh_interval: float = 2.0, namespace: str = "node",
              count: Optional[int] = None):
    """Non-interactive output mode: prints one JSON object per scrape per line.

    Designed for containers, CI pipelines, and log aggregators where a Rich
    TUI isn't available.
    """
    source_name = exporter.name()
    log.info("Starting JSONL output: collectors=%s, refresh=%.1fs", source_name, refresh_interval)

    emitted = 0
    consecutive_errors = 0

    try:
        while count is None or emitted < count:
            sink = exporter.scrape()
            failed = failed_collectors(sink, namespace)
            if failed and len(failed) == len(exporter.collector_names):
                consecutive_errors += 1
                log.warning("All collectors failed (attempt %d/%d)",
                            consecutive_errors, MAX_CONSECUTIVE_ERRORS)
                if consecutive_errors >= MAX_CONSECUTIVE_ERRORS:
                    log.error("Giving up after %d failed scrapes", MAX_CONSECUTIVE_ERRORS)
                    break
            else:
                consecutive_errors = 0

            record = sink.summary()
            record["source"] = source_name
            sys.stdout.write(json.dumps(record) + "\n")
            sys.stdout.flush()
            emitted += 1
            if count is None or emitted < count:
                time.sleep(refresh_interval)
    except KeyboardInterrupt:
        pass
