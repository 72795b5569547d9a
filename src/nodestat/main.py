"""
nodestat entry point.

Usage:
    nodestat serve                          Expose /metrics on :9100
    nodestat once                           Print one scrape (text format)
    nodestat --mock watch                   Live table from simulated counters
    nodestat collectors                     List available collectors
    nodestat inspect --url http://host:9100 Read another exporter's metrics
"""

from __future__ import annotations

import json
import logging
import time

import click
import httpx

from nodestat import __version__
from nodestat.collector.registry import default_registry
from nodestat.config import DEFAULT_NAMESPACE, DEFAULT_PORT, DEFAULT_PROCFS, ExporterConfig, parse_collector_list
from nodestat.errors import CollectorError, UnknownCollectorError


log = logging.getLogger("nodestat")


def _registry(ctx):
    if ctx.obj["mock"]:
        from nodestat.collector.mock_collector import mock_registry
        from nodestat.mock.generator import MockProcFS

        procfs = MockProcFS()
        ctx.call_on_close(procfs.close)
        return mock_registry(procfs)
    return default_registry()


def _build_exporter(ctx):
    from nodestat.exporter import build_exporter

    config: ExporterConfig = ctx.obj["config"]
    try:
        return build_exporter(config, registry=_registry(ctx))
    except UnknownCollectorError as e:
        click.echo(f"{e}. Run `nodestat collectors` to see what's available.")
        raise SystemExit(1)
    except CollectorError as e:
        click.echo(f"Failed to start collectors: {e}")
        raise SystemExit(1)


@click.group()
@click.version_option(version=__version__, prog_name="nodestat")
@click.option("--procfs", default=DEFAULT_PROCFS, envvar="NODESTAT_PROCFS", show_default=True,
              help="procfs mount point")
@click.option("--namespace", default=DEFAULT_NAMESPACE, envvar="NODESTAT_NAMESPACE", show_default=True,
              help="Metric name prefix")
@click.option("--collectors", "collector_list", default="netdev", envvar="NODESTAT_COLLECTORS",
              show_default=True, help="Comma-separated collectors to enable")
@click.option("--stale-after", type=click.IntRange(min=1), default=None, envvar="NODESTAT_STALE_AFTER",
              help="Drop devices missing for this many scrapes (default: keep forever)")
@click.option("--mock", is_flag=True, default=False, help="Read simulated counters instead of procfs")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
@click.pass_context
def cli(ctx, procfs: str, namespace: str, collector_list: str, stale_after: int, mock: bool, verbose: bool):
    """nodestat - kernel statistics exporter for Prometheus."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    ctx.ensure_object(dict)
    ctx.obj["mock"] = mock
    ctx.obj["config"] = ExporterConfig(
        namespace=namespace,
        procfs=procfs,
        collectors=parse_collector_list(collector_list),
        stale_after=stale_after,
    )


@cli.command()
@click.option("--listen-address", default="0.0.0.0", envvar="NODESTAT_LISTEN_ADDRESS", show_default=True)
@click.option("--port", default=DEFAULT_PORT, envvar="NODESTAT_PORT", show_default=True)
@click.pass_context
def serve(ctx, listen_address: str, port: int):
    """Serve /metrics until interrupted."""
    from nodestat.exporter import serve as start_server

    config: ExporterConfig = ctx.obj["config"]
    config.listen_address = listen_address
    config.port = port

    exporter = _build_exporter(ctx)
    start_server(exporter, config.listen_address, config.port)
    click.echo(f"nodestat v{__version__} listening on http://{config.listen_address}:{config.port}/metrics")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass


@cli.command()
@click.option("--output", type=click.Choice(["text", "table", "jsonl"]), default="text",
              help="text (Prometheus exposition), table (Rich) or jsonl")
@click.pass_context
def once(ctx, output: str):
    """Run every enabled collector once and print the result."""
    from nodestat.dashboard.terminal import failed_collectors, render_samples
    from nodestat.exporter import exposition_text

    config: ExporterConfig = ctx.obj["config"]
    exporter = _build_exporter(ctx)
    sink = exporter.scrape()

    if output == "table":
        from rich.console import Console
        Console().print(render_samples(sink.samples()))
    elif output == "jsonl":
        record = sink.summary()
        record["source"] = exporter.name()
        click.echo(json.dumps(record))
    else:
        click.echo(exposition_text(sink), nl=False)

    failed = failed_collectors(sink, config.namespace)
    if failed:
        log.warning("Failed collectors: %s", ", ".join(failed))
        raise SystemExit(1)


@cli.command()
@click.option("--refresh", default=2.0, show_default=True, help="Refresh interval in seconds")
@click.option("--output", type=click.Choice(["tui", "jsonl"]), default="tui",
              help="Output mode: tui (Rich dashboard) or jsonl (one JSON line per scrape)")
@click.pass_context
def watch(ctx, refresh: float, output: str):
    """Scrape repeatedly and show per-device counters."""
    from nodestat.dashboard.terminal import run_jsonl, run_watch

    config: ExporterConfig = ctx.obj["config"]
    exporter = _build_exporter(ctx)
    runner = run_jsonl if output == "jsonl" else run_watch
    runner(exporter, refresh_interval=refresh, namespace=config.namespace)


@cli.command()
@click.pass_context
def collectors(ctx):
    """List available collectors."""
    config: ExporterConfig = ctx.obj["config"]
    for name in _registry(ctx):
        marker = "*" if name in config.collectors else " "
        click.echo(f"{marker} {name}")


@cli.command()
@click.option("--url", required=True, help="Exporter URL (e.g. http://localhost:9100)")
@click.option("--filter", "prefix", default="", help="Only show metrics starting with this prefix")
@click.option("--timeout", default=5.0, show_default=True, help="HTTP timeout in seconds")
def inspect(url: str, prefix: str, timeout: float):
    """Fetch and tabulate another exporter's /metrics."""
    from rich.console import Console

    from nodestat.collector.remote import RemoteExporter
    from nodestat.dashboard.terminal import render_samples

    remote = RemoteExporter(url, timeout_seconds=timeout)
    try:
        samples = remote.fetch(prefix)
    except httpx.HTTPError as e:
        click.echo(f"Couldn't fetch {url}: {e}")
        raise SystemExit(1)
    except ValueError as e:
        click.echo(f"Couldn't parse metrics from {url}: {e}")
        raise SystemExit(1)
    finally:
        remote.close()

    Console().print(render_samples(samples, title=remote.name()))


if __name__ == "__main__":
    cli()
