"""Tests for the nodestat CLI."""

import json

import pytest
from click.testing import CliRunner

from nodestat import __version__
from nodestat.main import cli

NET_DEV = """\
Inter-|   Receive          |  Transmit
 face |bytes packets errs|bytes packets errs
  eth0: 100 1 0 200 2 0
"""


@pytest.fixture
def procfs(tmp_path):
    (tmp_path / "net").mkdir()
    (tmp_path / "net" / "dev").write_text(NET_DEV)
    return str(tmp_path)


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_once_prints_exposition(procfs):
    result = CliRunner().invoke(cli, ["--procfs", procfs, "once"])
    assert result.exit_code == 0, result.output
    assert 'node_network_receive_bytes{device="eth0"} 100.0' in result.output
    assert 'node_scrape_collector_success{collector="netdev"} 1.0' in result.output


def test_once_jsonl(procfs):
    result = CliRunner().invoke(cli, ["--procfs", procfs, "once", "--output", "jsonl"])
    assert result.exit_code == 0, result.output
    record = json.loads(result.output.strip().splitlines()[-1])
    assert record["source"] == "netdev"
    values = {(s["name"], s["labels"].get("device")): s["value"] for s in record["samples"]}
    assert values[("node_network_transmit_bytes", "eth0")] == 200.0


def test_once_table(procfs):
    result = CliRunner().invoke(cli, ["--procfs", procfs, "once", "--output", "table"])
    assert result.exit_code == 0, result.output
    assert "eth0" in result.output


def test_namespace_option(procfs):
    result = CliRunner().invoke(cli, ["--procfs", procfs, "--namespace", "host", "once"])
    assert result.exit_code == 0, result.output
    assert 'host_network_receive_bytes{device="eth0"}' in result.output


def test_procfs_from_environment(procfs):
    result = CliRunner().invoke(cli, ["once"], env={"NODESTAT_PROCFS": procfs})
    assert result.exit_code == 0, result.output
    assert "node_network_receive_bytes" in result.output


def test_once_fails_when_source_missing(tmp_path):
    result = CliRunner().invoke(cli, ["--procfs", str(tmp_path / "missing"), "once"])
    assert result.exit_code == 1
    assert 'node_scrape_collector_success{collector="netdev"} 0.0' in result.output


def test_unknown_collector(procfs):
    result = CliRunner().invoke(cli, ["--procfs", procfs, "--collectors", "bogus", "once"])
    assert result.exit_code == 1
    assert "unknown collector: bogus" in result.output


def test_collectors_lists_enabled():
    result = CliRunner().invoke(cli, ["collectors"])
    assert result.exit_code == 0
    assert "* netdev" in result.output


def test_collectors_marks_disabled():
    result = CliRunner().invoke(cli, ["--collectors", "", "collectors"])
    assert result.exit_code == 0
    assert "  netdev" in result.output


def test_mock_once():
    result = CliRunner().invoke(cli, ["--mock", "once"])
    assert result.exit_code == 0, result.output
    assert 'device="wlan0"' in result.output


def test_mock_watch_jsonl_is_bounded(monkeypatch):
    from nodestat.dashboard import terminal

    calls = []
    original = terminal.run_jsonl

    def fake_run_jsonl(exporter, refresh_interval, namespace):
        calls.append((exporter.collector_names, refresh_interval, namespace))
        original(exporter, refresh_interval=0, namespace=namespace, count=2)

    monkeypatch.setattr(terminal, "run_jsonl", fake_run_jsonl)
    result = CliRunner().invoke(cli, ["--mock", "watch", "--output", "jsonl", "--refresh", "0.5"])
    assert result.exit_code == 0, result.output
    assert calls == [(["netdev"], 0.5, "node")]
    lines = [line for line in result.output.splitlines() if line.startswith("{")]
    assert len(lines) == 2
