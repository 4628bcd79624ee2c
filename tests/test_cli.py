"""Tests for the netrecon CLI.

Scanners run against a mocked process runner; the database lives in
tmp_path. Settings, registry and database are injected through ctx.obj.
"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from netrecon.cli import main
from netrecon.config import DatabaseSettings, Settings
from netrecon.connector.process import CommandResult
from netrecon.errors import StorageError
from netrecon.model.scan import ScanPreset, ScanResult, ScanStatus
from netrecon.scanner.masscan import MasscanScanner
from netrecon.scanner.nmap import NmapScanner
from netrecon.scanner.registry import ScannerRegistry
from netrecon.storage.repositories import ResultStore, ScanResultRepository, TargetRepository


@pytest.fixture
def settings(tmp_path):
    return Settings(database=DatabaseSettings(path=str(tmp_path / "netrecon.db")))


@pytest.fixture
def registry(mock_runner):
    r = ScannerRegistry()
    r.register(NmapScanner(runner=mock_runner))
    r.register(MasscanScanner(runner=mock_runner))
    return r


@pytest.fixture
def invoke(settings, registry, db):
    runner = CliRunner()

    def _invoke(*args):
        obj = {"settings": settings, "registry": registry, "db": db}
        return runner.invoke(main, list(args), obj=obj)

    return _invoke


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "netrecon" in result.output


def test_scan_success(invoke, mock_runner, sample_nmap_xml, db):
    mock_runner.run.return_value = CommandResult(command="nmap", stdout=sample_nmap_xml, stderr="", exit_code=0)

    result = invoke("scan", "10.0.0.5", "--plain")

    assert result.exit_code == 0, result.output
    assert "Status: completed" in result.output
    assert "22/tcp open ssh OpenSSH 8.9p1" in result.output
    assert "Saved to database" in result.output

    stored = ScanResultRepository(db).get_recent()
    assert len(stored) == 1
    assert stored[0].status == ScanStatus.COMPLETED


def test_scan_uses_default_ports_and_user_args(invoke, mock_runner):
    result = invoke("scan", "10.0.0.5", "--plain", "--no-save-db", "-T", "3", "-A", "-Pn --open")

    assert result.exit_code == 0, result.output
    args = mock_runner.run.call_args[0][0]
    assert args == ["-oX", "-", "-p", "1-1000", "-T3", "-sV", "-O", "-Pn", "--open", "10.0.0.5"]


def test_scan_with_masscan(invoke, mock_runner, sample_masscan_output):
    mock_runner.run.return_value = CommandResult(command="masscan", stdout=sample_masscan_output, stderr="", exit_code=0)

    result = invoke("scan", "10.0.0.0/24", "-s", "masscan", "-p", "80,443", "--rate", "5000", "--plain", "--no-save-db")

    assert result.exit_code == 0, result.output
    args = mock_runner.run.call_args[0][0]
    assert args[:5] == ["10.0.0.0/24", "-p", "80,443", "--rate", "5000"]
    assert "Hosts found: 2" in result.output


def test_scan_preset_from_settings(invoke, settings, mock_runner):
    settings.scanner.presets["web"] = ScanPreset(name="web", scanner="nmap", ports="80,443", timing="4")

    result = invoke("scan", "10.0.0.5", "--preset", "web", "--plain", "--no-save-db")

    assert result.exit_code == 0, result.output
    args = mock_runner.run.call_args[0][0]
    assert args[:6] == ["-oX", "-", "-p", "80,443", "-T4", "-sV"]


def test_scan_unknown_preset(invoke):
    result = invoke("scan", "10.0.0.5", "--preset", "nope", "--plain")
    assert result.exit_code == 2
    assert "unknown preset" in result.output


def test_scan_failure_exits_nonzero(invoke, mock_runner, db):
    mock_runner.run.return_value = CommandResult(command="nmap", stdout="", stderr="boom\n", exit_code=1)

    result = invoke("scan", "10.0.0.5", "--plain")

    assert result.exit_code == 1
    assert "Status: failed" in result.output
    assert "exit status 1: boom" in result.output
    assert ScanResultRepository(db).get_recent()[0].status == ScanStatus.FAILED


def test_scan_invalid_ports(invoke, mock_runner):
    result = invoke("scan", "10.0.0.5", "-p", "80-", "--plain")

    assert result.exit_code == 1
    assert "invalid port format" in result.output
    mock_runner.run.assert_not_called()


def test_scan_unknown_scanner(invoke):
    result = invoke("scan", "10.0.0.5", "-s", "zmap", "--plain")
    assert result.exit_code == 1
    assert "not available" in result.output


def test_scan_unbalanced_args(invoke, mock_runner):
    result = invoke("scan", "10.0.0.5", "--plain", "-A", "--script \"unclosed")

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "No closing quotation" in result.output
    mock_runner.run.assert_not_called()


def test_result_commands_report_storage_errors(invoke):
    with patch("netrecon.cli.ResultStore.load", side_effect=StorageError("database is locked")):
        for args in (("show", "abc"), ("export", "abc"), ("delete", "abc")):
            result = invoke("result", *args)
            assert result.exit_code == 1
            assert "database is locked" in result.output

    with patch("netrecon.cli.ScanResultRepository.get_recent", side_effect=StorageError("disk I/O error")):
        result = invoke("result", "list", "--plain")
    assert result.exit_code == 1
    assert "disk I/O error" in result.output


def test_scan_writes_report(invoke, mock_runner, sample_nmap_xml, tmp_path):
    mock_runner.run.return_value = CommandResult(command="nmap", stdout=sample_nmap_xml, stderr="", exit_code=0)
    out = tmp_path / "reports" / "scan.json"

    result = invoke("scan", "10.0.0.5", "--plain", "--no-save-db", "-o", str(out), "-f", "json")

    assert result.exit_code == 0, result.output
    assert json.loads(out.read_text())["hosts"][0]["hostname"] == "router.local"


def test_scanners(invoke):
    result = invoke("scanners")
    assert result.exit_code == 0
    assert "masscan" in result.output
    assert "nmap" in result.output


def test_scanners_none_available(settings, db):
    obj = {"settings": settings, "registry": ScannerRegistry(), "db": db}
    result = CliRunner().invoke(main, ["scanners"], obj=obj)
    assert result.exit_code == 1
    assert "No scanners available" in result.output


def test_target_commands(invoke, db):
    result = invoke("target", "add", "192.168.1.0/24", "office")
    assert result.exit_code == 0, result.output
    assert "Added target" in result.output

    result = invoke("target", "list", "--plain")
    assert result.exit_code == 0
    assert "Found 1 targets:" in result.output
    assert "192.168.1.0/24 (range): office" in result.output

    target_id = TargetRepository(db).get_all()[0].id
    result = invoke("target", "remove", target_id)
    assert result.exit_code == 0
    assert TargetRepository(db).get_all() == []

    result = invoke("target", "remove", target_id)
    assert result.exit_code == 1


def test_result_commands(invoke, db, tmp_path):
    stored = ScanResult.start("10.0.0.5", "nmap").finish(ScanStatus.COMPLETED, raw_output="<nmaprun/>")
    ResultStore(db).save(stored)

    result = invoke("result", "list", "--plain")
    assert result.exit_code == 0
    assert stored.id[:8] in result.output

    result = invoke("result", "show", stored.id[:8], "--plain")
    assert result.exit_code == 0, result.output
    assert f"SCAN: {stored.id}" in result.output

    result = invoke("result", "export", stored.id, "-f", "json")
    assert result.exit_code == 0
    assert json.loads(result.output)["id"] == stored.id

    out = tmp_path / "scan.xml"
    result = invoke("result", "export", stored.id, "-f", "xml", "-o", str(out))
    assert result.exit_code == 0
    assert out.read_text().startswith("<?xml")

    result = invoke("result", "show", "ffffffff", "--plain")
    assert result.exit_code == 1
    assert "not found" in result.output

    result = invoke("result", "delete", stored.id)
    assert result.exit_code == 0
    assert ScanResultRepository(db).get_recent() == []


def test_preset_commands(invoke):
    result = invoke("preset", "add", "web", "-p", "80,443", "-T", "4")
    assert result.exit_code == 0, result.output

    result = invoke("preset", "list")
    assert result.exit_code == 0
    assert "web" in result.output
    assert "80,443" in result.output

    result = invoke("preset", "add", "bad", "-p", "abc")
    assert result.exit_code == 1

    result = invoke("preset", "remove", "web")
    assert result.exit_code == 0
    result = invoke("preset", "remove", "web")
    assert result.exit_code == 1


def test_config_show(invoke):
    result = invoke("config", "show")
    assert result.exit_code == 0
    assert "default_scanner: nmap" in result.output


def test_config_init(invoke, tmp_path):
    path = tmp_path / "cfg" / "config.yaml"

    result = invoke("config", "init", "--path", str(path))
    assert result.exit_code == 0, result.output
    assert path.exists()

    result = invoke("config", "init", "--path", str(path))
    assert result.exit_code == 1

    result = invoke("config", "init", "--path", str(path), "--force")
    assert result.exit_code == 0


def test_bad_config_file(tmp_path):
    result = CliRunner().invoke(main, ["-c", str(tmp_path / "missing.yaml"), "scanners"])
    assert result.exit_code == 1
    assert "failed to load config" in result.output
