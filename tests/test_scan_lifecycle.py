"""Tests for the scan lifecycle in BaseScanner.scan and ScanResult.

Verifies:
1. Process failure is reported both as a failed result and as an exception.
2. Unparseable output completes with errors and does not raise.
3. Successful scans own their hosts.
4. A result can only be finalized once.
"""

import threading

import pytest

from netrecon.connector.process import CommandResult, ScanContext
from netrecon.errors import ScanExecutionError
from netrecon.model.scan import Host, ScanConfig, ScanResult, ScanStatus, format_duration
from netrecon.scanner.masscan import MasscanScanner
from netrecon.scanner.nmap import NmapScanner


def test_successful_scan(mock_runner, sample_nmap_xml):
    mock_runner.run.return_value = CommandResult(command="nmap", stdout=sample_nmap_xml, stderr="", exit_code=0)

    result = NmapScanner(runner=mock_runner).scan("10.0.0.5", ScanConfig(ports="22,80,443"))

    assert result.status == ScanStatus.COMPLETED
    assert result.scanner == "nmap"
    assert result.target == "10.0.0.5"
    assert result.error == ""
    assert result.raw_output == sample_nmap_xml
    assert result.end_time is not None and result.end_time >= result.start_time
    assert result.duration >= 0
    assert len(result.hosts) == 1
    assert result.hosts[0].scan_id == result.id
    assert result.port_count == 3
    assert result.succeeded


def test_process_failure_is_double_reported(mock_runner):
    mock_runner.run.return_value = CommandResult(
        command="nmap", stdout="", stderr="Starting Nmap\nFailed to resolve \"nope\".\n", exit_code=1
    )

    with pytest.raises(ScanExecutionError) as exc_info:
        NmapScanner(runner=mock_runner).scan("nope", ScanConfig())

    result = exc_info.value.result
    assert result.status == ScanStatus.FAILED
    assert result.hosts == []
    assert "exit status 1" in result.error
    assert "Failed to resolve" in result.error
    assert str(exc_info.value) == result.error
    assert not result.succeeded


def test_timeout_is_a_failure(mock_runner):
    mock_runner.run.return_value = CommandResult(
        command="masscan", stdout="", stderr="", exit_code=-9, error="masscan timed out"
    )

    with pytest.raises(ScanExecutionError, match="timed out") as exc_info:
        MasscanScanner(runner=mock_runner).scan("10.0.0.0/8", ScanConfig(ports="80", timeout=1))

    assert exc_info.value.result.status == ScanStatus.FAILED


def test_unparseable_output_completes_with_errors(mock_runner):
    mock_runner.run.return_value = CommandResult(command="nmap", stdout="<nmaprun><host>", stderr="", exit_code=0)

    result = NmapScanner(runner=mock_runner).scan("10.0.0.5", ScanConfig())

    assert result.status == ScanStatus.COMPLETED_WITH_ERRORS
    assert result.error
    assert result.hosts == []
    assert result.raw_output == "<nmaprun><host>"
    assert result.succeeded


def test_masscan_garbage_output_still_completes(mock_runner):
    mock_runner.run.return_value = CommandResult(command="masscan", stdout="garbage\n", stderr="", exit_code=0)

    result = MasscanScanner(runner=mock_runner).scan("10.0.0.1", ScanConfig(ports="80"))

    assert result.status == ScanStatus.COMPLETED
    assert result.hosts == []


def test_cancelled_before_start_spawns_nothing(mock_runner):
    context = ScanContext()
    context.cancel()

    with pytest.raises(ScanExecutionError, match="cancelled") as exc_info:
        NmapScanner(runner=mock_runner).scan("10.0.0.5", ScanConfig(), context)

    mock_runner.run.assert_not_called()
    assert exc_info.value.result.status == ScanStatus.FAILED


def test_config_timeout_bounds_context(mock_runner):
    NmapScanner(runner=mock_runner).scan("10.0.0.5", ScanConfig(timeout=30))

    args, context = mock_runner.run.call_args[0]
    assert args[-1] == "10.0.0.5"
    assert 0 < context.remaining() <= 30


def test_context_cancellation_is_shared(mock_runner):
    outer = ScanContext(timeout=600)
    seen = {}

    def fake_run(args, context):
        seen["context"] = context
        return CommandResult(command="nmap", stdout="<nmaprun/>", stderr="", exit_code=0)

    mock_runner.run.side_effect = fake_run
    deadline = outer.deadline
    NmapScanner(runner=mock_runner).scan("10.0.0.5", ScanConfig(timeout=5), outer)

    assert outer.deadline == deadline
    assert seen["context"] is not outer
    assert seen["context"].remaining() <= 5
    outer.cancel()
    assert seen["context"].cancelled


def test_reused_context_keeps_no_deadline(mock_runner):
    context = ScanContext()
    scanner = NmapScanner(runner=mock_runner)

    scanner.scan("10.0.0.5", ScanConfig(timeout=0.5), context)
    scanner.scan("10.0.0.6", ScanConfig(), context)

    assert context.deadline is None
    first, second = (c[0][1] for c in mock_runner.run.call_args_list)
    assert first.deadline is not None
    assert second.deadline is None


def test_concurrent_scans_are_independent(mock_runner, sample_nmap_xml):
    mock_runner.run.return_value = CommandResult(command="nmap", stdout=sample_nmap_xml, stderr="", exit_code=0)
    scanner = NmapScanner(runner=mock_runner)
    results = []

    def worker():
        results.append(scanner.scan("10.0.0.5", ScanConfig()))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 8
    assert len({r.id for r in results}) == 8
    assert all(r.status == ScanStatus.COMPLETED for r in results)


def test_finish_only_once():
    result = ScanResult.start("10.0.0.1", "nmap")
    result.finish(ScanStatus.COMPLETED)

    with pytest.raises(RuntimeError):
        result.finish(ScanStatus.FAILED, error="late")


def test_failed_result_cannot_carry_hosts():
    result = ScanResult.start("10.0.0.1", "nmap")
    with pytest.raises(ValueError):
        result.finish(ScanStatus.FAILED, hosts=[Host(ip_address="10.0.0.1")], error="boom")


def test_error_statuses_require_message():
    with pytest.raises(ValueError):
        ScanResult.start("10.0.0.1", "nmap").finish(ScanStatus.COMPLETED_WITH_ERRORS)


def test_to_dict_omits_empty_error():
    ok = ScanResult.start("192.168.1.1", "nmap").finish(
        ScanStatus.COMPLETED,
        hosts=[Host(ip_address="192.168.1.1", os="Linux 3.2 - 4.9", os_confidence=95)],
    )
    data = ok.to_dict()
    assert "error" not in data
    assert data["status"] == "completed"
    assert data["hosts"][0]["os_confidence"] == 95
    assert data["end_time"]

    failed = ScanResult.start("192.168.1.1", "nmap").finish(ScanStatus.FAILED, error="boom")
    assert failed.to_dict()["error"] == "boom"


def test_host_validation():
    with pytest.raises(ValueError):
        Host(ip_address="")
    with pytest.raises(ValueError):
        Host(ip_address="10.0.0.1", os_confidence=101)


def test_format_duration():
    assert format_duration(None) == ""
    assert format_duration(0.25) == "250ms"
    assert format_duration(2.514) == "2.51s"
