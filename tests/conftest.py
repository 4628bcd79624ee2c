"""Pytest configuration and fixtures for netrecon tests."""

import pytest
from unittest.mock import MagicMock

from netrecon.connector.process import CommandResult, ProcessRunner
from netrecon.storage.db import Database


@pytest.fixture
def mock_runner():
    """Create a mock process runner for testing."""
    runner = MagicMock(spec=ProcessRunner)
    runner.executable = "scanner"
    runner.path = "/usr/bin/scanner"

    # Default behavior: process succeeds with no output
    runner.run.return_value = CommandResult(command="test", stdout="", stderr="", exit_code=0)

    return runner


@pytest.fixture
def sample_nmap_xml():
    """Sample nmap -oX output with one host and three ports."""
    return '''<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE nmaprun>
<nmaprun scanner="nmap" args="nmap -oX - -p 22,80,443 -sV -O 10.0.0.5" start="1700000000" version="7.94">
<host starttime="1700000001" endtime="1700000009">
<status state="up" reason="echo-reply" reason_ttl="63"/>
<address addr="10.0.0.5" addrtype="ipv4"/>
<address addr="52:54:00:12:34:56" addrtype="mac" vendor="QEMU"/>
<hostnames>
<hostname name="router.local" type="PTR"/>
</hostnames>
<ports>
<port protocol="tcp" portid="22"><state state="open" reason="syn-ack" reason_ttl="63"/><service name="ssh" product="OpenSSH" version="8.9p1" extrainfo="Ubuntu Linux; protocol 2.0" method="probed" conf="10"/></port>
<port protocol="tcp" portid="80"><state state="open" reason="syn-ack" reason_ttl="63"/><service name="http" product="nginx" version="1.18.0" method="probed" conf="10"/></port>
<port protocol="tcp" portid="443"><state state="closed" reason="reset" reason_ttl="63"/><service name="https" method="table" conf="3"/></port>
</ports>
<os>
<osmatch name="Linux 3.2 - 4.9" accuracy="95" line="1"/>
<osmatch name="Linux 2.6.32" accuracy="90" line="2"/>
</os>
</host>
<runstats><finished time="1700000010" exit="success"/><hosts up="1" down="0" total="1"/></runstats>
</nmaprun>
'''


@pytest.fixture
def sample_masscan_output():
    """Sample masscan --output-format json output (two hosts, one repeated)."""
    return '''[
{   "ip": "10.0.0.1",   "timestamp": "1700000000", "ports": [ {"port": 80, "proto": "tcp", "status": "open", "reason": "syn-ack", "ttl": 64} ] },
{   "ip": "10.0.0.2",   "timestamp": "1700000001", "ports": [ {"port": 22, "proto": "tcp", "status": "open", "reason": "syn-ack", "ttl": 64} ] },
{   "ip": "10.0.0.1",   "timestamp": "1700000002", "ports": [ {"port": 443, "proto": "tcp", "status": "open", "reason": "syn-ack", "ttl": 64} ] }
]
'''


@pytest.fixture
def db(tmp_path):
    """An initialized database in a temporary directory."""
    database = Database(tmp_path / "netrecon.db")
    database.init()
    yield database
    database.close()
