"""Repository classes for CRUD operations on the storage layer.

All writes use explicit transactions. Read operations return model
objects from netrecon.model. Every sqlite3 error surfaces as StorageError.
"""

import sqlite3
from contextlib import nullcontext
from datetime import datetime
from typing import Any

from netrecon.errors import StorageError
from netrecon.model.scan import (
    Host,
    Port,
    ScanPreset,
    ScanResult,
    ScanStatus,
    ScanTarget,
    TargetType,
    Vulnerability,
    classify_target,
)
from netrecon.storage.db import Database


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class _Repository:
    def __init__(self, db: Database) -> None:
        self.db = db

    def _writer(self, conn: sqlite3.Connection | None):
        """Reuse the caller's transaction, or open a new one."""
        return nullcontext(conn) if conn is not None else self.db.transaction()

    def _fetchall(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            return self.db.connection().execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e

    def _fetchone(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        try:
            return self.db.connection().execute(sql, params).fetchone()
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e


class TargetRepository(_Repository):
    """CRUD operations for the scan_targets table."""

    def create(self, target: str, description: str = "") -> ScanTarget:
        record = ScanTarget(target=target, type=classify_target(target), description=description)
        with self.db.transaction() as conn:
            conn.execute(
                """INSERT INTO scan_targets (id, target, type, description, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (record.id, record.target, record.type.value, record.description,
                 _ts(record.created_at), _ts(record.updated_at)),
            )
        return record

    def get_by_id(self, target_id: str) -> ScanTarget | None:
        row = self._fetchone("SELECT * FROM scan_targets WHERE id = ?", (target_id,))
        return self._row_to_record(row) if row else None

    def get_by_value(self, target: str) -> ScanTarget | None:
        row = self._fetchone(
            "SELECT * FROM scan_targets WHERE target = ? ORDER BY created_at LIMIT 1", (target,)
        )
        return self._row_to_record(row) if row else None

    def get_or_create(self, target: str) -> ScanTarget:
        return self.get_by_value(target) or self.create(target)

    def get_all(self) -> list[ScanTarget]:
        """Return all targets ordered by creation date descending."""
        rows = self._fetchall("SELECT * FROM scan_targets ORDER BY created_at DESC")
        return [self._row_to_record(row) for row in rows]

    def delete(self, target_id: str) -> bool:
        """Delete a target and its results. Returns True if a row was deleted."""
        with self.db.transaction() as conn:
            cursor = conn.execute("DELETE FROM scan_targets WHERE id = ?", (target_id,))
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_record(row: Any) -> ScanTarget:
        return ScanTarget(
            id=row["id"],
            target=row["target"],
            type=TargetType(row["type"]),
            description=row["description"] or "",
            created_at=_parse_ts(row["created_at"]),
            updated_at=_parse_ts(row["updated_at"]),
        )


class ScanResultRepository(_Repository):
    """CRUD operations for the scan_results table (hosts not included)."""

    def create(
        self,
        result: ScanResult,
        target_id: str | None = None,
        conn: sqlite3.Connection | None = None,
    ) -> str:
        with self._writer(conn) as c:
            c.execute(
                """INSERT INTO scan_results
                   (id, target_id, target, scanner, status, start_time, end_time,
                    duration, raw_output, error_message)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (result.id, target_id, result.target, result.scanner, result.status.value,
                 _ts(result.start_time), _ts(result.end_time), result.duration,
                 result.raw_output, result.error or None),
            )
        return result.id

    def get_by_id(self, scan_id: str) -> ScanResult | None:
        row = self._fetchone("SELECT * FROM scan_results WHERE id = ?", (scan_id,))
        return self._row_to_record(row) if row else None

    def find_by_prefix(self, prefix: str) -> list[ScanResult]:
        """Match results by id prefix, so short ids work on the command line."""
        rows = self._fetchall(
            "SELECT * FROM scan_results WHERE id LIKE ? ORDER BY start_time DESC",
            (prefix.replace("%", "").replace("_", "") + "%",),
        )
        return [self._row_to_record(row) for row in rows]

    def get_recent(self, target_id: str | None = None, limit: int = 50) -> list[ScanResult]:
        """Return recent results, newest first, optionally for one target."""
        if target_id is not None:
            rows = self._fetchall(
                "SELECT * FROM scan_results WHERE target_id = ? ORDER BY start_time DESC LIMIT ?",
                (target_id, limit),
            )
        else:
            rows = self._fetchall(
                "SELECT * FROM scan_results ORDER BY start_time DESC LIMIT ?", (limit,)
            )
        return [self._row_to_record(row) for row in rows]

    def delete(self, scan_id: str) -> bool:
        with self.db.transaction() as conn:
            cursor = conn.execute("DELETE FROM scan_results WHERE id = ?", (scan_id,))
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_record(row: Any) -> ScanResult:
        return ScanResult(
            id=row["id"],
            target=row["target"],
            scanner=row["scanner"],
            status=ScanStatus(row["status"]),
            start_time=_parse_ts(row["start_time"]),
            end_time=_parse_ts(row["end_time"]),
            raw_output=row["raw_output"] or "",
            error=row["error_message"] or "",
        )


class HostRepository(_Repository):
    """CRUD operations for the hosts table."""

    def create(self, host: Host, conn: sqlite3.Connection | None = None) -> str:
        if host.scan_id is None:
            raise StorageError(f"host {host.ip_address} has no owning scan")
        with self._writer(conn) as c:
            c.execute(
                """INSERT INTO hosts
                   (id, scan_id, ip_address, hostname, status, os, os_confidence, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (host.id, host.scan_id, host.ip_address, host.hostname, host.status,
                 host.os, host.os_confidence, _ts(host.created_at)),
            )
        return host.id

    def get_by_scan_id(self, scan_id: str) -> list[Host]:
        rows = self._fetchall(
            "SELECT * FROM hosts WHERE scan_id = ? ORDER BY created_at, rowid", (scan_id,)
        )
        return [
            Host(
                id=row["id"],
                scan_id=row["scan_id"],
                ip_address=row["ip_address"],
                hostname=row["hostname"],
                status=row["status"],
                os=row["os"],
                os_confidence=row["os_confidence"],
                created_at=_parse_ts(row["created_at"]),
            )
            for row in rows
        ]


class PortRepository(_Repository):
    """CRUD operations for the ports table."""

    def create(self, port: Port, conn: sqlite3.Connection | None = None) -> str:
        if port.host_id is None:
            raise StorageError(f"port {port.number}/{port.protocol} has no owning host")
        with self._writer(conn) as c:
            c.execute(
                """INSERT INTO ports
                   (id, host_id, number, protocol, state, service, version, product, extra_info, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (port.id, port.host_id, port.number, port.protocol, port.state, port.service,
                 port.version, port.product, port.extra_info, _ts(port.created_at)),
            )
        return port.id

    def get_by_host_id(self, host_id: str) -> list[Port]:
        rows = self._fetchall(
            "SELECT * FROM ports WHERE host_id = ? ORDER BY number, protocol", (host_id,)
        )
        return [
            Port(
                id=row["id"],
                host_id=row["host_id"],
                number=row["number"],
                protocol=row["protocol"],
                state=row["state"],
                service=row["service"],
                version=row["version"],
                product=row["product"],
                extra_info=row["extra_info"],
                created_at=_parse_ts(row["created_at"]),
            )
            for row in rows
        ]


class VulnerabilityRepository(_Repository):
    """CRUD operations for the vulnerabilities table."""

    def create(self, vuln: Vulnerability, conn: sqlite3.Connection | None = None) -> str:
        if vuln.port_id is None:
            raise StorageError(f"vulnerability {vuln.cve} has no owning port")
        with self._writer(conn) as c:
            c.execute(
                """INSERT INTO vulnerabilities
                   (id, port_id, cve, severity, description, solution, reference_links, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (vuln.id, vuln.port_id, vuln.cve, vuln.severity, vuln.description,
                 vuln.solution, vuln.reference_links, _ts(vuln.created_at)),
            )
        return vuln.id

    def get_by_port_id(self, port_id: str) -> list[Vulnerability]:
        rows = self._fetchall("SELECT * FROM vulnerabilities WHERE port_id = ?", (port_id,))
        return [
            Vulnerability(
                id=row["id"],
                port_id=row["port_id"],
                cve=row["cve"] or "",
                severity=row["severity"],
                description=row["description"],
                solution=row["solution"],
                reference_links=row["reference_links"],
                created_at=_parse_ts(row["created_at"]),
            )
            for row in rows
        ]


class ScanConfigurationRepository(_Repository):
    """CRUD operations for named scan presets."""

    def create(self, preset: ScanPreset) -> str:
        with self.db.transaction() as conn:
            conn.execute(
                """INSERT INTO scan_configurations (id, name, scanner, ports, arguments, timing, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (preset.id, preset.name, preset.scanner, preset.ports, preset.arguments,
                 preset.timing, _ts(preset.created_at)),
            )
        return preset.id

    def get_by_name(self, name: str) -> ScanPreset | None:
        row = self._fetchone("SELECT * FROM scan_configurations WHERE name = ?", (name,))
        return self._row_to_record(row) if row else None

    def get_all(self) -> list[ScanPreset]:
        rows = self._fetchall("SELECT * FROM scan_configurations ORDER BY name")
        return [self._row_to_record(row) for row in rows]

    def delete(self, name: str) -> bool:
        with self.db.transaction() as conn:
            cursor = conn.execute("DELETE FROM scan_configurations WHERE name = ?", (name,))
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_record(row: Any) -> ScanPreset:
        return ScanPreset(
            id=row["id"],
            name=row["name"],
            scanner=row["scanner"],
            ports=row["ports"],
            arguments=row["arguments"],
            timing=row["timing"],
            created_at=_parse_ts(row["created_at"]),
        )


class ResultStore:
    """Saves and reloads complete result trees (result -> hosts -> ports)."""

    def __init__(self, db: Database) -> None:
        self.db = db
        self.results = ScanResultRepository(db)
        self.hosts = HostRepository(db)
        self.ports = PortRepository(db)

    def save(self, result: ScanResult, target_id: str | None = None) -> str:
        """Write the result and everything it owns in one transaction.

        Raises:
            StorageError: Nothing was written.
        """
        if result.status is ScanStatus.RUNNING:
            raise StorageError("cannot persist a scan that is still running")
        with self.db.transaction() as conn:
            self.results.create(result, target_id, conn=conn)
            for host in result.hosts:
                host.scan_id = result.id
                self.hosts.create(host, conn=conn)
                for port in host.ports:
                    port.host_id = host.id
                    self.ports.create(port, conn=conn)
        return result.id

    def load(self, scan_id: str) -> ScanResult | None:
        """Rebuild a stored result with its hosts and ports."""
        result = self.results.get_by_id(scan_id)
        if result is None:
            return None
        hosts = self.hosts.get_by_scan_id(scan_id)
        for host in hosts:
            host.ports = self.ports.get_by_host_id(host.id)
        result.hosts = hosts
        return result
