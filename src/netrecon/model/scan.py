"""Scan model dataclasses - The unified result shape every scanner produces."""

import ipaddress
import shlex
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now().astimezone()


def format_timestamp(value: datetime | None) -> str:
    """Render a timestamp as RFC3339 (empty string for None)."""
    if value is None:
        return ""
    return value.isoformat(timespec="seconds")


def format_duration(seconds: float | None) -> str:
    """Render a duration in seconds as e.g. ``2.51s``."""
    if seconds is None:
        return ""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    return f"{seconds:.2f}s"


def split_arguments(text: str | None) -> tuple[str, ...]:
    """Split a shell-like argument string into tokens."""
    if not text:
        return ()
    return tuple(shlex.split(text))


class ScanStatus(Enum):
    """Lifecycle state of a scan."""

    RUNNING = "running"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"


class TargetType(Enum):
    """Kind of scan target."""

    IP = "ip"
    RANGE = "range"
    DOMAIN = "domain"


def classify_target(target: str) -> TargetType:
    """Classify a target string as a single IP, a range or a domain."""
    value = target.strip()
    try:
        ipaddress.ip_address(value)
        return TargetType.IP
    except ValueError:
        pass
    try:
        ipaddress.ip_network(value, strict=False)
        return TargetType.RANGE
    except ValueError:
        pass
    # nmap-style octet ranges, e.g. 10.0.0.1-50
    head = value.split("-", 1)[0]
    if "-" in value and head.replace(".", "").isdigit():
        return TargetType.RANGE
    return TargetType.DOMAIN


@dataclass(frozen=True)
class ScanConfig:
    """Parameters for a single scan invocation.

    Attributes:
        ports: Port spec such as ``22,80,8000-8100``. Empty means scanner default.
        timing: Timing template (nmap only, 0-5).
        arguments: Extra tokens appended verbatim after the built-in defaults.
        timeout: Seconds before the scanner process is killed.
        rate: Packet rate hint (masscan only).
        options: Adapter-specific named options.
    """

    ports: str = ""
    timing: str | int | None = None
    arguments: tuple[str, ...] = ()
    timeout: float | None = None
    rate: int | None = None
    options: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_preset(cls, preset: "ScanPreset", **overrides: Any) -> "ScanConfig":
        """Build a config from a named preset, letting explicit values win."""
        config = cls(
            ports=preset.ports,
            timing=preset.timing or None,
            arguments=split_arguments(preset.arguments),
        )
        overrides = {k: v for k, v in overrides.items() if v not in (None, "", ())}
        return replace(config, **overrides)


@dataclass
class ScanPreset:
    """A named scan configuration stored in the config file or database."""

    name: str
    scanner: str = "nmap"
    ports: str = ""
    arguments: str = ""
    timing: str = ""
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "scanner": self.scanner,
            "ports": self.ports,
            "arguments": self.arguments,
            "timing": self.timing,
            "created_at": format_timestamp(self.created_at),
        }


@dataclass
class ScanTarget:
    """A stored scan target."""

    target: str
    type: TargetType
    description: str = ""
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "target": self.target,
            "type": self.type.value,
            "description": self.description,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }


@dataclass
class Vulnerability:
    """A vulnerability attached to a port. No scanner populates this yet."""

    cve: str
    severity: str  # low, medium, high, critical
    description: str
    port_id: str | None = None
    solution: str = ""
    reference_links: str = ""
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "port_id": self.port_id,
            "cve": self.cve,
            "severity": self.severity,
            "description": self.description,
            "solution": self.solution,
            "reference_links": self.reference_links,
            "created_at": format_timestamp(self.created_at),
        }


@dataclass
class Port:
    """A port discovered on a host."""

    number: int
    protocol: str = "tcp"  # tcp, udp
    state: str = "open"  # open, closed, filtered
    service: str = ""
    version: str = ""
    product: str = ""
    extra_info: str = ""
    host_id: str | None = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)

    def __post_init__(self) -> None:
        if not 1 <= self.number <= 65535:
            raise ValueError(f"Port number out of range: {self.number}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "protocol": self.protocol,
            "state": self.state,
            "service": self.service,
            "version": self.version,
            "product": self.product,
            "extra_info": self.extra_info,
        }


@dataclass
class Host:
    """A host discovered by a scan. Owns its ports."""

    ip_address: str
    hostname: str = ""
    status: str = "up"  # up, down, filtered
    os: str = ""
    os_confidence: int = 0
    ports: list[Port] = field(default_factory=list)
    scan_id: str | None = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)

    def __post_init__(self) -> None:
        if not self.ip_address:
            raise ValueError("Host requires an IP address")
        if not 0 <= self.os_confidence <= 100:
            raise ValueError("OS confidence must be between 0 and 100")

    def add_port(self, port: Port) -> Port:
        """Attach a port, merging duplicates on (number, protocol)."""
        for existing in self.ports:
            if existing.number == port.number and existing.protocol == port.protocol:
                return existing
        port.host_id = self.id
        self.ports.append(port)
        return port

    @property
    def open_ports(self) -> list[Port]:
        return [p for p in self.ports if p.state == "open"]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ip_address": self.ip_address,
            "hostname": self.hostname,
            "status": self.status,
            "os": self.os,
            "os_confidence": self.os_confidence,
            "ports": [p.to_dict() for p in self.ports],
        }


@dataclass
class ScanResult:
    """Unified result of one scanner run.

    Created with status ``running`` by :meth:`start` and finalized exactly
    once by :meth:`finish`. Treat as read-only afterwards.
    """

    target: str
    scanner: str
    status: ScanStatus = ScanStatus.RUNNING
    start_time: datetime = field(default_factory=_now)
    end_time: datetime | None = None
    hosts: list[Host] = field(default_factory=list)
    raw_output: str = ""
    error: str = ""
    id: str = field(default_factory=_new_id)

    @classmethod
    def start(cls, target: str, scanner: str) -> "ScanResult":
        return cls(target=target, scanner=scanner)

    def finish(
        self,
        status: ScanStatus,
        *,
        hosts: list[Host] | None = None,
        raw_output: str = "",
        error: str = "",
    ) -> "ScanResult":
        """Finalize the result. Can only be called once."""
        if self.status is not ScanStatus.RUNNING:
            raise RuntimeError(f"Scan result {self.id} is already finalized ({self.status.value})")
        if status is ScanStatus.RUNNING:
            raise ValueError("Cannot finish a scan with status running")
        if status is ScanStatus.FAILED and hosts:
            raise ValueError("A failed scan cannot carry hosts")
        if status in (ScanStatus.FAILED, ScanStatus.COMPLETED_WITH_ERRORS) and not error:
            raise ValueError(f"Status {status.value} requires an error message")

        self.hosts = list(hosts or [])
        for host in self.hosts:
            host.scan_id = self.id
        self.raw_output = raw_output
        self.error = error
        self.end_time = _now()
        self.status = status
        return self

    @property
    def duration(self) -> float | None:
        """Elapsed seconds, or None while running."""
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @property
    def succeeded(self) -> bool:
        return self.status in (ScanStatus.COMPLETED, ScanStatus.COMPLETED_WITH_ERRORS)

    @property
    def port_count(self) -> int:
        return sum(len(h.ports) for h in self.hosts)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "target": self.target,
            "scanner": self.scanner,
            "status": self.status.value,
            "start_time": format_timestamp(self.start_time),
            "end_time": format_timestamp(self.end_time),
            "duration": format_duration(self.duration),
            "hosts": [h.to_dict() for h in self.hosts],
            "raw_output": self.raw_output,
        }
        if self.error:
            data["error"] = self.error
        return data
