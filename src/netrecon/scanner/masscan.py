"""Masscan Scanner - High-rate port sweeps.

masscan emits one JSON object per discovery. Lines are decoded independently
and folded into one Host per IP; anything that does not decode to a record
is skipped.
"""

import json
import logging
from typing import Any

from netrecon.errors import InvalidConfigError
from netrecon.model.scan import Host, Port, ScanConfig
from netrecon.scanner.base import BaseScanner, normalize_port_state, validate_port_spec

logger = logging.getLogger(__name__)

DEFAULT_RATE = 1000
MAX_RATE = 100000


class MasscanScanner(BaseScanner):
    """Scanner adapter for masscan."""

    name = "masscan"
    executable = "masscan"

    def validate_config(self, config: ScanConfig) -> None:
        if not config.ports:
            raise InvalidConfigError("ports must be specified for masscan")
        validate_port_spec(config.ports)

        if config.rate is not None:
            if config.rate < 0:
                raise InvalidConfigError(f"rate must not be negative: {config.rate}")
            if config.rate > MAX_RATE:
                raise InvalidConfigError(f"rate too high: {config.rate} (max {MAX_RATE})")

    def build_args(self, target: str, config: ScanConfig) -> list[str]:
        rate = config.rate if config.rate else DEFAULT_RATE
        args = [target, "-p", config.ports, "--rate", str(rate), "--output-format", "json"]
        args += list(config.arguments)
        return args

    def parse_output(self, raw: str) -> list[Host]:
        hosts: dict[str, Host] = {}
        skipped = 0

        for line in raw.splitlines():
            record = self._decode_line(line)
            if record is None:
                if line.strip() not in ("", "[", "]"):
                    skipped += 1
                continue

            ip = record["ip"]
            host = hosts.get(ip)
            if host is None:
                # masscan only reports hosts that answered.
                host = Host(ip_address=ip, status="up")
                hosts[ip] = host

            for entry in record.get("ports") or []:
                port = self._parse_port(entry)
                if port is not None:
                    host.add_port(port)

        if skipped:
            logger.debug("Skipped %d undecodable masscan lines", skipped)
        return list(hosts.values())

    @staticmethod
    def _decode_line(line: str) -> dict[str, Any] | None:
        text = line.strip().rstrip(",")
        if not text or text in ("[", "]"):
            return None
        try:
            record = json.loads(text)
        except json.JSONDecodeError:
            return None
        if not isinstance(record, dict) or not isinstance(record.get("ip"), str) or not record["ip"]:
            return None
        if record.get("ports") is not None and not isinstance(record["ports"], list):
            return None
        return record

    @staticmethod
    def _parse_port(entry: Any) -> Port | None:
        if not isinstance(entry, dict):
            return None
        try:
            number = int(entry.get("port"))
        except (TypeError, ValueError, OverflowError):
            return None
        protocol = str(entry.get("proto") or "tcp").lower()
        if protocol not in ("tcp", "udp") or not 1 <= number <= 65535:
            return None

        extra = []
        if entry.get("reason"):
            extra.append(f"reason={entry['reason']}")
        if entry.get("ttl") is not None:
            extra.append(f"ttl={entry['ttl']}")

        # banner records carry {"service": {"name": ..., "banner": ...}}
        service = entry.get("service")
        service_name = str(service.get("name", "")) if isinstance(service, dict) else ""

        return Port(
            number=number,
            protocol=protocol,
            state=normalize_port_state(str(entry.get("status") or "open")),
            service=service_name,
            extra_info=" ".join(extra),
        )
