"""Nmap Scanner - Thorough service and OS fingerprinting.

Runs nmap with XML written to stdout and maps each <host> element to a Host,
including its <port> elements.
"""

import xml.etree.ElementTree as ET

from netrecon.errors import InvalidConfigError, OutputParseError
from netrecon.model.scan import Host, Port, ScanConfig
from netrecon.scanner.base import BaseScanner, normalize_port_state, validate_port_spec

TIMING_MIN = 0
TIMING_MAX = 5


class NmapScanner(BaseScanner):
    """Scanner adapter for nmap."""

    name = "nmap"
    executable = "nmap"

    def validate_config(self, config: ScanConfig) -> None:
        if config.ports:
            validate_port_spec(config.ports)

        if config.timing not in (None, ""):
            try:
                timing = int(str(config.timing))
            except ValueError:
                timing = None
            if timing is None or not TIMING_MIN <= timing <= TIMING_MAX:
                raise InvalidConfigError(
                    f"invalid timing template: {config.timing} (must be {TIMING_MIN}-{TIMING_MAX})"
                )

    def build_args(self, target: str, config: ScanConfig) -> list[str]:
        args = ["-oX", "-"]
        if config.ports:
            args += ["-p", config.ports]
        if config.timing not in (None, ""):
            args.append(f"-T{int(str(config.timing))}")
        # Service version and OS detection are always on.
        args += ["-sV", "-O"]
        args += list(config.arguments)
        args.append(target)
        return args

    def parse_output(self, raw: str) -> list[Host]:
        try:
            root = ET.fromstring(raw)
        except ET.ParseError as e:
            raise OutputParseError(f"failed to parse nmap XML: {e}") from e

        if root.tag != "nmaprun":
            raise OutputParseError(f"unexpected nmap XML root element: <{root.tag}>")

        hosts: list[Host] = []
        for node in root.iter("host"):
            host = self._parse_host(node)
            if host is not None:
                hosts.append(host)
        return hosts

    def _parse_host(self, node: ET.Element) -> Host | None:
        ip_address = self._pick_address(node)
        if not ip_address:
            return None

        status_el = node.find("status")
        status = status_el.get("state", "") if status_el is not None else ""

        hostname = ""
        hostname_el = node.find("hostnames/hostname")
        if hostname_el is not None:
            hostname = hostname_el.get("name", "")

        os_name = ""
        os_confidence = 0
        # nmap orders matches by accuracy; the first one is the best guess.
        osmatch = node.find("os/osmatch")
        if osmatch is not None:
            os_name = osmatch.get("name", "")
            os_confidence = self._to_int(osmatch.get("accuracy"), 0)

        host = Host(
            ip_address=ip_address,
            hostname=hostname,
            status=status or "up",
            os=os_name,
            os_confidence=max(0, min(100, os_confidence)),
        )
        for port_el in node.findall("ports/port"):
            port = self._parse_port(port_el)
            if port is not None:
                host.add_port(port)
        return host

    def _pick_address(self, node: ET.Element) -> str:
        addresses = node.findall("address")
        for addrtype in ("ipv4", "ipv6"):
            for addr in addresses:
                if addr.get("addrtype") == addrtype and addr.get("addr"):
                    return addr.get("addr", "")
        return ""

    def _parse_port(self, node: ET.Element) -> Port | None:
        protocol = node.get("protocol", "")
        number = self._to_int(node.get("portid"), 0)
        if protocol not in ("tcp", "udp") or not 1 <= number <= 65535:
            return None

        state_el = node.find("state")
        raw_state = state_el.get("state", "") if state_el is not None else ""
        state = normalize_port_state(raw_state)

        service = node.find("service")
        attrs = service.attrib if service is not None else {}
        return Port(
            number=number,
            protocol=protocol,
            state=state,
            service=attrs.get("name", ""),
            product=attrs.get("product", ""),
            version=attrs.get("version", ""),
            extra_info=attrs.get("extrainfo", ""),
        )

    @staticmethod
    def _to_int(value: str | None, default: int) -> int:
        try:
            return int(value) if value is not None else default
        except ValueError:
            return default
