"""File formatters - Serialize a ScanResult for export.

Each formatter turns a result into bytes; FormatterRegistry picks one by
name and writes the file.
"""

import csv
import io
import json
import os
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

import yaml
from jinja2 import Environment, FileSystemLoader, select_autoescape

from netrecon.model.scan import ScanResult, format_duration, format_timestamp


class Formatter(ABC):
    """Abstract base class for output formatters."""

    mime_type: str = "application/octet-stream"
    extension: str = ""

    @abstractmethod
    def format(self, result: ScanResult) -> bytes:
        """Serialize the result."""


class JsonFormatter(Formatter):
    mime_type = "application/json"
    extension = "json"

    def format(self, result: ScanResult) -> bytes:
        return json.dumps(result.to_dict(), indent=2).encode("utf-8")


class YamlFormatter(Formatter):
    mime_type = "application/yaml"
    extension = "yaml"

    def format(self, result: ScanResult) -> bytes:
        return yaml.safe_dump(result.to_dict(), sort_keys=False, allow_unicode=True).encode("utf-8")


class XmlFormatter(Formatter):
    mime_type = "application/xml"
    extension = "xml"

    def format(self, result: ScanResult) -> bytes:
        root = ET.Element("scanResult", {"id": result.id})
        for key in ("target", "scanner"):
            ET.SubElement(root, key).text = getattr(result, key)
        ET.SubElement(root, "status").text = result.status.value
        ET.SubElement(root, "startTime").text = format_timestamp(result.start_time)
        ET.SubElement(root, "endTime").text = format_timestamp(result.end_time)
        ET.SubElement(root, "duration").text = format_duration(result.duration)
        if result.error:
            ET.SubElement(root, "error").text = result.error

        hosts_el = ET.SubElement(root, "hosts")
        for host in result.hosts:
            host_el = ET.SubElement(
                hosts_el,
                "host",
                {
                    "ipAddress": host.ip_address,
                    "hostname": host.hostname,
                    "status": host.status,
                    "os": host.os,
                    "osConfidence": str(host.os_confidence),
                },
            )
            for port in host.ports:
                ET.SubElement(
                    host_el,
                    "port",
                    {
                        "number": str(port.number),
                        "protocol": port.protocol,
                        "state": port.state,
                        "service": port.service,
                        "product": port.product,
                        "version": port.version,
                        "extraInfo": port.extra_info,
                    },
                )
        ET.SubElement(root, "rawOutput").text = result.raw_output

        ET.indent(root, space="  ")
        return ET.tostring(root, encoding="utf-8", xml_declaration=True)


class CsvFormatter(Formatter):
    mime_type = "text/csv"
    extension = "csv"

    def format(self, result: ScanResult) -> bytes:
        buf = io.StringIO()
        writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(["Target", "Scanner", "Status", "Start Time", "End Time", "Duration", "Host Count"])
        writer.writerow([
            result.target,
            result.scanner,
            result.status.value,
            format_timestamp(result.start_time),
            format_timestamp(result.end_time),
            format_duration(result.duration),
            len(result.hosts),
        ])

        if result.hosts:
            writer.writerow([])
            writer.writerow(["IP Address", "Hostname", "Status", "OS", "OS Confidence"])
            for host in result.hosts:
                writer.writerow([host.ip_address, host.hostname, host.status, host.os, host.os_confidence])

        if result.port_count:
            writer.writerow([])
            writer.writerow(["IP Address", "Port", "Protocol", "State", "Service", "Product", "Version", "Extra Info"])
            for host in result.hosts:
                for port in host.ports:
                    writer.writerow([
                        host.ip_address, port.number, port.protocol, port.state,
                        port.service, port.product, port.version, port.extra_info,
                    ])
        return buf.getvalue().encode("utf-8")


class HtmlFormatter(Formatter):
    """Standalone HTML report rendered from templates/report.html."""

    mime_type = "text/html"
    extension = "html"

    def __init__(self, template_dir: str | None = None) -> None:
        if template_dir is None:
            template_dir = os.path.join(os.path.dirname(__file__), "..", "templates")

        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )
        self.template = self.env.get_template("report.html")

    def format(self, result: ScanResult) -> bytes:
        html = self.template.render(
            result=result,
            start_time=format_timestamp(result.start_time),
            end_time=format_timestamp(result.end_time),
            duration=format_duration(result.duration),
            generated_at=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        )
        return html.encode("utf-8")


class FormatterRegistry:
    """Formatters by name, pre-loaded with the built-in ones."""

    def __init__(self) -> None:
        self._formatters: dict[str, Formatter] = {}
        self.register("json", JsonFormatter())
        self.register("xml", XmlFormatter())
        self.register("csv", CsvFormatter())
        self.register("yaml", YamlFormatter())
        self.register("html", HtmlFormatter())

    def register(self, name: str, formatter: Formatter) -> None:
        self._formatters[name] = formatter

    def get(self, name: str) -> Formatter | None:
        return self._formatters.get(name)

    def names(self) -> list[str]:
        return list(self._formatters)

    def format_and_save(self, result: ScanResult, fmt: str, path: str | Path) -> Path:
        """Format the result and write it to ``path``.

        Returns:
            The absolute path of the written file.
        """
        formatter = self.get(fmt)
        if formatter is None:
            raise ValueError(f"formatter {fmt!r} not available. Available formatters: {', '.join(self.names())}")

        data = formatter.format(result)
        out = Path(path).expanduser()
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(data)
        return out.resolve()
