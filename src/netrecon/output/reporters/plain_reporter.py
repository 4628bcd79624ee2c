"""Plain Text Reporter Implementation."""

from netrecon.model.scan import ScanResult, ScanTarget, format_duration, format_timestamp
from netrecon.output.reporters.base import BaseReporter


class PlainReporter(BaseReporter):
    """Generates clean, text-only output."""

    def report_result(self, result: ScanResult) -> None:
        self._line(f"SCAN: {result.id}")
        self._line(f"Target: {result.target}")
        self._line(f"Scanner: {result.scanner}")
        self._line(f"Status: {result.status.value}")
        self._line(f"Duration: {format_duration(result.duration) or 'n/a'}")
        self._line(f"Hosts found: {len(result.hosts)}")
        if result.error:
            self._line(f"Error: {result.error}")

        for i, host in enumerate(result.hosts, 1):
            name = f" ({host.hostname})" if host.hostname else ""
            self._line(f"\n{i}. {host.ip_address}{name} [{host.status}]")
            if host.os:
                self._line(f"   OS: {host.os} ({host.os_confidence}%)")
            for port in host.ports:
                service = " ".join(filter(None, [port.service, port.product, port.version]))
                self._line(f"   {port.number}/{port.protocol} {port.state} {service}".rstrip())

        if self.show_raw and result.raw_output:
            self._line("\nRAW OUTPUT:")
            self._line(result.raw_output)

    def report_history(self, results: list[ScanResult]) -> None:
        if not results:
            self._line("No stored scan results.")
            return
        for r in results:
            self._line(
                f"{r.id[:8]} {format_timestamp(r.start_time)} {r.scanner} {r.target} {r.status.value}"
            )

    def report_targets(self, targets: list[ScanTarget]) -> None:
        self._line(f"Found {len(targets)} targets:")
        for t in targets:
            desc = f": {t.description}" if t.description else ""
            self._line(f"- {t.target} ({t.type.value}){desc} [{t.id[:8]}]")

    def _line(self, text: str = "") -> None:
        # Scanner data may contain brackets; never interpret it as markup.
        self.console.print(text, markup=False, highlight=False)
