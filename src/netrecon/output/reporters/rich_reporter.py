"""Rich Reporter Implementation."""

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from netrecon.model.scan import Host, ScanResult, ScanStatus, ScanTarget, format_duration, format_timestamp
from netrecon.output.reporters.base import BaseReporter

STATUS_STYLE = {
    ScanStatus.RUNNING: "blue",
    ScanStatus.COMPLETED: "green",
    ScanStatus.COMPLETED_WITH_ERRORS: "yellow",
    ScanStatus.FAILED: "red",
}

PORT_STATE_STYLE = {"open": "green", "closed": "red", "filtered": "yellow"}


class RichReporter(BaseReporter):
    """Generates high-fidelity terminal output using Rich."""

    def report_result(self, result: ScanResult) -> None:
        color = STATUS_STYLE.get(result.status, "white")

        self.console.print()
        self.console.print(Panel.fit(f"🎯 {escape(result.target)} via {result.scanner}", style="bold cyan"))
        self.console.print(f"   Status: [{color}]{result.status.value}[/]")
        self.console.print(f"   Started: {format_timestamp(result.start_time)}")
        self.console.print(f"   Duration: {format_duration(result.duration) or 'n/a'}")
        self.console.print(f"   Hosts found: {len(result.hosts)}  Ports: {result.port_count}")
        self.console.print(f"   [dim]Result ID: {result.id}[/]")
        if result.error:
            self.console.print(f"   [{color}]! {escape(result.error)}[/]")

        if result.hosts:
            table = Table(show_header=True, header_style="bold white")
            table.add_column("IP Address")
            table.add_column("Hostname")
            table.add_column("Status")
            table.add_column("OS")
            table.add_column("Open Ports")

            for host in result.hosts:
                os_display = f"{escape(host.os)} ({host.os_confidence}%)" if host.os else "[dim]—[/]"
                ports = ", ".join(f"{p.number}/{p.protocol}" for p in host.open_ports)
                host_style = "green" if host.status == "up" else "yellow"
                table.add_row(
                    host.ip_address,
                    escape(host.hostname) if host.hostname else "[dim]—[/]",
                    f"[{host_style}]{escape(host.status)}[/]",
                    os_display,
                    ports or "[dim]none[/]",
                )
            self.console.print(table)

            for host in result.hosts:
                if any(p.service or p.product for p in host.ports):
                    self._print_services(host)

        if self.show_raw and result.raw_output:
            self.console.print(Panel(Text(result.raw_output), title="Raw Output", border_style="dim"))

    def _print_services(self, host: Host) -> None:
        table = Table(title=f"Services on {host.ip_address}", show_header=True, expand=True)
        table.add_column("Port", justify="right")
        table.add_column("State")
        table.add_column("Service")
        table.add_column("Product")
        table.add_column("Version")
        table.add_column("Info", style="dim")
        for p in host.ports:
            style = PORT_STATE_STYLE.get(p.state, "white")
            table.add_row(
                f"{p.number}/{p.protocol}",
                f"[{style}]{escape(p.state)}[/]",
                escape(p.service), escape(p.product), escape(p.version), escape(p.extra_info),
            )
        self.console.print(table)

    def report_history(self, results: list[ScanResult]) -> None:
        if not results:
            self.console.print("[dim]No stored scan results.[/]")
            return

        table = Table(show_header=True)
        table.add_column("ID")
        table.add_column("Started")
        table.add_column("Scanner")
        table.add_column("Target")
        table.add_column("Status")
        for r in results:
            color = STATUS_STYLE.get(r.status, "white")
            table.add_row(r.id[:8], format_timestamp(r.start_time), r.scanner, escape(r.target), f"[{color}]{r.status.value}[/]")
        self.console.print(table)

    def report_targets(self, targets: list[ScanTarget]) -> None:
        if not targets:
            self.console.print("[dim]No targets configured yet.[/]")
            return

        table = Table(show_header=True)
        table.add_column("ID")
        table.add_column("Target")
        table.add_column("Type")
        table.add_column("Description")
        for t in targets:
            table.add_row(t.id[:8], escape(t.target), t.type.value, escape(t.description))
        self.console.print(table)
