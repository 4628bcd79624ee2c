"""
Click-based CLI for netrecon.

IMPORTANT: This module only ORCHESTRATES. It never parses scanner output.
- Loads settings
- Builds the scanner registry and database
- Invokes the pipeline
- Formats output
"""

import sys

import click
from rich.console import Console
from rich.markup import escape

from netrecon import __version__
from netrecon.config import ConfigManager, Settings
from netrecon.connector.process import ScanContext
from netrecon.errors import ConfigError, NetReconError
from netrecon.logs import configure_logging
from netrecon.model.scan import ScanConfig, ScanPreset, ScanResult, split_arguments
from netrecon.output.formatters import FormatterRegistry
from netrecon.output.reporters import BaseReporter, PlainReporter, RichReporter
from netrecon.pipeline import run_scan
from netrecon.scanner.registry import ScannerRegistry, build_default_registry
from netrecon.storage.db import Database
from netrecon.storage.repositories import (
    ResultStore,
    ScanConfigurationRepository,
    ScanResultRepository,
    TargetRepository,
)

console = Console()

FORMATS = ["json", "xml", "csv", "html", "yaml"]


@click.group()
@click.version_option(version=__version__, prog_name="netrecon")
@click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False), help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """🛰  netrecon: Network Reconnaissance Toolkit.

    Run nmap or masscan, store the results, and export them as
    JSON, XML, CSV, HTML or YAML.
    """
    ctx.ensure_object(dict)
    if "settings" not in ctx.obj:
        try:
            ctx.obj["settings"] = ConfigManager(config_path).load()
        except ConfigError as e:
            raise click.ClickException(f"failed to load config: {e}")
    settings: Settings = ctx.obj["settings"]
    configure_logging(settings.logging.level, settings.logging.format, settings.logging.file, verbose)


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def _registry(ctx: click.Context) -> ScannerRegistry:
    """Build the scanner registry on first use."""
    if "registry" not in ctx.obj:
        ctx.obj["registry"] = build_default_registry()
    return ctx.obj["registry"]


def _database(ctx: click.Context) -> Database:
    """Open (and create if needed) the configured database."""
    if "db" not in ctx.obj:
        db = Database(_settings(ctx).database.path)
        db.init()
        ctx.obj["db"] = db
    return ctx.obj["db"]


def _reporter(plain: bool, show_raw: bool = False) -> BaseReporter:
    if plain or not sys.stdout.isatty():
        return PlainReporter(console, show_raw=show_raw)
    return RichReporter(console, show_raw=show_raw)


def _fail(e: Exception) -> None:
    console.print(f"[bold red]Error:[/] {escape(str(e))}")
    sys.exit(1)


def _resolve_preset(ctx: click.Context, name: str) -> ScanPreset:
    preset = _settings(ctx).scanner.presets.get(name)
    if preset is None:
        preset = ScanConfigurationRepository(_database(ctx)).get_by_name(name)
    if preset is None:
        raise click.BadParameter(f"unknown preset {name!r}", param_hint="--preset")
    return preset


def _resolve_result(ctx: click.Context, scan_id: str) -> ScanResult:
    db = _database(ctx)
    store = ResultStore(db)
    result = store.load(scan_id)
    if result is not None:
        return result
    matches = ScanResultRepository(db).find_by_prefix(scan_id)
    if len(matches) > 1:
        raise click.ClickException(f"result id {scan_id!r} is ambiguous ({len(matches)} matches)")
    if not matches:
        raise click.ClickException(f"result {scan_id!r} not found")
    return store.load(matches[0].id)


@main.command()
@click.argument("target")
@click.option("--scanner", "-s", "scanner_name", default=None, help="Scanner to use (nmap, masscan)")
@click.option("--ports", "-p", default=None, help="Ports to scan, e.g. 22,80,8000-8100")
@click.option("--timing", "-T", default=None, help="Timing template (0-5, nmap only)")
@click.option("--args", "-A", "arguments", default=None, help="Additional scanner arguments")
@click.option("--rate", "--threads", "rate", type=int, default=None, help="Packet rate (masscan only)")
@click.option("--timeout", type=float, default=None, help="Kill the scan after this many seconds")
@click.option("--preset", default=None, help="Named preset from the config file or database")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Write a report file")
@click.option("--format", "-f", "fmt", type=click.Choice(FORMATS), default="json", help="Report file format")
@click.option("--save-db/--no-save-db", default=True, help="Save results to the database")
@click.option("--plain", is_flag=True, help="Plain text output")
@click.option("--raw", is_flag=True, help="Show raw scanner output")
@click.pass_context
def scan(
    ctx: click.Context,
    target: str,
    scanner_name: str | None,
    ports: str | None,
    timing: str | None,
    arguments: str | None,
    rate: int | None,
    timeout: float | None,
    preset: str | None,
    output: str | None,
    fmt: str,
    save_db: bool,
    plain: bool,
    raw: bool,
) -> None:
    """Scan TARGET (IP, CIDR range or hostname)."""
    settings = _settings(ctx)
    try:
        overrides = {
            "ports": ports,
            "timing": timing,
            "arguments": split_arguments(arguments),
            "rate": rate if rate is not None else settings.scanner.max_threads,
            "timeout": timeout if timeout is not None else settings.scanner.default_timeout,
        }
        if preset:
            p = _resolve_preset(ctx, preset)
            config = ScanConfig.from_preset(p, **overrides)
            scanner_name = scanner_name or p.scanner
        else:
            overrides["ports"] = ports or settings.scanner.default_ports
            config = ScanConfig(**{k: v for k, v in overrides.items() if v is not None})
        scanner_name = scanner_name or settings.scanner.default_scanner

        store = targets = None
        if save_db:
            db = _database(ctx)
            store, targets = ResultStore(db), TargetRepository(db)

        context = ScanContext()
        status = (
            console.status(f"[bold blue]🔍 Scanning {escape(target)} with {scanner_name}...[/]")
            if not plain and console.is_terminal
            else None
        )
        if status:
            status.start()
        try:
            outcome = run_scan(
                _registry(ctx),
                target,
                scanner_name,
                config,
                context=context,
                store=store,
                targets=targets,
                output_path=output,
                output_format=fmt,
            )
        except KeyboardInterrupt:
            context.cancel()
            raise
        finally:
            if status:
                status.stop()
    except (ValueError, NetReconError) as e:
        _fail(e)

    _reporter(plain, raw).report_result(outcome.result)
    if outcome.saved_id:
        console.print(f"[green]✓ Saved to database:[/] {outcome.saved_id}")
    if outcome.report_path:
        console.print(f"[green]✓ Report written:[/] {outcome.report_path}")
    if outcome.failed:
        _fail(outcome.execution_error)


@main.command("scanners")
@click.pass_context
def list_scanners(ctx: click.Context) -> None:
    """List scanners whose binaries are installed."""
    registry = _registry(ctx)
    names = sorted(registry.names())
    if not names:
        console.print("[yellow]No scanners available. Install nmap or masscan.[/]")
        sys.exit(1)
    for name in names:
        scanner = registry.get(name)
        console.print(f"[bold green]{name}[/]: {scanner.runner.path}")


# ─── Targets ──────────────────────────────────────────────────────────────────


@main.group()
def target() -> None:
    """Manage scan targets."""
    pass


@target.command("add")
@click.argument("value")
@click.argument("description", required=False, default="")
@click.pass_context
def target_add(ctx: click.Context, value: str, description: str) -> None:
    """Add a new target."""
    try:
        record = TargetRepository(_database(ctx)).create(value, description)
    except NetReconError as e:
        _fail(e)
    console.print(f"[bold green]✓ Added target:[/] {escape(record.target)} ({record.type.value}) [dim]{record.id}[/]")


@target.command("list")
@click.option("--plain", is_flag=True, help="Plain text output")
@click.pass_context
def target_list(ctx: click.Context, plain: bool) -> None:
    """List all targets."""
    try:
        targets = TargetRepository(_database(ctx)).get_all()
    except NetReconError as e:
        _fail(e)
    _reporter(plain).report_targets(targets)


@target.command("remove")
@click.argument("target_id")
@click.pass_context
def target_remove(ctx: click.Context, target_id: str) -> None:
    """Remove a target and its stored results."""
    if TargetRepository(_database(ctx)).delete(target_id):
        console.print(f"[bold green]✓ Removed target:[/] {target_id}")
    else:
        console.print(f"[bold red]Error:[/] Target {target_id} not found.")
        sys.exit(1)


# ─── Results ──────────────────────────────────────────────────────────────────


@main.group()
def result() -> None:
    """View and export stored scan results."""
    pass


@result.command("list")
@click.option("--target", "target_value", default=None, help="Only results for this target")
@click.option("--limit", default=20, show_default=True)
@click.option("--plain", is_flag=True, help="Plain text output")
@click.pass_context
def result_list(ctx: click.Context, target_value: str | None, limit: int, plain: bool) -> None:
    """List recent scan results."""
    results = []
    try:
        db = _database(ctx)
        record = TargetRepository(db).get_by_value(target_value) if target_value else None
        if record is not None or not target_value:
            results = ScanResultRepository(db).get_recent(record.id if record else None, limit)
    except NetReconError as e:
        _fail(e)
    _reporter(plain).report_history(results)


@result.command("show")
@click.argument("scan_id")
@click.option("--plain", is_flag=True, help="Plain text output")
@click.option("--raw", is_flag=True, help="Show raw scanner output")
@click.pass_context
def result_show(ctx: click.Context, scan_id: str, plain: bool, raw: bool) -> None:
    """Show a stored scan result (full or unique short id)."""
    try:
        stored = _resolve_result(ctx, scan_id)
    except NetReconError as e:
        _fail(e)
    _reporter(plain, raw).report_result(stored)


@result.command("export")
@click.argument("scan_id")
@click.option("--format", "-f", "fmt", type=click.Choice(FORMATS), default="json")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Output file (default: stdout)")
@click.pass_context
def result_export(ctx: click.Context, scan_id: str, fmt: str, output: str | None) -> None:
    """Re-render a stored result in another format."""
    try:
        stored = _resolve_result(ctx, scan_id)
    except NetReconError as e:
        _fail(e)
    formatters = FormatterRegistry()
    if output:
        path = formatters.format_and_save(stored, fmt, output)
        console.print(f"[green]✓ Report written:[/] {path}")
    else:
        click.echo(formatters.get(fmt).format(stored).decode("utf-8"))


@result.command("delete")
@click.argument("scan_id")
@click.pass_context
def result_delete(ctx: click.Context, scan_id: str) -> None:
    """Delete a stored result."""
    try:
        stored = _resolve_result(ctx, scan_id)
        ScanResultRepository(_database(ctx)).delete(stored.id)
    except NetReconError as e:
        _fail(e)
    console.print(f"[bold green]✓ Deleted result:[/] {stored.id}")


# ─── Presets ──────────────────────────────────────────────────────────────────


@main.group()
def preset() -> None:
    """Manage named scan presets stored in the database."""
    pass


@preset.command("add")
@click.argument("name")
@click.option("--scanner", "-s", "scanner_name", default="nmap", show_default=True)
@click.option("--ports", "-p", default="")
@click.option("--timing", "-T", default="")
@click.option("--args", "-A", "arguments", default="")
@click.pass_context
def preset_add(ctx: click.Context, name: str, scanner_name: str, ports: str, timing: str, arguments: str) -> None:
    """Save a named preset."""
    record = ScanPreset(name=name, scanner=scanner_name, ports=ports, timing=timing, arguments=arguments)
    registry = _registry(ctx)
    scanner = registry.get(scanner_name)
    try:
        if scanner is not None:
            scanner.validate_config(ScanConfig.from_preset(record))
        ScanConfigurationRepository(_database(ctx)).create(record)
    except NetReconError as e:
        _fail(e)
    console.print(f"[bold green]✓ Saved preset:[/] {name}")


@preset.command("list")
@click.pass_context
def preset_list(ctx: click.Context) -> None:
    """List presets from the config file and the database."""
    presets = dict(_settings(ctx).scanner.presets)
    for p in ScanConfigurationRepository(_database(ctx)).get_all():
        presets.setdefault(p.name, p)
    if not presets:
        console.print("[dim]No presets configured yet.[/]")
        return
    for name, p in sorted(presets.items()):
        timing = f" -T{p.timing}" if p.timing else ""
        console.print(f"[bold green]{name}[/]: {p.scanner} ports={p.ports or '-'}{timing} {p.arguments}".rstrip())


@preset.command("remove")
@click.argument("name")
@click.pass_context
def preset_remove(ctx: click.Context, name: str) -> None:
    """Remove a stored preset."""
    if ScanConfigurationRepository(_database(ctx)).delete(name):
        console.print(f"[bold green]✓ Removed preset:[/] {name}")
    else:
        console.print(f"[bold red]Error:[/] Preset {name} not found.")
        sys.exit(1)


# ─── Config ───────────────────────────────────────────────────────────────────


@main.group()
def config() -> None:
    """View and write configuration."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Print the effective configuration as YAML."""
    import yaml

    settings = _settings(ctx)
    source = settings.source or "defaults"
    console.print(f"[dim]# source: {source}[/]")
    click.echo(yaml.safe_dump(settings.to_dict(), sort_keys=False))


@config.command("init")
@click.option("--path", type=click.Path(dir_okay=False), default=None, help="Where to write (default: ~/.netrecon/config.yaml)")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@click.pass_context
def config_init(ctx: click.Context, path: str | None, force: bool) -> None:
    """Write the current configuration to a file."""
    from pathlib import Path

    manager = ConfigManager(path)
    destination = Path(path).expanduser() if path else Path.home() / ".netrecon" / "config.yaml"
    if destination.exists() and not force:
        console.print(f"[bold red]Error:[/] {destination} exists (use --force to overwrite).")
        sys.exit(1)
    written = manager.save(_settings(ctx), destination)
    console.print(f"[bold green]✓ Config written:[/] {written}")


if __name__ == "__main__":
    main()
