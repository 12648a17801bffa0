"""
WARDEN command line interface.

Usage:
    warden scan --url https://example.com
    warden scan --url https://example.com --domain example.com --output report.json
    warden discover example.com
    warden serve --port 3000
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional, Tuple, Dict

import click
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .capabilities import builtin_capabilities
from .config import Settings, load_settings
from .core import ConfigurationError, InvalidTargetError, ScanOptions, Severity, Target, WardenError
from .integrated_scanner import IntegratedScanner
from .log_config import configure_logging


console = Console()

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "cyan",
    Severity.INFO: "dim",
}


def _parse_pairs(values: Tuple[str, ...], separator: str, label: str) -> Dict[str, str]:
    pairs = {}
    for value in values:
        key, sep, val = value.partition(separator)
        if not sep or not key.strip():
            raise click.BadParameter(f"expected NAME{separator}VALUE, got {value!r}", param_hint=label)
        pairs[key.strip()] = val.strip()
    return pairs


def _load(ctx: click.Context) -> Settings:
    settings: Settings = ctx.obj["settings"]
    configure_logging(settings.log_level, settings.log_json)
    return settings


@click.group()
@click.version_option(version=__version__, prog_name="WARDEN")
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), help='YAML settings file')
@click.option('--log-level', default=None, help='Override log level (debug, info, warning, error)')
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]):
    """
    WARDEN - Pluggable Vulnerability Scanning Orchestrator

    Runs every registered detector against a target and summarizes the findings.
    """
    try:
        settings = load_settings(config_path)
        if log_level:
            settings = Settings.model_validate({**settings.model_dump(), "log_level": log_level})
    except (ConfigurationError, ValueError) as e:
        raise click.ClickException(str(e))

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.option('--url', help='Target URL')
@click.option('--domain', help='Target domain (also runs passive recon)')
@click.option('--ip', help='Target IP address')
@click.option('--timeout', default=10.0, type=float, help='Per-request timeout in seconds (default: 10)')
@click.option('--depth', default=3, type=int, help='Scan depth hint (default: 3)')
@click.option('--user-agent', help='User-Agent header for probes')
@click.option('--follow-redirects/--no-follow-redirects', default=True, help='Follow HTTP redirects')
@click.option('--header', 'headers', multiple=True, help='Extra header NAME:VALUE (repeatable)')
@click.option('--cookie', 'cookies', multiple=True, help='Cookie NAME=VALUE (repeatable)')
@click.option('--proxy', help='Proxy host:port or URL')
@click.option('--output', type=click.Path(dir_okay=False), help='Save results to JSON file')
@click.pass_context
def scan(
    ctx: click.Context,
    url: Optional[str],
    domain: Optional[str],
    ip: Optional[str],
    timeout: float,
    depth: int,
    user_agent: Optional[str],
    follow_redirects: bool,
    headers: Tuple[str, ...],
    cookies: Tuple[str, ...],
    proxy: Optional[str],
    output: Optional[str],
):
    """
    Scan a target with every built-in capability.

    Example:
        warden scan --url https://example.com
        warden scan --url https://example.com --domain example.com --output report.json
    """
    settings = _load(ctx)

    try:
        target = Target(url=url, domain=domain, ip=ip)
    except InvalidTargetError as e:
        raise click.UsageError(str(e))

    options = ScanOptions(
        timeout=timeout,
        depth=depth,
        user_agent=user_agent or settings.user_agent,
        follow_redirects=follow_redirects,
        headers=_parse_pairs(headers, ":", "--header"),
        cookies=_parse_pairs(cookies, "=", "--cookie"),
        proxy=proxy,
    )

    console.print("\n" + "=" * 80)
    console.print("WARDEN - Vulnerability Scanning Orchestrator")
    console.print("=" * 80 + "\n")
    console.print(f"[green]Target:[/green] {target.describe()}")
    console.print(f"[green]Capabilities:[/green] {', '.join(c.id for c in builtin_capabilities())}")
    console.print(f"[green]Admission:[/green] {settings.max_scans_per_second} scans/sec")
    console.print()

    scanner = IntegratedScanner(settings)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("[cyan]Scanning...", total=None)
            report = asyncio.run(scanner.scan(target, options))
            progress.update(task, description="[green]Scan complete!")

    except KeyboardInterrupt:
        console.print("\n\n[yellow]Scan interrupted by user[/yellow]")
        sys.exit(1)

    except WardenError as e:
        console.print(f"\n[bold red]Error during scan:[/bold red] {e}")
        sys.exit(1)

    result = report["scan"]
    console.print(IntegratedScanner.get_summary(result))
    _print_issues(result.issues)

    if report["discovery"] is not None:
        discovery = report["discovery"]
        console.print(
            f"[green]Passive recon:[/green] {len(discovery.assets)} assets, "
            f"{len(discovery.relationships)} relationships"
        )

    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            json.dump(IntegratedScanner.to_dict(report), f, indent=2)
        console.print(f"\n[green]Results saved to:[/green] {output_path}")


def _print_issues(issues):
    if not issues:
        console.print("[green]No issues detected[/green]\n")
        return

    console.print("\n[bold red]DISCOVERED ISSUES[/bold red]")
    console.print("=" * 80 + "\n")

    for i, issue in enumerate(issues, 1):
        style = SEVERITY_STYLES[issue.severity]
        console.print(f"[bold]{i}. {issue.title}[/bold]")
        console.print(f"  Severity: [{style}]{issue.severity.value.upper()}[/{style}]")
        if issue.cwe:
            console.print(f"  CWE: {issue.cwe}")
        if issue.location.url:
            console.print(f"  URL: {issue.location.url}")
        if issue.remediation:
            console.print(f"  Remediation: {issue.remediation}")
        console.print()


@cli.command()
@click.argument('domain')
@click.option('--output', type=click.Path(dir_okay=False), help='Save results to JSON file')
@click.pass_context
def discover(ctx: click.Context, domain: str, output: Optional[str]):
    """Passive asset discovery for DOMAIN."""
    settings = _load(ctx)
    scanner = IntegratedScanner(settings)

    result = asyncio.run(scanner.discover(domain))

    table = Table(title=f"Assets for {domain}")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Type", style="green")
    table.add_column("Source", style="yellow")
    for asset in result.assets:
        table.add_row(asset.name, asset.asset_type.value, str(asset.metadata.get("source", "")))
    console.print(table)

    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            json.dump(result.to_dict(), f, indent=2)
        console.print(f"\n[green]Results saved to:[/green] {output_path}")


@cli.command()
@click.option('--host', default=None, help='Bind address (default from settings)')
@click.option('--port', default=None, type=int, help='Port (default from settings)')
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int]):
    """Run the HTTP API server."""
    from .api import run_server

    settings = _load(ctx)
    overrides = {key: value for key, value in (("host", host), ("port", port)) if value is not None}
    if overrides:
        settings = settings.model_copy(update=overrides)

    run_server(settings)


@cli.command()
def capabilities():
    """List the built-in detector capabilities."""
    table = Table(title="Registered Capabilities")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Description", style="yellow")

    for capability in builtin_capabilities():
        table.add_row(capability.id, capability.name, capability.description)

    console.print(table)


@cli.command()
def version():
    """Show version information."""
    console.print(f"\n[bold cyan]WARDEN v{__version__}[/bold cyan]")
    console.print("[cyan]Pluggable Vulnerability Scanning Orchestrator[/cyan]\n")


if __name__ == '__main__':
    cli()
