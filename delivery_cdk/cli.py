"""
Command-line interface for delivery-cdk.
Provides commands for serving the API and running one-off lookups.
"""

import asyncio
import json
import sys
import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from pathlib import Path

from delivery_cdk import __version__
from delivery_cdk.models import CarrierCode, TrackingResult

console = Console()

STATUS_COLORS = {
    "delivered": "green",
    "out_for_delivery": "cyan",
    "in_transit": "blue",
    "picked_up": "blue",
    "pending": "yellow",
    "exception": "red",
    "unknown": "dim",
}


@click.group()
@click.version_option(version=__version__, prog_name="delivery-cdk")
def cli():
    """delivery-cdk - Unified FedEx, UPS and Nova Poshta tracking"""
    pass


@cli.command()
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    help="Path to configuration file"
)
@click.option("--host", help="Bind address (overrides HOST)")
@click.option("--port", type=int, help="Port (overrides PORT)")
def serve(config, host, port):
    """Run the tracking API server."""
    from delivery_cdk.config import init_config
    from delivery_cdk.logging_config import setup_logging
    from delivery_cdk.server import run_server

    cfg = init_config(config)
    if host:
        cfg.host = host
    if port:
        cfg.port = port

    setup_logging(cfg)

    console.print(Panel.fit(
        f"[bold blue]delivery-cdk v{__version__}[/bold blue]\n"
        f"Listening on http://{cfg.host}:{cfg.port}\n"
        "Press Ctrl+C to stop",
        title="Starting Server"
    ))

    run_server(cfg)


@cli.command()
@click.argument("carrier", type=click.Choice([c.value for c in CarrierCode]))
@click.argument("tracking_number")
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    help="Path to configuration file"
)
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON result")
def track(carrier, tracking_number, config, as_json):
    """Look up one tracking number."""
    from delivery_cdk.config import init_config
    from delivery_cdk.exceptions import TrackingError
    from delivery_cdk.tracking.registry import build_registry

    cfg = init_config(config)
    registry = build_registry(cfg)

    adapter = registry.get(carrier)
    if adapter is None:
        console.print(f"[red]✗ Carrier \"{carrier}\" not configured[/red]")
        sys.exit(1)

    async def lookup():
        try:
            return await adapter.track(tracking_number)
        finally:
            await registry.close()

    try:
        result = asyncio.run(lookup())
    except TrackingError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_response(), indent=2))
        return

    _print_result(result)


def _print_result(result: TrackingResult):
    color = STATUS_COLORS.get(result.status, "white")
    console.print(Panel.fit(
        f"[bold]{result.tracking_number}[/bold] ({result.carrier})\n"
        f"Status: [{color}]{result.status}[/{color}]\n"
        f"Estimated delivery: {result.estimated_delivery or '[dim]n/a[/dim]'}",
        title="Tracking"
    ))

    if not result.events:
        console.print("[dim]No events[/dim]")
        return

    table = Table(title="Events")
    table.add_column("Time", style="cyan")
    table.add_column("Status")
    table.add_column("Location", style="green")
    table.add_column("Description")

    for event in result.events:
        event_color = STATUS_COLORS.get(event.status, "white")
        table.add_row(
            event.timestamp,
            f"[{event_color}]{event.status}[/{event_color}]",
            event.location,
            event.description,
        )

    console.print(table)


@cli.command()
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    help="Path to configuration file"
)
def carriers(config):
    """Show which carriers are configured."""
    from delivery_cdk.config import init_config

    cfg = init_config(config)

    configured = {
        CarrierCode.FEDEX: cfg.has_fedex(),
        CarrierCode.UPS: cfg.has_ups(),
        CarrierCode.NOVA_POSHTA: cfg.has_nova_poshta(),
    }

    table = Table(title="Carriers")
    table.add_column("Carrier", style="cyan")
    table.add_column("Status")

    for code in CarrierCode:
        if code not in configured:
            table.add_row(code.value, "[dim]No adapter[/dim]")
        elif configured[code]:
            table.add_row(code.value, "[green]Configured[/green]")
        else:
            table.add_row(code.value, "[yellow]Missing credentials[/yellow]")

    console.print(table)

    for warning in cfg.validate():
        console.print(f"[yellow]{warning}[/yellow]")


@cli.command()
@click.argument("config_path", type=click.Path())
def init(config_path):
    """Initialize configuration file."""
    config_path = Path(config_path)

    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    template = '''# delivery-cdk Configuration

# FedEx (OAuth client credentials)
FEDEX_CLIENT_ID=
FEDEX_CLIENT_SECRET=

# UPS (OAuth client credentials)
UPS_CLIENT_ID=
UPS_CLIENT_SECRET=
UPS_TRANSACTION_SRC=delivery-cdk

# Nova Poshta (API key)
NOVA_POSHTA_API_KEY=

# HTTP Server
HOST=0.0.0.0
PORT=3000
REQUEST_TIMEOUT=30

# Logging
LOG_LEVEL=INFO
LOG_FILE=
'''

    config_path.write_text(template, encoding='utf-8')
    console.print(f"[green]✓ Configuration file created: {config_path}[/green]")
    console.print("\nFill in the carrier credentials, then run:")
    console.print(f"  delivery-cdk serve --config {config_path}")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
