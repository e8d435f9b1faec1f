"""
Command-line interface for parcelbot.
Provides commands for running the bot and tracking parcels from a terminal.
"""

import asyncio
import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from pathlib import Path

from parcelbot import __version__

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="parcelbot")
def cli():
    """parcelbot - multi-carrier parcel tracking for Telegram"""
    pass


@cli.command()
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    help="Path to configuration file"
)
def run(config):
    """Run the bot in foreground mode."""
    console.print(Panel.fit(
        f"[bold blue]parcelbot v{__version__}[/bold blue]\n"
        "Press Ctrl+C to stop",
        title="Starting Bot"
    ))

    from parcelbot.core import run_bot
    run_bot(config)


@cli.command()
def status():
    """Show bot configuration."""
    from parcelbot.config import BotConfig

    config = BotConfig.from_env()

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Bot Token", "set" if config.bot_token else "[red]Not set[/red]")
    table.add_row("Telegram API", config.telegram_api_url)
    table.add_row("Polling Timeout", f"{config.polling_timeout}s")
    table.add_row("Provider Timeout", f"{config.provider_timeout}s" if config.provider_timeout else "disabled")
    table.add_row(
        "Allowed Chats",
        ", ".join(str(c) for c in config.allowed_chat_ids) or "[dim]everyone[/dim]",
    )
    table.add_row("Log File", config.log_file)

    console.print(table)

    for problem in config.validate():
        color = "yellow" if problem.startswith("Warning") else "red"
        console.print(f"[{color}]{problem}[/{color}]")


@cli.command()
@click.argument("shipment_number", required=False)
def providers(shipment_number):
    """List configured providers, or those matching SHIPMENT_NUMBER."""
    from parcelbot.config import BotConfig
    from parcelbot.providers import build_registry

    registry = build_registry(BotConfig.from_env())

    table = Table(title="Tracking Providers")
    table.add_column("Provider", style="cyan")
    if shipment_number:
        table.add_column(f"Matches {shipment_number}", style="green")

    for provider in registry:
        row = [provider.get_name()]
        if shipment_number:
            row.append("✓" if provider.matches_number(shipment_number) else "[dim]-[/dim]")
        table.add_row(*row)

    if len(registry) == 0:
        console.print("[yellow]No providers configured - set carrier credentials first[/yellow]")
    else:
        console.print(table)


@cli.command()
@click.argument("shipment_number")
def track(shipment_number):
    """Track SHIPMENT_NUMBER once, printing messages to the terminal."""
    from parcelbot.config import BotConfig
    from parcelbot.commands import CommandError, TrackCommand
    from parcelbot.communication import ConsoleTransport
    from parcelbot.models import CommandArguments
    from parcelbot.providers import build_registry
    from parcelbot.tracking_service import TrackingService

    config = BotConfig.from_env()
    command = TrackCommand(
        build_registry(config),
        TrackingService(config),
        ConsoleTransport(console),
    )

    args = CommandArguments(
        command="track",
        arguments=[shipment_number],
        chat_id=0,
        message_id=0,
    )

    try:
        asyncio.run(command.execute(args))
    except CommandError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise SystemExit(1)


@cli.command()
@click.argument("config_path", type=click.Path())
def init(config_path):
    """Initialize configuration file."""
    config_path = Path(config_path)

    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    template = '''# parcelbot Configuration

# Telegram
BOT_TOKEN=123456:your-bot-token
POLLING_TIMEOUT=30
REQUEST_TIMEOUT=40
# Comma separated chat ids, empty = everyone
ALLOWED_CHAT_IDS=

# Seconds to wait for one provider, 0 = no limit
PROVIDER_TIMEOUT=60

# FedEx
FEDEX_CLIENT_ID=
FEDEX_CLIENT_SECRET=

# UPS
UPS_CLIENT_ID=
UPS_CLIENT_SECRET=

# Logging
LOG_LEVEL=INFO
LOG_FILE=logs/parcelbot.log
'''

    config_path.write_text(template, encoding='utf-8')
    console.print(f"[green]✓ Configuration file created: {config_path}[/green]")
    console.print("\nEdit this file with your settings, then run:")
    console.print(f"  parcelbot run --config {config_path}")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
