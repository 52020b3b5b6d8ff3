"""Config management commands."""

import os

import typer

from kohakuipam.cli import config as cli_config
from kohakuipam.cli.output import console, print_error
from kohakuipam.plugin.config import PluginConfig

app = typer.Typer(help="Configuration commands")

# Environment variables read by the plugin server
ENV_VARS = [
    ("SOCKET_PATH", "Unix socket Docker connects to"),
    ("TCP_ADDR", "host:port to serve on TCP instead (testing only)"),
    ("STATE_FILE", "YAML file holding pools and leases"),
    ("DEFAULT_SUBNET", "Subnet for pools requested without one"),
    ("DEFAULT_SUBNET_V6", "Subnet for IPv6 pools requested without one"),
    ("LOG_LEVEL", "full|debug|info|warning"),
    ("LOG_FILE", "Log file path (empty = console only)"),
]


@app.command("show")
def show_config():
    """Show effective plugin configuration."""
    from rich.table import Table

    config = PluginConfig()
    try:
        config.load_from_env()
    except ValueError as e:
        print_error(f"Invalid environment: {e}")
        raise typer.Exit(1)

    table = Table(title="Current Configuration", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Source")

    for name, _ in ENV_VARS:
        value = getattr(config, name)
        if hasattr(value, "value"):
            value = value.value
        table.add_row(name, str(value) or "-", "env" if os.environ.get(name) else "default")

    table.add_row("OUTPUT_FORMAT", cli_config.OUTPUT_FORMAT, "default")

    console.print(table)


@app.command("env")
def show_env():
    """Show environment variables for configuration."""
    from rich.table import Table

    table = Table(title="Environment Variables", show_header=True)
    table.add_column("Variable", style="cyan")
    table.add_column("Description")
    table.add_column("Current Value", style="green")

    for var, desc in ENV_VARS:
        table.add_row(var, desc, os.environ.get(var, "-"))

    console.print(table)
