"""
KohakuIPAM unified CLI entry point.

Usage:
    kohakuipam [OPTIONS] COMMAND [ARGS]...

Commands:
    serve     Run the Docker IPAM plugin server
    pools     List pools of a running plugin
    leases    List leases of a running plugin
    stats     Show per-pool usage
    reload    Reload state from disk in a running plugin
    state     Inspect a state file offline
    config    Configuration
"""

from typing import Annotated

import typer

from kohakuipam.cli import client
from kohakuipam.cli import config as cli_config
from kohakuipam.cli.commands import config_cmd, state
from kohakuipam.cli.formatters import (
    format_lease_table,
    format_pool_table,
    format_stats_table,
)
from kohakuipam.cli.output import (
    console,
    print_data,
    print_error,
    print_success,
    print_warning,
)
from kohakuipam.models.enums import LogLevel

app = typer.Typer(
    name="kohakuipam",
    help="KohakuIPAM Docker IPAM Plugin CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register command groups
app.add_typer(state.app, name="state", help="Inspect the persisted state file")
app.add_typer(config_cmd.app, name="config", help="Configuration")


@app.callback()
def main(
    socket_path: Annotated[
        str | None,
        typer.Option("--socket", "-S", help="Plugin socket path", envvar="SOCKET_PATH"),
    ] = None,
    tcp_addr: Annotated[
        str | None,
        typer.Option("--tcp", help="Plugin TCP address (host:port)", envvar="TCP_ADDR"),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: table|json|yaml"),
    ] = "table",
):
    """
    KohakuIPAM Docker IPAM Plugin CLI.

    Serve the plugin and inspect its pools and leases.
    """
    if socket_path:
        cli_config.SOCKET_PATH = socket_path
    if tcp_addr:
        cli_config.TCP_ADDR = tcp_addr
    cli_config.OUTPUT_FORMAT = output_format


# =============================================================================
# Server
# =============================================================================


@app.command("serve")
def serve(
    state_file: Annotated[
        str | None,
        typer.Option("--state-file", help="State file path", envvar="STATE_FILE"),
    ] = None,
    default_subnet: Annotated[
        str | None,
        typer.Option("--default-subnet", help="Default IPv4 subnet", envvar="DEFAULT_SUBNET"),
    ] = None,
    default_subnet_v6: Annotated[
        str | None,
        typer.Option(
            "--default-subnet-v6", help="Default IPv6 subnet", envvar="DEFAULT_SUBNET_V6"
        ),
    ] = None,
    log_level: Annotated[
        LogLevel | None,
        typer.Option("--log-level", "-l", help="Log verbosity", envvar="LOG_LEVEL"),
    ] = None,
    log_file: Annotated[
        str | None,
        typer.Option("--log-file", help="Log file path", envvar="LOG_FILE"),
    ] = None,
):
    """Run the Docker IPAM plugin server."""
    from kohakuipam.plugin import app as plugin_app
    from kohakuipam.plugin.config import config

    config.SOCKET_PATH = cli_config.SOCKET_PATH
    config.TCP_ADDR = cli_config.TCP_ADDR
    if state_file:
        config.STATE_FILE = state_file
    if default_subnet:
        config.DEFAULT_SUBNET = default_subnet
    if default_subnet_v6:
        config.DEFAULT_SUBNET_V6 = default_subnet_v6
    if log_level:
        config.LOG_LEVEL = log_level
    if log_file:
        config.LOG_FILE = log_file

    try:
        plugin_app.run()
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)


# =============================================================================
# Queries
# =============================================================================


@app.command("pools")
def list_pools():
    """List pools of the running plugin."""
    try:
        pools = client.get_pools()
    except client.APIError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not pools and cli_config.OUTPUT_FORMAT == "table":
        console.print("[dim]No pools.[/dim]")
        return
    print_data(pools, format_pool_table)


@app.command("leases")
def list_leases(
    pool_id: Annotated[
        str | None,
        typer.Option("--pool", "-p", help="Only leases inside this pool"),
    ] = None,
):
    """List leases of the running plugin."""
    try:
        leases = client.get_leases(pool_id)
    except client.APIError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not leases and cli_config.OUTPUT_FORMAT == "table":
        console.print("[dim]No leases.[/dim]")
        return
    print_data(leases, format_lease_table)


@app.command("stats")
def show_stats():
    """Show per-pool usage."""
    try:
        stats = client.get_stats()
    except client.APIError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_data(stats, format_stats_table)


@app.command("reload")
def reload_state():
    """Make the running plugin reload its state file."""
    try:
        reloaded = client.reload_state()
    except client.APIError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if reloaded:
        print_success("State reloaded from disk.")
    else:
        print_warning("No state file on disk, in-memory state kept.")


@app.command("version")
def version():
    """Show version information."""
    from kohakuipam import __version__

    console.print(f"KohakuIPAM v{__version__}")


def run():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
