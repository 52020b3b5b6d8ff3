"""Offline state file commands."""

import asyncio
from typing import Annotated

import typer

from kohakuipam.cli.formatters import format_lease_table, format_pool_table
from kohakuipam.cli.output import print_data, print_error
from kohakuipam.ipam.exceptions import StateIOError
from kohakuipam.ipam.store import StateStore
from kohakuipam.plugin.config import config

app = typer.Typer(help="Inspect the persisted state file")


@app.command("show")
def show_state(
    file: Annotated[
        str | None,
        typer.Option("--file", "-F", help="State file (default: STATE_FILE)"),
    ] = None,
):
    """
    Print pools and leases stored in a state file.

    Reads the file directly, so it works while the plugin is stopped.
    """
    path = file or config.STATE_FILE
    store = StateStore(path)
    if not store.file_path.exists():
        print_error(f"State file not found: {path}")
        raise typer.Exit(1)

    try:
        state = asyncio.run(store.reload())
    except StateIOError as e:
        print_error(str(e))
        raise typer.Exit(1)

    document = state.to_document()
    pools = [
        {"pool_id": p["pool_id"], "subnet": p["subnet"], "gateway": p["gateway"]}
        for p in document["pools"].values()
    ]
    leases = [
        {
            "address": lease["ip_address"],
            "holder": lease["container_name"],
            "granted_at": lease["lease_time"],
        }
        for lease in document["leases"]
    ]

    def render(data):
        from rich.console import Group

        return Group(format_pool_table(data["pools"]), format_lease_table(data["leases"]))

    print_data({"pools": pools, "leases": leases}, render)
