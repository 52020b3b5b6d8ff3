"""Console output helpers shared by CLI commands."""

import json

import yaml
from rich.console import Console

from kohakuipam.cli import config as cli_config

console = Console()
err_console = Console(stderr=True)


def print_error(message: str) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    console.print(f"[bold green]OK:[/bold green] {message}")


def print_warning(message: str) -> None:
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_data(data, render_table) -> None:
    """
    Print structured data in the configured output format.

    Args:
        data: JSON-compatible data.
        render_table: Callable building a rich renderable for table output.
    """
    match cli_config.OUTPUT_FORMAT:
        case "json":
            console.print_json(json.dumps(data))
        case "yaml":
            console.print(yaml.safe_dump(data, sort_keys=False), end="")
        case _:
            console.print(render_table(data))
