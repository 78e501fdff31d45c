"""Rich console helpers for CLI output."""

from rich.console import Console
from rich.table import Table

console = Console()
error_console = Console(stderr=True)


def print_success(message: str) -> None:
    console.print(f"[green]{message}[/green]")


def print_info(message: str) -> None:
    console.print(message)


def print_warning(message: str) -> None:
    error_console.print(f"[yellow]{message}[/yellow]")


def print_error(message: str) -> None:
    error_console.print(f"[bold red]Error:[/bold red] {message}")


def print_table(title: str, columns: list[str], rows: list[list[str]]) -> None:
    """Render rows as a table with one header per column."""
    table = Table(title=title)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*row)
    console.print(table)
