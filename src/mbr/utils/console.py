from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()
# Errors and hints go to stderr so piped json/csv output stays clean
err_console = Console(stderr=True)


def success(message: str):
    """Display success message"""
    console.print(f"✔ {message}", style="bold green")


def error(message: str, hint: Optional[str] = None):
    """Display error message, followed by a remediation hint if given"""
    err_console.print(f"✖ {message}", style="bold red")
    if hint:
        err_console.print(f"  Hint: {hint}", style="yellow")


def warning(message: str):
    """Display warning message"""
    err_console.print(f"⚠  {message}", style="bold yellow")


def info(message: str):
    """Display info message"""
    console.print(f"{message}", style="cyan")


def create_table(title: Optional[str], columns: List[str]) -> Table:
    """Create a rich table"""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    for column in columns:
        table.add_column(column)
    return table


def display_panel(content: str, title: str, style: str = "blue"):
    """Display content in a panel"""
    console.print(Panel(content, title=title, border_style=style))
