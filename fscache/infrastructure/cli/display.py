import logging
from datetime import datetime
from typing import Any

from rich.box import HEAVY, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from fscache.domain.models.cache_item import CacheItem

logger = logging.getLogger(__name__)


class ConsoleDisplay:
    """Console output for the fscache CLI, rendered with rich."""

    def __init__(self, console: Console = None):
        self.console = console or Console()

    def display_output(self, output: Any) -> None:
        """Prints a command result as plain text (no markup interpretation)."""
        self.console.print(Text(str(output)))

    def display_item(self, item: CacheItem) -> None:
        """Shows a cache item with its tags and expiry as a table."""
        expiration = item.get_expiration_timestamp()
        expires = datetime.fromtimestamp(expiration).isoformat(sep=" ") if expiration else "never"

        table = Table(box=SIMPLE, show_header=False)
        table.add_column("Field", style="bold cyan")
        table.add_column("Value")
        table.add_row("key", Text(item.get_key()))
        table.add_row("value", Text(repr(item.get())))
        table.add_row("tags", Text(", ".join(item.get_previous_tags()) or "-"))
        table.add_row("expires", expires)
        self.console.print(table)

    def display_error(self, error_message: str) -> None:
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1),
        )
        self.console.print(panel)

    def display_info(self, info_message: str) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1),
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str) -> None:
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1),
        )
        self.console.print(panel)
