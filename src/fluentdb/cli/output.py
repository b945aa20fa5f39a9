"""Output formatting for CLI commands."""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from fluentdb.exceptions import FluentDBError

console = Console()


class OutputFormatter:
    """Formats output for terminal or JSON mode."""

    def __init__(self, json_mode: bool = False) -> None:
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode

    def print_rows(self, rows: list[dict[str, Any]], title: str | None = None) -> None:
        """Print result rows as a Rich table or a JSON array.

        Columns are taken from the first row, in order.
        """
        if self.json_mode:
            print(json.dumps(rows, default=str, indent=2))
            return

        if not rows:
            console.print("No rows returned.", style="dim")
            return

        columns = list(rows[0])
        table = Table(title=title, show_header=True, header_style="bold magenta")
        for col in columns:
            table.add_column(col)
        for row in rows:
            table.add_row(*["NULL" if row.get(col) is None else str(row.get(col)) for col in columns])
        console.print(table)
        console.print(f"{len(rows)} row(s)", style="dim")

    def print_sql(self, sql: str, parameters: dict[str, Any]) -> None:
        """Print compiled SQL and its bound parameters."""
        if self.json_mode:
            print(json.dumps({"sql": sql, "parameters": parameters}, default=str, indent=2))
            return

        console.print(Syntax(sql, "sql", word_wrap=True))
        for placeholder, value in parameters.items():
            console.print(f"  {placeholder} = {value!r}", style="dim")

    def print_success(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Print success message.

        Args:
            message: Success message
            details: Optional details to display
        """
        if self.json_mode:
            output = {"success": True, "message": message}
            if details:
                output.update(details)
            print(json.dumps(output, default=str, indent=2))
        else:
            console.print(f"✓ {message}", style="green")
            if details:
                for key, value in details.items():
                    console.print(f"  {key}: {value}", style="dim")

    def print_error(self, error: Exception) -> None:
        """Print error message.

        Args:
            error: Exception to display
        """
        if self.json_mode:
            if isinstance(error, FluentDBError):
                print(json.dumps(error.to_dict(), default=str, indent=2))
            else:
                print(json.dumps({"error": type(error).__name__, "message": str(error)}, indent=2))
        else:
            error_text = str(error)
            if isinstance(error, FluentDBError) and error.context:
                context_str = "\n".join(f"{k}: {v}" for k, v in error.context.items())
                error_text = f"{error_text}\n\n{context_str}"

            panel = Panel(
                error_text,
                title="[red]Error[/red]",
                border_style="red",
            )
            console.print(panel)
