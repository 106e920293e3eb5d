from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()


def print_status(status_code: int, reason: str, *, success: bool) -> None:
    """One line per response: green for 200-399, yellow otherwise."""
    colour = "green" if success else "yellow"
    console.print(f"[bold {colour}]{status_code}[/] {escape(reason)}".rstrip())


def print_failure(msg: str) -> None:
    console.print(f"[bold red]ERR[/] {escape(msg)}")


def print_body(value: Any) -> None:
    console.print_json(data=value)


def print_text(text: str) -> None:
    console.print(text, markup=False, highlight=False)


def print_records(records: list[Any], *, title: str | None = None) -> None:
    """Render a list of flat records as a table, one column per key seen."""
    columns: list[str] = []
    for rec in records:
        if isinstance(rec, dict):
            columns.extend(k for k in rec if k not in columns)
    if not columns:
        for rec in records:
            console.print(rec)
        return
    table = Table(title=title)
    for col in columns:
        table.add_column(str(col))
    for rec in records:
        row = rec if isinstance(rec, dict) else {}
        table.add_row(*("-" if row.get(c) is None else str(row.get(c)) for c in columns))
    console.print(table)
