"""Shared output formatting with ASCII boxes. NO class - just functions."""

import json

import click

BOX_WIDTH = 80


def print_json(data: dict) -> None:
    """Print JSON data formatted."""
    click.echo(json.dumps(data, indent=2, sort_keys=True, default=str))


def _truncate(text: str, max_len: int = 60) -> str:
    """Truncate text with ellipsis if too long."""
    return text[:max_len-3] + "..." if len(text) > max_len else text


def _top(title: str) -> str:
    return f"╭─ {title} " + "─" * max(BOX_WIDTH - len(title) - 4, 1) + "╮"


def _bottom() -> str:
    return "╰" + "─" * (BOX_WIDTH - 1) + "╯"


def success_box(title: str, rows: list[tuple[str, str]], next_cmd: str | None = None) -> None:
    """Print success box with optional Next: suggestion."""
    click.echo(_top(title))
    for label, value in rows:
        line = f"│ {label}: {_truncate(str(value), BOX_WIDTH - len(label) - 6)}"
        click.echo(line + " " * max(BOX_WIDTH - len(line), 0) + "│")
    click.echo(_bottom())
    if next_cmd:
        click.echo(f"Next: {next_cmd}")


def error_box(title: str, message: str, fix_cmd: str | None = None) -> None:
    """Print error box with optional Fix: suggestion."""
    message = _truncate(message, BOX_WIDTH - 4)
    click.echo(_top(title))
    click.echo(f"│ {message}" + " " * max(BOX_WIDTH - len(message) - 3, 0) + "│")
    click.echo(_bottom())
    if fix_cmd:
        click.echo(f"Fix: {fix_cmd}")


def table(headers: list[str], rows: list[list[str]]) -> None:
    """Print simple table for list commands."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row[:len(widths)]):
            widths[i] = max(widths[i], len(str(cell)))

    header_line = "│ " + " │ ".join(h.ljust(widths[i]) for i, h in enumerate(headers)) + " │"
    sep_line = "├" + "─" + "─┼─".join("─" * w for w in widths) + "─┤"

    click.echo("╭" + "─" * (len(header_line) - 2) + "╮")
    click.echo(header_line)
    click.echo(sep_line)
    for row in rows:
        cells = [str(row[i]).ljust(w) if i < len(row) else " " * w for i, w in enumerate(widths)]
        click.echo("│ " + " │ ".join(cells) + " │")
    click.echo("╰" + "─" * (len(header_line) - 2) + "╯")
