"""
CLI Utilities - Shared helpers for the jnkn-viz commands.

Formatted status printing, JSON / JSON-lines loading and the rich tables used
to show resolved visual properties.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from rich.table import Table


def echo_success(message: str) -> None:
    click.echo(click.style(f"✅ {message}", fg="green"))


def echo_error(message: str) -> None:
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def echo_warning(message: str) -> None:
    click.echo(click.style(f"⚠️  {message}", fg="yellow"), err=True)


def echo_info(message: str) -> None:
    click.echo(click.style(f"   {message}", dim=True))


def load_json(path: Path) -> Optional[Any]:
    """
    Load a JSON document, reporting failures to the user.

    Returns:
        The decoded document, or None if the file could not be parsed.
    """
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        echo_error(f"Invalid JSON in {path}: {e}")
        return None


def load_transcript(path: Path) -> List[Dict[str, Any]]:
    """
    Read a JSON-lines message transcript.

    Blank lines and lines starting with ``#`` are skipped; undecodable lines
    are reported and skipped.
    """
    messages: List[Dict[str, Any]] = []
    for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            messages.append(json.loads(line))
        except json.JSONDecodeError as e:
            echo_warning(f"{path.name}:{lineno}: skipping undecodable line ({e.msg})")
    return messages


def node_table(nodes: List[Dict[str, Any]], limit: int) -> Table:
    table = Table(title=f"Nodes ({len(nodes)})")
    table.add_column("ID", style="cyan")
    table.add_column("Label")
    table.add_column("Color")
    table.add_column("Size", justify="right")

    for row in nodes[:limit]:
        table.add_row(str(row["id"]), str(row["label"]), str(row["color"]), f"{row['size']:.2f}")
    return table


def link_table(links: List[Dict[str, Any]], limit: int) -> Table:
    table = Table(title=f"Links ({len(links)})")
    table.add_column("Source", style="cyan")
    table.add_column("Target", style="cyan")
    table.add_column("Type")
    table.add_column("Color")
    table.add_column("Width", justify="right")
    table.add_column("Particles", justify="right")

    for row in links[:limit]:
        table.add_row(
            str(row["source"]),
            str(row["target"]),
            str(row["type"] or "-"),
            str(row["color"]),
            f"{row['width']:.2f}",
            str(row["particles"]),
        )
    return table
