"""
Replay Command - Feed a recorded message transcript through the engine.

The transcript is a JSON-lines file of host messages. They are dispatched in
order against the headless backend on a virtual clock, so deferred work
(reheat, focus retries) settles between messages. The resolved visual
properties of the final view are printed as tables.

Usage:
    jnkn-viz replay session.jsonl
    jnkn-viz replay session.jsonl --controls viz.toml --json
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from ...config import load_controls_file
from ...context import QueueHost, default_controls
from ...dispatch import build_dispatcher
from ...render.headless import headless_backends
from ...scheduling import ManualScheduler
from ..utils import echo_error, echo_info, echo_warning, link_table, load_transcript, node_table

console = Console()

# Virtual time allowed for deferred work to settle after each message
SETTLE_MS = 2000


@click.command()
@click.argument("transcript", type=click.Path(exists=True, dir_okay=False))
@click.option("--controls", "controls_file", type=click.Path(dir_okay=False), default=None,
              help="TOML file with a [controls] table of overrides")
@click.option("--limit", default=25, show_default=True, help="Maximum rows per table")
@click.option("--json", "as_json", is_flag=True, help="Print the final view as JSON")
def replay(transcript: str, controls_file: Optional[str], limit: int, as_json: bool) -> None:
    """
    Replay a JSON-lines message transcript headlessly.
    """
    controls = default_controls()
    if controls_file:
        controls = controls.merge(load_controls_file(Path(controls_file)))

    scheduler = ManualScheduler()
    host = QueueHost()
    dispatcher = build_dispatcher(headless_backends(), controls=controls, scheduler=scheduler, host=host)
    dispatcher.start()

    messages = load_transcript(Path(transcript))
    handled = 0
    for message in messages:
        if dispatcher.handle(message):
            handled += 1
        scheduler.run_until_idle(SETTLE_MS)

    graph = dispatcher.renderer.graph
    if graph is None:
        echo_error("No renderer is active after replay (was any data sent?)")
        sys.exit(1)

    snapshot = graph.snapshot()
    model = dispatcher.model
    focused = model.ui.focused_node

    if as_json:
        click.echo(json.dumps({
            "mode": dispatcher.renderer.mode.value,
            "dataVersion": model.data_version,
            "focused": focused.id if focused else None,
            **snapshot,
        }, indent=2, default=str))
        return

    if handled < len(messages):
        echo_warning(f"{len(messages) - handled} of {len(messages)} message(s) were not handled")

    console.print(
        f"[bold]Replayed {handled} message(s)[/bold] in "
        f"[cyan]{dispatcher.renderer.mode}[/cyan] mode "
        f"(generation {model.generation}, data version {model.data_version})"
    )
    if focused is not None:
        echo_info(f"Focused: {focused.name or focused.id}")
    if model.ui.stack_trace_edges:
        echo_info(f"Stack-trace edges: {len(model.ui.stack_trace_edges)}")

    console.print(node_table(snapshot["nodes"], limit))
    console.print(link_table(snapshot["links"], limit))
