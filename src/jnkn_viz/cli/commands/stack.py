"""
Stack Command - Turn a captured debug session into a stackTrace message.
"""

import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from ...core.model import GraphModel
from ...core.stacktrace import DebugSession, stack_trace_message
from ..utils import echo_error, load_json


@click.command()
@click.argument("frames_file", type=click.Path(exists=True, dir_okay=False))
@click.option("-g", "--graph", "graph_file", required=True,
              type=click.Path(exists=True, dir_okay=False),
              help="Graph JSON with nodes and links")
def stack(frames_file: str, graph_file: str) -> None:
    """
    Correlate debugger frames with graph nodes.

    FRAMES_FILE holds a session ({sessionId, frames: [{source: {path}}]}).
    Prints the stackTrace message the panel would receive.
    """
    graph_data = load_json(Path(graph_file))
    session_data = load_json(Path(frames_file))
    if graph_data is None or session_data is None:
        sys.exit(1)
    if not isinstance(graph_data, dict):
        echo_error(f"Expected a JSON object with nodes and links in {graph_file}")
        sys.exit(1)

    try:
        session = DebugSession.model_validate(session_data)
    except ValidationError as e:
        echo_error(f"Invalid debug session in {frames_file}: {e.error_count()} error(s)")
        sys.exit(1)

    model = GraphModel()
    model.replace(graph_data.get("nodes", []), graph_data.get("links", graph_data.get("edges", [])))

    click.echo(json.dumps(stack_trace_message(model, session), indent=2))
