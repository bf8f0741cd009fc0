"""
jnkn-viz CLI - Main entry point.

Each command is implemented in its own module under cli/commands/.
"""

import logging

import click

from .commands import replay, stack


@click.group()
@click.version_option(package_name="jnkn-viz")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """jnkn-viz: Dependency graph visualization engine.

    Drives the 2D/3D graph view headlessly: replays host message
    transcripts and correlates debugger stacks with graph nodes.

    \b
    Quick Start:
      jnkn-viz replay session.jsonl
      jnkn-viz stack frames.json --graph graph.json
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )


main.add_command(replay.replay)
main.add_command(stack.stack)

if __name__ == "__main__":
    main()
