"""
Shared CLI state: Typer apps, console, options, and utilities.
"""

from typing import Annotated

import typer
from rich.console import Console

# Main app
app = typer.Typer(
    name="agentboard",
    help="Watch and steer coding-agent sessions running in tmux",
    no_args_is_help=False,
    invoke_without_command=True,
    rich_markup_mode="rich",
)

# Config subcommand group
config_app = typer.Typer(
    name="config",
    help="Manage configuration",
    no_args_is_help=False,
    invoke_without_command=True,
)
app.add_typer(config_app, name="config")

# Console for rich output
console = Console()

LinesOption = Annotated[
    int,
    typer.Option("--lines", "-n", min=1, help="Number of trailing lines to capture"),
]


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log debug output to the console")
    ] = False,
):
    """Launch the TUI board when no command is given."""
    if ctx.invoked_subcommand is None:
        from ..tui import run_tui

        run_tui()
        return

    from ..logging_config import setup_cli_logging

    setup_cli_logging(verbose)
