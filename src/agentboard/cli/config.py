"""
Config commands: init, show, path.
"""

from typing import Annotated

import typer
from rich import print as rprint

from ._shared import config_app


CONFIG_TEMPLATE = """\
# AgentBoard configuration
# Location: ~/.agentboard/config.yaml

# tmux socket hosting the agent sessions
# tmux_socket: /tmp/agentboard-tmux-sockets/agentboard.sock

# Terminal view output streaming
# polling:
#   interval: 2.0     # seconds between captures
#   max_lines: 500    # trailing lines kept per capture

# Seconds between session list refreshes on the board
# session_refresh_interval: 3.0

# DEBUG, INFO, WARNING or ERROR
# log_level: INFO
"""


@config_app.callback(invoke_without_command=True)
def config_default(ctx: typer.Context):
    """Show current configuration (default when no subcommand given)."""
    if ctx.invoked_subcommand is None:
        _config_show()


@config_app.command("init")
def config_init(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite existing config file")
    ] = False,
):
    """Create a config file with documented defaults.

    Creates ~/.agentboard/config.yaml with all options commented out.
    Use --force to overwrite an existing config file.
    """
    from .. import config

    config.CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)

    if config.CONFIG_PATH.exists() and not force:
        rprint(f"[yellow]Config file already exists:[/yellow] {config.CONFIG_PATH}")
        rprint("[dim]Use --force to overwrite[/dim]")
        raise typer.Exit(1)

    config.CONFIG_PATH.write_text(CONFIG_TEMPLATE)
    rprint(f"[green]✓[/green] Created config file: [bold]{config.CONFIG_PATH}[/bold]")
    rprint("[dim]Edit to customize your settings[/dim]")


@config_app.command("show")
def config_show():
    """Show current configuration."""
    _config_show()


def _config_show():
    """Internal function to display current config."""
    from .. import config

    if not config.CONFIG_PATH.exists():
        rprint(f"[dim]No config file found at {config.CONFIG_PATH}[/dim]")
        rprint("[dim]Run 'agentboard config init' to create one[/dim]")
        return

    if not config.load_config():
        rprint(f"[dim]Config file is empty: {config.CONFIG_PATH}[/dim]")
        return

    polling = config.get_polling_config()
    rprint(f"[bold]Configuration[/bold] ({config.CONFIG_PATH}):\n")
    rprint(f"  tmux_socket: {config.get_tmux_socket()}")
    rprint("  polling:")
    rprint(f"    interval: {polling.interval}s")
    rprint(f"    max_lines: {polling.max_lines}")
    rprint(f"  session_refresh_interval: {config.get_session_refresh_interval()}s")
    rprint(f"  log_level: {config.get_log_level()}")


@config_app.command("path")
def config_path():
    """Show the config file path."""
    from .. import config
    print(config.CONFIG_PATH)
