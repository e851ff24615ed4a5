"""
Session commands: list, capture, nudge, watch, launch.
"""

import asyncio
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich import print as rprint
from rich.table import Table
from rich.text import Text

from ..status_constants import AGENT_CLAUDE_CODE, AGENT_COMMANDS, get_status_symbol
from ._shared import LinesOption, app, console


def build_tmux():
    """tmux backend bound to the configured socket."""
    from ..config import get_tmux_socket
    from ..implementations import RealTmux

    return RealTmux(get_tmux_socket())


def _require_session(tmux, session: str) -> None:
    if not tmux.has_session(session):
        rprint(f"[red]Error: Session '{session}' not found[/red]")
        raise typer.Exit(code=1)


@app.command("list")
def list_sessions():
    """List coding-agent sessions with status."""
    from ..session_monitor import SessionMonitor
    from ..session_registry import SessionRegistry
    from ..tui_formatters import format_cpu, format_elapsed

    registry = SessionRegistry(SessionMonitor(build_tmux()).list_sessions())
    sessions = registry.sessions()
    if not sessions:
        rprint("[dim]No sessions found[/dim]")
        return

    table = Table(show_edge=False, header_style="bold")
    table.add_column("")
    table.add_column("Session")
    table.add_column("Status")
    table.add_column("Agent")
    table.add_column("Model")
    table.add_column("Bead")
    table.add_column("CPU", justify="right")
    table.add_column("Elapsed", justify="right")
    for s in sessions:
        emoji, color = get_status_symbol(s.status)
        table.add_row(
            emoji,
            s.name,
            Text(s.status, style=color),
            s.agent_type,
            s.model or "-",
            s.bead_id or "-",
            format_cpu(s.cpu_percent),
            format_elapsed(registry.elapsed(s.id) or 0.0),
        )
    console.print(table)


@app.command("capture")
def capture(
    session: Annotated[str, typer.Argument(help="Session name")],
    lines: LinesOption = 500,
):
    """Print the trailing output of a session."""
    from ..exceptions import CaptureUnavailableError
    from ..implementations import TmuxCaptureClient

    client = TmuxCaptureClient(build_tmux())
    try:
        text = client.capture(session, lines)
    except CaptureUnavailableError as e:
        rprint(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    console.print(Text.from_ansi(text))


@app.command("nudge")
def nudge(
    session: Annotated[str, typer.Argument(help="Session name")],
):
    """Send Enter to a session's agent."""
    from ..implementations import TmuxCommandDispatcher

    result = TmuxCommandDispatcher(build_tmux()).nudge(session)
    if not result.ok:
        rprint(f"[red]Error: {result.error}[/red]")
        raise typer.Exit(code=1)
    rprint(f"[green]✓[/green] Nudged '[bold]{session}[/bold]'")


@app.command("watch")
def watch(
    session: Annotated[str, typer.Argument(help="Session name")],
    interval: Annotated[
        Optional[float], typer.Option("--interval", "-i", min=0.1, help="Seconds between captures")
    ] = None,
    lines: Annotated[
        Optional[int], typer.Option("--lines", "-n", min=1, help="Number of trailing lines to capture")
    ] = None,
    count: Annotated[
        int, typer.Option("--count", "-c", min=0, help="Stop after this many outputs (0 = forever)")
    ] = 0,
):
    """Stream a session's output until interrupted."""
    from ..config import get_polling_config
    from ..implementations import TmuxCaptureClient

    tmux = build_tmux()
    _require_session(tmux, session)

    polling = get_polling_config()
    client = TmuxCaptureClient(tmux)
    try:
        asyncio.run(_watch(
            client,
            session,
            interval or polling.interval,
            lines or polling.max_lines,
            count,
        ))
    except KeyboardInterrupt:
        rprint("\n[dim]Stopped watching[/dim]")


async def _watch(client, session: str, interval: float, max_lines: int, count: int) -> None:
    from ..session_poller import SessionPoller

    done = asyncio.Event()
    received = 0

    def on_output(result):
        nonlocal received
        received += 1
        console.rule(f"[bold]{result.session_id}[/bold] [dim]#{result.sequence}[/dim]")
        console.print(Text.from_ansi(result.text))
        if count and received >= count:
            done.set()

    def on_failure(session_id, error, failures):
        rprint(f"[yellow]Capture failed ({failures}): {error}[/yellow]")

    poller = SessionPoller(
        client,
        interval=interval,
        max_lines=max_lines,
        on_output=on_output,
        on_failure=on_failure,
    )
    async with poller:
        await poller.bind(session)
        await done.wait()


@app.command("launch")
def launch(
    project_path: Annotated[Path, typer.Argument(help="Project directory to run the agent in")],
    agent: Annotated[
        str, typer.Option("--agent", "-a", help=f"Agent to run ({', '.join(AGENT_COMMANDS)})")
    ] = AGENT_CLAUDE_CODE,
    bead: Annotated[
        Optional[str], typer.Option("--bead", "-b", help="Bead (issue) id to work on")
    ] = None,
    prompt: Annotated[
        Optional[str], typer.Option("--prompt", "-p", help="Initial prompt to send")
    ] = None,
):
    """Start a coding agent in a new tmux session."""
    from ..exceptions import LaunchError
    from ..session_monitor import SessionMonitor

    if agent not in AGENT_COMMANDS:
        rprint(f"[red]Error: Unknown agent '{agent}'. Use: {', '.join(AGENT_COMMANDS)}[/red]")
        raise typer.Exit(code=1)

    monitor = SessionMonitor(build_tmux())
    try:
        name = monitor.launch_session(project_path, agent_type=agent, bead_id=bead, prompt=prompt)
    except LaunchError as e:
        rprint(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    rprint(f"\n[green]✓[/green] Session '[bold]{name}[/bold]' launched")
    if bead or prompt:
        rprint("  Initial prompt sent")
    rprint(f"\nTo view: [bold]agentboard watch {name}[/bold]")
