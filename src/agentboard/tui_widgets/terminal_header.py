"""
Terminal header widget for TUI.

Toolbar line above the terminal pane: session name, status chip, model,
bead, elapsed time, and a marker when captures keep failing.
"""

from typing import Optional

from textual.widgets import Static
from rich.text import Text

from ..models import CodingSession
from ..status_constants import get_status_symbol
from ..tui_formatters import format_elapsed, format_status_label


class TerminalHeader(Static):
    """Header for the terminal view."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.session: Optional[CodingSession] = None
        self.elapsed: float = 0.0
        self.failures: int = 0

    def show_session(self, session: Optional[CodingSession], elapsed: float = 0.0) -> None:
        self.session = session
        self.elapsed = elapsed
        self.refresh()

    def set_failures(self, failures: int) -> None:
        self.failures = failures
        self.refresh()

    def render(self) -> Text:
        content = Text()
        content.append("← esc  ", style="dim")
        if self.session is None:
            content.append("(session gone)", style="dim italic")
            return content

        session = self.session
        emoji, color = get_status_symbol(session.status)
        content.append(session.name, style="bold")
        content.append(f"  {emoji} {format_status_label(session.status)}", style=color)
        if session.model:
            content.append(f"  {session.model}", style="dim")
        if session.bead_id:
            content.append(f"  {session.bead_id}", style="magenta")
        content.append(f"  {format_elapsed(self.elapsed)}", style="bright_white")
        if self.failures:
            content.append(f"  ⚠ capture failing ({self.failures})", style="bold red")
        content.append("   n:Nudge  r:Refresh", style="dim")
        return content
