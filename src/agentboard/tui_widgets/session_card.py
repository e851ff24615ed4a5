"""
Session card widget for the board view.

One focusable line per session: status, name, agent, model, bead, elapsed.
"""

from textual.widgets import Static
from rich.text import Text

from ..models import CodingSession
from ..status_constants import get_status_symbol
from ..tui_formatters import format_cpu, format_elapsed, truncate_name


class SessionCard(Static, can_focus=True):
    """Board entry for a single coding session."""

    def __init__(self, session: CodingSession, elapsed: float = 0.0, alert: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.session = session
        self.elapsed = elapsed
        self.alert = alert

    @property
    def session_id(self) -> str:
        return self.session.id

    def update_session(self, session: CodingSession, elapsed: float, alert: bool) -> None:
        """Refresh the card from a registry snapshot."""
        self.session = session
        self.elapsed = elapsed
        self.alert = alert
        self.refresh()

    def render(self) -> Text:
        session = self.session
        emoji, color = get_status_symbol(session.status)

        content = Text()
        content.append("🔔 " if self.alert else "   ")
        content.append(f"{emoji} ")
        content.append(truncate_name(session.name), style=f"bold {color}")
        content.append(f" {session.status:<9}", style=color)
        content.append(f" {format_elapsed(self.elapsed):>8}", style="bright_white")
        content.append(f" {session.agent_type:<11}", style="cyan")
        content.append(f" {format_cpu(session.cpu_percent):>6}", style="dim")
        if session.model:
            content.append(f"  {session.model}", style="dim")
        if session.bead_id:
            content.append(f"  {session.bead_id}", style="magenta")
        return content
