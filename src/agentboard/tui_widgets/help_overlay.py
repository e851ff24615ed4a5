"""
Help overlay widget for TUI.

Displays keyboard shortcuts and status reference in a two-column layout.
"""

from textual.widgets import Static
from rich.table import Table
from rich.text import Text
from rich.panel import Panel
from rich import box

from ..status_constants import ALL_STATUSES, get_status_symbol
from ..tui_formatters import format_status_label


class HelpOverlay(Static):
    """Help overlay explaining TUI controls and statuses"""

    def _build_keybindings(self) -> Text:
        t = Text()

        def section(title):
            t.append(f"  {title}\n", style="bold bright_white")
            t.append("  " + "─" * 44 + "\n", style="dim")

        def row(k, desc):
            t.append(f"  {k:<10}", style="bold cyan")
            t.append(f"{desc}\n", style="white")

        section("BOARD")
        row("j/↓", "Next session")
        row("k/↑", "Previous session")
        row("Enter", "Open terminal view")
        t.append("\n")

        section("TERMINAL")
        row("Esc", "Back to board")
        row("n", "Nudge (send Enter)")
        row("r", "Refresh output now")
        t.append("\n")

        section("OTHER")
        row("h/?", "Toggle help")
        row("q", "Quit")
        return t

    def _build_status_reference(self) -> Text:
        t = Text()
        t.append("SESSION STATUSES\n", style="bold bright_white")
        t.append("─" * 30 + "\n", style="dim")
        for status in ALL_STATUSES:
            emoji, color = get_status_symbol(status)
            t.append(f"{emoji} ")
            t.append(f"{format_status_label(status)}\n", style=f"bold {color}")
        t.append("\n🔔  ", style="")
        t.append("Stopped or errored since last visit\n", style="white")
        return t

    def render(self):
        layout = Table(
            show_header=False,
            show_edge=False,
            box=None,
            padding=(0, 2),
            expand=True,
        )
        layout.add_column("keys", ratio=3, no_wrap=True)
        layout.add_column("statuses", ratio=2)
        layout.add_row(self._build_keybindings(), self._build_status_reference())

        title = Text()
        title.append(" AGENTBOARD HELP ", style="bold bright_white")

        return Panel(
            layout,
            title=title,
            subtitle=Text("Press h or ? to close", style="dim"),
            border_style="bright_blue",
            box=box.DOUBLE,
        )
