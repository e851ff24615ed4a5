"""
View action methods for TUI.

Handles overlays and the manual session list refresh.
"""

from textual.css.query import NoMatches


class ViewActionsMixin:
    """Mixin providing view/display actions for AgentBoardTUI."""

    def action_toggle_help(self) -> None:
        """Toggle help overlay visibility."""
        from ..tui_widgets import HelpOverlay
        try:
            help_overlay = self.query_one("#help-overlay", HelpOverlay)
            if help_overlay.has_class("visible"):
                help_overlay.remove_class("visible")
            else:
                help_overlay.add_class("visible")
        except NoMatches:
            pass

    def action_refresh_sessions(self) -> None:
        """Re-discover sessions now."""
        self.refresh_sessions()
        self.notify("Refreshing sessions...", severity="information", timeout=2)
