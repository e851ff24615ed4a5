"""
Session action methods for TUI.

Handles operations on the session open in the terminal view: nudging the
agent and forcing an immediate output capture.
"""

from textual import work

from ..models import NudgeResult


class SessionActionsMixin:
    """Mixin providing session actions for AgentBoardTUI."""

    def action_nudge(self) -> None:
        """Send Enter to the open session."""
        session_id = self.navigation.active_session_id
        if session_id is None:
            return
        self._nudge_async(session_id)

    @work(thread=True, group="nudge")
    def _nudge_async(self, session_id: str) -> None:
        result = self.dispatcher.nudge(session_id)
        self.call_from_thread(self._apply_nudge_result, session_id, result)

    def _apply_nudge_result(self, session_id: str, result: NudgeResult) -> None:
        if result.ok:
            self.notify(f"Nudged {session_id}", severity="information", timeout=2)
        else:
            self.notify(f"Nudge failed: {result.error}", severity="error")

    def action_refresh(self) -> None:
        """Capture the open session's output now, or re-list sessions on the board."""
        if not self.navigation.view.is_terminal:
            self.action_refresh_sessions()
            return
        if not self.poller.refresh_now():
            self.notify("Capture already in progress", severity="information", timeout=2)
