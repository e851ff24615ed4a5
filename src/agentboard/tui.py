"""
Textual TUI for AgentBoard.

Two views share the screen: the board, listing every discovered session,
and the terminal view, streaming the captured output of one session. The
session list is refreshed in a thread worker; terminal output is streamed by
a SessionPoller running on the app's event loop.
"""

from typing import List, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.css.query import NoMatches
from textual.widgets import Header, Static
from textual import work

from . import __version__
from .config import PollingConfig, get_polling_config, get_session_refresh_interval, get_tmux_socket
from .implementations import RealTmux, TmuxCaptureClient, TmuxCommandDispatcher
from .logging_config import get_logger
from .models import CapturedOutput, CodingSession
from .navigation import NavigationCoordinator, View
from .protocols import CaptureClient, CommandDispatcher
from .session_monitor import SessionMonitor
from .session_poller import SessionPoller
from .session_registry import SessionRegistry
from .tui_actions import NavigationActionsMixin, SessionActionsMixin, ViewActionsMixin
from .tui_formatters import describe_session
from .tui_widgets import HelpOverlay, SessionCard, TerminalHeader, TerminalPane

logger = get_logger("tui")

EMPTY_BOARD_MESSAGE = "No sessions found. Start one with: agentboard launch PROJECT_PATH"


class AgentBoardTUI(
    NavigationActionsMixin,
    SessionActionsMixin,
    ViewActionsMixin,
    App,
):
    """AgentBoard TUI"""

    CSS_PATH = "tui.tcss"

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("h", "toggle_help", "Help"),
        ("question_mark", "toggle_help", "Help"),
        ("j", "focus_next_session", "Next"),
        ("down", "focus_next_session", "Next"),
        ("k", "focus_previous_session", "Previous"),
        ("up", "focus_previous_session", "Previous"),
        ("enter", "open_terminal", "Open"),
        Binding("escape", "back_to_board", "Back", priority=True),
        ("n", "nudge", "Nudge"),
        ("r", "refresh", "Refresh"),
    ]

    def __init__(
        self,
        monitor: Optional[SessionMonitor] = None,
        capture_client: Optional[CaptureClient] = None,
        dispatcher: Optional[CommandDispatcher] = None,
        registry: Optional[SessionRegistry] = None,
        polling: Optional[PollingConfig] = None,
        refresh_interval: Optional[float] = None,
    ):
        super().__init__()
        if monitor is None or capture_client is None or dispatcher is None:
            tmux = RealTmux(get_tmux_socket())
            monitor = monitor or SessionMonitor(tmux)
            capture_client = capture_client or TmuxCaptureClient(tmux)
            dispatcher = dispatcher or TmuxCommandDispatcher(tmux)

        self.monitor = monitor
        self.dispatcher = dispatcher
        self.registry = registry if registry is not None else SessionRegistry()
        self.refresh_interval = refresh_interval or get_session_refresh_interval()
        self.poller = SessionPoller.from_config(
            capture_client,
            polling or get_polling_config(),
            registry=self.registry,
            on_output=self._on_output,
            on_failure=self._on_capture_failure,
        )
        self.navigation = NavigationCoordinator(self.poller, self.registry)
        self.navigation.add_listener(self._on_view_changed)
        self.focused_session_index = 0

    def compose(self) -> ComposeResult:
        """Create child widgets"""
        yield Header(show_clock=True)
        yield Static(EMPTY_BOARD_MESSAGE, id="board-empty")
        yield Vertical(id="board")
        with Vertical(id="terminal-view"):
            yield TerminalHeader(id="terminal-header")
            yield TerminalPane(id="terminal-pane")
        yield HelpOverlay(id="help-overlay")
        yield Static(
            "h:Help | q:Quit | j/k:Nav | Enter:Open | Esc:Back | n:Nudge | r:Refresh",
            id="help-text",
        )

    def on_mount(self) -> None:
        """Called when app starts"""
        self.title = f"AgentBoard v{__version__}"
        self._show_view(self.navigation.view)
        self.refresh_sessions()
        self.set_interval(self.refresh_interval, self.refresh_sessions)
        self.set_interval(1, self.update_elapsed)

    async def on_unmount(self) -> None:
        await self.poller.unbind()

    # ------------------------------------------------------------------
    # Session list
    # ------------------------------------------------------------------

    def refresh_sessions(self) -> None:
        """Refresh session list (kicks off background worker)."""
        self._fetch_sessions_async()

    @work(thread=True, exclusive=True, group="refresh_sessions")
    def _fetch_sessions_async(self) -> None:
        """List sessions off the main thread, then apply to UI."""
        try:
            sessions = self.monitor.list_sessions()
        except Exception:
            logger.exception("Session refresh failed")
            return
        self.call_from_thread(self._apply_sessions, sessions)

    async def _apply_sessions(self, sessions: List[CodingSession]) -> None:
        """Apply a refreshed session list on the main thread."""
        result = self.registry.sync(sessions)

        for session_id in result.alerts:
            if session_id == self.navigation.active_session_id:
                self.registry.clear_alert(session_id)
                continue
            session = self.registry.get(session_id)
            if session is not None:
                self.notify(f"{describe_session(session)} is {session.status}", severity="warning")

        await self._update_cards()
        await self.navigation.handle_sessions_changed(s.id for s in self.registry.sessions())
        self._update_terminal_header()

    def _get_session_cards(self) -> List[SessionCard]:
        try:
            return list(self.query_one("#board", Vertical).query(SessionCard))
        except NoMatches:
            return []

    def _get_focused_card(self) -> Optional[SessionCard]:
        if isinstance(self.focused, SessionCard):
            return self.focused
        cards = self._get_session_cards()
        if cards and 0 <= self.focused_session_index < len(cards):
            return cards[self.focused_session_index]
        return None

    async def _update_cards(self) -> None:
        """Bring the board's cards in line with the registry."""
        try:
            board = self.query_one("#board", Vertical)
            empty = self.query_one("#board-empty", Static)
        except NoMatches:
            return

        sessions = self.registry.sessions()
        alerts = self.registry.alerts
        cards = self._get_session_cards()
        focused = self._get_focused_card()
        focused_id = focused.session_id if focused else None

        empty.display = not sessions and not self.navigation.view.is_terminal
        if [c.session_id for c in cards] != [s.id for s in sessions]:
            await board.remove_children()
            cards = [
                SessionCard(s, self.registry.elapsed(s.id) or 0.0, s.id in alerts)
                for s in sessions
            ]
            if cards:
                await board.mount(*cards)
        else:
            for card, session in zip(cards, sessions):
                card.update_session(session, self.registry.elapsed(session.id) or 0.0, session.id in alerts)

        if not cards:
            self.focused_session_index = 0
            return

        index = next((i for i, c in enumerate(cards) if c.session_id == focused_id), None)
        if index is None:
            index = min(self.focused_session_index, len(cards) - 1)
        self.focused_session_index = index
        if not self.navigation.view.is_terminal:
            cards[index].focus()

    def update_elapsed(self) -> None:
        """Tick the elapsed timers shown on the board and terminal header."""
        alerts = self.registry.alerts
        for card in self._get_session_cards():
            session = self.registry.get(card.session_id)
            if session is not None:
                card.update_session(session, self.registry.elapsed(session.id) or 0.0, session.id in alerts)
        self._update_terminal_header()

    # ------------------------------------------------------------------
    # Terminal view
    # ------------------------------------------------------------------

    def _on_view_changed(self, view: View) -> None:
        self._show_view(view)
        if view.is_terminal:
            try:
                pane = self.query_one("#terminal-pane", TerminalPane)
                header = self.query_one("#terminal-header", TerminalHeader)
            except NoMatches:
                return
            pane.reset(view.session_id)
            header.set_failures(0)
            session = self.registry.get(view.session_id)
            if session is not None and session.output:
                pane.show_output(session.output)
            self._update_terminal_header()
            pane.focus()
        else:
            card = self._get_focused_card()
            if card is not None:
                card.focus()
            self.call_later(self._update_cards)

    def _show_view(self, view: View) -> None:
        try:
            self.query_one("#board", Vertical).display = not view.is_terminal
            self.query_one("#board-empty", Static).display = (
                not view.is_terminal and len(self.registry) == 0
            )
            self.query_one("#terminal-view", Vertical).display = view.is_terminal
        except NoMatches:
            pass

    def _update_terminal_header(self) -> None:
        session_id = self.navigation.active_session_id
        if session_id is None:
            return
        try:
            header = self.query_one("#terminal-header", TerminalHeader)
        except NoMatches:
            return
        header.show_session(self.registry.get(session_id), self.registry.elapsed(session_id) or 0.0)

    def _on_output(self, result: CapturedOutput) -> None:
        if result.session_id != self.navigation.active_session_id:
            return
        try:
            self.query_one("#terminal-pane", TerminalPane).show_output(result.text)
            self.query_one("#terminal-header", TerminalHeader).set_failures(0)
        except NoMatches:
            pass

    def _on_capture_failure(self, session_id: str, error: BaseException, failures: int) -> None:
        if session_id != self.navigation.active_session_id:
            return
        try:
            self.query_one("#terminal-header", TerminalHeader).set_failures(failures)
        except NoMatches:
            pass


def run_tui() -> None:
    """Run the AgentBoard TUI"""
    import os
    import sys

    from .logging_config import setup_tui_logging

    # Ensure we're using a proper terminal
    if not sys.stdout.isatty():
        print("Error: Must run in a TTY terminal", file=sys.stderr)
        sys.exit(1)

    os.environ.setdefault('TERM', 'xterm-256color')
    setup_tui_logging()

    app = AgentBoardTUI()
    app.run()


if __name__ == "__main__":
    run_tui()
