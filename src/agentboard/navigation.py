"""
Navigation coordinator - switches between the board and a session terminal.

Exactly one view is active. Entering the terminal view for a session binds
the poller to it; leaving the terminal view unbinds the poller. Transitions
are serialized, and the poller is always fully unbound before it is bound
to another session.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from .logging_config import get_logger
from .session_poller import SessionPoller
from .session_registry import SessionRegistry

logger = get_logger("navigation")

VIEW_BOARD = "board"
VIEW_TERMINAL = "terminal"


@dataclass(frozen=True)
class View:
    kind: str
    session_id: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.kind == VIEW_TERMINAL


BOARD = View(VIEW_BOARD)

ViewListener = Callable[[View], None]


class NavigationCoordinator:
    """Owns the active view and keeps the poller binding in step with it."""

    def __init__(self, poller: SessionPoller, registry: Optional[SessionRegistry] = None):
        self.poller = poller
        self.registry = registry
        self._view = BOARD
        self._lock = asyncio.Lock()
        self._listeners: List[ViewListener] = []

    @property
    def view(self) -> View:
        return self._view

    @property
    def active_session_id(self) -> Optional[str]:
        return self._view.session_id

    def add_listener(self, listener: ViewListener) -> None:
        self._listeners.append(listener)

    async def show_terminal(self, session_id: str) -> None:
        """Open the terminal view for a session."""
        async with self._lock:
            if self._view.is_terminal and self._view.session_id == session_id:
                return
            await self.poller.unbind()
            if self.registry is not None:
                self.registry.clear_alert(session_id)
            self._set_view(View(VIEW_TERMINAL, session_id))
            await self.poller.bind(session_id)

    async def show_board(self) -> None:
        """Return to the board view."""
        async with self._lock:
            await self._enter_board()

    async def handle_sessions_changed(self, valid_ids: Iterable[str]) -> None:
        """Fall back to the board if the open session has disappeared."""
        valid = set(valid_ids)
        async with self._lock:
            session_id = self._view.session_id
            if session_id is not None and session_id not in valid:
                logger.info("Session %s is gone, returning to board", session_id)
                await self._enter_board()

    async def _enter_board(self) -> None:
        # Caller holds self._lock
        await self.poller.unbind()
        self._set_view(BOARD)

    def _set_view(self, view: View) -> None:
        if view == self._view:
            return
        self._view = view
        for listener in list(self._listeners):
            listener(view)
