"""
Navigation action methods for TUI.

Handles moving between session cards and between the board and terminal views.
"""

from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from ..tui_widgets import SessionCard


class NavigationActionsMixin:
    """Mixin providing navigation actions for AgentBoardTUI."""

    def _move_focus(self, step: int) -> None:
        cards: List["SessionCard"] = self._get_session_cards()
        if not cards:
            return
        self.focused_session_index = (self.focused_session_index + step) % len(cards)
        cards[self.focused_session_index].focus()

    def action_focus_next_session(self) -> None:
        """Focus the next session on the board."""
        if self.navigation.view.is_terminal:
            return
        self._move_focus(1)

    def action_focus_previous_session(self) -> None:
        """Focus the previous session on the board."""
        if self.navigation.view.is_terminal:
            return
        self._move_focus(-1)

    async def action_open_terminal(self) -> None:
        """Open the terminal view for the focused session."""
        if self.navigation.view.is_terminal:
            return
        card = self._get_focused_card()
        if card is None:
            self.notify("No session focused", severity="warning")
            return
        await self.navigation.show_terminal(card.session_id)

    async def action_back_to_board(self) -> None:
        """Leave the terminal view."""
        if not self.navigation.view.is_terminal:
            return
        await self.navigation.show_board()
