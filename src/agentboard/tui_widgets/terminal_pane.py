"""
Terminal pane widget for TUI.

Shows the bound session's captured output in the terminal view.
Uses ScrollableContainer for native mouse wheel / trackpad scrolling.
"""

from typing import List

from textual.containers import ScrollableContainer
from textual.css.query import NoMatches
from textual.widgets import Static
from rich.text import Text

from ..tui_formatters import EMPTY_OUTPUT_PLACEHOLDER


class TerminalPane(ScrollableContainer, can_focus=True):
    """Scrollable view of a session's captured output.

    Wraps a child Static whose height grows to fit all content lines.
    Auto-scrolls to bottom unless the user has scrolled up to review.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.content_lines: List[str] = []
        self.session_id: str = ""
        self._auto_scroll = True

    def compose(self):
        yield Static(id="terminal-content")

    @property
    def text(self) -> str:
        return "\n".join(self.content_lines)

    def _build_content(self) -> Text:
        if not self.content_lines:
            return Text(EMPTY_OUTPUT_PLACEHOLDER, style="dim italic")
        content = Text()
        for line in self.content_lines:
            content.append(Text.from_ansi(line))
            content.append("\n")
        return content

    def reset(self, session_id: str) -> None:
        """Clear the pane for a newly opened session."""
        self.session_id = session_id
        self.content_lines = []
        self._auto_scroll = True
        self._render_content()

    def show_output(self, text: str) -> None:
        """Replace the displayed output."""
        self.content_lines = text.split("\n") if text else []

        saved_scroll = self.scroll_offset.y
        was_auto = self._auto_scroll
        self._render_content()

        if was_auto:
            self.call_after_refresh(lambda: self.scroll_end(animate=False))
        else:
            self.call_after_refresh(lambda: self.scroll_to(y=saved_scroll, animate=False))

    def _render_content(self) -> None:
        try:
            self.query_one("#terminal-content", Static).update(self._build_content())
        except NoMatches:
            pass

    def on_mouse_scroll_up(self, event) -> None:
        """User scrolled up with mouse wheel, disable auto-scroll."""
        self._auto_scroll = False

    def on_mouse_scroll_down(self, event) -> None:
        """User scrolled down, re-enable auto-scroll once back at bottom."""
        self.call_after_refresh(self._check_at_bottom)

    def _check_at_bottom(self) -> None:
        if self.max_scroll_y <= 0 or self.scroll_offset.y >= self.max_scroll_y - 1:
            self._auto_scroll = True
