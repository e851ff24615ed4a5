"""
TUI Widget components for AgentBoard.

This package contains the individual widget classes used by tui.py.
"""

from .help_overlay import HelpOverlay
from .session_card import SessionCard
from .terminal_header import TerminalHeader
from .terminal_pane import TerminalPane

__all__ = [
    "HelpOverlay",
    "SessionCard",
    "TerminalHeader",
    "TerminalPane",
]
