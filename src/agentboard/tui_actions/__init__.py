"""
TUI Action Mixins for AgentBoard.

This package contains action method mixins organized by domain.
These are mixed into AgentBoardTUI via multiple inheritance.
"""

from .navigation import NavigationActionsMixin
from .session import SessionActionsMixin
from .view import ViewActionsMixin

__all__ = [
    "NavigationActionsMixin",
    "SessionActionsMixin",
    "ViewActionsMixin",
]
