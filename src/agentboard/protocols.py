"""
Protocol definitions for external dependencies.

These interfaces allow dependency injection for testing, enabling us to
swap real implementations (libtmux, subprocess calls) with fakes in tests.
"""

from typing import Protocol, Optional, List, Dict, Any, runtime_checkable

from .models import NudgeResult


@runtime_checkable
class CaptureClient(Protocol):
    """Interface to the agent backend's captured output."""

    def capture(self, session_id: str, max_lines: int) -> str:
        """Return the trailing output of a session.

        Args:
            session_id: Identifier of the session
            max_lines: Maximum number of trailing lines to return (>= 1)

        Returns:
            At most max_lines trailing lines; all output if there is less

        Raises:
            CaptureUnavailableError: The backend could not produce output
        """
        ...


@runtime_checkable
class CommandDispatcher(Protocol):
    """Interface for fire-and-forget operational commands."""

    def nudge(self, session_id: str) -> NudgeResult:
        """Nudge a session (sends Enter to the agent)."""
        ...


@runtime_checkable
class TmuxInterface(Protocol):
    """Interface for tmux operations"""

    def capture_pane(self, session: str, lines: int = 500) -> Optional[str]:
        """Capture the trailing lines of a session's active pane.

        Returns:
            Pane content as string, or None on failure
        """
        ...

    def send_keys(self, session: str, keys: str, enter: bool = True) -> bool:
        """Send keys to a session's active pane.

        Returns:
            True if successful, False otherwise
        """
        ...

    def has_session(self, session: str) -> bool:
        """Check if a tmux session exists."""
        ...

    def new_session(self, session: str, command: Optional[str] = None,
                    cwd: Optional[str] = None) -> bool:
        """Create a new detached tmux session."""
        ...

    def list_sessions(self) -> List[Dict[str, Any]]:
        """List sessions.

        Returns:
            List of dicts with 'name', 'created' (epoch seconds), 'attached',
            and the first pane's 'pane_pid', 'current_path', 'current_command'
        """
        ...


@runtime_checkable
class SubprocessInterface(Protocol):
    """Interface for subprocess operations (non-tmux)"""

    def run(self, cmd: List[str], timeout: Optional[int] = None,
            capture_output: bool = True) -> Optional[Dict[str, Any]]:
        """Run a subprocess command.

        Returns:
            Dict with 'returncode', 'stdout', 'stderr', or None on failure
        """
        ...
