"""
Exception types raised by AgentBoard components.
"""


class AgentBoardError(Exception):
    """Base class for AgentBoard errors."""


class CaptureUnavailableError(AgentBoardError):
    """The backend could not produce output for a session (transient)."""

    def __init__(self, session_id: str, reason: str = ""):
        self.session_id = session_id
        self.reason = reason
        message = f"Unable to capture output for {session_id}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class LaunchError(AgentBoardError):
    """Launching a new agent session failed."""


class InvalidSessionNameError(LaunchError):
    """A valid tmux session name could not be derived."""

    def __init__(self, message: str = "Unable to create a valid tmux session name."):
        super().__init__(message)
