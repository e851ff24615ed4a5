"""
Status constants and mappings for AgentBoard.

Centralizes all session status values, colors, emojis, and display
mappings used throughout the application.

Status is reported by the backend and is free-form: any status may follow
any other, and unknown values are displayed with neutral defaults.
"""

from typing import Tuple


# =============================================================================
# Session Status Values
# =============================================================================

STATUS_RUNNING = "running"
STATUS_IDLE = "idle"
STATUS_WAITING = "waiting"  # Agent is waiting on input
STATUS_STOPPED = "stopped"  # tmux session alive, no agent process
STATUS_ERROR = "error"
STATUS_COMPLETED = "completed"

# All known session status values
ALL_STATUSES = [
    STATUS_RUNNING,
    STATUS_IDLE,
    STATUS_WAITING,
    STATUS_STOPPED,
    STATUS_ERROR,
    STATUS_COMPLETED,
]

# Statuses that raise an alert when a session transitions into them
ALERT_STATUSES = (STATUS_STOPPED, STATUS_ERROR)


# =============================================================================
# Agent Types
# =============================================================================

AGENT_CLAUDE_CODE = "claude-code"
AGENT_CODEX = "codex"
AGENT_OPENCODE = "opencode"

# Command used to start each agent inside a tmux session
AGENT_COMMANDS = {
    AGENT_CLAUDE_CODE: "claude",
    AGENT_CODEX: "codex",
    AGENT_OPENCODE: "opencode",
}


# =============================================================================
# Status to Emoji Mappings
# =============================================================================

STATUS_EMOJIS = {
    STATUS_RUNNING: "🟢",
    STATUS_IDLE: "🟡",
    STATUS_WAITING: "🟠",
    STATUS_STOPPED: "⚫",
    STATUS_ERROR: "🔴",
    STATUS_COMPLETED: "✅",
}


def get_status_emoji(status: str) -> str:
    """Get emoji for a session status."""
    return STATUS_EMOJIS.get(status, "⚪")


# =============================================================================
# Status to Color Mappings (for Rich/Textual styling)
# =============================================================================

STATUS_COLORS = {
    STATUS_RUNNING: "green",
    STATUS_IDLE: "yellow",
    STATUS_WAITING: "orange1",
    STATUS_STOPPED: "dim",
    STATUS_ERROR: "red",
    STATUS_COMPLETED: "cyan",
}


def get_status_color(status: str) -> str:
    """Get color name for a session status."""
    return STATUS_COLORS.get(status, "dim")


def get_status_symbol(status: str) -> Tuple[str, str]:
    """Get (emoji, color) tuple for a session status."""
    return get_status_emoji(status), get_status_color(status)


# =============================================================================
# Ordering
# =============================================================================

STATUS_SORT_ORDER = {
    STATUS_RUNNING: 0,
    STATUS_WAITING: 1,
    STATUS_IDLE: 2,
    STATUS_STOPPED: 3,
    STATUS_ERROR: 4,
    STATUS_COMPLETED: 5,
}


def get_status_sort_order(status: str) -> int:
    """Sort key for a status; unknown statuses sort last."""
    return STATUS_SORT_ORDER.get(status, len(STATUS_SORT_ORDER))


# =============================================================================
# Status Categorization
# =============================================================================


def is_active_status(status: str) -> bool:
    """Check if elapsed time keeps accruing in this status."""
    return status not in (STATUS_STOPPED, STATUS_ERROR, STATUS_COMPLETED)


def is_alert_status(status: str) -> bool:
    """Check if entering this status should raise an alert."""
    return status in ALERT_STATUSES
