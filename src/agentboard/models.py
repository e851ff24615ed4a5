"""
Data model for AgentBoard.

CodingSession records are owned by the SessionRegistry. Project, Bead and
ChatMessage are read-only display data.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .status_constants import (
    AGENT_CLAUDE_CODE,
    STATUS_IDLE,
    is_active_status,
)


@dataclass
class CodingSession:
    """A coding-agent session as seen by the dashboard.

    Elapsed time is tracked against the monotonic clock: ``elapsed_base`` is
    the time accrued up to ``elapsed_anchor`` (a ``time.monotonic()`` value).
    While the status is active the elapsed value keeps growing from the
    anchor; a ``None`` anchor means accrual is frozen.
    """

    id: str
    name: str
    status: str = STATUS_IDLE
    agent_type: str = AGENT_CLAUDE_CODE
    model: Optional[str] = None
    bead_id: Optional[str] = None
    project_path: Optional[Path] = None
    process_id: Optional[int] = None
    cpu_percent: float = 0.0
    created_at: datetime = field(default_factory=datetime.now)

    elapsed_base: float = 0.0
    elapsed_anchor: Optional[float] = None

    # Cached display text and the fetch sequence that produced it (0 = none)
    output: str = ""
    output_sequence: int = 0

    def elapsed(self, now: Optional[float] = None) -> float:
        """Active duration in seconds, never decreasing while active."""
        if self.elapsed_anchor is None or not is_active_status(self.status):
            return self.elapsed_base
        if now is None:
            now = time.monotonic()
        return self.elapsed_base + max(0.0, now - self.elapsed_anchor)


@dataclass(frozen=True)
class CapturedOutput:
    """Transient result of one capture request."""
    session_id: str
    text: str
    sequence: int
    captured_at: float = field(default_factory=time.monotonic)


@dataclass
class NudgeResult:
    """Result of a nudge sent to a session's backend."""
    ok: bool
    error: str = ""


@dataclass
class Project:
    id: str
    name: str
    path: Optional[Path] = None
    open_count: int = 0
    in_progress_count: int = 0
    total_count: int = 0


BEAD_STATUS_OPEN = "open"
BEAD_STATUS_IN_PROGRESS = "in-progress"
BEAD_STATUS_BLOCKED = "blocked"
BEAD_STATUS_DONE = "done"

_BEAD_STATUS_ALIASES = {
    "in_progress": BEAD_STATUS_IN_PROGRESS,
    "in-progress": BEAD_STATUS_IN_PROGRESS,
    "blocked": BEAD_STATUS_BLOCKED,
    "done": BEAD_STATUS_DONE,
    "closed": BEAD_STATUS_DONE,
    "open": BEAD_STATUS_OPEN,
}


def bead_status_from_beads(raw: str) -> str:
    """Normalize a status string from the beads tracker (unknown -> open)."""
    return _BEAD_STATUS_ALIASES.get((raw or "").lower(), BEAD_STATUS_OPEN)


@dataclass
class Bead:
    id: str
    title: str
    status: str = BEAD_STATUS_OPEN
    priority: int = 2
    assignee: Optional[str] = None
    labels: List[str] = field(default_factory=list)
    session_id: Optional[str] = None


@dataclass
class ChatMessage:
    id: str
    sender: str
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
