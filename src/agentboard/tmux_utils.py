"""
Shared tmux utilities for AgentBoard.

Pure helpers used by the tmux implementations and the session monitor:
output trimming, tmux error classification and session naming.
"""

import re
from typing import List, Optional


def tail_lines(text: Optional[str], max_lines: int) -> str:
    """Return at most the trailing max_lines lines of text.

    Blank lines at the end (tmux pads the visible pane with them) are
    dropped first, so repeated captures of unchanged output are identical.

    Args:
        text: Captured output (None is treated as empty)
        max_lines: Maximum number of lines to keep (>= 1)
    """
    if max_lines < 1:
        raise ValueError("max_lines must be >= 1")
    if not text:
        return ""
    lines: List[str] = text.split("\n")
    while lines and not lines[-1].strip():
        lines.pop()
    return "\n".join(lines[-max_lines:])


def is_missing_tmux_server_message(message: str) -> bool:
    """Check if a tmux error means no server is running on the socket."""
    lower = message.lower()
    return (
        "no server running on" in lower
        or "failed to connect to server" in lower
        or "no such file" in lower
        or "can't find socket" in lower
        or "error connecting to" in lower
    )


def is_missing_session_message(message: str) -> bool:
    """Check if a tmux error means the target session does not exist."""
    lower = message.lower()
    return (
        "can't find session" in lower
        or "session not found" in lower
        or is_missing_tmux_server_message(lower)
    )


def slugify(value: str) -> str:
    """Lowercase a name and collapse anything non-alphanumeric into dashes."""
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


_BEAD_ID_PATTERN = re.compile(r"\b[A-Za-z][A-Za-z0-9_-]*-[A-Za-z0-9.]+\b")


def extract_bead_id(text: str) -> Optional[str]:
    """Find the first bead-like identifier (e.g. "NM-096") in text."""
    match = _BEAD_ID_PATTERN.search(text or "")
    return match.group(0) if match else None


def parse_model(command: str) -> Optional[str]:
    """Extract a model name from an agent command line.

    Recognizes ``--model X``, ``-m X`` and ``--model=X``.
    """
    tokens = (command or "").split()
    for i, token in enumerate(tokens):
        if token in ("--model", "-m") and i + 1 < len(tokens):
            return tokens[i + 1]
        if token.startswith("--model="):
            return token[len("--model="):]
    return None
