"""
Pure formatting functions for display.

These functions convert values (seconds, statuses, names) into
human-readable strings. They have no domain logic, just formatting.
"""

from .models import CodingSession


def format_elapsed(seconds: float) -> str:
    """Format elapsed seconds as a clock.

    Examples: 75 -> "01:15", 3725 -> "01:02:05"
    """
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_status_label(status: str) -> str:
    """Capitalize a status for chips and tables."""
    return status.replace("_", " ").capitalize() if status else "Unknown"


def format_cpu(cpu_percent: float) -> str:
    return f"{cpu_percent:.1f}%"


def truncate_name(name: str, max_len: int = 28) -> str:
    """Truncate and pad name for display.

    Args:
        name: Name to truncate
        max_len: Maximum length

    Returns:
        Name truncated and left-justified to max_len
    """
    if len(name) > max_len:
        name = name[:max_len - 1] + "…"
    return name.ljust(max_len)


def describe_session(session: CodingSession) -> str:
    """One-line plain description used in alert notifications."""
    parts = [session.name, session.agent_type]
    if session.model:
        parts.append(session.model)
    if session.bead_id:
        parts.append(session.bead_id)
    return " · ".join(parts)


EMPTY_OUTPUT_PLACEHOLDER = "No output captured yet for this session."
