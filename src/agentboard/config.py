"""
Configuration loading for AgentBoard.

Reads ~/.agentboard/config.yaml (override the directory with AGENTBOARD_DIR).
Every getter falls back to defaults when the file or a key is missing or
invalid, so a broken config never prevents the dashboard from starting.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml


def get_agentboard_dir() -> Path:
    """Base directory for config and state."""
    env_dir = os.environ.get("AGENTBOARD_DIR")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".agentboard"


def get_state_dir() -> Path:
    """Directory for logs and other runtime state.

    AGENTBOARD_STATE_DIR takes precedence so tests can isolate state.
    """
    env_dir = os.environ.get("AGENTBOARD_STATE_DIR")
    if env_dir:
        return Path(env_dir)
    return get_agentboard_dir() / "state"


CONFIG_PATH = get_agentboard_dir() / "config.yaml"

DEFAULT_TMUX_SOCKET = "/tmp/agentboard-tmux-sockets/agentboard.sock"
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_MAX_LINES = 500
DEFAULT_SESSION_REFRESH_INTERVAL = 3.0


@dataclass(frozen=True)
class PollingConfig:
    """Tunables of the session poller."""
    interval: float = DEFAULT_POLL_INTERVAL
    max_lines: int = DEFAULT_MAX_LINES


def load_config() -> Dict[str, Any]:
    """Load the config file, returning {} if missing or invalid."""
    if not CONFIG_PATH.exists():
        return {}
    try:
        with open(CONFIG_PATH) as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, OSError):
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def save_config(data: Dict[str, Any]) -> None:
    """Write the config file, creating parent directories."""
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    with open(CONFIG_PATH, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


def _positive_float(value: Any, default: float) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if result > 0 else default


def _positive_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        result = int(value)
    except (TypeError, ValueError):
        return default
    return result if result >= 1 else default


def get_polling_config() -> PollingConfig:
    """Get poller tunables from the `polling` section."""
    polling = load_config().get("polling")
    if not isinstance(polling, dict):
        return PollingConfig()
    return PollingConfig(
        interval=_positive_float(polling.get("interval"), DEFAULT_POLL_INTERVAL),
        max_lines=_positive_int(polling.get("max_lines"), DEFAULT_MAX_LINES),
    )


def get_tmux_socket() -> str:
    """Socket path for the tmux server that hosts agent sessions.

    AGENTBOARD_TMUX_SOCKET overrides the config file (used by tests).
    """
    env_socket = os.environ.get("AGENTBOARD_TMUX_SOCKET")
    if env_socket:
        return env_socket
    socket = load_config().get("tmux_socket")
    if isinstance(socket, str) and socket:
        return os.path.expanduser(socket)
    return DEFAULT_TMUX_SOCKET


def get_session_refresh_interval() -> float:
    """Seconds between backend session listings."""
    return _positive_float(
        load_config().get("session_refresh_interval"),
        DEFAULT_SESSION_REFRESH_INTERVAL,
    )


def get_log_level(default: str = "INFO") -> str:
    """Configured log level name, or default when unset or invalid."""
    level = load_config().get("log_level")
    if isinstance(level, str) and level.upper() in ("DEBUG", "INFO", "WARNING", "ERROR"):
        return level.upper()
    return default
