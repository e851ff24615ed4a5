"""
Unit test configuration for AgentBoard.

Every unit test gets its own config and state directories so nothing
touches the user's ~/.agentboard, and the agentboard logger is reset
afterwards so handlers installed by one test don't leak into the next.
"""

import logging

import pytest

from agentboard import config


@pytest.fixture(autouse=True)
def isolated_agentboard_dir(tmp_path, monkeypatch):
    """Redirect config, state and tmux socket to a temp directory."""
    base = tmp_path / "agentboard-home"
    monkeypatch.setenv("AGENTBOARD_DIR", str(base))
    monkeypatch.setenv("AGENTBOARD_STATE_DIR", str(base / "state"))
    monkeypatch.setattr(config, "CONFIG_PATH", base / "config.yaml")
    monkeypatch.delenv("AGENTBOARD_TMUX_SOCKET", raising=False)
    yield base


@pytest.fixture(autouse=True)
def reset_agentboard_logger():
    yield
    logger = logging.getLogger("agentboard")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
