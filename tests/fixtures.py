"""
Test fixtures and factories for agentboard unit tests.

This module provides factory functions and fake collaborators so the
poller, navigation and TUI can be exercised without tmux.
"""

import asyncio
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from agentboard.exceptions import CaptureUnavailableError
from agentboard.models import CodingSession, NudgeResult


def create_session(
    id: str = "ab-demo-nm-001",
    name: Optional[str] = None,
    status: str = "running",
    agent_type: str = "claude-code",
    model: Optional[str] = None,
    bead_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
    elapsed_base: float = 0.0,
    **kwargs,
) -> CodingSession:
    """Create a CodingSession with sensible test defaults."""
    return CodingSession(
        id=id,
        name=name or id,
        status=status,
        agent_type=agent_type,
        model=model,
        bead_id=bead_id,
        created_at=created_at or datetime.now(),
        elapsed_base=elapsed_base,
        **kwargs,
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ControlledCaptureClient:
    """Async capture client whose calls block until the test releases them.

    Each call is recorded in ``calls`` as (session_id, max_lines) and waits
    on its own gate; ``release(i, text)`` lets call i finish with text, and
    ``fail(i, exc)`` makes it raise.
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self._gates: List[asyncio.Event] = []
        self._results: List[Any] = []
        self.started = asyncio.Event()

    async def capture(self, session_id: str, max_lines: int) -> str:
        index = len(self.calls)
        self.calls.append((session_id, max_lines))
        gate = asyncio.Event()
        self._gates.append(gate)
        self._results.append(None)
        self.started.set()
        await gate.wait()
        result = self._results[index]
        if isinstance(result, BaseException):
            raise result
        return result

    def release(self, index: int, text: str) -> None:
        self._results[index] = text
        self._gates[index].set()

    def fail(self, index: int, exc: Optional[BaseException] = None) -> None:
        session_id = self.calls[index][0]
        self._results[index] = exc or CaptureUnavailableError(session_id, "pane gone")
        self._gates[index].set()

    @property
    def call_count(self) -> int:
        return len(self.calls)


class ScriptedCaptureClient:
    """Synchronous capture client returning scripted output per session.

    Called through asyncio.to_thread by the poller, so access is locked.
    """

    def __init__(self, outputs: Optional[Dict[str, str]] = None):
        self.outputs: Dict[str, Any] = dict(outputs or {})
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    def capture(self, session_id: str, max_lines: int) -> str:
        with self._lock:
            self.calls.append((session_id, max_lines))
            result = self.outputs.get(session_id)
        if result is None:
            raise CaptureUnavailableError(session_id, "no such session")
        if isinstance(result, BaseException):
            raise result
        return result

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)


class FakeDispatcher:
    """CommandDispatcher that records nudges."""

    def __init__(self, ok: bool = True, error: str = "tmux session not available"):
        self.ok = ok
        self.error = error
        self.nudged: List[str] = []

    def nudge(self, session_id: str) -> NudgeResult:
        self.nudged.append(session_id)
        if self.ok:
            return NudgeResult(ok=True)
        return NudgeResult(ok=False, error=self.error)


class FakeMonitor:
    """SessionMonitor stand-in returning a configurable list."""

    def __init__(self, sessions: Optional[List[CodingSession]] = None):
        self.sessions = list(sessions or [])
        self.calls = 0

    def list_sessions(self) -> List[CodingSession]:
        self.calls += 1
        return list(self.sessions)


class FakeTmux:
    """In-memory TmuxInterface."""

    def __init__(self):
        self.panes: Dict[str, str] = {}
        self.rows: List[Dict[str, Any]] = []
        self.sent: List[tuple] = []
        self.created: List[Dict[str, Any]] = []
        self.fail_new_session = False

    def capture_pane(self, session: str, lines: int = 500) -> Optional[str]:
        return self.panes.get(session)

    def send_keys(self, session: str, keys: str, enter: bool = True) -> bool:
        if session not in self.panes:
            return False
        self.sent.append((session, keys, enter))
        return True

    def has_session(self, session: str) -> bool:
        return session in self.panes

    def new_session(self, session: str, command: Optional[str] = None,
                    cwd: Optional[str] = None) -> bool:
        if self.fail_new_session:
            return False
        self.created.append({"session": session, "command": command, "cwd": cwd})
        self.panes[session] = ""
        return True

    def list_sessions(self) -> List[Dict[str, Any]]:
        return list(self.rows)


class FakeSubprocess:
    """SubprocessInterface returning canned ps output."""

    def __init__(self, stdout: str = "", returncode: int = 0):
        self.stdout = stdout
        self.returncode = returncode
        self.commands: List[List[str]] = []

    def run(self, cmd: List[str], timeout: Optional[int] = None,
            capture_output: bool = True) -> Optional[Dict[str, Any]]:
        self.commands.append(cmd)
        return {"returncode": self.returncode, "stdout": self.stdout, "stderr": ""}


async def wait_for(predicate, timeout: float = 2.0, step: float = 0.01) -> None:
    """Poll until predicate() is true or fail after timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met within timeout")
        await asyncio.sleep(step)
