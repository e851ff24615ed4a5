"""
Real implementations of protocol interfaces.

These are production implementations that use libtmux for tmux operations
and subprocess for process inspection.
"""

import subprocess
import time
from pathlib import Path
from typing import Optional, List, Dict, Any

import libtmux
from libtmux.exc import LibTmuxException
from libtmux._internal.query_list import ObjectDoesNotExist

from .config import get_tmux_socket
from .exceptions import CaptureUnavailableError
from .logging_config import get_logger
from .models import NudgeResult
from .protocols import TmuxInterface
from .tmux_utils import is_missing_session_message, is_missing_tmux_server_message, tail_lines

logger = get_logger("tmux")


class RealTmux:
    """Production implementation of TmuxInterface using libtmux.

    All commands go to the tmux server on a dedicated socket so agent
    sessions stay separate from the user's own tmux sessions.

    Includes caching to reduce subprocess overhead. libtmux spawns a new
    subprocess for every tmux command, which is expensive at high frequencies.
    """

    # Cache TTL in seconds - pane objects rarely change
    _CACHE_TTL = 30.0

    def __init__(self, socket_path: Optional[str] = None):
        self._socket_path = socket_path or get_tmux_socket()
        self._server: Optional[libtmux.Server] = None
        # Cache: session_name -> (pane, timestamp)
        self._pane_cache: Dict[str, tuple] = {}

    @property
    def socket_path(self) -> str:
        return self._socket_path

    @property
    def server(self) -> libtmux.Server:
        """Lazy-load the tmux server connection."""
        if self._server is None:
            Path(self._socket_path).parent.mkdir(parents=True, exist_ok=True)
            self._server = libtmux.Server(socket_path=self._socket_path)
        return self._server

    def _get_session(self, session: str) -> Optional[libtmux.Session]:
        try:
            return self.server.sessions.get(session_name=session)
        except (LibTmuxException, ObjectDoesNotExist):
            return None

    def _get_pane(self, session: str) -> Optional[libtmux.Pane]:
        """Get the active pane of a session, with caching."""
        now = time.monotonic()
        cached = self._pane_cache.get(session)
        if cached is not None:
            pane, cached_time = cached
            if now - cached_time < self._CACHE_TTL:
                return pane

        sess = self._get_session(session)
        if sess is None:
            return None
        try:
            pane = sess.active_pane
        except LibTmuxException:
            return None
        if pane is None:
            return None
        self._pane_cache[session] = (pane, now)
        return pane

    def invalidate_cache(self, session: Optional[str] = None) -> None:
        """Invalidate cached panes (all of them, or one session's)."""
        if session is None:
            self._pane_cache.clear()
        else:
            self._pane_cache.pop(session, None)

    def capture_pane(self, session: str, lines: int = 500) -> Optional[str]:
        try:
            pane = self._get_pane(session)
            if pane is None:
                return None
            captured = pane.capture_pane(start=-lines, escape_sequences=True)
            if isinstance(captured, list):
                return '\n'.join(captured)
            return captured
        except LibTmuxException as e:
            # Pane may have been killed - drop it so the next call re-resolves
            self.invalidate_cache(session)
            if not is_missing_session_message(str(e)):
                logger.warning("capture-pane failed for %s: %s", session, e)
            return None

    def send_keys(self, session: str, keys: str, enter: bool = True) -> bool:
        try:
            pane = self._get_pane(session)
            if pane is None:
                return False
            if keys:
                pane.send_keys(keys, enter=False)
                # Small delay so the agent processes text before Enter
                time.sleep(0.1)
            if enter:
                pane.send_keys('', enter=True)
            return True
        except LibTmuxException:
            self.invalidate_cache(session)
            return False

    def has_session(self, session: str) -> bool:
        try:
            return self.server.has_session(session)
        except LibTmuxException:
            return False

    def new_session(self, session: str, command: Optional[str] = None,
                    cwd: Optional[str] = None) -> bool:
        kwargs: Dict[str, Any] = {'session_name': session, 'attach': False}
        if cwd:
            kwargs['start_directory'] = cwd
        if command:
            kwargs['window_command'] = command
        try:
            self.server.new_session(**kwargs)
            return True
        except LibTmuxException as e:
            logger.warning("Failed to create tmux session %s: %s", session, e)
            return False

    def list_sessions(self) -> List[Dict[str, Any]]:
        try:
            sessions = list(self.server.sessions)
        except LibTmuxException as e:
            if not is_missing_tmux_server_message(str(e)):
                logger.warning("Failed to list tmux sessions: %s", e)
            return []

        rows = []
        for sess in sessions:
            row: Dict[str, Any] = {
                'name': sess.session_name,
                'created': _to_float(sess.session_created, default=time.time()),
                'attached': _to_int(sess.session_attached) > 0,
                'pane_pid': None,
                'current_path': '',
                'current_command': '',
            }
            try:
                pane = sess.active_pane
            except LibTmuxException:
                pane = None
            if pane is not None:
                row['pane_pid'] = _to_int(pane.pane_pid) or None
                row['current_path'] = pane.pane_current_path or ''
                row['current_command'] = pane.pane_current_command or ''
            rows.append(row)
        return rows


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class TmuxCaptureClient:
    """CaptureClient backed by tmux pane capture."""

    def __init__(self, tmux: Optional[TmuxInterface] = None):
        self.tmux = tmux or RealTmux()

    def capture(self, session_id: str, max_lines: int) -> str:
        if max_lines < 1:
            raise ValueError("max_lines must be >= 1")
        content = self.tmux.capture_pane(session_id, lines=max_lines)
        if content is None:
            raise CaptureUnavailableError(session_id, "tmux pane not available")
        return tail_lines(content, max_lines)


class TmuxCommandDispatcher:
    """CommandDispatcher backed by tmux send-keys."""

    def __init__(self, tmux: Optional[TmuxInterface] = None):
        self.tmux = tmux or RealTmux()

    def nudge(self, session_id: str) -> NudgeResult:
        """Send Enter to the session's pane."""
        if self.tmux.send_keys(session_id, "", enter=True):
            logger.info("Sent nudge to %s", session_id)
            return NudgeResult(ok=True)
        logger.warning("Nudge failed for %s", session_id)
        return NudgeResult(ok=False, error=f"Unable to nudge {session_id}: tmux session not available")


class RealSubprocess:
    """Production implementation of SubprocessInterface"""

    def run(self, cmd: List[str], timeout: Optional[int] = None,
            capture_output: bool = True) -> Optional[Dict[str, Any]]:
        try:
            result = subprocess.run(
                cmd, timeout=timeout, capture_output=capture_output, text=True
            )
            return {
                'returncode': result.returncode,
                'stdout': result.stdout if capture_output else '',
                'stderr': result.stderr if capture_output else ''
            }
        except (subprocess.TimeoutExpired, subprocess.SubprocessError, OSError):
            return None
