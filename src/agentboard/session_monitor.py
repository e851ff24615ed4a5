"""
Session monitor - discovers and launches agent sessions on the tmux backend.

Listing combines tmux session/pane information with the process tree from
`ps`, so each tmux session can be matched to the coding agent running in it
(and how busy that agent is).
"""

import shutil
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .exceptions import InvalidSessionNameError, LaunchError
from .implementations import RealSubprocess, RealTmux
from .logging_config import get_logger
from .models import CodingSession
from .protocols import SubprocessInterface, TmuxInterface
from .status_constants import (
    AGENT_CLAUDE_CODE,
    AGENT_CODEX,
    AGENT_COMMANDS,
    AGENT_OPENCODE,
    STATUS_IDLE,
    STATUS_RUNNING,
    STATUS_STOPPED,
)
from .tmux_utils import extract_bead_id, parse_model, slugify

logger = get_logger("monitor")

# CPU usage above this marks an agent as running rather than idle
RUNNING_CPU_THRESHOLD = 0.1
SEED_PROMPT_DELAY = 0.3


@dataclass
class ProcessRow:
    pid: int
    ppid: int
    cpu_percent: float
    command: str


def parse_process_rows(output: str) -> List[ProcessRow]:
    """Parse `ps -axo pid=,ppid=,pcpu=,command=` output."""
    rows = []
    for line in output.splitlines():
        columns = line.split(None, 3)
        if len(columns) != 4:
            continue
        try:
            pid, ppid = int(columns[0]), int(columns[1])
        except ValueError:
            continue
        try:
            cpu = float(columns[2])
        except ValueError:
            cpu = 0.0
        rows.append(ProcessRow(pid=pid, ppid=ppid, cpu_percent=cpu, command=columns[3]))
    return rows


def collect_process_tree(root_pid: Optional[int], rows: Iterable[ProcessRow]) -> List[ProcessRow]:
    """All processes descending from root_pid (inclusive)."""
    if root_pid is None:
        return []
    rows = list(rows)
    by_pid = {r.pid: r for r in rows}
    children: Dict[int, List[ProcessRow]] = {}
    for r in rows:
        children.setdefault(r.ppid, []).append(r)

    collected = []
    visited = set()
    stack = [root_pid]
    while stack:
        pid = stack.pop()
        if pid in visited:
            continue
        visited.add(pid)
        if pid in by_pid:
            collected.append(by_pid[pid])
        stack.extend(child.pid for child in children.get(pid, []))
    return collected


def agent_type_for_command(command: str) -> Optional[str]:
    """Identify which coding agent a command line belongs to."""
    lower = (command or "").lower()
    if "claude" in lower:
        return AGENT_CLAUDE_CODE
    if "codex" in lower:
        return AGENT_CODEX
    if "opencode" in lower:
        return AGENT_OPENCODE
    return None


def resolve_status(has_agent_process: bool, is_attached: bool, cpu_percent: float) -> str:
    if not has_agent_process:
        return STATUS_IDLE if is_attached else STATUS_STOPPED
    return STATUS_RUNNING if cpu_percent > RUNNING_CPU_THRESHOLD else STATUS_IDLE


def build_seed_prompt(bead_id: Optional[str], prompt: Optional[str]) -> str:
    prompt = (prompt or "").strip()
    if bead_id and prompt:
        return f"[{bead_id}] {prompt}"
    if bead_id:
        return f"Continue work for bead {bead_id}."
    return prompt


class SessionMonitor:
    """Lists and launches coding-agent sessions on the tmux backend."""

    def __init__(
        self,
        tmux: Optional[TmuxInterface] = None,
        subprocess: Optional[SubprocessInterface] = None,
    ):
        self.tmux = tmux or RealTmux()
        self.subprocess = subprocess or RealSubprocess()

    def list_sessions(self) -> List[CodingSession]:
        """Discover sessions on the backend.

        Returns an empty list when no tmux server is running.
        """
        rows = self.tmux.list_sessions()
        if not rows:
            return []
        processes = self._list_processes()
        now = time.time()

        sessions = []
        for row in rows:
            related = collect_process_tree(row.get("pane_pid"), processes)
            agent_processes = [p for p in related if agent_type_for_command(p.command)]
            selected = agent_processes[0] if agent_processes else None

            agent_type = (
                (selected and agent_type_for_command(selected.command))
                or agent_type_for_command(row.get("current_command", ""))
                or AGENT_CLAUDE_CODE
            )
            cpu_source = agent_processes or related
            cpu_percent = max((p.cpu_percent for p in cpu_source), default=0.0)
            created = row.get("created", now)
            current_path = row.get("current_path") or ""

            sessions.append(CodingSession(
                id=row["name"],
                name=row["name"],
                status=resolve_status(bool(agent_processes), row.get("attached", False), cpu_percent),
                agent_type=agent_type,
                model=parse_model(selected.command) if selected else None,
                bead_id=extract_bead_id(row["name"]),
                project_path=Path(current_path) if current_path else None,
                process_id=row.get("pane_pid"),
                cpu_percent=cpu_percent,
                created_at=datetime.fromtimestamp(created),
                elapsed_base=max(0.0, now - created),
            ))
        return sessions

    def _list_processes(self) -> List[ProcessRow]:
        result = self.subprocess.run(["ps", "-axo", "pid=,ppid=,pcpu=,command="], timeout=5)
        if result is None or result["returncode"] != 0:
            logger.warning("Unable to list processes; agent detection skipped")
            return []
        return parse_process_rows(result["stdout"])

    def launch_session(
        self,
        project_path: Path,
        agent_type: str = AGENT_CLAUDE_CODE,
        bead_id: Optional[str] = None,
        prompt: Optional[str] = None,
    ) -> str:
        """Start an agent in a new detached tmux session.

        Returns:
            The name (and id) of the new session

        Raises:
            InvalidSessionNameError: No usable session name could be built
            LaunchError: The project path or agent command is missing, or
                tmux refused to create the session
        """
        project_path = Path(project_path).expanduser()
        project_slug = slugify(project_path.name)
        context_slug = slugify(bead_id or str(int(time.time())))
        if not project_slug and not context_slug:
            raise InvalidSessionNameError()
        session_name = f"ab-{project_slug}-{context_slug}"

        if not project_path.is_dir():
            raise LaunchError(f"Project path does not exist: {project_path}")

        command = AGENT_COMMANDS.get(agent_type)
        if command is None:
            raise LaunchError(f"Unknown agent type: {agent_type}")
        if shutil.which(command) is None:
            raise LaunchError(
                f"Agent command '{command}' not found. "
                f"Please ensure {agent_type} is installed and in PATH."
            )

        if self.tmux.has_session(session_name):
            session_name = f"{session_name}-{int(time.time()) % 10_000}"

        if not self.tmux.new_session(session_name, command=command, cwd=str(project_path)):
            raise LaunchError(f"Failed to launch session {session_name}")
        logger.info("Launched %s in %s (%s)", session_name, project_path, agent_type)

        seed = build_seed_prompt(bead_id, prompt)
        if seed:
            time.sleep(SEED_PROMPT_DELAY)
            if not self.tmux.send_keys(session_name, seed, enter=True):
                logger.warning("Could not send seed prompt to %s", session_name)

        return session_name
