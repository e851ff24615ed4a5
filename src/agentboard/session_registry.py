"""
Session registry - the canonical store of CodingSession records.

The registry is shared between the UI thread, thread workers that refresh
the session list, and one poller per open terminal surface. A registry lock
guards membership; each record carries its own lock, so updates to
different sessions never wait on each other and readers always receive a
consistent snapshot copy rather than the live record.
"""

import threading
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set

from .logging_config import get_logger
from .models import CodingSession
from .status_constants import get_status_sort_order, is_active_status, is_alert_status

logger = get_logger("registry")


@dataclass
class SyncResult:
    """Outcome of reconciling the registry with a backend listing."""
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    # Sessions that just transitioned into an alert status
    alerts: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


class _Entry:
    __slots__ = ("record", "lock")

    def __init__(self, record: CodingSession):
        self.record = record
        self.lock = threading.Lock()


class SessionRegistry:
    """Thread-safe holder of the current coding sessions."""

    def __init__(
        self,
        sessions: Iterable[CodingSession] = (),
        clock: Callable[[], float] = time.monotonic,
    ):
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, _Entry] = {}
        self._alerts: Set[str] = set()
        for session in sessions:
            self.add(session)

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    def get(self, session_id: str) -> Optional[CodingSession]:
        """Snapshot of a session, or None if it doesn't exist."""
        entry = self._entry(session_id)
        if entry is None:
            return None
        with entry.lock:
            return replace(entry.record)

    def sessions(self) -> List[CodingSession]:
        """Snapshots of all sessions, by status order then newest first."""
        with self._lock:
            entries = list(self._entries.values())
        snapshots = []
        for entry in entries:
            with entry.lock:
                snapshots.append(replace(entry.record))
        snapshots.sort(key=lambda s: -s.created_at.timestamp())
        snapshots.sort(key=lambda s: get_status_sort_order(s.status))
        return snapshots

    def __iter__(self) -> Iterator[CodingSession]:
        return iter(self.sessions())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._entries

    def elapsed(self, session_id: str) -> Optional[float]:
        """Current elapsed seconds for a session, measured on the registry clock."""
        entry = self._entry(session_id)
        if entry is None:
            return None
        with entry.lock:
            return entry.record.elapsed(self._clock())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, session: CodingSession) -> None:
        """Insert or replace a session record."""
        record = replace(session)
        if is_active_status(record.status) and record.elapsed_anchor is None:
            record.elapsed_anchor = self._clock()
        with self._lock:
            self._entries[record.id] = _Entry(record)

    def remove(self, session_id: str) -> bool:
        """Drop a session (its owning context was torn down)."""
        with self._lock:
            removed = self._entries.pop(session_id, None)
            self._alerts.discard(session_id)
        return removed is not None

    def update_output(self, session_id: str, text: str, sequence: Optional[int] = None) -> bool:
        """Replace the cached display text of a session.

        When a sequence number is given, output older than (or equal to) the
        applied one is ignored. Missing sessions are ignored silently.

        Returns:
            True if the text was applied
        """
        entry = self._entry(session_id)
        if entry is None:
            logger.debug("Ignoring output for unknown session %s", session_id)
            return False
        with entry.lock:
            record = entry.record
            if sequence is not None:
                if sequence <= record.output_sequence:
                    return False
                record.output_sequence = sequence
            record.output = text
        return True

    def update_status(self, session_id: str, status: str) -> bool:
        """Set the backend-reported status (any status to any status)."""
        entry = self._entry(session_id)
        if entry is None:
            logger.debug("Ignoring status for unknown session %s", session_id)
            return False
        with entry.lock:
            old_status = entry.record.status
            self._apply_status(entry.record, status, self._clock())
        if old_status != status and is_alert_status(status):
            with self._lock:
                if session_id in self._entries:
                    self._alerts.add(session_id)
        return True

    def sync(self, discovered: Iterable[CodingSession]) -> SyncResult:
        """Reconcile with a fresh listing from the backend.

        Existing records keep their cached output and their elapsed time
        never moves backward; sessions missing from the listing are removed.
        """
        now = self._clock()
        result = SyncResult()
        fresh = {s.id: s for s in discovered}

        with self._lock:
            for session_id in list(self._entries):
                if session_id not in fresh:
                    del self._entries[session_id]
                    self._alerts.discard(session_id)
                    result.removed.append(session_id)

            for session_id, incoming in fresh.items():
                entry = self._entries.get(session_id)
                if entry is None:
                    record = replace(incoming)
                    record.elapsed_anchor = now if is_active_status(record.status) else None
                    self._entries[session_id] = _Entry(record)
                    result.added.append(session_id)
                    continue

                with entry.lock:
                    record = entry.record
                    old_status = record.status
                    self._merge(record, incoming, now)
                if old_status != incoming.status and is_alert_status(incoming.status):
                    self._alerts.add(session_id)
                    result.alerts.append(session_id)

        if result.changed:
            logger.info("Sessions changed: +%d -%d", len(result.added), len(result.removed))
        return result

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    @property
    def alerts(self) -> frozenset:
        with self._lock:
            return frozenset(self._alerts)

    def has_alert(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._alerts

    def clear_alert(self, session_id: str) -> None:
        with self._lock:
            self._alerts.discard(session_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _entry(self, session_id: str) -> Optional[_Entry]:
        with self._lock:
            return self._entries.get(session_id)

    @staticmethod
    def _apply_status(record: CodingSession, status: str, now: float) -> None:
        was_active = is_active_status(record.status)
        if was_active and not is_active_status(status):
            record.elapsed_base = record.elapsed(now)
            record.elapsed_anchor = None
        elif is_active_status(status) and (record.elapsed_anchor is None or not was_active):
            record.elapsed_anchor = now
        record.status = status

    def _merge(self, record: CodingSession, incoming: CodingSession, now: float) -> None:
        current_elapsed = record.elapsed(now)
        record.name = incoming.name
        record.agent_type = incoming.agent_type
        record.model = incoming.model
        record.bead_id = incoming.bead_id
        record.project_path = incoming.project_path
        record.process_id = incoming.process_id
        record.cpu_percent = incoming.cpu_percent
        record.created_at = incoming.created_at
        self._apply_status(record, incoming.status, now)

        # Backend-reported elapsed comes from wall-clock arithmetic; only let
        # it move the displayed value forward, and only while active.
        if is_active_status(record.status):
            record.elapsed_base = max(current_elapsed, incoming.elapsed_base)
            record.elapsed_anchor = now
        else:
            record.elapsed_base = current_elapsed
            record.elapsed_anchor = None
