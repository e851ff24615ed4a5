"""
Session poller - streams captured terminal output for one bound session.

A poller belongs to a single UI surface. Binding it to a session starts an
asyncio task that captures the session's output immediately and then once
per interval until the poller is unbound or rebound.

Guarantees:
- At most one capture per binding is in flight. A tick that fires while a
  capture is outstanding is skipped, not queued.
- Every capture carries a process-wide fetch sequence number. A result is
  applied only if its binding is still the current one and its sequence is
  newer than the last applied one, so output from a superseded binding is
  dropped even when the capture call itself could not be cancelled.
- Failed captures never stop the loop; the last good output stays in place
  and the next attempt happens on the next regular tick.
"""

import asyncio
import inspect
import itertools
from typing import Callable, Optional, Set

from .config import DEFAULT_MAX_LINES, DEFAULT_POLL_INTERVAL, PollingConfig
from .exceptions import CaptureUnavailableError
from .logging_config import get_structured_logger
from .models import CapturedOutput
from .protocols import CaptureClient
from .session_registry import SessionRegistry

OutputCallback = Callable[[CapturedOutput], None]
FailureCallback = Callable[[str, BaseException, int], None]

# Shared by all pollers so the registry can order results from any surface
_fetch_sequence = itertools.count(1)


def next_fetch_sequence() -> int:
    return next(_fetch_sequence)


class _Binding:
    """One bind() of a poller to a session. Compared by identity."""

    __slots__ = ("session_id", "in_flight", "last_applied", "failures")

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.in_flight = False
        self.last_applied = 0
        self.failures = 0


class SessionPoller:
    """Cancellable periodic capture loop bound to one session at a time."""

    def __init__(
        self,
        capture_client: CaptureClient,
        registry: Optional[SessionRegistry] = None,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_lines: int = DEFAULT_MAX_LINES,
        on_output: Optional[OutputCallback] = None,
        on_failure: Optional[FailureCallback] = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        if max_lines < 1:
            raise ValueError("max_lines must be >= 1")
        self.capture_client = capture_client
        self.registry = registry
        self.interval = interval
        self.max_lines = max_lines
        self.on_output = on_output
        self.on_failure = on_failure

        self._async_capture = inspect.iscoroutinefunction(capture_client.capture)
        self._binding: Optional[_Binding] = None
        self._loop_task: Optional[asyncio.Task] = None
        self._capture_tasks: Set[asyncio.Task] = set()
        self._log = get_structured_logger("poller")

    @classmethod
    def from_config(cls, capture_client: CaptureClient, config: PollingConfig, **kwargs) -> "SessionPoller":
        return cls(capture_client, interval=config.interval, max_lines=config.max_lines, **kwargs)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def bound_session_id(self) -> Optional[str]:
        return self._binding.session_id if self._binding else None

    @property
    def is_bound(self) -> bool:
        return self._binding is not None

    @property
    def in_flight(self) -> bool:
        return bool(self._binding and self._binding.in_flight)

    @property
    def consecutive_failures(self) -> int:
        return self._binding.failures if self._binding else 0

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    async def bind(self, session_id: str) -> None:
        """Start polling session_id, replacing any previous binding.

        Binding again to the session already being polled is a no-op.
        """
        if (
            self._binding is not None
            and self._binding.session_id == session_id
            and self._loop_task is not None
            and not self._loop_task.done()
        ):
            return

        await self.unbind()
        binding = _Binding(session_id)
        self._binding = binding
        self._loop_task = asyncio.create_task(self._run(binding), name=f"poller:{session_id}")
        self._log.debug("Bound", session_id=session_id)

    async def unbind(self) -> None:
        """Stop polling and wait until the loop and captures have settled.

        Safe to call when nothing is bound.
        """
        binding, self._binding = self._binding, None
        loop_task, self._loop_task = self._loop_task, None

        pending = [t for t in self._capture_tasks if not t.done()]
        if loop_task is not None and not loop_task.done():
            pending.append(loop_task)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        if binding is not None:
            self._log.debug("Unbound", session_id=binding.session_id)

    async def close(self) -> None:
        await self.unbind()

    async def __aenter__(self) -> "SessionPoller":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.unbind()

    def refresh_now(self) -> bool:
        """Capture immediately, unless a capture is already in flight.

        Must be called from the event loop thread.

        Returns:
            True if a capture was issued
        """
        binding = self._binding
        if binding is None:
            return False
        return self._issue(binding)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def _run(self, binding: _Binding) -> None:
        while binding is self._binding:
            self._issue(binding)
            await asyncio.sleep(self.interval)

    def _issue(self, binding: _Binding) -> bool:
        if binding is not self._binding:
            return False
        if binding.in_flight:
            self._log.debug("Capture still in flight, skipping tick", session_id=binding.session_id)
            return False

        binding.in_flight = True
        sequence = next_fetch_sequence()
        task = asyncio.create_task(self._capture(binding, sequence))
        self._capture_tasks.add(task)
        task.add_done_callback(self._capture_tasks.discard)
        return True

    async def _capture(self, binding: _Binding, sequence: int) -> None:
        try:
            text = await self._call_capture(binding.session_id)
        except CaptureUnavailableError as e:
            self._record_failure(binding, e)
            return
        except Exception as e:
            self._log.exception("Capture client raised", session_id=binding.session_id, seq=sequence)
            self._record_failure(binding, e)
            return
        finally:
            binding.in_flight = False

        self._apply(binding, CapturedOutput(binding.session_id, text, sequence))

    async def _call_capture(self, session_id: str) -> str:
        if self._async_capture:
            return await self.capture_client.capture(session_id, self.max_lines)
        return await asyncio.to_thread(self.capture_client.capture, session_id, self.max_lines)

    def _apply(self, binding: _Binding, result: CapturedOutput) -> bool:
        if binding is not self._binding:
            self._log.debug("Discarding result from superseded binding",
                            session_id=result.session_id, seq=result.sequence)
            return False
        if result.sequence <= binding.last_applied:
            self._log.debug("Discarding out-of-order result",
                            session_id=result.session_id, seq=result.sequence)
            return False

        binding.last_applied = result.sequence
        binding.failures = 0
        if self.registry is not None:
            self.registry.update_output(result.session_id, result.text, sequence=result.sequence)
        if self.on_output is not None:
            try:
                self.on_output(result)
            except Exception:
                self._log.exception("Output callback failed", session_id=result.session_id)
        return True

    def _record_failure(self, binding: _Binding, error: BaseException) -> None:
        if binding is not self._binding:
            return
        binding.failures += 1
        self._log.warning(f"Capture failed: {error}", session_id=binding.session_id,
                          consecutive=binding.failures)
        if self.on_failure is not None:
            try:
                self.on_failure(binding.session_id, error, binding.failures)
            except Exception:
                self._log.exception("Failure callback failed", session_id=binding.session_id)
