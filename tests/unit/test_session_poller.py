"""
Unit tests for the session poller.

Captures are driven by fake clients that block until the test releases
them, so in-flight and out-of-order situations can be set up exactly.
"""

import asyncio
import threading

import pytest

from agentboard.config import PollingConfig
from agentboard.exceptions import CaptureUnavailableError
from agentboard.models import CapturedOutput
from agentboard.session_poller import SessionPoller, next_fetch_sequence
from agentboard.session_registry import SessionRegistry

from tests.fixtures import (
    ControlledCaptureClient,
    ScriptedCaptureClient,
    create_session,
    wait_for,
)


def make_registry(*ids):
    return SessionRegistry([create_session(id=i) for i in ids])


class TestConstruction:
    """Test poller construction and tunables."""

    def test_defaults(self):
        """Defaults are a 2 second interval and 500 lines."""
        poller = SessionPoller(ScriptedCaptureClient())
        assert poller.interval == 2.0
        assert poller.max_lines == 500
        assert poller.bound_session_id is None
        assert not poller.is_bound

    @pytest.mark.parametrize("interval", [0, -1.0])
    def test_rejects_non_positive_interval(self, interval):
        """Interval must be positive."""
        with pytest.raises(ValueError):
            SessionPoller(ScriptedCaptureClient(), interval=interval)

    def test_rejects_zero_max_lines(self):
        """max_lines must be at least 1."""
        with pytest.raises(ValueError):
            SessionPoller(ScriptedCaptureClient(), max_lines=0)

    def test_from_config(self):
        """from_config copies tunables from PollingConfig."""
        poller = SessionPoller.from_config(ScriptedCaptureClient(), PollingConfig(interval=0.5, max_lines=42))
        assert poller.interval == 0.5
        assert poller.max_lines == 42

    def test_fetch_sequence_increases(self):
        """Fetch sequence numbers are strictly increasing across pollers."""
        first = next_fetch_sequence()
        second = next_fetch_sequence()
        assert second > first


class TestBind:
    """Test binding behavior."""

    @pytest.mark.asyncio
    async def test_bind_captures_immediately(self):
        """Binding issues a capture right away with max_lines."""
        client = ControlledCaptureClient()
        poller = SessionPoller(client, interval=10)
        async with poller:
            await poller.bind("sess-42")
            await wait_for(lambda: client.call_count == 1)
            assert client.calls[0] == ("sess-42", 500)
            assert poller.bound_session_id == "sess-42"
            assert poller.in_flight

    @pytest.mark.asyncio
    async def test_bind_same_session_is_noop(self):
        """Binding again to the bound session keeps the running loop."""
        client = ControlledCaptureClient()
        poller = SessionPoller(client, interval=10)
        async with poller:
            await poller.bind("sess-42")
            await wait_for(lambda: client.call_count == 1)
            loop_task = poller._loop_task

            await poller.bind("sess-42")
            await asyncio.sleep(0.05)

            assert poller._loop_task is loop_task
            assert client.call_count == 1

    @pytest.mark.asyncio
    async def test_bind_other_session_replaces_binding(self):
        """Binding another session starts a fresh loop for it."""
        client = ControlledCaptureClient()
        poller = SessionPoller(client, interval=10)
        async with poller:
            await poller.bind("sess-42")
            await wait_for(lambda: client.call_count == 1)
            await poller.bind("sess-43")
            await wait_for(lambda: client.call_count == 2)

            assert poller.bound_session_id == "sess-43"
            assert client.calls[1][0] == "sess-43"

    @pytest.mark.asyncio
    async def test_rebind_resets_failure_count(self):
        """A new binding starts with zero consecutive failures."""
        client = ControlledCaptureClient()
        poller = SessionPoller(client, interval=10)
        async with poller:
            await poller.bind("sess-42")
            await wait_for(lambda: client.call_count == 1)
            client.fail(0)
            await wait_for(lambda: poller.consecutive_failures == 1)

            await poller.bind("sess-43")
            assert poller.consecutive_failures == 0


class TestSingleFlight:
    """Test that captures never overlap for a binding."""

    @pytest.mark.asyncio
    async def test_ticks_skipped_while_capture_outstanding(self):
        """Ticks that fire during a slow capture are dropped, not queued."""
        client = ControlledCaptureClient()
        poller = SessionPoller(client, interval=0.02)
        async with poller:
            await poller.bind("sess-42")
            await wait_for(lambda: client.call_count == 1)

            # Many intervals pass while the first capture is outstanding
            await asyncio.sleep(0.2)
            assert client.call_count == 1

            client.release(0, "done")
            await wait_for(lambda: client.call_count == 2)
            # Skipped ticks were not replayed as a burst
            await asyncio.sleep(0.01)
            assert client.call_count == 2

    @pytest.mark.asyncio
    async def test_refresh_now_respects_in_flight(self):
        """refresh_now does not issue a second concurrent capture."""
        client = ControlledCaptureClient()
        poller = SessionPoller(client, interval=10)
        async with poller:
            await poller.bind("sess-42")
            await wait_for(lambda: client.call_count == 1)

            assert poller.refresh_now() is False
            assert client.call_count == 1

            client.release(0, "first")
            await wait_for(lambda: not poller.in_flight)

            assert poller.refresh_now() is True
            await wait_for(lambda: client.call_count == 2)

    def test_refresh_now_unbound(self):
        """refresh_now is a no-op without a binding."""
        poller = SessionPoller(ScriptedCaptureClient())
        assert poller.refresh_now() is False


class TestResultApplication:
    """Test ordering and stale-result rules."""

    @pytest.mark.asyncio
    async def test_result_applied_to_registry_and_callback(self):
        """Applied output reaches the registry and on_output."""
        registry = make_registry("sess-42")
        outputs = []
        client = ControlledCaptureClient()
        poller = SessionPoller(client, registry=registry, interval=10, on_output=outputs.append)
        async with poller:
            await poller.bind("sess-42")
            await wait_for(lambda: client.call_count == 1)
            client.release(0, "line1\nline2")
            await wait_for(lambda: len(outputs) == 1)

        assert outputs[0].session_id == "sess-42"
        assert outputs[0].text == "line1\nline2"
        assert registry.get("sess-42").output == "line1\nline2"
        assert registry.get("sess-42").output_sequence == outputs[0].sequence

    @pytest.mark.asyncio
    async def test_older_sequence_discarded(self):
        """A result older than the last applied one is dropped."""
        registry = make_registry("sess-42")
        client = ControlledCaptureClient()
        poller = SessionPoller(client, registry=registry, interval=10)
        async with poller:
            await poller.bind("sess-42")
            binding = poller._binding

            assert poller._apply(binding, CapturedOutput("sess-42", "newer", 1_000_000)) is True
            assert poller._apply(binding, CapturedOutput("sess-42", "older", 999_999)) is False
            assert poller._apply(binding, CapturedOutput("sess-42", "same", 1_000_000)) is False

        assert registry.get("sess-42").output == "newer"

    @pytest.mark.asyncio
    async def test_superseded_binding_discarded(self):
        """A result for a previous binding is dropped even for the same session id."""
        registry = make_registry("sess-42")
        client = ControlledCaptureClient()
        poller = SessionPoller(client, registry=registry, interval=10)
        async with poller:
            await poller.bind("sess-42")
            old_binding = poller._binding
            await poller.unbind()
            await poller.bind("sess-42")

            applied = poller._apply(old_binding, CapturedOutput("sess-42", "late", next_fetch_sequence()))

        assert applied is False
        assert registry.get("sess-42").output == ""

    @pytest.mark.asyncio
    async def test_late_result_after_rebind_never_applied(self):
        """A capture that completes after a rebind does not touch either session."""
        registry = make_registry("sess-42", "sess-43")
        outputs = []
        started = threading.Event()
        release = threading.Event()

        class SlowClient:
            def capture(self, session_id, max_lines):
                if session_id == "sess-42":
                    started.set()
                    release.wait(2)
                    return "stale"
                return "fresh"

        poller = SessionPoller(SlowClient(), registry=registry, interval=10, on_output=outputs.append)
        try:
            await poller.bind("sess-42")
            await wait_for(started.is_set)
            await poller.bind("sess-43")
            await wait_for(lambda: registry.get("sess-43").output == "fresh")

            release.set()
            await asyncio.sleep(0.1)
        finally:
            release.set()
            await poller.unbind()

        assert registry.get("sess-42").output == ""
        assert registry.get("sess-43").output == "fresh"
        assert [o.session_id for o in outputs] == ["sess-43"]

    @pytest.mark.asyncio
    async def test_output_callback_errors_do_not_stop_loop(self):
        """An exception in on_output is logged and polling continues."""
        client = ControlledCaptureClient()

        def broken(result):
            raise RuntimeError("boom")

        poller = SessionPoller(client, interval=0.02, on_output=broken)
        async with poller:
            await poller.bind("sess-42")
            await wait_for(lambda: client.call_count == 1)
            client.release(0, "text")
            await wait_for(lambda: client.call_count == 2)

    @pytest.mark.asyncio
    async def test_sync_client_runs_in_thread(self):
        """Synchronous capture clients are supported."""
        registry = make_registry("sess-42")
        client = ScriptedCaptureClient({"sess-42": "hello"})
        poller = SessionPoller(client, registry=registry, interval=10, max_lines=20)
        async with poller:
            await poller.bind("sess-42")
            await wait_for(lambda: registry.get("sess-42").output == "hello")

        assert client.calls == [("sess-42", 20)]


class TestFailures:
    """Test capture failure handling."""

    @pytest.mark.asyncio
    async def test_failure_keeps_last_output_and_loop_running(self):
        """A failed capture leaves the last good output and the loop continues."""
        registry = make_registry("sess-42")
        failures = []
        client = ControlledCaptureClient()
        poller = SessionPoller(
            client,
            registry=registry,
            interval=0.02,
            on_failure=lambda sid, exc, count: failures.append((sid, exc, count)),
        )
        async with poller:
            await poller.bind("sess-42")
            await wait_for(lambda: client.call_count == 1)
            client.release(0, "good")
            await wait_for(lambda: client.call_count == 2)

            client.fail(1)
            await wait_for(lambda: client.call_count == 3)

            assert registry.get("sess-42").output == "good"
            assert poller.consecutive_failures == 1
            assert failures[0][0] == "sess-42"
            assert isinstance(failures[0][1], CaptureUnavailableError)
            assert failures[0][2] == 1

    @pytest.mark.asyncio
    async def test_consecutive_failures_counted_and_reset(self):
        """The failure count grows per failure and resets on success."""
        client = ControlledCaptureClient()
        poller = SessionPoller(client, interval=0.02)
        async with poller:
            await poller.bind("sess-42")
            await wait_for(lambda: client.call_count == 1)
            client.fail(0)
            await wait_for(lambda: client.call_count == 2)
            client.fail(1, RuntimeError("backend exploded"))
            await wait_for(lambda: client.call_count == 3)

            assert poller.consecutive_failures == 2

            client.release(2, "back")
            await wait_for(lambda: poller.consecutive_failures == 0)

    @pytest.mark.asyncio
    async def test_failure_not_retried_early(self):
        """After a failure the next attempt waits for the next tick."""
        client = ControlledCaptureClient()
        poller = SessionPoller(client, interval=10)
        async with poller:
            await poller.bind("sess-42")
            await wait_for(lambda: client.call_count == 1)
            client.fail(0)
            await wait_for(lambda: poller.consecutive_failures == 1)
            await asyncio.sleep(0.05)

            assert client.call_count == 1


class TestUnbind:
    """Test unbind semantics."""

    @pytest.mark.asyncio
    async def test_unbind_when_unbound(self):
        """unbind with nothing bound is harmless, even twice."""
        registry = make_registry("sess-42")
        poller = SessionPoller(ScriptedCaptureClient(), registry=registry)

        await poller.unbind()
        await poller.unbind()

        assert not poller.is_bound
        assert registry.get("sess-42").output == ""

    @pytest.mark.asyncio
    async def test_unbind_twice_after_bind(self):
        """Double unbind after a bind raises nothing."""
        client = ControlledCaptureClient()
        poller = SessionPoller(client, interval=10)
        await poller.bind("sess-42")
        await wait_for(lambda: client.call_count == 1)

        await poller.unbind()
        await poller.unbind()

        assert poller.bound_session_id is None
        assert not poller.in_flight

    @pytest.mark.asyncio
    async def test_unbind_stops_polling(self):
        """No captures are issued after unbind."""
        client = ScriptedCaptureClient({"sess-42": "x"})
        poller = SessionPoller(client, interval=0.02)
        await poller.bind("sess-42")
        await wait_for(lambda: client.call_count >= 2)

        await poller.unbind()
        count = client.call_count
        await asyncio.sleep(0.1)

        assert client.call_count == count

    @pytest.mark.asyncio
    async def test_unbind_cancels_outstanding_capture(self):
        """An outstanding capture is cancelled and its result never applied."""
        registry = make_registry("sess-42")
        client = ControlledCaptureClient()
        poller = SessionPoller(client, registry=registry, interval=10)
        await poller.bind("sess-42")
        await wait_for(lambda: client.call_count == 1)

        await poller.unbind()
        client.release(0, "too late")
        await asyncio.sleep(0.02)

        assert registry.get("sess-42").output == ""
        assert not poller._capture_tasks


class TestEndToEnd:
    """Bind, stream two outputs, then rebind."""

    @pytest.mark.asyncio
    async def test_stream_then_rebind(self):
        registry = make_registry("sess-42", "sess-43")
        outputs = []
        client = ControlledCaptureClient()
        poller = SessionPoller(client, registry=registry, interval=0.05, on_output=outputs.append)
        async with poller:
            await poller.bind("sess-42")
            await wait_for(lambda: client.call_count == 1)
            client.release(0, "line1\nline2")
            await wait_for(lambda: client.call_count == 2)
            client.release(1, "line1\nline2\nline3")
            await wait_for(lambda: len(outputs) == 2)

            assert [o.text for o in outputs] == ["line1\nline2", "line1\nline2\nline3"]
            assert outputs[0].sequence < outputs[1].sequence

            await poller.bind("sess-43")
            await wait_for(lambda: any(c[0] == "sess-43" for c in client.calls))

            for i, (session_id, _) in enumerate(client.calls):
                if session_id == "sess-42" and i > 1:
                    client.release(i, "late")
            first_43 = next(i for i, c in enumerate(client.calls) if c[0] == "sess-43")
            client.release(first_43, "hello")
            await wait_for(lambda: registry.get("sess-43").output == "hello")
            await asyncio.sleep(0.05)

        assert registry.get("sess-43").output == "hello"
        assert registry.get("sess-42").output == "line1\nline2\nline3"
        assert all(o.text != "late" for o in outputs)
