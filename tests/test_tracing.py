"""
Tests for Langfuse tracing.

Tests cover:
- Client disabled states
- Context manager no-ops when disabled
- Trace lifecycle with a mocked Langfuse client
- Agent runs with tracing enabled
"""

from unittest.mock import MagicMock, patch

import pytest

from conftest import completion, tool_call

from coding_agent.agent import run_agent
from coding_agent.tracing import (
    TracingClient,
    TracingContext,
    get_tracing_client,
    init_tracing_client,
    shutdown_tracing,
)


@pytest.fixture(autouse=True)
def reset_tracing():
    shutdown_tracing()
    yield
    shutdown_tracing()


@pytest.fixture
def mock_langfuse():
    with patch("coding_agent.tracing.client.Langfuse") as langfuse_cls:
        langfuse_cls.return_value.auth_check.return_value = True
        yield langfuse_cls


class TestTracingClient:
    """Tests for TracingClient."""

    def test_client_disabled_without_credentials(self):
        client = TracingClient(public_key="", secret_key="")
        assert client.enabled is False
        assert "credentials not configured" in client.error.lower()

    def test_client_disabled_with_partial_credentials(self):
        assert TracingClient(public_key="pk-test", secret_key="").enabled is False

    def test_client_enabled(self, mock_langfuse):
        client = TracingClient(public_key="pk", secret_key="sk", host="http://lf:3000")
        assert client.enabled is True
        assert client.error is None
        assert mock_langfuse.call_args.kwargs["host"] == "http://lf:3000"

    def test_auth_failure_disables(self, mock_langfuse):
        mock_langfuse.return_value.auth_check.return_value = False
        client = TracingClient(public_key="pk", secret_key="sk")
        assert client.enabled is False
        assert "auth_check" in client.error

    def test_init_exception_disables(self, mock_langfuse):
        mock_langfuse.side_effect = RuntimeError("bad host")
        client = TracingClient(public_key="pk", secret_key="sk")
        assert client.enabled is False
        assert "bad host" in client.error

    def test_disabled_shutdown_is_noop(self):
        client = TracingClient()
        client.shutdown()
        assert client.client is None

    def test_global_singleton(self, mock_langfuse):
        client = init_tracing_client(public_key="pk", secret_key="sk")
        assert get_tracing_client() is client
        shutdown_tracing()
        assert get_tracing_client() is None
        mock_langfuse.return_value.shutdown.assert_called_once()


class TestTracingContextDisabled:
    """Without a client every context manager is a no-op."""

    def test_disabled_by_default(self):
        assert TracingContext(run_id="r1").enabled is False

    def test_context_managers_yield_inactive_observations(self):
        ctx = TracingContext(run_id="r1")
        with ctx.trace(name="run") as root:
            root.set_output({"ok": True})
            with ctx.span(name="tool:echo") as span:
                span.set_status("error")
                assert span.active is False
            with ctx.generation(name="step", model="m") as gen:
                gen.add_metadata(tokens=3)
                assert gen.active is False
        assert root.active is False

    def test_exceptions_propagate(self):
        ctx = TracingContext(run_id="r1")
        with pytest.raises(KeyError):
            with ctx.span(name="s"):
                raise KeyError("boom")


class TestTracingContextEnabled:
    """Lifecycle against a mocked Langfuse client."""

    def test_trace_records_output_and_session(self, mock_langfuse):
        init_tracing_client(public_key="pk", secret_key="sk")
        langfuse = mock_langfuse.return_value
        observation = langfuse.start_as_current_observation.return_value.__enter__.return_value

        ctx = TracingContext(run_id="r1", session_id="chat-1")
        assert ctx.enabled is True
        with ctx.trace(name="agent_run", input={"q": 1}) as root:
            root.set_output("answer")

        kwargs = langfuse.start_as_current_observation.call_args.kwargs
        assert kwargs["as_type"] == "span"
        assert kwargs["name"] == "agent_run"
        assert kwargs["metadata"]["run_id"] == "r1"
        observation.update_trace.assert_called_once_with(session_id="chat-1")
        update = observation.update.call_args.kwargs
        assert update["output"] == "answer"
        assert update["metadata"]["status"] == "success"

    def test_error_status_sets_level(self, mock_langfuse):
        init_tracing_client(public_key="pk", secret_key="sk")
        observation = (
            mock_langfuse.return_value.start_as_current_observation.return_value.__enter__.return_value
        )

        with TracingContext(run_id="r1").span(name="tool:x") as span:
            span.set_status("error")

        assert observation.update.call_args.kwargs["level"] == "ERROR"

    def test_start_failure_does_not_break_caller(self, mock_langfuse):
        init_tracing_client(public_key="pk", secret_key="sk")
        mock_langfuse.return_value.start_as_current_observation.side_effect = RuntimeError(
            "otel down"
        )

        with TracingContext(run_id="r1").generation(name="g") as gen:
            assert gen.active is False

    def test_agent_run_creates_observations(self, mock_langfuse, make_services):
        init_tracing_client(public_key="pk", secret_key="sk")
        services = make_services([tool_call("echo", text="hi"), completion("done")])

        result = run_agent("Go", "system", services)

        assert result.success is True
        calls = mock_langfuse.return_value.start_as_current_observation.call_args_list
        types = [c.kwargs["as_type"] for c in calls]
        names = [c.kwargs["name"] for c in calls]
        assert types.count("generation") == 2
        assert "tool:echo" in names
        assert names[0] == "agent_run"
