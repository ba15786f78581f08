"""
Run-scoped tracing context.

One TracingContext covers one agent run. Observations opened inside
``trace()`` nest under it through OpenTelemetry context propagation, so the
agent loop only has to use nested ``with`` blocks.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

from .client import get_tracing_client

logger = logging.getLogger(__name__)


@dataclass
class Observation:
    """Handle for an open span or generation; collects updates until it ends."""

    name: str
    _observation: Any = field(default=None, repr=False)
    _output: Any = field(default=None, repr=False)
    _status: str = field(default="success", repr=False)
    _metadata: dict = field(default_factory=dict, repr=False)
    _start_time: float = field(default_factory=time.time, repr=False)

    @property
    def active(self) -> bool:
        return self._observation is not None

    def set_output(self, output: Any) -> None:
        self._output = output

    def set_status(self, status: str) -> None:
        self._status = status

    def add_metadata(self, **metadata: Any) -> None:
        self._metadata.update(metadata)

    def _finish(self) -> None:
        duration_ms = (time.time() - self._start_time) * 1000
        update: dict[str, Any] = {
            "metadata": {
                **self._metadata,
                "status": self._status,
                "duration_ms": round(duration_ms, 2),
            }
        }
        if self._output is not None:
            update["output"] = self._output
        if self._status == "error":
            update["level"] = "ERROR"
        self._observation.update(**update)


@dataclass
class TracingContext:
    """Tracing for a single agent run."""

    run_id: str
    session_id: Optional[str] = None
    _enabled: bool = field(default=False, repr=False)

    def __post_init__(self):
        client = get_tracing_client()
        self._enabled = client is not None and client.enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    @contextmanager
    def _observe(
        self, as_type: str, name: str, **kwargs: Any
    ) -> Generator[Observation, None, None]:
        handle = Observation(name=name)
        manager = None

        client = get_tracing_client()
        if self._enabled and client is not None and client.client is not None:
            try:
                manager = client.client.start_as_current_observation(
                    as_type=as_type, name=name, **kwargs
                )
                handle._observation = manager.__enter__()
            except Exception as e:
                logger.warning("[%s] Failed to start %s '%s': %s", self.run_id, as_type, name, e)
                manager = None

        try:
            yield handle
        finally:
            if manager is not None:
                try:
                    handle._finish()
                    manager.__exit__(None, None, None)
                except Exception as e:
                    logger.warning("[%s] Failed to end %s '%s': %s", self.run_id, as_type, name, e)

    @contextmanager
    def trace(
        self,
        name: str = "agent_run",
        input: Optional[Any] = None,
        metadata: Optional[dict] = None,
    ) -> Generator[Observation, None, None]:
        """Open the root observation for the run."""
        with self._observe(
            "span",
            name,
            input=input,
            metadata={"run_id": self.run_id, **(metadata or {})},
        ) as root:
            if root.active and self.session_id:
                try:
                    root._observation.update_trace(session_id=self.session_id)
                except Exception as e:
                    logger.debug("[%s] Could not set session id: %s", self.run_id, e)
            yield root

    @contextmanager
    def span(
        self,
        name: str,
        input: Optional[Any] = None,
        metadata: Optional[dict] = None,
    ) -> Generator[Observation, None, None]:
        """Open a span, e.g. for a tool execution."""
        with self._observe("span", name, input=input, metadata=metadata) as obs:
            yield obs

    @contextmanager
    def generation(
        self,
        name: str,
        model: Optional[str] = None,
        input: Optional[Any] = None,
        metadata: Optional[dict] = None,
    ) -> Generator[Observation, None, None]:
        """Open a generation for a model call."""
        with self._observe(
            "generation", name, model=model, input=input, metadata=metadata
        ) as obs:
            yield obs
