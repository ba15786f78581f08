"""
Langfuse tracing integration.

Provides observability for agent runs, model calls and tool executions.
"""

from .client import (
    TracingClient,
    get_tracing_client,
    init_tracing_client,
    shutdown_tracing,
)
from .context import Observation, TracingContext

__all__ = [
    "TracingClient",
    "get_tracing_client",
    "init_tracing_client",
    "shutdown_tracing",
    "Observation",
    "TracingContext",
]
