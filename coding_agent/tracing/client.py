"""
Langfuse tracing client wrapper with graceful degradation.

Uses the Langfuse SDK v3 (OpenTelemetry-based) API. Tracing is a no-op when
credentials are missing or the server cannot be reached; it never affects
agent runs.
"""

import logging
from typing import Any, Optional

from langfuse import Langfuse

logger = logging.getLogger(__name__)


class TracingClient:
    """Langfuse client that disables itself instead of failing."""

    def __init__(
        self,
        public_key: str = "",
        secret_key: str = "",
        host: str = "",
        debug: bool = False,
    ):
        self._client: Optional[Langfuse] = None
        self._enabled = False
        self._error: Optional[str] = None

        if not public_key or not secret_key:
            self._error = "Langfuse credentials not configured"
            logger.debug("Tracing disabled: %s", self._error)
            return

        if host and not host.startswith(("http://", "https://")):
            logger.warning(
                "LANGFUSE_HOST '%s' may be malformed. Expected format: "
                "http://hostname:port or https://hostname:port.",
                host,
            )

        kwargs: dict[str, Any] = {
            "public_key": public_key,
            "secret_key": secret_key,
            "debug": debug,
        }
        if host:
            kwargs["host"] = host

        try:
            self._client = Langfuse(**kwargs)
            if not self._client.auth_check():
                self._disable("Langfuse auth_check() failed - check host and credentials")
                return
        except Exception as e:
            self._disable(f"Failed to initialize Langfuse client: {e}")
            return

        self._enabled = True
        logger.info("Langfuse tracing enabled (host: %s)", host or "default")

    def _disable(self, reason: str) -> None:
        self._error = reason
        self._client = None
        logger.warning("Tracing disabled: %s", reason)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def error(self) -> Optional[str]:
        """Why tracing is disabled, if it is."""
        return self._error

    @property
    def client(self) -> Optional[Langfuse]:
        return self._client

    def shutdown(self) -> None:
        """Flush and shut down the client."""
        if not self._enabled or not self._client:
            return
        try:
            self._client.shutdown()
            logger.info("Langfuse tracing client shutdown complete")
        except Exception as e:
            logger.warning("Error during tracing client shutdown: %s", e)


_tracing_client: Optional[TracingClient] = None


def init_tracing_client(
    public_key: str = "",
    secret_key: str = "",
    host: str = "",
    debug: bool = False,
) -> TracingClient:
    """Initialize the global tracing client singleton."""
    global _tracing_client
    _tracing_client = TracingClient(
        public_key=public_key,
        secret_key=secret_key,
        host=host,
        debug=debug,
    )
    return _tracing_client


def get_tracing_client() -> Optional[TracingClient]:
    return _tracing_client


def shutdown_tracing() -> None:
    """Shut down and forget the global tracing client."""
    global _tracing_client
    if _tracing_client:
        _tracing_client.shutdown()
        _tracing_client = None
