"""
Model invocation services.

Both backends expose the same ``chat(messages) -> ChatResult`` call and raise
``LlmError`` (or its ``LlmApiError`` subclass) on any failure:

- Ollama, via its native ``/api/chat`` endpoint
- OpenAI-compatible servers (vLLM, SGLang, hosted APIs) via the openai SDK
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol, Union

import openai
import requests
from openai import OpenAI

from ..config import LLMConfig
from ..conversation import Message
from .errors import LlmApiError, LlmError

logger = logging.getLogger(__name__)


@dataclass
class ChatResult:
    """Completion text returned by a model."""

    content: str


class ChatService(Protocol):
    def chat(self, messages: list[Message]) -> ChatResult: ...


def _to_wire(messages: Iterable[Union[Message, dict]]) -> list[dict]:
    return [
        m.model_dump() if isinstance(m, Message) else {"role": m["role"], "content": m["content"]}
        for m in messages
    ]


class OllamaChatService:
    """Chat with a model served by Ollama."""

    def __init__(self, base_url: str, model: str, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    def chat(self, messages: list[Message]) -> ChatResult:
        """
        Send the full message history and return the model's reply.

        Raises:
            LlmApiError: On a non-2xx status or a response without
                ``message.content``
            LlmError: On transport failures and timeouts
        """
        url = f"{self.base_url}/api/chat"
        body = {"model": self.model, "messages": _to_wire(messages), "stream": False}

        try:
            response = requests.post(url, json=body, timeout=self.timeout)
        except requests.Timeout as e:
            raise LlmError(f"LLM request failed: timeout after {self.timeout}s", e) from e
        except requests.RequestException as e:
            raise LlmError(f"LLM request failed: {e}", e) from e

        try:
            data = response.json()
        except ValueError:
            data = response.text

        if not response.ok:
            logger.error("Ollama returned HTTP %d", response.status_code)
            raise LlmApiError(response.status_code, data)

        message = data.get("message") if isinstance(data, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise LlmApiError(
                response.status_code,
                data,
                "Invalid response from Ollama: missing message",
            )
        return ChatResult(content=content)


class OpenAIChatService:
    """Chat with an OpenAI-compatible endpoint."""

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: str = "not-needed",
        temperature: float = 0.2,
        timeout: float = 30.0,
    ):
        self.model = model
        self.temperature = temperature
        self._client = OpenAI(base_url=base_url, api_key=api_key, timeout=timeout)

    def chat(self, messages: list[Message]) -> ChatResult:
        """
        Send the full message history and return the model's reply.

        Raises:
            LlmApiError: On an error status from the server
            LlmError: On connection failures, timeouts or empty choices
        """
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=_to_wire(messages),  # type: ignore[arg-type]
                temperature=self.temperature,
            )
        except openai.APIStatusError as e:
            raise LlmApiError(e.status_code, e.body) from e
        except openai.OpenAIError as e:
            raise LlmError(f"LLM request failed: {e}", e) from e

        if not response.choices:
            raise LlmError("Invalid response: no choices returned", response)
        return ChatResult(content=response.choices[0].message.content or "")

    def close(self) -> None:
        """Close the underlying OpenAI client."""
        self._client.close()


def create_chat_service(llm_config: LLMConfig, model: str | None = None) -> ChatService:
    """Build the chat service selected by ``llm.backend``."""
    resolved_model = model or llm_config.model
    if llm_config.backend == "openai":
        return OpenAIChatService(
            base_url=llm_config.base_url,
            model=resolved_model,
            api_key=llm_config.api_key,
            temperature=llm_config.temperature,
            timeout=llm_config.timeout,
        )
    if llm_config.backend == "ollama":
        return OllamaChatService(
            base_url=llm_config.base_url,
            model=resolved_model,
            timeout=llm_config.timeout,
        )
    raise ValueError(f"Unknown LLM backend: {llm_config.backend}")
