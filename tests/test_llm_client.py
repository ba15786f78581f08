"""Tests for the model invocation services."""

from unittest.mock import Mock, patch

import openai
import pytest
import requests

from coding_agent.config import LLMConfig
from coding_agent.conversation import Message
from coding_agent.llm import (
    LlmApiError,
    LlmError,
    OllamaChatService,
    OpenAIChatService,
    create_chat_service,
)

MESSAGES = [
    Message(role="system", content="sys"),
    Message(role="user", content="hi"),
]


def _response(status=200, payload=None):
    response = Mock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.json.return_value = payload
    response.text = str(payload)
    return response


class TestOllamaChatService:
    @patch("coding_agent.llm.client.requests.post")
    def test_chat_success(self, mock_post):
        mock_post.return_value = _response(
            payload={"message": {"role": "assistant", "content": "hello"}}
        )
        service = OllamaChatService("http://ollama:11434/", "qwen", timeout=5)

        result = service.chat(MESSAGES)

        assert result.content == "hello"
        url = mock_post.call_args.args[0]
        body = mock_post.call_args.kwargs["json"]
        assert url == "http://ollama:11434/api/chat"
        assert body == {
            "model": "qwen",
            "messages": [
                {"role": "system", "content": "sys"},
                {"role": "user", "content": "hi"},
            ],
            "stream": False,
        }
        assert mock_post.call_args.kwargs["timeout"] == 5

    @patch("coding_agent.llm.client.requests.post")
    def test_http_error(self, mock_post):
        mock_post.return_value = _response(status=500, payload={"error": "oom"})

        with pytest.raises(LlmApiError) as exc_info:
            OllamaChatService("http://ollama", "qwen").chat(MESSAGES)

        assert exc_info.value.status == 500
        assert exc_info.value.response_data == {"error": "oom"}
        assert "LLM API error (500)" in str(exc_info.value)

    @patch("coding_agent.llm.client.requests.post")
    def test_missing_message(self, mock_post):
        mock_post.return_value = _response(payload={"done": True})

        with pytest.raises(LlmApiError, match="missing message"):
            OllamaChatService("http://ollama", "qwen").chat(MESSAGES)

    @patch("coding_agent.llm.client.requests.post")
    def test_timeout(self, mock_post):
        mock_post.side_effect = requests.Timeout("slow")

        with pytest.raises(LlmError, match="timeout after 2s"):
            OllamaChatService("http://ollama", "qwen", timeout=2).chat(MESSAGES)

    @patch("coding_agent.llm.client.requests.post")
    def test_connection_error(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("refused")

        with pytest.raises(LlmError, match="LLM request failed"):
            OllamaChatService("http://ollama", "qwen").chat(MESSAGES)


class TestOpenAIChatService:
    @patch("coding_agent.llm.client.OpenAI")
    def test_chat_success(self, mock_openai):
        client = mock_openai.return_value
        client.chat.completions.create.return_value = Mock(
            choices=[Mock(message=Mock(content="hi there"))]
        )
        service = OpenAIChatService("http://vllm/v1", "model-x", temperature=0.0)

        result = service.chat(MESSAGES)

        assert result.content == "hi there"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "model-x"
        assert kwargs["temperature"] == 0.0
        assert kwargs["messages"][1] == {"role": "user", "content": "hi"}

    @patch("coding_agent.llm.client.OpenAI")
    def test_status_error(self, mock_openai):
        error = openai.APIStatusError.__new__(openai.APIStatusError)
        error.status_code = 429
        error.body = {"error": "rate limited"}
        mock_openai.return_value.chat.completions.create.side_effect = error

        with pytest.raises(LlmApiError) as exc_info:
            OpenAIChatService("http://vllm/v1", "model-x").chat(MESSAGES)

        assert exc_info.value.status == 429

    @patch("coding_agent.llm.client.OpenAI")
    def test_client_error(self, mock_openai):
        mock_openai.return_value.chat.completions.create.side_effect = openai.OpenAIError(
            "no route"
        )

        with pytest.raises(LlmError, match="no route"):
            OpenAIChatService("http://vllm/v1", "model-x").chat(MESSAGES)

    @patch("coding_agent.llm.client.OpenAI")
    def test_no_choices(self, mock_openai):
        mock_openai.return_value.chat.completions.create.return_value = Mock(choices=[])

        with pytest.raises(LlmError, match="no choices"):
            OpenAIChatService("http://vllm/v1", "model-x").chat(MESSAGES)


class TestCreateChatService:
    def test_ollama_backend(self):
        config = LLMConfig(backend="ollama", base_url="http://o", model="m1", timeout=3)
        service = create_chat_service(config)
        assert isinstance(service, OllamaChatService)
        assert service.model == "m1"

    def test_model_override(self):
        config = LLMConfig(backend="ollama", base_url="http://o", model="m1")
        assert create_chat_service(config, model="m2").model == "m2"

    @patch("coding_agent.llm.client.OpenAI")
    def test_openai_backend(self, mock_openai):
        config = LLMConfig(backend="openai", base_url="http://v/v1", model="m1", api_key="k")
        service = create_chat_service(config)
        assert isinstance(service, OpenAIChatService)
        assert mock_openai.call_args.kwargs["api_key"] == "k"

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown LLM backend"):
            create_chat_service(LLMConfig(backend="carrier-pigeon"))
