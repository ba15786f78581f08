"""Tests for service wiring."""

from unittest.mock import patch

from conftest import make_echo_tool

from coding_agent import create_services
from coding_agent.config import AppConfig, LLMConfig, ToolsConfig
from coding_agent.llm import OllamaChatService


def _config(tmp_path):
    return AppConfig(
        llm=LLMConfig(backend="ollama", base_url="http://ollama", model="base-model"),
        tools=ToolsConfig(sandbox_dir=str(tmp_path)),
    )


class TestCreateServices:
    def test_default_wiring(self, tmp_path):
        services = create_services("conv-1", _config(tmp_path))

        assert isinstance(services.llm, OllamaChatService)
        assert services.llm.model == "base-model"
        assert services.conversation.conversation_id == "conv-1"
        assert services.conversation.exists() is False
        assert [t.name for t in services.tools.list_tools()] == ["file_read", "calculate"]

    def test_model_override(self, tmp_path):
        services = create_services("conv-1", _config(tmp_path), model="other-model")
        assert services.llm.model == "other-model"

    def test_custom_tools(self, tmp_path):
        services = create_services("conv-1", _config(tmp_path), tools=[make_echo_tool()])
        assert [t.name for t in services.tools.list_tools()] == ["echo"]

    def test_loads_config_when_omitted(self, tmp_path):
        with patch("coding_agent.services.load_app_config", return_value=_config(tmp_path)) as load:
            create_services("conv-1")
        load.assert_called_once()

    def test_file_read_bound_to_sandbox(self, tmp_path):
        (tmp_path / "a.txt").write_text("contents", encoding="utf-8")
        services = create_services("conv-1", _config(tmp_path))

        from coding_agent.tools import ToolCall

        result = services.tools.execute(ToolCall(name="file_read", args={"path": "a.txt"}))
        assert result.data == "contents"


class TestCloseServices:
    def test_close_releases_model_client(self, tmp_path):
        config = _config(tmp_path)
        config.llm.backend = "openai"
        with patch("coding_agent.llm.client.OpenAI") as mock_openai:
            services = create_services("conv-1", config)
            services.close()
        mock_openai.return_value.close.assert_called_once()

    def test_close_without_client_is_noop(self, tmp_path):
        services = create_services("conv-1", _config(tmp_path))
        services.close()
