"""
Pytest configuration and fixtures for coding-agent tests.
"""

import json
from typing import Iterable, Union

import pytest
from pydantic import BaseModel

from coding_agent.agent import AgentServices
from coding_agent.conversation import ConversationService, InMemoryConversationRepository
from coding_agent.llm import ChatResult, LlmError
from coding_agent.tools import Tool, ToolRegistry, tool_success


class ScriptedChatService:
    """Chat service that replays canned replies and records every call."""

    model = "scripted-model"

    def __init__(self, replies: Iterable[Union[str, Exception]], repeat_last: bool = True):
        self._replies = list(replies)
        self._repeat_last = repeat_last
        self.calls: list[list] = []

    def chat(self, messages):
        self.calls.append(list(messages))
        index = len(self.calls) - 1
        if index >= len(self._replies):
            if not self._repeat_last or not self._replies:
                raise LlmError("no scripted reply left")
            index = len(self._replies) - 1
        reply = self._replies[index]
        if isinstance(reply, Exception):
            raise reply
        return ChatResult(content=reply)


class EchoArgs(BaseModel):
    text: str


def _echo(args: EchoArgs):
    return tool_success(args.text)


def make_echo_tool() -> Tool:
    return Tool(
        name="echo",
        description="Echo the given text",
        parameters={"text": "string - text to echo"},
        args_schema=EchoArgs,
        execute=_echo,
    )


def tool_call(name: str, **args) -> str:
    return json.dumps({"tool": name, "args": args})


def completion(text: str) -> str:
    return json.dumps({"done": True, "response": text})


@pytest.fixture
def conversation():
    return ConversationService("conv-test", InMemoryConversationRepository())


@pytest.fixture
def registry():
    return ToolRegistry([make_echo_tool()])


@pytest.fixture
def make_services(conversation, registry):
    """Factory: build AgentServices around a scripted model."""

    def _make(replies, repeat_last: bool = True) -> AgentServices:
        return AgentServices(
            llm=ScriptedChatService(replies, repeat_last=repeat_last),
            conversation=conversation,
            tools=registry,
        )

    return _make
