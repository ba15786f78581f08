"""
Service wiring for agent runs.

Builds the model service, conversation store and tool registry that
``run_agent`` needs, from application config.
"""

import logging
from typing import Optional

from .agent import AgentServices
from .config import AppConfig, load_app_config
from .conversation import ConversationService, InMemoryConversationRepository
from .llm import create_chat_service
from .tools import Tool, ToolRegistry, default_tools

logger = logging.getLogger(__name__)


def create_services(
    conversation_id: str,
    app_config: Optional[AppConfig] = None,
    model: Optional[str] = None,
    tools: Optional[list[Tool]] = None,
) -> AgentServices:
    """
    Create the services for one conversation.

    Args:
        conversation_id: Id of the conversation the agent will use
        app_config: Application config; loaded from env/YAML if omitted
        model: Model name overriding ``llm.model``
        tools: Tools to register instead of the built-in ones

    Returns:
        AgentServices backed by an in-memory conversation store
    """
    app_config = app_config or load_app_config()

    repository = InMemoryConversationRepository()
    conversation = ConversationService(conversation_id, repository)
    llm = create_chat_service(app_config.llm, model=model)
    registry = ToolRegistry(tools if tools is not None else default_tools(app_config.tools))

    logger.debug(
        "Services ready: backend=%s, model=%s, tools=%s",
        app_config.llm.backend,
        model or app_config.llm.model,
        [t.name for t in registry.list_tools()],
    )
    return AgentServices(llm=llm, conversation=conversation, tools=registry)
