"""
coding-agent - a JSON tool-calling agent loop.

This package provides:
- Response parsing and strict validation of model turns
- A schema-checked tool registry with built-in tools
- The agent loop with iteration and context budgets
- Ollama and OpenAI-compatible model backends
- A command-line interface
"""

from .agent import AgentConfig, AgentMetrics, AgentResult, AgentServices, run_agent
from .services import create_services

__all__ = [
    "AgentConfig",
    "AgentMetrics",
    "AgentResult",
    "AgentServices",
    "run_agent",
    "create_services",
]

__version__ = "0.1.0"
