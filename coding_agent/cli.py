#!/usr/bin/env python3
"""
Coding agent command-line interface.

    coding-agent ask "What is in notes.txt?"
    coding-agent chat --show-metrics
"""

import argparse
import json
import logging
import sys
import traceback
import uuid
from dataclasses import replace
from typing import Optional

from .agent import AgentConfig, AgentResult, AgentServices, build_system_prompt, run_agent
from .config import AppConfig, load_app_config
from .services import create_services
from .tracing import TracingContext, init_tracing_client, shutdown_tracing

logger = logging.getLogger(__name__)

CHAT_HELP = """
Available commands:
  /help     - Show this help message
  /tools    - List available tools
  /metrics  - Show metrics of the last run
  /clear    - Clear conversation history
  /quit     - Exit the chat
"""


def setup_logging(verbose: bool = False, level: str = "WARNING") -> None:
    """Configure logging based on verbosity level."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def format_error(error: BaseException, verbose: bool) -> str:
    if verbose:
        return "".join(traceback.format_exception(type(error), error, error.__traceback__))
    return str(error)


def format_metrics(result: AgentResult) -> str:
    m = result.metrics
    return "\n".join(
        [
            "--- Metrics ---",
            f"Iterations: {m.iterations}",
            f"Tool Calls: {m.tool_calls}",
            f"Parse Errors: {m.parse_errors}",
            f"Tool Failures: {m.tool_failures}",
            f"Context Limit Reached: {m.context_limit_reached}",
        ]
    )


def format_result(result: AgentResult, show_metrics: bool) -> str:
    output = []
    if result.success and result.response is not None:
        output.append(result.response)
    elif result.error:
        output.append(f"Error: {result.error}")

    if show_metrics:
        output.append("\n" + format_metrics(result))
    return "\n".join(output)


def _agent_config(app_config: AppConfig, max_iterations: Optional[int]) -> AgentConfig:
    config = AgentConfig.from_settings(app_config.agent)
    if max_iterations is not None:
        config = replace(config, max_iterations=max_iterations)
    return config


def _init_tracing(app_config: AppConfig) -> None:
    if app_config.langfuse.enabled:
        init_tracing_client(
            public_key=app_config.langfuse.public_key,
            secret_key=app_config.langfuse.secret_key,
            host=app_config.langfuse.host,
            debug=app_config.langfuse.debug,
        )


def cmd_ask(args: argparse.Namespace, app_config: AppConfig) -> int:
    """Run a single task and print the result."""
    agent_config = _agent_config(app_config, args.max_iterations)
    conversation_id = str(uuid.uuid4())
    services = create_services(conversation_id, app_config, model=args.model)
    system_prompt = build_system_prompt(
        services.tools.list_tools(), app_config.agent.system_role
    )

    try:
        result = run_agent(
            args.prompt,
            system_prompt,
            services,
            agent_config,
            tracing_context=TracingContext(run_id=conversation_id),
        )
    finally:
        services.close()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(format_result(result, args.show_metrics))
    return 0 if result.success else 1


def cmd_chat(args: argparse.Namespace, app_config: AppConfig) -> int:
    """Interactive session; all turns share one conversation."""
    agent_config = _agent_config(app_config, args.max_iterations)
    conversation_id = str(uuid.uuid4())
    services = create_services(conversation_id, app_config, model=args.model)
    system_prompt = build_system_prompt(
        services.tools.list_tools(), app_config.agent.system_role
    )
    try:
        return _chat_loop(args, services, system_prompt, agent_config, conversation_id)
    finally:
        services.close()


def _chat_loop(
    args: argparse.Namespace,
    services: AgentServices,
    system_prompt: str,
    agent_config: AgentConfig,
    conversation_id: str,
) -> int:
    last_result: Optional[AgentResult] = None

    print(CHAT_HELP)
    while True:
        try:
            user_input = input(">>> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye!\n")
            return 0

        if not user_input:
            continue

        if user_input.startswith("/"):
            command = user_input.lower()
            if command in ("/quit", "/exit", "/q"):
                print("\nGoodbye!\n")
                return 0
            elif command in ("/help", "/h", "/?"):
                print(CHAT_HELP)
            elif command == "/tools":
                print("\n" + services.tools.get_tools_summary() + "\n")
            elif command == "/metrics":
                if last_result is None:
                    print("\nNo metrics yet. Ask something first.\n")
                else:
                    print("\n" + format_metrics(last_result) + "\n")
            elif command == "/clear":
                if services.conversation.exists():
                    services.conversation.clear()
                print("\nConversation history cleared.\n")
            else:
                print(f"\nUnknown command: {user_input}")
                print("Type /help for available commands.\n")
            continue

        try:
            last_result = run_agent(
                user_input,
                system_prompt,
                services,
                agent_config,
                tracing_context=TracingContext(
                    run_id=uuid.uuid4().hex[:8], session_id=conversation_id
                ),
            )
        except KeyboardInterrupt:
            print("\n\nRun interrupted.\n")
            continue

        print("\n" + format_result(last_result, args.show_metrics) + "\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coding-agent",
        description="AI coding assistant with tool support",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ask "What is 17 * 23?"
  %(prog)s ask "Summarize notes.txt" --show-metrics
  %(prog)s chat -m llama3.1:8b
""",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose logging and tracebacks"
    )
    parser.add_argument("--config", type=str, default=None, help="Path to a YAML config file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_run_options(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("-m", "--model", type=str, default=None, help="LLM model to use")
        sub.add_argument(
            "-i",
            "--max-iterations",
            type=int,
            default=None,
            help="Maximum number of agent iterations",
        )
        sub.add_argument(
            "--show-metrics", action="store_true", help="Display agent execution metrics"
        )

    ask = subparsers.add_parser("ask", help="Ask the agent to do one task")
    ask.add_argument("prompt", help="What you want the agent to do")
    ask.add_argument("--json", action="store_true", help="Print the result as JSON")
    add_run_options(ask)
    ask.set_defaults(handler=cmd_ask)

    chat = subparsers.add_parser("chat", help="Start an interactive session")
    add_run_options(chat)
    chat.set_defaults(handler=cmd_chat)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        app_config = load_app_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        setup_logging(args.verbose)
        print(f"Configuration error: {format_error(e, args.verbose)}", file=sys.stderr)
        return 1

    setup_logging(args.verbose, app_config.log_level)
    _init_tracing(app_config)

    try:
        return args.handler(args, app_config)
    except Exception as e:
        print(format_error(e, args.verbose), file=sys.stderr)
        return 1
    finally:
        shutdown_tracing()


if __name__ == "__main__":
    sys.exit(main())
