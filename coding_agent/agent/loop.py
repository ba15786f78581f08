"""
Agent orchestration loop.

The model answers every turn with one JSON instruction: call a tool or
declare the task done. Each iteration:

    1. Stop if the conversation is over the context budget
    2. Send the full history to the model
    3. Parse the reply; on failure feed the error back and retry
    4. Validate the shape; on failure feed the diagnostic back and retry
    5. Tool call: execute it and append the result
    6. Completion: append the reply and return the response

Recoverable problems (bad JSON, wrong shape, failing tools) become
conversation messages so the model can correct itself. Only the context
limit, the iteration limit and infrastructure exceptions end a run early,
and all of them come back as an AgentResult rather than an exception.
"""

import json
import logging
import uuid
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Mapping, Optional, Union

from ..config import AgentSettings
from ..conversation import ConversationService, Message
from ..llm import ChatService
from ..tools import ToolCall, ToolRegistry
from ..tracing import TracingContext
from .errors import AgentErrorKind, JsonParseError, ResponseValidationError
from .formats import FORMAT_REMINDER
from .parser import safe_parse_json
from .prompts import format_tool_catalog
from .schemas import CompletionResponse, ToolCallResponse
from .validator import validate_response

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 10
DEFAULT_CONTEXT_LIMIT_THRESHOLD = 0.8
DEFAULT_MAX_TOKENS = 32768


@dataclass(frozen=True)
class AgentConfig:
    """Limits for one agent run."""

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    context_limit_threshold: float = DEFAULT_CONTEXT_LIMIT_THRESHOLD
    max_tokens: int = DEFAULT_MAX_TOKENS

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        if not 0 < self.context_limit_threshold <= 1:
            raise ValueError("context_limit_threshold must be in (0, 1]")
        if self.max_tokens < 1:
            raise ValueError("max_tokens must be positive")

    @classmethod
    def from_settings(cls, settings: AgentSettings) -> "AgentConfig":
        return cls(
            max_iterations=settings.max_iterations,
            context_limit_threshold=settings.context_limit_threshold,
            max_tokens=settings.max_tokens,
        )

    @property
    def token_budget(self) -> float:
        """Estimated token count above which the run stops."""
        return self.max_tokens * self.context_limit_threshold


@dataclass
class AgentMetrics:
    """Counters for a single run."""

    iterations: int = 0
    tool_calls: int = 0
    parse_errors: int = 0
    tool_failures: int = 0
    context_limit_reached: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AgentResult:
    """Outcome of a run: a response on success, an error otherwise."""

    success: bool
    metrics: AgentMetrics = field(default_factory=AgentMetrics)
    response: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[AgentErrorKind] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "response": self.response,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "metrics": self.metrics.to_dict(),
        }


@dataclass
class AgentServices:
    """Collaborators used by the loop."""

    llm: ChatService
    conversation: ConversationService
    tools: ToolRegistry

    def close(self) -> None:
        """Release the model client, for backends that hold one."""
        close = getattr(self.llm, "close", None)
        if callable(close):
            close()


def resolve_config(
    config: Union[AgentConfig, Mapping[str, Any], None],
    defaults: Optional[AgentConfig] = None,
) -> AgentConfig:
    """Merge per-call overrides over the defaults."""
    base = defaults or AgentConfig()
    if config is None:
        return base
    if isinstance(config, AgentConfig):
        return config
    return replace(base, **dict(config))


def build_parse_error_message(error: JsonParseError, tools: ToolRegistry) -> Message:
    """System message telling the model its reply was not valid JSON."""
    return Message(
        role="system",
        content=(
            f"{error.message}\n\n"
            f"Available tools:\n{format_tool_catalog(tools.list_tools())}\n\n"
            f"{FORMAT_REMINDER}"
        ),
    )


def build_validation_error_message(error: ResponseValidationError) -> Message:
    """System message telling the model its reply had the wrong shape."""
    return Message(role="system", content=error.message)


def _tally(metrics: AgentMetrics) -> str:
    return (
        f"{metrics.tool_calls} tool call(s), {metrics.parse_errors} parse error(s)"
    )


def _failure(message: str, kind: AgentErrorKind, metrics: AgentMetrics) -> AgentResult:
    return AgentResult(success=False, error=message, error_kind=kind, metrics=metrics)


def _validate_inputs(user_input: str, system_prompt: str) -> Optional[str]:
    if not user_input or not user_input.strip():
        return "User input cannot be empty"
    if not system_prompt or not system_prompt.strip():
        return "System prompt cannot be empty"
    return None


def _ensure_conversation_initialized(
    conversation: ConversationService, system_prompt: str
) -> None:
    """Seed an empty conversation with the system prompt, once."""
    if conversation.get_all_messages():
        return

    system_message = Message(role="system", content=system_prompt)
    if conversation.exists():
        # Record survives a clear(); re-seed it in place.
        conversation.add(system_message)
    else:
        conversation.create([system_message])


def _execute_tool(
    call: ToolCallResponse,
    services: AgentServices,
    metrics: AgentMetrics,
    tracing: TracingContext,
) -> None:
    metrics.tool_calls += 1

    with tracing.span(name=f"tool:{call.tool}", input=call.args) as span:
        result = services.tools.execute(ToolCall(name=call.tool, args=call.args))
        span.set_output(result.to_wire())
        if not result.success:
            span.set_status("error")

    if not result.success:
        metrics.tool_failures += 1
        logger.info("Tool '%s' failed: %s", call.tool, result.error)

    services.conversation.add(
        Message(
            role="assistant",
            content=json.dumps({"tool_result": result.to_wire()}, default=str),
        )
    )


def _iterate(
    services: AgentServices,
    config: AgentConfig,
    metrics: AgentMetrics,
    tracing: TracingContext,
    run_id: str,
) -> AgentResult:
    for _ in range(config.max_iterations):
        metrics.iterations += 1
        iteration = metrics.iterations

        estimated_tokens = services.conversation.estimate_tokens()
        if estimated_tokens > config.token_budget:
            metrics.context_limit_reached = True
            logger.warning(
                "[%s] Context limit reached at iteration %d (%d tokens)",
                run_id,
                iteration,
                estimated_tokens,
            )
            return _failure(
                f"Context limit reached ({estimated_tokens} tokens, limit "
                f"{int(config.token_budget)}) at iteration {iteration} after "
                f"{_tally(metrics)}.",
                AgentErrorKind.CONTEXT_LIMIT,
                metrics,
            )

        messages = services.conversation.get_all_messages()
        logger.debug(
            "[%s] Iteration %d: calling model with %d message(s)",
            run_id,
            iteration,
            len(messages),
        )
        with tracing.generation(
            name=f"agent_step_{iteration}",
            model=getattr(services.llm, "model", None),
            input=[m.model_dump() for m in messages],
        ) as gen:
            llm_result = services.llm.chat(messages)
            gen.set_output(llm_result.content)

        parsed = safe_parse_json(llm_result.content)
        if not parsed.success:
            metrics.parse_errors += 1
            logger.debug("[%s] Iteration %d: unparseable reply", run_id, iteration)
            services.conversation.add(
                build_parse_error_message(parsed.error, services.tools)
            )
            continue

        validated = validate_response(parsed.data)
        if not validated.success:
            metrics.parse_errors += 1
            logger.debug("[%s] Iteration %d: invalid reply shape", run_id, iteration)
            services.conversation.add(build_validation_error_message(validated.error))
            continue

        response = validated.data
        if isinstance(response, ToolCallResponse):
            logger.debug("[%s] Iteration %d: tool '%s'", run_id, iteration, response.tool)
            _execute_tool(response, services, metrics, tracing)
            continue

        if isinstance(response, CompletionResponse):
            services.conversation.add(
                Message(role="assistant", content=llm_result.content)
            )
            logger.info(
                "[%s] Completed in %d iteration(s), %s",
                run_id,
                iteration,
                _tally(metrics),
            )
            return AgentResult(success=True, response=response.response, metrics=metrics)

    logger.warning("[%s] Max iterations (%d) exceeded", run_id, config.max_iterations)
    return _failure(
        f"Max iterations ({config.max_iterations}) exceeded after {_tally(metrics)}.",
        AgentErrorKind.MAX_ITERATIONS,
        metrics,
    )


def run_agent(
    user_input: str,
    system_prompt: str,
    services: AgentServices,
    config: Union[AgentConfig, Mapping[str, Any], None] = None,
    tracing_context: Optional[TracingContext] = None,
) -> AgentResult:
    """
    Run the agent until the model completes the task or a limit is hit.

    Args:
        user_input: The task for this run
        system_prompt: Seeded as the first message of an empty conversation
        services: Model service, conversation store and tool registry
        config: AgentConfig, or a mapping of overrides for the defaults
        tracing_context: Optional Langfuse tracing for the run

    Returns:
        AgentResult with the response or a terminal error, always carrying
        the run's metrics. Empty inputs and unusable config overrides come
        back as ``invalid_input`` failures
    """
    metrics = AgentMetrics()

    input_error = _validate_inputs(user_input, system_prompt)
    if input_error:
        return _failure(input_error, AgentErrorKind.INVALID_INPUT, metrics)

    try:
        resolved = resolve_config(config)
    except (TypeError, ValueError) as e:
        return _failure(
            f"Invalid agent config: {e}", AgentErrorKind.INVALID_INPUT, metrics
        )

    tracing = tracing_context or TracingContext(
        run_id=services.conversation.conversation_id
    )
    run_id = tracing.run_id or uuid.uuid4().hex[:8]

    with tracing.trace(
        name="agent_run",
        input={"user_input": user_input},
        metadata={"max_iterations": resolved.max_iterations},
    ) as root:
        try:
            _ensure_conversation_initialized(services.conversation, system_prompt)
            services.conversation.add(Message(role="user", content=user_input))
            result = _iterate(services, resolved, metrics, tracing, run_id)
        except Exception as e:
            logger.error("[%s] Agent run aborted: %s", run_id, e)
            result = _failure(f"Agent error: {e}", AgentErrorKind.AGENT_ERROR, metrics)

        root.set_output(result.to_dict())
        if not result.success:
            root.set_status("error")

    return result
