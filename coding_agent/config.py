"""
Configuration management for the coding agent.

Defaults come from environment variables (a ``.env`` file is loaded if
present). An optional YAML file can override any section; string values in
the file support ``${VAR}`` and ``${VAR:-default}`` interpolation.
"""

import logging
import os
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Regex for environment variable interpolation: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")

SUPPORTED_BACKENDS = ("ollama", "openai")

# Singleton cache for the loaded config
_app_config: Optional["AppConfig"] = None


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class LLMConfig:
    """Configuration for the model invocation service."""
    backend: str = field(default_factory=lambda: os.getenv("LLM_BACKEND", "ollama"))
    base_url: str = field(
        default_factory=lambda: os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    )
    model: str = field(
        default_factory=lambda: os.getenv("OLLAMA_MODEL", "qwen2.5-coder:3b")
    )
    timeout: float = field(
        default_factory=lambda: int(os.getenv("OLLAMA_TIMEOUT_MS", "30000")) / 1000
    )
    api_key: str = field(default_factory=lambda: os.getenv("LLM_API_KEY", "not-needed"))
    temperature: float = field(
        default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.2"))
    )


@dataclass
class AgentSettings:
    """Defaults for agent runs. Per-run overrides go through AgentConfig."""
    max_iterations: int = field(
        default_factory=lambda: int(os.getenv("MAX_AGENT_ITERATIONS", "10"))
    )
    context_limit_threshold: float = field(
        default_factory=lambda: float(os.getenv("AGENT_CONTEXT_LIMIT_THRESHOLD", "0.8"))
    )
    max_tokens: int = field(
        default_factory=lambda: int(os.getenv("AGENT_MAX_TOKENS", "32768"))
    )
    system_role: str = field(
        default_factory=lambda: os.getenv(
            "AGENT_SYSTEM_ROLE", "You are a helpful assistant with access to tools"
        )
    )


@dataclass
class ToolsConfig:
    """Configuration for the built-in tools."""
    sandbox_dir: str = field(default_factory=lambda: os.getenv("SANDBOX_DIR", "./sandbox"))
    max_file_size_bytes: int = field(
        default_factory=lambda: int(os.getenv("MAX_FILE_SIZE_BYTES", str(5 * 1024 * 1024)))
    )


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse observability.

    Tracing auto-enables when both public_key and secret_key are provided.
    """
    public_key: str = field(default_factory=lambda: os.getenv("LANGFUSE_PUBLIC_KEY", ""))
    secret_key: str = field(default_factory=lambda: os.getenv("LANGFUSE_SECRET_KEY", ""))
    host: str = field(default_factory=lambda: os.getenv("LANGFUSE_HOST", ""))
    debug: bool = field(default_factory=lambda: _env_bool("LANGFUSE_DEBUG"))

    @property
    def enabled(self) -> bool:
        """Auto-enable when both keys are configured."""
        return bool(self.public_key and self.secret_key)


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


@dataclass
class AppConfig:
    """Main configuration container."""
    llm: LLMConfig = field(default_factory=LLMConfig)
    agent: AgentSettings = field(default_factory=AgentSettings)
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    langfuse: LangfuseConfig = field(default_factory=LangfuseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def log_level(self) -> str:
        return self.logging.level


def resolve_env_vars(value: str) -> str:
    """
    Resolve environment variable references in a string.

    Supports ${VAR} and ${VAR:-default} syntax.
    """

    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.environ.get(var_name, default_value)

    return ENV_VAR_PATTERN.sub(replace_match, value)


def _substitute_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: _substitute_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return resolve_env_vars(data)
    return data


def _coerce(value: Any, target: Any) -> Any:
    """Coerce a YAML value to the type of the dataclass default."""
    if isinstance(target, bool):
        if isinstance(value, str):
            return value.lower() == "true"
        return bool(value)
    if isinstance(target, int):
        return int(value)
    if isinstance(target, float):
        return float(value)
    return value if not isinstance(target, str) else str(value)


def _overlay(section: Any, data: Optional[dict], section_name: str) -> Any:
    """Return a copy of a config section with YAML values applied."""
    if not data:
        return section
    if not isinstance(data, dict):
        raise ValueError(f"Config section '{section_name}' must be a mapping")

    known = {f.name for f in fields(section)}
    updates = {}
    for key, value in data.items():
        if key not in known:
            logger.warning("Ignoring unknown config key '%s.%s'", section_name, key)
            continue
        try:
            updates[key] = _coerce(value, getattr(section, key))
        except (TypeError, ValueError) as e:
            raise ValueError(
                f"Invalid value for '{section_name}.{key}': {value!r} ({e})"
            ) from e
    return replace(section, **updates)


def validate_config(app_config: AppConfig) -> list[str]:
    """
    Validate a configuration.

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    if app_config.llm.backend not in SUPPORTED_BACKENDS:
        errors.append(
            f"llm.backend must be one of {', '.join(SUPPORTED_BACKENDS)}, "
            f"got '{app_config.llm.backend}'"
        )
    if not app_config.llm.base_url:
        errors.append("llm.base_url is required")
    if not app_config.llm.model:
        errors.append("llm.model is required")
    if app_config.agent.max_iterations <= 0:
        errors.append("agent.max_iterations must be positive")
    if not 0 < app_config.agent.context_limit_threshold <= 1:
        errors.append("agent.context_limit_threshold must be in (0, 1]")
    if app_config.agent.max_tokens <= 0:
        errors.append("agent.max_tokens must be positive")
    if app_config.tools.max_file_size_bytes <= 0:
        errors.append("tools.max_file_size_bytes must be positive")
    return errors


def load_app_config(path: Optional[str] = None, reload: bool = False) -> AppConfig:
    """
    Load application configuration.

    Uses a singleton pattern - subsequent calls return the cached config
    unless reload=True is specified.

    Args:
        path: Path to a YAML configuration file. If None, uses the
              CONFIG_PATH env var; with neither, only environment
              variables and defaults apply.
        reload: If True, force reload instead of using the cache.

    Returns:
        AppConfig with all sections populated

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        ValueError: If the config is invalid
    """
    global _app_config

    if _app_config is not None and not reload:
        return _app_config

    if path is None:
        path = os.environ.get("CONFIG_PATH") or None

    app_config = AppConfig()

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found at {config_path}")

        logger.info("Loading configuration from %s", config_path)
        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(f) or {}

        if not isinstance(raw_config, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")

        raw_config = _substitute_env_vars_recursive(raw_config)
        app_config = AppConfig(
            llm=_overlay(app_config.llm, raw_config.get("llm"), "llm"),
            agent=_overlay(app_config.agent, raw_config.get("agent"), "agent"),
            tools=_overlay(app_config.tools, raw_config.get("tools"), "tools"),
            langfuse=_overlay(app_config.langfuse, raw_config.get("langfuse"), "langfuse"),
            logging=_overlay(app_config.logging, raw_config.get("logging"), "logging"),
        )

    errors = validate_config(app_config)
    if errors:
        raise ValueError("Invalid configuration: " + "; ".join(errors))

    _app_config = app_config
    logger.debug(
        "Configuration loaded: backend=%s, model=%s",
        app_config.llm.backend,
        app_config.llm.model,
    )
    return app_config


def reset_config_cache() -> None:
    """Reset the configuration cache, forcing a reload on next access."""
    global _app_config
    _app_config = None
    logger.debug("Configuration cache reset")
