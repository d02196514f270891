"""Execution configuration module.

This module provides the configuration consumed by the registry and the
executor, with defaults that can be read from environment variables.
"""

from dataclasses import dataclass, field, replace as dataclass_replace
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mcp_bridge.core.errors import ConfigError
from mcp_bridge.core.provider import ToolProvider
from mcp_bridge.types import FallbackDecision

DEFAULT_TIMEOUT_MS = 30_000

# (tool_name, arguments) -> FallbackDecision
RetryPolicy = Callable[[str, Dict[str, Any]], Any]
# raw tool schema -> keep?
ToolFilter = Callable[[Mapping[str, Any]], bool]


class BridgeSettings(BaseSettings):
    """Environment-driven defaults for the bridge.

    Every field can be set with an ``MCP_BRIDGE_`` prefixed environment
    variable, e.g. ``MCP_BRIDGE_TIMEOUT_MS=60000``.
    """

    timeout_ms: int = Field(DEFAULT_TIMEOUT_MS, gt=0, description="Tool call timeout in milliseconds")
    cache_tools: bool = Field(True, description="Cache discovered tools per provider")
    discovery_max_attempts: int = Field(3, ge=1, description="Attempts to list tools while a server initializes")
    discovery_initial_delay_ms: int = Field(50, ge=0, description="First delay between discovery attempts")
    log_level: str = Field("INFO", description="Log level used by setup_logging")
    log_dir: Optional[str] = Field(None, description="Optional directory for rotating log files")

    model_config = SettingsConfigDict(
        env_prefix="MCP_BRIDGE_",
        case_sensitive=False,
        extra="ignore"
    )

    def __init__(self, env_file: Optional[str] = ".env", **kwargs):
        super().__init__(_env_file=env_file, **kwargs)


def _is_provider(handle: Any) -> bool:
    if isinstance(handle, ToolProvider):
        return True
    return callable(getattr(handle, "call_tool", None)) and callable(getattr(handle, "list_tools", None))


@dataclass(frozen=True)
class ExecutionConfig:
    """Configuration for executing tools against a provider.

    Instances are immutable; use ``replace`` to derive an updated copy.

    Attributes:
        provider: The primary provider handle
        fallback_provider: Provider tried once after a retryable failure
        timeout_ms: Time budget per provider call in milliseconds
        cache_tools: Whether discovered tools are cached
        retry_policy: Called as ``(tool_name, arguments)`` before a fallback
            attempt; returning ``FallbackDecision.SKIP`` cancels it
        tool_filter: Called with each raw tool; tools it rejects are hidden
        context: Values made available to every invocation
    """

    provider: Any
    fallback_provider: Optional[Any] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    cache_tools: bool = True
    retry_policy: Optional[RetryPolicy] = None
    tool_filter: Optional[ToolFilter] = None
    context: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.provider is None:
            raise ConfigError("provider is required")
        if not _is_provider(self.provider):
            raise ConfigError("provider must implement call_tool and list_tools")
        if self.fallback_provider is not None and not _is_provider(self.fallback_provider):
            raise ConfigError("fallback_provider must implement call_tool and list_tools")
        if not isinstance(self.timeout_ms, int) or isinstance(self.timeout_ms, bool) or self.timeout_ms <= 0:
            raise ConfigError(f"timeout_ms must be a positive integer, got {self.timeout_ms!r}")
        if not isinstance(self.cache_tools, bool):
            raise ConfigError("cache_tools must be a boolean")
        for name in ("retry_policy", "tool_filter"):
            value = getattr(self, name)
            if value is not None and not callable(value):
                raise ConfigError(f"{name} must be callable")
        if not isinstance(self.context, Mapping):
            raise ConfigError("context must be a mapping")
        object.__setattr__(self, "context", MappingProxyType(dict(self.context)))

    @classmethod
    def from_settings(
        cls,
        provider: Any,
        settings: Optional[BridgeSettings] = None,
        **overrides: Any
    ) -> "ExecutionConfig":
        """Create a config from settings.

        Args:
            provider: The primary provider handle
            settings: Optional settings instance, will load from env if not provided
            **overrides: Any other ExecutionConfig field

        Returns:
            A validated ExecutionConfig

        Raises:
            ConfigError: If the resulting configuration is invalid
        """
        if settings is None:
            settings = BridgeSettings()
        values = {
            "timeout_ms": settings.timeout_ms,
            "cache_tools": settings.cache_tools,
        }
        values.update(overrides)
        return cls(provider=provider, **values)

    def replace(self, **changes: Any) -> "ExecutionConfig":
        """Return a new, validated config with the given fields changed."""
        return dataclass_replace(self, **changes)

    @property
    def has_fallback(self) -> bool:
        return self.fallback_provider is not None

    def before_fallback(self, tool_name: str, arguments: Dict[str, Any]) -> FallbackDecision:
        """Ask the retry policy whether the fallback provider should be tried.

        Any answer other than ``FallbackDecision.SKIP`` counts as continue.
        """
        if self.retry_policy is None:
            return FallbackDecision.CONTINUE
        if self.retry_policy(tool_name, arguments) == FallbackDecision.SKIP:
            return FallbackDecision.SKIP
        return FallbackDecision.CONTINUE

    def filter_tool(self, tool: Mapping[str, Any]) -> bool:
        """Apply the tool filter; every tool passes when none is configured."""
        if self.tool_filter is None:
            return True
        return bool(self.tool_filter(tool))
