"""MCP Bridge: exposes MCP server tools to function-calling applications.

This package discovers the tools of an MCP provider, translates their input
schemas into typed parameter descriptors, executes tool calls with a single
fallback on retryable failures, classifies failures and normalizes multi-part
results.

Key Components:
    - SchemaTranslator: JSON-Schema-like objects to and from ParameterDescriptor
    - ErrorClassifier: Protocol, transport, domain and unknown failures
    - ToolExecutor: Tool calls with fallback and result shaping
    - ToolRegistry: Tool discovery with retry and per-provider caching
    - ContentNormalizer: Multi-modal MCP content to ContentItem values
    - MCPAdapter: Facade exposing tools as callables

Example:
    ```python
    from mcp_bridge import ExecutionConfig, MCPAdapter, ToolExecutionError

    config = ExecutionConfig(
        provider=primary,
        fallback_provider=backup,
        timeout_ms=10_000,
    )
    adapter = MCPAdapter(config)

    search = adapter.get_tool("search")
    try:
        print(search({"query": "python"}))
    except ToolExecutionError as e:
        print(e.error.category, e.error.message)
    ```
"""

from mcp_bridge.core import (
    BridgedTool,
    BridgeError,
    BridgeSettings,
    ConfigError,
    ContentNormalizer,
    DiscoveryError,
    ErrorClassifier,
    ExecutionConfig,
    MCPAdapter,
    ProviderFailure,
    SchemaTranslator,
    ToolExecutionError,
    ToolExecutor,
    ToolProvider,
    ToolRegistry,
)
from mcp_bridge.logging_config import setup_logging
from mcp_bridge.mcp import SessionProvider
from mcp_bridge.types import (
    ClassifiedError,
    ContentItem,
    ContentTag,
    ErrorCategory,
    ErrorReason,
    FallbackDecision,
    ParameterDescriptor,
    ParameterKind,
    ReturnFormat,
    ToolDescriptor,
    ToolResponse,
    ToolResult,
)

__all__ = [
    "BridgedTool",
    "BridgeError",
    "BridgeSettings",
    "ConfigError",
    "ContentNormalizer",
    "DiscoveryError",
    "ErrorClassifier",
    "ExecutionConfig",
    "MCPAdapter",
    "ProviderFailure",
    "SchemaTranslator",
    "ToolExecutionError",
    "ToolExecutor",
    "ToolProvider",
    "ToolRegistry",
    "setup_logging",
    "SessionProvider",
    "ClassifiedError",
    "ContentItem",
    "ContentTag",
    "ErrorCategory",
    "ErrorReason",
    "FallbackDecision",
    "ParameterDescriptor",
    "ParameterKind",
    "ReturnFormat",
    "ToolDescriptor",
    "ToolResponse",
    "ToolResult",
]

__version__ = "0.1.0"
