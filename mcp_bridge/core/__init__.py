"""Core module for the MCP bridge."""

from .adapter import BridgedTool, MCPAdapter
from .config import BridgeSettings, ExecutionConfig
from .content import ContentNormalizer
from .error_classifier import ErrorClassifier
from .errors import BridgeError, ConfigError, DiscoveryError, ToolExecutionError
from .executor import ToolExecutor
from .provider import ProviderFailure, ToolProvider
from .registry import ToolRegistry
from .schema_translator import SchemaTranslator

__all__ = [
    "BridgedTool",
    "MCPAdapter",
    "BridgeSettings",
    "ExecutionConfig",
    "ContentNormalizer",
    "ErrorClassifier",
    "BridgeError",
    "ConfigError",
    "DiscoveryError",
    "ToolExecutionError",
    "ToolExecutor",
    "ProviderFailure",
    "ToolProvider",
    "ToolRegistry",
    "SchemaTranslator",
]
