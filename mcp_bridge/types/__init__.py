"""Data types shared across the MCP bridge."""

from mcp_bridge.types.models import (
    ClassifiedError,
    ContentItem,
    ContentTag,
    ErrorCategory,
    ErrorReason,
    ExecutionResult,
    FallbackDecision,
    ParameterDescriptor,
    ParameterKind,
    RawContentItem,
    RawToolSchema,
    ReturnFormat,
    ToolDescriptor,
    ToolResponse,
    ToolResult,
)

__all__ = [
    "ClassifiedError",
    "ContentItem",
    "ContentTag",
    "ErrorCategory",
    "ErrorReason",
    "ExecutionResult",
    "FallbackDecision",
    "ParameterDescriptor",
    "ParameterKind",
    "RawContentItem",
    "RawToolSchema",
    "ReturnFormat",
    "ToolDescriptor",
    "ToolResponse",
    "ToolResult",
]
