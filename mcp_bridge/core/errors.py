"""Error classes for the MCP bridge."""

from typing import Optional

from mcp_bridge.types import ClassifiedError


class BridgeError(Exception):
    """Base exception for all bridge errors."""

    def __init__(self, message: str, *, tool_name: Optional[str] = None):
        self.tool_name = tool_name
        super().__init__(message)

    def __str__(self) -> str:
        if self.tool_name:
            return f"[{self.tool_name}] {super().__str__()}"
        return super().__str__()


class ConfigError(BridgeError):
    """Raised when an execution configuration is invalid."""
    pass


class ToolExecutionError(BridgeError):
    """Raised when a tool invocation fails.

    Attributes:
        error: The classified failure behind this exception
    """

    def __init__(self, message: str, error: ClassifiedError, *, tool_name: Optional[str] = None):
        self.error = error
        super().__init__(message, tool_name=tool_name)

    @property
    def message(self) -> str:
        return self.args[0]

    def __str__(self) -> str:
        # Wrapped messages already name the tool
        return self.message


class DiscoveryError(BridgeError):
    """Raised when tools cannot be listed from a provider."""

    def __init__(self, message: str, error: ClassifiedError):
        self.error = error
        super().__init__(message)
