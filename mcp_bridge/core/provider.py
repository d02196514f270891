"""Provider interface for the MCP bridge.

A provider is the handle the bridge uses to reach a remote tool server. The
invoker and the registry only ever talk to this interface, so how a handle
resolves to a live connection is left to the concrete class.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from mcp_bridge.types import ErrorReason, RawToolSchema, ToolResponse


class ProviderFailure(Exception):
    """Declared failure raised by a provider.

    Anything a provider raises that is not a ``ProviderFailure`` (or an MCP SDK
    ``McpError``) is treated as a defect rather than an infrastructure fault.

    Attributes:
        code: Numeric error code, if the provider reported one
        reason: Reason tag (an ``ErrorReason`` value or free-form text)
        message: Optional description from the provider
        data: Optional structured details
    """

    def __init__(
        self,
        reason: Optional[str] = None,
        message: Optional[str] = None,
        *,
        code: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        if isinstance(reason, ErrorReason):
            reason = reason.value
        self.code = code
        self.reason = reason
        self.message = message
        self.data = data
        super().__init__(f"[{code}] {reason}: {message}")


class ToolProvider(ABC):
    """Base interface for tool providers."""

    @abstractmethod
    def call_tool(self, name: str, arguments: Dict[str, Any], timeout_ms: int) -> ToolResponse:
        """Call a tool on the provider.

        Args:
            name: Name of the tool
            arguments: Arguments to pass to the tool
            timeout_ms: Time budget for the call in milliseconds

        Returns:
            The provider's response envelope. ``is_error`` is set when the tool
            ran but reported a failure.

        Raises:
            ProviderFailure: If the call could not be completed
        """
        pass

    @abstractmethod
    def list_tools(self) -> List[RawToolSchema]:
        """List the tools the provider exposes.

        Returns:
            Raw tool schemas with ``name``, ``description`` and ``inputSchema``

        Raises:
            ProviderFailure: If the tools could not be listed
        """
        pass
