"""Tool provider backed by an MCP client session.

The bridge core is synchronous, while ``mcp.ClientSession`` is async. A
``SessionProvider`` submits each request to the event loop that owns the
session and blocks until it completes.

Example:
    ```python
    loop = asyncio.new_event_loop()
    threading.Thread(target=loop.run_forever, daemon=True).start()

    async def connect():
        ...  # open the transport and initialize a ClientSession
        return session

    session = asyncio.run_coroutine_threadsafe(connect(), loop).result()
    provider = SessionProvider(session, loop)
    config = ExecutionConfig(provider=provider)
    ```
"""

import asyncio
import concurrent.futures
import logging
from datetime import timedelta
from typing import Any, Awaitable, Dict, List, Optional

import anyio
from mcp import ClientSession
from mcp.shared.exceptions import McpError

from mcp_bridge.core.provider import ProviderFailure, ToolProvider
from mcp_bridge.types import ErrorReason, RawToolSchema, ToolResponse

logger = logging.getLogger(__name__)

_TIMEOUT_ERRORS = (TimeoutError, asyncio.TimeoutError, concurrent.futures.TimeoutError)
_SEND_ERRORS = (anyio.ClosedResourceError, anyio.BrokenResourceError)


class SessionProvider(ToolProvider):
    """Provider that forwards calls to an initialized ``ClientSession``.

    Attributes:
        session: The MCP client session
        loop: The event loop the session runs on; it must be running in
            another thread
        name: Optional label used in log records
    """

    def __init__(
        self,
        session: ClientSession,
        loop: asyncio.AbstractEventLoop,
        name: Optional[str] = None
    ) -> None:
        self.session = session
        self.loop = loop
        self.name = name

    def call_tool(self, name: str, arguments: Dict[str, Any], timeout_ms: int) -> ToolResponse:
        """Call a tool through the session.

        Raises:
            ProviderFailure: If the session reports an error, times out or
                cannot reach the server
        """
        result = self._run(
            self.session.call_tool(
                name,
                arguments,
                read_timeout_seconds=timedelta(milliseconds=timeout_ms)
            ),
            operation="call_tool"
        )
        return ToolResponse.from_call_result(result)

    def list_tools(self) -> List[RawToolSchema]:
        """List the session's tools as JSON-mode dicts.

        Raises:
            ProviderFailure: If the tools cannot be listed
        """
        result = self._run(self.session.list_tools(), operation="list_tools")
        return [
            tool.model_dump(mode="json", by_alias=True, exclude_none=True)
            for tool in result.tools
        ]

    def _run(self, coro: Awaitable[Any], operation: str) -> Any:
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        try:
            return future.result()
        except McpError as e:
            detail = e.error
            raise ProviderFailure(code=detail.code, message=detail.message, data=detail.data) from e
        except _TIMEOUT_ERRORS as e:
            logger.warning("MCP request timed out", extra={"provider": self.name, "operation": operation})
            raise ProviderFailure(ErrorReason.REQUEST_TIMEOUT, str(e) or None) from e
        except _SEND_ERRORS as e:
            logger.warning("MCP stream closed", extra={"provider": self.name, "operation": operation})
            raise ProviderFailure(ErrorReason.SEND_FAILURE, str(e) or None) from e
        except ConnectionError as e:
            logger.warning("MCP connection failed", extra={"provider": self.name, "operation": operation})
            raise ProviderFailure(ErrorReason.CONNECTION_REFUSED, str(e) or None) from e
        except concurrent.futures.CancelledError as e:
            raise ProviderFailure(ErrorReason.REQUEST_CANCELLED, str(e) or None) from e
