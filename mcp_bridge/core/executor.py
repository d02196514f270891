"""Tool Executor for the MCP bridge.

This module runs tool calls against a provider, with at most one fallback
attempt after a retryable failure.

Outcomes of a single attempt:

- Success: the content is normalized and shaped for the caller
- Domain failure (the tool reported an error): surfaced, never retried
- Declared failure (``ProviderFailure``/``McpError``): classified, and tried
  once against the fallback provider when retryable
- Any other exception: treated as a defect, surfaced as unknown, never retried
"""

import logging
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from mcp.types import CallToolResult

from mcp_bridge.core.config import ExecutionConfig
from mcp_bridge.core.content import ContentNormalizer
from mcp_bridge.core.error_classifier import DECLARED_FAILURES, ErrorClassifier, dump
from mcp_bridge.core.errors import DiscoveryError, ToolExecutionError
from mcp_bridge.core.registry import ToolRegistry
from mcp_bridge.types import (
    ClassifiedError,
    ContentItem,
    ContentTag,
    ErrorCategory,
    ExecutionResult,
    FallbackDecision,
    ReturnFormat,
    ToolResponse,
    ToolResult,
)
from mcp_bridge.utils.log_utils import redact_sensitive_data, sanitize_log_message

logger = logging.getLogger(__name__)

RETURN_FORMAT_KEY = "return_format"

_RETURN_FORMAT_ALIASES = {
    "toolResult": ReturnFormat.TOOL_RESULT,
    "contentParts": ReturnFormat.CONTENT_PARTS,
}


def _as_response(value: Any) -> ToolResponse:
    if isinstance(value, ToolResponse):
        return value
    if isinstance(value, CallToolResult):
        return ToolResponse.from_call_result(value)
    if isinstance(value, Mapping):
        is_error = bool(value.get("isError", value.get("is_error", False)))
        return ToolResponse(is_error=is_error, result=dict(value))
    return ToolResponse(result=value)


def parse_return_format(value: Any) -> Optional[ReturnFormat]:
    """Parse a requested return format; unknown values mean no forced shape."""
    if value is None or isinstance(value, ReturnFormat):
        return value
    if not isinstance(value, str):
        logger.warning("Ignoring unknown return format: %r", value)
        return None
    if value in _RETURN_FORMAT_ALIASES:
        return _RETURN_FORMAT_ALIASES[value]
    try:
        return ReturnFormat(value)
    except ValueError:
        logger.warning("Ignoring unknown return format: %r", value)
        return None


class ToolExecutor:
    """Executor for running tools against the providers of a config.

    The executor holds no state besides its config, so one instance can serve
    concurrent callers.
    """

    def __init__(self, config: ExecutionConfig, registry: Optional[ToolRegistry] = None) -> None:
        """Initialize a tool executor.

        Args:
            config: The execution config
            registry: Registry used by ``validate_tool``; a private one is
                created when omitted
        """
        self.config = config
        self._registry = registry if registry is not None else ToolRegistry()

    def execute(
        self,
        tool_name: str,
        arguments: Optional[Dict[str, Any]] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> ExecutionResult:
        """Execute a tool, falling back once on a retryable failure.

        Args:
            tool_name: The name of the tool to execute
            arguments: Arguments to pass to the tool
            context: Per-call values merged over the config's context; the
                ``return_format`` key forces a result shape

        Returns:
            A string, a list of content items or a ``ToolResult``, depending
            on the content and the requested return format

        Raises:
            ToolExecutionError: If the tool call fails
        """
        arguments = dict(arguments or {})
        merged_context = {**self.config.context, **(context or {})}

        logger.info("Executing tool", extra={
            "tool_name": tool_name,
            "tool_args": redact_sensitive_data(arguments)
        })

        try:
            return self._attempt(self.config.provider, tool_name, arguments, merged_context)
        except ToolExecutionError as e:
            if not self._should_fall_back(e.error, tool_name, arguments):
                raise self._with_context(e, tool_name, arguments) from e.__cause__
            logger.warning("Primary provider failed, trying fallback", extra={
                "tool_name": tool_name,
                "error": sanitize_log_message(e.error.message)
            })
            primary_error = e

        try:
            return self._attempt(self.config.fallback_provider, tool_name, arguments, merged_context)
        except ToolExecutionError as e:
            logger.error("Fallback provider failed", extra={
                "tool_name": tool_name,
                "primary_error": sanitize_log_message(primary_error.error.message),
                "error": sanitize_log_message(e.error.message)
            })
            raise self._with_context(e, tool_name, arguments) from e.__cause__

    def execute_on_provider(
        self,
        provider: Any,
        tool_name: str,
        arguments: Optional[Dict[str, Any]] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> ExecutionResult:
        """Execute a tool against one provider, without any fallback.

        Raises:
            ToolExecutionError: If the tool call fails
        """
        arguments = dict(arguments or {})
        merged_context = {**self.config.context, **(context or {})}
        try:
            return self._attempt(provider, tool_name, arguments, merged_context)
        except ToolExecutionError as e:
            raise self._with_context(e, tool_name, arguments) from e.__cause__

    def validate_tool(self, tool_name: str) -> None:
        """Check that the primary provider lists a tool.

        Raises:
            ToolExecutionError: If the tool is not listed or discovery fails
        """
        try:
            tools = self._registry.list_tools(self.config)
        except DiscoveryError as e:
            raise ToolExecutionError(e.error.message, e.error, tool_name=tool_name) from e

        names = [tool.get("name") for tool in tools]
        if tool_name not in names:
            error = ClassifiedError(
                category=ErrorCategory.UNKNOWN,
                retryable=False,
                message=f"Tool '{tool_name}' not found. Available tools: {', '.join(map(str, names))}",
            )
            raise ToolExecutionError(error.message, error, tool_name=tool_name)

    def execute_tool_calls(self, tool_calls: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """Execute multiple tool calls in order and return their results.

        Args:
            tool_calls: Calls with ``id``, ``name`` and optional ``arguments``

        Returns:
            One entry per call with the call ID and either an ``output`` or
            an ``error`` message. A failing call does not stop later calls.
        """
        results = []
        for call in tool_calls:
            name = call.get("name")
            if not isinstance(name, str):
                logger.error("Tool call has no name", extra={"call_id": call.get("id")})
                results.append({"id": call.get("id"), "error": "Tool call has no name"})
                continue
            try:
                output = self.execute(name, call.get("arguments"))
            except ToolExecutionError as e:
                results.append({"id": call.get("id"), "error": e.message})
            else:
                results.append({"id": call.get("id"), "output": output})
        return results

    def _attempt(
        self,
        provider: Any,
        tool_name: str,
        arguments: Dict[str, Any],
        context: Mapping[str, Any],
    ) -> ExecutionResult:
        start_time = time.time()
        try:
            raw_response = provider.call_tool(tool_name, arguments, self.config.timeout_ms)
        except DECLARED_FAILURES as e:
            error = ErrorClassifier.classify(e)
            logger.debug("Provider reported failure", extra={
                "tool_name": tool_name,
                "category": error.category.value,
                "retryable": error.retryable,
                "duration_ms": int((time.time() - start_time) * 1000)
            })
            raise ToolExecutionError(error.message, error, tool_name=tool_name) from e
        except Exception as e:
            logger.exception("Unexpected error executing tool %s", tool_name)
            error = ClassifiedError(
                category=ErrorCategory.UNKNOWN,
                retryable=False,
                message=f"Tool execution exception: {e}",
            )
            raise ToolExecutionError(error.message, error, tool_name=tool_name) from e

        response = _as_response(raw_response)
        duration_ms = int((time.time() - start_time) * 1000)
        if response.is_error:
            error = ErrorClassifier.classify(response)
            logger.info("Tool reported failure", extra={
                "tool_name": tool_name,
                "error": sanitize_log_message(error.message),
                "duration_ms": duration_ms
            })
            raise ToolExecutionError(error.message, error, tool_name=tool_name)

        logger.info("Tool execution completed", extra={
            "tool_name": tool_name,
            "duration_ms": duration_ms
        })
        return self._shape(response, parse_return_format(context.get(RETURN_FORMAT_KEY)))

    def _should_fall_back(self, error: ClassifiedError, tool_name: str, arguments: Dict[str, Any]) -> bool:
        if not error.retryable or not self.config.has_fallback:
            return False
        try:
            decision = self.config.before_fallback(tool_name, arguments)
        except Exception:
            logger.exception("Retry policy failed for tool %s, skipping fallback", tool_name)
            return False
        if decision is FallbackDecision.SKIP:
            logger.info("Retry policy skipped fallback", extra={"tool_name": tool_name})
            return False
        return True

    @staticmethod
    def _with_context(e: ToolExecutionError, tool_name: str, arguments: Dict[str, Any]) -> ToolExecutionError:
        # Domain failures already carry the tool's own message
        if e.error.category is ErrorCategory.DOMAIN:
            return e
        message = ErrorClassifier.wrap_with_context(e.error, tool_name, arguments)
        return ToolExecutionError(message, e.error.model_copy(update={"message": message}), tool_name=tool_name)

    @staticmethod
    def _shape(response: ToolResponse, return_format: Optional[ReturnFormat]) -> ExecutionResult:
        content = response.content
        if content is None:
            shaped: Union[str, List[ContentItem]] = dump(response.result)
        else:
            items = ContentNormalizer.normalize(content)
            if len(items) == 1 and items[0].tag is ContentTag.TEXT:
                shaped = items[0].payload
            else:
                shaped = items

        if return_format is ReturnFormat.TOOL_RESULT:
            return ToolResult(content=shaped)
        if return_format is ReturnFormat.CONTENT_PARTS:
            if isinstance(shaped, str):
                return [ContentItem(tag=ContentTag.TEXT, payload=shaped)]
            return shaped
        return shaped
