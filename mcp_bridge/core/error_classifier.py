"""Error classification for MCP tool calls.

Failures reach the bridge in three shapes:

1. **Protocol errors**: JSON-RPC level problems, reported with a code and reason
2. **Transport errors**: timeouts, send failures and refused connections
3. **Domain errors**: the tool ran and reported a failure (a successful
   response with ``isError`` set)

Everything else, including exceptions raised by a misbehaving provider, is
classified as unknown. Only protocol ``internal_error`` and the transport
reasons other than ``request_cancelled`` are retryable.

Example:
    ```python
    failure = ProviderFailure(ErrorReason.REQUEST_TIMEOUT, code=-1)
    classified = ErrorClassifier.classify(failure)
    classified.category   # ErrorCategory.TRANSPORT
    classified.retryable  # True
    classified.message    # "MCP transport error (request_timeout): Request timed out"
    ```
"""

import json
import re
from typing import Any, Mapping, Optional, Tuple

from mcp.shared.exceptions import McpError
from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    CallToolResult,
)

from mcp_bridge.core.provider import ProviderFailure
from mcp_bridge.types import ClassifiedError, ErrorCategory, ErrorReason, ToolResponse
from mcp_bridge.utils.log_utils import redact_sensitive_data

# MCP SDK sessions report read timeouts with the HTTP status code
REQUEST_TIMEOUT_CODE = 408

CODE_REASONS = {
    PARSE_ERROR: ErrorReason.PARSE_ERROR,
    INVALID_REQUEST: ErrorReason.INVALID_REQUEST,
    METHOD_NOT_FOUND: ErrorReason.METHOD_NOT_FOUND,
    INVALID_PARAMS: ErrorReason.INVALID_PARAMS,
    INTERNAL_ERROR: ErrorReason.INTERNAL_ERROR,
    REQUEST_TIMEOUT_CODE: ErrorReason.REQUEST_TIMEOUT,
}

PROTOCOL_REASONS = frozenset({
    ErrorReason.PARSE_ERROR,
    ErrorReason.INVALID_REQUEST,
    ErrorReason.METHOD_NOT_FOUND,
    ErrorReason.INVALID_PARAMS,
    ErrorReason.INTERNAL_ERROR,
})
TRANSPORT_REASONS = frozenset({
    ErrorReason.REQUEST_TIMEOUT,
    ErrorReason.SEND_FAILURE,
    ErrorReason.CONNECTION_REFUSED,
    ErrorReason.REQUEST_CANCELLED,
})
RETRYABLE_REASONS = frozenset({
    ErrorReason.INTERNAL_ERROR,
    ErrorReason.REQUEST_TIMEOUT,
    ErrorReason.SEND_FAILURE,
    ErrorReason.CONNECTION_REFUSED,
})

MESSAGE_TEMPLATES = {
    ErrorReason.PARSE_ERROR: "MCP protocol error (parse_error): Invalid JSON in request or response",
    ErrorReason.INVALID_REQUEST: "MCP protocol error (invalid_request): Invalid request format",
    ErrorReason.INVALID_PARAMS: "MCP protocol error (invalid_params): Invalid parameters provided",
    ErrorReason.INTERNAL_ERROR: "MCP protocol error (internal_error): Server internal error",
    ErrorReason.REQUEST_TIMEOUT: "MCP transport error (request_timeout): Request timed out",
    ErrorReason.SEND_FAILURE: "MCP transport error (send_failure): Failed to send message",
    ErrorReason.CONNECTION_REFUSED: "MCP transport error (connection_refused): Could not connect to server",
    ErrorReason.REQUEST_CANCELLED: "MCP transport error (request_cancelled): Request was cancelled",
}

DOMAIN_PREFIX = "Tool execution failed: "

# Exceptions a provider may raise to report an expected failure
DECLARED_FAILURES = (ProviderFailure, McpError)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def dump(value: Any) -> str:
    """Render a value for an error message.

    Strings are returned as-is, containers as sorted JSON, and anything else
    through ``repr``.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, tuple)):
        try:
            return json.dumps(value, sort_keys=True, default=repr)
        except (TypeError, ValueError):
            pass
    return repr(value)


class ErrorClassifier:
    """Maps raw failures onto the bridge's error taxonomy."""

    @staticmethod
    def classify(error: Any) -> ClassifiedError:
        """Classify a raw failure.

        The result depends only on the input, so classifying the same failure
        twice gives equal results.

        Args:
            error: A ``ProviderFailure``, ``McpError``, mapping with ``code`` or
                ``reason``, domain-failure ``ToolResponse``, string, exception
                or any other value

        Returns:
            The classified error
        """
        if isinstance(error, ClassifiedError):
            return error

        if isinstance(error, CallToolResult):
            error = ToolResponse.from_call_result(error)
        if isinstance(error, ToolResponse):
            if error.is_error:
                return ClassifiedError(
                    category=ErrorCategory.DOMAIN,
                    retryable=False,
                    message=ErrorClassifier.extract_domain_message(error.result),
                )
            return ClassifiedError(category=ErrorCategory.UNKNOWN, message="Unexpected response format")

        fields = ErrorClassifier.structured_fields(error)
        if fields is not None:
            return ErrorClassifier._classify_structured(*fields)

        if isinstance(error, str):
            message = f"MCP error: {error}"
        else:
            message = f"MCP error: {dump(error)}"
        return ClassifiedError(category=ErrorCategory.UNKNOWN, retryable=False, message=message)

    @staticmethod
    def should_retry(error: Any) -> bool:
        """Whether a failure may be retried against a fallback provider."""
        return ErrorClassifier.classify(error).retryable

    @staticmethod
    def is_declared_failure(error: BaseException) -> bool:
        """Whether an exception is a failure a provider is expected to raise."""
        return isinstance(error, DECLARED_FAILURES)

    @staticmethod
    def structured_fields(error: Any) -> Optional[Tuple[Any, Any, Any, Any]]:
        """Extract ``(code, reason, message, data)`` from a structured failure.

        Returns:
            The four fields, or None if the value carries no code or reason
        """
        if isinstance(error, ProviderFailure):
            return error.code, error.reason, error.message, error.data
        if isinstance(error, McpError):
            detail = error.error
            return detail.code, None, detail.message, detail.data
        if isinstance(error, Mapping) and ("code" in error or "reason" in error):
            return error.get("code"), error.get("reason"), error.get("message"), error.get("data")
        return None

    @staticmethod
    def parse_reason(raw_reason: Any) -> Optional[ErrorReason]:
        """Parse a reason tag, accepting snake_case and camelCase spellings."""
        if isinstance(raw_reason, ErrorReason):
            return raw_reason
        if not isinstance(raw_reason, str):
            return None
        try:
            return ErrorReason(_CAMEL_BOUNDARY.sub("_", raw_reason).lower())
        except ValueError:
            return None

    @staticmethod
    def _classify_structured(code: Any, raw_reason: Any, message: Any, data: Any) -> ClassifiedError:
        reason = ErrorClassifier.parse_reason(raw_reason)
        if reason is None and raw_reason is None and isinstance(code, int):
            reason = CODE_REASONS.get(code)

        if reason in PROTOCOL_REASONS:
            category = ErrorCategory.PROTOCOL
        elif reason in TRANSPORT_REASONS:
            category = ErrorCategory.TRANSPORT
        else:
            category = ErrorCategory.UNKNOWN

        if reason is not None:
            reason_tag = reason.value
        elif raw_reason is not None:
            reason_tag = str(raw_reason)
        else:
            reason_tag = None

        return ClassifiedError(
            category=category,
            retryable=reason in RETRYABLE_REASONS,
            message=ErrorClassifier._format_message(reason, reason_tag, code, message, data),
            raw_code=code if isinstance(code, int) and not isinstance(code, bool) else None,
            reason=reason_tag,
        )

    @staticmethod
    def _format_message(
        reason: Optional[ErrorReason],
        reason_tag: Optional[str],
        code: Any,
        message: Any,
        data: Any,
    ) -> str:
        if reason is ErrorReason.METHOD_NOT_FOUND:
            method = data.get("method", "unknown") if isinstance(data, Mapping) else "unknown"
            return f"MCP protocol error (method_not_found): Method '{method}' not found"
        if reason in MESSAGE_TEMPLATES:
            return MESSAGE_TEMPLATES[reason]

        if message is not None:
            details = dump(message)
        else:
            details = dump({"code": code, "reason": reason_tag, "data": data})
        if reason_tag is not None:
            return f"MCP error ({reason_tag}, code: {code}): {details}"
        return f"MCP error (code: {code}): {details}"

    @staticmethod
    def extract_domain_message(payload: Any) -> str:
        """Build a message for a tool that reported its own failure.

        Tries, in order: the first text item of the content list (or a dump of
        the whole list when it has no text item), an ``error`` field, a
        ``message`` field, and finally a dump of the whole payload.

        Args:
            payload: The result payload of a domain-failure response

        Returns:
            A non-empty message
        """
        if isinstance(payload, Mapping):
            content = payload.get("content")
            if isinstance(content, list):
                text_item = next(
                    (item for item in content if isinstance(item, Mapping) and item.get("type") == "text"),
                    None,
                )
                if text_item is not None and isinstance(text_item.get("text"), str):
                    return DOMAIN_PREFIX + text_item["text"]
                return DOMAIN_PREFIX + dump(content)
            if "error" in payload:
                return DOMAIN_PREFIX + dump(payload["error"])
            if "message" in payload:
                return DOMAIN_PREFIX + str(payload["message"])
        return DOMAIN_PREFIX + dump(payload)

    @staticmethod
    def wrap_with_context(error: Any, tool_name: str, args: Any) -> str:
        """Add the tool name, and for non-text errors the arguments, to a message.

        Args:
            error: A message, ``ClassifiedError`` or any raw error value
            tool_name: Name of the tool that failed
            args: Arguments the tool was called with

        Returns:
            The wrapped message
        """
        if isinstance(error, ClassifiedError):
            error = error.message
        if isinstance(error, str):
            return f"Tool '{tool_name}' failed: {error}"
        return f"Tool '{tool_name}' with args {dump(redact_sensitive_data(args))} failed: {dump(error)}"
