"""Common test fixtures for the entire test suite."""

import os
import time

import pytest
from typing import Any, Dict, List, Optional

from mcp_bridge.core import ExecutionConfig, ProviderFailure, ToolProvider
from mcp_bridge.types import ErrorReason, ToolResponse


class FakeProvider(ToolProvider):
    """Scripted provider that records every call.

    Entries of ``responses`` and ``listings`` are consumed in order and the
    last one repeats. Exception instances are raised instead of returned.
    """

    def __init__(self, responses: Optional[List[Any]] = None, listings: Optional[List[Any]] = None):
        self.responses = list(responses or [])
        self.listings = list(listings or [])
        self.calls: List[tuple] = []
        self.list_calls = 0

    def call_tool(self, name: str, arguments: Dict[str, Any], timeout_ms: int) -> ToolResponse:
        self.calls.append((name, arguments, timeout_ms))
        return self._next(self.responses, ToolResponse(result={"content": [{"type": "text", "text": "ok"}]}))

    def list_tools(self) -> List[Dict[str, Any]]:
        self.list_calls += 1
        return self._next(self.listings, [])

    @staticmethod
    def _next(script: List[Any], default: Any) -> Any:
        if not script:
            value = default
        elif len(script) == 1:
            value = script[0]
        else:
            value = script.pop(0)
        if isinstance(value, BaseException):
            raise value
        return value


@pytest.fixture
def text_response():
    """Factory for successful responses with text content.

    Example:
        def test_something(text_response):
            response = text_response("hello", "world")
    """
    def _make_response(*texts: str, is_error: bool = False) -> ToolResponse:
        return ToolResponse(
            is_error=is_error,
            result={"content": [{"type": "text", "text": text} for text in texts]}
        )
    return _make_response


@pytest.fixture
def raw_tool():
    """Factory for raw tool schemas as listed by a provider.

    Example:
        def test_something(raw_tool):
            tool = raw_tool("search", properties={"q": {"type": "string"}}, required=["q"])
    """
    def _make_tool(
        name: str,
        description: Optional[str] = "A test tool",
        properties: Optional[Dict[str, Any]] = None,
        required: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        schema: Dict[str, Any] = {"type": "object", "properties": properties or {}}
        if required:
            schema["required"] = required
        return {"name": name, "description": description, "inputSchema": schema}
    return _make_tool


@pytest.fixture
def make_provider():
    """Factory for scripted providers.

    Example:
        def test_something(make_provider):
            provider = make_provider(responses=[ProviderFailure("request_timeout")])
    """
    def _make_provider(responses: Optional[List[Any]] = None, listings: Optional[List[Any]] = None) -> FakeProvider:
        return FakeProvider(responses=responses, listings=listings)
    return _make_provider


@pytest.fixture
def make_config(make_provider):
    """Factory for execution configs with a scripted primary provider.

    Example:
        def test_something(make_config):
            config = make_config(timeout_ms=1000)
    """
    def _make_config(provider: Optional[ToolProvider] = None, **kwargs: Any) -> ExecutionConfig:
        return ExecutionConfig(provider=provider or make_provider(), **kwargs)
    return _make_config


@pytest.fixture
def not_initialized():
    """Factory for the failure a provider reports before its handshake completed."""
    def _make_failure() -> ProviderFailure:
        return ProviderFailure(ErrorReason.INTERNAL_ERROR, "Server capabilities not set", code=-32603)
    return _make_failure


@pytest.fixture
def sleeps(monkeypatch):
    """Replace time.sleep so retry waits are recorded instead of slept.

    Returns:
        List: The requested wait times, in seconds
    """
    waits: List[float] = []
    monkeypatch.setattr(time, "sleep", waits.append)
    return waits


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Fixture to ensure no MCP_BRIDGE_ environment variables affect tests.

    This fixture runs automatically for all tests to ensure a clean environment.
    """
    for var in list(os.environ):
        if var.upper().startswith("MCP_BRIDGE_"):
            monkeypatch.delenv(var, raising=False)
