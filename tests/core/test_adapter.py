"""Tests for the MCPAdapter and BridgedTool classes."""

import pytest

from mcp_bridge.core import BridgedTool, ConfigError, MCPAdapter, ProviderFailure, ToolExecutionError, ToolRegistry
from mcp_bridge.types import ErrorReason, ParameterKind, ToolResult


@pytest.fixture
def weather_provider(make_provider, raw_tool, text_response):
    """Provider listing a weather tool and a file tool."""
    return make_provider(
        responses=[text_response("sunny")],
        listings=[[
            raw_tool(
                "get_weather",
                "Get the weather for a city",
                {
                    "city": {"type": "string", "description": "City name"},
                    "days": {"type": "integer", "minimum": 1, "maximum": 7},
                },
                ["city"],
            ),
            raw_tool("delete_file", "Delete a file", {"path": {"type": "string"}}, ["path"]),
        ]],
    )


def test_to_functions(weather_provider, make_config):
    """Test exposing every tool as a callable."""
    adapter = MCPAdapter(make_config(weather_provider))

    tools = adapter.to_functions()

    assert [tool.name for tool in tools] == ["get_weather", "delete_file"]
    assert all(isinstance(tool, BridgedTool) for tool in tools)
    weather = tools[0]
    assert weather.description == "Get the weather for a city"
    assert [(p.name, p.kind, p.required) for p in weather.parameters] == [
        ("city", ParameterKind.STRING, True),
        ("days", ParameterKind.INTEGER, False),
    ]
    assert weather.input_schema == {
        "type": "object",
        "properties": {
            "city": {"type": "string", "description": "City name"},
            "days": {"type": "integer"},
        },
        "required": ["city"],
    }


def test_to_functions_filters(weather_provider, make_config):
    """Test name filters and the config's tool filter."""
    adapter = MCPAdapter(make_config(weather_provider))
    guarded = MCPAdapter(make_config(weather_provider, tool_filter=lambda tool: not tool["name"].startswith("delete")))

    assert [tool.name for tool in adapter.to_functions(only=["delete_file"])] == ["delete_file"]
    assert [tool.name for tool in adapter.to_functions(exclude=["delete_file"])] == ["get_weather"]
    assert [tool.name for tool in guarded.to_functions()] == ["get_weather"]


def test_to_functions_discovery_failure(make_provider, make_config):
    """Test that a failed discovery yields no tools."""
    provider = make_provider(listings=[ProviderFailure(ErrorReason.CONNECTION_REFUSED)])

    assert MCPAdapter(make_config(provider)).to_functions() == []


def test_bridged_tool_call(weather_provider, make_config):
    """Test that calling a tool runs it through the executor."""
    adapter = MCPAdapter(make_config(weather_provider, timeout_ms=2000))
    weather = adapter.get_tool("get_weather")

    assert weather({"city": "Paris"}) == "sunny"
    assert weather({"city": "Paris"}, context={"return_format": "tool_result"}) == ToolResult(content="sunny")
    assert weather_provider.calls[0] == ("get_weather", {"city": "Paris"}, 2000)


def test_bridged_tool_call_failure(make_provider, make_config, raw_tool):
    """Test that tool failures propagate as execution errors."""
    provider = make_provider(
        responses=[ProviderFailure(ErrorReason.REQUEST_CANCELLED)],
        listings=[[raw_tool("slow")]],
    )
    slow = MCPAdapter(make_config(provider)).get_tool("slow")

    with pytest.raises(ToolExecutionError):
        slow()


def test_get_tool_missing(weather_provider, make_config):
    """Test getting a tool the provider does not list."""
    adapter = MCPAdapter(make_config(weather_provider))

    with pytest.raises(KeyError):
        adapter.get_tool("nonexistent_tool")


def test_get_tool_respects_tool_filter(weather_provider, make_config):
    """Test that filtered tools cannot be looked up."""
    adapter = MCPAdapter(make_config(weather_provider, tool_filter=lambda tool: tool["name"] != "delete_file"))

    with pytest.raises(KeyError):
        adapter.get_tool("delete_file")


def test_validate_tools(weather_provider, make_config):
    """Test reporting names the provider does not list."""
    adapter = MCPAdapter(make_config(weather_provider))

    assert adapter.validate_tools(["get_weather", "send_email", "delete_file", "ls"]) == ["send_email", "ls"]
    assert adapter.validate_tools([]) == []


def test_discover_and_refresh(weather_provider, make_config):
    """Test that discovery is cached until refreshed."""
    adapter = MCPAdapter(make_config(weather_provider))

    adapter.discover_tools()
    adapter.to_functions()
    assert weather_provider.list_calls == 1

    adapter.refresh_cache()
    assert weather_provider.list_calls == 2

    adapter.to_functions(refresh=True)
    assert weather_provider.list_calls == 3


def test_update_config_shares_registry(weather_provider, make_config):
    """Test that a reconfigured adapter keeps the discovery cache."""
    adapter = MCPAdapter(make_config(weather_provider))
    adapter.to_functions()

    updated = adapter.update_config(timeout_ms=50)
    updated.to_functions()

    assert updated.get_config().timeout_ms == 50
    assert adapter.get_config().timeout_ms == 30_000
    assert updated.registry is adapter.registry
    assert weather_provider.list_calls == 1


def test_update_config_validates(weather_provider, make_config):
    """Test that invalid updates are rejected."""
    adapter = MCPAdapter(make_config(weather_provider))

    with pytest.raises(ConfigError):
        adapter.update_config(timeout_ms=-1)


def test_shared_registry_between_adapters(weather_provider, make_config):
    """Test passing one registry to several adapters."""
    registry = ToolRegistry()
    MCPAdapter(make_config(weather_provider), registry).to_functions()
    MCPAdapter(make_config(weather_provider), registry).to_functions()

    assert weather_provider.list_calls == 1


def test_fold_constraints(weather_provider, make_config):
    """Test folding constraints into parameter descriptions."""
    adapter = MCPAdapter(make_config(weather_provider), fold_constraints=True)

    weather = adapter.get_tool("get_weather")

    assert weather.parameters[1].description == "(minimum: 1, maximum: 7)"


def test_tool_to_function(make_config, raw_tool):
    """Test wrapping a single raw tool."""
    adapter = MCPAdapter(make_config())

    tool = adapter.tool_to_function(raw_tool("echo", properties={"text": {"type": "string"}}))

    assert tool.name == "echo"
    assert tool.descriptor.parameters[0].name == "text"
    assert "echo" in repr(tool)


def test_to_functions_skips_only_undescribable_tools(make_provider, make_config, raw_tool):
    """Test that one malformed tool does not hide the others."""
    provider = make_provider(listings=[[
        raw_tool("search", properties={"q": {"type": "string"}}, required=["q"]),
        {"name": "broken_schema", "inputSchema": {"type": "object", "properties": ["q"]}},
        {"description": "No name at all", "inputSchema": {"type": "object"}},
        raw_tool("ping"),
    ]])
    adapter = MCPAdapter(make_config(provider))

    tools = adapter.to_functions()

    assert [tool.name for tool in tools] == ["search", "broken_schema", "ping"]
    assert tools[1].parameters == []
