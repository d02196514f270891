"""Tests for the execution configuration module."""

import dataclasses

import pytest

from mcp_bridge.core import BridgeSettings, ConfigError, ExecutionConfig
from mcp_bridge.types import FallbackDecision


def test_bridge_settings_defaults():
    """Test default values in BridgeSettings."""
    settings = BridgeSettings(env_file=None)

    assert settings.timeout_ms == 30_000
    assert settings.cache_tools is True
    assert settings.discovery_max_attempts == 3
    assert settings.discovery_initial_delay_ms == 50
    assert settings.log_level == "INFO"
    assert settings.log_dir is None


def test_bridge_settings_from_env(monkeypatch):
    """Test loading settings from environment variables."""
    monkeypatch.setenv("MCP_BRIDGE_TIMEOUT_MS", "5000")
    monkeypatch.setenv("MCP_BRIDGE_CACHE_TOOLS", "false")
    monkeypatch.setenv("MCP_BRIDGE_DISCOVERY_MAX_ATTEMPTS", "5")

    settings = BridgeSettings(env_file=None)

    assert settings.timeout_ms == 5000
    assert settings.cache_tools is False
    assert settings.discovery_max_attempts == 5


def test_bridge_settings_from_env_file(tmp_path):
    """Test loading settings from a .env file."""
    env_file = tmp_path / ".env"
    env_file.write_text("MCP_BRIDGE_TIMEOUT_MS=1234\nMCP_BRIDGE_LOG_LEVEL=DEBUG\n")

    settings = BridgeSettings(env_file=str(env_file))

    assert settings.timeout_ms == 1234
    assert settings.log_level == "DEBUG"


def test_bridge_settings_validation(monkeypatch):
    """Test that invalid settings are rejected."""
    monkeypatch.setenv("MCP_BRIDGE_TIMEOUT_MS", "0")

    with pytest.raises(ValueError):
        BridgeSettings(env_file=None)


def test_execution_config_defaults(make_provider):
    """Test default values in ExecutionConfig."""
    provider = make_provider()
    config = ExecutionConfig(provider=provider)

    assert config.provider is provider
    assert config.fallback_provider is None
    assert config.timeout_ms == 30_000
    assert config.cache_tools is True
    assert config.retry_policy is None
    assert config.tool_filter is None
    assert dict(config.context) == {}
    assert config.has_fallback is False


def test_execution_config_from_settings(monkeypatch, make_provider):
    """Test building a config from settings and overrides."""
    monkeypatch.setenv("MCP_BRIDGE_TIMEOUT_MS", "2500")
    monkeypatch.setenv("MCP_BRIDGE_CACHE_TOOLS", "false")
    provider = make_provider()

    config = ExecutionConfig.from_settings(provider, BridgeSettings(env_file=None))
    overridden = ExecutionConfig.from_settings(provider, BridgeSettings(env_file=None), timeout_ms=10)

    assert config.timeout_ms == 2500
    assert config.cache_tools is False
    assert overridden.timeout_ms == 10


@pytest.mark.parametrize("timeout_ms", [0, -5, "1000", 1.5, True, None])
def test_execution_config_rejects_invalid_timeout(make_provider, timeout_ms):
    """Test that the timeout must be a positive integer."""
    with pytest.raises(ConfigError):
        ExecutionConfig(provider=make_provider(), timeout_ms=timeout_ms)


def test_execution_config_rejects_invalid_providers(make_provider):
    """Test provider validation."""
    with pytest.raises(ConfigError, match="provider is required"):
        ExecutionConfig(provider=None)
    with pytest.raises(ConfigError):
        ExecutionConfig(provider=object())
    with pytest.raises(ConfigError, match="fallback_provider"):
        ExecutionConfig(provider=make_provider(), fallback_provider="backup")


def test_execution_config_accepts_duck_typed_provider():
    """Test that any object with call_tool and list_tools is a provider."""
    class DuckProvider:
        def call_tool(self, name, arguments, timeout_ms):
            return None

        def list_tools(self):
            return []

    config = ExecutionConfig(provider=DuckProvider())

    assert isinstance(config.provider, DuckProvider)


def test_execution_config_rejects_invalid_callbacks(make_provider):
    """Test that callbacks must be callable and context a mapping."""
    with pytest.raises(ConfigError, match="retry_policy"):
        ExecutionConfig(provider=make_provider(), retry_policy="skip")
    with pytest.raises(ConfigError, match="tool_filter"):
        ExecutionConfig(provider=make_provider(), tool_filter=["search"])
    with pytest.raises(ConfigError, match="context"):
        ExecutionConfig(provider=make_provider(), context=[("a", 1)])
    with pytest.raises(ConfigError, match="cache_tools"):
        ExecutionConfig(provider=make_provider(), cache_tools="yes")


def test_execution_config_is_immutable(make_provider):
    """Test that configs and their context cannot be changed in place."""
    context = {"user": "alice"}
    config = ExecutionConfig(provider=make_provider(), context=context)

    with pytest.raises(dataclasses.FrozenInstanceError):
        config.timeout_ms = 10
    with pytest.raises(TypeError):
        config.context["user"] = "bob"

    context["user"] = "mallory"
    assert config.context["user"] == "alice"


def test_execution_config_replace(make_provider):
    """Test deriving a config."""
    config = ExecutionConfig(provider=make_provider(), timeout_ms=100)
    fallback = make_provider()

    updated = config.replace(fallback_provider=fallback, timeout_ms=200)

    assert updated.timeout_ms == 200
    assert updated.has_fallback is True
    assert updated.provider is config.provider
    assert config.timeout_ms == 100
    with pytest.raises(ConfigError):
        config.replace(timeout_ms=0)


def test_before_fallback(make_provider):
    """Test the retry policy answers."""
    calls = []

    def policy(tool_name, arguments):
        calls.append((tool_name, arguments))
        return arguments.get("decision")

    config = ExecutionConfig(provider=make_provider(), retry_policy=policy)

    assert ExecutionConfig(provider=make_provider()).before_fallback("t", {}) is FallbackDecision.CONTINUE
    assert config.before_fallback("t", {"decision": FallbackDecision.SKIP}) is FallbackDecision.SKIP
    assert config.before_fallback("t", {"decision": "skip"}) is FallbackDecision.SKIP
    assert config.before_fallback("t", {"decision": None}) is FallbackDecision.CONTINUE
    assert config.before_fallback("t", {"decision": "maybe"}) is FallbackDecision.CONTINUE
    assert calls[0] == ("t", {"decision": FallbackDecision.SKIP})


def test_filter_tool(make_provider):
    """Test the tool filter."""
    config = ExecutionConfig(provider=make_provider(), tool_filter=lambda tool: tool["name"].startswith("safe_"))

    assert config.filter_tool({"name": "safe_read"}) is True
    assert config.filter_tool({"name": "delete"}) is False
    assert ExecutionConfig(provider=make_provider()).filter_tool({"name": "delete"}) is True
