"""Logging helpers for the MCP bridge."""

from mcp_bridge.utils.log_utils import redact_sensitive_data, sanitize_log_message

__all__ = ["redact_sensitive_data", "sanitize_log_message"]
