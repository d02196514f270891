"""Tests for the logging utilities."""

from mcp_bridge.utils import redact_sensitive_data, sanitize_log_message


def test_redact_sensitive_keys():
    """Test that sensitive values are masked and others kept."""
    data = {
        "api_key": "sk-1234567890abcdef",
        "password": "hunter2",
        "retries": 3,
        "city": "Paris",
        "auth_token": 12345,
    }

    redacted = redact_sensitive_data(data)

    assert redacted == {
        "api_key": "sk-1...cdef",
        "password": "****",
        "retries": 3,
        "city": "Paris",
        "auth_token": "[REDACTED]",
    }


def test_redact_nested_structures():
    """Test that nested dicts and lists are walked."""
    data = {
        "headers": {"Authorization": "Bearer abcdefghijklmnop"},
        "items": [{"secret": "short"}, {"name": "public"}],
        "credentials": {"user": "alice"},
    }

    redacted = redact_sensitive_data(data)

    assert redacted["headers"]["Authorization"] == "Bear...mnop"
    assert redacted["items"] == [{"secret": "****"}, {"name": "public"}]
    assert redacted["credentials"] == {"user": "alice"}


def test_redact_does_not_modify_input():
    """Test that the input is left untouched."""
    data = {"token": "abcdefghijkl", "nested": {"password": "pw"}}

    redact_sensitive_data(data)

    assert data == {"token": "abcdefghijkl", "nested": {"password": "pw"}}


def test_redact_non_container_values():
    """Test that scalars pass through."""
    assert redact_sensitive_data("plain") == "plain"
    assert redact_sensitive_data(None) is None
    assert redact_sensitive_data([1, 2]) == [1, 2]


def test_sanitize_log_message():
    """Test that credential patterns are removed from text."""
    message = "GET /v1?key=abc123&token=x.y.z failed with Bearer eyJhbGciOi.abc password=pw secret=s3"

    sanitized = sanitize_log_message(message)

    assert sanitized == (
        "GET /v1?key=****&token=**** failed with Bearer **** password=**** secret=****"
    )


def test_sanitize_plain_message():
    """Test that ordinary messages are unchanged."""
    assert sanitize_log_message("Tool 'search' failed: timeout") == "Tool 'search' failed: timeout"
