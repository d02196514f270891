"""MCP SDK integration for the bridge."""

from .session import SessionProvider

__all__ = ["SessionProvider"]
