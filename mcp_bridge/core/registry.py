"""Tool Registry for the MCP bridge.

This module provides a registry that lists tools from providers, caches the
discovered snapshots and filters them for callers.

The cache is owned by the registry instance and keyed by provider identity:
two configs pointing at the same provider object share one snapshot. A
snapshot has no expiry; it is replaced on a forced refresh and ignored when a
config disables caching. Filtering is applied at query time and never stored,
so one snapshot serves any number of filtered views. Callers always receive deep
copies, so changing a returned tool never changes the snapshot.

The cache holds a strong reference to every provider it has listed until
``invalidate()`` drops it; call it when retiring a provider.
"""

import copy
import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

import backoff

from mcp_bridge.core.config import BridgeSettings, ExecutionConfig
from mcp_bridge.core.error_classifier import DECLARED_FAILURES, ErrorClassifier
from mcp_bridge.core.errors import DiscoveryError
from mcp_bridge.types import ClassifiedError, ErrorCategory, ErrorReason, RawToolSchema
from mcp_bridge.utils.log_utils import sanitize_log_message

logger = logging.getLogger(__name__)

# Reported by MCP clients asked to list tools before their handshake finished
NOT_INITIALIZED_MARKER = "Server capabilities not set"


def _as_tool_dict(tool: Any) -> RawToolSchema:
    if hasattr(tool, "model_dump"):
        return tool.model_dump(mode="json", by_alias=True, exclude_none=True)
    return copy.deepcopy(dict(tool))


class ToolRegistry:
    """Registry for discovering and caching provider tools.

    Attributes:
        MAX_ATTEMPTS (int): Default number of discovery attempts
        INITIAL_DELAY (float): Default delay in seconds before the first retry
    """

    MAX_ATTEMPTS = 3
    INITIAL_DELAY = 0.05

    def __init__(self, max_attempts: int = MAX_ATTEMPTS, initial_delay: float = INITIAL_DELAY) -> None:
        """Initialize an empty tool registry.

        Args:
            max_attempts: Upper bound on discovery calls per listing
            initial_delay: Seconds to wait before the first retry; doubles
                on every further retry
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self._cache: Dict[int, Tuple[Any, Tuple[RawToolSchema, ...]]] = {}

    @classmethod
    def from_settings(cls, settings: Optional[BridgeSettings] = None) -> "ToolRegistry":
        """Create a registry using the discovery settings."""
        if settings is None:
            settings = BridgeSettings()
        return cls(
            max_attempts=settings.discovery_max_attempts,
            initial_delay=settings.discovery_initial_delay_ms / 1000
        )

    def list_tools(self, config: ExecutionConfig, force_refresh: bool = False) -> List[RawToolSchema]:
        """List the tools of the config's primary provider.

        Args:
            config: The execution config
            force_refresh: Ignore any cached snapshot

        Returns:
            Raw tool schemas

        Raises:
            DiscoveryError: If the provider cannot list its tools
        """
        if config.cache_tools and not force_refresh:
            cached = self.cached_tools(config.provider)
            if cached is not None:
                logger.debug("Using cached tools", extra={"num_tools": len(cached)})
                return cached

        tools = tuple(self._discover(config.provider))
        if config.cache_tools:
            # Last write wins when refreshes race
            self._cache[id(config.provider)] = (config.provider, tools)
        return copy.deepcopy(list(tools))

    def cached_tools(self, provider: Any) -> Optional[List[RawToolSchema]]:
        """Return the cached snapshot for a provider, or None."""
        entry = self._cache.get(id(provider))
        if entry is None or entry[0] is not provider:
            return None
        return copy.deepcopy(list(entry[1]))

    def invalidate(self, provider: Any = None) -> None:
        """Drop the snapshot of one provider, or of all providers."""
        if provider is None:
            self._cache.clear()
        else:
            self._cache.pop(id(provider), None)

    def filter_tools(
        self,
        config: ExecutionConfig,
        tools: Iterable[RawToolSchema],
        only: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
        predicate: Optional[Callable[[Mapping[str, Any]], bool]] = None,
    ) -> List[RawToolSchema]:
        """Filter tools by name and by predicate, in that order.

        Args:
            config: The execution config; its ``tool_filter`` is the default
                predicate
            tools: Raw tool schemas to filter
            only: Keep only tools with these names
            exclude: Drop tools with these names
            predicate: Overrides the config's ``tool_filter``

        Returns:
            The remaining tools, in their original order
        """
        result = list(tools)
        if only is not None:
            only = set(only)
            result = [tool for tool in result if tool.get("name") in only]
        if exclude is not None:
            exclude = set(exclude)
            result = [tool for tool in result if tool.get("name") not in exclude]
        if predicate is not None:
            result = [tool for tool in result if predicate(tool)]
        elif config.tool_filter is not None:
            result = [tool for tool in result if config.filter_tool(tool)]
        return result

    @staticmethod
    def is_initializing(error: Any) -> bool:
        """Whether a failure means the provider has not finished initializing."""
        fields = ErrorClassifier.structured_fields(error)
        if fields is None:
            return False
        if ErrorClassifier.classify(error).reason != ErrorReason.INTERNAL_ERROR.value:
            return False
        _code, _reason, message, data = fields
        texts = [message, data.get("message") if isinstance(data, Mapping) else None]
        return any(isinstance(text, str) and NOT_INITIALIZED_MARKER in text for text in texts)

    def _discover(self, provider: Any) -> List[RawToolSchema]:
        start_time = time.time()
        list_with_retry = backoff.on_exception(
            backoff.expo,
            DECLARED_FAILURES,
            max_tries=self.max_attempts,
            giveup=lambda e: not self.is_initializing(e),
            jitter=None,
            on_backoff=self._log_backoff,
            factor=self.initial_delay,
        )(provider.list_tools)

        try:
            listing = list_with_retry()
        except DECLARED_FAILURES as e:
            classified = ErrorClassifier.classify(e)
            logger.error("Tool discovery failed", extra={
                "error": sanitize_log_message(classified.message),
                "category": classified.category.value,
                "duration_ms": int((time.time() - start_time) * 1000)
            })
            raise DiscoveryError(classified.message, classified) from e
        except Exception as e:
            classified = ClassifiedError(
                category=ErrorCategory.UNKNOWN,
                retryable=False,
                message=f"Tool discovery exception: {e}",
            )
            logger.exception("Unexpected error during tool discovery")
            raise DiscoveryError(classified.message, classified) from e

        # Accept a ListToolsResult as well as a plain list
        tools = getattr(listing, "tools", listing) or []
        tools = [_as_tool_dict(tool) for tool in tools]
        logger.info("Tools discovered", extra={
            "num_tools": len(tools),
            "tool_names": [tool.get("name") for tool in tools],
            "duration_ms": int((time.time() - start_time) * 1000)
        })
        return tools

    @staticmethod
    def _log_backoff(details: Dict[str, Any]) -> None:
        logger.info("Provider not initialized, retrying tool discovery", extra={
            "attempt": details["tries"],
            "wait_seconds": details["wait"]
        })
