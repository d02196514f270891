"""Adapter exposing provider tools as callable functions.

The adapter is the facade over the bridging pipeline. It discovers tools
through a ``ToolRegistry``, describes them with the ``SchemaTranslator`` and
runs them through a ``ToolExecutor``.

Example:
    ```python
    from mcp_bridge import ExecutionConfig, MCPAdapter

    adapter = MCPAdapter(ExecutionConfig(provider=my_provider))
    for tool in adapter.to_functions(exclude=["delete_file"]):
        print(tool.name, tool.input_schema)

    weather = adapter.get_tool("get_weather")
    print(weather({"city": "Paris"}))
    ```
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from mcp_bridge.core.config import ExecutionConfig
from mcp_bridge.core.errors import DiscoveryError
from mcp_bridge.core.executor import ToolExecutor
from mcp_bridge.core.registry import ToolRegistry
from mcp_bridge.core.schema_translator import SchemaTranslator
from mcp_bridge.types import ExecutionResult, ParameterDescriptor, RawToolSchema, ToolDescriptor

logger = logging.getLogger(__name__)


class BridgedTool:
    """A provider tool exposed as a plain callable.

    Attributes:
        descriptor: The translated tool descriptor
    """

    def __init__(self, descriptor: ToolDescriptor, executor: ToolExecutor) -> None:
        self.descriptor = descriptor
        self._executor = executor

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def description(self) -> Optional[str]:
        return self.descriptor.description

    @property
    def parameters(self) -> List[ParameterDescriptor]:
        return list(self.descriptor.parameters)

    @property
    def input_schema(self) -> Dict[str, Any]:
        """The parameters rebuilt as an object schema."""
        return SchemaTranslator.from_descriptors(self.descriptor.parameters)

    def __call__(
        self,
        arguments: Optional[Dict[str, Any]] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> ExecutionResult:
        """Execute the tool.

        Raises:
            ToolExecutionError: If the tool call fails
        """
        return self._executor.execute(self.name, arguments, context)

    def __repr__(self) -> str:
        return f"BridgedTool(name={self.name!r}, parameters={[p.name for p in self.descriptor.parameters]!r})"


class MCPAdapter:
    """Facade that turns a provider's tools into ``BridgedTool`` callables."""

    def __init__(
        self,
        config: ExecutionConfig,
        registry: Optional[ToolRegistry] = None,
        fold_constraints: bool = False,
    ) -> None:
        """Initialize the adapter.

        Args:
            config: The execution config
            registry: Registry holding the discovery cache; share one between
                adapters to share their cache
            fold_constraints: Append schema constraints to parameter descriptions
        """
        self._config = config
        self._registry = registry if registry is not None else ToolRegistry()
        self._executor = ToolExecutor(config, self._registry)
        self.fold_constraints = fold_constraints

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def executor(self) -> ToolExecutor:
        return self._executor

    def discover_tools(self, refresh: bool = False) -> List[RawToolSchema]:
        """List the raw tools of the primary provider.

        Raises:
            DiscoveryError: If the provider cannot list its tools
        """
        return self._registry.list_tools(self._config, force_refresh=refresh)

    def refresh_cache(self) -> List[RawToolSchema]:
        """Discover the tools again, replacing the cached snapshot."""
        return self.discover_tools(refresh=True)

    def to_functions(
        self,
        only: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
        refresh: bool = False,
    ) -> List[BridgedTool]:
        """Expose the provider's tools as callables.

        Args:
            only: Keep only tools with these names
            exclude: Drop tools with these names
            refresh: Ignore the cached snapshot

        Returns:
            One callable per remaining tool; empty when discovery fails
        """
        try:
            tools = self.discover_tools(refresh)
        except DiscoveryError as e:
            logger.error("Failed to discover tools", extra={
                "error": e.error.message,
                "category": e.error.category.value
            })
            return []
        tools = self._registry.filter_tools(self._config, tools, only=only, exclude=exclude)

        functions = []
        for tool in tools:
            try:
                functions.append(self.tool_to_function(tool))
            except (KeyError, ValidationError) as e:
                logger.error("Skipping tool that cannot be described", extra={
                    "tool": tool.get("name") if isinstance(tool, Mapping) else None,
                    "error": str(e)
                })
        return functions

    def tool_to_function(self, raw_tool: Any) -> BridgedTool:
        """Wrap one raw tool schema as a callable."""
        descriptor = SchemaTranslator.to_tool_descriptor(raw_tool, self.fold_constraints)
        return BridgedTool(descriptor, self._executor)

    def validate_tools(self, names: Iterable[str]) -> List[str]:
        """Return the names that the provider does not list.

        Raises:
            DiscoveryError: If the provider cannot list its tools
        """
        available = {tool.get("name") for tool in self.discover_tools()}
        return [name for name in names if name not in available]

    def get_tool(self, name: str) -> BridgedTool:
        """Get a tool by name.

        Raises:
            KeyError: If the provider does not list the tool
            DiscoveryError: If the provider cannot list its tools
        """
        for tool in self._registry.filter_tools(self._config, self.discover_tools()):
            if tool.get("name") == name:
                return self.tool_to_function(tool)
        raise KeyError(f"Tool '{name}' not found")

    def get_config(self) -> ExecutionConfig:
        return self._config

    def update_config(self, **changes: Any) -> "MCPAdapter":
        """Return a new adapter with an updated config and the same registry.

        Raises:
            ConfigError: If the updated config is invalid
        """
        return MCPAdapter(self._config.replace(**changes), self._registry, self.fold_constraints)
