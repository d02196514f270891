"""Schema translator for converting between MCP input schemas and parameter descriptors.

MCP tools describe their arguments with a JSON-Schema-like object. This module
turns that object into ``ParameterDescriptor`` values and back, supporting:

- Simple types (string, integer, number, boolean)
- Arrays, with primitive or object items
- Objects, with nested properties
- Enums on string and integer parameters
- Required fields, evaluated at every nesting level
- Descriptions

Example:
    ```python
    schema = {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Search query"},
            "limit": {"type": "integer"},
        },
        "required": ["query"],
    }
    params = SchemaTranslator.to_descriptors(schema)
    # [ParameterDescriptor(name="query", kind=STRING, required=True, ...),
    #  ParameterDescriptor(name="limit", kind=INTEGER, required=False, ...)]
    ```

The reverse conversion is lossy: numeric bounds, length limits, patterns and
any other constraint metadata are not represented in a descriptor and do not
survive a round trip.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from mcp_bridge.types import ParameterDescriptor, ParameterKind, ToolDescriptor

logger = logging.getLogger(__name__)


class SchemaTranslator:
    """Converts between JSON-Schema-like objects and parameter descriptors."""

    # Fields folded into the description when fold_constraints is enabled
    CONSTRAINT_FIELDS: Tuple[str, ...] = (
        "minimum",
        "maximum",
        "minLength",
        "maxLength",
        "pattern",
    )

    @staticmethod
    def to_descriptors(schema: Any, fold_constraints: bool = False) -> List[ParameterDescriptor]:
        """Convert an object schema into parameter descriptors.

        Args:
            schema: JSON-Schema-like object, typically a tool's ``inputSchema``
            fold_constraints: Append numeric and length constraints to each
                parameter's description

        Returns:
            Descriptors in property order. Properties without a ``type`` are
            dropped, and a schema that is not of type ``object`` yields an
            empty list.
        """
        if not isinstance(schema, Mapping) or schema.get("type") != "object":
            logger.warning("Schema is not an object type, returning no parameters", extra={
                "schema_type": schema.get("type") if isinstance(schema, Mapping) else type(schema).__name__
            })
            return []
        return SchemaTranslator._convert_properties(schema, fold_constraints)

    @staticmethod
    def convert_property(
        name: str,
        prop_schema: Any,
        required: bool = False,
        fold_constraints: bool = False,
    ) -> Optional[ParameterDescriptor]:
        """Convert a single property schema.

        Args:
            name: Property name
            prop_schema: The property's schema
            required: Whether the property is required at its level
            fold_constraints: Append constraints to the description

        Returns:
            The descriptor, or None if the property cannot be converted
        """
        if not isinstance(prop_schema, Mapping) or "type" not in prop_schema:
            logger.warning("Property '%s' has no type, dropping it", name)
            return None

        description = prop_schema.get("description")
        if not isinstance(description, str):
            description = None
        if fold_constraints:
            description = SchemaTranslator._fold_constraints(description, prop_schema)

        attrs: Dict[str, Any] = {
            "name": name,
            "description": description,
            "required": required,
        }
        attrs.update(SchemaTranslator._convert_type(prop_schema["type"], prop_schema, fold_constraints))

        try:
            return ParameterDescriptor(**attrs)
        except ValidationError as e:
            logger.error("Failed to build descriptor for '%s': %s", name, e)
            return None

    @staticmethod
    def _convert_properties(object_schema: Mapping, fold_constraints: bool) -> List[ParameterDescriptor]:
        properties = object_schema.get("properties") or {}
        if not isinstance(properties, Mapping):
            logger.warning("Schema properties are not a mapping, ignoring them", extra={
                "properties_type": type(properties).__name__
            })
            properties = {}
        required = object_schema.get("required")
        required_fields = (
            {field for field in required if isinstance(field, str)} if isinstance(required, (list, tuple)) else set()
        )

        descriptors = []
        for name, prop_schema in properties.items():
            descriptor = SchemaTranslator.convert_property(
                name, prop_schema, name in required_fields, fold_constraints
            )
            if descriptor is not None:
                descriptors.append(descriptor)
        return descriptors

    @staticmethod
    def _convert_type(type_name: Any, prop_schema: Mapping, fold_constraints: bool) -> Dict[str, Any]:
        kind = SchemaTranslator._parse_kind(type_name)
        if kind is None:
            logger.warning("Unknown JSON Schema type %r, defaulting to string", type_name)
            return {"kind": ParameterKind.STRING}

        attrs: Dict[str, Any] = {"kind": kind}

        if kind in (ParameterKind.STRING, ParameterKind.INTEGER):
            enum = prop_schema.get("enum")
            if isinstance(enum, list) and enum:
                attrs["enum_values"] = tuple(enum)

        elif kind is ParameterKind.ARRAY:
            items = prop_schema.get("items")
            item_type = items.get("type") if isinstance(items, Mapping) else None
            if item_type == "object":
                attrs["item_kind"] = ParameterKind.OBJECT
                attrs["nested_properties"] = tuple(
                    SchemaTranslator._convert_properties(items, fold_constraints)
                )
            elif item_type is not None:
                item_kind = SchemaTranslator._parse_kind(item_type)
                if item_kind is None:
                    logger.warning("Unknown array item type %r, leaving items untyped", item_type)
                else:
                    attrs["item_kind"] = item_kind
            # No items schema: heterogeneous array

        elif kind is ParameterKind.OBJECT:
            attrs["nested_properties"] = tuple(
                SchemaTranslator._convert_properties(prop_schema, fold_constraints)
            )

        return attrs

    @staticmethod
    def _parse_kind(type_name: Any) -> Optional[ParameterKind]:
        if not isinstance(type_name, str):
            return None
        try:
            return ParameterKind(type_name)
        except ValueError:
            return None

    @staticmethod
    def _fold_constraints(description: Optional[str], prop_schema: Mapping) -> Optional[str]:
        parts = [
            f"{field}: {prop_schema[field]}"
            for field in SchemaTranslator.CONSTRAINT_FIELDS
            if field in prop_schema
        ]
        if not parts:
            return description
        suffix = f"({', '.join(parts)})"
        return f"{description} {suffix}" if description else suffix

    @staticmethod
    def from_descriptors(descriptors: Sequence[ParameterDescriptor]) -> Dict[str, Any]:
        """Convert descriptors back into an object schema.

        Args:
            descriptors: Parameter descriptors

        Returns:
            ``{"type": "object", "properties": {...}}`` with a ``required``
            list when at least one descriptor is required
        """
        schema: Dict[str, Any] = {"type": "object"}
        return SchemaTranslator._add_properties(schema, descriptors)

    @staticmethod
    def _add_properties(schema: Dict[str, Any], descriptors: Sequence[ParameterDescriptor]) -> Dict[str, Any]:
        schema["properties"] = {
            descriptor.name: SchemaTranslator._descriptor_to_property(descriptor)
            for descriptor in descriptors
        }
        required = [descriptor.name for descriptor in descriptors if descriptor.required]
        if required:
            schema["required"] = required
        return schema

    @staticmethod
    def _descriptor_to_property(descriptor: ParameterDescriptor) -> Dict[str, Any]:
        prop: Dict[str, Any] = {"type": descriptor.kind.value}
        if descriptor.description is not None:
            prop["description"] = descriptor.description
        if descriptor.enum_values:
            prop["enum"] = list(descriptor.enum_values)

        if descriptor.kind is ParameterKind.OBJECT:
            SchemaTranslator._add_properties(prop, descriptor.nested_properties)
        elif descriptor.kind is ParameterKind.ARRAY and descriptor.item_kind is not None:
            if descriptor.item_kind is ParameterKind.OBJECT:
                prop["items"] = SchemaTranslator._add_properties(
                    {"type": "object"}, descriptor.nested_properties
                )
            else:
                prop["items"] = {"type": descriptor.item_kind.value}
        return prop

    @staticmethod
    def to_tool_descriptor(raw_tool: Any, fold_constraints: bool = False) -> ToolDescriptor:
        """Convert a raw tool listing into a tool descriptor.

        Args:
            raw_tool: Mapping with ``name``, ``description`` and ``inputSchema``,
                or an ``mcp.types.Tool``

        Returns:
            The tool descriptor
        """
        if hasattr(raw_tool, "model_dump"):
            raw_tool = raw_tool.model_dump(mode="json", by_alias=True, exclude_none=True)
        input_schema = raw_tool.get("inputSchema") or {}
        return ToolDescriptor(
            name=raw_tool["name"],
            description=raw_tool.get("description"),
            parameters=tuple(SchemaTranslator.to_descriptors(input_schema, fold_constraints)),
        )
