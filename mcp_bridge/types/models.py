"""Type definitions for the MCP bridge.

This module contains the value types passed between the bridge components:
parameter and tool descriptors produced by the schema translator, the
classified errors produced by the error classifier, normalized content items,
and the raw record shapes exchanged with a provider.
"""

from enum import Enum
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Tuple,
    TypedDict,
    Union,
)

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ParameterKind(str, Enum):
    """JSON Schema types understood by the schema translator."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


ENUM_KINDS = frozenset({ParameterKind.STRING, ParameterKind.INTEGER})


class ParameterDescriptor(BaseModel):
    """Typed description of a single tool parameter.

    Attributes:
        name: Property name as it appears in the tool's input schema
        kind: The parameter's data type
        description: Optional human-readable description
        required: Whether the parameter is required at its nesting level
        enum_values: Allowed values (string and integer parameters only)
        item_kind: Element type of an array parameter, if declared
        nested_properties: Properties of an object, or of the objects held
            by an array whose item_kind is object
    """

    model_config = ConfigDict(frozen=True)

    name: str
    kind: ParameterKind
    description: Optional[str] = None
    required: bool = False
    enum_values: Optional[Tuple[Any, ...]] = None
    item_kind: Optional[ParameterKind] = None
    nested_properties: Tuple["ParameterDescriptor", ...] = ()

    @model_validator(mode="after")
    def check_shape(self) -> "ParameterDescriptor":
        """Reject field combinations that the kind does not allow."""
        if self.enum_values is not None and self.kind not in ENUM_KINDS:
            raise ValueError(f"enum_values not allowed for {self.kind.value} parameter '{self.name}'")
        if self.item_kind is not None and self.kind is not ParameterKind.ARRAY:
            raise ValueError(f"item_kind only applies to arrays, got {self.kind.value} for '{self.name}'")
        if self.nested_properties and not self.holds_objects:
            raise ValueError(f"nested_properties not allowed for {self.kind.value} parameter '{self.name}'")
        return self

    @property
    def holds_objects(self) -> bool:
        """True for objects and arrays of objects."""
        return self.kind is ParameterKind.OBJECT or (
            self.kind is ParameterKind.ARRAY and self.item_kind is ParameterKind.OBJECT
        )


ParameterDescriptor.model_rebuild()


class ToolDescriptor(BaseModel):
    """Typed description of a tool discovered from a provider.

    Attributes:
        name: The name of the tool, unique within one discovery snapshot
        description: A human-readable description of what the tool does
        parameters: Ordered parameter descriptors
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    parameters: Tuple[ParameterDescriptor, ...] = ()


class ErrorCategory(str, Enum):
    """Failure taxonomy used to decide between retry and surfacing."""

    PROTOCOL = "protocol"
    TRANSPORT = "transport"
    DOMAIN = "domain"
    UNKNOWN = "unknown"


class ErrorReason(str, Enum):
    """Reason tags recognized by the error classifier."""

    PARSE_ERROR = "parse_error"
    INVALID_REQUEST = "invalid_request"
    METHOD_NOT_FOUND = "method_not_found"
    INVALID_PARAMS = "invalid_params"
    INTERNAL_ERROR = "internal_error"
    REQUEST_TIMEOUT = "request_timeout"
    SEND_FAILURE = "send_failure"
    CONNECTION_REFUSED = "connection_refused"
    REQUEST_CANCELLED = "request_cancelled"


class ClassifiedError(BaseModel):
    """A failure record with its category and retry decision.

    Attributes:
        category: Where in the call chain the failure originated
        retryable: Whether a fallback attempt may succeed
        message: Human-readable description
        raw_code: Numeric error code reported by the provider, if any
        reason: Reason tag reported by (or derived for) the failure
    """

    model_config = ConfigDict(frozen=True)

    category: ErrorCategory
    retryable: bool = False
    message: str
    raw_code: Optional[int] = None
    reason: Optional[str] = None


class ContentTag(str, Enum):
    """Kinds of normalized content."""

    TEXT = "text"
    IMAGE = "image"
    FILE_REFERENCE = "file_reference"
    UNSUPPORTED = "unsupported"


class ContentItem(BaseModel):
    """One normalized unit of a tool result.

    Attributes:
        tag: Kind of content
        payload: Text, base64 image data, URI or a dump of the raw item
        media_type: Short image tag (``png``, ``jpg``) or MIME type
        original_tag: Raw ``type`` of an unsupported item, kept so the item
            can be turned back into its raw shape
    """

    model_config = ConfigDict(frozen=True)

    tag: ContentTag
    payload: str
    media_type: Optional[str] = None
    original_tag: Optional[str] = None

    @model_validator(mode="after")
    def check_original_tag(self) -> "ContentItem":
        if self.original_tag is not None and self.tag is not ContentTag.UNSUPPORTED:
            raise ValueError("original_tag is only kept for unsupported content")
        return self


class ToolResponse(BaseModel):
    """Successful envelope returned by a provider's ``call_tool``.

    Attributes:
        is_error: True when the tool ran but reports an application failure
        result: Decoded result payload, normally ``{"content": [...]}``
    """

    model_config = ConfigDict(frozen=True)

    is_error: bool = False
    result: Any = Field(default_factory=dict)

    @property
    def content(self) -> Optional[List[Any]]:
        """The payload's content list, if it has one."""
        if isinstance(self.result, dict) and isinstance(self.result.get("content"), list):
            return self.result["content"]
        return None

    @classmethod
    def from_call_result(cls, call_result: Any) -> "ToolResponse":
        """Build an envelope from an ``mcp.types.CallToolResult``."""
        payload = call_result.model_dump(mode="json", by_alias=True, exclude_none=True)
        return cls(is_error=bool(payload.get("isError", False)), result=payload)


class ToolResult(BaseModel):
    """Explicit result wrapper returned when the ``tool_result`` shape is requested."""

    model_config = ConfigDict(frozen=True)

    content: Union[str, List[ContentItem]]
    is_error: bool = False


class FallbackDecision(str, Enum):
    """Answer of a ``before_fallback`` policy callback."""

    CONTINUE = "continue"
    SKIP = "skip"


class ReturnFormat(str, Enum):
    """Result shapes a caller can force through the ``return_format`` context key."""

    TOOL_RESULT = "tool_result"
    CONTENT_PARTS = "content_parts"


class RawToolSchema(TypedDict, total=False):
    """A tool as listed by a provider.

    Attributes:
        name: Name of the tool
        description: Description of the tool
        inputSchema: JSON-Schema-like object describing the arguments
    """

    name: str
    description: Optional[str]
    inputSchema: Dict[str, Any]


class RawContentItem(TypedDict, total=False):
    """A content item as returned by a provider.

    Only ``type`` is always present; the other keys depend on it.
    """

    type: str
    text: str
    data: str
    mimeType: str
    uri: str


# Successful outcome of an invocation
ExecutionResult = Union[str, List[ContentItem], ToolResult]
