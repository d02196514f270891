"""Content normalization for MCP tool results.

MCP tool results carry a ``content`` list of multi-modal items. This module
maps them onto ``ContentItem`` values and back:

- ``text`` becomes a text item
- ``image`` becomes an image item with a short media type (``png``, ``jpg``)
- ``resource`` becomes a text item when it embeds text, a file reference when
  it only has a URI, and an unsupported item otherwise
- any other type becomes an unsupported item that remembers its original type

Malformed items are dropped with a warning; a single bad item never fails the
whole result.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from mcp_bridge.types import ContentItem, ContentTag

logger = logging.getLogger(__name__)

SHORT_MEDIA_TYPES = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
}
MEDIA_TYPE_MIMES = {
    "jpg": "image/jpeg",
    "png": "image/png",
}
DEFAULT_IMAGE_MIME = "image/png"


def as_raw_item(item: Any) -> Optional[Mapping[str, Any]]:
    """Return a content item as a mapping, dumping pydantic models such as ``mcp.types.TextContent``."""
    if hasattr(item, "model_dump"):
        item = item.model_dump(mode="json", by_alias=True, exclude_none=True)
    return item if isinstance(item, Mapping) else None


def _dump_item(item: Mapping[str, Any]) -> str:
    try:
        return json.dumps(item, sort_keys=True, default=repr)
    except (TypeError, ValueError):
        return repr(item)


class ContentNormalizer:
    """Maps raw MCP content items to and from ``ContentItem`` values."""

    @staticmethod
    def normalize(raw_items: Any) -> List[ContentItem]:
        """Convert a raw content list into content items.

        Args:
            raw_items: List of raw content mappings or MCP content models

        Returns:
            The converted items, in order. Items that cannot be converted are
            left out; anything other than a list yields an empty list.
        """
        if not isinstance(raw_items, (list, tuple)):
            return []
        items = []
        for raw_item in raw_items:
            item = ContentNormalizer.convert_item(raw_item)
            if item is not None:
                items.append(item)
        return items

    @staticmethod
    def convert_item(raw_item: Any) -> Optional[ContentItem]:
        """Convert one raw content item, or return None if it has no usable shape."""
        item = as_raw_item(raw_item)
        if item is None or "type" not in item:
            logger.warning("Invalid MCP content item: %r", raw_item)
            return None

        content_type = item["type"]
        if content_type == "text":
            text = item.get("text")
            if not isinstance(text, str):
                logger.warning("Text content missing 'text' field")
                return None
            return ContentItem(tag=ContentTag.TEXT, payload=text)

        if content_type == "image":
            data = item.get("data")
            mime_type = item.get("mimeType")
            if not isinstance(data, str) or not isinstance(mime_type, str):
                logger.warning("Image content missing data or mimeType", extra={
                    "has_data": data is not None,
                    "mime_type": mime_type
                })
                return None
            return ContentItem(
                tag=ContentTag.IMAGE,
                payload=data,
                media_type=SHORT_MEDIA_TYPES.get(mime_type, mime_type),
            )

        if content_type == "resource":
            return ContentNormalizer._convert_resource(item)

        logger.warning("Unknown MCP content type: %s", content_type)
        return ContentItem(
            tag=ContentTag.UNSUPPORTED,
            payload=_dump_item(item),
            original_tag=str(content_type),
        )

    @staticmethod
    def _convert_resource(item: Mapping[str, Any]) -> ContentItem:
        # The MCP SDK nests the resource fields under "resource"
        nested = item.get("resource")
        if isinstance(nested, Mapping):
            item = {**{k: v for k, v in item.items() if k != "resource"}, **nested}

        text = item.get("text")
        uri = item.get("uri")
        mime_type = item.get("mimeType")
        if isinstance(text, str):
            return ContentItem(tag=ContentTag.TEXT, payload=text)
        if isinstance(uri, str):
            return ContentItem(
                tag=ContentTag.FILE_REFERENCE,
                payload=uri,
                media_type=mime_type if isinstance(mime_type, str) else None,
            )

        logger.debug("Resource content type not fully supported: %r", item)
        return ContentItem(
            tag=ContentTag.UNSUPPORTED,
            payload=_dump_item(item),
            original_tag="resource",
        )

    @staticmethod
    def denormalize(items: Iterable[ContentItem]) -> List[Dict[str, Any]]:
        """Convert content items back into raw MCP content.

        Unsupported items only come back as ``{"type": original_tag}``, and
        are dropped when they have no original tag.
        """
        raw_items = []
        for item in items:
            if item.tag is ContentTag.TEXT:
                raw_items.append({"type": "text", "text": item.payload})
            elif item.tag is ContentTag.IMAGE:
                mime_type = MEDIA_TYPE_MIMES.get(item.media_type, item.media_type)
                raw_items.append({
                    "type": "image",
                    "data": item.payload,
                    "mimeType": mime_type or DEFAULT_IMAGE_MIME,
                })
            elif item.tag is ContentTag.FILE_REFERENCE:
                resource = {"type": "resource", "uri": item.payload}
                if item.media_type:
                    resource["mimeType"] = item.media_type
                raw_items.append(resource)
            elif item.original_tag is not None:
                raw_items.append({"type": item.original_tag})
        return raw_items

    @staticmethod
    def extract_plain_text(raw_items: Any) -> Optional[str]:
        """Concatenate the text of every text item.

        Returns:
            The joined text, or None when there is no text item
        """
        if not isinstance(raw_items, (list, tuple)):
            return None
        texts = [
            item["text"]
            for item in map(as_raw_item, raw_items)
            if item is not None and item.get("type") == "text" and isinstance(item.get("text"), str)
        ]
        return "".join(texts) if texts else None

    @staticmethod
    def has_text(raw_items: Any) -> bool:
        """Whether the raw content contains a text item."""
        return ContentNormalizer.extract_plain_text(raw_items) is not None

    @staticmethod
    def has_images(raw_items: Any) -> bool:
        """Whether the raw content contains an image item."""
        if not isinstance(raw_items, (list, tuple)):
            return False
        return any(
            item is not None and item.get("type") == "image"
            for item in map(as_raw_item, raw_items)
        )
