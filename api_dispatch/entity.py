"""Entity Builder - Serializes a request body for transmission.

Maps a ContentModel plus an optional explicit media type to a RequestEntity.
An explicit media type always wins; otherwise the default for the body kind
is used. Unknown kinds fall through to text/plain instead of failing.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from api_dispatch.models import ContentKind, ContentModel, RequestEntity
from api_dispatch.xml_body import node_to_string

APPLICATION_JSON = "application/json"
APPLICATION_XML = "application/xml"
APPLICATION_OCTET_STREAM = "application/octet-stream"
TEXT_PLAIN = "text/plain"
MULTIPART_FORM_DATA = "multipart/form-data"
APPLICATION_FORM_URLENCODED = "application/x-www-form-urlencoded"

_DEFAULT_MEDIA_TYPES = {
    ContentKind.JSON: APPLICATION_JSON,
    ContentKind.MAP: APPLICATION_JSON,
    ContentKind.XML: APPLICATION_XML,
    ContentKind.STREAM: APPLICATION_OCTET_STREAM,
}


def to_json_string(document: Any) -> str:
    """Compact JSON text, keys in insertion order."""
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False)


def _to_json_compatible(value: Any) -> Any:
    """Convert arbitrary Mapping/sequence nesting to plain dicts and lists."""
    if isinstance(value, Mapping):
        return {str(k): _to_json_compatible(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json_compatible(item) for item in value]
    return value


def default_media_type(body: ContentModel) -> str:
    return _DEFAULT_MEDIA_TYPES.get(body.kind, TEXT_PLAIN)


def build_entity(body: ContentModel, media_type: str | None = None) -> RequestEntity:
    """Serialize *body* according to its kind.

    Args:
        body: The request body.
        media_type: Explicit Content-Type; None selects the kind's default.

    Returns:
        RequestEntity with the wire content and the media type to send.
    """
    if media_type is None:
        media_type = default_media_type(body)

    if body.kind == ContentKind.JSON:
        content: Any = to_json_string(body.value)
    elif body.kind == ContentKind.MAP:
        content = to_json_string(_to_json_compatible(body.value))
    elif body.kind == ContentKind.XML:
        content = node_to_string(body.value)
    elif body.kind == ContentKind.STREAM:
        content = body.value
    else:
        content = str(body.value)

    return RequestEntity(content=content, media_type=media_type)
