"""Internal data models for api-dispatch.

Request and response models use Pydantic v2. Body values are wrapped in a
closed set of ContentModel kinds so entity construction can dispatch on the
kind instead of inspecting arbitrary Python types.
"""

from __future__ import annotations

import io
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Body Content Models
# =============================================================================


class ContentKind(str, Enum):
    """Which serialization rule applies to a request body."""

    JSON = "json"
    MAP = "map"
    XML = "xml"
    STREAM = "stream"
    TEXT = "text"


class ContentModel:
    """A request body value tagged with its kind."""

    kind: ContentKind = ContentKind.TEXT

    def __init__(self, value: Any) -> None:
        self.value = value

    @property
    def is_null(self) -> bool:
        return self.value is None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContentModel):
            return NotImplemented
        return self.kind == other.kind and self.value == other.value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


class JsonBody(ContentModel):
    """An already-parsed JSON document (dict, list or scalar)."""

    kind = ContentKind.JSON


class MapBody(ContentModel):
    """A structured mapping, possibly nested, serialized as JSON."""

    kind = ContentKind.MAP


class XmlBody(ContentModel):
    """An ElementTree node."""

    kind = ContentKind.XML

    def __eq__(self, other: object) -> bool:
        # Elements compare by identity, so compare their serialized form.
        if not isinstance(other, XmlBody):
            return NotImplemented
        return ET.tostring(self.value) == ET.tostring(other.value)


class StreamBody(ContentModel):
    """Raw bytes or a binary file-like object, sent unchanged."""

    kind = ContentKind.STREAM


class TextBody(ContentModel):
    """Fallback kind: the value is sent as its string representation."""

    kind = ContentKind.TEXT


def to_content(value: Any) -> ContentModel | None:
    """Wrap a raw Python value in the ContentModel kind that fits it.

    None stays None. Values that are already ContentModel instances are
    returned unchanged.
    """
    if value is None or isinstance(value, ContentModel):
        return value
    if isinstance(value, Mapping):
        return MapBody(value)
    if isinstance(value, list):
        return JsonBody(value)
    if isinstance(value, ET.Element):
        return XmlBody(value)
    if isinstance(value, (bytes, bytearray, memoryview, io.IOBase)):
        return StreamBody(value)
    return TextBody(value)


@dataclass(frozen=True)
class RequestEntity:
    """Serialized request body plus the media type it is sent with.

    content is whatever the transport accepts: bytes, str, a byte stream, or
    a payload prepared by the transport's own multipart/form builders.
    """

    content: Any
    media_type: str


# =============================================================================
# Core HTTP Models
# =============================================================================


class MultiPartItem(BaseModel):
    """One named part of a multipart/form-data body."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(description="Form field name of the part")
    value: Any = Field(default=None, description="Part content (str, bytes or file-like)")
    content_type: str | None = Field(default=None, description="Content-Type of this part")


class RequestDescriptor(BaseModel):
    """A declarative, possibly partial, HTTP request.

    Header, query and form values are arrays to support repeated names.
    url and method may be unset here; they are required at assembly time.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    url: str | None = Field(default=None, description="Base URL")
    method: str | None = Field(default=None, description="HTTP method, any case")
    paths: list[str] | None = Field(default=None, description="Path segments appended to url")
    params: dict[str, list[Any]] | None = Field(
        default=None, description="Query parameters (arrays for repeated params)"
    )
    headers: dict[str, list[Any]] | None = Field(
        default=None, description="Request headers (arrays for repeated headers)"
    )
    cookies: dict[str, str] | None = Field(default=None, description="Cookies")
    content_type: str | None = Field(default=None, description="Explicit body media type")
    multi_part_items: list[MultiPartItem] | None = Field(
        default=None, description="Multipart parts, in order"
    )
    form_fields: dict[str, list[str]] | None = Field(
        default=None, description="URL-encoded form fields"
    )
    body: ContentModel | None = Field(default=None, description="Request body")

    @field_validator("body", mode="before")
    @classmethod
    def wrap_body(cls, v: Any) -> ContentModel | None:
        return to_content(v)


class ResponseCase(BaseModel):
    """One HTTP response as returned to the caller.

    Header keys are lowercase. Header values are arrays for repeated headers.
    """

    model_config = ConfigDict(extra="forbid")

    status_code: int = Field(description="HTTP status code (0 when no call was made)")
    headers: dict[str, list[str]] = Field(
        default_factory=dict, description="Response headers (lowercase keys, array values)"
    )
    body: Any = Field(default=None, description="Body as JSON value, XML dict or text if parseable")
    body_base64: str | None = Field(default=None, description="Body as base64 if binary")
    content: bytes = Field(default=b"", exclude=True, description="Raw response bytes")
    elapsed_ms: float = Field(description="Response time in milliseconds")
    http_version: str = Field(default="1.1", description="Protocol version")


# =============================================================================
# Runtime Configuration Models
# =============================================================================


class TransportConfig(BaseModel):
    """Connection options applied by Transport.configure()."""

    model_config = ConfigDict(extra="forbid")

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    proxy: str | None = Field(default=None, description="Proxy URL")
    verify_ssl: bool = Field(default=True, description="Verify server certificates")
    ca_bundle: str | None = Field(default=None, description="Path to CA bundle")


class RuntimeConfig(BaseModel):
    """Top-level runtime configuration file structure."""

    model_config = ConfigDict(extra="forbid")

    transport: str = Field(default="httpx", description="Registered transport name")
    transport_options: TransportConfig = Field(
        default_factory=TransportConfig, description="Options passed to configure()"
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Configured headers sent with every request (supports ${ENV_VAR} substitution)",
    )
