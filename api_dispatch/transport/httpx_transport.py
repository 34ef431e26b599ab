"""httpx-backed transport.

Builds one request at a time from the hook calls and sends it with an
httpx.Client. Responses are normalized into ResponseCase objects:
    JSON          -> parsed value
    XML           -> dict via xml_to_dict
    text/*        -> str
    anything else -> base64
"""

from __future__ import annotations

import base64
import io
import ssl
import time
import xml.etree.ElementTree as ET
from typing import Any

import httpx
from urllib3 import encode_multipart_formdata
from urllib3.fields import RequestField

from api_dispatch.entity import APPLICATION_FORM_URLENCODED
from api_dispatch.models import (
    MultiPartItem,
    RequestEntity,
    ResponseCase,
    TransportConfig,
)
from api_dispatch.transport.base import Transport, TransportError
from api_dispatch.xml_body import xml_to_dict


def _sanitize_header_value(value: str) -> str:
    """Replace non-ASCII characters with '?'.

    HTTP header values must be ASCII per RFC 7230. Values computed by test
    scripts can contain anything, so they are made sendable here instead of
    failing inside httpx.
    """
    return value.encode("ascii", errors="replace").decode("ascii")


def _to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _part_bytes(value: Any) -> bytes:
    if value is None:
        return b""
    if isinstance(value, io.IOBase):
        value = value.read()
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    return str(value).encode("utf-8")


class HttpxTransport(Transport):
    """Transport sending requests with httpx.

    Usage:
        transport = HttpxTransport()
        transport.configure(TransportConfig(timeout=5.0))

    A pre-built client can be injected (e.g. one using httpx.MockTransport);
    it is then owned by the caller and not closed by close().
    """

    def __init__(self, client: httpx.Client | None = None) -> None:
        self._client = client
        self._owns_client = client is None
        self._config = TransportConfig()
        self._url: str | None = None
        self._params: list[tuple[str, str]] = []
        self._headers: list[tuple[str, str]] = []
        self._cookies: dict[str, str] = {}
        self._last_uri: str | None = None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configure(self, config: TransportConfig) -> None:
        self._config = config
        if self._owns_client:
            self.close()
            self._client = None

    @staticmethod
    def _build_client_kwargs(config: TransportConfig) -> dict[str, Any]:
        """Build kwargs for httpx.Client from a TransportConfig."""
        kwargs: dict[str, Any] = {"timeout": config.timeout}
        if config.proxy:
            kwargs["proxy"] = config.proxy
        if config.ca_bundle:
            kwargs["verify"] = ssl.create_default_context(cafile=config.ca_bundle)
        elif not config.verify_ssl:
            kwargs["verify"] = False
        return kwargs

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(**self._build_client_kwargs(self._config))
            self._owns_client = True
        return self._client

    def close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------
    # Request building hooks
    # ------------------------------------------------------------------

    def set_base_url(self, url: str) -> None:
        self._url = url
        self._params = []
        self._headers = []
        self._cookies = {}
        self._last_uri = None

    def _require_url(self) -> str:
        if self._url is None:
            raise TransportError("no request started, set_base_url() must be called first")
        return self._url

    def add_path_segment(self, segment: str) -> None:
        url = self._require_url()
        if not url.endswith("/"):
            url += "/"
        self._url = url + segment.lstrip("/")

    def add_query_param(self, name: str, *values: Any) -> None:
        self._require_url()
        for value in values:
            self._params.append((name, _to_str(value)))

    def add_header(self, name: str, value: Any | None) -> None:
        self._require_url()
        if value is None:
            lower = name.lower()
            self._headers = [(k, v) for k, v in self._headers if k.lower() != lower]
            return
        self._headers.append((name, _sanitize_header_value(_to_str(value))))

    def add_cookie(self, name: str, value: str) -> None:
        self._require_url()
        self._cookies[name] = value

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------

    def build_multipart_entity(self, items: list[MultiPartItem]) -> RequestEntity:
        """Encode parts as multipart/form-data.

        Parts with a content type, or with bytes/file values, carry a
        filename (the part name) so servers treat them as file uploads.
        """
        fields: list[RequestField] = []
        for item in items:
            is_file = item.content_type is not None or isinstance(
                item.value, (bytes, bytearray, memoryview, io.IOBase)
            )
            field = RequestField(
                name=item.name,
                data=_part_bytes(item.value),
                filename=item.name if is_file else None,
            )
            field.make_multipart(content_type=item.content_type)
            fields.append(field)
        content, content_type = encode_multipart_formdata(fields)
        return RequestEntity(content=content, media_type=content_type)

    def build_form_entity(self, fields: dict[str, list[str]]) -> RequestEntity:
        encoded = str(httpx.QueryParams(fields))
        return RequestEntity(content=encoded.encode("utf-8"), media_type=APPLICATION_FORM_URLENCODED)

    def build_body_entity(self, content: Any, media_type: str) -> RequestEntity:
        if isinstance(content, RequestEntity):
            # Prepared multipart/form payload: keep the boundary if the
            # requested media type does not name one.
            if media_type.startswith("multipart/") and "boundary=" not in media_type:
                _, sep, boundary = content.media_type.partition("boundary=")
                if sep:
                    media_type = f"{media_type}; boundary={boundary}"
            return RequestEntity(content=content.content, media_type=media_type)
        if isinstance(content, (bytearray, memoryview)):
            content = bytes(content)
        return RequestEntity(content=content, media_type=media_type)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def current_target_uri(self) -> str:
        return self._last_uri or self._url or ""

    def execute(
        self,
        method: str,
        entity: RequestEntity | None,
        start_time: float,
    ) -> ResponseCase:
        url = self._require_url()
        client = self._get_client()

        headers = list(self._headers)
        if entity is not None:
            headers = [(k, v) for k, v in headers if k.lower() != "content-type"]
            headers.append(("Content-Type", entity.media_type))
        if self._cookies:
            headers.append(("Cookie", "; ".join(f"{k}={v}" for k, v in self._cookies.items())))

        # Each request starts from an empty cookie jar.
        client.cookies.clear()

        try:
            http_request = client.build_request(
                method,
                url,
                params=self._params if self._params else None,
                headers=headers if headers else None,
                content=entity.content if entity is not None else None,
            )
            self._last_uri = str(http_request.url)
            http_response = client.send(http_request)
            elapsed_ms = (time.perf_counter() - start_time) * 1000
        except httpx.TimeoutException as e:
            raise TransportError(f"request timeout: {e}") from e
        except httpx.ConnectError as e:
            raise TransportError(f"connection error: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"request error: {e}") from e
        except httpx.InvalidURL as e:
            raise TransportError(f"invalid url: {e}") from e
        except UnicodeEncodeError as e:
            raise TransportError(
                f"encoding error: non-ASCII characters in request "
                f"(header key, query param, or path). Character: {e.object[e.start:e.end]!r} "
                f"at position {e.start}. HTTP requires ASCII for these fields."
            ) from e

        return convert_response(http_response, elapsed_ms)


def convert_response(response: httpx.Response, elapsed_ms: float) -> ResponseCase:
    """Convert an httpx Response to a ResponseCase."""
    headers: dict[str, list[str]] = {}
    for key, value in response.headers.multi_items():
        headers.setdefault(key.lower(), []).append(value)

    body: Any = None
    body_base64: str | None = None
    content_type = response.headers.get("content-type", "").lower()

    # XML must be checked before text/* because text/xml is valid.
    if response.content:
        if "json" in content_type:
            try:
                body = response.json()
            except ValueError:
                body_base64 = base64.b64encode(response.content).decode("ascii")
        elif "xml" in content_type:
            try:
                body = xml_to_dict(response.content)
            except ET.ParseError:
                body_base64 = base64.b64encode(response.content).decode("ascii")
        elif content_type.startswith("text/"):
            body = response.text
        else:
            body_base64 = base64.b64encode(response.content).decode("ascii")

    return ResponseCase(
        status_code=response.status_code,
        headers=headers,
        body=body,
        body_base64=body_base64,
        content=response.content,
        elapsed_ms=elapsed_ms,
        http_version=response.http_version,
    )
