"""Request Assembler - Drives transport hooks to build one request.

Hook order is fixed: url, path segments, query params, explicit headers,
configured headers, cookies, then the body. Configured headers replace any
explicit header of the same name.
"""

from __future__ import annotations

import logging

from api_dispatch.entity import (
    APPLICATION_FORM_URLENCODED,
    MULTIPART_FORM_DATA,
    build_entity,
)
from api_dispatch.headers import HeaderSource, resolve_configured_headers
from api_dispatch.models import RequestDescriptor, RequestEntity
from api_dispatch.transport.base import Transport

logger = logging.getLogger(__name__)

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class AssemblyError(Exception):
    """Base class for structural request errors, raised before any I/O."""


class MissingFieldError(AssemblyError):
    """Raised when url or method is not set."""


class MissingBodyError(AssemblyError):
    """Raised when a POST/PUT/PATCH has no body, form fields or multipart items."""


def _fail(error: AssemblyError) -> AssemblyError:
    logger.error("%s", error)
    return error


def assemble(
    transport: Transport,
    request: RequestDescriptor,
    header_source: HeaderSource = None,
) -> tuple[RequestDescriptor, RequestEntity | None]:
    """Populate *transport* from *request* and build the body entity.

    Args:
        transport: Transport receiving the build hook calls.
        request: The request description. Not modified.
        header_source: Configured headers source, see resolve_configured_headers().

    Returns:
        Tuple of (normalized request with upper-case method, entity). The
        entity is None for methods that carry no body.

    Raises:
        MissingFieldError: If url or method is unset.
        MissingBodyError: If a body-bearing method has nothing to send.
    """
    if not request.url:
        raise _fail(MissingFieldError("url not set, a 'url' is required to make an http call"))
    transport.set_base_url(request.url)

    for segment in request.paths or []:
        transport.add_path_segment(segment)

    for name, values in (request.params or {}).items():
        transport.add_query_param(name, *values)

    for name, values in (request.headers or {}).items():
        for value in values:
            # None means "clear" to the transport; an explicit header never clears.
            if value is not None:
                transport.add_header(name, value)

    configured = resolve_configured_headers(header_source)
    if configured is not None:
        for name, value in configured.items():
            transport.add_header(name, None)
            transport.add_header(name, value)

    for name, value in (request.cookies or {}).items():
        transport.add_cookie(name, value)

    if not request.method:
        raise _fail(MissingFieldError("'method' is required to make an http call"))
    method = request.method.upper()
    normalized = request.model_copy(update={"method": method})

    if method not in BODY_METHODS:
        return normalized, None

    media_type = request.content_type
    if request.multi_part_items is not None:
        payload = transport.build_multipart_entity(request.multi_part_items)
        return normalized, transport.build_body_entity(payload, media_type or MULTIPART_FORM_DATA)

    if request.form_fields is not None:
        payload = transport.build_form_entity(request.form_fields)
        return normalized, transport.build_body_entity(payload, APPLICATION_FORM_URLENCODED)

    body = request.body
    if body is None or body.is_null:
        raise _fail(MissingBodyError(f"request body is required for a {method}, please set a 'body'"))
    entity = build_entity(body, media_type)
    return normalized, transport.build_body_entity(entity.content, entity.media_type)
