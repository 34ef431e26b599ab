"""Transport - The hook interface the assembler and invoker drive.

A transport accumulates one request at a time through the build hooks, then
performs the network exchange in execute(). set_base_url() starts a new
request, so one transport instance can serve many sequential calls but must
not be shared by concurrent ones.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from api_dispatch.models import (
    MultiPartItem,
    RequestEntity,
    ResponseCase,
    TransportConfig,
)


class TransportError(Exception):
    """Raised by a transport when a request cannot be built or sent."""


class Transport(ABC):
    """Base class for transports.

    Usage:
        transport = HttpxTransport()
        transport.configure(TransportConfig(timeout=10))
        try:
            response = Invoker(transport).invoke(request, headers)
        finally:
            transport.close()
    """

    @abstractmethod
    def configure(self, config: TransportConfig) -> None:
        """Apply connection options before first use."""

    @abstractmethod
    def set_base_url(self, url: str) -> None:
        """Start a new request against *url*."""

    @abstractmethod
    def add_path_segment(self, segment: str) -> None: ...

    @abstractmethod
    def add_query_param(self, name: str, *values: Any) -> None: ...

    @abstractmethod
    def add_header(self, name: str, value: Any | None) -> None:
        """Append a header value. A None value removes every value under *name*."""

    @abstractmethod
    def add_cookie(self, name: str, value: str) -> None: ...

    @abstractmethod
    def build_multipart_entity(self, items: list[MultiPartItem]) -> Any: ...

    @abstractmethod
    def build_form_entity(self, fields: dict[str, list[str]]) -> Any: ...

    @abstractmethod
    def build_body_entity(self, content: Any, media_type: str) -> RequestEntity:
        """Wrap serialized content (or a multipart/form payload) as the request entity."""

    @abstractmethod
    def execute(
        self,
        method: str,
        entity: RequestEntity | None,
        start_time: float,
    ) -> ResponseCase:
        """Send the accumulated request.

        Args:
            method: Upper-case HTTP method.
            entity: Request body, or None for body-less methods.
            start_time: time.perf_counter() value taken just before the call,
                used to compute ResponseCase.elapsed_ms.
        """

    @abstractmethod
    def current_target_uri(self) -> str:
        """The URI of the request being built or sent, for error messages."""

    def close(self) -> None:
        """Release connections. The default has nothing to release."""

    def __enter__(self) -> "Transport":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
