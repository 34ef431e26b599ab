"""Invoker - Assembles, times and executes one request.

Any failure from the transport's execute hook is re-raised as a
CallFailedError carrying the elapsed time and target URI, with the original
exception as __cause__. Assembly errors propagate unchanged.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from api_dispatch.assembler import assemble
from api_dispatch.headers import HeaderSource
from api_dispatch.models import RequestDescriptor, ResponseCase
from api_dispatch.transport.base import Transport

logger = logging.getLogger(__name__)


class CallFailedError(Exception):
    """Raised when the network call fails.

    Attributes:
        elapsed_ms: Milliseconds between the start of the call and the failure.
        uri: Target URI of the failed call.
    """

    def __init__(self, message: str, elapsed_ms: int, uri: str) -> None:
        super().__init__(message)
        self.elapsed_ms = elapsed_ms
        self.uri = uri


def elapsed_millis(start_time: float) -> int:
    return int((time.perf_counter() - start_time) * 1000)


class Invoker:
    """Sends requests through one transport.

    Usage:
        with Invoker(HttpxTransport()) as invoker:
            response = invoker.invoke(request, {"Authorization": "Bearer x"})
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    @property
    def transport(self) -> Transport:
        return self._transport

    def __enter__(self) -> "Invoker":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._transport.close()

    def invoke(
        self,
        request: RequestDescriptor,
        header_source: HeaderSource = None,
    ) -> ResponseCase:
        """Execute *request* and return the normalized response.

        Raises:
            AssemblyError: If the request is structurally incomplete.
            CallFailedError: If the transport fails during the call.
        """
        normalized, entity = assemble(self._transport, request, header_source)
        start_time = time.perf_counter()
        try:
            response = self._transport.execute(normalized.method, entity, start_time)
        except Exception as e:
            elapsed_ms = elapsed_millis(start_time)
            uri = self._transport.current_target_uri()
            message = f"http call failed after {elapsed_ms} milliseconds for URL: {uri}"
            logger.error("%s, %s", e, message)
            raise CallFailedError(message, elapsed_ms, uri) from e

        logger.debug("response time in milliseconds: %s", response.elapsed_ms)
        return response
