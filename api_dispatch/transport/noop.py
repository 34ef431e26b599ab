"""No-op transport used when no real transport can be constructed."""

from __future__ import annotations

import time
from typing import Any

from api_dispatch.models import (
    MultiPartItem,
    RequestEntity,
    ResponseCase,
    TransportConfig,
)
from api_dispatch.transport.base import Transport


class NoOpTransport(Transport):
    """Accepts every hook call and performs no I/O.

    execute() returns a ResponseCase with status_code 0 and no body.
    """

    def __init__(self) -> None:
        self._url = ""

    def configure(self, config: TransportConfig) -> None:
        pass

    def set_base_url(self, url: str) -> None:
        self._url = url

    def add_path_segment(self, segment: str) -> None:
        pass

    def add_query_param(self, name: str, *values: Any) -> None:
        pass

    def add_header(self, name: str, value: Any | None) -> None:
        pass

    def add_cookie(self, name: str, value: str) -> None:
        pass

    def build_multipart_entity(self, items: list[MultiPartItem]) -> Any:
        return items

    def build_form_entity(self, fields: dict[str, list[str]]) -> Any:
        return fields

    def build_body_entity(self, content: Any, media_type: str) -> RequestEntity:
        return RequestEntity(content=content, media_type=media_type)

    def execute(
        self,
        method: str,
        entity: RequestEntity | None,
        start_time: float,
    ) -> ResponseCase:
        return ResponseCase(
            status_code=0,
            elapsed_ms=(time.perf_counter() - start_time) * 1000,
        )

    def current_target_uri(self) -> str:
        return self._url
