"""Pytest configuration and fixtures for api-dispatch tests.

This file provides:
- RecordingTransport: a fake transport that records every hook call
- Fixtures: recording transport, sample requests
"""

from __future__ import annotations

import time
from typing import Any

import pytest

from api_dispatch.models import (
    MultiPartItem,
    RequestDescriptor,
    RequestEntity,
    ResponseCase,
    TransportConfig,
)
from api_dispatch.transport.base import Transport


class RecordingTransport(Transport):
    """Transport that records hook calls instead of doing I/O.

    calls holds (hook_name, args) tuples in call order. headers mirrors what
    would be sent: a None value clears the name, case-insensitively.

    Set fail_with to make execute() raise that exception.
    """

    def __init__(self, fail_with: Exception | None = None, delay: float = 0.0) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.headers: list[tuple[str, str]] = []
        self.url: str | None = None
        self.fail_with = fail_with
        self.delay = delay
        self.config: TransportConfig | None = None
        self.closed = False

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))

    def hook_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def header_values(self, name: str) -> list[str]:
        return [v for k, v in self.headers if k.lower() == name.lower()]

    def configure(self, config: TransportConfig) -> None:
        self._record("configure", config)
        self.config = config

    def set_base_url(self, url: str) -> None:
        self._record("set_base_url", url)
        self.url = url

    def add_path_segment(self, segment: str) -> None:
        self._record("add_path_segment", segment)
        self.url = f"{self.url.rstrip('/')}/{segment}"

    def add_query_param(self, name: str, *values: Any) -> None:
        self._record("add_query_param", name, *values)

    def add_header(self, name: str, value: Any | None) -> None:
        self._record("add_header", name, value)
        if value is None:
            self.headers = [(k, v) for k, v in self.headers if k.lower() != name.lower()]
        else:
            self.headers.append((name, value))

    def add_cookie(self, name: str, value: str) -> None:
        self._record("add_cookie", name, value)

    def build_multipart_entity(self, items: list[MultiPartItem]) -> Any:
        self._record("build_multipart_entity", items)
        return {"multipart": [item.name for item in items]}

    def build_form_entity(self, fields: dict[str, list[str]]) -> Any:
        self._record("build_form_entity", fields)
        return {"form": fields}

    def build_body_entity(self, content: Any, media_type: str) -> RequestEntity:
        self._record("build_body_entity", content, media_type)
        return RequestEntity(content=content, media_type=media_type)

    def execute(
        self,
        method: str,
        entity: RequestEntity | None,
        start_time: float,
    ) -> ResponseCase:
        self._record("execute", method, entity, start_time)
        if self.delay:
            time.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        return ResponseCase(
            status_code=200,
            elapsed_ms=(time.perf_counter() - start_time) * 1000,
        )

    def current_target_uri(self) -> str:
        return self.url or ""

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def get_request() -> RequestDescriptor:
    return RequestDescriptor(method="GET", url="http://x/api")
