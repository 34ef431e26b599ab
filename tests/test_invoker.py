"""Tests for api_dispatch.invoker.Invoker.

Tests cover:
- Successful calls return the transport's response
- Transport failures wrapped in CallFailedError with timing and URI
- Assembly errors propagate unchanged and no call is made
"""

import logging
import re

import httpx
import pytest

from api_dispatch.assembler import MissingBodyError, MissingFieldError
from api_dispatch.invoker import CallFailedError, Invoker
from api_dispatch.models import RequestDescriptor
from tests.conftest import RecordingTransport


class TestInvokeSuccess:
    def test_returns_response(self, transport, get_request):
        response = Invoker(transport).invoke(get_request)
        assert response.status_code == 200
        assert response.elapsed_ms >= 0

    def test_execute_receives_normalized_method_and_entity(self, transport):
        request = RequestDescriptor(method="post", url="http://x/api", body={"a": 1})
        Invoker(transport).invoke(request)
        name, (method, entity, start_time) = transport.calls[-1]
        assert name == "execute"
        assert method == "POST"
        assert entity.content == '{"a":1}'
        assert isinstance(start_time, float)

    def test_configured_headers_applied(self, transport, get_request):
        Invoker(transport).invoke(get_request, {"X-Key": "k"})
        assert transport.header_values("X-Key") == ["k"]

    def test_response_time_logged(self, transport, get_request, caplog):
        with caplog.at_level(logging.DEBUG, logger="api_dispatch.invoker"):
            Invoker(transport).invoke(get_request)
        assert "response time in milliseconds" in caplog.text


class TestCallFailure:
    def test_failure_wrapped_with_timing_and_uri(self):
        cause = httpx.ConnectError("connection refused")
        transport = RecordingTransport(fail_with=cause)
        request = RequestDescriptor(method="GET", url="http://x/api", paths=["items"])

        with pytest.raises(CallFailedError) as exc_info:
            Invoker(transport).invoke(request)

        error = exc_info.value
        match = re.search(r"after (\d+) milliseconds for URL: (\S+)", str(error))
        assert match is not None
        assert int(match.group(1)) >= 0
        assert match.group(2) == "http://x/api/items"
        assert error.uri == "http://x/api/items"
        assert error.elapsed_ms >= 0
        assert error.__cause__ is cause

    def test_elapsed_time_covers_the_call(self):
        transport = RecordingTransport(fail_with=RuntimeError("boom"), delay=0.02)
        with pytest.raises(CallFailedError) as exc_info:
            Invoker(transport).invoke(RequestDescriptor(method="GET", url="http://x"))
        assert exc_info.value.elapsed_ms >= 20

    def test_failure_logged_with_cause(self, caplog):
        transport = RecordingTransport(fail_with=RuntimeError("socket closed"))
        with caplog.at_level(logging.ERROR, logger="api_dispatch.invoker"):
            with pytest.raises(CallFailedError):
                Invoker(transport).invoke(RequestDescriptor(method="GET", url="http://x"))
        assert "socket closed" in caplog.text
        assert "http call failed after" in caplog.text


class TestAssemblyErrorsPropagate:
    def test_missing_url_not_wrapped(self, transport):
        with pytest.raises(MissingFieldError):
            Invoker(transport).invoke(RequestDescriptor(method="GET"))
        assert "execute" not in transport.hook_names()

    def test_missing_body_not_wrapped(self, transport):
        with pytest.raises(MissingBodyError):
            Invoker(transport).invoke(RequestDescriptor(method="POST", url="http://x"))
        assert "execute" not in transport.hook_names()


class TestLifecycle:
    def test_context_manager_closes_transport(self, transport, get_request):
        with Invoker(transport) as invoker:
            invoker.invoke(get_request)
        assert transport.closed
