"""Tests for api_dispatch.headers.resolve_configured_headers."""

import logging
from dataclasses import dataclass
from types import SimpleNamespace

from pydantic import BaseModel

from api_dispatch.headers import resolve_configured_headers


class _AuthHeaders(BaseModel):
    Authorization: str


@dataclass
class _TraceHeaders:
    trace_id: str


class _Provider:
    def __init__(self, result):
        self.result = result
        self.calls = 0

    def evaluate(self):
        self.calls += 1
        return self.result


class TestSourceKinds:
    def test_none_is_not_configured(self):
        assert resolve_configured_headers(None) is None

    def test_mapping_source_is_used_as_is(self):
        assert resolve_configured_headers({"X-Key": "abc"}) == {"X-Key": "abc"}

    def test_mapping_source_is_copied(self):
        source = {"X-Key": "abc"}
        result = resolve_configured_headers(source)
        result["X-Other"] = "1"
        assert source == {"X-Key": "abc"}

    def test_unsupported_source_returns_none(self):
        assert resolve_configured_headers(42) is None
        assert resolve_configured_headers("Authorization: x") is None


class TestCallableSource:
    def test_callable_returning_mapping(self):
        assert resolve_configured_headers(lambda: {"A": "1"}) == {"A": "1"}

    def test_callable_returning_pydantic_model(self):
        result = resolve_configured_headers(lambda: _AuthHeaders(Authorization="Bearer t"))
        assert result == {"Authorization": "Bearer t"}

    def test_callable_returning_dataclass(self):
        assert resolve_configured_headers(lambda: _TraceHeaders("t-1")) == {"trace_id": "t-1"}

    def test_callable_returning_namespace(self):
        result = resolve_configured_headers(lambda: SimpleNamespace(Accept="text/plain"))
        assert result == {"Accept": "text/plain"}

    def test_callable_returning_scalar_is_not_configured(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="api_dispatch.headers"):
            assert resolve_configured_headers(lambda: "not headers") is None
        assert "returned" in caplog.text

    def test_callable_returning_list_is_not_configured(self):
        assert resolve_configured_headers(lambda: [("A", "1")]) is None

    def test_callable_returning_none_is_not_configured(self):
        assert resolve_configured_headers(lambda: None) is None

    def test_callable_that_raises_is_not_configured(self, caplog):
        def broken():
            raise RuntimeError("script error")

        with caplog.at_level(logging.WARNING, logger="api_dispatch.headers"):
            assert resolve_configured_headers(broken) is None
        assert "script error" in caplog.text


class TestProviderSource:
    def test_evaluate_is_called_once(self):
        provider = _Provider({"X-Req": "7"})
        assert resolve_configured_headers(provider) == {"X-Req": "7"}
        assert provider.calls == 1

    def test_provider_with_unusable_result(self):
        assert resolve_configured_headers(_Provider(3.14)) is None
