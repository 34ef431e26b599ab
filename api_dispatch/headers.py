"""Header Resolver - Evaluates the configured (default) headers source.

A header source is one of:
    None                      nothing configured
    object with evaluate()    dynamic provider (e.g. a script function wrapper)
    zero-argument callable    dynamic provider
    Mapping                   static headers

Evaluation never fails the request. A source or result that does not yield a
mapping is reported at DEBUG level and treated as "no configured headers".
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from types import SimpleNamespace
from typing import Any, Callable, Protocol, Union, runtime_checkable

from pydantic import BaseModel

logger = logging.getLogger(__name__)


@runtime_checkable
class HeaderProvider(Protocol):
    """Anything that can produce a header mapping on demand."""

    def evaluate(self) -> Any: ...


HeaderSource = Union[None, HeaderProvider, Callable[[], Any], Mapping[str, Any]]


def _structured_to_mapping(result: Any) -> dict[str, Any] | None:
    """Return the field mapping of a structured object, or None."""
    if isinstance(result, Mapping):
        return dict(result)
    if isinstance(result, BaseModel):
        return result.model_dump()
    if dataclasses.is_dataclass(result) and not isinstance(result, type):
        return {f.name: getattr(result, f.name) for f in dataclasses.fields(result)}
    if isinstance(result, SimpleNamespace):
        return dict(vars(result))
    return None


def resolve_configured_headers(source: HeaderSource) -> dict[str, Any] | None:
    """Evaluate *source* into a header name → value mapping.

    Returns:
        The resolved headers, or None when nothing usable is configured.
    """
    if source is None:
        return None

    if isinstance(source, Mapping):
        return dict(source)

    if isinstance(source, HeaderProvider):
        evaluate = source.evaluate
    elif callable(source):
        evaluate = source
    else:
        logger.debug("configured headers is not a mapping or callable: %r", source)
        return None

    try:
        result = evaluate()
    except Exception:
        logger.warning("configured headers function failed, sending no configured headers", exc_info=True)
        return None

    headers = _structured_to_mapping(result)
    if headers is None:
        logger.debug("configured headers function returned: %r", result)
    return headers
