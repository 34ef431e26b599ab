"""Transport registry - Maps configuration names to transport factories.

Construction never fails: an unknown name, a missing or invalid config file,
or a factory that raises all fall back to NoOpTransport with a warning, so a
transport is always obtainable.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from api_dispatch.config_loader import ConfigError, load_runtime_config
from api_dispatch.models import RuntimeConfig, TransportConfig
from api_dispatch.transport.base import Transport
from api_dispatch.transport.httpx_transport import HttpxTransport
from api_dispatch.transport.noop import NoOpTransport

logger = logging.getLogger(__name__)

TransportFactory = Callable[[], Transport]

DEFAULT_TRANSPORT = "httpx"

_registry: dict[str, TransportFactory] = {
    "httpx": HttpxTransport,
    "noop": NoOpTransport,
}


def register_transport(name: str, factory: TransportFactory) -> None:
    """Register *factory* under *name*, replacing any previous entry."""
    _registry[name] = factory


def available_transports() -> list[str]:
    return sorted(_registry)


def create_transport(name: str, config: TransportConfig | None = None) -> Transport:
    """Instantiate and configure the transport registered as *name*."""
    factory = _registry.get(name)
    if factory is None:
        logger.warning(
            "unknown transport '%s' (available: %s), using no-op transport",
            name,
            ", ".join(available_transports()),
        )
        return NoOpTransport()

    try:
        transport = factory()
        transport.configure(config or TransportConfig())
    except Exception as e:
        logger.warning("failed to construct transport '%s': %s, using no-op transport", name, e)
        return NoOpTransport()
    return transport


def transport_from_config(config: RuntimeConfig | None) -> Transport:
    """Build the transport a loaded runtime config names.

    None selects the default transport with default options.
    """
    if config is None:
        return create_transport(DEFAULT_TRANSPORT)
    return create_transport(config.transport, config.transport_options)


def construct_transport(config_path: Path | None) -> Transport:
    """Build the transport named in the runtime config at *config_path*.

    None selects the default transport with default options. An unreadable
    or invalid config file falls back to NoOpTransport.
    """
    if config_path is None:
        return transport_from_config(None)

    try:
        config = load_runtime_config(config_path)
    except ConfigError as e:
        logger.warning("%s, using no-op transport", e)
        return NoOpTransport()

    return transport_from_config(config)
