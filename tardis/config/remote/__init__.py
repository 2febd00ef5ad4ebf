"""Remote configuration center clients.

Backends are selected once, by the ``kind`` of the ``fw.conf_center``
section:

    from tardis.config.remote import create_conf_center_client

    client = create_conf_center_client(framework.conf_center)
"""

from collections.abc import Callable

from tardis.config.models import ConfCenterConfig
from tardis.config.remote.base import (
    ConfCenterClient,
    ConfCenterSession,
    RemoteDocument,
    content_fingerprint,
)
from tardis.config.remote.inmemory import InMemoryConfCenterClient
from tardis.config.remote.nacos import NacosClient
from tardis.errors import FormatError

ClientFactory = Callable[[ConfCenterConfig], ConfCenterClient]

_BACKENDS: dict[str, ClientFactory] = {
    "nacos": NacosClient.from_config,
    "inmemory": InMemoryConfCenterClient.from_config,
}


def register_conf_center(kind: str, factory: ClientFactory) -> None:
    """Register a backend factory under a kind name."""
    _BACKENDS[kind.lower()] = factory


def supported_kinds() -> list[str]:
    """Return the registered backend kinds."""
    return sorted(_BACKENDS)


def create_conf_center_client(config: ConfCenterConfig) -> ConfCenterClient:
    """Create the client for ``config.kind``.

    Raises:
        FormatError: If no backend is registered for the kind
    """
    factory = _BACKENDS.get(config.kind.lower())
    if factory is None:
        raise FormatError(
            f"[Tardis.Config] The kind of config center only supports "
            f"[{','.join(supported_kinds())}], got [{config.kind}]"
        )
    return factory(config)


__all__ = [
    "ClientFactory",
    "ConfCenterClient",
    "ConfCenterSession",
    "InMemoryConfCenterClient",
    "NacosClient",
    "RemoteDocument",
    "content_fingerprint",
    "create_conf_center_client",
    "register_conf_center",
    "supported_kinds",
]
