"""In-memory implementation of ConfCenterClient."""

from typing import Any

from tardis.config.models import ConfCenterConfig, ConfCenterDescriptor, DocumentFormat
from tardis.config.remote.base import (
    ConfCenterClient,
    ConfCenterSession,
    RemoteDocument,
    content_fingerprint,
)
from tardis.errors import UnauthorizedError

DocumentKey = tuple[str | None, str, str]


class InMemoryConfCenterClient(ConfCenterClient):
    """In-memory configuration center for testing and development.

    Clients created through ``from_config`` share one document store per URL,
    so a document published by one client is visible to every other client
    pointed at the same URL.
    """

    _shared_stores: dict[str, dict[DocumentKey, str]] = {}

    def __init__(
        self,
        documents: dict[DocumentKey, str] | None = None,
        username: str = "",
        password: str = "",
    ) -> None:
        """Initialize storage.

        Args:
            documents: Backing store keyed by (namespace, group, data_id)
            username: Accepted user (empty = no authentication)
            password: Accepted password
        """
        self._documents: dict[DocumentKey, str] = documents if documents is not None else {}
        self._username = username
        self._password = password
        self._call_history: list[dict[str, Any]] = []

    @classmethod
    def from_config(cls, config: ConfCenterConfig) -> "InMemoryConfCenterClient":
        """Create a client bound to the shared store for ``config.url``."""
        store = cls._shared_stores.setdefault(config.url, {})
        return cls(
            documents=store,
            username=config.username,
            password=config.password.get_secret_value(),
        )

    @classmethod
    def reset_shared(cls) -> None:
        """Drop every shared store."""
        cls._shared_stores.clear()

    @property
    def kind(self) -> str:
        return "inmemory"

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """Return history of calls for testing assertions."""
        return self._call_history

    @staticmethod
    def _key(descriptor: ConfCenterDescriptor) -> DocumentKey:
        return (descriptor.namespace, descriptor.group, descriptor.data_id)

    async def authenticate(self, username: str, password: str) -> ConfCenterSession:
        self._call_history.append({"operation": "authenticate", "username": username})
        if self._username and (username, password) != (self._username, self._password):
            raise UnauthorizedError(f"[Tardis.Config] Invalid credentials for user [{username}]")
        return ConfCenterSession(access_token=f"inmemory-{username}")

    async def fetch_document(self, descriptor: ConfCenterDescriptor) -> RemoteDocument | None:
        self._call_history.append({"operation": "fetch_document", "data_id": descriptor.data_id})
        content = self._documents.get(self._key(descriptor))
        if content is None:
            return None
        return RemoteDocument(content=content, fingerprint=content_fingerprint(content))

    async def fetch_fingerprint(self, descriptor: ConfCenterDescriptor) -> str | None:
        self._call_history.append(
            {"operation": "fetch_fingerprint", "data_id": descriptor.data_id}
        )
        content = self._documents.get(self._key(descriptor))
        return content_fingerprint(content) if content is not None else None

    async def publish_document(
        self,
        descriptor: ConfCenterDescriptor,
        content: str,
        format: DocumentFormat = "toml",  # noqa: ARG002
    ) -> bool:
        self._call_history.append({"operation": "publish_document", "data_id": descriptor.data_id})
        self._documents[self._key(descriptor)] = content
        return True

    async def delete_document(self, descriptor: ConfCenterDescriptor) -> bool:
        self._call_history.append({"operation": "delete_document", "data_id": descriptor.data_id})
        return self._documents.pop(self._key(descriptor), None) is not None
