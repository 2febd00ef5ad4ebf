"""ConfCenterClient abstract interface and shared types."""

import hashlib
from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from tardis.config.models import ConfCenterDescriptor, DocumentFormat


def content_fingerprint(content: str) -> str:
    """MD5 hex digest of document content."""
    return hashlib.md5(content.encode("utf-8")).hexdigest()


class ConfCenterSession(BaseModel):
    """An authenticated session with a configuration center."""

    access_token: str | None = Field(default=None, description="Token sent with each call")
    expires_at: float | None = Field(
        default=None,
        description="time.monotonic() deadline after which the token is refreshed",
    )


class RemoteDocument(BaseModel):
    """Latest published content of a remote document."""

    content: str = Field(..., description="Serialized document")
    fingerprint: str = Field(..., description="Content hash reported by the backend")


class ConfCenterClient(ABC):
    """Abstract interface for a remote configuration center.

    Fetch operations return None when the document has never been
    published; only transport failures and rejected credentials raise.
    """

    @property
    @abstractmethod
    def kind(self) -> str:
        """Backend kind this client talks to."""
        pass

    @abstractmethod
    async def authenticate(self, username: str, password: str) -> ConfCenterSession:
        """Establish a session.

        Raises:
            UnauthorizedError: If the credentials are rejected
        """
        pass

    @abstractmethod
    async def fetch_document(self, descriptor: ConfCenterDescriptor) -> RemoteDocument | None:
        """Fetch the latest content and fingerprint of a document."""
        pass

    @abstractmethod
    async def fetch_fingerprint(self, descriptor: ConfCenterDescriptor) -> str | None:
        """Fetch only the fingerprint of a document."""
        pass

    @abstractmethod
    async def publish_document(
        self,
        descriptor: ConfCenterDescriptor,
        content: str,
        format: DocumentFormat = "toml",
    ) -> bool:
        """Create or replace a document. Management path only."""
        pass

    @abstractmethod
    async def delete_document(self, descriptor: ConfCenterDescriptor) -> bool:
        """Delete a document. Management path only."""
        pass

    async def close(self) -> None:
        """Release transport resources."""
        return None

    async def __aenter__(self) -> "ConfCenterClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
