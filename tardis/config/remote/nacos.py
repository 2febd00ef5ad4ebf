"""Nacos configuration center client.

Talks to the Nacos v1 open API:

    POST   {url}/v1/auth/login      username, password -> accessToken
    GET    {url}/v1/cs/configs      dataId, group, tenant -> content
    GET    {url}/v1/cs/configs      ... show=all -> JSON with md5
    POST   {url}/v1/cs/configs      dataId, group, content, type -> "true"
    DELETE {url}/v1/cs/configs      dataId, group, tenant -> "true"

Usage:
    async with NacosClient("http://127.0.0.1:8848/nacos", "nacos", "nacos") as client:
        doc = await client.fetch_document(descriptor)
"""

import time
from typing import Any

import httpx
import structlog

from tardis.config.models import ConfCenterConfig, ConfCenterDescriptor, DocumentFormat
from tardis.config.remote.base import (
    ConfCenterClient,
    ConfCenterSession,
    RemoteDocument,
    content_fingerprint,
)
from tardis.errors import FormatError, TardisIOError, TardisTimeoutError, UnauthorizedError
from tardis.observability.metrics import CONF_CENTER_REQUESTS

logger = structlog.get_logger(__name__)

LOGIN_PATH = "/v1/auth/login"
CONFIGS_PATH = "/v1/cs/configs"

# Refresh the token this many seconds before Nacos expires it
TOKEN_REFRESH_MARGIN_SECS = 30.0


class NacosClient(ConfCenterClient):
    """Async client for a Nacos server.

    Attributes:
        base_url: Nacos base URL including the context path, e.g.
            http://127.0.0.1:8848/nacos
    """

    def __init__(
        self,
        base_url: str,
        username: str = "",
        password: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Nacos base URL
            username: Login user (empty = server has auth disabled)
            password: Login password
            timeout: Timeout applied to every request in seconds
            transport: Optional httpx transport, used by tests
        """
        self.base_url = base_url.rstrip("/")
        self._username = username
        self._password = password
        self._session: ConfCenterSession | None = None
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: ConfCenterConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "NacosClient":
        """Create a client from the ``fw.conf_center`` section."""
        return cls(
            base_url=config.url,
            username=config.username,
            password=config.password.get_secret_value(),
            timeout=config.timeout_secs,
            transport=transport,
        )

    @property
    def kind(self) -> str:
        return "nacos"

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _send(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a request, mapping transport failures to TardisIOError."""
        try:
            response = await self._client.request(method, path, params=params, data=data)
        except httpx.TimeoutException as e:
            CONF_CENTER_REQUESTS.labels(kind=self.kind, operation=operation, status="timeout").inc()
            raise TardisTimeoutError(
                f"[Tardis.Config] Nacos {operation} timed out: {self.base_url}{path}"
            ) from e
        except httpx.HTTPError as e:
            CONF_CENTER_REQUESTS.labels(kind=self.kind, operation=operation, status="error").inc()
            raise TardisIOError(
                f"[Tardis.Config] Nacos {operation} failed: {self.base_url}{path}: {e}"
            ) from e

        CONF_CENTER_REQUESTS.labels(
            kind=self.kind, operation=operation, status=str(response.status_code)
        ).inc()
        return response

    def _raise_for_status(self, operation: str, response: httpx.Response) -> None:
        if response.status_code in (401, 403):
            # Token may have expired server-side; log in again on the next call
            self._session = None
        if not response.is_success:
            raise TardisIOError(
                f"[Tardis.Config] Nacos {operation} error {response.status_code}: "
                f"{response.text[:200]}"
            )

    async def authenticate(self, username: str, password: str) -> ConfCenterSession:
        """Log in and store the access token for subsequent calls."""
        response = await self._send(
            "login",
            "POST",
            LOGIN_PATH,
            data={"username": username, "password": password},
        )
        if response.status_code in (401, 403):
            raise UnauthorizedError(
                f"[Tardis.Config] Nacos rejected credentials for user [{username}]"
            )
        self._raise_for_status("login", response)

        try:
            body = response.json()
        except ValueError as e:
            raise FormatError(f"[Tardis.Config] Nacos login returned invalid JSON: {e}") from e

        token = body.get("accessToken")
        if not token:
            raise UnauthorizedError("[Tardis.Config] Nacos login returned no access token")

        ttl = body.get("tokenTtl")
        expires_at = (
            time.monotonic() + float(ttl) - TOKEN_REFRESH_MARGIN_SECS if ttl else None
        )
        self._username = username
        self._password = password
        self._session = ConfCenterSession(access_token=token, expires_at=expires_at)
        logger.info("nacos_authenticated", url=self.base_url, username=username)
        return self._session

    async def _auth_params(self) -> dict[str, str]:
        """Return the accessToken param, logging in first when needed."""
        if not self._username:
            return {}
        session = self._session
        if (
            session is None
            or session.access_token is None
            or (session.expires_at is not None and time.monotonic() >= session.expires_at)
        ):
            session = await self.authenticate(self._username, self._password)
        return {"accessToken": session.access_token} if session.access_token else {}

    def _document_params(self, descriptor: ConfCenterDescriptor) -> dict[str, str]:
        params = {"dataId": descriptor.data_id, "group": descriptor.group}
        if descriptor.namespace:
            params["tenant"] = descriptor.namespace
        return params

    async def fetch_document(self, descriptor: ConfCenterDescriptor) -> RemoteDocument | None:
        """Fetch a document; None when it has never been published."""
        params = {**self._document_params(descriptor), **await self._auth_params()}
        logger.debug("nacos_fetch_document", data_id=descriptor.data_id, group=descriptor.group)
        response = await self._send("fetch_document", "GET", CONFIGS_PATH, params=params)
        if response.status_code == 404:
            logger.warning(
                "nacos_document_not_found",
                data_id=descriptor.data_id,
                group=descriptor.group,
            )
            return None
        self._raise_for_status("fetch_document", response)

        content = response.text
        fingerprint = response.headers.get("Content-MD5") or content_fingerprint(content)
        return RemoteDocument(content=content, fingerprint=fingerprint)

    async def fetch_fingerprint(self, descriptor: ConfCenterDescriptor) -> str | None:
        """Fetch the MD5 of a document; None when it has never been published."""
        params = {
            **self._document_params(descriptor),
            "show": "all",
            **await self._auth_params(),
        }
        response = await self._send("fetch_fingerprint", "GET", CONFIGS_PATH, params=params)
        if response.status_code == 404:
            return None
        self._raise_for_status("fetch_fingerprint", response)

        # Nacos answers show=all for an unpublished document with an empty 200
        if not response.text.strip():
            return None
        try:
            body = response.json()
        except ValueError as e:
            raise FormatError(
                f"[Tardis.Config] Nacos returned invalid detail for {descriptor.data_id}: {e}"
            ) from e
        if not body:
            return None

        md5 = body.get("md5")
        if md5:
            return str(md5)
        return content_fingerprint(body.get("content") or "")

    async def publish_document(
        self,
        descriptor: ConfCenterDescriptor,
        content: str,
        format: DocumentFormat = "toml",
    ) -> bool:
        """Create or replace a document."""
        data: dict[str, Any] = {
            **self._document_params(descriptor),
            "content": content,
            "type": format,
        }
        response = await self._send(
            "publish_document",
            "POST",
            CONFIGS_PATH,
            params=await self._auth_params(),
            data=data,
        )
        self._raise_for_status("publish_document", response)
        published = response.text.strip().lower() == "true"
        logger.info("nacos_document_published", data_id=descriptor.data_id, result=published)
        return published

    async def delete_document(self, descriptor: ConfCenterDescriptor) -> bool:
        """Delete a document."""
        params = {**self._document_params(descriptor), **await self._auth_params()}
        response = await self._send("delete_document", "DELETE", CONFIGS_PATH, params=params)
        self._raise_for_status("delete_document", response)
        deleted = response.text.strip().lower() == "true"
        logger.info("nacos_document_deleted", data_id=descriptor.data_id, result=deleted)
        return deleted
