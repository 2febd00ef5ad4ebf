"""Unit tests for the in-memory client and backend selection."""

import pytest
from pydantic import SecretStr

from tardis.config.models import ConfCenterConfig, ConfCenterDescriptor
from tardis.config.remote import (
    ConfCenterClient,
    InMemoryConfCenterClient,
    NacosClient,
    content_fingerprint,
    create_conf_center_client,
    register_conf_center,
    supported_kinds,
)
from tardis.errors import FormatError, UnauthorizedError


@pytest.fixture
def descriptor() -> ConfCenterDescriptor:
    return ConfCenterDescriptor(data_id="app-default", kind="inmemory")


class TestInMemoryConfCenterClient:
    """Tests for InMemoryConfCenterClient."""

    @pytest.mark.asyncio
    async def test_publish_fetch_delete(self, descriptor: ConfCenterDescriptor) -> None:
        client = InMemoryConfCenterClient()
        assert await client.fetch_document(descriptor) is None

        assert await client.publish_document(descriptor, "a = 1") is True
        document = await client.fetch_document(descriptor)
        assert document is not None
        assert document.content == "a = 1"
        assert await client.fetch_fingerprint(descriptor) == content_fingerprint("a = 1")

        assert await client.delete_document(descriptor) is True
        assert await client.delete_document(descriptor) is False
        assert await client.fetch_fingerprint(descriptor) is None

    @pytest.mark.asyncio
    async def test_fingerprint_changes_with_content(
        self, descriptor: ConfCenterDescriptor
    ) -> None:
        client = InMemoryConfCenterClient()
        await client.publish_document(descriptor, "a = 1")
        first = await client.fetch_fingerprint(descriptor)
        await client.publish_document(descriptor, "a = 1")
        assert await client.fetch_fingerprint(descriptor) == first
        await client.publish_document(descriptor, "a = 2")
        assert await client.fetch_fingerprint(descriptor) != first

    @pytest.mark.asyncio
    async def test_groups_are_separate(self) -> None:
        client = InMemoryConfCenterClient()
        await client.publish_document(ConfCenterDescriptor(data_id="d", group="g1"), "a = 1")
        assert await client.fetch_document(ConfCenterDescriptor(data_id="d", group="g2")) is None

    @pytest.mark.asyncio
    async def test_authentication(self) -> None:
        client = InMemoryConfCenterClient(username="nacos", password="nacos")
        session = await client.authenticate("nacos", "nacos")
        assert session.access_token
        with pytest.raises(UnauthorizedError):
            await client.authenticate("nacos", "bad")

    @pytest.mark.asyncio
    async def test_clients_for_same_url_share_documents(
        self, descriptor: ConfCenterDescriptor
    ) -> None:
        config = ConfCenterConfig(kind="inmemory", url="mem://shared")
        writer = InMemoryConfCenterClient.from_config(config)
        reader = InMemoryConfCenterClient.from_config(config)
        other = InMemoryConfCenterClient.from_config(config.model_copy(update={"url": "mem://x"}))

        await writer.publish_document(descriptor, "a = 1")
        assert await reader.fetch_document(descriptor) is not None
        assert await other.fetch_document(descriptor) is None


class TestCreateConfCenterClient:
    """Tests for backend selection by kind."""

    def test_nacos(self) -> None:
        client = create_conf_center_client(ConfCenterConfig(kind="Nacos", url="http://n/nacos"))
        assert isinstance(client, NacosClient)

    def test_inmemory(self) -> None:
        client = create_conf_center_client(
            ConfCenterConfig(kind="inmemory", password=SecretStr("x"))
        )
        assert isinstance(client, InMemoryConfCenterClient)

    def test_unknown_kind_raises(self) -> None:
        with pytest.raises(FormatError, match="nacos"):
            create_conf_center_client(ConfCenterConfig(kind="apollo"))

    def test_register_backend(self) -> None:
        created: list[ConfCenterConfig] = []

        def factory(config: ConfCenterConfig) -> ConfCenterClient:
            created.append(config)
            return InMemoryConfCenterClient()

        register_conf_center("custom-test", factory)
        assert "custom-test" in supported_kinds()
        client = create_conf_center_client(ConfCenterConfig(kind="custom-test"))
        assert isinstance(client, InMemoryConfCenterClient)
        assert len(created) == 1
