"""Unit tests for configuration models."""

import pytest
from pydantic import SecretStr, ValidationError

from tardis.config.models import (
    ConfCenterConfig,
    ConfCenterDescriptor,
    FrameworkConfig,
    ResolvedConfig,
)


class TestFrameworkConfig:
    """Tests for FrameworkConfig model."""

    def test_defaults(self) -> None:
        """An empty fw branch yields all defaults."""
        fw = FrameworkConfig.model_validate({})
        assert fw.app.id == ""
        assert fw.web_server.port == 8080
        assert fw.conf_center is None
        assert fw.adv.salt == ""
        assert fw.log.level == "INFO"

    def test_unknown_keys_ignored(self) -> None:
        fw = FrameworkConfig.model_validate({"app": {"id": "a", "unknown": 1}, "extra": {}})
        assert fw.app.id == "a"

    def test_string_values_coerced(self) -> None:
        """Values coming from environment variables are strings."""
        fw = FrameworkConfig.model_validate(
            {"web_server": {"port": "9090", "enabled": "false"}}
        )
        assert fw.web_server.port == 9090
        assert fw.web_server.enabled is False

    def test_invalid_port_rejected(self) -> None:
        with pytest.raises(ValidationError):
            FrameworkConfig.model_validate({"web_server": {"port": "abc"}})


class TestConfCenterConfig:
    """Tests for ConfCenterConfig model."""

    def test_defaults(self) -> None:
        conf = ConfCenterConfig()
        assert conf.kind == "nacos"
        assert conf.group == "DEFAULT_GROUP"
        assert conf.format == "toml"
        assert conf.poll_interval_secs == 30.0

    def test_password_hidden_in_dump(self) -> None:
        conf = ConfCenterConfig(password=SecretStr("nacos"))
        assert "nacos" not in conf.model_dump_json()
        assert conf.password.get_secret_value() == "nacos"

    def test_interval_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ConfCenterConfig(poll_interval_secs=0)


class TestImmutability:
    """Descriptors and snapshots are frozen."""

    def test_descriptor_frozen(self) -> None:
        descriptor = ConfCenterDescriptor(data_id="app-default")
        with pytest.raises(ValidationError):
            descriptor.data_id = "other"  # type: ignore[misc]

    def test_resolved_config_frozen(self) -> None:
        resolved = ResolvedConfig()
        with pytest.raises(ValidationError):
            resolved.framework = FrameworkConfig()  # type: ignore[misc]
