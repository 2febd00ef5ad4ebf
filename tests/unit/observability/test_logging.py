"""Tests for structured logging."""

import json
from io import StringIO

import pytest
import structlog

from tardis.observability.logging import (
    SecretRedactor,
    get_logger,
    setup_logging,
)


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_json_format(self) -> None:
        """Should configure JSON format for production."""
        setup_logging(level="INFO", format="json", redact_secrets=False)
        logger = get_logger("test")
        logger.info("test_message")

    def test_setup_console_format(self) -> None:
        """Should configure console format for development."""
        setup_logging(level="DEBUG", format="console", redact_secrets=False)
        logger = get_logger("test")
        logger.debug("test_message")

    def test_setup_with_redaction(self) -> None:
        setup_logging(level="INFO", format="json", redact_secrets=True)
        logger = get_logger("test")
        logger.info("test_message", password="nacos")


class TestSecretRedactor:
    """Tests for secret redaction."""

    @pytest.fixture
    def redactor(self) -> SecretRedactor:
        """Create a SecretRedactor instance."""
        return SecretRedactor()

    def test_redacts_password_by_key(self, redactor: SecretRedactor) -> None:
        event_dict = {"password": "secret123", "data": "ok"}
        result = redactor(None, None, event_dict)  # type: ignore
        assert result["password"] == "[REDACTED]"
        assert result["data"] == "ok"

    def test_redacts_salt_and_tokens(self, redactor: SecretRedactor) -> None:
        event_dict = {"salt": "ab8Ef3yDg7Kc2Pq9", "accessToken": "tok", "api_key": "k"}
        result = redactor(None, None, event_dict)  # type: ignore
        assert result == {
            "salt": "[REDACTED]",
            "accessToken": "[REDACTED]",
            "api_key": "[REDACTED]",
        }

    def test_redacts_url_credentials(self, redactor: SecretRedactor) -> None:
        """Credentials embedded in connection URLs are stripped."""
        event_dict = {"url": "postgres://user:pw@db.local:5432/app"}
        result = redactor(None, None, event_dict)  # type: ignore
        assert result["url"] == "postgres://[REDACTED]@db.local:5432/app"

    def test_keeps_urls_without_credentials(self, redactor: SecretRedactor) -> None:
        event_dict = {"url": "http://nacos.local:8848/nacos"}
        result = redactor(None, None, event_dict)  # type: ignore
        assert result["url"] == "http://nacos.local:8848/nacos"

    def test_handles_nested_dicts(self, redactor: SecretRedactor) -> None:
        """Framework dumps are nested several levels deep."""
        event_dict = {
            "fw": {
                "adv": {"salt": "ab8Ef3yDg7Kc2Pq9"},
                "cache": {"url": "redis://:pw@cache:6379/0"},
                "app": {"id": "a"},
            }
        }
        result = redactor(None, None, event_dict)  # type: ignore
        assert result["fw"]["adv"]["salt"] == "[REDACTED]"
        assert result["fw"]["cache"]["url"] == "redis://[REDACTED]@cache:6379/0"
        assert result["fw"]["app"] == {"id": "a"}

    def test_handles_lists(self, redactor: SecretRedactor) -> None:
        event_dict = {"hosts": ["amqp://guest:guest@mq:5672", {"token": "t"}, 3]}
        result = redactor(None, None, event_dict)  # type: ignore
        assert result["hosts"] == ["amqp://[REDACTED]@mq:5672", {"token": "[REDACTED]"}, 3]

    def test_preserves_plain_data(self, redactor: SecretRedactor) -> None:
        event_dict = {
            "event": "config_resolved",
            "profile": "test",
            "modules": ["", "m1"],
            "generation": 2,
        }
        result = redactor(None, None, event_dict)  # type: ignore
        assert result == event_dict


class TestJSONLogging:
    """Tests for JSON log output format."""

    def test_redacted_json_output(self) -> None:
        """Redaction runs before rendering."""
        output = StringIO()
        structlog.configure(
            processors=[
                structlog.processors.add_log_level,
                SecretRedactor(),
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(0),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(output),
            cache_logger_on_first_use=False,
        )
        try:
            structlog.get_logger("test").info("config_center_enabled", password="nacos")
        finally:
            structlog.reset_defaults()

        parsed = json.loads(output.getvalue().strip())
        assert parsed["event"] == "config_center_enabled"
        assert parsed["password"] == "[REDACTED]"
