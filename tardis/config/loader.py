"""Local and environment configuration sources.

Local documents live at ``<relative-path>/conf-default.<fmt>`` (required) and
``<relative-path>/conf-<profile>.<fmt>`` (required when a profile is set).
Environment overrides use the ``TARDIS_`` prefix with ``__`` as the nesting
delimiter, e.g. ``TARDIS_FW__APP__ID=my-app`` sets ``fw.app.id``.
"""

import json
import os
import tomllib
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import Field, ValidationError
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    EnvSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    SettingsError,
)

from tardis.config.models import DocumentFormat, LocalFileSource
from tardis.errors import FormatError, NotFoundError, TardisIOError

logger = structlog.get_logger(__name__)

ENV_PREFIX = "TARDIS_"
SUPPORTED_FORMATS: tuple[str, ...] = ("toml", "json", "yaml")


def get_profile() -> str:
    """Get the active profile from the PROFILE env var.

    Defaults to '' (no profile overlay).
    """
    return os.environ.get("PROFILE", "").strip()


def normalize_format(value: str | None) -> DocumentFormat:
    """Validate a document format name, defaulting to toml.

    Raises:
        FormatError: If the format is not one of toml, json, yaml
    """
    fmt = (value or "toml").strip().lower()
    if fmt == "yml":
        fmt = "yaml"
    if fmt not in SUPPORTED_FORMATS:
        raise FormatError(
            f"[Tardis.Config] Unsupported document format [{value}], "
            f"supported: [{','.join(SUPPORTED_FORMATS)}]"
        )
    return fmt  # type: ignore[return-value]


def parse_document(text: str, format: DocumentFormat, origin: str) -> dict[str, Any]:
    """Parse a serialized document into a raw tree.

    Args:
        text: Document content
        format: One of toml, json, yaml
        origin: Path or URL used in error messages

    Returns:
        The parsed mapping; an empty document yields {}

    Raises:
        FormatError: On malformed syntax or a non-mapping root
    """
    try:
        if format == "toml":
            data: Any = tomllib.loads(text)
        elif format == "json":
            data = json.loads(text) if text.strip() else None
        elif format == "yaml":
            data = yaml.safe_load(text)
        else:
            raise FormatError(f"[Tardis.Config] Unsupported document format [{format}]")
    except (tomllib.TOMLDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise FormatError(f"[Tardis.Config] Parse error in {origin}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FormatError(
            f"[Tardis.Config] Root of {origin} must be a mapping, got {type(data).__name__}"
        )
    return data


def load_source(source: LocalFileSource) -> dict[str, Any]:
    """Load one local document.

    Returns {} for an absent optional document.

    Raises:
        NotFoundError: If a required document does not exist
        TardisIOError: If the file cannot be read
        FormatError: If the file is not valid for its format
    """
    path = source.path
    if not path.is_file():
        if source.required:
            raise NotFoundError(f"[Tardis.Config] Configuration file not found: {path}")
        logger.debug("config_file_skipped", path=str(path))
        return {}

    logger.debug("config_file_fetch", path=str(path), format=source.format)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise TardisIOError(f"[Tardis.Config] Cannot read {path}: {e}") from e

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FormatError(f"[Tardis.Config] {path} is not valid UTF-8: {e}") from e

    return parse_document(text, source.format, str(path))


def local_sources(
    relative_path: str | Path,
    profile: str,
    format: DocumentFormat = "toml",
) -> list[LocalFileSource]:
    """Build the local part of the source list in precedence order."""
    base = Path(relative_path)
    sources = [LocalFileSource(path=base / f"conf-default.{format}", format=format)]
    if profile:
        sources.append(LocalFileSource(path=base / f"conf-{profile}.{format}", format=format))
    return sources


class RawEnvSettingsSource(EnvSettingsSource):
    """Environment source that keeps exploded nested values as raw strings.

    Only a whole branch set as JSON (e.g. ``TARDIS_FW='{"app": {}}'``) is
    decoded. Nested leaves such as ``TARDIS_FW__ADV__SALT`` are passed through
    unchanged so ids, salts and passwords made of digits stay strings.
    """

    def decode_complex_value(self, field_name: str, field: FieldInfo | None, value: Any) -> Any:
        if field is None or field_name not in self.settings_cls.model_fields:
            return value
        return super().decode_complex_value(field_name, field, value)


class EnvironmentOverrides(BaseSettings):
    """Top-level branches that can be overridden from the environment."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    cs: dict[str, Any] = Field(default_factory=dict, description="Default module workspace")
    csm: dict[str, Any] = Field(default_factory=dict, description="Named module workspaces")
    fw: dict[str, Any] = Field(default_factory=dict, description="Framework configuration")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Read only from process environment variables."""
        assert isinstance(env_settings, EnvSettingsSource)
        raw_env_settings = RawEnvSettingsSource(
            settings_cls,
            case_sensitive=env_settings.case_sensitive,
            env_prefix=env_settings.env_prefix,
            env_nested_delimiter=env_settings.env_nested_delimiter,
        )
        return (init_settings, raw_env_settings)


def load_environment(prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Collect environment overrides into a raw tree.

    Nested values stay strings; typed fields are coerced when the
    framework section is validated.

    Raises:
        FormatError: If a variable holds a value that cannot be decoded,
            e.g. ``TARDIS_FW`` set to invalid JSON
    """
    logger.debug("config_env_fetch", prefix=prefix)
    try:
        overrides = EnvironmentOverrides(_env_prefix=prefix)
    except (SettingsError, ValidationError) as e:
        raise FormatError(f"[Tardis.Config] Invalid environment override: {e}") from e

    return {key: value for key, value in overrides.model_dump().items() if value}
