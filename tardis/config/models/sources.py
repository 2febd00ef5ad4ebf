"""Configuration source descriptors.

A SourceList is an ordered list of ConfigSource values; position is merge
priority and the last source wins on a key collision.
"""

from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from tardis.config.models.framework import DocumentFormat


class ConfCenterDescriptor(BaseModel):
    """Identifies one remote document in a configuration center."""

    model_config = ConfigDict(frozen=True)

    data_id: str = Field(..., description="Document id, e.g. <app-id>-<profile>")
    group: str = Field(default="DEFAULT_GROUP", description="Backend namespace group")
    namespace: str | None = Field(default=None, description="Backend tenant namespace")
    kind: str = Field(default="nacos", description="Backend kind")
    url: str = Field(default="", description="Backend base URL")
    username: str = ""
    password: SecretStr = SecretStr("")


class LocalFileSource(BaseModel):
    """A document on the local filesystem."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["local"] = "local"
    path: Path
    format: DocumentFormat = "toml"
    required: bool = True


class RemoteDocumentSource(BaseModel):
    """A document served by a configuration center.

    Remote documents are never required; an unpublished document contributes
    nothing to the merge.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["remote"] = "remote"
    descriptor: ConfCenterDescriptor
    format: DocumentFormat = "toml"
    required: bool = False


class EnvironmentSource(BaseModel):
    """Environment variables with a common prefix."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["env"] = "env"
    prefix: str = "TARDIS_"
    required: bool = False


ConfigSource = Annotated[
    LocalFileSource | RemoteDocumentSource | EnvironmentSource,
    Field(discriminator="kind"),
]
