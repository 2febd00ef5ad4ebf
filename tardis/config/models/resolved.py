"""Resolved configuration snapshot."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tardis.config.models.framework import FrameworkConfig


class ResolvedConfig(BaseModel):
    """Outcome of one resolution pass.

    Instances are never mutated after publication; a reload replaces the
    whole snapshot.
    """

    model_config = ConfigDict(frozen=True)

    workspace: dict[str, Any] = Field(
        default_factory=dict,
        description="Workspace sections keyed by module name ('' = default module)",
    )
    framework: FrameworkConfig = Field(default_factory=FrameworkConfig)
    profile: str = Field(default="", description="Profile the snapshot was resolved for")
    fingerprints: dict[str, str | None] = Field(
        default_factory=dict,
        description="Remote document fingerprints observed during resolution",
    )
