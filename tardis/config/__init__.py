"""Configuration loading for Tardis.

This module provides the process-wide configuration facade. Configuration is
resolved from local files, an optional remote configuration center and
TARDIS_* environment variables, then kept current by a background watcher
while a configuration center is enabled.

Usage:
    from tardis import config

    await config.init("config")

    port = config.fw_config().web_server.port
    project = config.cs_config("", ProjectConfig).project_name
"""

from copy import deepcopy
from pathlib import Path
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from tardis.config.models import FrameworkConfig, ResolvedConfig
from tardis.config.remote import ClientFactory, create_conf_center_client
from tardis.config.resolver import ConfigResolver, ResolutionState
from tardis.config.state import ConfigState
from tardis.config.watcher import ReloadWatcher
from tardis.errors import FormatError, NotFoundError
from tardis.observability.logging import setup_logging

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_state = ConfigState()
_resolver: ConfigResolver | None = None
_watcher: ReloadWatcher | None = None


async def init(
    relative_path: str | Path | None = "config",
    *,
    profile: str | None = None,
    format: str = "toml",
    client_factory: ClientFactory = create_conf_center_client,
    configure_logging: bool = False,
) -> ResolvedConfig:
    """Resolve and publish the process configuration.

    Starts the reload watcher when a configuration center is enabled.
    Calling init again stops the previous watcher and starts over.
    With ``configure_logging`` the structlog pipeline is set up from
    ``fw.log`` once the configuration is resolved.

    Raises:
        TardisError: If resolution fails; nothing is published
    """
    global _resolver, _watcher

    await _stop_watcher()

    resolver = ConfigResolver(
        relative_path,
        profile=profile,
        format=format,
        client_factory=client_factory,
    )
    resolved = await resolver.resolve()
    if configure_logging:
        log = resolved.framework.log
        setup_logging(level=log.level, format=log.format, redact_secrets=log.redact_secrets)
    _state.publish(resolved)
    _resolver = resolver

    if resolved.framework.conf_center is not None:
        _watcher = ReloadWatcher(resolver, _state, client_factory=client_factory)
        _watcher.start()

    return resolved


async def reload() -> ResolvedConfig:
    """Re-resolve with the parameters of the last init and publish the result.

    Raises:
        NotFoundError: If init has not run
        TardisError: If resolution fails; the current snapshot stays active
    """
    if _resolver is None:
        raise NotFoundError("[Tardis.Config] Configuration has not been initialized")
    resolved = await _resolver.resolve()
    _state.publish(resolved)
    if _watcher is not None:
        _watcher.rebase(resolved.fingerprints)
    return resolved


async def _stop_watcher() -> None:
    global _watcher
    if _watcher is not None:
        await _watcher.stop()
        _watcher = None


async def shutdown() -> None:
    """Stop the watcher and drop the published configuration."""
    global _resolver
    await _stop_watcher()
    _resolver = None
    _state.clear()


def get_state() -> ConfigState:
    """Return the process-wide state holder."""
    return _state


def get_watcher() -> ReloadWatcher | None:
    """Return the running watcher, if a configuration center is enabled."""
    return _watcher


def get_config() -> ResolvedConfig:
    """Return the current snapshot."""
    return _state.current()


def fw_config() -> FrameworkConfig:
    """Return the typed framework configuration of the current snapshot."""
    return _state.current().framework


def cs_config(module: str = "", model: type[ModelT] | None = None) -> ModelT | Any:
    """Return the workspace section of a module.

    Args:
        module: Module name ('' = default module from ``cs``)
        model: Optional pydantic model to validate the section into

    Raises:
        NotFoundError: If the module has no workspace section
        FormatError: If the section does not match the model
    """
    workspace = _state.current().workspace
    if module not in workspace:
        raise NotFoundError(f"[Tardis.Config] Workspace config of module [{module}] not found")

    section = workspace[module]
    if model is None:
        return deepcopy(section)
    try:
        return model.model_validate(section)
    except ValidationError as e:
        raise FormatError(
            f"[Tardis.Config] Workspace config of module [{module}] is invalid: {e}"
        ) from e


__all__ = [
    "ConfigResolver",
    "ConfigState",
    "ReloadWatcher",
    "ResolutionState",
    "ResolvedConfig",
    "cs_config",
    "fw_config",
    "get_config",
    "get_state",
    "get_watcher",
    "init",
    "reload",
    "shutdown",
]
