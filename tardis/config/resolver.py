"""Configuration resolution pipeline.

Source precedence, lowest first:

1. Local file: <relative-path>/conf-default.<fmt>
2. Local file: <relative-path>/conf-<profile>.<fmt>
3. Remote document: <fw.app.id>-default
4. Remote document: <fw.app.id>-<profile>
5. Environment variables starting with TARDIS_

Whether a configuration center is used, and how to reach it, is itself
configured locally. A pass therefore resolves local and environment layers
first and, when ``fw.conf_center`` is set, resolves again with the remote
layers in between.
"""

import asyncio
import json
import time
from enum import Enum
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from tardis.config.crypto import decrypt
from tardis.config.loader import (
    ENV_PREFIX,
    get_profile,
    load_environment,
    load_source,
    local_sources,
    normalize_format,
    parse_document,
)
from tardis.config.merge import merge_trees, split_tree
from tardis.config.models import (
    ConfCenterConfig,
    ConfCenterDescriptor,
    ConfigSource,
    DocumentFormat,
    EnvironmentSource,
    FrameworkConfig,
    LocalFileSource,
    RemoteDocumentSource,
    ResolvedConfig,
)
from tardis.config.remote import ClientFactory, create_conf_center_client
from tardis.errors import (
    BadRequestError,
    FormatError,
    InternalError,
    TardisError,
    TardisTimeoutError,
)
from tardis.observability.metrics import CONFIG_RESOLUTION_LATENCY, CONFIG_RESOLUTIONS

logger = structlog.get_logger(__name__)


class ResolutionState(str, Enum):
    """Stages of one resolution pass."""

    IDLE = "idle"
    LOADING_LOCAL = "loading_local"
    LOADING_REMOTE = "loading_remote"
    DECRYPTING = "decrypting"
    MERGING = "merging"
    TYPING = "typing"
    READY = "ready"
    FAILED = "failed"


def remote_descriptors(
    conf_center: ConfCenterConfig,
    app_id: str,
    profile: str,
) -> list[ConfCenterDescriptor]:
    """Descriptors of the remote documents for an app, in precedence order."""
    names = ["default"]
    if profile and profile != "default":
        names.append(profile)
    return [
        ConfCenterDescriptor(
            data_id=f"{app_id}-{name}",
            group=conf_center.group,
            namespace=conf_center.namespace,
            kind=conf_center.kind,
            url=conf_center.url,
            username=conf_center.username,
            password=conf_center.password,
        )
        for name in names
    ]


def _json_escape(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)[1:-1]


def _decrypt_tree(tree: Any, salt: str) -> Any:
    """Decrypt ENC tokens in the JSON serialization of a tree and re-parse it."""
    blob = json.dumps(tree, ensure_ascii=False, default=str)
    plain = decrypt(blob, salt, quote=_json_escape)
    try:
        return json.loads(plain)
    except json.JSONDecodeError as e:
        raise FormatError(f"[Tardis.Config] Decrypted configuration is malformed: {e}") from e


class ConfigResolver:
    """Resolves ResolvedConfig snapshots from local, remote and env sources.

    One resolver is created per process and may run any number of passes;
    ``state`` and ``error`` describe the most recent pass.
    """

    def __init__(
        self,
        relative_path: str | Path | None = "config",
        *,
        profile: str | None = None,
        format: str = "toml",
        env_prefix: str = ENV_PREFIX,
        client_factory: ClientFactory = create_conf_center_client,
    ) -> None:
        """Initialize the resolver.

        Args:
            relative_path: Directory holding conf-*.<fmt> files (None = no local files)
            profile: Profile overlay (None = read the PROFILE env var)
            format: Local document format: toml, json or yaml
            env_prefix: Prefix of environment overrides
            client_factory: Builds the configuration center client
        """
        self.relative_path = Path(relative_path) if relative_path is not None else None
        self.profile = profile if profile is not None else get_profile()
        self.format: DocumentFormat = normalize_format(format)
        self.env_prefix = env_prefix
        self.client_factory = client_factory
        self.state = ResolutionState.IDLE
        self.error: TardisError | None = None

    async def resolve(self) -> ResolvedConfig:
        """Run one full resolution pass.

        Returns:
            A complete ResolvedConfig

        Raises:
            TardisError: The first failure of the pass; nothing partial is returned
        """
        self.state = ResolutionState.IDLE
        self.error = None
        started = time.perf_counter()
        logger.info(
            "config_initializing",
            relative_path=str(self.relative_path) if self.relative_path else None,
            profile=self.profile,
        )

        try:
            resolved = await self._resolve()
        except TardisError as e:
            self.state = ResolutionState.FAILED
            self.error = e
            CONFIG_RESOLUTIONS.labels(outcome="failure").inc()
            logger.error("config_resolution_failed", error=str(e), kind=e.kind.value)
            raise

        self.state = ResolutionState.READY
        CONFIG_RESOLUTIONS.labels(outcome="success").inc()
        CONFIG_RESOLUTION_LATENCY.observe(time.perf_counter() - started)
        logger.info(
            "config_resolved",
            profile=self.profile,
            modules=sorted(resolved.workspace),
            conf_center=resolved.framework.conf_center is not None,
        )
        logger.debug("config_framework_content", fw=resolved.framework.model_dump(mode="json"))
        return resolved

    def source_list(
        self,
        conf_center: ConfCenterConfig | None = None,
        app_id: str = "",
    ) -> list[ConfigSource]:
        """Build the ordered sources of one pass, lowest precedence first.

        Remote documents are included only when ``conf_center`` is given.
        """
        sources: list[ConfigSource] = []
        if self.relative_path is not None:
            sources.extend(local_sources(self.relative_path, self.profile, self.format))
        if conf_center is not None:
            fmt = normalize_format(conf_center.format)
            sources.extend(
                RemoteDocumentSource(descriptor=descriptor, format=fmt)
                for descriptor in remote_descriptors(conf_center, app_id, self.profile)
            )
        sources.append(EnvironmentSource(prefix=self.env_prefix))
        return sources

    async def _resolve(self) -> ResolvedConfig:
        local_trees, _ = await self._load(self.source_list(), conf_center=None)
        local_only = self._build(local_trees, fingerprints={})
        conf_center = local_only.framework.conf_center
        if conf_center is None:
            return local_only

        app_id = local_only.framework.app.id
        if not app_id:
            raise BadRequestError(
                "[Tardis.Config] The [fw.app.id] must be set when the config center is enabled"
            )

        trees, fingerprints = await self._load(
            self.source_list(conf_center, app_id), conf_center=conf_center
        )
        return self._build(trees, fingerprints=fingerprints)

    async def _load(
        self,
        sources: list[ConfigSource],
        conf_center: ConfCenterConfig | None,
    ) -> tuple[list[dict[str, Any]], dict[str, str | None]]:
        """Load every source into a raw tree, keeping the order of ``sources``.

        Local and environment sources are read before any remote call so a
        missing local file fails without touching the network.
        """
        self.state = ResolutionState.LOADING_LOCAL
        trees: list[dict[str, Any] | None] = []
        remote: list[tuple[int, RemoteDocumentSource]] = []
        for position, source in enumerate(sources):
            if isinstance(source, LocalFileSource):
                trees.append(load_source(source))
            elif isinstance(source, EnvironmentSource):
                trees.append(load_environment(source.prefix))
            else:
                trees.append(None)
                remote.append((position, source))

        fingerprints: dict[str, str | None] = {}
        if remote:
            if conf_center is None:
                raise InternalError("[Tardis.Config] Remote sources need a config center")
            fetched, fingerprints = await self._load_remote(
                conf_center, [source for _, source in remote]
            )
            for position, source in remote:
                trees[position] = fetched.get(source.descriptor.data_id)

        return [tree for tree in trees if tree is not None], fingerprints

    async def _load_remote(
        self,
        conf_center: ConfCenterConfig,
        sources: list[RemoteDocumentSource],
    ) -> tuple[dict[str, dict[str, Any]], dict[str, str | None]]:
        self.state = ResolutionState.LOADING_REMOTE
        logger.info("config_center_enabled", kind=conf_center.kind, url=conf_center.url)

        trees: dict[str, dict[str, Any]] = {}
        fingerprints: dict[str, str | None] = {}
        client = self.client_factory(conf_center)
        try:
            if conf_center.username:
                await self._bounded(
                    client.authenticate(
                        conf_center.username, conf_center.password.get_secret_value()
                    ),
                    conf_center.timeout_secs,
                    "authenticate",
                )
            for source in sources:
                descriptor = source.descriptor
                logger.debug("config_remote_fetch", data_id=descriptor.data_id)
                document = await self._bounded(
                    client.fetch_document(descriptor),
                    conf_center.timeout_secs,
                    f"fetch {descriptor.data_id}",
                )
                if document is None:
                    fingerprints[descriptor.data_id] = None
                    logger.info("config_remote_not_found", data_id=descriptor.data_id)
                    continue
                fingerprints[descriptor.data_id] = document.fingerprint
                trees[descriptor.data_id] = parse_document(
                    document.content,
                    source.format,
                    f"{conf_center.url}#{descriptor.data_id}",
                )
        finally:
            await client.close()

        return trees, fingerprints

    @staticmethod
    async def _bounded(awaitable: Any, timeout: float, operation: str) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout)
        except TimeoutError as e:
            raise TardisTimeoutError(
                f"[Tardis.Config] Config center {operation} timed out after {timeout}s"
            ) from e

    def _build(
        self,
        trees: list[dict[str, Any]],
        fingerprints: dict[str, str | None],
    ) -> ResolvedConfig:
        self.state = ResolutionState.MERGING
        workspace, framework_tree = split_tree(merge_trees(trees))

        salt = self._salt(framework_tree)
        if salt:
            self.state = ResolutionState.DECRYPTING
            workspace = _decrypt_tree(workspace, salt)
            framework_tree = _decrypt_tree(framework_tree, salt)

        self.state = ResolutionState.TYPING
        try:
            framework = FrameworkConfig.model_validate(framework_tree)
        except ValidationError as e:
            raise FormatError(f"[Tardis.Config] Invalid [fw] configuration: {e}") from e

        return ResolvedConfig(
            workspace=workspace,
            framework=framework,
            profile=self.profile,
            fingerprints=fingerprints,
        )

    @staticmethod
    def _salt(framework_tree: dict[str, Any]) -> str:
        adv = framework_tree.get("adv")
        if not isinstance(adv, dict):
            return ""
        salt = adv.get("salt") or ""
        if not isinstance(salt, str):
            raise FormatError("[Tardis.Config] [fw.adv.salt] must be a string")
        return salt
