"""Hot-reload of configuration when remote documents change.

The watcher polls the fingerprints of the active remote documents. When any
fingerprint differs from the last one observed, it runs a full resolution
pass and, only if that succeeds, publishes the new snapshot. Failures of a
background pass are logged and the previous snapshot stays active.
"""

import asyncio
import inspect
from collections.abc import Callable

import structlog

from tardis.config.models import ConfCenterConfig, ResolvedConfig
from tardis.config.remote import ClientFactory, ConfCenterClient, create_conf_center_client
from tardis.config.resolver import ConfigResolver, remote_descriptors
from tardis.config.state import ConfigState
from tardis.errors import TardisError
from tardis.observability.metrics import CONFIG_POLLS, CONFIG_RELOADS

logger = structlog.get_logger(__name__)

# Called with (new, replaced) after each successful reload; may be async
ReloadListener = Callable[[ResolvedConfig, ResolvedConfig | None], object]


class ReloadWatcher:
    """Background task that re-resolves configuration on remote change.

    Manual reloads published elsewhere must be passed to ``rebase`` so the
    same remote change is not reloaded twice.
    """

    def __init__(
        self,
        resolver: ConfigResolver,
        state: ConfigState,
        *,
        interval: float | None = None,
        client_factory: ClientFactory = create_conf_center_client,
    ) -> None:
        """Initialize the watcher.

        Args:
            resolver: Resolver used for every reload pass
            state: Process-wide state to publish into
            interval: Poll interval in seconds (None = fw.conf_center.poll_interval_secs)
            client_factory: Builds the client used for fingerprint polling
        """
        self.resolver = resolver
        self.state = state
        self._interval = interval
        self._client_factory = client_factory
        self._client: ConfCenterClient | None = None
        self._client_config: ConfCenterConfig | None = None
        self._last_fingerprints: dict[str, str | None] = dict(state.current().fingerprints)
        self._listeners: list[ReloadListener] = []
        self._stopped = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def interval(self) -> float:
        if self._interval is not None:
            return self._interval
        conf_center = self.state.current().framework.conf_center
        return conf_center.poll_interval_secs if conf_center else 30.0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def add_listener(self, listener: ReloadListener) -> None:
        """Register a callback invoked after each successful reload."""
        self._listeners.append(listener)

    async def _get_client(self, conf_center: ConfCenterConfig) -> ConfCenterClient:
        """Return the polling client, rebuilding it when the connection changed."""
        if self._client is not None and self._client_config == conf_center:
            return self._client
        if self._client is not None:
            await self._client.close()
            self._client = None

        client = self._client_factory(conf_center)
        if conf_center.username:
            await asyncio.wait_for(
                client.authenticate(conf_center.username, conf_center.password.get_secret_value()),
                conf_center.timeout_secs,
            )
        self._client = client
        self._client_config = conf_center
        return client

    def rebase(self, fingerprints: dict[str, str | None]) -> None:
        """Replace the baseline after a snapshot was published by someone else."""
        self._last_fingerprints = dict(fingerprints)

    async def _poll(
        self, current: ResolvedConfig, conf_center: ConfCenterConfig
    ) -> dict[str, str | None] | None:
        """Fetch fingerprints of the active documents; None if polling failed."""
        framework = current.framework
        fingerprints: dict[str, str | None] = {}
        try:
            client = await self._get_client(conf_center)
            for descriptor in remote_descriptors(conf_center, framework.app.id, current.profile):
                fingerprints[descriptor.data_id] = await asyncio.wait_for(
                    client.fetch_fingerprint(descriptor),
                    conf_center.timeout_secs,
                )
        except TimeoutError:
            CONFIG_POLLS.labels(outcome="timeout").inc()
            logger.warning(
                "config_poll_failed",
                error="fingerprint poll timed out",
                timeout=conf_center.timeout_secs,
            )
            return None
        except TardisError as e:
            CONFIG_POLLS.labels(outcome="failure").inc()
            logger.warning("config_poll_failed", error=str(e), kind=e.kind.value)
            return None

        return fingerprints

    async def tick(self) -> bool:
        """Run one poll and, on change, one reload.

        Returns:
            True if a new snapshot was published. When the current snapshot
            has no config center the watcher stops and False is returned.
        """
        current = self.state.current()
        conf_center = current.framework.conf_center
        if conf_center is None:
            # Nothing left to poll once a reload drops the config center
            logger.warning("config_watcher_stopping", reason="conf_center removed")
            self._stopped.set()
            return False

        fingerprints = await self._poll(current, conf_center)
        if fingerprints is None:
            return False

        if fingerprints == self._last_fingerprints:
            CONFIG_POLLS.labels(outcome="unchanged").inc()
            return False

        CONFIG_POLLS.labels(outcome="changed").inc()
        logger.info(
            "config_remote_changed",
            previous=self._last_fingerprints,
            current=fingerprints,
        )

        try:
            resolved = await self.resolver.resolve()
        except TardisError as e:
            CONFIG_RELOADS.labels(outcome="failure").inc()
            logger.error("config_reload_failed", error=str(e), kind=e.kind.value)
            return False
        except Exception as e:
            CONFIG_RELOADS.labels(outcome="failure").inc()
            logger.exception("config_reload_failed", error=str(e))
            return False

        replaced = self.state.publish(resolved)
        self._last_fingerprints = fingerprints
        CONFIG_RELOADS.labels(outcome="success").inc()
        logger.info("config_reloaded", generation=self.state.generation)

        await self._notify(resolved, replaced)
        return True

    async def _notify(self, resolved: ResolvedConfig, replaced: ResolvedConfig | None) -> None:
        for listener in self._listeners:
            try:
                result = listener(resolved, replaced)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.exception("config_reload_listener_failed", error=str(e))

    async def run(self) -> None:
        """Poll until stopped."""
        logger.info("config_watcher_started", interval=self.interval)
        while not self._stopped.is_set():
            try:
                await asyncio.wait_for(self._stopped.wait(), self.interval)
                break
            except TimeoutError:
                pass
            try:
                await self.tick()
            except Exception as e:
                logger.exception("config_watcher_tick_failed", error=str(e))
        logger.info("config_watcher_stopped")

    def start(self) -> asyncio.Task[None]:
        """Start the polling task on the running event loop."""
        if self.is_running:
            assert self._task is not None
            return self._task
        self._stopped.clear()
        self._task = asyncio.create_task(self.run(), name="tardis-config-watcher")
        return self._task

    async def stop(self) -> None:
        """Stop polling and release the client.

        An in-flight reload pass is allowed to finish.
        """
        self._stopped.set()
        if self._task is not None:
            await self._task
            self._task = None
        if self._client is not None:
            await self._client.close()
            self._client = None
            self._client_config = None
