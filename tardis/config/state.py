"""Process-wide configuration state.

Holds the current ResolvedConfig as a single reference. Publication swaps
the reference, so a reader that took a snapshot keeps a complete,
internally consistent configuration for as long as it holds it.
"""

import threading

import structlog

from tardis.config.models import ResolvedConfig
from tardis.errors import InternalError

logger = structlog.get_logger(__name__)


class ConfigState:
    """Atomically swappable holder of the current configuration snapshot."""

    def __init__(self) -> None:
        self._current: ResolvedConfig | None = None
        self._previous: ResolvedConfig | None = None
        self._generation = 0
        self._write_lock = threading.Lock()

    @property
    def generation(self) -> int:
        """Number of snapshots published so far."""
        return self._generation

    @property
    def is_ready(self) -> bool:
        return self._current is not None

    def current(self) -> ResolvedConfig:
        """Return the current snapshot.

        Raises:
            InternalError: If nothing has been published yet
        """
        current = self._current
        if current is None:
            raise InternalError("[Tardis.Config] Configuration has not been initialized")
        return current

    def previous(self) -> ResolvedConfig | None:
        """Return the snapshot replaced by the latest publication."""
        return self._previous

    def publish(self, resolved: ResolvedConfig) -> ResolvedConfig | None:
        """Replace the current snapshot.

        Returns:
            The replaced snapshot, if any
        """
        with self._write_lock:
            replaced = self._current
            self._previous = replaced
            self._current = resolved
            self._generation += 1
            generation = self._generation
        logger.info("config_published", generation=generation, profile=resolved.profile)
        return replaced

    def clear(self) -> None:
        """Drop all snapshots."""
        with self._write_lock:
            self._current = None
            self._previous = None
            self._generation = 0
