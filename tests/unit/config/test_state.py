"""Unit tests for ConfigState."""

import threading

import pytest

from tardis.config.models import FrameworkConfig, ResolvedConfig
from tardis.config.state import ConfigState
from tardis.errors import InternalError


def snapshot(version: int) -> ResolvedConfig:
    """Build a snapshot whose workspace and framework agree on a version."""
    return ResolvedConfig(
        workspace={"": {"version": version}},
        framework=FrameworkConfig.model_validate({"app": {"version": str(version)}}),
    )


class TestConfigState:
    """Tests for ConfigState."""

    def test_current_before_publish_raises(self) -> None:
        state = ConfigState()
        assert state.is_ready is False
        with pytest.raises(InternalError):
            state.current()

    def test_publish_swaps_snapshot(self) -> None:
        state = ConfigState()
        first, second = snapshot(1), snapshot(2)

        assert state.publish(first) is None
        assert state.publish(second) is first

        assert state.current() is second
        assert state.previous() is first
        assert state.generation == 2

    def test_held_snapshot_is_unaffected_by_publish(self) -> None:
        state = ConfigState()
        state.publish(snapshot(1))
        held = state.current()

        state.publish(snapshot(2))

        assert held.workspace[""]["version"] == 1
        assert held.framework.app.version == "1"

    def test_clear(self) -> None:
        state = ConfigState()
        state.publish(snapshot(1))
        state.clear()
        assert state.is_ready is False
        assert state.generation == 0
        assert state.previous() is None

    def test_readers_never_see_mixed_snapshots(self) -> None:
        """Concurrent readers observe either the old or the new snapshot as a whole."""
        state = ConfigState()
        state.publish(snapshot(0))
        stop = threading.Event()
        mismatches: list[tuple[int, str]] = []

        def reader() -> None:
            while not stop.is_set():
                current = state.current()
                version = current.workspace[""]["version"]
                if str(version) != current.framework.app.version:
                    mismatches.append((version, current.framework.app.version))

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for thread in readers:
            thread.start()
        for version in range(1, 200):
            state.publish(snapshot(version))
        stop.set()
        for thread in readers:
            thread.join()

        assert mismatches == []
        assert state.generation == 200
