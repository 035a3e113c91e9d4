"""Shared test fixtures for Turbine."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from typing import Any

import pytest

from turbine.config import TurbineConfig
from turbine.core.channel import CLOSED, Channel

# Every blocking call in the suite is bounded by this.
TIMEOUT = 5.0


def drain(chan: Channel, timeout: float = TIMEOUT) -> list[Any]:
    """Read *chan* until it is closed, failing the test on a stall."""
    values = []
    while True:
        value = chan.get(timeout=timeout)
        if value is CLOSED:
            return values
        values.append(value)


def feed(chan: Channel, values: Iterable[Any], close: bool = True) -> None:
    """Put *values* on *chan* (which must have room for them), then close it."""
    for value in values:
        assert chan.put(value)
    if close:
        chan.close()


@pytest.fixture
def make_registry() -> Callable[..., dict[Hashable, Channel]]:
    """Factory fixture: build a registry of buffered channels for the given aliases."""

    def _factory(*aliases: Hashable, buffer_size: int = 64) -> dict[Hashable, Channel]:
        return {a: Channel(buffer_size=buffer_size, name=str(a)) for a in aliases}

    return _factory


@pytest.fixture
def turbine_config() -> TurbineConfig:
    """Provide a config with deterministic defaults, independent of the environment."""
    return TurbineConfig(
        _env_file=None,
        channel_buffer_size=16,
        worker_daemon=True,
        join_timeout_seconds=TIMEOUT,
    )


@pytest.fixture(name="drain")
def drain_fixture() -> Callable[..., list[Any]]:
    """Provide :func:`drain` to test functions."""
    return drain


@pytest.fixture(name="feed")
def feed_fixture() -> Callable[..., None]:
    """Provide :func:`feed` to test functions."""
    return feed
