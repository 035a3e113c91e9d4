"""Topology: builds channels for a set of route specs and runs their workers.

The topology allocates one ``Channel`` per alias reported by
:func:`~turbine.core.aliases.normalize_all`, dispatches every route, and
gives callers access to the ``in`` channels for feeding and to any
channel for draining.

Usage
-----
>>> specs = [
...     ("in", "numbers"),
...     ("scatter", "numbers", ["left", "right"]),
... ]
>>> with Topology(specs) as topo:
...     topo.send("numbers", 1, 2, 3)
...     topo.close_inputs()
...     list(topo.channel("left"))
[1, 2, 3]
"""

from __future__ import annotations

import logging
import time
from collections.abc import Hashable, Iterable
from typing import Any

from turbine.config import TurbineConfig
from turbine.config import config as default_config
from turbine.core.aliases import normalize_all
from turbine.core.channel import Channel
from turbine.models.routes import RouteKind, RouteSpec, parse_route_spec
from turbine.models.workers import WorkerReport
from turbine.routing.dispatcher import RouteWorker, dispatch

logger = logging.getLogger(__name__)


class Topology:
    """A set of routes wired together through shared channels.

    Parameters
    ----------
    specs:
        Route specs, typed or in tagged-tuple form.
    config:
        Engine configuration; defaults to the module-level config.
    buffer_size:
        Overrides ``config.channel_buffer_size`` for every channel.
    """

    def __init__(
        self,
        specs: Iterable[RouteSpec | Any],
        config: TurbineConfig | None = None,
        buffer_size: int | None = None,
    ) -> None:
        self._config = config or default_config
        self.routes: list[RouteSpec] = [parse_route_spec(s) for s in specs]
        size = self._config.channel_buffer_size if buffer_size is None else buffer_size

        self.channels: dict[Hashable, Channel] = {
            alias: Channel(buffer_size=size, transform=transform, name=str(alias))
            for alias, transform in normalize_all(self.routes).items()
        }
        self.input_aliases: list[Hashable] = [
            slot.alias
            for route in self.routes
            if route.kind is RouteKind.IN
            for slot in route.output_slots
        ]
        self.workers: list[RouteWorker] = []

    def __enter__(self) -> Topology:
        return self.start()

    def __exit__(self, *exc_info: Any) -> None:
        self.close_inputs()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> Topology:
        """Dispatch every route.  Calling ``start`` twice is an error."""
        if self.workers:
            raise RuntimeError("Topology already started")
        for route in self.routes:
            worker = dispatch(route, self.channels, config=self._config)
            if worker is not None:
                self.workers.append(worker)
        logger.info(
            "Topology started: %d channels, %d workers",
            len(self.channels),
            len(self.workers),
        )
        return self

    def join(self, timeout: float | None = None) -> list[WorkerReport]:
        """Wait for every worker to finish and return their reports.

        Raises
        ------
        TimeoutError
            If any worker is still running once *timeout* has elapsed.
        """
        limit = self._config.join_timeout_seconds if timeout is None else timeout
        deadline = time.monotonic() + limit
        for worker in self.workers:
            worker.join(max(deadline - time.monotonic(), 0))
        running = [w.name for w in self.workers if w.is_alive()]
        if running:
            raise TimeoutError(f"Workers still running after {limit}s: {running}")
        return self.reports()

    def reports(self) -> list[WorkerReport]:
        return [w.report() for w in self.workers]

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    def channel(self, alias: Hashable) -> Channel:
        try:
            return self.channels[alias]
        except KeyError:
            raise KeyError(f"No channel for alias {alias!r}") from None

    def send(self, alias: Hashable, *values: Any) -> None:
        """Put *values* on the channel for *alias*, in order."""
        chan = self.channel(alias)
        for value in values:
            if not chan.put(value):
                raise RuntimeError(f"Channel {alias!r} is closed")

    def close(self, alias: Hashable) -> None:
        self.channel(alias).close()

    def close_inputs(self) -> None:
        """Close every channel declared by an ``in`` route."""
        for alias in self.input_aliases:
            self.channels[alias].close()
