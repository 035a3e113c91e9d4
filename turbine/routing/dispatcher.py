"""Route dispatcher: starts one worker thread per route spec.

``dispatch`` decodes a route's kind through a static builder table,
resolves every alias the route references against the channel registry,
and starts a ``RouteWorker`` running the matching body from
:mod:`turbine.routing.routes`.  It never waits for the worker.

Two ways a worker can end:

- **completed**: its inputs were closed and drained; it closed its outputs.
- **failed**: a selector, sink, reducer or transform raised.  The error is
  logged and kept on the worker, and its outputs are *not* closed.
"""

from __future__ import annotations

import functools
import itertools
import logging
import threading
from collections.abc import Callable, Hashable, Mapping
from typing import Any

from turbine.config import TurbineConfig
from turbine.config import config as default_config
from turbine.core.channel import ChannelHandle, SelectableHandle
from turbine.models.routes import RouteKind, RouteSpec, parse_route_spec
from turbine.models.workers import WorkerReport, WorkerState
from turbine.routing import routes

logger = logging.getLogger(__name__)

ChannelRegistry = Mapping[Hashable, ChannelHandle]
RouteBody = Callable[[], None]


class RouteConfigurationError(KeyError):
    """Raised at dispatch when a route's aliases cannot be wired from the registry.

    ``missing`` names the offending aliases: either absent from the
    registry, or (for ``union`` inputs) bound to handles that cannot be
    multi-waited on.
    """

    def __init__(
        self,
        kind: RouteKind,
        missing: list[Hashable],
        problem: str = "references unknown channel aliases",
    ) -> None:
        self.kind = kind
        self.missing = missing
        super().__init__(
            f"{kind.value!r} route {problem}: " + ", ".join(repr(a) for a in missing)
        )

    def __str__(self) -> str:
        return str(self.args[0])


class RouteWorkerError(RuntimeError):
    """Raised by ``RouteWorker.result`` when the worker's callback failed."""


# ---------------------------------------------------------------------------
# Worker
# ---------------------------------------------------------------------------


class RouteWorker:
    """A running route: one thread executing one route body.

    Usage
    -----
    >>> worker = dispatch(("scatter", "a", ["b", "c"]), registry)
    >>> registry["a"].close()
    >>> worker.join(timeout=1.0)
    <WorkerState.COMPLETED: 'completed'>
    """

    _ids = itertools.count(1)

    def __init__(self, route: RouteSpec, body: RouteBody, *, daemon: bool = True) -> None:
        self.route = route
        self.name = f"turbine-{route.kind.value}-{next(RouteWorker._ids)}"
        self._body = body
        self._state = WorkerState.PENDING
        self._error: BaseException | None = None
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=daemon)

    def __repr__(self) -> str:
        return f"RouteWorker(name={self.name!r}, state={self._state.value})"

    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def error(self) -> BaseException | None:
        """The callback exception that failed this worker, if any."""
        return self._error

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> RouteWorker:
        self._state = WorkerState.RUNNING
        self._thread.start()
        return self

    def _run(self) -> None:
        logger.debug("Route worker %s started", self.name)
        # SystemExit and friends end only this thread; record them like any failure.
        try:
            self._body()
        except BaseException as exc:  # noqa: BLE001
            self._error = exc
            self._state = WorkerState.FAILED
            logger.exception("Route worker %s failed; outputs left open", self.name)
            return
        self._state = WorkerState.COMPLETED
        logger.debug("Route worker %s completed: inputs closed", self.name)

    def join(self, timeout: float | None = None) -> WorkerState:
        """Wait for the worker to finish and return its state."""
        self._thread.join(timeout)
        return self._state

    def result(self, timeout: float | None = None) -> None:
        """Wait for the worker and re-raise its failure, if any.

        Raises
        ------
        TimeoutError
            If the worker is still running after *timeout* seconds.
        RouteWorkerError
            If a callback failed the worker (chained to the original error).
        """
        self.join(timeout)
        if self._thread.is_alive():
            raise TimeoutError(f"Route worker {self.name} still running")
        if self._error is not None:
            raise RouteWorkerError(
                f"Route worker {self.name} failed: {self._error!r}"
            ) from self._error

    def report(self) -> WorkerReport:
        return WorkerReport(
            name=self.name,
            route_kind=self.route.kind,
            state=self._state,
            error=repr(self._error) if self._error is not None else None,
        )


# ---------------------------------------------------------------------------
# Builders: one per dispatchable route kind
# ---------------------------------------------------------------------------


def _fan_out_builder(body: Callable[..., None]) -> Callable[[Any, ChannelRegistry], RouteBody]:
    def build(route: Any, registry: ChannelRegistry) -> RouteBody:
        out_chans = [registry[slot.alias] for slot in route.out_slots]
        return functools.partial(body, registry[route.in_alias], out_chans)

    return build


def _fan_in_builder(body: Callable[..., None]) -> Callable[[Any, ChannelRegistry], RouteBody]:
    def build(route: Any, registry: ChannelRegistry) -> RouteBody:
        in_chans = [registry[alias] for alias in route.in_aliases]
        return functools.partial(body, in_chans, registry[route.out_slot.alias])

    return build


def _build_select(route: Any, registry: ChannelRegistry) -> RouteBody:
    out_chans = [(registry[slot.alias], slot.selector_value) for slot in route.out_slots]
    return functools.partial(routes.select, registry[route.in_alias], out_chans, route.selector)


def _build_sink(route: Any, registry: ChannelRegistry) -> RouteBody:
    return functools.partial(routes.sink, registry[route.in_alias], route.sink_fn)


def _build_collect(route: Any, registry: ChannelRegistry) -> RouteBody:
    return functools.partial(
        routes.collect,
        registry[route.in_alias],
        registry[route.out_slot.alias],
        route.reducer,
        route.initial,
    )


ROUTE_BUILDERS: dict[RouteKind, Callable[[Any, ChannelRegistry], RouteBody]] = {
    RouteKind.SCATTER: _fan_out_builder(routes.scatter),
    RouteKind.SPLATTER: _fan_out_builder(routes.splatter),
    RouteKind.SPREAD: _fan_out_builder(routes.spread),
    RouteKind.SELECT: _build_select,
    RouteKind.GATHER: _fan_in_builder(routes.gather),
    RouteKind.UNION: _fan_in_builder(routes.union),
    RouteKind.COLLECT: _build_collect,
    RouteKind.SINK: _build_sink,
}


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def dispatch(
    spec: RouteSpec | Any,
    registry: ChannelRegistry,
    *,
    config: TurbineConfig | None = None,
) -> RouteWorker | None:
    """Start the worker for *spec* and return it without waiting.

    ``in`` specs only declare channels; they have no worker and ``None``
    is returned.

    Raises
    ------
    MalformedRouteSpecError
        If *spec* is not a valid route.
    RouteConfigurationError
        If any alias the route references is missing from *registry*, or a
        ``union`` input is not a :class:`SelectableHandle`.
    """
    cfg = config or default_config
    route = parse_route_spec(spec)
    if route.kind is RouteKind.IN:
        logger.debug("'in' route declares %d channels; no worker", len(route.slots))
        return None

    missing = [alias for alias in route.referenced_aliases if alias not in registry]
    if missing:
        raise RouteConfigurationError(route.kind, missing)

    if route.kind is RouteKind.UNION:
        unselectable = [
            alias for alias in route.in_aliases
            if not isinstance(registry[alias], SelectableHandle)
        ]
        if unselectable:
            raise RouteConfigurationError(
                route.kind, unselectable, "inputs do not support multi-channel wait"
            )

    body = ROUTE_BUILDERS[route.kind](route, registry)
    return RouteWorker(route, body, daemon=cfg.worker_daemon).start()
