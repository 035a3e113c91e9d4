"""Turbine route dispatch: one concurrent worker per route spec.

``dispatch`` resolves a route's channel aliases against a registry and
starts a worker thread implementing the route's discipline: broadcast
(scatter, splatter, spread), conditional (select), join and merge
(gather, union), or terminal (sink, collect).  Each worker closes its
outputs once its inputs are exhausted, so closing the upstream channels
shuts a whole topology down.
"""

from turbine.routing.dispatcher import (
    ROUTE_BUILDERS,
    RouteConfigurationError,
    RouteWorker,
    RouteWorkerError,
    dispatch,
)

__all__ = [
    "ROUTE_BUILDERS",
    "RouteConfigurationError",
    "RouteWorker",
    "RouteWorkerError",
    "dispatch",
]
