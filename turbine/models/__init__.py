"""Turbine data models: all Pydantic v2, all frozen (immutable)."""

from turbine.models.routes import (
    ROUTE_TYPE_MAP,
    ChannelSlot,
    CollectRoute,
    GatherRoute,
    InRoute,
    MalformedRouteSpecError,
    RouteKind,
    RouteSpec,
    ScatterRoute,
    SelectRoute,
    SelectSlot,
    SinkRoute,
    SplatterRoute,
    SpreadRoute,
    UnionRoute,
    identity,
    parse_route_spec,
)
from turbine.models.workers import WorkerReport, WorkerState

__all__ = [
    # routes
    "RouteKind",
    "RouteSpec",
    "ROUTE_TYPE_MAP",
    "ChannelSlot",
    "SelectSlot",
    "ScatterRoute",
    "SplatterRoute",
    "SelectRoute",
    "SpreadRoute",
    "UnionRoute",
    "GatherRoute",
    "CollectRoute",
    "SinkRoute",
    "InRoute",
    "MalformedRouteSpecError",
    "identity",
    "parse_route_spec",
    # workers
    "WorkerState",
    "WorkerReport",
]
