"""Route specification models: one frozen model per route kind.

A route specification is immutable data describing a single worker: which
channel aliases it reads, which channel slots it writes, and the opaque
callables (selector, sink, reducer) it applies along the way.

Specs may be written in the compact tagged-tuple form::

    ("scatter", "a", ["b", ["c", str.upper]])
    ("gather", ["x", "y"], "pairs")
    ("collect", "numbers", "total", operator.add, 0)

and coerced into typed models with :func:`parse_route_spec`.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class MalformedRouteSpecError(ValueError):
    """Raised when a route specification falls outside the route grammar."""


def identity(value: Any) -> Any:
    """Default channel transform."""
    return value


class RouteKind(str, Enum):
    """The route kinds understood by the dispatcher."""

    SCATTER = "scatter"
    SPLATTER = "splatter"
    SELECT = "select"
    SPREAD = "spread"
    UNION = "union"
    GATHER = "gather"
    COLLECT = "collect"
    SINK = "sink"
    IN = "in"


# ---------------------------------------------------------------------------
# Channel slots
# ---------------------------------------------------------------------------


class ChannelSlot(BaseModel):
    """An output (or declared) channel alias with its transform."""

    model_config = ConfigDict(frozen=True)

    alias: Hashable
    transform: Callable[[Any], Any] = identity


class SelectSlot(ChannelSlot):
    """A select-route output slot; receives values whose key equals ``selector_value``."""

    selector_value: Any


# ---------------------------------------------------------------------------
# Route models
# ---------------------------------------------------------------------------


class _RouteBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def input_aliases(self) -> tuple[Hashable, ...]:
        return ()

    @property
    def output_slots(self) -> tuple[ChannelSlot, ...]:
        return ()

    @property
    def referenced_aliases(self) -> tuple[Hashable, ...]:
        """Every alias this route reads or writes, inputs first."""
        return self.input_aliases + tuple(s.alias for s in self.output_slots)


class _FanOutRoute(_RouteBase):
    in_alias: Hashable
    out_slots: tuple[ChannelSlot, ...]

    @property
    def input_aliases(self) -> tuple[Hashable, ...]:
        return (self.in_alias,)

    @property
    def output_slots(self) -> tuple[ChannelSlot, ...]:
        return self.out_slots


class ScatterRoute(_FanOutRoute):
    """Broadcast every input value to every output."""

    kind: Literal[RouteKind.SCATTER] = RouteKind.SCATTER


class SplatterRoute(_FanOutRoute):
    """Send the i-th element of each input sequence to the i-th output."""

    kind: Literal[RouteKind.SPLATTER] = RouteKind.SPLATTER


class SpreadRoute(_FanOutRoute):
    """Deal input values to the outputs round-robin."""

    kind: Literal[RouteKind.SPREAD] = RouteKind.SPREAD
    out_slots: tuple[ChannelSlot, ...] = Field(min_length=1)


class SelectRoute(_FanOutRoute):
    """Send each input value to every output whose selector value matches."""

    kind: Literal[RouteKind.SELECT] = RouteKind.SELECT
    out_slots: tuple[SelectSlot, ...]
    selector: Callable[[Any], Any]


class _FanInRoute(_RouteBase):
    in_aliases: tuple[Hashable, ...] = Field(min_length=1)
    out_slot: ChannelSlot

    @property
    def input_aliases(self) -> tuple[Hashable, ...]:
        return self.in_aliases

    @property
    def output_slots(self) -> tuple[ChannelSlot, ...]:
        return (self.out_slot,)


class UnionRoute(_FanInRoute):
    """Merge inputs in arrival order."""

    kind: Literal[RouteKind.UNION] = RouteKind.UNION


class GatherRoute(_FanInRoute):
    """Join one value from every input into a tuple, in lock-step."""

    kind: Literal[RouteKind.GATHER] = RouteKind.GATHER


class CollectRoute(_RouteBase):
    """Fold the input with ``reducer`` and emit the final accumulator."""

    kind: Literal[RouteKind.COLLECT] = RouteKind.COLLECT
    in_alias: Hashable
    out_slot: ChannelSlot
    reducer: Callable[[Any, Any], Any]
    initial: Any = None

    @property
    def input_aliases(self) -> tuple[Hashable, ...]:
        return (self.in_alias,)

    @property
    def output_slots(self) -> tuple[ChannelSlot, ...]:
        return (self.out_slot,)


class SinkRoute(_RouteBase):
    """Terminal consumer: call ``sink_fn`` with every input value."""

    kind: Literal[RouteKind.SINK] = RouteKind.SINK
    in_alias: Hashable
    sink_fn: Callable[[Any], Any]

    @property
    def input_aliases(self) -> tuple[Hashable, ...]:
        return (self.in_alias,)


class InRoute(_RouteBase):
    """Declares externally fed channel slots.  Never runs as a worker."""

    kind: Literal[RouteKind.IN] = RouteKind.IN
    slots: tuple[ChannelSlot, ...] = Field(min_length=1)

    @property
    def output_slots(self) -> tuple[ChannelSlot, ...]:
        return self.slots


RouteSpec = Annotated[
    Union[
        ScatterRoute,
        SplatterRoute,
        SelectRoute,
        SpreadRoute,
        UnionRoute,
        GatherRoute,
        CollectRoute,
        SinkRoute,
        InRoute,
    ],
    Field(discriminator="kind"),
]

# Registry for coercion by kind tag
ROUTE_TYPE_MAP: dict[RouteKind, type[_RouteBase]] = {
    RouteKind.SCATTER: ScatterRoute,
    RouteKind.SPLATTER: SplatterRoute,
    RouteKind.SELECT: SelectRoute,
    RouteKind.SPREAD: SpreadRoute,
    RouteKind.UNION: UnionRoute,
    RouteKind.GATHER: GatherRoute,
    RouteKind.COLLECT: CollectRoute,
    RouteKind.SINK: SinkRoute,
    RouteKind.IN: InRoute,
}


# ---------------------------------------------------------------------------
# Tagged-tuple coercion
# ---------------------------------------------------------------------------


def _is_slot_form(raw: Any) -> bool:
    return isinstance(raw, (list, tuple))


def _slot(raw: Any) -> ChannelSlot:
    if isinstance(raw, ChannelSlot):
        return raw
    if not _is_slot_form(raw):
        return ChannelSlot(alias=raw)
    if not raw:
        raise MalformedRouteSpecError("Empty channel slot")
    if len(raw) == 1:
        return ChannelSlot(alias=raw[0])
    return ChannelSlot(alias=raw[0], transform=raw[1])


def _select_slot(raw: Any) -> SelectSlot:
    if isinstance(raw, SelectSlot):
        return raw
    if not _is_slot_form(raw) or len(raw) != 3:
        raise MalformedRouteSpecError(
            f"Select slots must be [alias, transform, selector-value], got {raw!r}"
        )
    alias, transform, selector_value = raw
    return SelectSlot(alias=alias, transform=transform, selector_value=selector_value)


def _slots(raw: Any, coerce: Callable[[Any], ChannelSlot] = _slot) -> tuple[ChannelSlot, ...]:
    if not _is_slot_form(raw):
        raise MalformedRouteSpecError(f"Expected a sequence of channel slots, got {raw!r}")
    return tuple(coerce(s) for s in raw)


def _expect_arity(raw: Sequence[Any], kind: RouteKind, arity: int) -> None:
    if len(raw) != arity:
        raise MalformedRouteSpecError(
            f"A {kind.value!r} route takes {arity - 1} elements after the kind tag, "
            f"got {len(raw) - 1}"
        )


def _route_fields(kind: RouteKind, raw: Sequence[Any]) -> dict[str, Any]:
    if kind is RouteKind.IN:
        if len(raw) < 2:
            raise MalformedRouteSpecError("An 'in' route must declare at least one slot")
        return {"slots": tuple(_slot(s) for s in raw[1:])}

    if kind in (RouteKind.SCATTER, RouteKind.SPLATTER, RouteKind.SPREAD):
        _expect_arity(raw, kind, 3)
        return {"in_alias": raw[1], "out_slots": _slots(raw[2])}

    if kind is RouteKind.SELECT:
        _expect_arity(raw, kind, 4)
        return {
            "in_alias": raw[1],
            "out_slots": _slots(raw[2], _select_slot),
            "selector": raw[3],
        }

    if kind in (RouteKind.UNION, RouteKind.GATHER):
        _expect_arity(raw, kind, 3)
        if not _is_slot_form(raw[1]):
            raise MalformedRouteSpecError(
                f"A {kind.value!r} route needs a sequence of input aliases, got {raw[1]!r}"
            )
        return {"in_aliases": tuple(raw[1]), "out_slot": _slot(raw[2])}

    if kind is RouteKind.COLLECT:
        _expect_arity(raw, kind, 5)
        return {
            "in_alias": raw[1],
            "out_slot": _slot(raw[2]),
            "reducer": raw[3],
            "initial": raw[4],
        }

    # RouteKind.SINK
    _expect_arity(raw, kind, 3)
    return {"in_alias": raw[1], "sink_fn": raw[2]}


def parse_route_spec(raw: Any) -> RouteSpec:
    """Coerce a tagged tuple into its typed route model.

    Typed route models are returned unchanged.

    Each element after an ``"in"`` tag is its own slot, so a transform
    must be paired with its alias: ``("in", ["a", fn])``, not
    ``("in", "a", fn)``.

    Raises
    ------
    MalformedRouteSpecError
        If the kind tag is unknown or the shape does not match the kind.
    """
    if isinstance(raw, _RouteBase):
        return raw  # type: ignore[return-value]

    if not _is_slot_form(raw) or not raw:
        raise MalformedRouteSpecError(
            f"Route spec must be a non-empty tagged tuple, got {raw!r}"
        )

    tag = raw[0]
    try:
        kind = RouteKind(tag.value if isinstance(tag, Enum) else tag)
    except ValueError as exc:
        raise MalformedRouteSpecError(f"Unknown route kind: {tag!r}") from exc

    try:
        return ROUTE_TYPE_MAP[kind](**_route_fields(kind, raw))  # type: ignore[return-value]
    except ValidationError as exc:
        raise MalformedRouteSpecError(
            f"Invalid {kind.value!r} route spec: {exc}"
        ) from exc
