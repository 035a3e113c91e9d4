"""Alias normalization: which channels a route declares, and their transforms.

The channel registry builder calls :func:`normalize` on every route spec to
learn the set of aliases it must allocate channels for, and the transform
each channel applies.  Slots without a transform get :func:`identity`.

Only *declared* slots are reported: a route's outputs (or, for ``in``, its
externally fed slots).  Inputs are declared by whichever route produces
them upstream, so a ``sink`` declares nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable
from typing import Any

from turbine.models.routes import (
    ChannelSlot,
    RouteKind,
    RouteSpec,
    identity,
    parse_route_spec,
)

logger = logging.getLogger(__name__)

AliasMap = dict[Hashable, Callable[[Any], Any]]

__all__ = ["AliasMap", "identity", "normalize", "normalize_all"]


def _fan_out(spec: Any) -> tuple[ChannelSlot, ...]:
    return spec.out_slots


def _fan_in(spec: Any) -> tuple[ChannelSlot, ...]:
    return (spec.out_slot,)


def _declared(spec: Any) -> tuple[ChannelSlot, ...]:
    return spec.slots


def _nothing(spec: Any) -> tuple[ChannelSlot, ...]:
    return ()


_SLOT_EXTRACTORS: dict[RouteKind, Callable[[Any], tuple[ChannelSlot, ...]]] = {
    RouteKind.SCATTER: _fan_out,
    RouteKind.SPLATTER: _fan_out,
    RouteKind.SELECT: _fan_out,
    RouteKind.SPREAD: _fan_out,
    RouteKind.UNION: _fan_in,
    RouteKind.GATHER: _fan_in,
    RouteKind.COLLECT: _fan_in,
    RouteKind.IN: _declared,
    RouteKind.SINK: _nothing,
}


def normalize(spec: RouteSpec | Any) -> AliasMap:
    """Return ``{alias: transform}`` for every slot *spec* declares.

    Accepts a typed route model or its tagged-tuple form.
    """
    route = parse_route_spec(spec)
    return {slot.alias: slot.transform for slot in _SLOT_EXTRACTORS[route.kind](route)}


def normalize_all(specs: Iterable[RouteSpec | Any]) -> AliasMap:
    """Merge the alias maps of *specs*, in order.

    A later declaration of the same alias replaces the earlier transform.
    """
    aliases: AliasMap = {}
    for spec in specs:
        declared = normalize(spec)
        for alias in declared:
            if alias in aliases:
                logger.debug("Alias %r redeclared; keeping the later transform", alias)
        aliases.update(declared)
    logger.debug("Normalized %d channel aliases", len(aliases))
    return aliases
