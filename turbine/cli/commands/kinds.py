"""``turbine kinds``: describe every route kind."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from turbine.models.routes import RouteKind

console = Console()

# kind -> (tagged-tuple shape, worker discipline)
ROUTE_KIND_DOCS: dict[RouteKind, tuple[str, str]] = {
    RouteKind.SCATTER: ("in, [out...]", "every value to every output"),
    RouteKind.SPLATTER: ("in, [out...]", "element i of each sequence to output i"),
    RouteKind.SELECT: (
        "in, [[out, xform, key]...], selector",
        "each value to every output whose key == selector(value)",
    ),
    RouteKind.SPREAD: ("in, [out...]", "values dealt to outputs round-robin"),
    RouteKind.UNION: ("[in...], out", "merge in arrival order until all inputs close"),
    RouteKind.GATHER: ("[in...], out", "one tuple per round, one value from each input"),
    RouteKind.COLLECT: ("in, out, reducer, initial", "fold inputs, emit final accumulator"),
    RouteKind.SINK: ("in, sink-fn", "call sink-fn with every value"),
    RouteKind.IN: ("slot...", "declares externally fed channels (no worker)"),
}


def kinds_cmd() -> None:
    """List the route kinds, their spec shapes and routing disciplines."""
    table = Table(title="Route Kinds")
    table.add_column("Kind", style="cyan", no_wrap=True)
    table.add_column("Shape after tag", style="green")
    table.add_column("Discipline")

    for kind in RouteKind:
        shape, discipline = ROUTE_KIND_DOCS[kind]
        table.add_row(kind.value, shape, discipline)

    console.print(table)
