"""``turbine demo``: run a sample topology through every route kind.

The demo feeds ``0..count-1`` into this graph::

    numbers --scatter--> raw, squares (x*x)
    raw, squares --gather--> pairs
    pairs --select(parity)--> even | odd
    even --splatter--> even_raw, even_sq
    even_raw --collect(count)--> even_count
    even_sq --collect(sum)--> even_sq_total
    odd --spread--> odd_a, odd_b --union--> odd_merged --sink--> printed
"""

from __future__ import annotations

from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from turbine.config import config
from turbine.core.topology import Topology
from turbine.models.routes import identity
from turbine.models.workers import WorkerState

console = Console()

_STATE_STYLES: dict[WorkerState, str] = {
    WorkerState.COMPLETED: "green",
    WorkerState.FAILED: "bold red",
    WorkerState.RUNNING: "yellow",
    WorkerState.PENDING: "dim",
}


def _square(x: int) -> int:
    return x * x


def _parity(pair: tuple[int, int]) -> str:
    return "even" if pair[0] % 2 == 0 else "odd"


def _count(total: int, _value: Any) -> int:
    return total + 1


def _add(total: int, value: int) -> int:
    return total + value


def build_demo_routes(odd_sink: Any) -> list[tuple]:
    """Return the demo route specs; odd pairs are handed to *odd_sink*."""
    return [
        ("in", "numbers"),
        ("scatter", "numbers", ["raw", ["squares", _square]]),
        ("gather", ["raw", "squares"], "pairs"),
        (
            "select",
            "pairs",
            [["even", identity, "even"], ["odd", identity, "odd"]],
            _parity,
        ),
        ("splatter", "even", ["even_raw", "even_sq"]),
        ("collect", "even_raw", "even_count", _count, 0),
        ("collect", "even_sq", "even_sq_total", _add, 0),
        ("spread", "odd", ["odd_a", "odd_b"]),
        ("union", ["odd_a", "odd_b"], "odd_merged"),
        ("sink", "odd_merged", odd_sink),
    ]


def demo_cmd(
    count: int = typer.Option(10, "--count", "-n", min=0, help="How many numbers to feed."),
    buffer: int = typer.Option(
        None,
        "--buffer",
        "-b",
        min=0,
        help="Channel buffer size (0 = rendezvous; defaults to TURBINE_CHANNEL_BUFFER_SIZE).",
    ),
) -> None:
    """Run the demo topology and show its results and worker reports."""
    odd_pairs: list[tuple[int, int]] = []
    topology = Topology(build_demo_routes(odd_pairs.append), buffer_size=buffer)

    console.print()
    console.print(
        Panel(
            f"[bold]Turbine Demo Topology[/bold]\n\n"
            f"{len(topology.routes)} routes over {len(topology.channels)} channels, "
            f"feeding {count} numbers.",
            border_style="cyan",
            padding=(1, 2),
        )
    )

    topology.start()
    topology.send("numbers", *range(count))
    topology.close_inputs()

    timeout = config.join_timeout_seconds
    try:
        even_count = topology.channel("even_count").get(timeout=timeout)
        even_sq_total = topology.channel("even_sq_total").get(timeout=timeout)
        reports = topology.join(timeout)
    except TimeoutError as exc:
        console.print(f"[bold red]Topology did not shut down:[/bold red] {exc}")
        raise typer.Exit(code=1)

    table = Table(title="Route Workers")
    table.add_column("Worker", style="cyan")
    table.add_column("Kind")
    table.add_column("State")
    for report in reports:
        style = _STATE_STYLES[report.state]
        table.add_row(report.name, report.route_kind.value, f"[{style}]{report.state.value}[/{style}]")
    console.print(table)

    console.print(
        Panel(
            "\n".join([
                f"[bold]Even values:[/bold]       {even_count}",
                f"[bold]Sum of even squares:[/bold] {even_sq_total}",
                f"[bold]Odd pairs (sink):[/bold]  {sorted(odd_pairs)}",
            ]),
            title="[bold]Demo Summary[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )

    if any(r.state is WorkerState.FAILED for r in reports):
        raise typer.Exit(code=1)
