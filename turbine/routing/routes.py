"""Route worker bodies: one function per routing discipline.

Each function runs on its worker's thread and returns once its input(s)
are exhausted.  Every route except ``sink`` closes each of its outputs
exactly once on that closed-input path.  An exception raised by a
callback or a transform propagates out of the body before any output is
closed.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterator, Sequence
from typing import Any

from turbine.core.channel import CLOSED, ChannelHandle, SelectableHandle, select_receive


def _receive_all(chan: ChannelHandle) -> Iterator[Any]:
    """Yield values from *chan* until it is closed and drained."""
    while True:
        value = chan.get()
        if value is CLOSED:
            return
        yield value


def _close_all(chans: Sequence[ChannelHandle]) -> None:
    for chan in chans:
        chan.close()


# ---------------------------------------------------------------------------
# Broadcast family
# ---------------------------------------------------------------------------


def scatter(in_chan: ChannelHandle, out_chans: Sequence[ChannelHandle]) -> None:
    """Send every input value to every output, in declared order."""
    for value in _receive_all(in_chan):
        for out_chan in out_chans:
            out_chan.put(value)
    _close_all(out_chans)


def splatter(in_chan: ChannelHandle, out_chans: Sequence[ChannelHandle]) -> None:
    """Send element ``i`` of each input sequence to output ``i``.

    Elements past the last output, and outputs past the last element,
    are skipped.
    """
    for values in _receive_all(in_chan):
        for out_chan, value in zip(out_chans, values):
            out_chan.put(value)
    _close_all(out_chans)


def spread(in_chan: ChannelHandle, out_chans: Sequence[ChannelHandle]) -> None:
    """Deal input values to the outputs round-robin, starting at output 0."""
    cursor = itertools.cycle(out_chans)
    for value in _receive_all(in_chan):
        next(cursor).put(value)
    _close_all(out_chans)


# ---------------------------------------------------------------------------
# Conditional
# ---------------------------------------------------------------------------


def select(
    in_chan: ChannelHandle,
    out_chans: Sequence[tuple[ChannelHandle, Any]],
    selector: Callable[[Any], Any],
) -> None:
    """Send each value to every output whose selector value equals ``selector(value)``.

    *out_chans* pairs each output handle with its selector value.
    """
    for value in _receive_all(in_chan):
        key = selector(value)
        for out_chan, selector_value in out_chans:
            if key == selector_value:
                out_chan.put(value)
    _close_all([out_chan for out_chan, _ in out_chans])


# ---------------------------------------------------------------------------
# Join / merge
# ---------------------------------------------------------------------------


def gather(in_chans: Sequence[ChannelHandle], out_chan: ChannelHandle) -> None:
    """Emit one tuple per round holding a value from every input, in input order.

    Inputs are read one after another.  The first closed input ends the
    route; the partial round is discarded and later inputs are not read.
    """
    while True:
        values = []
        for in_chan in in_chans:
            value = in_chan.get()
            if value is CLOSED:
                out_chan.close()
                return
            values.append(value)
        out_chan.put(tuple(values))


def union(in_chans: Sequence[SelectableHandle], out_chan: ChannelHandle) -> None:
    """Forward values from whichever input is ready first until all are closed."""
    live = list(in_chans)
    while live:
        value, chan = select_receive(live)
        if value is CLOSED:
            live.remove(chan)
            continue
        out_chan.put(value)
    out_chan.close()


# ---------------------------------------------------------------------------
# Terminal
# ---------------------------------------------------------------------------


def sink(in_chan: ChannelHandle, sink_fn: Callable[[Any], Any]) -> None:
    """Call *sink_fn* with every input value.  Nothing is closed."""
    for value in _receive_all(in_chan):
        sink_fn(value)


def collect(
    in_chan: ChannelHandle,
    out_chan: ChannelHandle,
    reducer: Callable[[Any, Any], Any],
    initial: Any,
) -> None:
    """Fold the input with *reducer*, then emit the final accumulator once."""
    accumulator = initial
    for value in _receive_all(in_chan):
        accumulator = reducer(accumulator, value)
    out_chan.put(accumulator)
    out_chan.close()
