"""Blocking channels: the primitive every route worker reads and writes.

The dispatcher only depends on the ``ChannelHandle`` protocol; ``Channel``
is the default thread-safe implementation used by ``Topology`` and the
test suite.

Semantics
---------
- ``buffer_size == 0`` gives a rendezvous channel: ``put`` returns once a
  taker has removed the value.
- ``buffer_size > 0`` blocks ``put`` only while the buffer is full.
- ``close`` is idempotent.  Values already buffered stay takeable; after
  they are drained ``get`` returns the ``CLOSED`` sentinel forever.
- ``put`` on a closed channel discards the value and returns ``False``.
"""

from __future__ import annotations

import random
import threading
import time
from collections import deque
from collections.abc import Callable, Iterator, Sequence
from typing import Any, Protocol, runtime_checkable

from turbine.models.routes import identity


class _Closed:
    """Sentinel type returned by ``get`` once a channel is closed and drained."""

    _instance: _Closed | None = None

    def __new__(cls) -> _Closed:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CLOSED"

    def __bool__(self) -> bool:
        return False


CLOSED = _Closed()


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class ChannelHandle(Protocol):
    """Protocol for channel handles stored in a channel registry.

    Any object with blocking ``get``/``put`` and an idempotent ``close``
    satisfies this protocol.  ``union`` routes additionally need
    the :class:`SelectableHandle` hooks, which ``Channel`` provides.
    """

    @property
    def closed(self) -> bool:
        """Whether ``close`` has been called."""
        ...

    def get(self, timeout: float | None = None) -> Any:
        """Return the next value, or ``CLOSED`` once closed and drained."""
        ...

    def put(self, value: Any) -> bool:
        """Block until *value* is accepted; ``False`` if the channel is closed."""
        ...

    def close(self) -> None:
        """Close the channel."""
        ...


@runtime_checkable
class SelectableHandle(ChannelHandle, Protocol):
    """A ``ChannelHandle`` that can take part in :func:`select_receive`.

    ``union`` routes require every input to satisfy this protocol.
    """

    def poll(self) -> tuple[bool, Any]:
        """Non-blocking take: ``(True, value)`` when ready, else ``(False, None)``."""
        ...

    def add_waiter(self, event: threading.Event) -> None:
        """Set *event* whenever a value or the closure becomes available."""
        ...

    def remove_waiter(self, event: threading.Event) -> None:
        ...


# ---------------------------------------------------------------------------
# Default implementation
# ---------------------------------------------------------------------------


class Channel:
    """Thread-safe FIFO channel with optional buffering and a put-time transform.

    Parameters
    ----------
    buffer_size:
        ``0`` for rendezvous, otherwise the number of values that may sit
        in the channel without a taker.
    transform:
        Unary function applied to every value at ``put`` time.
    name:
        Label used in ``repr`` and log messages (usually the alias).
    """

    def __init__(
        self,
        buffer_size: int = 0,
        transform: Callable[[Any], Any] = identity,
        name: str = "",
    ) -> None:
        if buffer_size < 0:
            raise ValueError(f"buffer_size must be >= 0, got {buffer_size}")
        self.buffer_size = buffer_size
        self.transform = transform
        self.name = name

        self._lock = threading.Lock()
        self._changed = threading.Condition(self._lock)
        self._buffer: deque[Any] = deque()
        self._closed = False
        # Sequence numbers used by rendezvous puts to wait for their taker.
        self._put_seq = 0
        self._take_seq = 0
        self._waiters: set[threading.Event] = set()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Channel(name={self.name!r}, buffer_size={self.buffer_size}, {state})"

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)

    # ------------------------------------------------------------------
    # Put / close
    # ------------------------------------------------------------------

    def put(self, value: Any) -> bool:
        value = self.transform(value)
        capacity = max(self.buffer_size, 1)
        with self._changed:
            while not self._closed and len(self._buffer) >= capacity:
                self._changed.wait()
            if self._closed:
                return False
            self._buffer.append(value)
            self._put_seq += 1
            ticket = self._put_seq
            self._notify()
            if self.buffer_size == 0:
                while not self._closed and self._take_seq < ticket:
                    self._changed.wait()
        return True

    def close(self) -> None:
        with self._changed:
            if self._closed:
                return
            self._closed = True
            self._notify()

    # ------------------------------------------------------------------
    # Get
    # ------------------------------------------------------------------

    def get(self, timeout: float | None = None) -> Any:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._changed:
            while not self._buffer and not self._closed:
                if deadline is None:
                    self._changed.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError(f"Timed out waiting on {self!r}")
                self._changed.wait(remaining)
            return self._take_locked()

    def poll(self) -> tuple[bool, Any]:
        """Non-blocking take.

        Returns ``(True, value)`` when a value (or ``CLOSED``) is available,
        ``(False, None)`` otherwise.
        """
        with self._changed:
            if not self._buffer and not self._closed:
                return False, None
            return True, self._take_locked()

    def add_waiter(self, event: threading.Event) -> None:
        with self._lock:
            self._waiters.add(event)

    def remove_waiter(self, event: threading.Event) -> None:
        with self._lock:
            self._waiters.discard(event)

    def __iter__(self) -> Iterator[Any]:
        while True:
            value = self.get()
            if value is CLOSED:
                return
            yield value

    # ------------------------------------------------------------------
    # Internals (lock held)
    # ------------------------------------------------------------------

    def _take_locked(self) -> Any:
        if not self._buffer:
            return CLOSED
        value = self._buffer.popleft()
        self._take_seq += 1
        self._changed.notify_all()
        return value

    def _notify(self) -> None:
        self._changed.notify_all()
        for event in self._waiters:
            event.set()


# ---------------------------------------------------------------------------
# Multi-channel receive
# ---------------------------------------------------------------------------


def select_receive(
    channels: Sequence[SelectableHandle], timeout: float | None = None
) -> tuple[Any, SelectableHandle]:
    """Wait on several channels and take from whichever is ready first.

    Returns ``(value, channel)``; ``value`` is ``CLOSED`` when the chosen
    channel resolved to its closure.  Simultaneously ready channels are
    polled in random order.
    """
    if not channels:
        raise ValueError("select_receive needs at least one channel")

    deadline = None if timeout is None else time.monotonic() + timeout
    ready = threading.Event()
    for chan in channels:
        chan.add_waiter(ready)
    try:
        order = list(channels)
        while True:
            # Clear before polling so a put racing the poll still wakes us.
            ready.clear()
            random.shuffle(order)
            for chan in order:
                ok, value = chan.poll()
                if ok:
                    return value, chan
            if deadline is None:
                ready.wait()
                continue
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutError("Timed out waiting on any of the channels")
            ready.wait(remaining)
    finally:
        for chan in channels:
            chan.remove_waiter(ready)
