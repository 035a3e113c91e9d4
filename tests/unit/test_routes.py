"""Unit tests for every route kind, driven through ``dispatch``.

Each test feeds buffered input channels, closes them, and drains the
outputs, checking both the values moved and that every output is closed.
"""

from __future__ import annotations

import operator

import pytest

from turbine.core.channel import CLOSED, Channel
from turbine.models.routes import identity
from turbine.models.workers import WorkerState
from turbine.routing.dispatcher import dispatch

TIMEOUT = 5.0


# ---------------------------------------------------------------------------
# Test: broadcast family
# ---------------------------------------------------------------------------


class TestScatter:
    def test_every_output_receives_every_value(self, make_registry, feed, drain):
        chans = make_registry("a", "b", "c")
        worker = dispatch(("scatter", "a", ["b", "c"]), chans)
        feed(chans["a"], [1, 2, 3])

        assert drain(chans["b"]) == [1, 2, 3]
        assert drain(chans["c"]) == [1, 2, 3]
        assert worker.join(TIMEOUT) is WorkerState.COMPLETED

    def test_same_object_sent_to_each_output(self, make_registry, feed, drain):
        chans = make_registry("a", "b", "c")
        payload = {"k": 1}
        dispatch(("scatter", "a", ["b", "c"]), chans)
        feed(chans["a"], [payload])
        assert drain(chans["b"])[0] is payload
        assert drain(chans["c"])[0] is payload

    def test_rendezvous_outputs(self, make_registry, feed, drain):
        chans = make_registry("a", buffer_size=8)
        chans.update(make_registry("b", "c", buffer_size=0))
        dispatch(("scatter", "a", ["b", "c"]), chans)
        feed(chans["a"], [1, 2])
        # Output order is b then c for each value, so read in lock-step.
        got = [(chans["b"].get(timeout=TIMEOUT), chans["c"].get(timeout=TIMEOUT)) for _ in range(2)]
        assert got == [(1, 1), (2, 2)]
        assert drain(chans["b"]) == []
        assert drain(chans["c"]) == []

    def test_no_outputs_drains_input(self, make_registry, feed):
        chans = make_registry("a")
        worker = dispatch(("scatter", "a", []), chans)
        feed(chans["a"], [1, 2, 3])
        assert worker.join(TIMEOUT) is WorkerState.COMPLETED
        assert len(chans["a"]) == 0


class TestSplatter:
    def test_positional_projection(self, make_registry, feed, drain):
        chans = make_registry("a", "x", "y")
        dispatch(("splatter", "a", ["x", "y"]), chans)
        feed(chans["a"], [(1, "one"), (2, "two")])
        assert drain(chans["x"]) == [1, 2]
        assert drain(chans["y"]) == ["one", "two"]

    def test_extra_elements_dropped(self, make_registry, feed, drain):
        chans = make_registry("a", "x", "y")
        worker = dispatch(("splatter", "a", ["x", "y"]), chans)
        feed(chans["a"], [(1, 2, 3, 4)])
        assert drain(chans["x"]) == [1]
        assert drain(chans["y"]) == [2]
        assert worker.join(TIMEOUT) is WorkerState.COMPLETED

    def test_short_sequence_skips_trailing_outputs(self, make_registry, feed, drain):
        chans = make_registry("a", "x", "y")
        dispatch(("splatter", "a", ["x", "y"]), chans)
        feed(chans["a"], [(1,), (2, 3)])
        assert drain(chans["x"]) == [1, 2]
        assert drain(chans["y"]) == [3]


class TestSpread:
    def test_round_robin(self, make_registry, feed, drain):
        chans = make_registry("a", "o0", "o1", "o2")
        dispatch(("spread", "a", ["o0", "o1", "o2"]), chans)
        feed(chans["a"], range(8))
        assert drain(chans["o0"]) == [0, 3, 6]
        assert drain(chans["o1"]) == [1, 4, 7]
        assert drain(chans["o2"]) == [2, 5]

    def test_fewer_values_than_outputs(self, make_registry, feed, drain):
        chans = make_registry("a", "o0", "o1", "o2")
        dispatch(("spread", "a", ["o0", "o1", "o2"]), chans)
        feed(chans["a"], ["only"])
        assert drain(chans["o0"]) == ["only"]
        assert drain(chans["o1"]) == []
        assert drain(chans["o2"]) == []


# ---------------------------------------------------------------------------
# Test: conditional
# ---------------------------------------------------------------------------


class TestSelect:
    def test_dispatch_by_key(self, make_registry, feed, drain):
        chans = make_registry("a", "even", "odd")
        spec = (
            "select",
            "a",
            [["even", identity, 0], ["odd", identity, 1]],
            lambda v: v % 2,
        )
        dispatch(spec, chans)
        feed(chans["a"], range(6))
        assert drain(chans["even"]) == [0, 2, 4]
        assert drain(chans["odd"]) == [1, 3, 5]

    def test_multiple_matches_all_receive(self, make_registry, feed, drain):
        chans = make_registry("a", "b", "c", "d")
        spec = (
            "select",
            "a",
            [["b", identity, "x"], ["c", identity, "x"], ["d", identity, "y"]],
            operator.itemgetter(0),
        )
        dispatch(spec, chans)
        feed(chans["a"], ["x1", "y1", "x2"])
        assert drain(chans["b"]) == ["x1", "x2"]
        assert drain(chans["c"]) == ["x1", "x2"]
        assert drain(chans["d"]) == ["y1"]

    def test_unmatched_values_go_nowhere(self, make_registry, feed, drain):
        chans = make_registry("a", "b")
        worker = dispatch(("select", "a", [["b", identity, True]], lambda v: v > 10), chans)
        feed(chans["a"], [1, 2, 3])
        assert drain(chans["b"]) == []
        assert worker.join(TIMEOUT) is WorkerState.COMPLETED


# ---------------------------------------------------------------------------
# Test: join / merge
# ---------------------------------------------------------------------------


class TestGather:
    def test_lock_step_tuples(self, make_registry, feed, drain):
        chans = make_registry("x", "y", "z", "out")
        dispatch(("gather", ["x", "y", "z"], "out"), chans)
        feed(chans["x"], [1, 2])
        feed(chans["y"], ["a", "b"])
        feed(chans["z"], [True, False])
        assert drain(chans["out"]) == [(1, "a", True), (2, "b", False)]

    def test_shortest_input_truncates(self, make_registry, feed, drain):
        chans = make_registry("x", "y", "out")
        dispatch(("gather", ["x", "y"], "out"), chans)
        feed(chans["x"], [1, 2, 3, 4])
        feed(chans["y"], ["a", "b"])
        assert drain(chans["out"]) == [(1, "a"), (2, "b")]

    def test_closed_input_emits_no_partial_tuple(self, make_registry, feed, drain):
        chans = make_registry("x", "y", "out")
        worker = dispatch(("gather", ["x", "y"], "out"), chans)
        feed(chans["x"], [1, 2, 3])
        chans["y"].close()
        assert drain(chans["out"]) == []
        assert worker.join(TIMEOUT) is WorkerState.COMPLETED

    def test_stops_reading_after_first_closed_input(self, make_registry, feed, drain):
        chans = make_registry("x", "y", "out")
        dispatch(("gather", ["x", "y"], "out"), chans)
        chans["x"].close()
        assert drain(chans["out"]) == []
        # The second input was never read.
        feed(chans["y"], ["untouched"], close=False)
        assert chans["y"].get(timeout=TIMEOUT) == "untouched"


class TestUnion:
    def test_merges_all_values(self, make_registry, feed, drain):
        chans = make_registry("x", "y", "z", "out")
        dispatch(("union", ["x", "y", "z"], "out"), chans)
        feed(chans["x"], range(0, 10))
        feed(chans["y"], range(10, 20))
        feed(chans["z"], [])
        assert sorted(drain(chans["out"])) == list(range(20))

    def test_preserves_per_input_order(self, make_registry, feed, drain):
        chans = make_registry("x", "y", "out")
        dispatch(("union", ["x", "y"], "out"), chans)
        feed(chans["x"], ["x0", "x1", "x2"])
        feed(chans["y"], ["y0", "y1", "y2"])
        out = drain(chans["out"])
        assert [v for v in out if v.startswith("x")] == ["x0", "x1", "x2"]
        assert [v for v in out if v.startswith("y")] == ["y0", "y1", "y2"]

    def test_output_stays_open_until_every_input_closes(self, make_registry, feed):
        chans = make_registry("x", "y", "out")
        worker = dispatch(("union", ["x", "y"], "out"), chans)
        feed(chans["x"], [1])
        assert chans["out"].get(timeout=TIMEOUT) == 1
        assert not chans["out"].closed
        with pytest.raises(TimeoutError):
            chans["out"].get(timeout=0.1)

        feed(chans["y"], [2])
        assert chans["out"].get(timeout=TIMEOUT) == 2
        assert chans["out"].get(timeout=TIMEOUT) is CLOSED
        assert worker.join(TIMEOUT) is WorkerState.COMPLETED


# ---------------------------------------------------------------------------
# Test: terminal
# ---------------------------------------------------------------------------


class TestSink:
    def test_observes_values_in_order(self, make_registry, feed):
        chans = make_registry("a")
        seen = []
        worker = dispatch(("sink", "a", seen.append), chans)
        feed(chans["a"], ["v1", "v2", "v3"])
        assert worker.join(TIMEOUT) is WorkerState.COMPLETED
        assert seen == ["v1", "v2", "v3"]

    def test_return_value_discarded(self, make_registry, feed):
        chans = make_registry("a")
        worker = dispatch(("sink", "a", lambda v: "ignored"), chans)
        feed(chans["a"], [1])
        assert worker.join(TIMEOUT) is WorkerState.COMPLETED


class TestCollect:
    def test_final_fold_emitted_once(self, make_registry, feed, drain):
        chans = make_registry("a", "total")
        worker = dispatch(("collect", "a", "total", operator.add, 0), chans)
        feed(chans["a"], [1, 2, 3, 4])
        assert drain(chans["total"]) == [10]
        assert worker.join(TIMEOUT) is WorkerState.COMPLETED

    def test_empty_input_emits_initial(self, make_registry, feed, drain):
        chans = make_registry("a", "total")
        dispatch(("collect", "a", "total", operator.add, 100), chans)
        feed(chans["a"], [])
        assert drain(chans["total"]) == [100]

    def test_reducer_sees_values_in_order(self, make_registry, feed, drain):
        chans = make_registry("a", "out")
        dispatch(("collect", "a", "out", lambda acc, v: acc + [v], []), chans)
        feed(chans["a"], "abc")
        assert drain(chans["out"]) == [["a", "b", "c"]]

    def test_no_intermediate_values_emitted(self, make_registry, feed):
        chans = make_registry("a", "out")
        dispatch(("collect", "a", "out", operator.add, 0), chans)
        feed(chans["a"], [1, 2], close=False)
        with pytest.raises(TimeoutError):
            chans["out"].get(timeout=0.1)
        chans["a"].close()
        assert chans["out"].get(timeout=TIMEOUT) == 3


# ---------------------------------------------------------------------------
# Test: output transforms
# ---------------------------------------------------------------------------


class TestTransforms:
    def test_channel_transform_applies_to_routed_values(self, feed, drain):
        chans = {
            "a": Channel(buffer_size=8),
            "b": Channel(buffer_size=8, transform=str),
            "c": Channel(buffer_size=8, transform=lambda v: v * 10),
        }
        dispatch(("scatter", "a", ["b", "c"]), chans)
        feed(chans["a"], [1, 2])
        assert drain(chans["b"]) == ["1", "2"]
        assert drain(chans["c"]) == [10, 20]
