import pytest

from flight_finder.comparison import ComparisonSet, best_duration, best_price, mark_best
from flight_finder.types import ToggleOutcome


def test_toggle_adds_then_removes():
    ids, outcome = ComparisonSet().toggle("FL001")
    assert outcome is ToggleOutcome.ADDED
    assert ids.ids == ("FL001",)

    ids, outcome = ids.toggle("FL001")
    assert outcome is ToggleOutcome.REMOVED
    assert ids.ids == ()


def test_toggling_twice_restores_the_set():
    start = ComparisonSet(["a", "b"])
    once, _ = start.toggle("c")
    twice, _ = once.toggle("c")
    assert twice == start


def test_fourth_addition_is_rejected():
    full = ComparisonSet(["a", "b", "c"])
    assert full.is_full

    after, outcome = full.toggle("d")
    assert outcome is ToggleOutcome.REJECTED_AT_CAPACITY
    assert after is full
    assert after.ids == ("a", "b", "c")


def test_removal_still_works_when_full():
    after, outcome = ComparisonSet(["a", "b", "c"]).toggle("b")
    assert outcome is ToggleOutcome.REMOVED
    assert after.ids == ("a", "c")


def test_construction_deduplicates_and_truncates():
    ids = ComparisonSet(["a", "a", "b", "c", "d"])
    assert ids.ids == ("a", "b", "c")
    assert len(ids) == 3


def test_custom_capacity():
    ids = ComparisonSet(capacity=1)
    ids, _ = ids.toggle("a")
    _, outcome = ids.toggle("b")
    assert outcome is ToggleOutcome.REJECTED_AT_CAPACITY


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        ComparisonSet(capacity=0)


def test_clear_keeps_capacity():
    cleared = ComparisonSet(["a"], capacity=2).clear()
    assert cleared.ids == ()
    assert cleared.capacity == 2


def test_resolve_keeps_stored_order_and_drops_unknown_ids(make_flight):
    flights = [make_flight("a"), make_flight("b"), make_flight("c")]
    resolved = ComparisonSet(["c", "gone", "a"]).resolve(flights)
    assert [f.id for f in resolved] == ["c", "a"]


def test_mark_best_flags_every_tie(make_flight):
    flights = [
        make_flight("a", price=100, duration=90),
        make_flight("b", price=80, duration=90),
        make_flight("c", price=80, duration=120),
    ]
    entries = mark_best(flights)
    assert [e.is_best_duration for e in entries] == [True, True, False]
    assert [e.is_best_price for e in entries] == [False, True, True]


def test_best_values_of_empty_list():
    assert best_price([]) is None
    assert best_duration([]) is None
    assert mark_best([]) == []
