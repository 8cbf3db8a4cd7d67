import threading

import pytest

from flight_finder.collection import FlightCollection
from flight_finder.config import configure
from flight_finder.filters import FilterState, set_sort, toggle_airline, toggle_stops
from flight_finder.types import SortKey, StopsBucket, ToggleOutcome


@pytest.fixture
def collection(make_flight, search_params):
    coll = FlightCollection()
    coll.replace_flights(
        [
            make_flight("FL1", price=35, stops=0, airline="FR", hour=7, duration=150),
            make_flight("FL2", price=125, stops=1, airline="LH", hour=16, duration=95),
            make_flight("FL3", price=89, stops=0, airline="IB", hour=20, duration=130),
        ],
        search_params,
    )
    return coll


def test_new_collection_is_empty():
    coll = FlightCollection()
    assert coll.flights == ()
    assert coll.visible() == []
    assert coll.stats().visible_count == 0
    assert coll.price_bounds() == (0, 2000)
    assert coll.comparison_ids == ()


def test_replace_flights_resets_filters_to_price_bounds(collection):
    assert collection.filters == FilterState(price_range=(35, 125))
    assert collection.active_filter_count() == 0


def test_visible_and_stats_follow_filters(collection):
    collection.update_filters(toggle_stops, 1)
    assert [f.id for f in collection.visible()] == ["FL1", "FL3"]

    stats = collection.stats()
    assert stats.visible_count == 2
    assert stats.total_count == 3
    assert stats.avg_price == 62
    assert collection.active_filter_count() == 1


def test_sort_change(collection):
    collection.update_filters(set_sort, "duration")
    assert collection.filters.sort_by is SortKey.DURATION
    assert [f.id for f in collection.visible()] == ["FL2", "FL3", "FL1"]


def test_reset_filters_restores_bounds(collection):
    collection.update_filters(toggle_airline, "FR")
    collection.reset_filters()
    assert collection.filters == FilterState(price_range=(35, 125))


def test_counts_and_facets(collection):
    assert collection.stops_counts()[StopsBucket.NONSTOP] == 2
    collection.update_filters(toggle_airline, "FR")
    assert collection.stops_counts(cross_filter=True)[StopsBucket.NONSTOP] == 1
    assert [f.code for f in collection.airline_facets()] == ["FR", "LH", "IB"]


def test_toggle_comparison_and_best_markers(collection):
    assert collection.toggle_comparison("FL1") is ToggleOutcome.ADDED
    assert collection.toggle_comparison("FL2") is ToggleOutcome.ADDED
    assert collection.is_in_comparison("FL2")

    entries = collection.comparison_entries()
    assert [(e.flight.id, e.is_best_price, e.is_best_duration) for e in entries] == [
        ("FL1", True, False),
        ("FL2", False, True),
    ]

    assert collection.toggle_comparison("FL1") is ToggleOutcome.REMOVED
    collection.clear_comparison()
    assert collection.comparison_ids == ()


def test_comparison_capacity_comes_from_config():
    configure(max_comparison=2)
    coll = FlightCollection()
    coll.toggle_comparison("a")
    coll.toggle_comparison("b")
    assert coll.toggle_comparison("c") is ToggleOutcome.REJECTED_AT_CAPACITY
    assert coll.comparison_ids == ("a", "b")


def test_replace_flights_clears_comparison_and_selection(collection, make_flight):
    collection.toggle_comparison("FL1")
    assert collection.select_flight("FL1")
    collection.replace_flights([make_flight("NEW", price=300)])

    snapshot = collection.snapshot()
    assert [f.id for f in snapshot.flights] == ["NEW"]
    assert snapshot.comparison.ids == ()
    assert snapshot.selected_flight is None
    assert snapshot.filters.price_range == (300, 300)
    assert snapshot.search_params is not None


def test_select_unknown_flight_is_ignored(collection):
    assert not collection.select_flight("missing")
    assert collection.selected_flight is None
    assert collection.select_flight("FL3")
    assert collection.selected_flight.id == "FL3"
    collection.clear_selection()
    assert collection.selected_flight is None


def test_fail_installs_empty_list_with_error(collection):
    collection.toggle_comparison("FL1")
    collection.fail("Network error")
    assert collection.flights == ()
    assert collection.error == "Network error"
    assert collection.comparison_ids == ()
    assert collection.filters == FilterState()


def test_reset_all(collection):
    collection.reset_all()
    assert collection.flights == ()
    assert collection.search_params is None


def test_removing_last_stops_bucket_keeps_filters(collection):
    collection.update_filters(toggle_stops, 1)
    only_two_plus = collection.update_filters(toggle_stops, 0)
    assert collection.update_filters(toggle_stops, "2+") == only_two_plus
    assert collection.visible() == []


def test_concurrent_toggles_never_exceed_capacity(collection):
    threads = [
        threading.Thread(target=collection.toggle_comparison, args=(f"id{i}",))
        for i in range(20)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(collection.comparison_ids) == 3
