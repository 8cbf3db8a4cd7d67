from flight_finder.aggregation import (
    FlightStats,
    compute_airline_facets,
    compute_price_bounds,
    compute_stats,
    compute_stops_counts,
    compute_time_slot_counts,
)
from flight_finder.filters import FilterState
from flight_finder.types import StopsBucket, TimeSlot


def test_stats_for_empty_list_are_all_zero():
    stats = compute_stats([])
    assert stats == FlightStats(0, 0, 0, 0, 0)
    assert not stats.has_data


def test_stats_min_max_and_average(make_flight):
    flights = [make_flight("a", price=40), make_flight("b", price=40), make_flight("c", price=100)]
    stats = compute_stats(flights)
    assert stats.min_price == 40
    assert stats.max_price == 100
    assert stats.avg_price == 60
    assert stats.visible_count == 3
    assert stats.total_count == 3


def test_average_rounds_half_up(make_flight):
    flights = [make_flight("a", price=10), make_flight("b", price=11)]
    assert compute_stats(flights).avg_price == 11


def test_total_count_comes_from_the_raw_list(make_flight):
    stats = compute_stats([make_flight("a", price=50)], total_count=7)
    assert stats.visible_count == 1
    assert stats.total_count == 7


def test_price_bounds(make_flight):
    flights = [make_flight("a", price=142), make_flight("b", price=35), make_flight("c", price=89)]
    assert compute_price_bounds(flights) == (35, 142)
    assert compute_price_bounds([]) == (0, 2000)


def test_airline_facets_most_flights_first_ties_in_first_seen_order(make_flight):
    flights = [
        make_flight("1", airline="VY"),
        make_flight("2", airline="IB"),
        make_flight("3", airline="IB"),
        make_flight("4", airline="FR"),
        make_flight("5", airline="VY"),
        make_flight("6", airline="LH"),
        make_flight("7", airline="IB"),
    ]
    facets = compute_airline_facets(flights)
    assert [(f.code, f.count) for f in facets] == [("IB", 3), ("VY", 2), ("FR", 1), ("LH", 1)]
    assert facets[0].name == "Iberia"
    assert sum(f.count for f in facets) == len(flights)


def test_stops_counts_bucket_two_or_more(make_flight):
    flights = [
        make_flight("a", stops=0),
        make_flight("b", stops=1),
        make_flight("c", stops=2),
        make_flight("d", stops=3),
    ]
    assert compute_stops_counts(flights) == {
        StopsBucket.NONSTOP: 1,
        StopsBucket.ONE_STOP: 1,
        StopsBucket.TWO_PLUS: 2,
    }


def test_time_slot_counts_use_local_hour(make_flight):
    flights = [
        make_flight("a", hour=0),
        make_flight("b", hour=5, minute=59),
        make_flight("c", hour=12),
        make_flight("d", hour=23),
    ]
    assert compute_time_slot_counts(flights) == {
        TimeSlot.EARLY: 2,
        TimeSlot.MORNING: 0,
        TimeSlot.AFTERNOON: 1,
        TimeSlot.EVENING: 1,
    }


def test_counts_ignore_filters_by_default(make_flight):
    flights = [make_flight("a", stops=0, airline="FR"), make_flight("b", stops=1, airline="LH")]
    filters = FilterState.from_selections(airlines=["FR"])
    counts = compute_stops_counts(flights, filters)
    assert counts[StopsBucket.ONE_STOP] == 1


def test_cross_filtered_counts_apply_other_dimensions_only(make_flight):
    flights = [
        make_flight("a", stops=0, airline="FR", hour=8),
        make_flight("b", stops=1, airline="LH", hour=8),
        make_flight("c", stops=1, airline="FR", hour=19),
    ]
    filters = FilterState.from_selections(stops=[0], airlines=["FR"])

    stops = compute_stops_counts(flights, filters, cross_filter=True)
    assert stops[StopsBucket.NONSTOP] == 1
    assert stops[StopsBucket.ONE_STOP] == 1

    slots = compute_time_slot_counts(flights, filters, cross_filter=True)
    assert slots[TimeSlot.MORNING] == 1
    assert slots[TimeSlot.EVENING] == 0
