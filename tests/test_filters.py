import pytest

from flight_finder.errors import FilterStateError
from flight_finder.filters import (
    ALL,
    AllOf,
    FilterState,
    SubsetOf,
    airline_facet,
    clear_airlines,
    derive_visible,
    matches,
    reset_filters,
    select_all_time_slots,
    set_price_max,
    set_price_min,
    set_price_range,
    set_sort,
    sort_flights,
    stops_facet,
    time_slot_facet,
    toggle_airline,
    toggle_stops,
    toggle_time_slot,
)
from flight_finder.types import SortKey, StopsBucket, TimeSlot


@pytest.fixture
def flights(make_flight):
    return [
        make_flight("A", price=120, stops=0, airline="IB", hour=6, duration=125),
        make_flight("B", price=45, stops=1, airline="VY", hour=13, duration=240),
        make_flight("C", price=80, stops=2, airline="FR", hour=21, duration=480),
        make_flight("D", price=45, stops=3, airline="IB", hour=2, duration=600),
        make_flight("E", price=200, stops=0, airline="LH", hour=11, duration=110),
    ]


def ids(flights):
    return [f.id for f in flights]


# ============================================================================
# Facets
# ============================================================================

class TestFacets:
    def test_all_of_accepts_everything(self):
        assert ALL.accepts("anything")
        assert not ALL.is_restricted

    def test_subset_cannot_be_empty(self):
        with pytest.raises(FilterStateError):
            SubsetOf(frozenset())

    def test_full_stops_selection_normalizes_to_all(self):
        assert stops_facet([0, 1, "2+"]) == ALL

    def test_integer_two_means_two_plus(self):
        assert stops_facet([2]) == SubsetOf(frozenset({StopsBucket.TWO_PLUS}))

    def test_empty_stops_selection_is_an_error(self):
        with pytest.raises(FilterStateError):
            stops_facet([])

    def test_empty_time_slot_selection_is_an_error(self):
        with pytest.raises(FilterStateError):
            time_slot_facet([])

    def test_unknown_time_slot_is_an_error(self):
        with pytest.raises(FilterStateError):
            time_slot_facet(["midnight"])

    def test_empty_airline_selection_means_all(self):
        assert airline_facet([]) == ALL

    def test_airline_codes_are_upper_cased(self):
        assert airline_facet(["fr"]) == SubsetOf(frozenset({"FR"}))


# ============================================================================
# Filter state
# ============================================================================

class TestFilterState:
    def test_defaults_are_unrestricted(self):
        state = FilterState()
        assert isinstance(state.stops, AllOf)
        assert isinstance(state.airlines, AllOf)
        assert isinstance(state.time_slots, AllOf)
        assert state.price_range == (0, 2000)
        assert state.sort_by is SortKey.PRICE

    def test_from_selections_swaps_reversed_price_range(self):
        state = FilterState.from_selections(price_range=[300, 100])
        assert state.price_range == (100, 300)

    def test_from_selections_rejects_unknown_sort(self):
        with pytest.raises(FilterStateError):
            FilterState.from_selections(sort_by="rating")

    def test_from_selections_rejects_empty_stops(self):
        with pytest.raises(FilterStateError):
            FilterState.from_selections(stops=[])

    def test_active_filter_count(self):
        state = FilterState.from_selections(stops=[0], airlines=["IB"], price_range=[50, 100])
        assert state.active_filter_count() == 2
        assert state.active_filter_count(price_bounds=(45, 200)) == 3
        assert state.active_filter_count(price_bounds=(50, 100)) == 2

    def test_to_dict_lists_selected_values(self):
        state = FilterState.from_selections(stops=[1, 0], time_slots=["evening"])
        data = state.to_dict()
        assert data["stops"] == ["0", "1"]
        assert data["time_slots"] == ["evening"]
        assert data["airlines"] == []
        assert data["sort_by"] == "price"


# ============================================================================
# Reducers
# ============================================================================

class TestReducers:
    def test_toggle_stops_from_all_removes_the_bucket(self):
        state = toggle_stops(FilterState(), 0)
        assert state.stops == SubsetOf(frozenset({StopsBucket.ONE_STOP, StopsBucket.TWO_PLUS}))

    def test_toggle_stops_back_restores_all(self):
        state = toggle_stops(toggle_stops(FilterState(), "1"), "1")
        assert state.stops == ALL

    def test_removing_last_stops_option_is_rejected(self):
        state = FilterState.from_selections(stops=["2+"])
        assert toggle_stops(state, "2+") is state

    def test_removing_last_time_slot_is_rejected(self):
        state = FilterState.from_selections(time_slots=["morning"])
        assert toggle_time_slot(state, TimeSlot.MORNING) is state

    def test_select_all_time_slots(self):
        state = FilterState.from_selections(time_slots=["morning"])
        assert select_all_time_slots(state).time_slots == ALL

    def test_toggle_airline_from_all_narrows_to_one(self):
        state = toggle_airline(FilterState(), "LH")
        assert state.airlines == SubsetOf(frozenset({"LH"}))

    def test_toggle_last_airline_returns_to_all(self):
        state = toggle_airline(toggle_airline(FilterState(), "LH"), "LH")
        assert state.airlines == ALL

    def test_clear_airlines(self):
        state = toggle_airline(toggle_airline(FilterState(), "LH"), "IB")
        assert clear_airlines(state).airlines == ALL

    def test_set_price_range_swaps_reversed_bounds(self):
        assert set_price_range(FilterState(), 500, 100).price_range == (100, 500)

    def test_price_handles_keep_their_gap(self):
        state = set_price_range(FilterState(), 100, 200)
        assert set_price_min(state, 195).price_range == (190, 200)
        assert set_price_max(state, 105).price_range == (100, 110)
        assert set_price_min(state, 150).price_range == (150, 200)

    def test_set_sort_accepts_strings(self):
        assert set_sort(FilterState(), "duration").sort_by is SortKey.DURATION

    def test_reset_filters_uses_price_bounds(self):
        assert reset_filters((35, 142)) == FilterState(price_range=(35, 142))

    def test_reducers_do_not_mutate_input(self):
        state = FilterState()
        toggle_stops(state, 0)
        toggle_airline(state, "IB")
        set_price_range(state, 1, 2)
        assert state == FilterState()


# ============================================================================
# Derivation
# ============================================================================

class TestDeriveVisible:
    def test_all_inclusive_filters_keep_every_flight_sorted_by_price(self, flights):
        visible = derive_visible(flights, FilterState())
        assert len(visible) == len(flights)
        assert ids(visible) == ["B", "D", "C", "A", "E"]

    def test_result_is_a_subset_and_input_is_untouched(self, flights):
        original = list(flights)
        state = FilterState.from_selections(stops=[0, 1])
        visible = derive_visible(flights, state)
        assert set(ids(visible)) <= set(ids(flights))
        assert flights == original

    def test_reapplying_with_all_inclusive_filters_is_stable(self, flights):
        state = FilterState.from_selections(airlines=["IB", "VY"], sort_by="duration")
        once = derive_visible(flights, state)
        again = derive_visible(once, FilterState(sort_by=SortKey.DURATION))
        assert again == once

    def test_two_plus_bucket_includes_three_stops(self, flights):
        visible = derive_visible(flights, FilterState.from_selections(stops=["2+"]))
        assert ids(visible) == ["D", "C"]

    def test_price_range_is_inclusive(self, flights):
        visible = derive_visible(flights, FilterState.from_selections(price_range=[45, 120]))
        assert ids(visible) == ["B", "D", "C", "A"]

    def test_empty_airline_selection_behaves_like_select_all(self, flights):
        empty = derive_visible(flights, FilterState.from_selections(airlines=[]))
        everything = derive_visible(flights, FilterState())
        assert empty == everything

    def test_time_slot_uses_local_departure_hour(self, flights):
        visible = derive_visible(flights, FilterState.from_selections(time_slots=["early", "evening"]))
        assert ids(visible) == ["D", "C"]

    def test_slot_boundaries_are_half_open(self, make_flight):
        edge = [make_flight("six", hour=6), make_flight("before", hour=5, minute=59)]
        visible = derive_visible(edge, FilterState.from_selections(time_slots=["morning"]))
        assert ids(visible) == ["six"]

    def test_sort_by_duration(self, flights):
        visible = derive_visible(flights, FilterState(sort_by=SortKey.DURATION))
        assert ids(visible) == ["E", "A", "B", "C", "D"]

    def test_departure_sort_is_stable_for_equal_timestamps(self, make_flight):
        same_time = [
            make_flight("first", price=300, hour=9),
            make_flight("second", price=100, hour=9),
            make_flight("third", price=200, hour=9),
        ]
        visible = derive_visible(same_time, FilterState(sort_by=SortKey.DEPARTURE))
        assert ids(visible) == ["first", "second", "third"]

    def test_equal_prices_keep_provider_order(self, flights):
        assert ids(sort_flights(flights, "price"))[:2] == ["B", "D"]

    def test_empty_input_yields_empty_output(self):
        assert derive_visible([], FilterState.from_selections(stops=[0])) == []

    def test_price_range_wider_than_any_flight(self, flights):
        assert len(derive_visible(flights, FilterState.from_selections(price_range=[0, 10_000]))) == 5

    def test_nonstop_filter_scenario(self, make_flight):
        scenario = [
            make_flight("FR", price=35, stops=0, airline="FR", hour=10),
            make_flight("LH", price=125, stops=1, airline="LH", hour=16),
        ]
        state = FilterState.from_selections(stops=[0], airlines=[], price_range=[0, 2000], sort_by="price")
        assert ids(derive_visible(scenario, state)) == ["FR"]

    def test_matches_can_skip_a_dimension(self, make_flight):
        flight = make_flight("X", stops=1, airline="LH")
        state = FilterState.from_selections(stops=[0], airlines=["LH"])
        assert not matches(flight, state)
        assert matches(flight, state, exclude="stops")
