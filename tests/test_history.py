from datetime import date

from flight_finder.history import Favorites, HistoryEntry, SearchHistory
from flight_finder.schema import SearchParams


def params(origin="MAD", destination="BCN", day=14, passengers=1):
    return SearchParams(
        origin=origin,
        destination=destination,
        departure_date=date(2030, 6, day),
        passengers=passengers,
    )


class TestSearchHistory:
    def test_add_records_city_names(self):
        history = SearchHistory()
        entry = history.add(params())
        assert entry.origin_city == "Madrid"
        assert entry.destination_city == "Barcelona"
        assert entry.id.startswith("search-")

    def test_newest_first(self):
        history = SearchHistory()
        history.add(params(destination="BCN"))
        history.add(params(destination="LHR"))
        assert [e.destination for e in history.entries()] == ["LHR", "BCN"]

    def test_repeated_search_moves_to_top(self):
        history = SearchHistory()
        history.add(params(destination="BCN"))
        history.add(params(destination="LHR"))
        history.add(params(destination="BCN", passengers=3))
        entries = history.entries()
        assert len(entries) == 2
        assert entries[0].destination == "BCN"
        assert entries[0].passengers == 3

    def test_capped_at_max_items(self):
        history = SearchHistory()
        for day in range(1, 16):
            history.add(params(day=day))
        assert len(history) == 10
        assert history.entries()[0].departure_date == date(2030, 6, 15)

    def test_remove_and_clear(self):
        history = SearchHistory()
        entry = history.add(params())
        assert history.remove(entry.id)
        assert not history.remove(entry.id)
        history.add(params())
        history.clear()
        assert len(history) == 0

    def test_round_trip_through_dicts(self):
        history = SearchHistory()
        history.add(params())
        restored = SearchHistory()
        restored.load(history.to_list())
        assert restored.entries() == history.entries()

    def test_entry_rebuilds_search_params(self):
        entry = SearchHistory().add(params(passengers=2))
        assert entry.to_search_params() == params(passengers=2)

    def test_from_dict_defaults_city_to_code(self):
        entry = HistoryEntry.from_dict({
            "id": "search-1",
            "origin": "MAD",
            "destination": "XXX",
            "departure_date": "2030-06-14",
            "searched_at": "2030-06-01T10:00:00+00:00",
        })
        assert entry.destination_city == "XXX"
        assert entry.passengers == 1


class TestFavorites:
    def test_add_once_per_flight(self, make_flight):
        favorites = Favorites()
        flight = make_flight("FL001", price=89)
        assert favorites.add(flight)
        assert not favorites.add(flight)
        assert len(favorites) == 1
        assert favorites.is_favorite("FL001")

        saved = favorites.entries()[0]
        assert saved.price == 89
        assert saved.origin_city == "Madrid"

    def test_toggle(self, make_flight):
        favorites = Favorites()
        flight = make_flight("FL001")
        assert favorites.toggle(flight) is True
        assert favorites.toggle(flight) is False
        assert not favorites.is_favorite("FL001")

    def test_capped_newest_first(self, make_flight):
        favorites = Favorites(max_items=2)
        for flight_id in ("a", "b", "c"):
            favorites.add(make_flight(flight_id))
        assert [f.flight_id for f in favorites.entries()] == ["c", "b"]

    def test_round_trip_through_dicts(self, make_flight):
        favorites = Favorites()
        favorites.add(make_flight("FL001"))
        restored = Favorites()
        restored.load(favorites.to_list())
        assert restored.entries() == favorites.entries()
