from flight_finder.directory import (
    AIRLINES,
    POPULAR_CODES,
    InMemoryAirportDirectory,
    get_airline,
    get_airport_directory,
)
from flight_finder.schema import Airport


def codes(airports):
    return [a.code for a in airports]


def test_exact_code_ranks_first():
    results = get_airport_directory().search("mad")
    assert results[0].code == "MAD"


def test_search_by_city_matches_every_airport_in_it():
    results = get_airport_directory().search("London")
    assert {"LHR", "LGW"} <= set(codes(results))
    assert all(a.city == "London" for a in results[:2])


def test_search_by_country():
    results = get_airport_directory().search("spain", limit=50)
    assert "BCN" in codes(results)
    assert all(a.country == "Spain" for a in results)


def test_short_query_returns_nothing():
    assert get_airport_directory().search("m") == []
    assert get_airport_directory().search("  ") == []


def test_exclude_code_and_limit():
    results = get_airport_directory().search("lon", exclude_code="lhr", limit=3)
    assert "LHR" not in codes(results)
    assert len(results) <= 3


def test_city_prefix_beats_substring_match():
    directory = InMemoryAirportDirectory([
        Airport("XYZ", "Sparis", "Sparis Field", "Nowhere"),
        Airport("PAR", "Paris", "Paris Field", "France"),
    ])
    assert codes(directory.search("par")) == ["PAR", "XYZ"]


def test_by_code_is_case_insensitive():
    assert get_airport_directory().by_code("bcn").city == "Barcelona"
    assert get_airport_directory().by_code("ZZZ") is None


def test_popular_airports():
    popular = get_airport_directory().popular(exclude_code="MAD")
    assert len(popular) == 6
    assert "MAD" not in codes(popular)
    assert set(codes(popular)) <= set(POPULAR_CODES)


def test_get_airline():
    assert get_airline("fr") == AIRLINES["FR"]
    unknown = get_airline("zz")
    assert unknown.code == "ZZ"
    assert unknown.name == "ZZ"
