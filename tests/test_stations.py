"""Tests for the station directory and candidate resolution."""
import pytest

from models.station import Station
from services.errors import ValidationError
from services.stations import add_station, list_stations, resolve_candidates

from conftest import add_station as make_station


class TestResolveCandidates:
    def test_duplicate_names_are_all_candidates(self, app):
        a = make_station("Bus Stand", "Manjeri")
        b = make_station("Bus Stand", "Tirur")
        make_station("Kozhikode")

        found = resolve_candidates("bus stand")

        assert {s.id for s in found} == {a.id, b.id}

    def test_substring_case_insensitive(self, app):
        kozhikode = make_station("Kozhikode")
        make_station("Kannur")

        assert {s.id for s in resolve_candidates("ZHIK")} == {kozhikode.id}

    def test_no_match_is_empty_set(self, app):
        make_station("Kannur")
        assert resolve_candidates("Munnar") == set()

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_blank_query_resolves_to_nothing(self, app, query):
        make_station("Kannur")
        assert resolve_candidates(query) == set()

    def test_wildcards_are_literal(self, app):
        make_station("Kannur")
        assert resolve_candidates("%") == set()
        assert resolve_candidates("_") == set()


class TestAddStation:
    def test_trims_and_nulls_blank_location(self, app):
        st = add_station("  Thrissur ", "   ")
        assert st.station_name == "Thrissur"
        assert st.location is None
        assert Station.query.count() == 1

    def test_name_required(self, app):
        with pytest.raises(ValidationError, match="Station name is required"):
            add_station("   ", "Somewhere")
        assert Station.query.count() == 0

    def test_list_is_sorted_by_name(self, app):
        add_station("Thrissur")
        add_station("Kannur")
        add_station("Kochi")
        assert [s.station_name for s in list_stations()] == ["Kannur", "Kochi", "Thrissur"]
