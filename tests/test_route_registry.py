"""Tests for route upsert, lookup and listing."""
import pytest
from sqlalchemy.dialects import mysql, sqlite
from sqlalchemy.schema import CreateTable

import services.route_registry as registry
from db import db
from models.route import Route
from services.errors import NotFoundError
from services.route_registry import (
    ensure_route, find_route_by_pair, get_route, list_routes, list_trips_for_route,
)

from conftest import add_station, add_trip


def test_find_by_pair_miss_raises_not_found(app):
    with pytest.raises(NotFoundError):
        find_route_by_pair("Kochi", "Kozhikode")


def test_ensure_route_creates_once_for_sequential_callers(app):
    first = ensure_route("Kochi", "Kozhikode")
    second = ensure_route("Kochi", "Kozhikode")

    assert first.id == second.id
    assert Route.query.filter_by(from_location="Kochi", to_location="Kozhikode").count() == 1


def test_ensure_route_is_exact_text(app):
    a = ensure_route("Kochi", "Kozhikode")
    b = ensure_route("kochi", "Kozhikode")
    c = ensure_route("Kozhikode", "Kochi")

    assert len({a.id, b.id, c.id}) == 3


def test_ensure_route_recovers_from_concurrent_insert(app, monkeypatch):
    # another writer committed the row between our lookup and our insert
    winner = Route(from_location="Thrissur", to_location="Kochi")
    db.session.add(winner)
    db.session.commit()
    winner_id = winner.id

    real_find = registry.find_route_by_pair
    calls = {"n": 0}

    def stale_then_real(f, t):
        calls["n"] += 1
        if calls["n"] == 1:
            raise NotFoundError()
        return real_find(f, t)

    monkeypatch.setattr(registry, "find_route_by_pair", stale_then_real)

    route = ensure_route("Thrissur", "Kochi")

    assert route.id == winner_id
    assert Route.query.count() == 1


def test_get_route_missing(app):
    with pytest.raises(NotFoundError):
        get_route(999)


def test_list_routes_filters_and_orders_newest_first(app):
    ensure_route("Kochi", "Kozhikode")
    ensure_route("Kochi", "Thiruvananthapuram")
    ensure_route("Thrissur", "Kochi")

    assert [r.to_location for r in list_routes()] == ["Kochi", "Thiruvananthapuram", "Kozhikode"]
    assert {r.to_location for r in list_routes(from_filter="koc")} == {"Kozhikode", "Thiruvananthapuram"}
    assert [r.from_location for r in list_routes(to_filter="KOCHI")] == ["Thrissur"]
    assert list_routes(from_filter="Kochi", to_filter="thiru")[0].to_location == "Thiruvananthapuram"


def test_trips_for_route_have_sorted_timings(app):
    a, b, c = add_station("A"), add_station("B"), add_station("C")
    trip = add_trip([(c, 3, "10:00", None), (a, 1, None, "08:00"), (b, 2, "09:00", "09:05")])

    trips = list_trips_for_route(trip.route_id)

    assert [t.id for t in trips] == [trip.id]
    assert [st.sequence_order for st in trips[0].timings] == [1, 2, 3]


def test_route_labels_compare_case_sensitively_on_mysql():
    ddl = str(CreateTable(Route.__table__).compile(dialect=mysql.dialect()))
    assert ddl.count("COLLATE utf8mb4_bin") == 2

    sqlite_ddl = str(CreateTable(Route.__table__).compile(dialect=sqlite.dialect()))
    assert "COLLATE" not in sqlite_ddl
