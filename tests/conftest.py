"""Pytest fixtures: app on in-memory SQLite, client, signed-in user, sample network."""
from datetime import time

import pytest

from app import create_app
from config import TestingConfig
from db import db
from models.app_user import AppUser
from models.route import Route
from models.schedule import Trip, StopTiming
from models.station import Station
from auth_guard import SESSION_KEY


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user(app):
    u = AppUser(firebase_uid="uid-123", email="rider@example.com", display_name="Rider")
    db.session.add(u)
    db.session.commit()
    return u


@pytest.fixture
def logged_in_client(client, user):
    with client.session_transaction() as sess:
        sess[SESSION_KEY] = user.id
    return client


def add_station(name, location=None):
    st = Station(station_name=name, location=location)
    db.session.add(st)
    db.session.flush()
    return st


def add_trip(stops, *, from_location="Kannur", to_location="Malappuram", bus_name="Express", category="local"):
    """
    stops: [(station, seq, arrival "HH:MM"|None, departure "HH:MM"|None)], inserted in the given order.
    """
    route = Route.query.filter_by(from_location=from_location, to_location=to_location).first()
    if route is None:
        route = Route(from_location=from_location, to_location=to_location)
        db.session.add(route)
        db.session.flush()

    trip = Trip(route_id=route.id, bus_name=bus_name, category=category)
    db.session.add(trip)
    db.session.flush()

    def _t(v):
        if not v:
            return None
        h, m = v.split(":")
        return time(int(h), int(m))

    for station, seq, arr, dep in stops:
        db.session.add(StopTiming(
            trip_id=trip.id, station_id=station.id, sequence_order=seq,
            arrival_time=_t(arr), departure_time=_t(dep),
        ))
    db.session.commit()
    return trip


@pytest.fixture
def kerala(app):
    """
    Stations Kannur, Kozhikode, Manjeri, Malappuram and one overnight trip
    calling at all four in order.
    """
    kannur = add_station("Kannur", "KSRTC Stand")
    kozhikode = add_station("Kozhikode", "Mofussil Stand")
    manjeri = add_station("Manjeri")
    malappuram = add_station("Malappuram")
    trip = add_trip([
        (kannur, 1, None, "22:00"),
        (kozhikode, 2, "23:00", "23:05"),
        (manjeri, 3, "00:00", "00:05"),
        (malappuram, 4, "01:00", None),
    ])
    return {
        "kannur": kannur,
        "kozhikode": kozhikode,
        "manjeri": manjeri,
        "malappuram": malappuram,
        "trip": trip,
    }
