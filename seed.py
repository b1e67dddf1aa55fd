#!/usr/bin/env python3
# seed.py

from db import db
from models.station import Station
from services.route_registry import ensure_route
from services.trip_authoring import StopDraft, StopList, TripMetadata, create_trip

# name → location label
DEMO_STATIONS = [
    ("Kannur", "Kannur KSRTC Bus Stand"),
    ("Kozhikode", "Mofussil Bus Stand"),
    ("Manjeri", "Manjeri Bus Stand"),
    ("Malappuram", "Malappuram KSRTC Bus Stand"),
    ("Thrissur", "Sakthan Thampuran Stand"),
    ("Kochi", "Vyttila Mobility Hub"),
    ("Palakkad", "Palakkad KSRTC Bus Stand"),
    ("Thiruvananthapuram", "Thampanoor Central"),
]


def _station(name: str, location: str) -> Station:
    st = Station.query.filter_by(station_name=name, location=location).first()
    if not st:
        st = Station(station_name=name, location=location)
        db.session.add(st)
        db.session.flush()
        print(f"➕ Station {name}")
    return st


def seed_demo():
    """
    Sample stations plus one overnight Kannur → Malappuram trip.

    Safe to run more than once: stations are matched by name + location and
    the trip is only added when its route has no trips yet.
    """
    by_name = {name: _station(name, loc) for name, loc in DEMO_STATIONS}
    db.session.commit()

    route = ensure_route("Kannur", "Malappuram")
    if route.trips:
        print("🔄 Kannur → Malappuram already has trips; skipping.")
        return

    stops = StopList.of([
        StopDraft(station_id=str(by_name["Kannur"].id), departure_time="22:00"),
        StopDraft(station_id=str(by_name["Kozhikode"].id), arrival_time="23:00", departure_time="23:05"),
        StopDraft(station_id=str(by_name["Manjeri"].id), arrival_time="00:00", departure_time="00:05"),
        StopDraft(station_id=str(by_name["Malappuram"].id), arrival_time="01:00"),
    ])
    meta = TripMetadata(
        from_location="Kannur",
        to_location="Malappuram",
        bus_name="KSRTC Express",
        bus_number="KL-13-1234",
        operator_name="KSRTC",
        category="ksrtc",
        total_duration="3 hours",
    )
    trip = create_trip(meta, stops)
    print(f"✅ Seeded trip #{trip.id} on route #{trip.route_id}")


if __name__ == "__main__":
    from app import create_app
    app = create_app()
    with app.app_context():
        seed_demo()
