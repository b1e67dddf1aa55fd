# models/schedule.py
from __future__ import annotations
from db import db
from sqlalchemy.sql import func
from utils.formatting import default_stop_duration

TRIP_CATEGORIES = ("local", "limited_stop", "ksrtc")


class Trip(db.Model):
    __tablename__ = 'trips'

    id             = db.Column(db.Integer, primary_key=True)
    route_id       = db.Column(db.Integer, db.ForeignKey('routes.id'), nullable=False, index=True)
    bus_name       = db.Column(db.String(128), nullable=True)
    bus_number     = db.Column(db.String(32),  nullable=True)
    operator_name  = db.Column(db.String(128), nullable=True)
    contact        = db.Column(db.String(32),  nullable=True)
    category       = db.Column(db.String(20),  nullable=False, default='local')
    total_duration = db.Column(db.String(64),  nullable=True)

    # quick timings carry a single departure and a free-text stop list instead of timings
    departure_time = db.Column(db.Time,        nullable=True)
    stops_note     = db.Column(db.Text,        nullable=True)

    created_by     = db.Column(db.Integer, db.ForeignKey('app_users.id'), nullable=True)
    created_at     = db.Column(db.DateTime, server_default=func.now(), nullable=False)

    route = db.relationship('Route', back_populates='trips')

    # no order_by here: callers sort by sequence_order themselves
    timings = db.relationship(
        'StopTiming',
        back_populates='trip',
        cascade='all, delete-orphan'
    )

    @property
    def category_label(self) -> str:
        return (self.category or '').replace('_', ' ')

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "route_id": self.route_id,
            "bus_name": self.bus_name,
            "bus_number": self.bus_number,
            "operator_name": self.operator_name,
            "contact": self.contact,
            "category": self.category,
            "total_duration": self.total_duration,
            "departure_time": self.departure_time.strftime("%H:%M") if self.departure_time else None,
            "stops_note": self.stops_note,
        }


class StopTiming(db.Model):
    __tablename__ = 'trip_timings'
    __table_args__ = (
        db.UniqueConstraint('trip_id', 'sequence_order', name='uq_trip_timings_trip_seq'),
    )

    id             = db.Column(db.Integer, primary_key=True)
    trip_id        = db.Column(db.Integer, db.ForeignKey('trips.id', ondelete='CASCADE'), nullable=False, index=True)
    station_id     = db.Column(db.Integer, db.ForeignKey('bus_stations.id'), nullable=False, index=True)
    arrival_time   = db.Column(db.Time, nullable=True)
    departure_time = db.Column(db.Time, nullable=True)   # the terminus may leave this empty
    stop_duration  = db.Column(db.Integer, nullable=False, default=default_stop_duration)   # minutes
    sequence_order = db.Column(db.Integer, nullable=False)

    trip    = db.relationship('Trip', back_populates='timings')
    station = db.relationship('Station', back_populates='timings')
