# models/station.py
from __future__ import annotations
from db import db
from sqlalchemy.sql import func

class Station(db.Model):
    __tablename__ = "bus_stations"

    id           = db.Column(db.Integer, primary_key=True)
    # names are NOT unique: two "Bus Stand" rows in different towns are normal
    station_name = db.Column(db.String(128), nullable=False, index=True)
    location     = db.Column(db.String(128), nullable=True)
    created_at   = db.Column(db.DateTime, server_default=func.now(), nullable=False)

    timings = db.relationship("StopTiming", back_populates="station")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "station_name": self.station_name,
            "location": self.location,
        }

    def __repr__(self) -> str:
        return f"<Station {self.id} {self.station_name!r}>"
