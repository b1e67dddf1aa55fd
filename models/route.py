# models/route.py
from __future__ import annotations
from db import db
from sqlalchemy.dialects import mysql
from sqlalchemy.sql import func

# MySQL's default collations fold case; labels must compare byte for byte
RouteLabel = db.String(128).with_variant(mysql.VARCHAR(128, collation="utf8mb4_bin"), "mysql", "mariadb")


class Route(db.Model):
    __tablename__ = "routes"
    __table_args__ = (
        # exact-text pair; casing variants are distinct routes
        db.UniqueConstraint("from_location", "to_location", name="uq_routes_from_to"),
    )

    id            = db.Column(db.Integer, primary_key=True)
    from_location = db.Column(RouteLabel, nullable=False)
    to_location   = db.Column(RouteLabel, nullable=False)
    created_at    = db.Column(db.DateTime, server_default=func.now(), nullable=False, index=True)

    trips = db.relationship("Trip", back_populates="route", order_by="Trip.id")

    @property
    def label(self) -> str:
        return f"{self.from_location} → {self.to_location}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "from_location": self.from_location,
            "to_location": self.to_location,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
