# services/stations.py
"""
Station directory: list, add, and resolve free-text queries to candidate stations.
"""
from __future__ import annotations

from typing import List, Optional, Set

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from db import db
from models.station import Station
from services.errors import StoreError, ValidationError


def _clean(v: Optional[str]) -> str:
    return (v or "").strip()


def list_stations() -> List[Station]:
    try:
        return Station.query.order_by(Station.station_name.asc(), Station.id.asc()).all()
    except SQLAlchemyError as e:
        current_app.logger.exception("[stations] list failed")
        raise StoreError() from e


def get_station(station_id: int) -> Optional[Station]:
    return db.session.get(Station, station_id)


def add_station(name: Optional[str], location: Optional[str] = None) -> Station:
    station_name = _clean(name)
    if not station_name:
        raise ValidationError("Station name is required")

    station = Station(station_name=station_name, location=_clean(location) or None)
    try:
        db.session.add(station)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("[stations] insert failed name=%r", station_name)
        raise StoreError() from e

    current_app.logger.info("[stations] added id=%s name=%r location=%r",
                            station.id, station.station_name, station.location)
    return station


def resolve_candidates(query: Optional[str]) -> Set[Station]:
    """
    Every station whose name contains `query`, case-insensitively.

    Names are not unique, so the result is a set of equally valid candidates
    with no ranking. A blank query resolves to nothing.
    """
    needle = _clean(query).lower()
    if not needle:
        return set()

    rows = (
        Station.query
        .filter(func.lower(Station.station_name).contains(needle, autoescape=True))
        .all()
    )
    return set(rows)
