# services/trip_authoring.py
"""
Trip authoring.

The stop rows of the "add trip" form live in an explicit, immutable StopList.
Edits go through command objects (AddStop / RemoveStop / UpdateStopField);
each returns a new snapshot with sequence positions renumbered 1..N.

Public API:
  - StopDraft, StopList, AddStop, RemoveStop, UpdateStopField
  - TripMetadata
  - validate_trip(metadata, stops) -> [ValidatedStop]        (ValidationError, no writes)
  - create_trip(metadata, stops, created_by=None) -> Trip
  - create_quick_timing(...) -> Trip

create_trip writes route, trip and stop-timings in ONE session transaction;
any failing step rolls the whole unit back.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import time
from typing import List, Optional, Tuple

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from db import db
from models.schedule import TRIP_CATEGORIES, Trip, StopTiming
from models.station import Station
from services.errors import PartialWriteError, StoreError, ValidationError
from services.route_registry import ensure_route
from utils.formatting import DEFAULT_STOP_DURATION, default_stop_duration, parse_time_of_day

MIN_STOPS = 2
STOP_FIELDS = ("station_id", "arrival_time", "departure_time", "stop_duration")


# ---------- ordered stop list + commands ----------

@dataclass(frozen=True)
class StopDraft:
    """One editable stop row; values are kept as raw form strings."""
    station_id: str = ""
    arrival_time: str = ""
    departure_time: str = ""
    stop_duration: str = str(DEFAULT_STOP_DURATION)
    sequence_order: int = 0


@dataclass(frozen=True)
class StopList:
    stops: Tuple[StopDraft, ...] = ()

    @classmethod
    def blank(cls, count: int = MIN_STOPS) -> "StopList":
        return cls.of([StopDraft() for _ in range(count)])

    @classmethod
    def of(cls, drafts) -> "StopList":
        """Snapshot of `drafts` in the given order, renumbered from 1."""
        return cls(tuple(replace(d, sequence_order=i) for i, d in enumerate(drafts, start=1)))

    def __len__(self) -> int:
        return len(self.stops)

    def __iter__(self):
        return iter(self.stops)

    def __getitem__(self, index: int) -> StopDraft:
        return self.stops[index]


@dataclass(frozen=True)
class AddStop:
    """Insert an empty row at `index` (append when None)."""
    index: Optional[int] = None
    draft: StopDraft = field(default_factory=StopDraft)

    def apply(self, stop_list: StopList) -> StopList:
        rows = list(stop_list.stops)
        at = len(rows) if self.index is None else max(0, min(self.index, len(rows)))
        rows.insert(at, self.draft)
        return StopList.of(rows)


@dataclass(frozen=True)
class RemoveStop:
    index: int

    def apply(self, stop_list: StopList) -> StopList:
        if not 0 <= self.index < len(stop_list):
            raise IndexError(f"no stop at position {self.index}")
        rows = [d for i, d in enumerate(stop_list.stops) if i != self.index]
        return StopList.of(rows)


@dataclass(frozen=True)
class UpdateStopField:
    index: int
    field: str
    value: str

    def apply(self, stop_list: StopList) -> StopList:
        if self.field not in STOP_FIELDS:
            raise ValueError(f"unknown stop field: {self.field}")
        if not 0 <= self.index < len(stop_list):
            raise IndexError(f"no stop at position {self.index}")
        rows = list(stop_list.stops)
        rows[self.index] = replace(rows[self.index], **{self.field: (self.value or "").strip()})
        return StopList.of(rows)


# ---------- validation ----------

@dataclass
class TripMetadata:
    from_location: str = ""
    to_location: str = ""
    bus_name: str = ""
    bus_number: str = ""
    operator_name: str = ""
    contact: str = ""
    category: str = "local"
    total_duration: str = ""

    @classmethod
    def from_mapping(cls, data) -> "TripMetadata":
        return cls(**{
            k: str(data.get(k) or "").strip()
            for k in cls.__dataclass_fields__
            if data.get(k) is not None
        })


@dataclass
class ValidatedStop:
    station_id: int
    arrival_time: Optional[time]
    departure_time: Optional[time]
    stop_duration: int
    sequence_order: int


def _opt(v: Optional[str]) -> Optional[str]:
    v = (v or "").strip()
    return v or None


def _parse_time(raw: str, label: str, seq: int) -> Optional[time]:
    try:
        return parse_time_of_day(raw)
    except ValueError:
        raise ValidationError(f"Stop {seq}: invalid {label} time")


def _parse_duration(raw: str, seq: int) -> int:
    s = (raw or "").strip()
    if not s:
        return default_stop_duration()
    try:
        minutes = int(s)
    except ValueError:
        raise ValidationError(f"Stop {seq}: stop duration must be a whole number of minutes")
    if minutes < 0:
        raise ValidationError(f"Stop {seq}: stop duration cannot be negative")
    return minutes


def _validate_route_fields(meta: TripMetadata) -> None:
    if not meta.from_location.strip() or not meta.to_location.strip():
        raise ValidationError("From and To locations are required")
    if meta.category not in TRIP_CATEGORIES:
        raise ValidationError("Bus category must be one of: " + ", ".join(TRIP_CATEGORIES))


def validate_trip(meta: TripMetadata, stops: StopList) -> List[ValidatedStop]:
    """
    Check the whole submission and return typed stop rows.
    Raises ValidationError on the first problem; only reads the store.
    """
    _validate_route_fields(meta)
    if not meta.bus_name.strip():
        raise ValidationError("Bus name is required")
    if len(stops) < MIN_STOPS:
        raise ValidationError(f"At least {MIN_STOPS} stations are required")

    for d in stops:
        if not (d.station_id or "").strip():
            raise ValidationError("All stations must be selected")
    last = len(stops)
    for seq, d in enumerate(stops, start=1):
        # the terminus has nowhere to depart to
        if not (d.departure_time or "").strip() and seq != last:
            raise ValidationError("All stations must have departure time")

    out: List[ValidatedStop] = []
    for seq, d in enumerate(stops, start=1):
        try:
            station_id = int(d.station_id)
        except ValueError:
            raise ValidationError(f"Stop {seq}: invalid station")
        out.append(ValidatedStop(
            station_id=station_id,
            arrival_time=_parse_time(d.arrival_time, "arrival", seq),
            departure_time=_parse_time(d.departure_time, "departure", seq),
            stop_duration=_parse_duration(d.stop_duration, seq),
            sequence_order=seq,
        ))

    wanted = {v.station_id for v in out}
    try:
        known = {sid for (sid,) in db.session.query(Station.id).filter(Station.id.in_(wanted)).all()}
    except SQLAlchemyError as e:
        current_app.logger.exception("[authoring] station check failed")
        raise StoreError() from e
    missing = wanted - known
    if missing:
        raise ValidationError("Selected station does not exist: " + ", ".join(str(m) for m in sorted(missing)))

    return out


# ---------- writes ----------

def create_trip(meta: TripMetadata, stops: StopList, *, created_by: Optional[int] = None) -> Trip:
    """
    Route upsert → trip insert → stop-timing bulk insert, committed together.
    """
    validated = validate_trip(meta, stops)

    route = ensure_route(meta.from_location.strip(), meta.to_location.strip(), commit=False)

    trip = Trip(
        route_id=route.id,
        bus_name=meta.bus_name.strip(),
        bus_number=_opt(meta.bus_number),
        operator_name=_opt(meta.operator_name),
        contact=_opt(meta.contact),
        category=meta.category,
        total_duration=_opt(meta.total_duration),
        created_by=created_by,
    )
    try:
        db.session.add(trip)
        db.session.flush()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("[authoring] trip insert failed route=%s", route.id)
        raise StoreError() from e

    try:
        db.session.add_all([
            StopTiming(
                trip_id=trip.id,
                station_id=v.station_id,
                arrival_time=v.arrival_time,
                departure_time=v.departure_time,
                stop_duration=v.stop_duration,
                sequence_order=v.sequence_order,
            )
            for v in validated
        ])
        db.session.flush()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("[authoring] timings insert failed, trip + route rolled back")
        raise PartialWriteError("Bus trip could not be saved; nothing was stored. Please try again.") from e

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("[authoring] commit failed")
        raise StoreError() from e

    current_app.logger.info("[authoring] trip id=%s route=%s stops=%d by=%s",
                            trip.id, route.id, len(validated), created_by)
    return trip


def create_quick_timing(meta: TripMetadata, departure_time: Optional[str], stops_note: Optional[str] = None,
                        *, created_by: Optional[int] = None) -> Trip:
    """A bare departure time for a route; no stop-timings, so it never shows up in search."""
    _validate_route_fields(meta)
    if not (departure_time or "").strip():
        raise ValidationError("Departure time is required")
    try:
        dep = parse_time_of_day(departure_time)
    except ValueError:
        raise ValidationError("Invalid departure time")

    route = ensure_route(meta.from_location.strip(), meta.to_location.strip(), commit=False)
    trip = Trip(
        route_id=route.id,
        bus_name=_opt(meta.bus_name),
        contact=_opt(meta.contact),
        category=meta.category,
        departure_time=dep,
        stops_note=_opt(stops_note),
        created_by=created_by,
    )
    try:
        db.session.add(trip)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("[authoring] quick timing insert failed route=%s", route.id)
        raise StoreError() from e

    current_app.logger.info("[authoring] quick timing id=%s route=%s by=%s", trip.id, route.id, created_by)
    return trip
