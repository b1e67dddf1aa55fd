# services/trip_search.py
"""
Trip matching: free-text "from"/"to" queries → trips serving both ends.

  1. resolve each query to a candidate station set (services.stations)
  2. load the full stop list of every trip touching either set, sorted by sequence
  3. keep trips that contain an F stop and a T stop
  4. anchor each match on its first F stop and first T stop

By default ordering between the F and T stops is NOT enforced, so swapping
the queries returns the same trips with the anchors swapped. Set
SEARCH_ENFORCE_DIRECTION (or pass directional=True) to only keep trips where
an F stop comes strictly before a T stop.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from db import db
from models.schedule import Trip, StopTiming
from models.station import Station
from services.stations import resolve_candidates


@dataclass
class TripMatch:
    trip: Trip
    stops: List[StopTiming]
    from_stop: StopTiming
    to_stop: StopTiming
    from_candidates: Set[int] = field(default_factory=set)
    to_candidates: Set[int] = field(default_factory=set)

    def role_of(self, stop: StopTiming) -> Optional[str]:
        """'from' / 'to' for the anchor rows, None otherwise (used for highlighting)."""
        if stop is self.from_stop:
            return "from"
        if stop is self.to_stop:
            return "to"
        return None

    def to_dict(self) -> dict:
        return {
            "trip": self.trip.to_dict(),
            "route": self.trip.route.to_dict() if self.trip.route else None,
            "from_stop": stop_to_dict(self.from_stop),
            "to_stop": stop_to_dict(self.to_stop),
            "stops": [stop_to_dict(s) for s in self.stops],
        }


def _fmt(t) -> Optional[str]:
    return t.strftime("%H:%M") if t else None


def stop_to_dict(st: StopTiming) -> dict:
    return {
        "sequence_order": st.sequence_order,
        "station": st.station.to_dict() if st.station else {"id": st.station_id},
        "arrival_time": _fmt(st.arrival_time),
        "departure_time": _fmt(st.departure_time),
        "stop_duration": st.stop_duration,
    }


def ordered_stops(timings: Iterable[StopTiming]) -> List[StopTiming]:
    """Stop list in travel order; storage order is never trusted."""
    return sorted(timings, key=lambda st: st.sequence_order)


def load_stop_sequences(station_ids: Set[int]) -> Dict[int, List[StopTiming]]:
    """
    Full, ordered stop list for every trip that calls at any of `station_ids`,
    keyed by trip id in ascending id order.
    """
    if not station_ids:
        return {}

    trip_ids = [
        tid for (tid,) in (
            db.session.query(StopTiming.trip_id)
            .filter(StopTiming.station_id.in_(station_ids))
            .distinct()
            .all()
        )
    ]
    if not trip_ids:
        return {}

    rows = (
        StopTiming.query
        .options(joinedload(StopTiming.station), joinedload(StopTiming.trip).joinedload(Trip.route))
        .filter(StopTiming.trip_id.in_(trip_ids))
        .all()
    )

    by_trip: Dict[int, List[StopTiming]] = {}
    for st in rows:
        by_trip.setdefault(st.trip_id, []).append(st)
    return {tid: ordered_stops(by_trip[tid]) for tid in sorted(by_trip)}


def match_trip(stops: Sequence[StopTiming], from_ids: Set[int], to_ids: Set[int],
               *, directional: bool = False) -> Optional[tuple[StopTiming, StopTiming]]:
    """
    (from_anchor, to_anchor) when the ordered `stops` serve both candidate sets,
    else None. Anchors are the first qualifying stop of each side.
    """
    first_from = next((s for s in stops if s.station_id in from_ids), None)
    if first_from is None:
        return None

    if not directional:
        first_to = next((s for s in stops if s.station_id in to_ids), None)
        return (first_from, first_to) if first_to is not None else None

    # a T stop strictly after the earliest F stop is all we need
    first_to = next(
        (s for s in stops if s.station_id in to_ids and s.sequence_order > first_from.sequence_order),
        None,
    )
    return (first_from, first_to) if first_to is not None else None


def find_trips(from_query: Optional[str], to_query: Optional[str],
               *, directional: Optional[bool] = None) -> List[TripMatch]:
    """
    Trips serving both queries. Never raises: a store failure is logged and
    degrades to an empty result.
    """
    if directional is None:
        directional = bool(current_app.config.get("SEARCH_ENFORCE_DIRECTION", False))

    try:
        from_stations: Set[Station] = resolve_candidates(from_query)
        to_stations: Set[Station] = resolve_candidates(to_query)
        if not from_stations or not to_stations:
            current_app.logger.info(
                "[search] no candidates from=%r (%d) to=%r (%d)",
                from_query, len(from_stations), to_query, len(to_stations),
            )
            return []

        from_ids = {s.id for s in from_stations}
        to_ids = {s.id for s in to_stations}
        sequences = load_stop_sequences(from_ids | to_ids)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("[search] lookup failed from=%r to=%r", from_query, to_query)
        return []

    matches: List[TripMatch] = []
    for trip_id, stops in sequences.items():
        anchors = match_trip(stops, from_ids, to_ids, directional=directional)
        if anchors is None:
            continue
        matches.append(TripMatch(
            trip=stops[0].trip,
            stops=stops,
            from_stop=anchors[0],
            to_stop=anchors[1],
            from_candidates=from_ids,
            to_candidates=to_ids,
        ))

    current_app.logger.info("[search] from=%r to=%r directional=%s → %d trip(s)",
                            from_query, to_query, directional, len(matches))
    return matches
