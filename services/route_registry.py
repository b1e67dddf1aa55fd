# services/route_registry.py
"""
Route registry: (from_location, to_location) label pairs used to group trips.

Public API:
  - find_route_by_pair(from_location, to_location) -> Route      (NotFoundError on miss)
  - ensure_route(from_location, to_location, commit=True) -> Route
  - list_routes(from_filter=None, to_filter=None) -> [Route]
  - get_route(route_id) -> Route                                 (NotFoundError on miss)
  - list_trips_for_route(route_id) -> [Trip]

Pairs match on exact text: "Kochi" and "kochi " are different routes.
"""
from __future__ import annotations

from typing import List, Optional

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload

from db import db
from models.route import Route
from models.schedule import Trip, StopTiming
from services.errors import NotFoundError, StoreError


def find_route_by_pair(from_location: str, to_location: str) -> Route:
    route = (
        Route.query
        .filter(Route.from_location == from_location, Route.to_location == to_location)
        .order_by(Route.id.asc())
        .first()
    )
    if route is None:
        raise NotFoundError(f"No route {from_location!r} → {to_location!r}")
    return route


def ensure_route(from_location: str, to_location: str, *, commit: bool = True) -> Route:
    """
    Return the route for the exact pair, creating it on first use.

    With commit=False the new row is only flushed, so the caller's unit of
    work owns it. A concurrent writer that wins the insert trips the unique
    constraint; we then re-read its row instead of failing.
    """
    try:
        return find_route_by_pair(from_location, to_location)
    except NotFoundError:
        pass  # expected: fall through to create
    except SQLAlchemyError as e:
        current_app.logger.exception("[routes] lookup failed %r → %r", from_location, to_location)
        raise StoreError() from e

    route = Route(from_location=from_location, to_location=to_location)
    try:
        db.session.add(route)
        if commit:
            db.session.commit()
        else:
            db.session.flush()
    except IntegrityError:
        # lost the race; the route is the first write of any unit of work, so a full rollback is safe
        db.session.rollback()
        current_app.logger.info("[routes] concurrent create of %r → %r, re-reading", from_location, to_location)
        try:
            return find_route_by_pair(from_location, to_location)
        except (NotFoundError, SQLAlchemyError) as e:
            current_app.logger.exception("[routes] re-read after conflict failed")
            raise StoreError() from e
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("[routes] insert failed %r → %r", from_location, to_location)
        raise StoreError() from e

    current_app.logger.info("[routes] created id=%s %r → %r", route.id, from_location, to_location)
    return route


def list_routes(from_filter: Optional[str] = None, to_filter: Optional[str] = None) -> List[Route]:
    try:
        q = Route.query
        if from_filter and from_filter.strip():
            q = q.filter(func.lower(Route.from_location).contains(from_filter.strip().lower(), autoescape=True))
        if to_filter and to_filter.strip():
            q = q.filter(func.lower(Route.to_location).contains(to_filter.strip().lower(), autoescape=True))
        return q.order_by(Route.created_at.desc(), Route.id.desc()).all()
    except SQLAlchemyError as e:
        current_app.logger.exception("[routes] list failed from=%r to=%r", from_filter, to_filter)
        raise StoreError() from e


def get_route(route_id: int) -> Route:
    try:
        route = db.session.get(Route, route_id)
    except SQLAlchemyError as e:
        current_app.logger.exception("[routes] get failed id=%s", route_id)
        raise StoreError() from e
    if route is None:
        raise NotFoundError(f"Route {route_id} not found")
    return route


def list_trips_for_route(route_id: int) -> List[Trip]:
    """Trips of a route, oldest first, each with its timings sorted by sequence."""
    try:
        trips = (
            Trip.query
            .filter(Trip.route_id == route_id)
            .options(selectinload(Trip.timings).selectinload(StopTiming.station))
            .order_by(Trip.created_at.asc(), Trip.id.asc())
            .all()
        )
    except SQLAlchemyError as e:
        current_app.logger.exception("[routes] trips for route=%s failed", route_id)
        raise StoreError() from e

    for t in trips:
        t.timings.sort(key=lambda st: st.sequence_order)
    return trips
