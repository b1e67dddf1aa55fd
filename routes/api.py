# routes/api.py
from __future__ import annotations

from dataclasses import asdict

from flask import Blueprint, request, jsonify, g

from auth_guard import login_required
from services.errors import NotFoundError, PartialWriteError, StoreError, ValidationError
from services.route_registry import get_route, list_routes, list_trips_for_route
from services.stations import add_station, list_stations
from services.trip_authoring import (
    AddStop, RemoveStop, StopDraft, StopList, TripMetadata, UpdateStopField,
    create_trip,
)
from services.trip_search import find_trips, ordered_stops, stop_to_dict
from utils.formatting import default_stop_duration

api_bp = Blueprint("api", __name__, url_prefix="/api")


def _json_object() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _stops_from_json(rows) -> StopList:
    if rows is None:
        rows = []
    if not isinstance(rows, list):
        raise ValidationError("stops must be a list")
    drafts = []
    for i, r in enumerate(rows, start=1):
        r = r or {}
        if not isinstance(r, dict):
            raise ValidationError(f"Stop {i}: must be an object")
        duration = r.get("stop_duration")
        drafts.append(StopDraft(
            station_id=str(r.get("station_id") or "").strip(),
            arrival_time=str(r.get("arrival_time") or "").strip(),
            departure_time=str(r.get("departure_time") or "").strip(),
            stop_duration=str(duration if duration is not None else default_stop_duration()).strip(),
        ))
    return StopList.of(drafts)


def _snapshot(stops: StopList) -> list:
    return [asdict(d) for d in stops]


@api_bp.route("/search", methods=["GET"])
def search():
    """
    GET /api/search?from=<text>&to=<text>[&directional=1]
      Always 200; an empty list means nothing matched (or the lookup failed).
    """
    from_q = (request.args.get("from") or "").strip()
    to_q = (request.args.get("to") or "").strip()
    if not (from_q and to_q):
        return jsonify(error="from and to are required"), 400

    directional = request.args.get("directional")
    directional = None if directional is None else directional.strip().lower() in {"1", "true", "yes"}
    matches = find_trips(from_q, to_q, directional=directional)
    return jsonify(trips=[m.to_dict() for m in matches], count=len(matches)), 200


@api_bp.route("/stations", methods=["GET"])
def stations_index():
    try:
        return jsonify([s.to_dict() for s in list_stations()]), 200
    except StoreError as e:
        return jsonify(error=e.message), 500


@api_bp.route("/stations", methods=["POST"])
@login_required
def stations_create():
    try:
        data = _json_object()
        station = add_station(data.get("station_name"), data.get("location"))
    except ValidationError as e:
        return jsonify(error=e.message), 400
    except StoreError as e:
        return jsonify(error=e.message), 500
    return jsonify(station.to_dict()), 201


@api_bp.route("/routes", methods=["GET"])
def routes_index():
    try:
        routes = list_routes(request.args.get("from"), request.args.get("to"))
    except StoreError as e:
        return jsonify(error=e.message), 500
    return jsonify([r.to_dict() for r in routes]), 200


@api_bp.route("/routes/<int:route_id>", methods=["GET"])
def route_detail(route_id: int):
    try:
        route = get_route(route_id)
        trips = list_trips_for_route(route.id)
    except NotFoundError:
        return jsonify(error="Route not found"), 404
    except StoreError as e:
        return jsonify(error=e.message), 500

    payload = route.to_dict()
    payload["trips"] = [
        dict(t.to_dict(), stops=[stop_to_dict(st) for st in ordered_stops(t.timings)])
        for t in trips
    ]
    return jsonify(payload), 200


@api_bp.route("/trips/draft", methods=["POST"])
def trip_draft():
    """
    POST /api/trips/draft
      {"stops": [...], "command": {"type": "add"|"remove"|"update", "index": 0,
                                   "field": "departure_time", "value": "07:30"}}
    Returns the new, renumbered stop list snapshot. Nothing is stored.
    """
    try:
        data = _json_object()
        stops = _stops_from_json(data.get("stops"))
    except ValidationError as e:
        return jsonify(error=e.message), 400
    cmd = data.get("command") or {}
    if not isinstance(cmd, dict):
        return jsonify(error="command must be an object"), 400
    kind = str(cmd.get("type") or "").strip().lower()

    try:
        if kind == "add":
            command = AddStop(index=cmd.get("index"), draft=StopDraft(stop_duration=str(default_stop_duration())))
        elif kind == "remove":
            command = RemoveStop(int(cmd["index"]))
        elif kind == "update":
            command = UpdateStopField(int(cmd["index"]), str(cmd["field"]), str(cmd.get("value") or ""))
        else:
            return jsonify(error="command.type must be add, remove or update"), 400
        stops = command.apply(stops)
    except (KeyError, TypeError, ValueError, IndexError) as e:
        return jsonify(error=f"Invalid command: {e}"), 400

    return jsonify(stops=_snapshot(stops)), 200


@api_bp.route("/trips", methods=["POST"])
@login_required
def trips_create():
    user = getattr(g, "user", None)
    try:
        data = _json_object()
        meta = TripMetadata.from_mapping(data)
        stops = _stops_from_json(data.get("stops"))
        trip = create_trip(meta, stops, created_by=user.id if user is not None else None)
    except ValidationError as e:
        return jsonify(error=e.message), 400
    except PartialWriteError as e:
        return jsonify(error=e.message, step=e.step, rolled_back=e.rolled_back), 500
    except StoreError as e:
        return jsonify(error=e.message), 500

    return jsonify(dict(trip.to_dict(), stops=[stop_to_dict(st) for st in ordered_stops(trip.timings)])), 201
