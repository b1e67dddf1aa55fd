# routes/trips.py
from __future__ import annotations

from flask import Blueprint, request, current_app, render_template, redirect, url_for, flash, g

from auth_guard import login_required
from models.schedule import TRIP_CATEGORIES
from services.errors import PartialWriteError, StoreError, ValidationError
from services.stations import list_stations
from services.trip_authoring import (
    AddStop, RemoveStop, StopDraft, StopList, TripMetadata,
    create_quick_timing, create_trip,
)
from utils.formatting import default_stop_duration

trips_bp = Blueprint("trips", __name__)


def stop_list_from_form(form) -> StopList:
    """Rebuild the ordered stop rows posted as parallel arrays."""
    cols = {name: form.getlist(name) for name in ("station_id", "arrival_time", "departure_time", "stop_duration")}
    n = max((len(v) for v in cols.values()), default=0)

    def at(name, i, default=""):
        vals = cols[name]
        return (vals[i] if i < len(vals) else default).strip()

    default_duration = str(default_stop_duration())
    return StopList.of(
        StopDraft(
            station_id=at("station_id", i),
            arrival_time=at("arrival_time", i),
            departure_time=at("departure_time", i),
            stop_duration=at("stop_duration", i) or default_duration,
        )
        for i in range(n)
    )


def _blank_draft() -> StopDraft:
    return StopDraft(stop_duration=str(default_stop_duration()))


def _render_trip_form(meta: TripMetadata, stops: StopList, status: int = 200):
    try:
        stations = list_stations()
    except StoreError:
        flash("Error fetching stations", "error")
        stations = []
    return render_template(
        "add_trip.html",
        meta=meta, stops=stops, stations=stations, categories=TRIP_CATEGORIES,
    ), status


def _current_user_id():
    user = getattr(g, "user", None)
    return user.id if user is not None else None


@trips_bp.route("/trips/new", methods=["GET"])
@login_required
def new_trip():
    blank = StopList.of([_blank_draft(), _blank_draft()])
    return _render_trip_form(TripMetadata(), blank)


@trips_bp.route("/trips/new", methods=["POST"])
@login_required
def submit_trip():
    """
    One form, three actions (the `action` button value):
      add_stop        → append an empty row and re-render
      remove_stop:<i> → drop row i (0-based) and re-render
      save            → validate and write
    """
    meta = TripMetadata.from_mapping(request.form)
    stops = stop_list_from_form(request.form)
    action = (request.form.get("action") or "save").strip()

    if action == "add_stop":
        return _render_trip_form(meta, AddStop(draft=_blank_draft()).apply(stops))

    if action.startswith("remove_stop:"):
        try:
            stops = RemoveStop(int(action.split(":", 1)[1])).apply(stops)
        except (ValueError, IndexError):
            current_app.logger.info("[authoring] ignored bad action=%r", action)
        return _render_trip_form(meta, stops)

    try:
        trip = create_trip(meta, stops, created_by=_current_user_id())
    except ValidationError as e:
        flash(e.message, "error")
        return _render_trip_form(meta, stops, 400)
    except PartialWriteError as e:
        flash(e.message, "error")
        return _render_trip_form(meta, stops, 500)
    except StoreError:
        flash("Error adding bus trip. Please try again.", "error")
        return _render_trip_form(meta, stops, 500)

    flash("Bus trip added successfully!", "success")
    return redirect(url_for("directory.route_detail", route_id=trip.route_id))


@trips_bp.route("/timings/new", methods=["GET", "POST"])
@login_required
def new_timing():
    if request.method == "GET":
        return render_template("add_timing.html", form={}, categories=TRIP_CATEGORIES)

    form = request.form
    meta = TripMetadata.from_mapping(form)
    try:
        trip = create_quick_timing(meta, form.get("departure_time"), form.get("stops"),
                                   created_by=_current_user_id())
    except ValidationError as e:
        flash(e.message, "error")
        return render_template("add_timing.html", form=form, categories=TRIP_CATEGORIES), 400
    except StoreError:
        flash("Error adding bus timing. Please try again.", "error")
        return render_template("add_timing.html", form=form, categories=TRIP_CATEGORIES), 500

    flash("Bus timing added successfully!", "success")
    return redirect(url_for("directory.route_detail", route_id=trip.route_id))
