# routes/stations.py
from __future__ import annotations

from flask import Blueprint, request, render_template, redirect, url_for, flash

from auth_guard import login_required
from services.errors import StoreError, ValidationError
from services.stations import add_station, list_stations

stations_bp = Blueprint("stations", __name__, url_prefix="/stations")


def _render(form=None, status: int = 200):
    try:
        stations = list_stations()
    except StoreError:
        flash("Error fetching stations", "error")
        stations = []
    return render_template("stations.html", stations=stations, form=form or {}), status


@stations_bp.route("", methods=["GET"])
def index():
    return _render()


@stations_bp.route("", methods=["POST"])
@login_required
def create():
    form = request.form
    try:
        add_station(form.get("station_name"), form.get("location"))
    except ValidationError as e:
        flash(e.message, "error")
        return _render(form, 400)
    except StoreError:
        flash("Error adding station. Please try again.", "error")
        return _render(form, 500)

    flash("Station added successfully!", "success")
    return redirect(url_for("stations.index"))
