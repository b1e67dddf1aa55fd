# routes/directory.py
from __future__ import annotations

from flask import Blueprint, request, current_app, render_template, abort, flash

from services.errors import NotFoundError, StoreError
from services.route_registry import get_route, list_routes, list_trips_for_route
from services.trip_search import find_trips

directory_bp = Blueprint("directory", __name__)


@directory_bp.route("/", methods=["GET"])
def home():
    return render_template("home.html", popular_routes=current_app.config.get("POPULAR_ROUTES", []))


@directory_bp.route("/search", methods=["GET"])
def search():
    """
    GET /search?from=<text>&to=<text>
      Both terms are needed; with either missing the page only shows the prompt.
    """
    from_q = (request.args.get("from") or "").strip()
    to_q = (request.args.get("to") or "").strip()

    trips = find_trips(from_q, to_q) if (from_q and to_q) else []
    return render_template("search.html", from_q=from_q, to_q=to_q, trips=trips)


@directory_bp.route("/routes", methods=["GET"])
def routes_index():
    from_f = (request.args.get("from") or "").strip()
    to_f = (request.args.get("to") or "").strip()
    try:
        routes = list_routes(from_f, to_f)
    except StoreError:
        flash("Error fetching routes. Please try again.", "error")
        return render_template("routes.html", routes=[], from_f=from_f, to_f=to_f), 500
    return render_template("routes.html", routes=routes, from_f=from_f, to_f=to_f)


@directory_bp.route("/routes/<int:route_id>", methods=["GET"])
def route_detail(route_id: int):
    try:
        route = get_route(route_id)
    except NotFoundError:
        abort(404)
    except StoreError:
        return render_template("error.html"), 500
    try:
        trips = list_trips_for_route(route.id)
    except StoreError:
        flash("Error fetching bus timings for this route. Please try again.", "error")
        return render_template("route_detail.html", route=route, trips=[]), 500
    return render_template("route_detail.html", route=route, trips=trips)
