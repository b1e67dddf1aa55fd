# app.py
from __future__ import annotations

import os
from flask import Flask, jsonify, request, render_template
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix
from flask_cors import CORS

from config import Config, DevelopmentConfig, ProductionConfig, TestingConfig
from db import db, migrate

# Ensure models are imported so Flask-Migrate sees them
from models.app_user import AppUser
from models.station import Station
from models.route import Route
from models.schedule import Trip, StopTiming

# Blueprints
from routes.auth import auth_bp
from routes.directory import directory_bp
from routes.stations import stations_bp
from routes.trips import trips_bp
from routes.api import api_bp

from auth_guard import load_current_user
from utils.formatting import category_label, format_stop_duration, format_time_12h

_CONFIGS = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def _wants_json() -> bool:
    return request.path.startswith("/api/") or request.is_json


def create_app(config_object=None) -> Flask:
    app = Flask(__name__)

    # Respect reverse proxy headers (scheme / host) for correct URL generation
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)  # type: ignore[arg-type]

    if config_object is None:
        config_object = _CONFIGS.get(os.environ.get("APP_ENV", "").lower(), Config)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # JSON API is open to other origins; HTML pages are same-origin only
    CORS(app, resources={r"/api/*": {"origins": "*", "send_wildcard": True}})

    db.init_app(app)
    migrate.init_app(app, db)

    with app.app_context():
        # Touch models so Alembic/Flask-Migrate registers them
        _ = (AppUser, Station, Route, Trip, StopTiming)

    # Template helpers
    app.add_template_filter(format_time_12h, "time12")
    app.add_template_filter(format_stop_duration, "stop_duration")
    app.add_template_filter(category_label, "category_label")

    @app.context_processor
    def _inject_user():
        return {"current_user": load_current_user()}

    @app.route("/healthz")
    def health_check():
        return jsonify(status="ok"), 200

    @app.errorhandler(404)
    def handle_404(e):
        if _wants_json():
            return jsonify(error="Not Found", path=request.path), 404
        return render_template("not_found.html"), 404

    # Global error handler
    @app.errorhandler(Exception)
    def handle_any_error(e: Exception):
        if isinstance(e, HTTPException):
            if _wants_json():
                return jsonify(error=e.description), e.code
            return e
        db.session.rollback()
        app.logger.exception("[app] unhandled error on %s %s", request.method, request.path)
        if _wants_json():
            return jsonify(error="Internal server error"), 500
        return render_template("error.html"), 500

    # Register blueprints
    app.register_blueprint(directory_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(stations_bp)
    app.register_blueprint(trips_bp)
    app.register_blueprint(api_bp)

    # CLI
    @app.cli.command("init-db")
    def init_db_cmd():
        db.create_all()
        print("Tables created.")

    @app.cli.command("seed-demo")
    def seed_demo_cmd():
        from seed import seed_demo
        seed_demo()
        print("Demo data seeded.")

    return app


# Optional local entrypoint (useful for quick dev runs)
if __name__ == "__main__":
    app = create_app(DevelopmentConfig)
    app.run(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "5000")),
        debug=True,
    )
