# app.py
from __future__ import annotations

import logging
import os
import time

from flask import Flask, jsonify, request, Response
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix
from flask_cors import CORS

from config import Config
from db import db, migrate
from realtime import socketio

# Ensure models are imported so Flask-Migrate sees them
from models.user import User
from models.route import Route
from models.bus import Bus

# Blueprints
from routes.auth import auth_bp
from routes.transit import transit_bp
from routes.buses import buses_bp
from routes.admin import admin_bp


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__)

    # Respect reverse proxy headers (scheme / host) for correct URL generation
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)  # type: ignore[arg-type]

    # CORS (open for now; tighten origins for production)
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    # Load config + init extensions
    app.config.from_object(config_object)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))
    db.init_app(app)
    migrate.init_app(app, db)
    socketio.init_app(app, cors_allowed_origins="*")

    with app.app_context():
        # Touch models so Alembic/Flask-Migrate registers them
        _ = (User, Route, Bus)

    # Health check
    @app.route("/")
    def health_check():
        return jsonify(status="ok"), 200

    @app.errorhandler(404)
    def handle_404(e):
        return jsonify(error="Not Found", path=request.path), 404

    # Global error handler
    @app.errorhandler(Exception)
    def handle_any_error(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify(error=e.description), e.code
        app.logger.exception("[app] unhandled error on %s %s", request.method, request.path)
        db.session.rollback()
        return jsonify(error=str(e)), 500

    # --- Debug: list routes ---
    @app.route("/__routes")
    def __routes():
        lines = []
        for rule in app.url_map.iter_rules():
            methods = ",".join(sorted(m for m in rule.methods if m not in {"HEAD", "OPTIONS"}))
            lines.append(f"{methods:10s} {rule.rule}")
        lines.sort()
        return Response("\n".join(lines), mimetype="text/plain")

    @app.route("/__whoami")
    def __whoami():
        return jsonify(
            name="bustrack backend",
            pid=os.getpid(),
            started_at=int(time.time())
        )

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(transit_bp)
    app.register_blueprint(buses_bp)
    app.register_blueprint(admin_bp)

    # CLI: create tables without running migrations (dev boxes / sqlite)
    @app.cli.command("init-db")
    def init_db_cmd():
        db.create_all()
        print("Tables created.")

    # CLI: wipe and load the demo routes, drivers and buses
    @app.cli.command("seed-demo")
    def seed_demo_cmd():
        from seed import seed_demo
        db.create_all()
        counts = seed_demo()
        print(f"Seeded {counts['routes']} routes, {counts['buses']} buses, {counts['users']} users.")

    return app


# Optional local entrypoint (useful for quick dev runs)
if __name__ == "__main__":
    app = create_app()
    # Socket.IO server (falls back to Werkzeug in dev)
    socketio.run(
        app,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "5000")),
        allow_unsafe_werkzeug=True,  # dev convenience
        debug=bool(os.environ.get("FLASK_DEBUG", "")),
    )
