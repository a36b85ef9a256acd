import logging
import os

import click
from flask import Flask, jsonify, send_from_directory
from flask_cors import CORS

from tamales.config import Config
from tamales.models import db
from tamales.services.store_service import Store

from tamales.blueprints.api import CORS_METHODS, api_bp
from tamales.blueprints.users import users_bp


def create_app(overrides=None, email_sender=None) -> Flask:
    app = Flask(
        __name__,
        static_folder=os.path.join(os.path.dirname(__file__), "static"),
        static_url_path="/static"
    )
    app.config.update(Config().as_dict())
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(level=app.config["LOG_LEVEL"])

    # Origin header on every /api/* response; the api blueprints answer OPTIONS themselves
    CORS(app,
         resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}},
         methods=CORS_METHODS,
         allow_headers=["Content-Type"],
         send_wildcard=True)

    if email_sender is not None:
        app.extensions["email_sender"] = email_sender

    # Database
    db.init_app(app)
    with app.app_context():
        uri = app.config["SQLALCHEMY_DATABASE_URI"]
        if uri.startswith("sqlite:///"):
            os.makedirs(os.path.dirname(uri[len("sqlite:///"):]) or ".", exist_ok=True)
        db.create_all()

    @app.get("/api/health")
    def health():
        return jsonify({"status": "healthy", "service": "Tamales Backend"}), 200

    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(users_bp, url_prefix="/api")

    @app.cli.command("set-inventory")
    @click.argument("counts", nargs=-1, required=True)
    def set_inventory(counts):
        """Set remaining counts, e.g. flask set-inventory pork=24 chicken=12."""
        parsed = {}
        for pair in counts:
            tamale_id, _, remaining = pair.partition("=")
            if not tamale_id or not remaining.isdigit():
                raise click.BadParameter(f"expected <id>=<count>, got {pair!r}")
            parsed[tamale_id] = int(remaining)
        Store(db.session).set_inventory(parsed)
        click.echo(f"Inventory updated for {len(parsed)} item(s)")

    # Serve the storefront without swallowing /api/*
    @app.route("/", defaults={"path": ""})
    @app.route("/<path:path>")
    def serve_frontend(path):
        if path == "api" or path.startswith("api/"):
            return jsonify({"error": "Not Found"}), 404

        static_root = app.static_folder
        if static_root:
            candidate = os.path.join(static_root, path)
            index_html = os.path.join(static_root, "index.html")
            if path and os.path.isfile(candidate):
                return send_from_directory(static_root, path)
            if os.path.exists(index_html):
                return send_from_directory(static_root, "index.html")
        return ("index.html not found", 404)

    return app
