"""Flask application factory for the restroom finder API."""
from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify

from .config import Settings, load_settings
from .service import Collaborators, RestroomFinder, build_collaborators, build_finder

EXTENSION_KEY = "restroom_nav"


def create_app(
    settings: Optional[Settings] = None,
    *,
    finder: Optional[RestroomFinder] = None,
    collaborators: Optional[Collaborators] = None,
) -> Flask:
    """Create and configure the Flask application."""
    settings = settings or load_settings()
    collaborators = collaborators or build_collaborators(settings)
    finder = finder or build_finder(settings, collaborators=collaborators)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.secret_key
    app.config["FLASK_ENV"] = settings.flask_env
    app.config["DEFAULT_RADIUS_M"] = settings.default_radius_m
    app.config["DEFAULT_LIMIT"] = settings.default_limit
    app.config["DEFAULT_ENGINE"] = settings.default_engine
    app.extensions[EXTENSION_KEY] = {
        "settings": settings,
        "finder": finder,
        "collaborators": collaborators,
    }

    from .routes import api_bp  # pylint: disable=import-outside-toplevel

    app.register_blueprint(api_bp, url_prefix="/api")

    @app.get("/")
    def index():
        """Service summary."""
        return jsonify(
            {
                "service": "restroom-nav",
                "search_strategies": [strategy.name for strategy in finder.aggregator.strategies],
                "live_routing": getattr(finder.reachability.estimator.live_router, "name", None),
            }
        )

    return app


__all__ = ["create_app", "EXTENSION_KEY"]
