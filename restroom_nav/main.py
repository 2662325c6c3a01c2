"""Gunicorn/WSGI entrypoint with Flask CLI support."""
from __future__ import annotations

from . import create_app

app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=8000, debug=app.config.get("FLASK_ENV") == "development")
