"""
project: Cavern
module: __init__.py
License: MIT

Flask application factory for the cave generation service.

Configuration is sourced from environment variables (optionally loaded from a
local .env file) with defaults suitable for development. ``CAVE_*`` keys are
mirrored into ``app.config`` so the API can build its generation config from
there; tests override them through ``app.config`` directly.
"""

import logging
import os
import uuid

from dotenv import load_dotenv
from flask import Flask, jsonify

from cavern.generation.config import CaveConfig
from cavern.generation.errors import ConfigurationError

__version__ = "0.4.0"

# Load .env if present so SECRET_KEY and CAVE_* tunables can be supplied
# without exporting shell variables during development.
load_dotenv()

app = Flask(__name__, instance_relative_config=True)

try:
    os.makedirs(app.instance_path, exist_ok=True)
except OSError:
    # Read-only checkouts still serve the API; only file logging needs this
    pass

app.config.update(
    SECRET_KEY=os.getenv("SECRET_KEY", "dev-secret-change-me"),
    CAVE_DISABLE_CACHE=os.getenv("CAVE_DISABLE_CACHE", "0") == "1",
)
# Generation tunables; only keys present in the environment are mirrored
for _key in CaveConfig.ENV_MAP:
    if _key in os.environ:
        app.config[_key] = os.environ[_key]


# Register HTTP blueprints
from cavern.routes.cave_api import bp_cave  # noqa: E402

app.register_blueprint(bp_cave)


@app.errorhandler(ConfigurationError)
def configuration_error(e):
    return jsonify(e.to_dict()), 400


@app.errorhandler(500)
def internal_error(e):
    error_id = uuid.uuid4().hex[:8]
    logging.exception("Unhandled exception (id=%s)", error_id)
    return jsonify({"error": "internal server error", "error_id": error_id}), 500


def create_app():
    """Return the Flask app instance."""
    return app
