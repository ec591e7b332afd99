"""
API gateway: combines the auth and events blueprints.
This is the local entrypoint for development.
"""

import logging
from typing import Optional, Tuple

from flask import Flask, Response, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from event_backend.auth_service.routes import build_password_hasher, create_auth_blueprint
from event_backend.auth_service.utils import AuthorizationGate, TokenService
from event_backend.config import Config
from event_backend.errors import ApiError, handle_api_error
from event_backend.events_service.manager import EventManager
from event_backend.events_service.routes import create_events_blueprint


def configure_logging(config: Config) -> None:
    # Basic console logging during API requests
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="[%(levelname)s] %(asctime)s - %(message)s",
    )


def create_app(config: Optional[Config] = None) -> Flask:
    """
    Application factory for creating the Flask app.

    Args:
        config (Config, optional): Settings to use. Loaded from the environment if omitted.

    Returns:
        Flask: The configured Flask application.
    """
    config = config or Config.from_env()
    configure_logging(config)

    app = Flask(__name__)

    CORS(app, resources={
        r"/api/*": {
            "origins": [config.cors_origin],
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
        }
    })

    tokens = TokenService(config.jwt_secret, config.token_expiration_minutes)
    gate = AuthorizationGate(tokens)
    manager = EventManager(config)

    # --- REGISTER BLUEPRINTS ---
    app.register_blueprint(
        create_auth_blueprint(config, tokens, build_password_hasher(config)),
        url_prefix="/api/auth",
    )
    app.register_blueprint(create_events_blueprint(manager, gate), url_prefix="/api/events")
    logging.info("All blueprints registered successfully.")

    # --- ERROR HANDLERS ---
    app.register_error_handler(ApiError, handle_api_error)

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException) -> Tuple[Response, int]:
        return jsonify({"message": error.description}), error.code

    # --- BASIC HEALTH CHECKPOINTS ---
    @app.route("/")
    def ping():
        """
        Root URL for simple 'online' check.
        """
        return jsonify({"status": "Event Management Backend is running!"}), 200

    @app.route("/health")
    def health():
        """
        Health check endpoint.
        """
        return jsonify({"status": "ok"}), 200

    return app


if __name__ == "__main__":
    config = Config.from_env()
    app = create_app(config)
    app.run(host="0.0.0.0", port=config.port, debug=True)
