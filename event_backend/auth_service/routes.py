"""
Authentication service route handlers.

Provides routes for:
- User registration
- User login
- Logout (client-side only; tokens are stateless)

Token logic is delegated to `auth_service.utils.TokenService`.
"""

import logging
import re
from typing import Any, Dict, List, Tuple

import psycopg2.errors
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from flask import Blueprint, Response, jsonify, request

from event_backend.auth_service.utils import TokenService
from event_backend.config import Config
from event_backend.database.db_connection import get_db
from event_backend.errors import Conflict, ValidationError, json_object_body, server_error_boundary

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 6
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"


def build_password_hasher(config: Config) -> PasswordHasher:
    """argon2 hasher using the configured cost factor."""
    return PasswordHasher(time_cost=config.password_time_cost)


def _validate_registration(data: Dict[str, Any]) -> List[Dict[str, str]]:
    errors = []

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        errors.append({"field": "name", "message": "Name is required"})

    email = data.get("email")
    if not isinstance(email, str) or not EMAIL_PATTERN.match(email.strip()):
        errors.append({"field": "email", "message": "Invalid email address"})

    password = data.get("password")
    if not isinstance(password, str) or len(password) < PASSWORD_MIN_LENGTH:
        errors.append(
            {"field": "password", "message": f"Password must be at least {PASSWORD_MIN_LENGTH} characters"}
        )

    return errors


def create_auth_blueprint(config: Config, tokens: TokenService, ph: PasswordHasher) -> Blueprint:
    """
    Build the authentication blueprint.

    Args:
        config (Config): Process-wide settings (database DSN).
        tokens (TokenService): Issues tokens on login.
        ph (PasswordHasher): Hashes and verifies passwords.

    Returns:
        Blueprint: Routes meant to be mounted under /api/auth.
    """
    auth_bp = Blueprint("auth", __name__)

    # --- REQUEST LOGGING ---
    @auth_bp.before_request
    def before_request() -> None:
        logger.info(f"[Auth] Incoming {request.method} {request.path}")

    @auth_bp.after_request
    def after_request(response: Response) -> Response:
        logger.info(f"[Auth] Response {response.status}")
        return response

    # --- REGISTER ---
    @auth_bp.route("/register", methods=["POST"])
    @server_error_boundary("Server error")
    def register() -> Tuple[Response, int]:
        """
        Register a new user.

        Expects a JSON body with:
        - name (str)
        - email (str): Unique email address.
        - password (str): Minimum 6 characters.

        Returns:
            201: Confirmation message.
            400: Invalid input or email already registered.
            500: Server-side error (hashing or database).
        """
        data: Dict[str, Any] = json_object_body()

        errors = _validate_registration(data)
        if errors:
            raise ValidationError(errors)

        name = data["name"].strip()
        email = data["email"].strip().lower()

        conn = get_db(config.database_url)
        try:
            with conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT user_id FROM users WHERE email = %s;", (email,))
                    if cur.fetchone():
                        raise Conflict("User already exists", status_code=400)

                    # Only the salted hash is ever stored
                    pw_hash = ph.hash(data["password"])
                    try:
                        cur.execute(
                            """
                            INSERT INTO users (name, email, password_hash)
                            VALUES (%s, %s, %s)
                            RETURNING user_id;
                            """,
                            (name, email, pw_hash),
                        )
                    except psycopg2.errors.UniqueViolation as e:
                        raise Conflict("User already exists", status_code=400) from e
                    user = cur.fetchone()
        finally:
            conn.close()

        logger.info(f"Registered user {user['user_id']}")
        return jsonify({"message": "User registered successfully"}), 201

    # --- LOGIN ---
    @auth_bp.route("/login", methods=["POST"])
    @server_error_boundary("Server error")
    def login() -> Tuple[Response, int]:
        """
        Authenticate a user and return a JWT valid for one hour.

        Expects a JSON body with:
        - email (str)
        - password (str)

        Returns:
            200: JSON with message and token.
            400: Missing fields or invalid credentials.
            500: Database error.
        """
        data: Dict[str, Any] = json_object_body()
        email = data.get("email")
        password = data.get("password")

        errors = []
        if not isinstance(email, str) or not email.strip():
            errors.append({"field": "email", "message": "Email is required"})
        if not isinstance(password, str) or not password:
            errors.append({"field": "password", "message": "Password is required"})
        if errors:
            raise ValidationError(errors)

        email = email.strip().lower()

        conn = get_db(config.database_url)
        try:
            with conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT user_id, email, password_hash FROM users WHERE email = %s;", (email,))
                    user = cur.fetchone()
        finally:
            conn.close()

        if not user:
            logger.info("Login failed: unknown email")
            return jsonify({"message": INVALID_CREDENTIALS_MESSAGE}), 400

        # Verify password against hash
        try:
            ph.verify(user["password_hash"], password)
        except (VerificationError, InvalidHashError):
            logger.info(f"Login failed: wrong password for user {user['user_id']}")
            return jsonify({"message": INVALID_CREDENTIALS_MESSAGE}), 400

        token = tokens.create_token(user["user_id"], user["email"])

        return jsonify({"message": "Login successful", "token": token}), 200

    # --- LOGOUT ---
    @auth_bp.route("/logout", methods=["POST"])
    def logout() -> Tuple[Response, int]:
        """
        Tokens are stateless; the client discards its copy.

        Returns:
            200: Confirmation message.
        """
        return jsonify({"message": "Logged out successfully"}), 200

    return auth_bp
