"""
Shared authentication helpers.
Provides token creation, verification, and the bearer-token gate used by
protected routes.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from flask import g, request

from event_backend.errors import InvalidToken, Unauthorized

JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class Identity:
    """A verified user reference decoded from a token."""

    id: int
    email: str


class TokenService:
    """
    Issues and verifies signed identity tokens.

    Args:
        secret (str): HMAC signing secret.
        expiration_minutes (int): Token lifetime.
    """

    def __init__(self, secret: str, expiration_minutes: int = 60) -> None:
        self.secret = secret
        self.expiration_minutes = expiration_minutes

    # --- JWT CREATION ---
    def create_token(self, user_id: int, email: str) -> str:
        """
        Generates a new JWT for a given user.

        Args:
            user_id (int): The unique ID of the user.
            email (str): The user's email address.

        Returns:
            str: Encoded JWT string.
        """
        now = datetime.now(timezone.utc)

        payload = {
            "id": user_id,
            "email": email,
            "exp": now + timedelta(minutes=self.expiration_minutes),
            "iat": now,
        }

        return jwt.encode(payload, self.secret, algorithm=JWT_ALGORITHM)

    # --- JWT VALIDATION ---
    def decode_token(self, token: str) -> Identity:
        """
        Verify a token's signature and expiry and return its identity.

        Raises:
            jwt.InvalidTokenError: If the token is bad, expired, or lacks an id.
        """
        payload: Dict[str, Any] = jwt.decode(token, self.secret, algorithms=[JWT_ALGORITHM])

        user_id = payload.get("id")
        if user_id is None:
            raise jwt.InvalidTokenError("token has no id claim")

        return Identity(id=user_id, email=payload.get("email", ""))


def bearer_token_from_request() -> Optional[str]:
    """Return the token from an `Authorization: Bearer <token>` header, if any."""
    auth = request.headers.get("Authorization", "")

    if not auth.startswith("Bearer "):
        return None

    token = auth.split(" ", 1)[1].strip()
    return token or None


class AuthorizationGate:
    """Verifies the bearer token of the current request."""

    def __init__(self, tokens: TokenService) -> None:
        self.tokens = tokens

    def authenticate(self) -> Identity:
        """
        Verify the request's bearer token and attach the identity to `g.identity`.

        Returns:
            Identity: The authenticated user.

        Raises:
            Unauthorized: No token was provided (401).
            InvalidToken: The token failed verification (400).
        """
        token = bearer_token_from_request()
        if not token:
            raise Unauthorized()

        try:
            identity = self.tokens.decode_token(token)
        except jwt.InvalidTokenError as e:
            raise InvalidToken() from e

        g.identity = identity
        return identity
