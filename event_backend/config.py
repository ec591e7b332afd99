"""
Process-wide configuration.
Built once at startup and passed explicitly to the gateway, the token
service and the event manager.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


DEFAULT_DISPLAY_TIMEZONE = "Asia/Kolkata"


@dataclass(frozen=True)
class Config:
    """
    Settings shared by every request.

    Attributes:
        jwt_secret (str): HMAC secret used to sign identity tokens.
        database_url (str): PostgreSQL DSN handed to psycopg2.
        token_expiration_minutes (int): Lifetime of issued tokens.
        display_timezone (str): Zone used to read input dates and present stored ones.
        cors_origin (str): Allowed origin for browser clients.
        password_time_cost (int): argon2 time cost (hashing cost factor).
        port (int): Port for the development server.
        log_level (str): Root logging level name.
    """

    jwt_secret: str
    database_url: Optional[str] = None
    token_expiration_minutes: int = 60
    display_timezone: str = DEFAULT_DISPLAY_TIMEZONE
    cors_origin: str = "*"
    password_time_cost: int = 3
    port: int = 5000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """
        Load settings from the environment (and a .env file, if present).

        Raises:
            RuntimeError: If JWT_SECRET is not set.
        """
        load_dotenv()

        jwt_secret = os.getenv("JWT_SECRET")
        if not jwt_secret:
            raise RuntimeError("JWT_SECRET is missing. Set it in .env")

        return cls(
            jwt_secret=jwt_secret,
            database_url=os.getenv("DATABASE_URL"),
            token_expiration_minutes=int(os.getenv("TOKEN_EXPIRATION_MINUTES", 60)),
            display_timezone=os.getenv("DISPLAY_TIMEZONE", DEFAULT_DISPLAY_TIMEZONE),
            cors_origin=os.getenv("CORS_ORIGIN", "*"),
            password_time_cost=int(os.getenv("PASSWORD_HASH_TIME_COST", 3)),
            port=int(os.getenv("PORT", 5000)),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
