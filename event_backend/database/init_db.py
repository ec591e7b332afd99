"""
Database schema setup.

Creates the users and events tables if they don't exist yet. Safe to run
repeatedly:

    python -m event_backend.database.init_db
"""

import logging
import sys
from typing import Optional

from event_backend.config import Config
from event_backend.database.db_connection import get_db

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    user_id       SERIAL PRIMARY KEY,
    name          TEXT NOT NULL,
    email         TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS events (
    event_id    SERIAL PRIMARY KEY,
    name        TEXT NOT NULL,
    date        TIMESTAMPTZ NOT NULL,
    start_time  CHAR(5) NOT NULL,
    end_time    CHAR(5) NOT NULL,
    location    TEXT NOT NULL,
    description VARCHAR(500),
    attendees   INTEGER[] NOT NULL DEFAULT '{}',
    created_by  INTEGER REFERENCES users(user_id) ON DELETE SET NULL
);

-- Backs the duplicate check done before inserting an event.
CREATE UNIQUE INDEX IF NOT EXISTS events_identity_idx
    ON events (name, date, start_time, location);

CREATE INDEX IF NOT EXISTS events_attendees_idx
    ON events USING GIN (attendees);
"""


def init_db(config: Optional[Config] = None) -> None:
    """
    Apply the schema to the configured database.

    Args:
        config (Config, optional): Settings to use. Loaded from the environment if omitted.
    """
    config = config or Config.from_env()

    conn = get_db(config.database_url)
    try:
        with conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
    finally:
        conn.close()

    logger.info("Database schema is up to date.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")
    try:
        init_db()
    except Exception as e:
        logger.error(f"Database initialisation FAILED: {e}")
        sys.exit(1)
