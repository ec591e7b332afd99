"""
PostgreSQL connection helper.
Provides get_db() for use by services.
"""

import logging
from typing import Optional

import psycopg2
from psycopg2.extras import DictCursor

logger = logging.getLogger(__name__)


def get_db(database_url: Optional[str]):
    """
    Returns a new psycopg2 connection with dictionary-based row access.

    Usage:
        with get_db(config.database_url) as conn:
            with conn.cursor() as cur:
                cur.execute(...)

    Note that psycopg2's connection context manager commits or rolls back
    the transaction on exit but does not close the connection.

    Args:
        database_url (str): PostgreSQL DSN.

    Returns:
        psycopg2.extensions.connection: A connection object with DictCursor factory.

    Raises:
        RuntimeError: If no DSN is configured.
        psycopg2.Error: If connection fails.
    """
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set. Please set the environment variable.")

    try:
        conn = psycopg2.connect(database_url)
        # Rows behave like dicts, e.g. {"event_id": 1, "name": "..."}
        conn.cursor_factory = DictCursor
        return conn
    except Exception as e:
        logger.error(f"Error connecting to database: {e}")
        raise
