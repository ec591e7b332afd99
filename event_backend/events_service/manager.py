"""
Event lifecycle: creation with duplicate detection and timezone
normalization, ownership-checked updates and deletes, attendee registration.

Every method opens its own connection and runs in a single transaction.
Failures are raised as `event_backend.errors.ApiError` subclasses.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List

import psycopg2.errors

from event_backend.auth_service.utils import Identity
from event_backend.config import Config
from event_backend.database.db_connection import get_db
from event_backend.errors import Conflict, Forbidden, NotFound, ValidationError
from event_backend.events_service.timezones import format_for_display, local_to_utc, utc_isoformat
from event_backend.events_service.validation import validate_event

logger = logging.getLogger(__name__)

EVENT_COLUMNS = "event_id, name, date, start_time, end_time, location, description, attendees, created_by"

# API field name -> column name
COLUMN_FOR_FIELD = {
    "name": "name",
    "date": "date",
    "startTime": "start_time",
    "endTime": "end_time",
    "location": "location",
    "description": "description",
}

DUPLICATE_EVENT_MESSAGE = "Event with the same name, date, start time, and location already exists"
EVENT_NOT_FOUND_MESSAGE = "Event not found"
ALREADY_REGISTERED_MESSAGE = "You have already registered for this event"


def serialize_event(row: Dict[str, Any]) -> Dict[str, Any]:
    """Convert an events row to its API shape (date as a UTC ISO-8601 string)."""
    return {
        "id": row["event_id"],
        "name": row["name"],
        "date": utc_isoformat(row["date"]),
        "startTime": row["start_time"],
        "endTime": row["end_time"],
        "location": row["location"],
        "description": row["description"],
        "attendees": list(row["attendees"] or []),
        "createdBy": row["created_by"],
    }


class EventManager:
    """
    Business rules for events.

    Args:
        config (Config): Process-wide settings (database DSN, display timezone).
    """

    def __init__(self, config: Config) -> None:
        self.config = config

    @contextmanager
    def _cursor(self) -> Iterator[Any]:
        conn = get_db(self.config.database_url)
        try:
            with conn:
                with conn.cursor() as cur:
                    yield cur
        finally:
            conn.close()

    def _fetch_locked(self, cur, event_id: int) -> Dict[str, Any]:
        cur.execute(f"SELECT {EVENT_COLUMNS} FROM events WHERE event_id = %s FOR UPDATE;", (event_id,))
        row = cur.fetchone()
        if not row:
            raise NotFound(EVENT_NOT_FOUND_MESSAGE)
        return row

    @staticmethod
    def _check_owner(row: Dict[str, Any], identity: Identity, action: str) -> None:
        # Events stored before created_by existed have no owner to enforce.
        created_by = row["created_by"]
        if created_by is not None and created_by != identity.id:
            raise Forbidden(f"You are not authorized to {action} this event.")

    def _to_utc(self, value: datetime) -> datetime:
        try:
            return local_to_utc(value, self.config.display_timezone)
        except OverflowError:
            # 0001-01-01 in a zone east of UTC falls before datetime.min
            raise ValidationError([{"field": "date", "message": "Invalid date format"}])

    # --- CREATE ---
    def create_event(self, data: Dict[str, Any], identity: Identity) -> Dict[str, Any]:
        """
        Validate, normalize and store a new event owned by `identity`.

        Raises:
            ValidationError: Field validation failed.
            Conflict: An event with the same name, date, start time and location exists.
        """
        cleaned, errors = validate_event(data)
        if errors:
            raise ValidationError(errors)

        utc_date = self._to_utc(cleaned["date"])
        key = (cleaned["name"], utc_date, cleaned["startTime"], cleaned["location"])

        with self._cursor() as cur:
            cur.execute(
                """
                SELECT event_id FROM events
                WHERE name = %s AND date = %s AND start_time = %s AND location = %s;
                """,
                key,
            )
            if cur.fetchone():
                raise Conflict(DUPLICATE_EVENT_MESSAGE)

            try:
                cur.execute(
                    f"""
                    INSERT INTO events (name, date, start_time, end_time, location, description, created_by)
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                    RETURNING {EVENT_COLUMNS};
                    """,
                    (
                        cleaned["name"], utc_date, cleaned["startTime"], cleaned["endTime"],
                        cleaned["location"], cleaned.get("description"), identity.id,
                    ),
                )
            except psycopg2.errors.UniqueViolation as e:
                # Lost the race against an identical concurrent creation.
                raise Conflict(DUPLICATE_EVENT_MESSAGE) from e
            row = cur.fetchone()

        logger.info(f"User {identity.id} created event {row['event_id']}")
        return serialize_event(row)

    # --- READ ---
    def list_events(self) -> List[Dict[str, Any]]:
        """All events, with dates rendered in the display timezone."""
        with self._cursor() as cur:
            cur.execute(f"SELECT {EVENT_COLUMNS} FROM events ORDER BY event_id;")
            rows = cur.fetchall()

        events = []
        for row in rows:
            event = serialize_event(row)
            event["date"] = format_for_display(row["date"], self.config.display_timezone)
            events.append(event)
        return events

    def get_event(self, event_id: int) -> Dict[str, Any]:
        """A single event as stored (UTC date)."""
        with self._cursor() as cur:
            cur.execute(f"SELECT {EVENT_COLUMNS} FROM events WHERE event_id = %s;", (event_id,))
            row = cur.fetchone()

        if not row:
            raise NotFound(EVENT_NOT_FOUND_MESSAGE)
        return serialize_event(row)

    # --- UPDATE ---
    def update_event(self, event_id: int, data: Dict[str, Any], identity: Identity) -> Dict[str, Any]:
        """
        Apply a partial update. Only the event's creator may edit it.

        Raises:
            NotFound, Forbidden, ValidationError, Conflict
        """
        with self._cursor() as cur:
            row = self._fetch_locked(cur, event_id)
            self._check_owner(row, identity, "edit")

            cleaned, errors = validate_event(data, partial=True)
            if errors:
                raise ValidationError(errors)
            if not cleaned:
                raise ValidationError(message="No valid fields to update")

            if "date" in cleaned:
                cleaned["date"] = self._to_utc(cleaned["date"])

            fields = [f"{COLUMN_FOR_FIELD[key]} = %s" for key in cleaned]
            values = list(cleaned.values()) + [event_id]

            try:
                cur.execute(
                    f"UPDATE events SET {', '.join(fields)} WHERE event_id = %s RETURNING {EVENT_COLUMNS};",
                    values,
                )
            except psycopg2.errors.UniqueViolation as e:
                raise Conflict(DUPLICATE_EVENT_MESSAGE) from e
            updated = cur.fetchone()

        logger.info(f"User {identity.id} updated event {event_id}: {sorted(cleaned)}")
        return serialize_event(updated)

    # --- DELETE ---
    def delete_event(self, event_id: int, identity: Identity) -> Dict[str, Any]:
        """
        Remove an event. Only the event's creator may delete it.

        Returns:
            dict: The deleted event.
        """
        with self._cursor() as cur:
            row = self._fetch_locked(cur, event_id)
            self._check_owner(row, identity, "delete")
            cur.execute("DELETE FROM events WHERE event_id = %s;", (event_id,))

        logger.info(f"User {identity.id} deleted event {event_id}")
        return serialize_event(row)

    # --- ATTENDEES ---
    def register_attendee(self, event_id: int, identity: Identity) -> Dict[str, Any]:
        """
        Append `identity` to the event's attendees.

        Raises:
            NotFound: The event does not exist.
            Conflict: The user is already registered (reported as 400).
        """
        with self._cursor() as cur:
            row = self._fetch_locked(cur, event_id)
            if identity.id in (row["attendees"] or []):
                raise Conflict(ALREADY_REGISTERED_MESSAGE, status_code=400)

            cur.execute(
                f"""
                UPDATE events SET attendees = array_append(attendees, %s)
                WHERE event_id = %s
                RETURNING {EVENT_COLUMNS};
                """,
                (identity.id, event_id),
            )
            updated = cur.fetchone()

        logger.info(f"User {identity.id} registered for event {event_id}")
        return serialize_event(updated)

    def list_attendees(self, event_id: int) -> List[Dict[str, str]]:
        """Name and email of each attendee, in registration order."""
        with self._cursor() as cur:
            cur.execute("SELECT event_id FROM events WHERE event_id = %s;", (event_id,))
            if not cur.fetchone():
                raise NotFound(EVENT_NOT_FOUND_MESSAGE)

            cur.execute(
                """
                SELECT u.name, u.email
                FROM events e
                CROSS JOIN LATERAL unnest(e.attendees) WITH ORDINALITY AS a(user_id, position)
                JOIN users u ON u.user_id = a.user_id
                WHERE e.event_id = %s
                ORDER BY a.position;
                """,
                (event_id,),
            )
            rows = cur.fetchall()

        return [{"name": r["name"], "email": r["email"]} for r in rows]

    def list_my_events(self, identity: Identity) -> List[Dict[str, Any]]:
        """Events the user has registered for."""
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {EVENT_COLUMNS} FROM events WHERE %s = ANY(attendees) ORDER BY event_id;",
                (identity.id,),
            )
            rows = cur.fetchall()

        return [serialize_event(row) for row in rows]
