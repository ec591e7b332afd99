"""
Field-level validation for event payloads.

Validators collect every problem instead of stopping at the first one, so a
client gets the complete list of field errors in a single response.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

# --- CONSTANTS FOR VALIDATION ---
TIME_PATTERN = re.compile(r"([01][0-9]|2[0-3]):([0-5][0-9])")
DESCRIPTION_MAX_LENGTH = 500
UPDATABLE_FIELDS = ("name", "date", "startTime", "endTime", "location", "description")

FieldErrors = List[Dict[str, str]]


def parse_dt(val: Any) -> Optional[datetime]:
    """
    Safely parse an ISO-8601 date or date-time string.

    Args:
        val (str): The date string to parse.

    Returns:
        datetime: The parsed datetime (naive unless an offset was given), or None if invalid.
    """
    if not val or not isinstance(val, str):
        return None
    try:
        # Handles 'YYYY-MM-DD', 'YYYY-MM-DDTHH:MM[:SS]' and '...Z' or '...+05:30'
        if val.endswith("Z"):
            val = val[:-1] + "+00:00"
        return datetime.fromisoformat(val)
    except (ValueError, TypeError):
        return None


def _error(field: str, message: str) -> Dict[str, str]:
    return {"field": field, "message": message}


def _required_text(data: Dict[str, Any], field: str, message: str, errors: FieldErrors) -> Optional[str]:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        errors.append(_error(field, message))
        return None
    return value.strip()


def validate_event(data: Dict[str, Any], partial: bool = False) -> Tuple[Dict[str, Any], FieldErrors]:
    """
    Validate an event payload.

    With `partial=True` only the updatable fields present in `data` are
    checked (and returned); unknown keys are ignored either way.

    Returns:
        tuple: (cleaned fields, field errors). `date` is returned as a
               parsed datetime, still in the caller's timezone.
    """
    errors: FieldErrors = []
    cleaned: Dict[str, Any] = {}

    def wanted(field: str) -> bool:
        return not partial or field in data

    if wanted("name"):
        cleaned["name"] = _required_text(data, "name", "Event name is required", errors)

    if wanted("date"):
        date = parse_dt(data.get("date"))
        if date is None:
            errors.append(_error("date", "Invalid date format"))
        cleaned["date"] = date

    for field, label in (("startTime", "start"), ("endTime", "end")):
        if wanted(field):
            value = data.get(field)
            if not isinstance(value, str) or not TIME_PATTERN.fullmatch(value):
                errors.append(_error(field, f"Invalid {label} time format (HH:mm)"))
            cleaned[field] = value

    if wanted("location"):
        cleaned["location"] = _required_text(data, "location", "Location is required", errors)

    if "description" in data:
        description = data.get("description")
        if description is not None and (
            not isinstance(description, str) or len(description) > DESCRIPTION_MAX_LENGTH
        ):
            errors.append(
                _error("description", f"Description must be {DESCRIPTION_MAX_LENGTH} characters or less")
            )
        cleaned["description"] = description

    return cleaned, errors
