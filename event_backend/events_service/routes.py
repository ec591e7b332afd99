"""
Events service routes: create, read, update, delete events, and attendee
registration.

The business rules live in `EventManager`; handlers here only authenticate,
parse the request and shape the response.
"""

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, Response, jsonify, request

from event_backend.auth_service.utils import AuthorizationGate
from event_backend.errors import json_object_body, server_error_boundary
from event_backend.events_service.manager import EventManager

logger = logging.getLogger(__name__)


def create_events_blueprint(manager: EventManager, gate: AuthorizationGate) -> Blueprint:
    """
    Build the events blueprint around an event manager and an authorization gate.

    Args:
        manager (EventManager): Event business rules.
        gate (AuthorizationGate): Bearer-token verification for protected routes.

    Returns:
        Blueprint: Routes meant to be mounted under /api/events.
    """
    events_bp = Blueprint("events", __name__)

    # --- REQUEST LOGGING ---
    @events_bp.before_request
    def before_request() -> None:
        logger.info(f"[Events] Incoming {request.method} {request.path}")

    @events_bp.after_request
    def after_request(response: Response) -> Response:
        logger.info(f"[Events] Response {response.status}")
        return response

    # --- LIST ---
    @events_bp.route("", methods=["GET"])
    @server_error_boundary("Error fetching events")
    def list_events() -> Tuple[Response, int]:
        """
        Return every event. No authentication required.

        Dates are shown in the display timezone as 'YYYY-MM-DD HH:mm:ss'.

        Returns:
            200: List of event objects (possibly empty).
            500: Database error.
        """
        return jsonify(manager.list_events()), 200

    # --- CREATE ---
    @events_bp.route("/add", methods=["POST"])
    @server_error_boundary("Error creating event")
    def create_event() -> Tuple[Response, int]:
        """
        Create an event owned by the caller.

        Expects a JSON body with:
        - name (str)
        - date (str): ISO-8601, read as local to the display timezone.
        - startTime, endTime (str): HH:mm, 24-hour.
        - location (str)
        - description (str, optional): At most 500 characters.

        Returns:
            201: The created event.
            400: Validation error or invalid token.
            401: No token provided.
            409: Duplicate event.
        """
        identity = gate.authenticate()
        data: Dict[str, Any] = json_object_body()
        return jsonify(manager.create_event(data, identity)), 201

    # --- MY EVENTS ---
    @events_bp.route("/my-events", methods=["GET"])
    @server_error_boundary("Error fetching registered events")
    def my_events() -> Tuple[Response, int]:
        """
        List the events the caller is registered for.

        Returns:
            200: List of event objects.
        """
        identity = gate.authenticate()
        return jsonify(manager.list_my_events(identity)), 200

    # --- DETAIL ---
    @events_bp.route("/<int:event_id>", methods=["GET"])
    @server_error_boundary("Error fetching event details")
    def get_event(event_id: int) -> Tuple[Response, int]:
        """
        Get a single event by ID. No authentication required.

        Returns:
            200: Event object, date in UTC.
            404: Event not found.
        """
        return jsonify(manager.get_event(event_id)), 200

    # --- UPDATE ---
    @events_bp.route("/<int:event_id>", methods=["PUT"])
    @server_error_boundary("Error updating event")
    def update_event(event_id: int) -> Tuple[Response, int]:
        """
        Update an event. Only its creator may do so.

        Returns:
            200: The updated event.
            400: Validation error.
            403: Caller is not the creator.
            404: Event not found.
            409: Update collides with another event.
        """
        identity = gate.authenticate()
        data: Dict[str, Any] = json_object_body()
        return jsonify(manager.update_event(event_id, data, identity)), 200

    # --- DELETE ---
    @events_bp.route("/<int:event_id>", methods=["DELETE"])
    @server_error_boundary("Error deleting event")
    def delete_event(event_id: int) -> Tuple[Response, int]:
        """
        Delete an event. Only its creator may do so.

        Returns:
            200: Confirmation with the deleted event.
            403: Caller is not the creator.
            404: Event not found.
        """
        identity = gate.authenticate()
        deleted = manager.delete_event(event_id, identity)
        return jsonify({"message": "Event deleted successfully", "deletedEvent": deleted}), 200

    # --- ATTENDEES ---
    @events_bp.route("/<int:event_id>/register", methods=["POST"])
    @server_error_boundary("Error registering for event")
    def register(event_id: int) -> Tuple[Response, int]:
        """
        Register the caller as an attendee.

        Returns:
            200: The updated event.
            400: Already registered.
            404: Event not found.
        """
        identity = gate.authenticate()
        return jsonify(manager.register_attendee(event_id, identity)), 200

    @events_bp.route("/<int:event_id>/attendees", methods=["GET"])
    @server_error_boundary("Error fetching attendees")
    def attendees(event_id: int) -> Tuple[Response, int]:
        """
        Get the name and email of every attendee.

        Returns:
            200: List of {name, email}.
            404: Event not found.
        """
        gate.authenticate()
        return jsonify(manager.list_attendees(event_id)), 200

    return events_bp
