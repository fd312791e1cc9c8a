"""Engine error taxonomy.

Every error carries the HTTP status and the client-facing message; the global
handler renders them as ``{"error": message}``. Messages are deliberately
generic and never describe answer data.
"""

from __future__ import annotations


class StoryTrailError(Exception):
    """Base class for request-fatal engine errors."""

    status_code: int = 400
    default_message: str = "Bad request"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(StoryTrailError):
    """Missing or invalid bearer credentials."""

    status_code = 401
    default_message = "Unauthorized"


class MissingFieldsError(StoryTrailError):
    status_code = 400
    default_message = "Missing required fields: locationId, cityId"


class NotFoundError(StoryTrailError):
    status_code = 404
    default_message = "Not found"


class TrailNotFoundError(NotFoundError):
    default_message = "City not found"


class WaypointNotFoundError(NotFoundError):
    default_message = "Location not found"


class TrailUnavailableError(StoryTrailError):
    """Trail exists but is not published."""

    status_code = 403
    default_message = "City not available"


class EntitlementError(StoryTrailError):
    """Paid trail without a purchase. Recoverable by buying the trail."""

    status_code = 403
    default_message = "Purchase required"


class ValidationMismatchError(StoryTrailError):
    """Waypoint id submitted against a trail it does not belong to."""

    status_code = 400
    default_message = "Location does not belong to this city"


class TrailNotFinishedError(StoryTrailError):
    """Completion submitted before the end waypoint was solved."""

    status_code = 409
    default_message = "Trail not completed"
