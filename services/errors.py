# services/errors.py
"""
Domain errors raised by the fleet and route-view services.

They are werkzeug HTTPExceptions so the app-wide error handler renders
them as {"error": <description>} with the right status code, the same
way it renders any other abort().
"""
from __future__ import annotations

from werkzeug.exceptions import HTTPException

__all__ = [
    "TransitError",
    "NotFound",
    "Conflict",
    "InvalidAssignment",
    "ValidationFailure",
]


class TransitError(HTTPException):
    code = 400
    description = "Request could not be processed"


class NotFound(TransitError):
    """Referenced entity id does not resolve."""
    code = 404
    description = "Not found"


class Conflict(TransitError):
    """Unique field collision (route number, bus number, user email)."""
    code = 409
    description = "Already exists"


class InvalidAssignment(TransitError):
    """Driver id does not reference a driver-role user."""
    code = 400
    description = "Invalid driver"


class ValidationFailure(TransitError):
    """Missing or malformed field on create/update."""
    code = 400
    description = "Invalid payload"
