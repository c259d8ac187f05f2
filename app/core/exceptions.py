# app/core/exceptions.py
"""Domain errors raised by services and rendered by the API layer"""
from typing import Any, Dict, Optional


class SchedulingError(Exception):
    """Base error; status_code is the HTTP status the API responds with."""
    status_code = 500

    def __init__(self, message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.payload = payload or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, **self.payload}


class InvalidInput(SchedulingError):
    status_code = 400


class Unauthorized(SchedulingError):
    status_code = 401


class PermissionDenied(SchedulingError):
    status_code = 403


class NotFound(SchedulingError):
    status_code = 404


class Conflict(SchedulingError):
    status_code = 409
