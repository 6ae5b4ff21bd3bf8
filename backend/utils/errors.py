# backend/utils/errors.py
"""Application error taxonomy.

Services raise these instead of ``HTTPException`` so they stay usable outside a
request. ``main.py`` registers a handler that turns any ``AppError`` into the
``{"success": false, "message": ..., "error": ...}`` envelope.
"""
from typing import Any, Optional


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, error: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.error = error


class ValidationError(AppError):
    status_code = 400


class NotFound(AppError):
    status_code = 404


class Conflict(AppError):
    status_code = 400


class HasDependents(Conflict):
    def __init__(self, message: str, dependents: int):
        super().__init__(message, error={"dependents": dependents})
        self.dependents = dependents


class InsufficientStock(AppError):
    status_code = 400

    def __init__(self, available: int, requested: int):
        super().__init__(
            "Insufficient stock for this outbound movement",
            error={"available": available, "requested": requested},
        )
        self.available = available
        self.requested = requested


class Unauthenticated(AppError):
    status_code = 401


class InvalidCredentials(AppError):
    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)
