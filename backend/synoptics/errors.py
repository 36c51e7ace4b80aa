"""Domain errors raised by the service layer.

The HTTP layer maps each class to a status code (see ``synoptics.main``).
"""

from typing import Any


class SynopticsError(Exception):
    """Base class for all service-layer errors."""

    code = "error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(SynopticsError):
    """A referenced id does not exist."""

    code = "not_found"


class ValidationError(SynopticsError):
    """Input is malformed or outside its allowed values."""

    code = "validation_error"


class DanglingReferenceError(SynopticsError):
    """A foreign reference points at the wrong kind of row or another site."""

    code = "reference_error"


class ConflictError(SynopticsError):
    """The write collides with existing rows or is blocked by dependents."""

    code = "conflict"


class UnauthorizedError(SynopticsError):
    """The request carries no resolved caller identity."""

    code = "unauthorized"
