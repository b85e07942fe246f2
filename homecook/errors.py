# homecook/errors.py
from __future__ import annotations

from typing import List, Optional


class DomainError(Exception):
    """Base for every error the service reports to callers.

    `kind` is the stable identifier clients switch on; `message` is for humans;
    `items` optionally names the food items (or other ids) that caused it.
    """

    kind = "Internal"
    status_code = 500

    def __init__(self, message: str, items: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.items = list(items or [])

    def to_dict(self) -> dict:
        body = {"error": self.kind, "message": self.message}
        if self.items:
            body["items"] = self.items
        return body


class Unauthorized(DomainError):
    kind = "Unauthorized"
    status_code = 401


class Forbidden(DomainError):
    kind = "Forbidden"
    status_code = 403


class NotFound(DomainError):
    kind = "NotFound"
    status_code = 404


class InvalidInput(DomainError):
    kind = "InvalidInput"
    status_code = 400


class InvalidQuantity(InvalidInput):
    kind = "InvalidQuantity"


class InvalidRating(InvalidInput):
    kind = "InvalidRating"


class WrongSubjectType(InvalidInput):
    kind = "WrongSubjectType"


class InvalidTransition(DomainError):
    kind = "InvalidTransition"
    status_code = 400


class Conflict(DomainError):
    kind = "Conflict"
    status_code = 409


class Unavailable(DomainError):
    kind = "Unavailable"
    status_code = 400


class Internal(DomainError):
    kind = "Internal"
    status_code = 500
