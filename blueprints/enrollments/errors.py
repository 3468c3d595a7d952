# blueprints/enrollments/errors.py
"""Ошибки движка записей. Каждая знает свой HTTP-статус и машинный код."""
from __future__ import annotations
from typing import Any


class EnrollmentError(Exception):
    status = 500
    code = "ENROLLMENT_ERROR"

    def __init__(self, message: str, *, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message, "code": self.code}
        if self.details:
            body["errors"] = self.details
        return body


class ValidationError(EnrollmentError):
    status = 400
    code = "VALIDATION_ERROR"


class NotFound(EnrollmentError):
    status = 404
    code = "NOT_FOUND"


class InsufficientCapacity(EnrollmentError):
    status = 400
    code = "INSUFFICIENT_CAPACITY"

    def __init__(self, course_id: int, requested: int, available: int | None):
        super().__init__(
            "Not enough tickets available for this enrollment.",
            details={"course_id": course_id, "requested": requested, "available": available},
        )
        self.course_id = course_id
        self.requested = requested
        self.available = available


class StorageFailure(EnrollmentError):
    status = 500
    code = "STORAGE_FAILURE"
