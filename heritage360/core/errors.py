"""Domain errors for progress tracking and certificates.

Services raise these; the API layer maps them to HTTP responses in one
place (heritage360/api/errors.py).  None of them is fatal: the worst case
is a learner's update not applying, which the learner can retry.

Re-issuing a certificate or re-earning an achievement is NOT an error;
those paths return the existing record.
"""

from __future__ import annotations


class ProgressError(Exception):
    """Base class for learning-domain errors."""

    code = "progress_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(ProgressError):
    """A referenced course, lesson, enrollment or certificate is missing."""

    code = "not_found"


class NotEligibleError(ProgressError):
    """The learner does not meet the preconditions (e.g. course incomplete)."""

    code = "not_eligible"


class ConflictError(ProgressError):
    """A concurrent write moved the learner aggregate under us."""

    code = "conflict"


class AlreadyEnrolledError(ProgressError):
    code = "already_enrolled"
