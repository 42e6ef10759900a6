"""Exceptions raised by the job handlers and translated into responses in ``main``."""
from __future__ import annotations

from typing import Optional


class JobBoardError(Exception):
    """Base class for every error the presentation layer knows how to render."""


class FormValidationError(JobBoardError):
    """One or more required job fields were left empty.

    Carries every accumulated message plus the submitted values so the form
    can be re-rendered without the user retyping anything.
    """

    def __init__(self, errors: list[dict[str, str]], values: dict[str, str]):
        super().__init__(f"{len(errors)} field(s) missing")
        self.errors = errors
        self.values = values


class NotFoundError(JobBoardError):
    def __init__(self, resource: str, resource_id: Optional[object] = None):
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id


class AuthorizationError(JobBoardError):
    """The caller is neither the owner nor allowed by role."""

    def __init__(self, user_id: Optional[int] = None, job_id: Optional[int] = None):
        super().__init__(f"user {user_id} may not modify job {job_id}")
        self.user_id = user_id
        self.job_id = job_id


class NotAuthenticatedError(JobBoardError):
    pass


class PersistenceError(JobBoardError):
    """Unexpected storage failure; details are logged, never shown."""
