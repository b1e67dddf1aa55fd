# services/errors.py
"""
Error kinds raised by the directory services.

  - ValidationError   bad input, raised before any write; message is user-facing
  - NotFoundError     expected lookup miss (route by pair / by id)
  - StoreError        any other data-store failure; message is generic, detail is logged
  - PartialWriteError a later step of trip authoring failed after earlier rows were written
"""
from __future__ import annotations


class DirectoryError(Exception):
    """Base class for all service-level errors."""

    public_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ValidationError(DirectoryError):
    public_message = "Invalid input."


class NotFoundError(DirectoryError):
    public_message = "Not found."


class StoreError(DirectoryError):
    public_message = "The database is unavailable right now. Please try again."


class PartialWriteError(StoreError):
    """
    Raised when the trip row was written but its stop-timings were not.
    The unit of work is rolled back before this is raised, so no half-built
    trip is left behind; `step` names the step that failed.
    """

    def __init__(self, message: str | None = None, *, step: str = "trip_timings", rolled_back: bool = True):
        super().__init__(message)
        self.step = step
        self.rolled_back = rolled_back
