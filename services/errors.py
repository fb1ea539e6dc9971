"""
Domain errors raised by the trip aggregate and the trip store.

All of them leave the trip unchanged. main.py maps them to HTTP status codes.
"""


class TripError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(TripError):
    """Malformed input to a mutation (blank field, non-positive amount, empty subset)."""
    status_code = 400


class ConflictError(TripError):
    """The mutation would break a cross-record invariant."""
    status_code = 409


class NotFoundError(TripError):
    """Unknown trip, round, expense or participant."""
    status_code = 404


class DuplicateParticipantError(ConflictError, ValidationError):
    """A participant with that name already exists in the trip."""
    status_code = 409


class StorageError(TripError):
    """The trip store could not persist a change; nothing was saved."""
    status_code = 503
