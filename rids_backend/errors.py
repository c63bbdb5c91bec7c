"""
errors.py — Domain exceptions shared by routes, store and the wizard client.

main.py registers one exception handler per class so every failure leaves the
API in the same {success: false, error} envelope. Each class carries the HTTP
status it maps to.
"""


class RidsError(Exception):
    """Base class for all errors surfaced through the API envelope."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthenticated(RidsError):
    """No valid session credential on the request."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class Forbidden(RidsError):
    status_code = 403


class NotFound(RidsError):
    status_code = 404


class Conflict(RidsError):
    status_code = 409


class InvalidState(RidsError):
    """Request is well-formed but not allowed in the record's current status."""

    status_code = 400


class InvalidEntry(RidsError):
    """
    A section entry payload failed validation. Reported with the same 500
    status as a storage constraint violation so clients handle both alike.
    """

    status_code = 500


class IdentityUnavailable(RidsError):
    """The identity service could not be reached to verify a session token."""

    status_code = 503


class StorageError(RidsError):
    """
    Storage rejected the write or read (constraint violation, missing parent,
    entry/parent mismatch). The message is the storage error text.
    """

    status_code = 500
