"""
Domain errors raised by the service layer.
Each carries a machine-readable kind and the HTTP status main.py maps it to.
"""


class ImpoundError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ImpoundError):
    """Referenced case, entry or agency does not exist."""
    kind = "not_found"
    status_code = 404


class InvalidStateError(ImpoundError):
    """The operation's guard failed for the record's current state."""
    kind = "invalid_state"
    status_code = 400


class ValidationError(ImpoundError):
    """Malformed input that passed schema validation."""
    kind = "validation_error"
    status_code = 422


class ConflictError(ImpoundError):
    """Concurrent modification detected by the storage layer. Safe to retry."""
    kind = "conflict"
    status_code = 409
