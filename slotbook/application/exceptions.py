class SchedulingError(RuntimeError):
    """Base class for failures reported to callers of the scheduling commands."""

    code = "internal"
    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthenticated(SchedulingError):
    """Raised when a command is called without an authenticated caller."""

    code = "unauthenticated"
    http_status = 401


class InvalidArgument(SchedulingError):
    """Raised when required input is missing or malformed."""

    code = "invalid-argument"
    http_status = 400


class PermissionDenied(SchedulingError):
    """Raised when the caller may not act on the referenced trainer or client."""

    code = "permission-denied"
    http_status = 403


class NotFound(SchedulingError):
    """Raised when a referenced entity does not exist."""

    code = "not-found"
    http_status = 404


class FailedPrecondition(SchedulingError):
    """Raised when an entity exists but a business rule blocks the operation."""

    code = "failed-precondition"
    http_status = 409


class InternalError(SchedulingError):
    """Raised for unexpected failures. The cause is chained, not exposed in the message."""

    code = "internal"
    http_status = 500


class RecordDecodeError(ValueError):
    """Raised when a stored document does not match the expected schema."""

    def __init__(self, kind: str, record_id: str, reason: str) -> None:
        super().__init__(f"Invalid {kind} record {record_id!r}: {reason}")
        self.kind = kind
        self.record_id = record_id
        self.reason = reason
