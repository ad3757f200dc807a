"""Domain error taxonomy.

Every expected failure carries a stable machine-readable code that clients
branch on. The HTTP layer renders these as ``{"error": code}``.
"""


class BribeBankError(Exception):
    status_code = 500
    default_code = "INTERNAL_SERVER_ERROR"

    def __init__(self, code: str | None = None, message: str | None = None):
        self.code = code or self.default_code
        super().__init__(message or self.code)


class ValidationError(BribeBankError):
    status_code = 400
    default_code = "MISSING_FIELDS"


class AuthenticationError(BribeBankError):
    status_code = 401
    default_code = "UNAUTHENTICATED"


class AuthorizationError(BribeBankError):
    status_code = 403
    default_code = "FORBIDDEN"


class NotFoundError(BribeBankError):
    status_code = 404
    default_code = "NOT_FOUND"


class InvalidStateError(BribeBankError):
    status_code = 400
    default_code = "INVALID_STATUS"


class InsufficientTicketsError(BribeBankError):
    status_code = 400
    default_code = "INSUFFICIENT_TICKETS"


class ConflictError(BribeBankError):
    status_code = 409
    default_code = "CONFLICT"
