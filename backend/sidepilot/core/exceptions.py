class SidePilotError(Exception):
    """Base exception for SidePilot application.

    ``status_code`` and ``public_message`` drive the JSON error envelope; the
    exception's own message is only ever logged.
    """

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)


class ValidationError(SidePilotError):
    """Raised when client input does not match the Project schema."""

    status_code = 400
    public_message = "Validation error"

    def __init__(self, message: str | None = None, errors: list[dict] | None = None):
        self.errors = errors or []
        super().__init__(message)
        if message:
            self.public_message = message


class AuthenticationError(SidePilotError):
    """Raised when a credential is missing, invalid, or expired."""

    status_code = 401
    public_message = "Unauthorized"

    def __init__(self, message: str | None = None):
        super().__init__(message)
        if message:
            self.public_message = message


class NotFoundError(SidePilotError):
    """Raised when a resource does not exist or is not owned by the caller."""

    status_code = 404
    public_message = "Not found"

    def __init__(self, message: str | None = None):
        super().__init__(message)
        if message:
            self.public_message = message


class StorageUnavailableError(SidePilotError):
    """Raised when the backing store cannot serve a request.

    Covers connection failures, constraint violations and an uninitialised
    engine. The underlying error text stays in the logs.
    """

    status_code = 500
    public_message = "Storage temporarily unavailable"
