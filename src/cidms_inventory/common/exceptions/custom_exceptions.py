"""Custom application-wide exceptions.

Each class carries the HTTP status an API layer should answer with, so the
translation stays next to the error kind instead of in a lookup table.
"""


class ApplicationError(Exception):
    """Base class for application-specific errors."""

    status_code: int = 500

    def __init__(
        self, message: str = "An application error occurred", original_exception: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.original_exception = original_exception
        self.message = message

    def __str__(self) -> str:
        if self.original_exception:
            return f"{self.message} (Original error: {self.original_exception})"
        return self.message


class NotFoundError(ApplicationError):
    """A referenced product or actor does not exist."""

    status_code = 404

    def __init__(self, message: str = "Resource not found", original_exception: Exception | None = None) -> None:
        super().__init__(message, original_exception)


class InvalidArgumentError(ApplicationError):
    """Malformed quantity, unknown movement kind or missing required field."""

    status_code = 400

    def __init__(self, message: str = "Invalid argument", original_exception: Exception | None = None) -> None:
        super().__init__(message, original_exception)


class InvalidStateError(ApplicationError):
    """A business rule was violated, chiefly insufficient stock for a subtract."""

    status_code = 400

    def __init__(self, message: str = "Invalid state", original_exception: Exception | None = None) -> None:
        super().__init__(message, original_exception)


class UnauthorizedError(ApplicationError):
    """The actor lacks the capability required for the operation."""

    status_code = 403

    def __init__(self, message: str = "Not authorized", original_exception: Exception | None = None) -> None:
        super().__init__(message, original_exception)


class ConflictError(ApplicationError):
    """Concurrent write detected or a uniqueness constraint was violated."""

    status_code = 409

    def __init__(self, message: str = "Conflicting write", original_exception: Exception | None = None) -> None:
        super().__init__(message, original_exception)


class StorageFailureError(ApplicationError):
    """Exception raised when the underlying persistence is unavailable or fails."""

    status_code = 503

    def __init__(self, message: str = "Database operation failed", original_exception: Exception | None = None) -> None:
        super().__init__(message, original_exception)
        self.message = f"Database Error: {message}"


class APIError(ApplicationError):
    """Exception raised for errors during external API calls."""

    status_code = 502

    def __init__(
        self,
        message: str = "API call failed",
        original_exception: Exception | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, original_exception)
        self.response_status_code = status_code
        self.message = f"API Error: {message}"
        if status_code:
            self.message += f" (Status Code: {status_code})"
