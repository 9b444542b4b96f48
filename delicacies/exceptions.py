"""
Exception hierarchy for Bihari Delicacies.

Every error raised on purpose by the domain layer derives from
DelicaciesException and carries the HTTP status the API should answer with.
"""


class DelicaciesException(Exception):
    """Base exception for Bihari Delicacies errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        detail: str = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class ValidationError(DelicaciesException):
    """Input validation failed."""

    def __init__(self, message: str, detail: str = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            detail=detail,
        )


class AuthenticationError(DelicaciesException):
    """Bad credentials or no usable session."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message=message,
            code="AUTHENTICATION_ERROR",
            status_code=401,
        )


class NotFoundError(DelicaciesException):
    """Resource not found."""

    def __init__(self, message: str, detail: str = None):
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404,
            detail=detail,
        )


class ConflictError(DelicaciesException):
    """Unique key already taken."""

    def __init__(self, message: str, detail: str = None):
        super().__init__(
            message=message,
            code="CONFLICT",
            status_code=409,
            detail=detail,
        )


class PayloadTooLargeError(DelicaciesException):
    """Uploaded file exceeds the configured size limit."""

    def __init__(self, limit_bytes: int):
        super().__init__(
            message="File too large",
            code="PAYLOAD_TOO_LARGE",
            status_code=413,
            detail=f"Maximum upload size is {limit_bytes // (1024 * 1024)}MB",
        )


class RateLimitError(DelicaciesException):
    """Rate limit exceeded."""

    def __init__(self, limit: int, window: str):
        super().__init__(
            message="Too many requests, please try again later",
            code="RATE_LIMIT_EXCEEDED",
            status_code=429,
            detail=f"Maximum {limit} requests per {window}",
        )


class InternalError(DelicaciesException):
    """Unexpected failure while handling a request."""

    def __init__(self, message: str = "Internal Server Error", detail: str = None):
        super().__init__(
            message=message,
            code="INTERNAL_ERROR",
            status_code=500,
            detail=detail,
        )
