class UploadError(Exception):
    """Base class for failures surfaced to callers of the upload endpoint."""

    status_code: int = 500
    default_message: str = "Unknown error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(UploadError):
    """Missing or invalid bearer credential."""

    status_code = 401
    default_message = "Unauthorized"


class InvalidInputError(UploadError):
    """The caller sent a request that must be corrected before resubmitting."""

    status_code = 400
    default_message = "Missing fileName or contentType"


class ConfigurationError(UploadError):
    """Deployment is missing required settings; an operator problem."""

    status_code = 500
    default_message = "Server configuration error"


class UnexpectedError(UploadError):
    status_code = 500
