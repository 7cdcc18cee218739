"""
Error taxonomy for the Conga Sign client and transaction mirror.

Every error raised out of the client or the mirror derives from CongaError,
so callers can catch one base class and show the message inline.
"""


class CongaError(Exception):
    """Base exception for sandbox errors."""

    pass


class ConfigurationError(CongaError):
    """Credentials or platform email are missing or invalid."""

    pass


class AuthenticationError(CongaError):
    """The vendor rejected the client credentials or returned no token."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        self.status_code = status_code
        self.message = message
        self.response_body = response_body

        if status_code is not None:
            super().__init__(f"Authentication failed ({status_code}): {response_body or message}")
        else:
            super().__init__(f"Authentication failed: {message}")


class ApiRequestError(CongaError):
    """Non-2xx vendor response, unreadable body, or transport failure.

    status_code is None when the request never produced a response.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        self.status_code = status_code
        self.message = message
        self.response_body = response_body

        if status_code is not None:
            super().__init__(f"API request failed ({status_code}): {response_body or message}")
        else:
            super().__init__(f"API request failed: {message}")


class NotFoundError(CongaError):
    """A referenced transaction, signer or document is not known locally."""

    pass
