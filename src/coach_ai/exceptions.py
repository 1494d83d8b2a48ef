"""Exception hierarchy for the coach AI layer.

None of these cross the service boundary: the services catch them where the
I/O happens and convert them into an ``AIResponse`` envelope. Only programmer
errors (missing required identifiers) are raised to callers, as ``ValueError``.
"""


class CoachAIError(Exception):
    """Base exception for all coach AI errors."""


class StorageError(CoachAIError):
    """Device-local storage could not be read or written."""


class ProviderError(CoachAIError):
    """The remote text provider failed.

    Attributes:
        retryable: Whether repeating the same request may succeed
            (timeouts, connection errors, rate limits, 5xx responses).
        status_code: HTTP status code, if the failure came from a response.
    """

    def __init__(
        self,
        message: str,
        retryable: bool = True,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.status_code = status_code


class ProviderAuthError(ProviderError):
    """The provider rejected the credentials. Never retried."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, retryable=False, status_code=status_code)


class MalformedResponseError(CoachAIError):
    """Remote output could not be parsed into the expected structure."""
