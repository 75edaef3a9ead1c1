"""Exceptions raised by the GitHub API client.

``ApiException`` and its subclasses are built from a terminal response whose
status code signals failure. They keep the response, so the raw body is
always available even when it could not be parsed.
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, List, Optional

from .models import ApiError, ApiErrorDetail, TwoFactorType
from .rate_limit import RateLimit, find_header
from .serializer import SimpleJsonSerializer

if TYPE_CHECKING:
    from .http import Response

DEFAULT_MESSAGE = "An error occurred with this API request"

_serializer = SimpleJsonSerializer()


def parse_api_error(body: Any) -> ApiError:
    """Read GitHub's error payload, falling back to the raw text as message."""
    if isinstance(body, bytes):
        body = body.decode('utf-8', errors='replace')
    if not body:
        return ApiError(message=body or None)
    try:
        error = _serializer.deserialize(body, ApiError)
    except (ValueError, TypeError):
        return ApiError(message=body)
    if not isinstance(error, ApiError):
        return ApiError(message=body)
    return error


class GitHubClientError(Exception):
    """Base exception for all errors raised by this library."""


class TransportError(GitHubClientError):
    """Raised when a request could not be completed over the network."""


class RedirectLoopError(TransportError):
    """Raised when a request is redirected more often than allowed."""


class RequestCancelledError(GitHubClientError):
    """Raised when a cancellation signal is set before a round trip."""


class DeserializationError(GitHubClientError):
    """Raised when a JSON response body cannot be parsed.

    Attributes:
        response: The response whose body failed to parse
    """

    def __init__(self, message: str, response: Optional['Response[Any]'] = None):
        super().__init__(message)
        self.response = response


class ApiException(GitHubClientError):
    """Raised for any non-success response from the GitHub API.

    Attributes:
        status_code: HTTP status of the response
        api_error: Parsed error payload (message, documentation URL, details)
        response: The response that triggered the error, if any
    """

    default_message = DEFAULT_MESSAGE

    def __init__(
        self,
        response: Optional['Response[Any]'] = None,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.response = response
        if response is not None:
            self.status_code = response.status_code
            self.api_error = parse_api_error(response.body)
        else:
            self.status_code = status_code or 0
            self.api_error = ApiError(message=message)
        if message is not None:
            self.api_error.message = message
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return self.api_error.message or self.default_message

    @property
    def documentation_url(self) -> Optional[str]:
        return self.api_error.documentation_url

    @property
    def raw_body(self) -> Optional[str]:
        """The unparsed response body, if there was a response."""
        if self.response is None:
            return None
        return self.response.text

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(status_code={self.status_code}, message={self.message!r})"


class AuthorizationException(ApiException):
    """Raised on 401 Unauthorized."""

    default_message = "You must be authenticated to call this method. Either supply a login/password or an oauth token."


class TwoFactorRequiredException(AuthorizationException):
    """Raised on 401 when the ``X-GitHub-OTP`` challenge asks for a second factor."""

    default_message = "Two-factor authentication code is required"

    def __init__(
        self,
        response: Optional['Response[Any]'] = None,
        two_factor_type: TwoFactorType = TwoFactorType.UNKNOWN,
    ) -> None:
        self.two_factor_type = two_factor_type
        super().__init__(response)


class ForbiddenException(ApiException):
    """Raised on 403 Forbidden."""

    default_message = "Request Forbidden"


class RateLimitExceededException(ForbiddenException):
    """Raised when the primary rate limit is exhausted.

    Attributes:
        rate_limit: Limit, remaining and reset time from the response headers
    """

    default_message = "API Rate Limit exceeded"

    def __init__(self, response: Optional['Response[Any]'] = None) -> None:
        super().__init__(response)
        headers = response.headers if response is not None else {}
        self.rate_limit = RateLimit.from_headers(headers)

    @property
    def limit(self) -> int:
        return self.rate_limit.limit

    @property
    def remaining(self) -> int:
        return self.rate_limit.remaining

    @property
    def reset(self) -> datetime:
        return self.rate_limit.reset


class SecondaryRateLimitExceededException(ForbiddenException):
    """Raised when a secondary (concurrency/content) rate limit is hit."""

    default_message = "Secondary API Rate Limit exceeded"


class LoginAttemptsExceededException(ForbiddenException):
    """Raised after too many failed logins; see ``documentation_url``."""

    default_message = "Maximum number of login attempts exceeded"


class AbuseException(ForbiddenException):
    """Raised when GitHub's abuse detection blocks the request.

    Attributes:
        retry_after_seconds: Value of the ``Retry-After`` header, if present
    """

    default_message = "Request Forbidden - Abuse Detection"

    def __init__(self, response: Optional['Response[Any]'] = None) -> None:
        super().__init__(response)
        self.retry_after_seconds = self._parse_retry_after(response)

    @staticmethod
    def _parse_retry_after(response: Optional['Response[Any]']) -> Optional[int]:
        if response is None:
            return None
        value = find_header(response.headers, 'Retry-After')
        try:
            seconds = int(value) if value is not None else None
        except ValueError:
            return None
        if seconds is None or seconds < 0:
            return None
        return seconds


class NotFoundException(ApiException):
    """Raised on 404 Not Found. Plain-text bodies become the message."""


class ApiValidationException(ApiException):
    """Raised on 422 Unprocessable Entity.

    ``errors`` lists the field-level problems GitHub reported; it is empty when
    the body could not be read.
    """

    default_message = "Validation Failed"

    @property
    def errors(self) -> List[ApiErrorDetail]:
        return list(self.api_error.errors or [])


class LegalRestrictionException(ApiException):
    """Raised on 451 Unavailable For Legal Reasons."""

    default_message = "Resource taken down due to a DMCA notice."

