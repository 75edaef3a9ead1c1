"""
A connection runs single API calls and turns failed responses into exceptions.

Every request, whatever its verb, goes through :meth:`Connection.run_request`:
it applies the User-Agent and credentials, sends the request, records the
response's ApiInfo and classifies errors.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Mapping, Optional

from .api_info import ApiInfo, parse_api_info
from .caching import CachingHttpClient
from .config import ClientConfig, Credentials
from .exceptions import (
    AbuseException,
    ApiException,
    ApiValidationException,
    AuthorizationException,
    ForbiddenException,
    LegalRestrictionException,
    LoginAttemptsExceededException,
    NotFoundException,
    RateLimitExceededException,
    RequestCancelledError,
    SecondaryRateLimitExceededException,
    TwoFactorRequiredException,
)
from .http import Request, Response
from .http_adapter import HttpClientAdapter
from .json_pipeline import JsonHttpPipeline
from .models import TwoFactorType
from .rate_limit import find_header
from .serializer import SimpleJsonSerializer
from .utils import apply_parameters, format_user_agent

logger = logging.getLogger(__name__)

OTP_HEADER = "X-GitHub-OTP"
# Default Content-Type for requests with a body, see https://docs.github.com/rest
DEFAULT_BODY_CONTENT_TYPE = "application/x-www-form-urlencoded"
HTML_ACCEPT_HEADER = "application/vnd.github.v3.html"
RAW_ACCEPT_HEADER = "application/vnd.github.v3.raw"


def parse_two_factor_type(response: Response[Any]) -> TwoFactorType:
    """Read the second factor GitHub asks for from ``X-GitHub-OTP``.

    Returns:
        NONE when the header is missing or does not start with ``required``;
        SMS or AUTHENTICATOR_APP for known factors; UNKNOWN otherwise
    """
    value = find_header(response.headers, OTP_HEADER)
    if not value:
        return TwoFactorType.NONE
    parts = [part for part in value.split(';') if part]
    if not parts or parts[0] != 'required':
        return TwoFactorType.NONE
    factor = parts[1].strip() if len(parts) > 1 else None
    if factor == 'sms':
        return TwoFactorType.SMS
    if factor == 'app':
        return TwoFactorType.AUTHENTICATOR_APP
    return TwoFactorType.UNKNOWN


def _unauthorized(response: Response[Any]) -> ApiException:
    two_factor_type = parse_two_factor_type(response)
    if two_factor_type is TwoFactorType.NONE:
        return AuthorizationException(response)
    return TwoFactorRequiredException(response, two_factor_type)


def _forbidden(response: Response[Any]) -> ApiException:
    body = response.body if isinstance(response.body, str) else ''

    if "rate limit exceeded" in body:
        return RateLimitExceededException(response)
    if "secondary rate limit" in body:
        return SecondaryRateLimitExceededException(response)
    if "number of login attempts exceeded" in body:
        return LoginAttemptsExceededException(response)
    if "abuse-rate-limits" in body or "abuse detection mechanism" in body:
        return AbuseException(response)
    return ForbiddenException(response)


_EXCEPTION_MAP: Dict[int, Callable[[Response[Any]], ApiException]] = {
    401: _unauthorized,
    403: _forbidden,
    404: NotFoundException,
    422: ApiValidationException,
    451: LegalRestrictionException,
}


def classify_response(response: Response[Any]) -> Optional[ApiException]:
    """Return the exception a terminal response maps to, or None on success."""
    factory = _EXCEPTION_MAP.get(response.status_code)
    if factory is not None:
        return factory(response)
    if response.status_code >= 400:
        return ApiException(response)
    return None


def handle_errors(response: Response[Any]) -> None:
    """Raise the classified exception for a failed response."""
    error = classify_response(response)
    if error is not None:
        raise error


class Connection:
    """Runs API calls against the configured GitHub endpoint.

    Args:
        config: Client configuration; defaults to anonymous api.github.com
        http_client: Transport to send requests with. When omitted an
            HttpClientAdapter is created, wrapped in a CachingHttpClient if
            the configuration enables the response cache.
        serializer: JSON serializer used by the pipeline
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        http_client: Any = None,
        serializer: Optional[SimpleJsonSerializer] = None,
    ) -> None:
        self.config = config or ClientConfig()
        if http_client is None:
            http_client = HttpClientAdapter()
            if self.config.use_response_cache:
                http_client = CachingHttpClient(http_client, self.config.cache_ttl, self.config.cache_size)
        self._http_client = http_client
        self._pipeline = JsonHttpPipeline(serializer)
        self.user_agent = format_user_agent(self.config.product_name)
        self._last_api_info: Optional[ApiInfo] = None
        self._lock = threading.Lock()

    @property
    def base_address(self) -> str:
        return self.config.base_address

    @property
    def credentials(self) -> Credentials:
        return self.config.credentials

    def get_last_api_info(self) -> Optional[ApiInfo]:
        """A copy of the ApiInfo from the most recent response, if any."""
        with self._lock:
            last = self._last_api_info
        return last.clone() if last is not None else None

    def set_request_timeout(self, timeout: float) -> None:
        self._http_client.set_request_timeout(timeout)

    def get(
        self,
        uri: str,
        parameters: Optional[Mapping[str, Any]] = None,
        accepts: Optional[str] = None,
        response_type: Any = None,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Response[Any]:
        return self.send_data(
            uri, 'GET',
            parameters=parameters,
            accepts=accepts,
            timeout=timeout,
            response_type=response_type,
            cancel_event=cancel_event,
        )

    def get_html(self, uri: str, parameters: Optional[Mapping[str, Any]] = None) -> Response[str]:
        """GET a resource rendered as HTML; ``data`` holds the markup."""
        request = self._new_request('GET', uri, parameters)
        request.headers['Accept'] = HTML_ACCEPT_HEADER
        response = self.run_request(request)
        return response.with_changes(data=response.text)

    def get_raw(
        self,
        uri: str,
        parameters: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Response[bytes]:
        """GET raw file contents; ``data`` holds the bytes."""
        request = self._new_request('GET', uri, parameters, timeout=timeout)
        request.headers['Accept'] = RAW_ACCEPT_HEADER
        response = self.run_request(request)
        body = response.body
        if isinstance(body, str):
            body = body.encode('utf-8')
        return response.with_changes(data=body)

    def post(
        self,
        uri: str,
        body: Any = None,
        accepts: Optional[str] = None,
        content_type: Optional[str] = None,
        parameters: Optional[Mapping[str, Any]] = None,
        two_factor_code: Optional[str] = None,
        timeout: Optional[float] = None,
        base_address: Optional[str] = None,
        response_type: Any = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Response[Any]:
        return self.send_data(
            uri, 'POST', body,
            accepts=accepts,
            content_type=content_type,
            parameters=parameters,
            two_factor_code=two_factor_code,
            timeout=timeout,
            base_address=base_address,
            response_type=response_type,
            cancel_event=cancel_event,
        )

    def put(
        self,
        uri: str,
        body: Any = None,
        two_factor_code: Optional[str] = None,
        accepts: Optional[str] = None,
        response_type: Any = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Response[Any]:
        return self.send_data(
            uri, 'PUT', body,
            accepts=accepts,
            two_factor_code=two_factor_code,
            response_type=response_type,
            cancel_event=cancel_event,
        )

    def patch(
        self,
        uri: str,
        body: Any = None,
        accepts: Optional[str] = None,
        response_type: Any = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Response[Any]:
        return self.send_data(
            uri, 'PATCH', body,
            accepts=accepts,
            response_type=response_type,
            cancel_event=cancel_event,
        )

    def delete(
        self,
        uri: str,
        body: Any = None,
        accepts: Optional[str] = None,
        content_type: Optional[str] = None,
        two_factor_code: Optional[str] = None,
        response_type: Any = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Response[Any]:
        """DELETE a resource. A body, when given, is sent as JSON by default."""
        if body is not None and content_type is None:
            content_type = "application/json"
        return self.send_data(
            uri, 'DELETE', body,
            accepts=accepts,
            content_type=content_type,
            two_factor_code=two_factor_code,
            response_type=response_type,
            cancel_event=cancel_event,
        )

    def send_data(
        self,
        uri: str,
        method: str,
        body: Any = None,
        accepts: Optional[str] = None,
        content_type: Optional[str] = None,
        parameters: Optional[Mapping[str, Any]] = None,
        two_factor_code: Optional[str] = None,
        timeout: Optional[float] = None,
        base_address: Optional[str] = None,
        response_type: Any = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Response[Any]:
        """Build a request for ``uri`` and run it through the JSON pipeline.

        Args:
            uri: Endpoint, relative to the base address or absolute
            method: HTTP verb
            body: Request body; objects are serialized to JSON
            accepts: ``Accept`` header overriding the default
            content_type: Body content type; defaults to form encoding
            parameters: Query parameters merged into ``uri``
            two_factor_code: Sent as ``X-GitHub-OTP``
            timeout: Request timeout in seconds
            base_address: Overrides the configured base address
            response_type: Type the JSON body is converted to
            cancel_event: Cancels the call if set before it is sent

        Returns:
            The successful response with ``data`` and ``api_info`` set
        """
        request = self._new_request(method, uri, parameters, timeout=timeout, base_address=base_address)
        if accepts:
            request.headers['Accept'] = accepts
        if two_factor_code:
            request.headers[OTP_HEADER] = two_factor_code
        if body is not None:
            request.body = body
            request.content_type = content_type or DEFAULT_BODY_CONTENT_TYPE

        return self.run(request, response_type, cancel_event)

    def run(
        self,
        request: Request,
        response_type: Any = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Response[Any]:
        request = self._pipeline.serialize_request(request)
        response = self.run_request(request, cancel_event)
        return self._pipeline.deserialize_response(response, response_type)

    def run_request(self, request: Request, cancel_event: Optional[threading.Event] = None) -> Response[Any]:
        """Send ``request`` and classify the response.

        Raises:
            RequestCancelledError: if ``cancel_event`` is already set
            ApiException: (or a subclass) for any failed response
        """
        if cancel_event is not None and cancel_event.is_set():
            raise RequestCancelledError(f"{request.method} {request.url} was cancelled")

        headers = request.headers.copy()
        for name, value in self.config.default_headers.items():
            headers.setdefault(name, value)
        headers['User-Agent'] = self.user_agent
        authorization = self.credentials.authorization_header()
        if authorization:
            headers['Authorization'] = authorization
        request = request.copy(headers=headers)

        response = self._http_client.send(request, cancel_event)
        api_info = parse_api_info(response.headers)
        response = response.with_changes(api_info=api_info)
        with self._lock:
            self._last_api_info = api_info.clone()

        logger.debug("%s %s -> %d", request.method, request.url, response.status_code)
        if api_info.rate_limit.is_exhausted:
            logger.warning(
                "Rate limit exhausted (%d requests), resets at %s",
                api_info.rate_limit.limit,
                api_info.rate_limit.reset.isoformat(),
            )

        handle_errors(response)
        return response

    def _new_request(
        self,
        method: str,
        uri: str,
        parameters: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
        base_address: Optional[str] = None,
    ) -> Request:
        if uri is None:
            raise ValueError("uri must not be None")
        return Request(
            method=method,
            base_address=base_address or self.base_address,
            endpoint=apply_parameters(uri, parameters),
            timeout=timeout or self.config.timeout,
        )

    def close(self) -> None:
        close = getattr(self._http_client, 'close', None)
        if close is not None:
            close()
