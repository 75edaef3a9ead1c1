"""GitHub REST API client core.

This package provides the request pipeline behind a GitHub REST client:
typed requests and responses, redirect handling, rate limit and ``Link``
header parsing, lazy pagination and a typed exception hierarchy.

Example usage:
    ```python
    from ghrest import GitHubClient, PageOptions

    # Reads GITHUB_TOKEN (and a .env file) from the environment
    client = GitHubClient()

    # Get a repository
    repo = client.get_repository("owner", "repo")

    # First two pages of an organization's repositories
    repos = client.list_organization_repositories(
        "org-name", options=PageOptions(page_size=50, page_count=2)
    )
    ```
"""
from .__version__ import __version__
from .api_connection import ApiConnection
from .api_info import ApiInfo, parse_api_info
from .caching import CachingHttpClient
from .client import GitHubClient
from .config import AuthenticationType, ClientConfig, Credentials
from .connection import Connection, classify_response
from .exceptions import (
    AbuseException,
    ApiException,
    ApiValidationException,
    AuthorizationException,
    DeserializationError,
    ForbiddenException,
    GitHubClientError,
    LegalRestrictionException,
    LoginAttemptsExceededException,
    NotFoundException,
    RateLimitExceededException,
    RedirectLoopError,
    RequestCancelledError,
    SecondaryRateLimitExceededException,
    TransportError,
    TwoFactorRequiredException,
)
from .http import FormUrlEncodedContent, Request, Response
from .http_adapter import HttpClientAdapter
from .json_pipeline import JsonHttpPipeline
from .models import (
    ApiError,
    ApiErrorDetail,
    Commit,
    GitReference,
    GitTag,
    Repository,
    RepositoryOwner,
    Signature,
    TagObject,
    TaggedType,
    TwoFactorType,
)
from .paged_collection import ReadOnlyPagedCollection
from .pagination import ApiPagination, LazySequence, PageOptions
from .rate_limit import RateLimit
from .serializer import SimpleJsonSerializer

__all__ = [
    '__version__',
    # Client
    'GitHubClient',
    'ClientConfig',
    'Credentials',
    'AuthenticationType',
    # Pipeline
    'ApiConnection',
    'Connection',
    'classify_response',
    'HttpClientAdapter',
    'CachingHttpClient',
    'JsonHttpPipeline',
    'SimpleJsonSerializer',
    'Request',
    'Response',
    'FormUrlEncodedContent',
    'ApiInfo',
    'parse_api_info',
    'RateLimit',
    # Pagination
    'ApiPagination',
    'LazySequence',
    'PageOptions',
    'ReadOnlyPagedCollection',
    # Models
    'ApiError',
    'ApiErrorDetail',
    'Commit',
    'GitReference',
    'GitTag',
    'Repository',
    'RepositoryOwner',
    'Signature',
    'TagObject',
    'TaggedType',
    'TwoFactorType',
    # Errors
    'GitHubClientError',
    'TransportError',
    'RedirectLoopError',
    'RequestCancelledError',
    'DeserializationError',
    'ApiException',
    'AuthorizationException',
    'TwoFactorRequiredException',
    'ForbiddenException',
    'RateLimitExceededException',
    'SecondaryRateLimitExceededException',
    'LoginAttemptsExceededException',
    'AbuseException',
    'NotFoundException',
    'ApiValidationException',
    'LegalRestrictionException',
]
