"""Client configuration and credentials."""
from __future__ import annotations

import base64
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from .caching import DEFAULT_CACHE_SIZE, DEFAULT_CACHE_TTL
from .http import DEFAULT_TIMEOUT, is_absolute_uri

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com/"
DEFAULT_PRODUCT_NAME = "ghrest"


class AuthenticationType(str, Enum):
    ANONYMOUS = 'anonymous'
    BASIC = 'basic'
    OAUTH = 'oauth'
    BEARER = 'bearer'


@dataclass(frozen=True)
class Credentials:
    """Credentials used to build the ``Authorization`` header.

    Use the ``token``, ``bearer`` and ``basic`` constructors; the default
    instance is anonymous and sends no header.
    """
    login: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    authentication_type: AuthenticationType = AuthenticationType.ANONYMOUS

    @classmethod
    def anonymous(cls) -> 'Credentials':
        return cls()

    @classmethod
    def token(cls, token: str) -> 'Credentials':
        """OAuth or personal access token, sent as ``token <value>``."""
        if not token:
            raise ValueError("token must not be empty")
        return cls(password=token, authentication_type=AuthenticationType.OAUTH)

    @classmethod
    def bearer(cls, token: str) -> 'Credentials':
        """A GitHub App JWT or installation token, sent as ``Bearer <value>``."""
        if not token:
            raise ValueError("token must not be empty")
        return cls(password=token, authentication_type=AuthenticationType.BEARER)

    @classmethod
    def basic(cls, login: str, password: str) -> 'Credentials':
        if not login:
            raise ValueError("login must not be empty")
        return cls(login=login, password=password, authentication_type=AuthenticationType.BASIC)

    def authorization_header(self) -> Optional[str]:
        """The ``Authorization`` header value, or None for anonymous access."""
        if self.authentication_type is AuthenticationType.OAUTH:
            return f"token {self.password}"
        if self.authentication_type is AuthenticationType.BEARER:
            return f"Bearer {self.password}"
        if self.authentication_type is AuthenticationType.BASIC:
            raw = f"{self.login}:{self.password or ''}".encode('utf-8')
            return f"Basic {base64.b64encode(raw).decode('ascii')}"
        return None


@dataclass(frozen=True)
class ClientConfig:
    """Immutable configuration shared by every call made through a client.

    Args:
        base_address: Absolute URL of the API; a trailing slash is added
        product_name: Identifies the calling application in the User-Agent
        credentials: Credentials for the ``Authorization`` header
        timeout: Default request timeout in seconds
        default_headers: Headers added to every request
        use_response_cache: Revalidate GET responses with ETags
        cache_ttl: Cache TTL in seconds
        cache_size: Maximum number of cached responses
    """
    base_address: str = GITHUB_API_URL
    product_name: str = DEFAULT_PRODUCT_NAME
    credentials: Credentials = field(default_factory=Credentials)
    timeout: float = DEFAULT_TIMEOUT
    default_headers: Mapping[str, str] = field(default_factory=dict)
    use_response_cache: bool = False
    cache_ttl: int = DEFAULT_CACHE_TTL
    cache_size: int = DEFAULT_CACHE_SIZE

    def __post_init__(self) -> None:
        if not self.base_address or not is_absolute_uri(self.base_address):
            raise ValueError(f"The base address '{self.base_address}' must be an absolute URI")
        if not self.base_address.endswith('/'):
            object.__setattr__(self, 'base_address', f"{self.base_address}/")
        if not self.product_name:
            raise ValueError("product_name must not be empty")
        if self.timeout <= 0:
            raise ValueError("timeout must be greater than zero")
        object.__setattr__(self, 'default_headers', dict(self.default_headers))

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None, **overrides) -> 'ClientConfig':
        """Build a configuration from the environment.

        A ``.env`` file is loaded first (values in it override the process
        environment). Recognized variables:

        - ``GITHUB_API``: base address (GitHub Enterprise, mock servers)
        - ``GITHUB_TOKEN``: personal access token
        - ``GITHUB_USER_AGENT``: product name for the User-Agent header
        - ``GITHUB_REQUEST_TIMEOUT``: timeout in seconds
        - ``GITHUB_RESPONSE_CACHE``: ``1``/``true`` to enable the cache

        Keyword arguments take precedence over the environment.
        """
        load_dotenv(dotenv_path or find_dotenv(usecwd=True), override=True)

        values = {}
        if os.getenv('GITHUB_API'):
            values['base_address'] = os.environ['GITHUB_API']
        if os.getenv('GITHUB_TOKEN'):
            values['credentials'] = Credentials.token(os.environ['GITHUB_TOKEN'])
        else:
            logger.debug("GITHUB_TOKEN not set, using anonymous access")
        if os.getenv('GITHUB_USER_AGENT'):
            values['product_name'] = os.environ['GITHUB_USER_AGENT']
        if os.getenv('GITHUB_REQUEST_TIMEOUT'):
            try:
                values['timeout'] = float(os.environ['GITHUB_REQUEST_TIMEOUT'])
            except ValueError as e:
                raise ValueError(
                    f"GITHUB_REQUEST_TIMEOUT must be a number, got {os.environ['GITHUB_REQUEST_TIMEOUT']!r}"
                ) from e
        if os.getenv('GITHUB_RESPONSE_CACHE'):
            values['use_response_cache'] = os.environ['GITHUB_RESPONSE_CACHE'].strip().lower() in ('1', 'true', 'yes')

        values.update(overrides)
        return cls(**values)
