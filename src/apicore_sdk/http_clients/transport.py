"""
HTTP transport backed by requests

Sends finished :class:`HttpRequest` objects through a configured
``requests.Session`` and translates ``requests`` failures into
:class:`TransportError`.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol, runtime_checkable
from urllib.parse import urlparse

import requests
from requests.adapters import BaseAdapter
from requests.models import Response

from .retryer import RetryConfiguration
from .types import HttpRequest, USER_AGENT_HEADER
from ..encoding.array_serialization import ArraySerializationOption
from ..exceptions import TransportError, ValidationError
from ..version import __version__

logger = logging.getLogger(__name__)

DEFAULT_SERVER = "default"
DEFAULT_USER_AGENT = f"APICore-Python-SDK/{__version__}"


@runtime_checkable
class Transport(Protocol):
    """Anything able to execute a finished request"""
    
    def execute(self, request: HttpRequest) -> Response:
        ...


@dataclass
class HttpConfiguration:
    """HTTP client configuration"""
    base_urls: Dict[str, str] = field(default_factory=dict)
    timeout: float = 60.0
    verify_ssl: bool = True
    default_headers: Dict[str, str] = field(default_factory=dict)
    user_agent: str = DEFAULT_USER_AGENT
    retry_configuration: RetryConfiguration = field(default_factory=RetryConfiguration)
    array_serialization_option: ArraySerializationOption = ArraySerializationOption.INDEXED
    
    # Mounted for http:// and https:// when given
    transport_adapter: Optional[BaseAdapter] = None
    
    def __post_init__(self):
        """Validate configuration"""
        if self.timeout <= 0:
            raise ValidationError("Timeout must be positive")
        
        for server, url in self.base_urls.items():
            parsed = urlparse(url)
            if not parsed.scheme or not parsed.netloc:
                raise ValidationError(f"Invalid base URL format for server '{server}': {url}")
        
        self.default_headers = {k.lower(): str(v) for k, v in self.default_headers.items()}
    
    def get_base_uri(self, server: str = DEFAULT_SERVER) -> str:
        """
        Resolve a server name to its base URL
        
        Raises:
            ValidationError: If the server is not configured
        """
        try:
            return self.base_urls[server]
        except KeyError:
            raise ValidationError(f"Unknown server: {server}", "UNKNOWN_SERVER")


class HttpClient:
    """
    Transport executing requests through a ``requests.Session``
    
    The session carries the configured default headers and user agent, and
    the configured timeout is applied to every request.
    """
    
    def __init__(self, config: Optional[HttpConfiguration] = None, session: Optional[requests.Session] = None):
        self.config = config or HttpConfiguration()
        self.session = session or self._create_session()
    
    def _create_session(self) -> requests.Session:
        session = requests.Session()
        
        if self.config.transport_adapter is not None:
            session.mount("http://", self.config.transport_adapter)
            session.mount("https://", self.config.transport_adapter)
        
        session.headers.update({USER_AGENT_HEADER: self.config.user_agent})
        session.headers.update(self.config.default_headers)
        session.verify = self.config.verify_ssl
        return session
    
    def execute(self, request: HttpRequest) -> Response:
        """
        Send ``request`` and return the raw response
        
        Raises:
            TransportError: On timeouts, connection failures and other
                ``requests`` errors
        """
        logger.debug(f"Sending {request.method.value} {request.url}")
        try:
            return self.session.request(
                method=request.method.value,
                url=request.url,
                headers=request.headers,
                data=request.body,
                timeout=self.config.timeout,
                allow_redirects=True,
            )
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Request timeout: {e}", "REQUEST_TIMEOUT", is_timeout=True)
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Connection error: {e}", "CONNECTION_ERROR")
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request failed: {e}")
    
    def close(self) -> None:
        """Close the underlying session"""
        self.session.close()
    
    def __enter__(self):
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def create_http_client(
    timeout: float = 60.0,
    transport_adapter: Optional[BaseAdapter] = None,
    **kwargs
) -> HttpClient:
    """
    Create an HttpClient with the given settings
    
    Args:
        timeout: Per-request timeout in seconds
        transport_adapter: Optional adapter replacing the default connection handling
        **kwargs: Additional HttpConfiguration fields
    """
    config = HttpConfiguration(timeout=timeout, transport_adapter=transport_adapter, **kwargs)
    return HttpClient(config)
