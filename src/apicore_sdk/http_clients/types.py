"""
Type definitions for the request pipeline

This module provides the HTTP method enumeration, the finished request handed
to interceptors and transports, and the request/response context returned by
the pipeline.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, List, Optional
from urllib.parse import parse_qs, parse_qsl, urlencode, urlsplit, urlunsplit

from requests.models import Response

from ..encoding.form_data import encode_space
from ..exceptions import InvalidMethodError

CONTENT_TYPE_HEADER = "content-type"
ACCEPT_HEADER = "accept"
CONTENT_LENGTH_HEADER = "content-length"
AUTHORIZATION_HEADER = "authorization"
USER_AGENT_HEADER = "user-agent"
FORM_URLENCODED_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
XML_CONTENT_TYPE = "application/xml"
MULTIPART_CONTENT_TYPE = "multipart/form-data"
OCTET_STREAM_CONTENT_TYPE = "application/octet-stream"


class HttpMethod(str, Enum):
    """HTTP methods accepted by the call builder"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    
    @classmethod
    def parse(cls, name: str) -> 'HttpMethod':
        """
        Parse a method name case-insensitively.
        
        Raises:
            InvalidMethodError: If the name is not a supported method
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).upper())
        except ValueError:
            raise InvalidMethodError(str(name))


@dataclass(frozen=True)
class HttpRequest:
    """
    Finished request ready for transport
    
    Attributes:
        method: HTTP method
        url: Complete URL with the encoded query string
        headers: Request headers keyed by lower-cased name
        body: Optional serialized body
    """
    method: HttpMethod
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    
    def header(self, name: str) -> Optional[str]:
        """Get a header value by case-insensitive name"""
        return self.headers.get(name.lower())
    
    def with_header(self, name: str, value: str) -> 'HttpRequest':
        """Return a copy with ``name`` set to ``value``"""
        return self.with_headers({name: value})
    
    def with_headers(self, headers: Dict[str, str]) -> 'HttpRequest':
        """Return a copy with every given header set, overwriting existing values"""
        merged = dict(self.headers)
        for name, value in headers.items():
            merged[name.lower()] = value
        return replace(self, headers=merged)
    
    def with_query_param(self, key: str, value: str) -> 'HttpRequest':
        """Return a copy with ``key=value`` appended to the query string"""
        parts = urlsplit(self.url)
        pairs = parse_qsl(parts.query, keep_blank_values=True)
        pairs.append((key, str(value)))
        query = encode_space(urlencode(pairs))
        return replace(self, url=urlunsplit(parts._replace(query=query)))
    
    def query_params(self) -> Dict[str, List[str]]:
        """Decode the query string into a multi-valued map"""
        return parse_qs(urlsplit(self.url).query, keep_blank_values=True)


@dataclass
class HttpContext:
    """
    Outcome of one pass through the pipeline
    
    Attributes:
        request: Request that was (or would have been) sent
        response: Response received, None if the attempt failed before one arrived
        error: Transport or response error observed for the attempt
    """
    request: HttpRequest
    response: Optional[Response] = None
    error: Optional[Exception] = None
    
    def get_response_body(self) -> bytes:
        """Raw response body, empty when there is no response"""
        if self.response is None:
            return b""
        return self.response.content or b""


HttpCallExecutor = Callable[[HttpRequest], HttpContext]
HttpInterceptor = Callable[[HttpRequest, HttpCallExecutor], HttpContext]


def add_query(request: HttpRequest, key: str, value: str) -> HttpRequest:
    """Append a query parameter to ``request``, returning the new request"""
    return request.with_query_param(key, value)
