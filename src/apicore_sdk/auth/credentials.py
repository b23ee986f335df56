"""
Credential providers

A credential provider knows whether it holds usable credentials, how to apply
them to a request (as an interceptor) and what to report when it cannot.
"""

import base64
from dataclasses import dataclass
from typing import Protocol, runtime_checkable, TYPE_CHECKING

if TYPE_CHECKING:
    from ..http_clients.types import HttpCallExecutor, HttpContext, HttpInterceptor, HttpRequest

AUTHORIZATION_HEADER = "authorization"


@runtime_checkable
class CredentialProvider(Protocol):
    """Protocol for credential schemes referenced by an AuthGroup"""
    
    def is_valid(self) -> bool:
        ...
    
    def authenticator(self) -> 'HttpInterceptor':
        ...
    
    def error_message(self) -> str:
        ...


@dataclass(frozen=True)
class ApiKeyHeaderCredentials:
    """API key sent in a request header"""
    header_name: str
    api_key: str
    
    def is_valid(self) -> bool:
        return bool(self.header_name) and bool(self.api_key)
    
    def error_message(self) -> str:
        return f"Required authentication header '{self.header_name}' is missing"
    
    def authenticator(self) -> 'HttpInterceptor':
        def interceptor(request: 'HttpRequest', next_call: 'HttpCallExecutor') -> 'HttpContext':
            return next_call(request.with_header(self.header_name, self.api_key))
        return interceptor


@dataclass(frozen=True)
class ApiKeyQueryCredentials:
    """API key sent as a query parameter"""
    param_name: str
    api_key: str
    
    def is_valid(self) -> bool:
        return bool(self.param_name) and bool(self.api_key)
    
    def error_message(self) -> str:
        return f"Required authentication query param '{self.param_name}' is missing"
    
    def authenticator(self) -> 'HttpInterceptor':
        def interceptor(request: 'HttpRequest', next_call: 'HttpCallExecutor') -> 'HttpContext':
            return next_call(request.with_query_param(self.param_name, self.api_key))
        return interceptor


@dataclass(frozen=True)
class BasicAuthCredentials:
    """HTTP basic authentication"""
    username: str
    password: str
    
    def is_valid(self) -> bool:
        return bool(self.username) and self.password is not None
    
    def error_message(self) -> str:
        return "BasicAuth: username and password are required"
    
    def header_value(self) -> str:
        token = base64.b64encode(f"{self.username}:{self.password}".encode('utf-8')).decode('ascii')
        return f"Basic {token}"
    
    def authenticator(self) -> 'HttpInterceptor':
        value = self.header_value()
        
        def interceptor(request: 'HttpRequest', next_call: 'HttpCallExecutor') -> 'HttpContext':
            return next_call(request.with_header(AUTHORIZATION_HEADER, value))
        return interceptor


@dataclass(frozen=True)
class BearerTokenCredentials:
    """OAuth-style bearer token"""
    access_token: str
    
    def is_valid(self) -> bool:
        return bool(self.access_token)
    
    def error_message(self) -> str:
        return "BearerAuth: access token is required"
    
    def authenticator(self) -> 'HttpInterceptor':
        def interceptor(request: 'HttpRequest', next_call: 'HttpCallExecutor') -> 'HttpContext':
            return next_call(request.with_header(AUTHORIZATION_HEADER, f"Bearer {self.access_token}"))
        return interceptor
