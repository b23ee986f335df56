"""
Exception classes for APICore Python SDK
"""

from typing import Optional, Dict, Any


class APICoreSDKError(Exception):
    """Base exception for all APICore SDK errors"""
    
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationError(APICoreSDKError):
    """Exception raised for invalid configuration or arguments"""
    pass


class InvalidMethodError(APICoreSDKError):
    """Exception raised when an unrecognized HTTP method name is used"""
    
    def __init__(self, method: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"invalid HTTP method given: {method!r}", "INVALID_METHOD", details)
        self.method = method


class EncodingError(APICoreSDKError):
    """Exception raised when a body, query or form value cannot be serialized"""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "ENCODING_ERROR", details)


class AuthenticationError(APICoreSDKError):
    """Exception raised when no combination of credentials satisfies a request"""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "AUTHENTICATION_ERROR", details)


class TransportError(APICoreSDKError):
    """Exception raised for network failures, timeouts and cancellations"""
    
    def __init__(self, message: str, error_code: str = "TRANSPORT_ERROR",
                 is_timeout: bool = False, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.is_timeout = is_timeout


class ResponseError(APICoreSDKError):
    """Exception raised for non-2xx responses or missing response bodies"""
    
    def __init__(self, message: str, error_code: str = "RESPONSE_ERROR",
                 http_status: int = 0, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.http_status = http_status


class ApiError(ResponseError):
    """
    Error response returned by the server
    
    Holds the request that was sent along with the status code, headers and
    raw body of the response so callers can inspect or decode it.
    """
    
    def __init__(self, message: str, request: Any = None, status_code: int = 0,
                 headers: Optional[Dict[str, str]] = None, body: bytes = b""):
        super().__init__(message, "API_ERROR", status_code,
                         details={'status_code': status_code})
        self.request = request
        self.status_code = status_code
        self.headers = headers or {}
        self.body = body
    
    def __str__(self) -> str:
        return f"ApiError occurred: {self.message}"


class ConfigError(APICoreSDKError):
    """Exception raised when configuration cannot be loaded or parsed"""
    pass
