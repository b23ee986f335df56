"""
APICore Python SDK
Request building, authentication, interceptors and retries for generated API clients
"""

from .version import __version__
from .exceptions import (
    APICoreSDKError,
    ValidationError,
    InvalidMethodError,
    EncodingError,
    AuthenticationError,
    TransportError,
    ResponseError,
    ApiError,
    ConfigError,
)
from .encoding import (
    ArraySerializationOption,
    FileWrapper,
    FormParam,
    FormParams,
    get_file,
    get_file_with_content_type,
    format_any,
)
from .auth import (
    AuthGroup,
    AuthResult,
    CredentialProvider,
    ApiKeyHeaderCredentials,
    ApiKeyQueryCredentials,
    BasicAuthCredentials,
    BearerTokenCredentials,
)
from .http_clients import (
    # Request pipeline
    HttpMethod,
    HttpRequest,
    HttpContext,
    HttpInterceptor,
    add_query,
    CallBuilder,
    create_call_builder_factory,
    # Interceptors
    pass_through_interceptor,
    call_http_interceptors,
    create_correlation_interceptor,
    create_logging_interceptor,
    # Retries
    RequestRetryOption,
    RetryConfiguration,
    RetryDecision,
    # Transport
    HttpClient,
    HttpConfiguration,
    create_http_client,
    # Errors
    ErrorBuilder,
)
from .logging import (
    SdkLogger,
    NullSdkLogger,
    LoggingConfiguration,
    RequestLoggingConfiguration,
    ResponseLoggingConfiguration,
)
from .config import (
    ConfigLoader,
    load_config_from_dict,
    load_config_from_json,
    load_config_from_file,
)

# Public API exports
__all__ = [
    '__version__',
    # Exceptions
    'APICoreSDKError',
    'ValidationError',
    'InvalidMethodError',
    'EncodingError',
    'AuthenticationError',
    'TransportError',
    'ResponseError',
    'ApiError',
    'ConfigError',
    # Encoding
    'ArraySerializationOption',
    'FileWrapper',
    'FormParam',
    'FormParams',
    'get_file',
    'get_file_with_content_type',
    'format_any',
    # Authentication
    'AuthGroup',
    'AuthResult',
    'CredentialProvider',
    'ApiKeyHeaderCredentials',
    'ApiKeyQueryCredentials',
    'BasicAuthCredentials',
    'BearerTokenCredentials',
    # Request pipeline
    'HttpMethod',
    'HttpRequest',
    'HttpContext',
    'HttpInterceptor',
    'add_query',
    'CallBuilder',
    'create_call_builder_factory',
    'pass_through_interceptor',
    'call_http_interceptors',
    'create_correlation_interceptor',
    'create_logging_interceptor',
    'RequestRetryOption',
    'RetryConfiguration',
    'RetryDecision',
    'HttpClient',
    'HttpConfiguration',
    'create_http_client',
    'ErrorBuilder',
    # Logging
    'SdkLogger',
    'NullSdkLogger',
    'LoggingConfiguration',
    'RequestLoggingConfiguration',
    'ResponseLoggingConfiguration',
    # Configuration
    'ConfigLoader',
    'load_config_from_dict',
    'load_config_from_json',
    'load_config_from_file',
]
