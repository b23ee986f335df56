"""
Request building, interceptors, retries and transport
"""

from .types import (
    HttpMethod,
    HttpRequest,
    HttpContext,
    HttpCallExecutor,
    HttpInterceptor,
    add_query,
)
from .interceptors import (
    pass_through_interceptor,
    call_http_interceptors,
    intercept_request,
    intercept_response,
    create_correlation_interceptor,
    create_logging_interceptor,
)
from .retryer import (
    RequestRetryOption,
    RetryConfiguration,
    RetryDecision,
    create_retry_interceptor,
    get_retry_after_seconds,
)
from .transport import (
    HttpClient,
    HttpConfiguration,
    Transport,
    create_http_client,
)
from .errors import ErrorBuilder, render_error_template, resolve_json_pointer
from .call_builder import (
    CallBuilder,
    create_call_builder_factory,
    merge_path,
    sanitize_path,
)

__all__ = [
    'HttpMethod',
    'HttpRequest',
    'HttpContext',
    'HttpCallExecutor',
    'HttpInterceptor',
    'add_query',
    'pass_through_interceptor',
    'call_http_interceptors',
    'intercept_request',
    'intercept_response',
    'create_correlation_interceptor',
    'create_logging_interceptor',
    'RequestRetryOption',
    'RetryConfiguration',
    'RetryDecision',
    'create_retry_interceptor',
    'get_retry_after_seconds',
    'HttpClient',
    'HttpConfiguration',
    'Transport',
    'create_http_client',
    'ErrorBuilder',
    'render_error_template',
    'resolve_json_pointer',
    'CallBuilder',
    'create_call_builder_factory',
    'merge_path',
    'sanitize_path',
]
