"""
Interceptor chain composition and interceptor factories

An interceptor receives the outgoing request and the next callable in the
chain. It may rewrite the request, call ``next_call`` zero or more times and
rewrite the returned context. Interceptors are composed right to left so the
first registered interceptor sees the request first and the response last.
"""

import logging
import uuid
from typing import Callable, Optional, Sequence, TYPE_CHECKING

from .types import HttpCallExecutor, HttpContext, HttpInterceptor, HttpRequest

if TYPE_CHECKING:
    from ..logging import SdkLogger

logger = logging.getLogger(__name__)


def pass_through_interceptor(request: HttpRequest, next_call: HttpCallExecutor) -> HttpContext:
    """Interceptor that forwards the request unchanged"""
    return next_call(request)


def _link(interceptor: HttpInterceptor, next_call: HttpCallExecutor) -> HttpCallExecutor:
    def call(request: HttpRequest) -> HttpContext:
        return interceptor(request, next_call)
    return call


def call_http_interceptors(
    interceptors: Sequence[HttpInterceptor],
    executor: HttpCallExecutor
) -> HttpCallExecutor:
    """
    Compose interceptors around a terminal executor
    
    Args:
        interceptors: Interceptors in registration order
        executor: Terminal call that performs the exchange
        
    Returns:
        A single callable running the whole chain
    """
    chain = executor
    for interceptor in reversed(list(interceptors)):
        chain = _link(interceptor, chain)
    return chain


def intercept_request(modifier: Callable[[HttpRequest], HttpRequest]) -> HttpInterceptor:
    """Wrap a request-rewriting function as an interceptor"""
    def interceptor(request: HttpRequest, next_call: HttpCallExecutor) -> HttpContext:
        return next_call(modifier(request))
    return interceptor


def intercept_response(modifier: Callable[[HttpContext], HttpContext]) -> HttpInterceptor:
    """Wrap a context-rewriting function as an interceptor"""
    def interceptor(request: HttpRequest, next_call: HttpCallExecutor) -> HttpContext:
        return modifier(next_call(request))
    return interceptor


def create_correlation_interceptor(
    header_name: str = 'x-request-id',
    id_generator: Optional[Callable[[], str]] = None
) -> HttpInterceptor:
    """
    Create an interceptor that tags requests with a correlation ID
    
    Args:
        header_name: Header carrying the correlation ID
        id_generator: Optional function producing IDs, uuid4 by default
        
    Returns:
        HttpInterceptor that sets the header only when it is absent
    """
    generator = id_generator or (lambda: str(uuid.uuid4()))
    
    def correlation_interceptor(request: HttpRequest, next_call: HttpCallExecutor) -> HttpContext:
        if request.header(header_name) is None:
            request = request.with_header(header_name, generator())
        return next_call(request)
    
    return correlation_interceptor


def create_logging_interceptor(sdk_logger: 'SdkLogger') -> HttpInterceptor:
    """
    Create an interceptor that reports every attempt to ``sdk_logger``
    
    The request is logged before it is sent and the response after it
    arrives. Attempts that produced no response are not logged as responses.
    """
    def logging_interceptor(request: HttpRequest, next_call: HttpCallExecutor) -> HttpContext:
        sdk_logger.log_request(request)
        context = next_call(request)
        if context.response is not None:
            sdk_logger.log_response(context.response)
        return context
    
    return logging_interceptor

