"""
Retry policy

Decides whether a failed attempt is retried and how long to wait first, and
provides the interceptor that drives the retry loop around the rest of the
interceptor chain.
"""

import logging
import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, FrozenSet, Iterable, Optional, Union

from requests.models import Response

from .types import HttpCallExecutor, HttpContext, HttpInterceptor, HttpMethod, HttpRequest
from ..exceptions import InvalidMethodError, TransportError, ValidationError

logger = logging.getLogger(__name__)

RETRY_AFTER_HEADER = "retry-after"

DEFAULT_STATUS_CODES_TO_RETRY = frozenset({408, 413, 429, 500, 502, 503, 504, 521, 522, 524})
DEFAULT_METHODS_TO_RETRY = frozenset({HttpMethod.GET, HttpMethod.PUT})


class RequestRetryOption(Enum):
    """Per-call override of the retry policy"""
    DEFAULT = "default"
    ENABLE = "enable"
    DISABLE = "disable"


def _to_methods(methods: Iterable[Union[str, HttpMethod]]) -> FrozenSet[HttpMethod]:
    return frozenset(HttpMethod.parse(m) for m in methods)


@dataclass(frozen=True)
class RetryConfiguration:
    """
    Retry settings shared by every call of a client
    
    Attributes:
        max_retry_attempts: Retries allowed after the first attempt
        retry_on_timeout: Whether timeouts are retried
        retry_interval: Base wait in seconds
        maximum_retry_wait_time: Total wait budget in seconds, 0 for unbounded
        backoff_factor: Multiplier applied per attempt
        http_status_codes_to_retry: Response codes that trigger a retry
        http_methods_to_retry: Methods retried under RequestRetryOption.DEFAULT
    """
    max_retry_attempts: int = 0
    retry_on_timeout: bool = True
    retry_interval: float = 1.0
    maximum_retry_wait_time: float = 0.0
    backoff_factor: float = 2.0
    http_status_codes_to_retry: FrozenSet[int] = DEFAULT_STATUS_CODES_TO_RETRY
    http_methods_to_retry: FrozenSet[HttpMethod] = DEFAULT_METHODS_TO_RETRY
    
    def __post_init__(self):
        """Validate configuration"""
        if self.max_retry_attempts < 0:
            raise ValidationError("Max retry attempts must be non-negative")
        if self.retry_interval < 0:
            raise ValidationError("Retry interval must be non-negative")
        if self.maximum_retry_wait_time < 0:
            raise ValidationError("Maximum retry wait time must be non-negative")
        if self.backoff_factor < 0:
            raise ValidationError("Backoff factor must be non-negative")
        
        # frozen, so normalise through object.__setattr__
        object.__setattr__(self, 'http_status_codes_to_retry',
                           frozenset(int(c) for c in self.http_status_codes_to_retry))
        object.__setattr__(self, 'http_methods_to_retry', _to_methods(self.http_methods_to_retry))
    
    def should_retry(self, option: RequestRetryOption, method: Optional[Union[str, HttpMethod]]) -> bool:
        """
        Whether calls with this option and method take part in the retry loop
        
        ENABLE and DISABLE override the configuration. DEFAULT retries only
        when attempts are configured and the method is listed.
        """
        if option is RequestRetryOption.ENABLE:
            return True
        if option is RequestRetryOption.DISABLE:
            return False
        if self.max_retry_attempts <= 0 or not method:
            return False
        try:
            return HttpMethod.parse(method) in self.http_methods_to_retry
        except InvalidMethodError:
            return False
    
    def get_retry_decision(
        self,
        max_wait_time: float,
        attempt: int,
        response: Optional[Response],
        error: Optional[Exception]
    ) -> 'RetryDecision':
        """
        Decide whether attempt number ``attempt`` is followed by another one
        
        Args:
            max_wait_time: Remaining wait budget in seconds
            attempt: Zero-based number of the attempt just made
            response: Response of that attempt, if any
            error: Error of that attempt, if any
            
        Returns:
            RetryDecision with the wait to apply before the next attempt
        """
        if attempt >= self.max_retry_attempts:
            return RetryDecision(attempt, False)
        
        retry_after = 0
        if is_timeout_error(error):
            retry = self.retry_on_timeout
        elif response is not None:
            retry_after = get_retry_after_seconds(response)
            retry = retry_after > 0 or response.status_code in self.http_status_codes_to_retry
        else:
            retry = False
        
        if not retry:
            return RetryDecision(attempt, False)
        
        wait_time = max(self.retry_interval * math.pow(self.backoff_factor, attempt), retry_after)
        if wait_time > max_wait_time:
            logger.debug(f"Retry wait {wait_time}s exceeds remaining budget {max_wait_time}s")
            return RetryDecision(attempt, False)
        return RetryDecision(attempt, True, wait_time)
    
    def get_retry_wait_time(
        self,
        max_wait_time: float,
        attempt: int,
        response: Optional[Response],
        error: Optional[Exception]
    ) -> float:
        """Seconds to wait before the next attempt, 0 when there is none"""
        return self.get_retry_decision(max_wait_time, attempt, response, error).wait_time


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of one retry evaluation"""
    attempt: int
    retry: bool
    wait_time: float = 0.0


def is_timeout_error(error: Optional[Exception]) -> bool:
    """True for transport errors caused by a timeout"""
    return isinstance(error, TransportError) and error.is_timeout


def get_retry_after_seconds(response: Response) -> int:
    """Integral Retry-After value in seconds, 0 when absent or not an integer"""
    value = response.headers.get(RETRY_AFTER_HEADER) if response.headers is not None else None
    if value is None:
        return 0
    try:
        return int(str(value).strip())
    except ValueError:
        return 0


def create_retry_interceptor(
    config: RetryConfiguration,
    option: Union[RequestRetryOption, Callable[[], RequestRetryOption]] = RequestRetryOption.DEFAULT,
    cancel_event: Optional[threading.Event] = None
) -> HttpInterceptor:
    """
    Create the interceptor that repeats the downstream chain while the policy allows
    
    Args:
        config: Retry configuration
        option: Per-call retry option, or a callable read when the call starts
        cancel_event: Set to cancel the call between attempts
        
    Returns:
        HttpInterceptor returning the context of the last attempt
    """
    event = cancel_event or threading.Event()
    
    def retry_interceptor(request: HttpRequest, next_call: HttpCallExecutor) -> HttpContext:
        call_option = option() if callable(option) else option
        allowed_wait_time = config.maximum_retry_wait_time or math.inf
        retry = config.should_retry(call_option, request.method)
        attempt = 0
        
        while True:
            if event.is_set():
                raise TransportError("request cancelled", "REQUEST_CANCELLED")
            
            context = next_call(request)
            if not retry:
                return context
            
            decision = config.get_retry_decision(allowed_wait_time, attempt, context.response, context.error)
            if not decision.retry:
                return context
            
            logger.info(f"Retrying {request.method.value} {request.url} in {decision.wait_time}s "
                        f"(attempt {attempt + 1} of {config.max_retry_attempts})")
            if event.wait(decision.wait_time):
                raise TransportError("request cancelled", "REQUEST_CANCELLED")
            allowed_wait_time -= decision.wait_time
            attempt += 1
    
    return retry_interceptor
