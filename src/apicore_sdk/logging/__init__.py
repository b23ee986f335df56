"""
Request/response logging for the SDK
"""

from .configuration import (
    LoggingConfiguration,
    RequestLoggingConfiguration,
    ResponseLoggingConfiguration,
)
from .sdk_logger import NON_SENSITIVE_HEADERS, REDACTED, NullSdkLogger, SdkLogger

__all__ = [
    'LoggingConfiguration',
    'RequestLoggingConfiguration',
    'ResponseLoggingConfiguration',
    'NullSdkLogger',
    'SdkLogger',
    'NON_SENSITIVE_HEADERS',
    'REDACTED',
]
