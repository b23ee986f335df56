"""
Logging configuration for the request/response SDK logger
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..exceptions import ValidationError


def _lower_all(names: List[str]) -> List[str]:
    return [name.lower() for name in names]


@dataclass
class ResponseLoggingConfiguration:
    """
    What to log for each response
    
    Attributes:
        log_body: Log the body
        log_headers: Log the headers
        headers_to_include: When non-empty, only these headers are logged
        headers_to_exclude: Headers left out when no include list is set
        headers_to_whitelist: Headers never masked
    """
    log_body: bool = False
    log_headers: bool = False
    headers_to_include: List[str] = field(default_factory=list)
    headers_to_exclude: List[str] = field(default_factory=list)
    headers_to_whitelist: List[str] = field(default_factory=list)
    
    def __post_init__(self):
        self.headers_to_include = _lower_all(self.headers_to_include)
        self.headers_to_exclude = _lower_all(self.headers_to_exclude)
        self.headers_to_whitelist = _lower_all(self.headers_to_whitelist)


@dataclass
class RequestLoggingConfiguration(ResponseLoggingConfiguration):
    """What to log for each request, optionally with the query string"""
    include_query_in_path: bool = False


@dataclass
class LoggingConfiguration:
    """
    SDK logger configuration
    
    Attributes:
        logger: Destination logger, ``apicore_sdk`` when not given
        level: Level every message is written at
        mask_sensitive_headers: Redact values of non-standard headers
        request: Request logging options
        response: Response logging options
    """
    logger: Optional[logging.Logger] = None
    level: int = logging.INFO
    mask_sensitive_headers: bool = True
    request: RequestLoggingConfiguration = field(default_factory=RequestLoggingConfiguration)
    response: ResponseLoggingConfiguration = field(default_factory=ResponseLoggingConfiguration)
    
    def __post_init__(self):
        """Validate configuration"""
        if isinstance(self.level, str):
            level = logging.getLevelName(self.level.upper())
            if not isinstance(level, int):
                raise ValidationError(f"Unknown log level: {self.level}")
            self.level = level
        if self.logger is None:
            self.logger = logging.getLogger("apicore_sdk")
