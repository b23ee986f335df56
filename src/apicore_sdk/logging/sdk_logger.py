"""
Request and response logging

:class:`SdkLogger` writes one summary line per request and response plus
optional header and body lines, filtering and masking headers according to a
:class:`LoggingConfiguration`. :class:`NullSdkLogger` discards everything.
"""

from typing import Dict, Mapping, Optional, TYPE_CHECKING

from requests.models import Response

from .configuration import LoggingConfiguration, ResponseLoggingConfiguration

if TYPE_CHECKING:
    from ..http_clients.types import HttpRequest

CONTENT_TYPE_HEADER = "content-type"
CONTENT_LENGTH_HEADER = "content-length"

REDACTED = "**Redacted**"

NON_SENSITIVE_HEADERS = frozenset({
    "accept", "accept-charset", "accept-encoding", "accept-language",
    "access-control-allow-origin", "cache-control", "connection",
    "content-encoding", "content-language", "content-length",
    "content-location", "content-md5", "content-range", "content-type",
    "date", "etag", "expect", "expires", "from", "host", "if-match",
    "if-modified-since", "if-none-match", "if-range", "if-unmodified-since",
    "keep-alive", "last-modified", "location", "max-forwards", "pragma",
    "range", "referer", "retry-after", "server", "trailer",
    "transfer-encoding", "upgrade", "user-agent", "vary", "via", "warning",
    "x-forwarded-for", "x-requested-with", "x-powered-by",
})


class NullSdkLogger:
    """SDK logger that logs nothing"""
    
    def log_request(self, request: 'HttpRequest') -> None:
        pass
    
    def log_response(self, response: Response) -> None:
        pass


class SdkLogger:
    """Logs requests and responses through a standard library logger"""
    
    def __init__(self, config: Optional[LoggingConfiguration] = None):
        self.config = config or LoggingConfiguration()
        self._logger = self.config.logger
    
    def _log(self, message: str) -> None:
        self._logger.log(self.config.level, message)
    
    def log_request(self, request: 'HttpRequest') -> None:
        options = self.config.request
        url = request.url if options.include_query_in_path else request.url.split("?", 1)[0]
        content_type = request.header(CONTENT_TYPE_HEADER) or ""
        self._log(f"Request {request.method.value} {url} {content_type}")
        
        if options.log_headers:
            self._log(f"Request headers {self.extract_headers_to_log(options, request.headers)}")
        if options.log_body:
            self._log(f"Request body {_body_text(request.body)}")
    
    def log_response(self, response: Response) -> None:
        options = self.config.response
        content_type = response.headers.get(CONTENT_TYPE_HEADER, "")
        content_length = response.headers.get(CONTENT_LENGTH_HEADER, "")
        self._log(f"Response {response.status_code} {content_length} {content_type}")
        
        if options.log_headers:
            self._log(f"Response headers {self.extract_headers_to_log(options, response.headers)}")
        if options.log_body:
            self._log(f"Response body {_body_text(response.content)}")
    
    def extract_headers_to_log(
        self,
        options: ResponseLoggingConfiguration,
        headers: Mapping[str, str]
    ) -> Dict[str, str]:
        """
        Filter and mask headers for logging
        
        An include list takes precedence over an exclude list; with neither
        every header is kept. Masking then applies to what remains.
        """
        lowered = {name.lower(): value for name, value in headers.items()}
        if options.headers_to_include:
            filtered = {k: v for k, v in lowered.items() if k in options.headers_to_include}
        elif options.headers_to_exclude:
            filtered = {k: v for k, v in lowered.items() if k not in options.headers_to_exclude}
        else:
            filtered = lowered
        
        if not self.config.mask_sensitive_headers:
            return filtered
        return {
            name: _mask_if_sensitive(name, value, options.headers_to_whitelist)
            for name, value in filtered.items()
        }


def _mask_if_sensitive(name: str, value: str, whitelist) -> str:
    if name in NON_SENSITIVE_HEADERS or name in whitelist:
        return value
    return REDACTED


def _body_text(body: Optional[bytes]) -> str:
    if not body:
        return ""
    if isinstance(body, str):
        return body
    return body.decode('utf-8', errors='replace')
