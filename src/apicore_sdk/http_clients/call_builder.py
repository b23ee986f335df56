"""
Fluent request builder

A :class:`CallBuilder` accumulates everything needed for one API call (base
URL, path, method, headers, query parameters, one body, authentication and
interceptors) and executes it through the interceptor chain. Builders are
created per call by the factory returned from
:func:`create_call_builder_factory` and are not meant to be shared between
threads.
"""

import json
import logging
import re
import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union, TYPE_CHECKING
from urllib.parse import quote_plus

from requests.models import Response

from .errors import ErrorBuilder, select_api_error
from .interceptors import (
    call_http_interceptors,
    create_logging_interceptor,
    intercept_request as request_interceptor,
)
from .retryer import RequestRetryOption, RetryConfiguration, create_retry_interceptor
from .transport import DEFAULT_SERVER, Transport
from .types import (
    ACCEPT_HEADER,
    CONTENT_TYPE_HEADER,
    FORM_URLENCODED_CONTENT_TYPE,
    JSON_CONTENT_TYPE,
    OCTET_STREAM_CONTENT_TYPE,
    TEXT_CONTENT_TYPE,
    HttpContext,
    HttpInterceptor,
    HttpMethod,
    HttpRequest,
)
from ..auth.auth_group import AuthGroup
from ..encoding.array_serialization import ArraySerializationOption
from ..encoding.file_wrapper import FileWrapper
from ..encoding.form_data import (
    FormParam,
    FormParams,
    encode_form,
    prepare_form_fields,
    prepare_multipart_fields,
)
from ..encoding.json_codec import format_any, marshal
from ..exceptions import InvalidMethodError, ResponseError, TransportError
from ..logging.sdk_logger import NullSdkLogger

if TYPE_CHECKING:
    from ..auth.credentials import CredentialProvider

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "/"
TEMPLATE_PLACEHOLDER = "%s"

BaseUrlProvider = Callable[[str], str]


class _BodyKind(Enum):
    NONE = "none"
    TEXT = "text"
    JSON = "json"
    FORM = "form"
    MULTIPART = "multipart"
    STREAM = "stream"


def merge_path(left: str, right: str) -> str:
    """
    Join two path fragments with exactly one separator between them
    
    Examples:
        merge_path("a/", "/b") == "a/b"
        merge_path("a", "b") == "a/b"
    """
    if not right:
        return left
    if not left:
        return right
    
    left_sep = left.endswith(PATH_SEPARATOR)
    right_sep = right.startswith(PATH_SEPARATOR)
    if left_sep and right_sep:
        return left + right[1:]
    if left_sep or right_sep:
        return left + right
    return left + PATH_SEPARATOR + right


PATH_SEPARATOR_RUN = re.compile(r"/{2,}")


def sanitize_path(path: str) -> str:
    """Collapse every run of '/' in ``path`` to a single '/'"""
    return PATH_SEPARATOR_RUN.sub(PATH_SEPARATOR, path)


def _template_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return format_any(value)


class CallBuilder:
    """
    Builder for a single API call
    
    Every configuration method returns the builder so calls can be chained.
    Nothing is sent until one of the ``call*`` methods runs.
    """
    
    def __init__(
        self,
        base_url_provider: BaseUrlProvider,
        auth_providers: Optional[Mapping[str, 'CredentialProvider']] = None,
        http_client: Optional[Transport] = None,
        retry_configuration: Optional[RetryConfiguration] = None,
        array_serialization_option: ArraySerializationOption = ArraySerializationOption.INDEXED,
        default_headers: Optional[Dict[str, str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self._base_url_provider = base_url_provider
        self._auth_providers = auth_providers or {}
        self._http_client = http_client
        self._retry_configuration = retry_configuration or RetryConfiguration()
        self._array_serialization_option = array_serialization_option
        self._default_headers = {k.lower(): v for k, v in (default_headers or {}).items()}
        self._cancel_event = cancel_event
        
        self._server = DEFAULT_SERVER
        self._method: Optional[str] = None
        self._path = ""
        self._headers: Dict[str, str] = {}
        self._query_params = FormParams()
        self._form_params = FormParams()
        self._form_fields = FormParams()
        self._body_kind = _BodyKind.NONE
        self._body: Any = None
        self._interceptors: List[HttpInterceptor] = []
        self._errors: Dict[str, ErrorBuilder] = {}
        self._retry_option = RequestRetryOption.DEFAULT
        self._sdk_logger = NullSdkLogger()
        self.requires_auth = False
    
    # Request line
    
    def base_url(self, server: str) -> 'CallBuilder':
        """Select the server whose base URL prefixes the path"""
        self._server = server
        return self
    
    def method(self, name: Union[str, HttpMethod]) -> 'CallBuilder':
        """Set the HTTP method, validated when the request is finalized"""
        self._method = name.value if isinstance(name, HttpMethod) else name
        return self
    
    def append_path(self, path: str) -> 'CallBuilder':
        """Append a path fragment"""
        if self._path:
            self._path = sanitize_path(merge_path(self._path, path))
        else:
            self._path = sanitize_path(path)
        return self
    
    def append_template_param(self, value: Any) -> 'CallBuilder':
        """
        Substitute the next ``%s`` placeholder in the path with the escaped value
        
        With no placeholder left the escaped value is appended as a new
        path segment.
        """
        escaped = quote_plus(_template_value(value), safe='')
        index = self._path.find(TEMPLATE_PLACEHOLDER)
        if index == -1:
            return self.append_path(escaped)
        self._path = self._path[:index] + escaped + self._path[index + len(TEMPLATE_PLACEHOLDER):]
        return self
    
    def append_template_params(self, *values: Any) -> 'CallBuilder':
        """Substitute several template params; lists and tuples are flattened one level"""
        for value in values:
            if isinstance(value, (list, tuple)):
                for inner in value:
                    self.append_template_param(inner)
            else:
                self.append_template_param(value)
        return self
    
    # Headers
    
    def _set_header_if_not_set(self, name: str, value: str) -> None:
        if not self._headers.get(name):
            self._headers[name] = value
    
    def accept(self, value: str) -> 'CallBuilder':
        """Set the Accept header unless one is already present"""
        self._set_header_if_not_set(ACCEPT_HEADER, value)
        return self
    
    def content_type(self, value: str) -> 'CallBuilder':
        """Set the Content-Type header unless one is already present"""
        self._set_header_if_not_set(CONTENT_TYPE_HEADER, value)
        return self
    
    def header(self, name: str, value: Any) -> 'CallBuilder':
        """Set a header; non-string values are rendered as JSON without quotes"""
        self._headers[name.lower()] = format_any(value)
        return self
    
    def combine_headers(self, headers: Mapping[str, str]) -> 'CallBuilder':
        """Add headers that are not already present"""
        for name, value in (headers or {}).items():
            self._headers.setdefault(name.lower(), value)
        return self
    
    # Query parameters
    
    def query_param(self, name: str, value: Any, option: Optional[ArraySerializationOption] = None) -> 'CallBuilder':
        """Add a query parameter; None values are ignored"""
        self._query_params.add(FormParam(name, value, array_serialization_option=option or self._array_serialization_option))
        return self
    
    def query_params(self, params: Mapping[str, Any], option: Optional[ArraySerializationOption] = None) -> 'CallBuilder':
        """Add every entry of ``params`` as a query parameter"""
        for name, value in (params or {}).items():
            self.query_param(name, value, option)
        return self
    
    # Bodies, the last body-setting call decides what is sent
    
    def form_param(self, name: str, value: Any, option: Optional[ArraySerializationOption] = None) -> 'CallBuilder':
        """Add a URL-encoded form field"""
        self._form_params.add(FormParam(name, value, array_serialization_option=option or self._array_serialization_option))
        self._body_kind = _BodyKind.FORM
        return self
    
    def form_params(self, params: Mapping[str, Any], option: Optional[ArraySerializationOption] = None) -> 'CallBuilder':
        """Add every entry of ``params`` as a URL-encoded form field"""
        for name, value in (params or {}).items():
            self.form_param(name, value, option)
        return self
    
    def form_data(self, fields: List[FormParam]) -> 'CallBuilder':
        """Add multipart form fields"""
        for field in fields:
            self._form_fields.add(FormParam(field.key, field.value, dict(field.headers), self._array_serialization_option))
        self._body_kind = _BodyKind.MULTIPART
        return self
    
    def text(self, body: str) -> 'CallBuilder':
        """Send ``body`` as plain text"""
        self._body_kind = _BodyKind.TEXT
        self._body = body
        return self
    
    def json(self, value: Any) -> 'CallBuilder':
        """Send ``value`` as JSON, or as text when it is a bare scalar"""
        self._body_kind = _BodyKind.JSON
        self._body = value
        return self
    
    def file_stream(self, file_wrapper: FileWrapper) -> 'CallBuilder':
        """Send the raw content of ``file_wrapper``"""
        self._body_kind = _BodyKind.STREAM
        self._body = file_wrapper
        return self
    
    # Behaviour
    
    def authenticate(self, auth_group: AuthGroup) -> 'CallBuilder':
        """
        Require the credentials described by ``auth_group``
        
        Raises:
            AuthenticationError: If no combination of the registered
                credentials satisfies the expression
        """
        self.requires_auth = True
        result = auth_group.evaluate(self._auth_providers)
        result.raise_for_failure()
        self._interceptors.extend(result.interceptors)
        return self
    
    def request_retry_option(self, option: RequestRetryOption) -> 'CallBuilder':
        self._retry_option = option
        return self
    
    def array_serialization_option(self, option: ArraySerializationOption) -> 'CallBuilder':
        """Default serialization for parameters added after this call"""
        self._array_serialization_option = option
        return self
    
    def logger(self, sdk_logger) -> 'CallBuilder':
        self._sdk_logger = sdk_logger
        return self
    
    def intercept(self, interceptor: HttpInterceptor) -> 'CallBuilder':
        self._interceptors.append(interceptor)
        return self
    
    def intercept_request(self, modifier: Callable[[HttpRequest], HttpRequest]) -> 'CallBuilder':
        """Rewrite the request before it is sent"""
        return self.intercept(request_interceptor(modifier))
    
    def append_errors(self, errors: Mapping[str, ErrorBuilder]) -> 'CallBuilder':
        """Register error builders keyed by status code, ``NXX`` range or ``"0"``"""
        self._errors.update(errors)
        return self
    
    # Finalization
    
    def _build_url(self) -> str:
        url = merge_path(self._base_url_provider(self._server), self._path)
        if self._query_params:
            query = encode_form(prepare_form_fields(self._query_params))
            if query:
                url += ("&" if "?" in url else "?") + query
        return url
    
    def _build_body(self, headers: Dict[str, str]) -> Optional[bytes]:
        kind = self._body_kind
        
        def default_content_type(value: str) -> None:
            if not headers.get(CONTENT_TYPE_HEADER):
                headers[CONTENT_TYPE_HEADER] = value
        
        if kind is _BodyKind.TEXT:
            default_content_type(TEXT_CONTENT_TYPE)
            return self._body.encode('utf-8') if self._body else None
        
        if kind is _BodyKind.JSON:
            if self._body is None:
                return None
            encoded = marshal(self._body)
            if encoded.startswith(("{", "[")):
                default_content_type(JSON_CONTENT_TYPE)
                return encoded.encode('utf-8')
            default_content_type(TEXT_CONTENT_TYPE)
            return format_any(self._body).encode('utf-8')
        
        if kind is _BodyKind.FORM:
            form = prepare_form_fields(self._form_params)
            if not form:
                return None
            default_content_type(FORM_URLENCODED_CONTENT_TYPE)
            return encode_form(form).encode('utf-8')
        
        if kind is _BodyKind.MULTIPART:
            if not self._form_fields:
                return None
            body, content_type = prepare_multipart_fields(self._form_fields)
            default_content_type(content_type)
            return body
        
        if kind is _BodyKind.STREAM:
            default_content_type(OCTET_STREAM_CONTENT_TYPE)
            return bytes(self._body.file)
        
        return None
    
    def finalize(self) -> HttpRequest:
        """
        Build the request described so far
        
        Raises:
            InvalidMethodError: If the method is missing or unsupported
            EncodingError: If a query or body value cannot be serialized
        """
        if not self._method:
            raise InvalidMethodError("")
        method = HttpMethod.parse(self._method)
        url = self._build_url()
        
        headers = dict(self._headers)
        body = self._build_body(headers)
        for name, value in self._default_headers.items():
            headers.setdefault(name, value)
        
        return HttpRequest(method=method, url=url, headers=headers, body=body)
    
    # Execution
    
    def _execute(self, request: HttpRequest) -> HttpContext:
        try:
            response = self._http_client.execute(request)
        except TransportError as e:
            logger.warning(f"{request.method.value} {request.url} failed: {e.message}")
            return HttpContext(request=request, error=e)
        
        context = HttpContext(request=request, response=response)
        context.error = select_api_error(context, self._errors)
        return context
    
    def _pipeline(self, extra_interceptors: Tuple[HttpInterceptor, ...] = ()):
        interceptors = [create_retry_interceptor(
            self._retry_configuration,
            lambda: self._retry_option,
            self._cancel_event,
        )]
        interceptors.extend(self._interceptors)
        interceptors.extend(extra_interceptors)
        interceptors.append(create_logging_interceptor(self._sdk_logger))
        return call_http_interceptors(interceptors, self._execute)
    
    def call(self) -> HttpContext:
        """
        Send the request through the interceptor chain
        
        Returns:
            HttpContext of the final attempt
            
        Raises:
            TransportError: If the last attempt failed in transport or was cancelled
            ApiError: If the last attempt returned a non-2xx response
        """
        return self._call()
    
    def _call(self, extra_interceptors: Tuple[HttpInterceptor, ...] = ()) -> HttpContext:
        if self._http_client is None:
            raise TransportError("No HTTP client configured", "NO_HTTP_CLIENT")
        request = self.finalize()
        context = self._pipeline(extra_interceptors)(request)
        if context.error is not None:
            raise context.error
        return context
    
    def _call_with_body(self, extra_interceptors: Tuple[HttpInterceptor, ...] = ()) -> Tuple[bytes, Response]:
        context = self._call(extra_interceptors)
        body = context.get_response_body()
        if not body:
            status = context.response.status_code if context.response is not None else 0
            raise ResponseError("response body empty", http_status=status)
        return body, context.response
    
    def call_as_json(self) -> Tuple[Any, Response]:
        """
        Send the request accepting JSON and decode the response body
        
        Raises:
            ResponseError: If the body is empty or not valid JSON
        """
        accept_json = request_interceptor(lambda request: request.with_header(ACCEPT_HEADER, JSON_CONTENT_TYPE))
        body, response = self._call_with_body((accept_json,))
        try:
            return json.loads(body), response
        except ValueError as e:
            raise ResponseError(f"Unable to decode response body: {e}", http_status=response.status_code)
    
    def call_as_text(self) -> Tuple[str, Response]:
        """Send the request and return the response body as text"""
        body, response = self._call_with_body()
        return body.decode(response.encoding or 'utf-8', errors='replace'), response
    
    def call_as_stream(self) -> Tuple[bytes, Response]:
        """Send the request and return the raw response body"""
        return self._call_with_body()


CallBuilderFactory = Callable[..., CallBuilder]


def create_call_builder_factory(
    base_url_provider: BaseUrlProvider,
    auth_providers: Optional[Mapping[str, 'CredentialProvider']],
    http_client: Transport,
    retry_configuration: Optional[RetryConfiguration] = None,
    option: ArraySerializationOption = ArraySerializationOption.INDEXED,
    sdk_logger=None,
    default_headers: Optional[Dict[str, str]] = None,
) -> CallBuilderFactory:
    """
    Create a factory producing pre-configured call builders
    
    Args:
        base_url_provider: Resolves a server name to its base URL
        auth_providers: Credential providers keyed by scheme name
        http_client: Transport used to send requests
        retry_configuration: Retry settings shared by every call
        option: Default array serialization option
        sdk_logger: Request/response logger, nothing is logged when None
        default_headers: Headers added to every request unless set explicitly
        
    Returns:
        ``factory(method, path, cancel_event=None) -> CallBuilder``
    """
    def factory(method: Union[str, HttpMethod], path: str, cancel_event: Optional[threading.Event] = None) -> CallBuilder:
        builder = CallBuilder(
            base_url_provider,
            auth_providers,
            http_client,
            retry_configuration,
            option,
            default_headers,
            cancel_event,
        )
        builder.method(method).append_path(path)
        if sdk_logger is not None:
            builder.logger(sdk_logger)
        return builder
    
    return factory
