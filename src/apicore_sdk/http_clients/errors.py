"""
Error builders for non-2xx responses

An :class:`ErrorBuilder` turns an unsuccessful response into an
:class:`ApiError` (or a caller-provided subclass) with a fixed or templated
message. Templates may reference ``{$statusCode}``,
``{$response.header.<Name>}``, ``{$response.body}`` and
``{$response.body#<json pointer>}``.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Type

from .types import HttpContext
from ..exceptions import ApiError

PLACEHOLDER_PATTERN = re.compile(r"\{\$(.*?)\}")
DEFAULT_ERROR_MESSAGE = "HTTP Response Not OK"
DEFAULT_ERROR_KEY = "0"


@dataclass(frozen=True)
class ErrorBuilder:
    """
    Describes the error raised for a status code or status range
    
    Attributes:
        message: Fixed message, used when no template is given
        templated_message: Message template with ``{$...}`` placeholders
        error_class: ApiError subclass to instantiate
        unmarshaller: Optional function converting the ApiError into the error to raise
    """
    message: str = ""
    templated_message: str = ""
    error_class: Type[ApiError] = ApiError
    unmarshaller: Optional[Callable[[ApiError], Exception]] = None
    
    def build(self, context: HttpContext) -> Exception:
        """Create the error for the response held by ``context``"""
        response = context.response
        message = self.message
        if self.templated_message:
            message = render_error_template(self.templated_message, context)
        
        error = self.error_class(
            message,
            request=context.request,
            status_code=response.status_code if response is not None else 0,
            headers=dict(response.headers) if response is not None else {},
            body=context.get_response_body(),
        )
        if self.unmarshaller is not None:
            return self.unmarshaller(error)
        return error


def select_error_builder(status_code: int, builders: Mapping[str, ErrorBuilder]) -> ErrorBuilder:
    """
    Choose the builder for ``status_code``
    
    Lookup order: exact code, then the ``NXX`` range of its first digit, then
    the ``"0"`` default, then a generic builder.
    """
    code = str(status_code)
    for key in (code, f"{code[0]}XX", DEFAULT_ERROR_KEY):
        if key in builders:
            return builders[key]
    return ErrorBuilder(message=DEFAULT_ERROR_MESSAGE)


def select_api_error(context: HttpContext, builders: Mapping[str, ErrorBuilder]) -> Optional[Exception]:
    """Error for the response in ``context``, None for 2xx responses"""
    response = context.response
    if response is None or 200 <= response.status_code < 300:
        return None
    return select_error_builder(response.status_code, builders).build(context)


def render_error_template(template: str, context: HttpContext) -> str:
    """Replace every ``{$...}`` placeholder in ``template``"""
    return PLACEHOLDER_PATTERN.sub(lambda m: _render_placeholder(m.group(0), context), template)


def _render_placeholder(placeholder: str, context: HttpContext) -> str:
    response = context.response
    if response is None:
        return ""
    if placeholder == "{$statusCode}":
        return str(response.status_code)
    
    header_prefix = "{$response.header."
    if placeholder.startswith(header_prefix):
        return response.headers.get(placeholder[len(header_prefix):-1], "")
    
    body = context.get_response_body()
    if placeholder == "{$response.body}":
        return body.decode('utf-8', errors='replace')
    
    pointer_prefix = "{$response.body#"
    if placeholder.startswith(pointer_prefix):
        pointer = placeholder[len(pointer_prefix):-1]
        if not pointer:
            return ""
        return _to_text(resolve_json_pointer(body, pointer))
    
    return placeholder


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(',', ':'))
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def _parse_pointer(pointer: str) -> List[str]:
    if pointer == "":
        return []
    if not pointer.startswith("/"):
        raise ValueError('JSON pointer must be empty or start with a "/"')
    return [_unescape(token) for token in pointer.split("/")[1:]]


def resolve_json_pointer(raw_json: bytes, pointer: str) -> Any:
    """
    Resolve an RFC 6901 pointer against a JSON document
    
    Returns:
        The referenced value, or None when the body is not JSON or the
        pointer does not resolve
    """
    try:
        node = json.loads(raw_json)
        tokens = _parse_pointer(pointer)
    except ValueError:
        return None
    
    for token in tokens:
        if isinstance(node, dict):
            if token not in node:
                return None
            node = node[token]
        elif isinstance(node, list):
            if not token.isdigit() or int(token) >= len(node):
                return None
            node = node[int(token)]
        else:
            return None
    return node
