"""
Query, form and multipart encoding

Flattens structured values (dataclasses, mappings, sequences and nested
combinations) into flat key/value pairs following an
:class:`ArraySerializationOption`, renders them as URL-encoded strings and
writes multipart bodies.
"""

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlencode
from uuid import UUID

from urllib3.fields import RequestField
from urllib3.filepost import encode_multipart_formdata

from .array_serialization import ArraySerializationOption, FlatMap
from .file_wrapper import FileWrapper
from .json_codec import marshal, to_plain
from ..exceptions import EncodingError

CONTENT_TYPE_HEADER = "content-type"
FORM_URLENCODED_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass
class FormParam:
    """
    A named value to be encoded into a query string, form or multipart body
    
    Attributes:
        key: Parameter name
        value: Scalar, mapping, sequence, dataclass or FileWrapper
        headers: Per-part headers, only ``content-type`` is used
        array_serialization_option: How nested keys and repeated values render
    """
    key: str
    value: Any
    headers: Dict[str, str] = field(default_factory=dict)
    array_serialization_option: ArraySerializationOption = ArraySerializationOption.INDEXED
    
    def __post_init__(self):
        self.headers = {k.lower(): v for k, v in (self.headers or {}).items()}
    
    def is_multipart(self) -> bool:
        """True when an explicit non form-urlencoded content type was given for this part"""
        content_type = self.headers.get(CONTENT_TYPE_HEADER)
        return bool(content_type) and content_type != FORM_URLENCODED_CONTENT_TYPE
    
    def to_flat_map(self) -> FlatMap:
        """Flatten this parameter into ``{key: [values]}``"""
        return _flatten(self.key, self.value, self.array_serialization_option, self.is_multipart())


class FormParams(list):
    """Ordered collection of form parameters that ignores ``None`` values"""
    
    def add(self, param: FormParam) -> None:
        if param.value is not None:
            self.append(param)


def encode_space(value: str) -> str:
    """Replace every '+' produced by form encoding with '%20'"""
    return value.replace("+", "%20")


def _is_struct(value: Any) -> bool:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return True
    return not isinstance(value, Mapping) and callable(getattr(value, 'to_dict', None))


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, complex, Enum, UUID))


def _flatten(key: str, value: Any, option: ArraySerializationOption, multipart: bool) -> FlatMap:
    if value is None:
        return {}
    if multipart:
        return _process_default(key, value)
    if _is_struct(value):
        return _flatten(key, to_plain(value), option, multipart)
    if isinstance(value, Mapping):
        return _process_mapping(key, value, option)
    if isinstance(value, (list, tuple)):
        return _process_sequence(key, value, option)
    return _process_default(key, value)


def _process_mapping(key: str, value: Mapping, option: ArraySerializationOption) -> FlatMap:
    result: FlatMap = {}
    for inner_key, inner_value in value.items():
        joined_key = option.join_key(key, inner_key)
        option.append_map(result, _flatten(joined_key, inner_value, option, False))
    return result


def _process_sequence(key: str, value: Iterable, option: ArraySerializationOption) -> FlatMap:
    result: FlatMap = {}
    for index, element in enumerate(value):
        element_index = None if _is_scalar(element) else index
        joined_key = option.join_key(key, element_index)
        option.append_map(result, _flatten(joined_key, element, option, False))
    return result


def _process_default(key: str, value: Any) -> FlatMap:
    if isinstance(value, bool):
        return {key: ["true" if value else "false"]}
    if isinstance(value, Enum):
        return {key: [str(value.value)]}
    if isinstance(value, (str, int, UUID)):
        return {key: [str(value)]}
    try:
        encoded = marshal(value)
    except EncodingError:
        # bare scalars JSON cannot represent, e.g. inf
        return {key: [str(value)]}
    if encoded.startswith('"'):
        encoded = encoded[1:-1]
    return {key: [encoded]}


def prepare_form_fields(params: Iterable[FormParam], form: Optional[FlatMap] = None) -> FlatMap:
    """
    Flatten every parameter and add its values to ``form``.
    
    Args:
        params: Parameters to encode
        form: Existing multi-valued map to extend, a new one if None
        
    Returns:
        The extended map (insertion order preserved per key)
        
    Raises:
        EncodingError: If a structured value cannot be serialized
    """
    if form is None:
        form = {}
    for param in params:
        for key, values in param.to_flat_map().items():
            form.setdefault(key, []).extend(values)
    return form


def encode_form(form: FlatMap) -> str:
    """URL-encode a multi-valued map, spaces rendered as %20"""
    pairs = [(key, value) for key, values in form.items() for value in values]
    return encode_space(urlencode(pairs))


def _make_part(name: str, data: bytes, file_name: Optional[str], content_type: Optional[str]) -> RequestField:
    part = RequestField(name=name, data=data, filename=file_name)
    part.make_multipart(content_type=content_type)
    return part


def prepare_multipart_fields(params: Iterable[FormParam]) -> Tuple[bytes, str]:
    """
    Write parameters as a multipart/form-data body.
    
    Returns:
        Tuple of (body, content type header value including the boundary)
        
    Raises:
        EncodingError: If a structured value cannot be serialized
    """
    parts: List[RequestField] = []
    for param in params:
        content_type = param.headers.get(CONTENT_TYPE_HEADER)
        if isinstance(param.value, FileWrapper):
            file_wrapper = param.value
            parts.append(_make_part(
                param.key,
                bytes(file_wrapper.file),
                file_wrapper.file_name or None,
                content_type or file_wrapper.content_type,
            ))
            continue
        
        for key, values in param.to_flat_map().items():
            for value in values:
                parts.append(_make_part(key, value.encode('utf-8'), None, content_type))
    
    return encode_multipart_formdata(parts)
