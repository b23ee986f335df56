"""
Encoding helpers for APICore SDK requests

Array serialization, query/form flattening, multipart bodies, file payloads
and the JSON body codec.
"""

from .array_serialization import ArraySerializationOption, FlatMap
from .file_wrapper import (
    FileWrapper,
    get_file,
    get_file_with_content_type,
)
from .form_data import (
    FormParam,
    FormParams,
    encode_form,
    encode_space,
    prepare_form_fields,
    prepare_multipart_fields,
)
from .json_codec import format_any, marshal, to_plain

__all__ = [
    'ArraySerializationOption',
    'FlatMap',
    'FileWrapper',
    'get_file',
    'get_file_with_content_type',
    'FormParam',
    'FormParams',
    'encode_form',
    'encode_space',
    'prepare_form_fields',
    'prepare_multipart_fields',
    'format_any',
    'marshal',
    'to_plain',
]
