"""
JSON body codec

Thin wrapper around :mod:`json` that understands dataclasses, objects exposing
``to_dict()``, enums, UUIDs, dates and bytes, and reports failures as
:class:`EncodingError`.
"""

import base64
import dataclasses
import json
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from ..exceptions import EncodingError


def _default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if callable(getattr(value, 'to_dict', None)):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode('ascii')
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def marshal(value: Any) -> str:
    """
    Serialize ``value`` to compact JSON.
    
    Raises:
        EncodingError: If the value (or anything nested in it) cannot be
            represented, e.g. ``float('inf')``
    """
    try:
        return json.dumps(value, default=_default, allow_nan=False, separators=(',', ':'))
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Unable to marshal the given data: {e}")


def to_plain(value: Any) -> Any:
    """Convert a structured object into plain dicts, lists and scalars via a JSON round trip"""
    return json.loads(marshal(value))


def format_any(value: Any) -> str:
    """Render a value as JSON with the surrounding quotes stripped, '' if it cannot be encoded"""
    try:
        return marshal(value).strip('"')
    except EncodingError:
        return ""
