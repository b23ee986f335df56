"""
Array serialization options for query strings and form bodies

Controls how the keys of repeated and nested values are rendered and whether
the values of one key are kept as separate entries or joined into one string.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


FlatMap = Dict[str, List[str]]


class ArraySerializationOption(Enum):
    """Array serialization styles"""
    INDEXED = "indexed"       # key[0]=a&key[1]=b for complex items, key=a&key=b for scalars
    UNINDEXED = "unindexed"   # key[]=a&key[]=b
    PLAIN = "plain"           # key=a&key=b
    CSV = "csv"               # key=a,b
    TSV = "tsv"               # key=a\tb
    PSV = "psv"               # key=a|b

    @property
    def separator(self) -> Optional[str]:
        """Separator used to join the values of one key, None when values stay separate"""
        return _SEPARATORS.get(self)

    def join_key(self, key_prefix: str, index: Any = None) -> str:
        """
        Build the key of a nested value.

        Any index renders as ``prefix[index]``. Without an index only
        UNINDEXED adds empty brackets; every other option keeps the bare prefix.
        """
        if index is not None:
            return f"{key_prefix}[{index}]"
        if self is ArraySerializationOption.UNINDEXED:
            return f"{key_prefix}[]"
        return key_prefix

    def append(self, result: FlatMap, key: str, value: str) -> None:
        """Add ``value`` under ``key``, joining onto the existing entry for delimited styles"""
        separator = self.separator
        existing = result.get(key)
        if separator is not None and existing:
            existing[0] = f"{existing[0]}{separator}{value}"
        else:
            result.setdefault(key, []).append(value)

    def append_map(self, result: FlatMap, params: FlatMap) -> None:
        """Merge every value of ``params`` into ``result`` with :meth:`append`"""
        for key, values in params.items():
            for value in values:
                self.append(result, key, value)


_SEPARATORS = {
    ArraySerializationOption.CSV: ",",
    ArraySerializationOption.TSV: "\t",
    ArraySerializationOption.PSV: "|",
}
