"""Reversible field-name encoding for schema documents.

``$`` introduces operators in store queries, so schema field names may not carry
it. Names are rewritten with ``&`` as an escape character: ``&`` becomes ``&a``
and ``$`` becomes ``&d``. Only keys are touched, at every nesting depth; values
are stored as given.
"""

from __future__ import annotations

from typing import Any, Dict

RESERVED = "$"
ESCAPE = "&"

_ENCODE = {ESCAPE: ESCAPE + "a", RESERVED: ESCAPE + "d"}
_DECODE = {"a": ESCAPE, "d": RESERVED}


def encode_name(name: str) -> str:
    return "".join(_ENCODE.get(char, char) for char in name)


def decode_name(name: str) -> str:
    out = []
    index = 0
    while index < len(name):
        char = name[index]
        if char == ESCAPE and index + 1 < len(name) and name[index + 1] in _DECODE:
            out.append(_DECODE[name[index + 1]])
            index += 2
            continue
        out.append(char)
        index += 1
    return "".join(out)


def _transform(value: Any, rename) -> Any:
    if isinstance(value, dict):
        return {rename(key): _transform(item, rename) for key, item in value.items()}
    if isinstance(value, list):
        return [_transform(item, rename) for item in value]
    return value


def encode_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    return _transform(schema, encode_name)


def decode_schema(encoded: Dict[str, Any]) -> Dict[str, Any]:
    return _transform(encoded, decode_name)


__all__ = ["decode_name", "decode_schema", "encode_name", "encode_schema"]
