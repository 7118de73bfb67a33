"""
JSON document decoder.

Turns raw text into a JSON value tree, reporting malformed input as a
DecodeError instead of a validation failure. Key order and the int/float
distinction of numeric literals survive decoding, which the engine needs for
`type: integer` checks.

Two output shapes:
- strict (default): immutable tree, objects are read-only mappings and arrays
  are tuples
- loose: plain dicts and lists the caller is free to mutate
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from jsonvalidation.exceptions import DecodeError

_BOM = "\ufeff"

# Deepest array/object nesting accepted. The validation engine walks the tree
# recursively and needs several frames per level.
MAX_DEPTH = 128


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a valid JSON value")


def _to_text(raw: str | bytes | bytearray) -> str:
    if isinstance(raw, (bytes, bytearray)):
        try:
            return bytes(raw).decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise DecodeError(
                "invalid_encoding",
                f"Malformed UTF-8 input: {exc.reason}",
                offset=exc.start,
            ) from exc
    if raw.startswith(_BOM):
        return raw[1:]
    return raw


def _loads(text: str) -> Any:
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise DecodeError(
            "syntax_error", exc.msg, line=exc.lineno, column=exc.colno, offset=exc.pos
        ) from exc
    except ValueError as exc:
        raise DecodeError("invalid_constant", str(exc)) from exc
    except RecursionError as exc:
        raise DecodeError("nesting_depth", "Maximum nesting depth exceeded") from exc


def _check_depth(value: Any, max_depth: int) -> None:
    stack = [(value, 1)]
    while stack:
        item, depth = stack.pop()
        if isinstance(item, dict):
            children = item.values()
        elif isinstance(item, list):
            children = item
        else:
            continue
        if depth > max_depth:
            raise DecodeError(
                "nesting_depth", f"Document nesting exceeds the maximum depth of {max_depth}"
            )
        stack.extend((child, depth + 1) for child in children)


def decode(raw: str | bytes | bytearray, loose: bool = False, max_depth: int = MAX_DEPTH) -> Any:
    """
    Decode `raw` into a JSON value.
    Raises DecodeError for empty, malformed, too deeply nested or non-UTF-8 input.
    """
    text = _to_text(raw)
    if not text.strip():
        raise DecodeError("empty_document", "Syntax error: the document is empty")
    value = _loads(text)
    _check_depth(value, max_depth)
    return value if loose else freeze(value)


def freeze(value: Any) -> Any:
    """Convert a plain dict/list tree into its immutable form."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Convert an immutable tree back into plain dicts and lists."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    return value


def _default(value: Any) -> Any:
    if isinstance(value, Mapping):
        return dict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode(value: Any, indent: int | None = None) -> str:
    """Serialize a decoded value (strict or loose) back to JSON text."""
    return json.dumps(value, default=_default, ensure_ascii=False, indent=indent)
