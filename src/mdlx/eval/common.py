from __future__ import annotations

from typing import Any, Optional

from lark import Token

from ..runtime import MdlxRuntimeError, Value, format_number
from ..tree import is_token, node_position

def token_kind(node: Any) -> Optional[str]:
    if not is_token(node):
        return None
    tok: Token = node
    return str(tok.type)

def is_token_type(node: Any, kind: str) -> bool:
    return is_token(node) and token_kind(node) == kind

def name_token_value(node: Any, context: str) -> str:
    if token_kind(node) in {'IDENTIFIER', 'GLOBAL', 'NAME'}:
        return str(node.value)

    raise MdlxRuntimeError(f"{context} must be a name")

def is_global_token(node: Any) -> bool:
    return is_token_type(node, 'GLOBAL')

def stringify(value: Value) -> str:
    """Text form used for concatenation, templates and joins."""
    match value.value:
        case bool(flag):
            return "true" if flag else "false"
        case float(num):
            return format_number(num)
        case list(items):
            return ",".join(stringify(item) for item in items)
        case str(text):
            return text
        case other:
            return str(other)

def attach_location(exc: Exception, node: Any) -> None:
    """Fill in a missing line/column from `node`."""
    if getattr(exc, "line", None) is not None:
        return

    line, column = node_position(node)
    if line is None:
        return

    exc.line = line  # type: ignore[attr-defined]
    exc.column = column  # type: ignore[attr-defined]

def require_value(value: Optional[Value], what: str) -> Value:
    if value is None:
        raise MdlxRuntimeError(f"{what} produced no value")
    return value
