from __future__ import annotations

import math
from typing import Callable, List, Optional

from lark import Tree

from ..runtime import (
    ExecutionContext,
    MdlxRuntimeError,
    MdlxZeroDivisionError,
    Value,
    bool_value,
    number_value,
    text_value,
)
from ..tree import Node
from .bind import step_identifier
from .common import require_value, stringify, token_kind
from .helpers import is_truthy, to_number, values_equal

EvalFunc = Callable[[Node, ExecutionContext], Optional[Value]]

def eval_binop(n: Tree, context: ExecutionContext, eval_func: EvalFunc) -> Value:
    lhs_node, op, rhs_node = n.children
    kind = token_kind(op)

    lhs = require_value(eval_func(lhs_node, context), "Left operand")

    # && and || decide before touching the right operand
    if kind == 'AND':
        if not is_truthy(lhs):
            return bool_value(False)
        return bool_value(is_truthy(require_value(eval_func(rhs_node, context), "Right operand")))

    if kind == 'OR':
        if is_truthy(lhs):
            return bool_value(True)
        return bool_value(is_truthy(require_value(eval_func(rhs_node, context), "Right operand")))

    rhs = require_value(eval_func(rhs_node, context), "Right operand")
    return apply_binary(kind, lhs, rhs)

def apply_binary(kind: Optional[str], lhs: Value, rhs: Value) -> Value:
    match kind:
        case 'PLUS':
            return add_values(lhs, rhs)
        case 'EQ':
            return bool_value(values_equal(lhs, rhs))
        case 'NEQ':
            return bool_value(not values_equal(lhs, rhs))
        case 'LT':
            return bool_value(to_number(lhs) < to_number(rhs))
        case 'LTE':
            return bool_value(to_number(lhs) <= to_number(rhs))
        case 'GT':
            return bool_value(to_number(lhs) > to_number(rhs))
        case 'GTE':
            return bool_value(to_number(lhs) >= to_number(rhs))
        case 'MINUS':
            return number_value(to_number(lhs) - to_number(rhs))
        case 'STAR':
            return number_value(to_number(lhs) * to_number(rhs))
        case 'SLASH':
            divisor = to_number(rhs)
            if divisor == 0:
                raise MdlxZeroDivisionError("Division by zero")
            return number_value(to_number(lhs) / divisor)
        case 'PERCENT':
            divisor = to_number(rhs)
            if divisor == 0:
                raise MdlxZeroDivisionError("Modulo by zero")
            return number_value(math.fmod(to_number(lhs), divisor))
        case _:
            raise MdlxRuntimeError(f"Unknown operator {kind}")

def add_values(lhs: Value, rhs: Value) -> Value:
    """String-aware +: any string side concatenates, otherwise numeric."""
    if lhs.is_string or rhs.is_string:
        return text_value(stringify(lhs) + stringify(rhs), markdown=lhs.is_markdown or rhs.is_markdown)

    return number_value(to_number(lhs) + to_number(rhs))

def eval_unary(n: Tree, context: ExecutionContext, eval_func: EvalFunc) -> Value:
    op, operand_node = n.children
    kind = token_kind(op)

    if kind in {'INCR', 'DECR'}:
        return step_identifier(operand_node, context, 1 if kind == 'INCR' else -1, prefix=True)

    operand = require_value(eval_func(operand_node, context), "Operand")

    if kind == 'NOT':
        return bool_value(not is_truthy(operand))

    if kind == 'MINUS':
        return number_value(-to_number(operand))

    raise MdlxRuntimeError(f"Unknown unary operator {kind}")

def eval_concat(n: Tree, context: ExecutionContext, eval_func: EvalFunc) -> Value:
    """Lower-revision `a + b + c`: plain text join."""
    parts: List[Value] = [require_value(eval_func(ch, context), "Concatenation part") for ch in n.children]
    text = "".join(stringify(p) for p in parts)

    return text_value(text, markdown=any(p.is_markdown for p in parts))
