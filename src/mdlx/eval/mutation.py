from __future__ import annotations

import math
from typing import Callable, List, Optional

from lark import Tree

from ..runtime import ExecutionContext, MdlxIndexError, MdlxTypeError, Value
from ..tree import Node, tree_label
from .common import name_token_value, require_value

EvalFunc = Callable[[Node, ExecutionContext], Optional[Value]]

def resolve_index(items: List[Value], index: Value) -> int:
    """Floor a numeric index and bounds-check it; arrays never grow."""
    if not index.is_number:
        raise MdlxIndexError("Array index must be a number")

    if not math.isfinite(index.value):
        raise MdlxIndexError("Array index must be a finite number")

    pos = math.floor(index.value)
    if pos < 0 or pos >= len(items):
        raise MdlxIndexError(f"Index {pos} out of bounds for array of length {len(items)}")

    return pos

def eval_index(n: Tree, context: ExecutionContext, eval_func: EvalFunc) -> Value:
    target_node, index_node = n.children
    target = require_value(eval_func(target_node, context), "Indexed expression")

    if not target.is_array:
        raise MdlxTypeError("Cannot index a non-array value")

    index = require_value(eval_func(index_node, context), "Index")
    return target.value[resolve_index(target.value, index)]

def eval_index_assign(n: Tree, context: ExecutionContext, eval_func: EvalFunc) -> None:
    """name[i] = value replaces the element in place, visible through every alias."""
    target_node, index_node, value_node = n.children

    if tree_label(target_node) != 'identifier':
        raise MdlxTypeError("Index assignment target must be a variable")

    name = name_token_value(target_node.children[0], "Index assignment target")
    target = context.get_variable(name)

    if not target.is_array:
        raise MdlxTypeError(f"Cannot index-assign into non-array variable {name}")

    index = require_value(eval_func(index_node, context), "Index")
    pos = resolve_index(target.value, index)
    target.value[pos] = require_value(eval_func(value_node, context), "Assigned value")

    return None
