from __future__ import annotations

from typing import Callable, Optional

from lark import Tree

from ..runtime import ExecutionContext, MdlxRuntimeError, Value, number_value
from ..tree import Node, tree_label
from .common import is_global_token, name_token_value, require_value, token_kind
from .helpers import to_number

EvalFunc = Callable[[Node, ExecutionContext], Optional[Value]]

def eval_identifier(n: Tree, context: ExecutionContext) -> Value:
    name = name_token_value(n.children[0], "Identifier")
    return context.get_variable(name)

def eval_vardecl(n: Tree, context: ExecutionContext, eval_func: EvalFunc) -> None:
    name_tok, value_node = n.children
    name = name_token_value(name_tok, "Variable name")

    value = require_value(eval_func(value_node, context), f"Value for {name}")
    context.set_variable(name, value, is_global=is_global_token(name_tok))

    return None

def step_identifier(target: Node, context: ExecutionContext, delta: int, prefix: bool) -> Value:
    """++/--: write back where the name is bound; prefix yields the new value."""
    if tree_label(target) != 'identifier':
        raise MdlxRuntimeError("Increment/decrement requires an identifier operand")

    name = name_token_value(target.children[0], "Increment target")
    old = to_number(context.get_variable(name))
    new = number_value(old + delta)

    context.assign_existing(name, new)

    return new if prefix else number_value(old)

def eval_postfix(n: Tree, context: ExecutionContext) -> Value:
    target, op = n.children
    delta = 1 if token_kind(op) == 'INCR' else -1

    return step_identifier(target, context, delta, prefix=False)
