from __future__ import annotations

from typing import Callable, List, Optional

from lark import Tree

from .. import runtime
from ..runtime import ExecutionContext, FunctionDef, MdlxNameError, Value, text_value
from ..tree import Node, child_by_label, token_values
from .common import is_global_token, name_token_value, require_value, stringify

EvalFunc = Callable[[Node, ExecutionContext], Optional[Value]]

def eval_fn_decl(n: Tree, context: ExecutionContext) -> None:
    name_tok = n.children[0]
    name = name_token_value(name_tok, "Function name")
    body = child_by_label(n, 'body')

    fn = FunctionDef(
        name=name,
        params=tuple(token_values(child_by_label(n, 'params'))),
        styles=tuple(token_values(child_by_label(n, 'styles'))),
        body=body if body is not None else Tree('body', []),
    )
    context.set_function(name, fn, is_global=is_global_token(name_tok))

    return None

def eval_args(args_node: Optional[Tree], context: ExecutionContext, eval_func: EvalFunc) -> List[Value]:
    if args_node is None:
        return []

    return [require_value(eval_func(arg, context), "Argument") for arg in args_node.children]

def eval_call(n: Tree, context: ExecutionContext, eval_func: EvalFunc) -> Value:
    """Built-in table first, then user functions along the scope chain."""
    name = name_token_value(n.children[0], "Function name")
    args_node = child_by_label(n, 'args')

    if runtime.has(name):
        args = eval_args(args_node, context, eval_func)
        return runtime.call_stdlib(name, args, context)

    fn = context.lookup_function(name)
    if fn is None:
        raise MdlxNameError(f"Undefined function: {name}")

    args = eval_args(args_node, context, eval_func)
    return runtime.call_function(fn, args, context)

def eval_anonymous_fn(n: Tree, context: ExecutionContext, eval_func: EvalFunc) -> Value:
    """@(a, b)[styles]() joins its arguments with spaces and attaches styles."""
    args = eval_args(child_by_label(n, 'args'), context, eval_func)
    styles = token_values(child_by_label(n, 'styles'))

    joined = text_value(" ".join(stringify(a) for a in args), markdown=any(a.is_markdown for a in args))
    return joined.with_styles(styles)
