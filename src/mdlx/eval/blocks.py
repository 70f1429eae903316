from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from lark import Tree

from ..runtime import ExecutionContext, Value, empty_value
from ..tree import Node, child_by_label, token_values
from .common import stringify

EvalFunc = Callable[[Node, ExecutionContext], Optional[Value]]

def fold_results(results: List[Value], styles: Optional[Iterable[str]] = None) -> Optional[Value]:
    """
    Collapse statement results into one value:
    zero -> None, one -> that value (styles override its own when given),
    many -> space-joined text that keeps the parts as children.
    """
    style_list = list(styles or ())

    if not results:
        return None

    if len(results) == 1:
        only = results[0]
        return only.with_styles(style_list) if style_list else only

    return Value(
        " ".join(stringify(r) for r in results),
        any(r.is_markdown for r in results),
        style_list or None,
        list(results),
    )

def eval_statements(stmts: Iterable[Node], context: ExecutionContext, eval_func: EvalFunc) -> List[Value]:
    results: List[Value] = []

    for stmt in stmts:
        value = eval_func(stmt, context)
        if value is not None:
            results.append(value)

    return results

def last_value(body: Tree, context: ExecutionContext, eval_func: EvalFunc) -> Optional[Value]:
    """Run a branch body; its value is the last statement that produced one."""
    results = eval_statements(body.children, context, eval_func)
    return results[-1] if results else None

def eval_block(n: Tree, context: ExecutionContext, eval_func: EvalFunc) -> Value:
    body = child_by_label(n, 'body')
    styles = token_values(child_by_label(n, 'styles'))

    results = eval_statements(body.children if body is not None else (), context, eval_func)
    folded = fold_results(results, styles)

    if folded is None:
        return empty_value().with_styles(styles)

    return folded
