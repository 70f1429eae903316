from __future__ import annotations

from typing import Callable, List, Optional

from lark import Tree

from ..runtime import ExecutionContext, Value
from ..tree import Node, tree_label
from .blocks import fold_results, last_value
from .common import require_value
from .helpers import is_truthy

EvalFunc = Callable[[Node, ExecutionContext], Optional[Value]]

def _condition(node: Node, context: ExecutionContext, eval_func: EvalFunc) -> bool:
    return is_truthy(require_value(eval_func(node, context), "Condition"))

def eval_if_stmt(n: Tree, context: ExecutionContext, eval_func: EvalFunc) -> Optional[Value]:
    """First true branch wins; the else clause runs only when none matched."""
    cond, then_body, *clauses = n.children

    if _condition(cond, context, eval_func):
        return last_value(then_body, context, eval_func)

    for clause in clauses:
        if tree_label(clause) == 'elifclause':
            elif_cond, elif_body = clause.children
            if _condition(elif_cond, context, eval_func):
                return last_value(elif_body, context, eval_func)
            continue

        # elseclause
        return last_value(clause.children[0], context, eval_func)

    return None

def eval_while_stmt(n: Tree, context: ExecutionContext, eval_func: EvalFunc) -> Optional[Value]:
    cond, body = n.children
    results: List[Value] = []

    while _condition(cond, context, eval_func):
        value = last_value(body, context, eval_func)
        if value is not None:
            results.append(value)

    return fold_results(results)

def eval_for_stmt(n: Tree, context: ExecutionContext, eval_func: EvalFunc) -> Optional[Value]:
    """for (init, cond, update): init once, cond before every pass, update after."""
    init, cond, update, body = n.children
    results: List[Value] = []

    eval_func(init, context)

    while _condition(cond, context, eval_func):
        value = last_value(body, context, eval_func)
        if value is not None:
            results.append(value)

        eval_func(update, context)

    return fold_results(results)
