from __future__ import annotations

import logging
from typing import Callable, List, Optional

from lark import Tree

from .runtime import (
    ExecutionContext,
    MdlxRuntimeError,
    ReturnSignal,
    Value,
    init_stdlib,
)
from .tree import Node, is_token, node_position, tree_label

from .eval.common import attach_location
from .eval.bind import eval_identifier, eval_postfix, eval_vardecl
from .eval.blocks import eval_block, eval_statements
from .eval.control import eval_return_stmt
from .eval.expr import eval_binop, eval_concat, eval_unary
from .eval.fn import eval_anonymous_fn, eval_call, eval_fn_decl
from .eval.literals import eval_array, eval_boolean, eval_number, eval_string, eval_template
from .eval.loops import eval_for_stmt, eval_if_stmt, eval_while_stmt
from .eval.mutation import eval_index, eval_index_assign

logger = logging.getLogger(__name__)

EvalFunc = Callable[[Node, ExecutionContext], Optional[Value]]

def _maybe_attach_location(exc: MdlxRuntimeError, node: Node) -> None:
    attach_location(exc, node)

# ---------------- Public API ----------------

def evaluate(program: Tree, context: Optional[ExecutionContext]=None) -> List[Value]:
    """
    Evaluate a program tree; one entry per top-level statement that
    produced a value (declarations produce none).
    """
    init_stdlib()

    if context is None:
        # a standalone program still gets its own global scope
        context = ExecutionContext(global_scope=ExecutionContext())

    results: List[Value] = []

    for stmt in program.children:
        try:
            value = eval_node(stmt, context)
        except ReturnSignal as signal:
            line, column = signal.line, signal.column
            if line is None:
                line, column = node_position(stmt)
            raise MdlxRuntimeError("return outside of a function", line, column) from None

        if value is not None:
            results.append(value)

    logger.debug("evaluated %d statement(s), %d value(s)", len(program.children), len(results))
    return results

# ---------------- Core evaluator ----------------

def eval_node(n: Node, context: ExecutionContext) -> Optional[Value]:
    try:
        return _eval_node_inner(n, context)
    except MdlxRuntimeError as e:
        _maybe_attach_location(e, n)
        raise

def _eval_node_inner(n: Node, context: ExecutionContext) -> Optional[Value]:
    if is_token(n):
        raise MdlxRuntimeError(f"Unexpected token node: {n.type}")

    d = n.data
    handler = _NODE_DISPATCH.get(d)
    if handler is not None:
        return handler(n, context)

    match d:
        case 'program' | 'body':
            results = eval_statements(n.children, context, eval_node)
            return results[-1] if results else None
        case 'returnstmt':
            return eval_return_stmt(n, n.children, context, eval_func=eval_node)
        case 'vardecl':
            return eval_vardecl(n, context, eval_node)
        case 'fndecl':
            return eval_fn_decl(n, context)
        case 'indexassign':
            return eval_index_assign(n, context, eval_node)
        case _:
            raise MdlxRuntimeError(f"Unknown node: {tree_label(n)}")

_NODE_DISPATCH: dict[str, Callable[[Tree, ExecutionContext], Optional[Value]]] = {
    'string': lambda n, _: eval_string(n),
    'template': lambda n, context: eval_template(n, context, eval_node),
    'number': lambda n, _: eval_number(n),
    'boolean': lambda n, _: eval_boolean(n),
    'array': lambda n, context: eval_array(n, context, eval_node),
    'identifier': eval_identifier,
    'index': lambda n, context: eval_index(n, context, eval_node),
    'binop': lambda n, context: eval_binop(n, context, eval_node),
    'concat': lambda n, context: eval_concat(n, context, eval_node),
    'unary': lambda n, context: eval_unary(n, context, eval_node),
    'postfix': eval_postfix,
    'call': lambda n, context: eval_call(n, context, eval_node),
    'anonfn': lambda n, context: eval_anonymous_fn(n, context, eval_node),
    'block': lambda n, context: eval_block(n, context, eval_node),
    'ifstmt': lambda n, context: eval_if_stmt(n, context, eval_node),
    'forstmt': lambda n, context: eval_for_stmt(n, context, eval_node),
    'whilestmt': lambda n, context: eval_while_stmt(n, context, eval_node),
}
