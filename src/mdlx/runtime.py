from __future__ import annotations

import importlib
import logging
from typing import Callable, Dict, List, Optional, Tuple

from .types import (
    Value, FunctionDef, ExecutionContext, StdlibFunction,
    MdlxRuntimeError, MdlxTypeError, MdlxArityError, MdlxIndexError,
    MdlxNameError, MdlxZeroDivisionError, ReturnSignal,
    text_value, number_value, bool_value, array_value, empty_value,
    format_number,
)

logger = logging.getLogger(__name__)

StdlibFn = Callable[[ExecutionContext, List[Value]], Value]

# implicit parameter bound to the first call argument
CONTENT_PARAM = "@content"

_STDLIB_INITIALIZED = False

class Builtins:
    stdlib_functions: Dict[str, StdlibFunction] = {}

def init_stdlib() -> None:
    """Load stdlib modules (idempotent) so register_stdlib hooks run."""
    global _STDLIB_INITIALIZED

    if _STDLIB_INITIALIZED:
        return

    importlib.import_module("mdlx.stdlib")
    _STDLIB_INITIALIZED = True

def register_stdlib(name: str, *, arity: Optional[Tuple[int, int]] = None, usage: Optional[str] = None):
    def dec(fn: StdlibFn):
        Builtins.stdlib_functions[name] = StdlibFunction(name=name, fn=fn, arity=arity, usage=usage)
        return fn

    return dec

def has(name: str) -> bool:
    init_stdlib()
    return name in Builtins.stdlib_functions

def get(name: str) -> Optional[StdlibFunction]:
    init_stdlib()
    return Builtins.stdlib_functions.get(name)

def arity_message(name: str, arity: Tuple[int, int], usage: Optional[str], got: int) -> str:
    lo, hi = arity
    count = str(lo) if lo == hi else f"{lo}-{hi}"
    noun = "argument" if lo == hi == 1 else "arguments"
    detail = f" ({usage})" if usage else ""

    return f"{name}() expects {count} {noun}{detail}, got {got}"

def call_stdlib(name: str, args: List[Value], context: ExecutionContext) -> Value:
    entry = get(name)
    if entry is None:
        raise MdlxNameError(f"Undefined function: {name}")

    if entry.arity is not None:
        lo, hi = entry.arity
        if not lo <= len(args) <= hi:
            raise MdlxArityError(arity_message(name, entry.arity, entry.usage, len(args)))

    return entry.fn(context, args)

def call_function(fn: FunctionDef, args: List[Value], caller: ExecutionContext) -> Value:
    """
    User function call semantics:
    - callee scope is parented to the caller; the caller chain's global scope is propagated
    - params bind positionally; a missing argument is an error
    - @content is the first argument unless a parameter already claimed the name
    - a return is caught here; declared styles override the result's styles
    """
    from .evaluator import eval_node  # local import to avoid cycle
    from .eval.blocks import fold_results

    callee = ExecutionContext(parent=caller, global_scope=caller.find_global())

    for i, param in enumerate(fn.params):
        if i >= len(args):
            raise MdlxArityError(f"Missing argument for parameter {param}")
        callee.variables[param] = args[i]

    if CONTENT_PARAM not in callee.variables:
        callee.variables[CONTENT_PARAM] = args[0] if args else empty_value()

    logger.debug("call %s with %d argument(s)", fn.name, len(args))

    styles = list(fn.styles)
    results: List[Value] = []

    try:
        for stmt in fn.body.children:
            value = eval_node(stmt, callee)
            if value is not None:
                results.append(value)
    except ReturnSignal as signal:
        returned = signal.value if signal.value is not None else empty_value()
        return returned.with_styles(styles) if styles else returned

    folded = fold_results(results, styles)
    return folded if folded is not None else empty_value()
