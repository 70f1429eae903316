from __future__ import annotations

from typing import Any, Callable, List, Optional

from ..runtime import ExecutionContext, ReturnSignal, Value
from ..tree import Node, node_position
from .common import require_value

EvalFunc = Callable[[Node, ExecutionContext], Optional[Value]]

def eval_return_stmt(n: Any, children: List[Any], context: ExecutionContext, eval_func: EvalFunc) -> Any:
    value = require_value(eval_func(children[0], context), "Return value") if children else None
    line, column = node_position(n)

    raise ReturnSignal(value, line, column)
