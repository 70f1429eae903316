from __future__ import annotations

import re
from typing import Callable, List, Optional

from lark import Tree

from ..runtime import ExecutionContext, Value, array_value, bool_value, number_value, text_value
from ..tree import Node, is_token
from .common import require_value, stringify, token_kind

EvalFunc = Callable[[Node, ExecutionContext], Optional[Value]]

# :::lang opens a fenced code block without clashing with the script's own quotes
_FENCE_RE = re.compile(r":::([A-Za-z0-9_+-]*)")

def apply_fences(text: str) -> str:
    return _FENCE_RE.sub(lambda m: "```" + m.group(1), text)

def eval_string(n: Tree) -> Value:
    tok = n.children[0]

    if token_kind(tok) == 'LITERAL':
        return text_value(str(tok.value), markdown=False)

    return text_value(apply_fences(str(tok.value)))

def eval_template(n: Tree, context: ExecutionContext, eval_func: EvalFunc) -> Value:
    parts: List[str] = []

    for part in n.children:
        if is_token(part):
            parts.append(str(part.value))
            continue

        value = require_value(eval_func(part, context), "Template expression")
        parts.append(stringify(value))

    return text_value(apply_fences("".join(parts)))

def eval_number(n: Tree) -> Value:
    return number_value(float(n.children[0].value))

def eval_boolean(n: Tree) -> Value:
    return bool_value(str(n.children[0].value) == 'true')

def eval_array(n: Tree, context: ExecutionContext, eval_func: EvalFunc) -> Value:
    items: List[Value] = []

    for child in n.children:
        items.append(require_value(eval_func(child, context), "Array element"))

    return array_value(items)
