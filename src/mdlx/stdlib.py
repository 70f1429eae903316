"""Built-in stdlib functions (@heading, @grid, etc.) registered via mdlx.runtime.

Argument counts are checked by the registry before a built-in runs; each
built-in validates its own argument types and values.
"""

from __future__ import annotations

import math
from typing import List

from .runtime import register_stdlib, Value, MdlxRuntimeError, MdlxTypeError
from .runtime import array_value, number_value, text_value, format_number
from .eval.common import stringify
from .eval.helpers import is_truthy

def _loose_number(value: Value) -> float:
    """Numeric reading for validation; unparseable input becomes NaN."""
    match value.value:
        case bool(flag):
            return 1.0 if flag else 0.0
        case float(num):
            return num
        case str(text):
            stripped = text.strip()
            if not stripped:
                return 0.0
            try:
                return float(stripped)
            except ValueError:
                return math.nan
        case _:
            return math.nan

def _fmt(num: float) -> str:
    return format_number(num)

def _type_name(value: Value) -> str:
    match value.value:
        case bool():
            return "boolean"
        case float():
            return "number"
        case list():
            return "array"
        case _:
            return "string"

def _optional_text(args: List[Value], index: int, default: str = "") -> str:
    return stringify(args[index]) if len(args) > index else default

def _prefix_lines(text: str, prefix: str) -> str:
    return "\n".join(prefix + line for line in text.split("\n"))

# ---------------- Text / utility ----------------

@register_stdlib("@len", arity=(1, 1))
def std_len(_context, args: List[Value]) -> Value:
    value = args[0]

    if value.is_array or value.is_string:
        return number_value(len(value.value))

    raise MdlxTypeError(f"@len() expects a string or array, got {_type_name(value)}")

@register_stdlib("@join", arity=(1, 2))
def std_join(_context, args: List[Value]) -> Value:
    array = args[0]
    separator = _optional_text(args, 1)

    if not array.is_array:
        raise MdlxTypeError(f"@join() expects an array as first argument, got {_type_name(array)}")

    return text_value(separator.join(stringify(item) for item in array.value))

@register_stdlib("@range", arity=(1, 2))
def std_range(_context, args: List[Value]) -> Value:
    if len(args) == 1:
        start, end = 0.0, _loose_number(args[0])
    else:
        start, end = _loose_number(args[0]), _loose_number(args[1])

    if not (math.isfinite(start) and math.isfinite(end)):
        raise MdlxTypeError("@range() expects numeric arguments")

    items = []
    current = start
    while current < end:
        items.append(number_value(current))
        current += 1

    return array_value(items)

@register_stdlib("@upper", arity=(1, 1))
def std_upper(_context, args: List[Value]) -> Value:
    return text_value(stringify(args[0]).upper(), markdown=args[0].is_markdown)

@register_stdlib("@lower", arity=(1, 1))
def std_lower(_context, args: List[Value]) -> Value:
    return text_value(stringify(args[0]).lower(), markdown=args[0].is_markdown)

@register_stdlib("@repeat", arity=(2, 2), usage="content, count")
def std_repeat(_context, args: List[Value]) -> Value:
    content = stringify(args[0])
    count = _loose_number(args[1])

    if not math.isfinite(count) or count < 0:
        raise MdlxRuntimeError(f"@repeat() count must be a positive number, got {_fmt(count)}")

    return text_value(content * math.floor(count), markdown=args[0].is_markdown)

# ---------------- Markdown authoring ----------------

@register_stdlib("@heading", arity=(2, 2), usage="level, text")
def std_heading(_context, args: List[Value]) -> Value:
    level = _loose_number(args[0])
    text = stringify(args[1])

    if math.isnan(level) or level < 1 or level > 6:
        raise MdlxRuntimeError(f"@heading() level must be between 1 and 6, got {_fmt(level)}")

    return text_value(f"{'#' * math.floor(level)} {text}")

@register_stdlib("@link", arity=(2, 2), usage="text, url")
def std_link(_context, args: List[Value]) -> Value:
    return text_value(f"[{stringify(args[0])}]({stringify(args[1])})")

@register_stdlib("@img", arity=(1, 2), usage="url, [alt]")
def std_img(_context, args: List[Value]) -> Value:
    url = stringify(args[0])
    alt = _optional_text(args, 1)

    return text_value(f"![{alt}]({url})")

@register_stdlib("@code", arity=(1, 2), usage="code, [lang]")
def std_code(_context, args: List[Value]) -> Value:
    code = stringify(args[0])
    lang = _optional_text(args, 1)

    return text_value(f"```{lang}\n{code}\n```")

@register_stdlib("@quote", arity=(1, 1))
def std_quote(_context, args: List[Value]) -> Value:
    return text_value(_prefix_lines(stringify(args[0]), "> "))

@register_stdlib("@list", arity=(1, 2), usage="array, [numbered]")
def std_list(_context, args: List[Value]) -> Value:
    if not args[0].is_array:
        raise MdlxTypeError(f"@list() expects an array, got {_type_name(args[0])}")

    items = args[0].value
    numbered = is_truthy(args[1]) if len(args) > 1 else False

    if numbered:
        lines = [f"{i}. {stringify(item)}" for i, item in enumerate(items, start=1)]
    else:
        lines = [f"- {stringify(item)}" for item in items]

    return text_value("\n".join(lines))

@register_stdlib("@table", arity=(2, 2), usage="headers, rows")
def std_table(_context, args: List[Value]) -> Value:
    headers, rows = args

    if not headers.is_array or not rows.is_array:
        raise MdlxTypeError("@table() expects two arrays (headers, rows)")

    def row_text(cells: List[Value]) -> str:
        return "| " + " | ".join(stringify(c) for c in cells) + " |"

    lines = [row_text(headers.value), "| " + " | ".join("---" for _ in headers.value) + " |"]

    for row in rows.value:
        if row.is_array:
            lines.append(row_text(row.value))
        else:
            lines.append(f"| {stringify(row)} |")

    return text_value("\n".join(lines))

@register_stdlib("@callout", arity=(2, 3), usage="type, title, [content]")
def std_callout(_context, args: List[Value]) -> Value:
    kind = stringify(args[0])
    title = stringify(args[1])
    content = _optional_text(args, 2)

    result = f"> [!{kind}] {title}"
    if content:
        result += "\n" + _prefix_lines(content, "> ")

    return text_value(result)

@register_stdlib("@wiki", arity=(1, 2), usage="page, [alias]")
def std_wiki(_context, args: List[Value]) -> Value:
    page = stringify(args[0])
    alias = _optional_text(args, 1)

    if alias:
        return text_value(f"[[{page}|{alias}]]")

    return text_value(f"[[{page}]]")

@register_stdlib("@tag", arity=(1, 1))
def std_tag(_context, args: List[Value]) -> Value:
    return text_value(f"#{stringify(args[0])}")

# ---------------- Layout & components ----------------

def _layout(name: str, args: List[Value], default_gap: float) -> Value:
    count = _loose_number(args[0])
    items = args[1]
    gap = _loose_number(args[2]) if len(args) > 2 else default_gap
    label = "columns" if name == "@grid" else "count"

    if not math.isfinite(count) or count < 1:
        raise MdlxRuntimeError(f"{name}() {label} must be a positive number, got {_fmt(count)}")

    if not items.is_array:
        raise MdlxTypeError(f"{name}() expects an array as second argument, got {_type_name(items)}")

    return Value("", True, ["grd", f"grd-cls-{_fmt(count)}", f"gp-{_fmt(gap)}"], list(items.value))

@register_stdlib("@grid", arity=(2, 3), usage="columns, items, [gap]")
def std_grid(_context, args: List[Value]) -> Value:
    return _layout("@grid", args, 4.0)

@register_stdlib("@columns", arity=(2, 3), usage="count, items, [gap]")
def std_columns(_context, args: List[Value]) -> Value:
    return _layout("@columns", args, 8.0)

@register_stdlib("@center", arity=(1, 1))
def std_center(_context, args: List[Value]) -> Value:
    return Value(stringify(args[0]), args[0].is_markdown, ["flx", "jst-center", "aln-center", "txt-center"])

@register_stdlib("@hero", arity=(2, 3), usage="title, subtitle, [content]")
def std_hero(_context, args: List[Value]) -> Value:
    title = stringify(args[0])
    subtitle = stringify(args[1])
    content = _optional_text(args, 2)

    children = [
        Value(f"# {title}", True, ["txt-2xl", "fnt-bold", "mb-2"]),
        Value(subtitle, True, ["txt-lg", "txt-muted", "mb-4"]),
    ]
    if content:
        children.append(Value(content, True))

    return Value("", True, ["p-12", "txt-center"], children)

@register_stdlib("@feature", arity=(3, 3), usage="icon, title, description")
def std_feature(_context, args: List[Value]) -> Value:
    icon, title, desc = (stringify(a) for a in args)

    children = [
        Value(icon, True, ["txt-4xl", "mb-2"]),
        Value(f"### {title}", True, ["fnt-semibold", "mb-2"]),
        Value(desc, True, ["txt-muted"]),
    ]

    return Value("", True, ["p-6", "txt-center"], children)

@register_stdlib("@figure", arity=(2, 3), usage="image, caption")
def std_figure(_context, args: List[Value]) -> Value:
    image = stringify(args[0])
    caption = stringify(args[1])

    children = [
        Value(f"![[{image}]]", True, ["blck", "ml-auto", "mr-auto"]),
        Value(caption, True, ["txt-sm", "txt-muted"]),
    ]

    return Value("", True, ["my-4", "flx", "flx-col", "aln-center", "jst-center"], children)

@register_stdlib("@dl", arity=(1, 1), usage="terms")
def std_dl(_context, args: List[Value]) -> Value:
    terms = args[0]
    message = "@dl() expects an array of [term, definition] pairs"

    if not terms.is_array:
        raise MdlxTypeError(message)

    items = []
    for term in terms.value:
        if not term.is_array or len(term.value) != 2:
            raise MdlxTypeError(message)
        dt, dd = term.value
        items.append(f"**{stringify(dt)}**:\n {stringify(dd)}")

    return text_value("\n\n".join(items))
