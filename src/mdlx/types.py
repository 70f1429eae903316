from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, Union

from lark import Tree
from typing_extensions import TypeAlias

from .token_types import SourceError

# ---------- Value Model ----------

Scalar: TypeAlias = Union[str, float, bool]

def format_number(v: float) -> str:
    """Shortest round-trip text, laid out the way the markdown host prints numbers."""
    if v != v:
        return "NaN"
    if v in (float("inf"), float("-inf")):
        return "Infinity" if v > 0 else "-Infinity"
    if v == 0:
        return "0"

    sign = "-" if v < 0 else ""
    _, digits, exponent = Decimal(repr(abs(float(v)))).as_tuple()
    digits = list(digits)
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1

    text = "".join(str(d) for d in digits)
    k = len(text)
    # decimal point sits after `point` digits
    point = exponent + k

    if k <= point <= 21:
        return sign + text + "0" * (point - k)
    if 0 < point <= 21:
        return sign + text[:point] + "." + text[point:]
    if -6 < point <= 0:
        return sign + "0." + "0" * -point + text

    exp = point - 1
    mantissa = text[0] + ("." + text[1:] if k > 1 else "")
    return f"{sign}{mantissa}e{'+' if exp >= 0 else '-'}{abs(exp)}"

@dataclass
class Value:
    """Evaluated value: a scalar or array payload plus presentation hints.

    Arrays are plain Python lists shared by reference, so index assignment
    through one holder is visible through every alias.
    """
    value: Union[Scalar, List['Value']]
    is_markdown: bool = True
    styles: Optional[List[str]] = None
    children: Optional[List['Value']] = None

    @property
    def is_array(self) -> bool:
        return isinstance(self.value, list)

    @property
    def is_string(self) -> bool:
        return isinstance(self.value, str)

    @property
    def is_bool(self) -> bool:
        return isinstance(self.value, bool)

    @property
    def is_number(self) -> bool:
        return isinstance(self.value, float) and not isinstance(self.value, bool)

    def with_styles(self, styles: Optional[List[str]]) -> 'Value':
        return replace(self, styles=list(styles) if styles else None)

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-ready structure for embedders."""
        payload: Any
        if isinstance(self.value, list):
            payload = [item.to_dict() for item in self.value]
        else:
            payload = self.value

        out: Dict[str, Any] = {"value": payload, "isMarkdown": self.is_markdown}
        if self.styles:
            out["styles"] = list(self.styles)
        if self.children:
            out["children"] = [child.to_dict() for child in self.children]
        return out

    def __repr__(self) -> str:
        v = self.value
        if isinstance(v, bool):
            body = "true" if v else "false"
        elif isinstance(v, float):
            body = format_number(v)
        elif isinstance(v, list):
            body = "[" + ", ".join(repr(x) for x in v) + "]"
        else:
            body = repr(v)

        extras = []
        if not self.is_markdown:
            extras.append("literal")
        if self.styles:
            extras.append("styles=" + ",".join(self.styles))
        if self.children:
            extras.append(f"children={len(self.children)}")

        return f"<{body}{' ' + ' '.join(extras) if extras else ''}>"

def text_value(text: str, markdown: bool = True) -> Value:
    return Value(text, markdown)

def number_value(num: float) -> Value:
    # numeric results always render as markdown text
    return Value(float(num), True)

def bool_value(flag: bool) -> Value:
    return Value(bool(flag), True)

def array_value(items: List[Value]) -> Value:
    return Value(items, False)

def empty_value() -> Value:
    return Value("", True)

@dataclass(frozen=True)
class FunctionDef:
    name: str
    params: Tuple[str, ...]
    styles: Tuple[str, ...]
    body: Tree

    def __repr__(self) -> str:
        params = ", ".join(self.params) if self.params else "nullary"
        return f"<fn {self.name} params={params}>"

# ---------- Scopes ----------

class ExecutionContext:
    """
    One lexical scope: variables, user functions, an optional parent and an
    optional shared global scope.

    Lookup order is local -> global -> parent chain, so the global scope is
    visible at every nesting depth.
    """

    def __init__(self, parent: Optional['ExecutionContext']=None, global_scope: Optional['ExecutionContext']=None):
        self.parent = parent
        self.global_scope = global_scope
        self.variables: Dict[str, Value] = {}
        self.functions: Dict[str, FunctionDef] = {}

    def find_global(self) -> Optional['ExecutionContext']:
        cur: Optional[ExecutionContext] = self

        while cur is not None:
            if cur.global_scope is not None:
                return cur.global_scope
            cur = cur.parent

        return None

    def root(self) -> 'ExecutionContext':
        cur = self
        while cur.parent is not None:
            cur = cur.parent
        return cur

    def global_target(self) -> 'ExecutionContext':
        """Scope that receives ~@ writes; the root scope stands in when no global is attached."""
        glob = self.find_global()
        return glob if glob is not None else self.root()

    # variables

    def variable_owner(self, name: str) -> Optional['ExecutionContext']:
        if name in self.variables:
            return self

        glob = self.find_global()
        if glob is not None and glob is not self and name in glob.variables:
            return glob

        if self.parent is not None:
            return self.parent.variable_owner(name)

        return None

    def lookup_variable(self, name: str) -> Optional[Value]:
        owner = self.variable_owner(name)
        return owner.variables[name] if owner is not None else None

    def get_variable(self, name: str) -> Value:
        value = self.lookup_variable(name)
        if value is None:
            raise MdlxNameError(f"Undefined variable: {name}")
        return value

    def set_variable(self, name: str, value: Value, is_global: bool=False) -> None:
        if is_global:
            self.global_target().variables[name] = value
            return

        # an existing global binding wins, even over a local of the same name
        glob = self.find_global()
        if glob is not None and glob is not self and name in glob.variables:
            glob.variables[name] = value
            return

        self.variables[name] = value

    def assign_existing(self, name: str, value: Value) -> None:
        """Rebind `name` where it is currently bound."""
        owner = self.variable_owner(name)
        if owner is None:
            raise MdlxNameError(f"Undefined variable: {name}")
        owner.variables[name] = value

    # functions

    def lookup_function(self, name: str) -> Optional[FunctionDef]:
        if name in self.functions:
            return self.functions[name]

        glob = self.find_global()
        if glob is not None and glob is not self and name in glob.functions:
            return glob.functions[name]

        if self.parent is not None:
            return self.parent.lookup_function(name)

        return None

    def set_function(self, name: str, fn: FunctionDef, is_global: bool=False) -> None:
        target = self.global_target() if is_global else self
        target.functions[name] = fn

    def __repr__(self) -> str:
        names = ", ".join(sorted(self.variables)) or "-"
        fns = ", ".join(sorted(self.functions)) or "-"
        return f"<ExecutionContext vars=[{names}] fns=[{fns}]>"

# ---------- Exceptions ----------

class MdlxRuntimeError(SourceError):
    """Evaluation-time failure; location is attached by the evaluator if missing."""

class MdlxTypeError(MdlxRuntimeError):
    pass

class MdlxArityError(MdlxRuntimeError):
    pass

class MdlxNameError(MdlxRuntimeError):
    pass

class MdlxIndexError(MdlxRuntimeError):
    def __init__(self, message: str = "Index out of bounds", line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message, line, column)

class MdlxZeroDivisionError(MdlxRuntimeError):
    pass

class ReturnSignal(Exception):
    """Internal control-flow exception used to implement `=>`."""
    def __init__(self, value: Optional[Value], line: Optional[int] = None, column: Optional[int] = None):
        super().__init__("return")
        self.value = value
        self.line = line
        self.column = column

@dataclass(frozen=True)
class StdlibFunction:
    name: str
    fn: Any
    arity: Optional[Tuple[int, int]] = None
    usage: Optional[str] = field(default=None, compare=False)
