"""
Token Types for MDLX

Shared between lexer and parser to avoid circular dependencies.
"""

from typing import Optional, Tuple
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - mirrors grammar terminals"""

    # Literals
    STRING = auto()           # "..." / """...""" (markdown)
    TEMPLATE_STRING = auto()  # string containing <expr> spans
    LITERAL_STRING = auto()   # `...` (raw)
    NUMBER = auto()
    BOOLEAN = auto()

    # Keywords
    IF = auto()
    ELSE = auto()
    FOR = auto()
    WHILE = auto()

    # Names
    NAME = auto()        # bare word: x, bg-red
    IDENTIFIER = auto()  # @name
    GLOBAL = auto()      # ~@name

    # Operators
    ASSIGN = auto()  # =
    ARROW = auto()   # =>
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()
    INCR = auto()  # ++
    DECR = auto()  # --

    # Comparison
    EQ = auto()
    NEQ = auto()
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()

    # Logical
    AND = auto()
    OR = auto()
    NOT = auto()  # !

    # Punctuation
    AT = auto()  # bare @ (anonymous function)
    LPAR = auto()
    RPAR = auto()
    LSQB = auto()
    RSQB = auto()
    LBRACE = auto()
    RBRACE = auto()
    COMMA = auto()

    # Special
    NEWLINE = auto()
    EOF = auto()
    COMMENT = auto()


@dataclass(frozen=True)
class TemplatePart:
    """One piece of a template string: literal text or raw expression source."""

    kind: str  # "text" | "expr"
    text: str


@dataclass(frozen=True)
class Tok:
    """Token with position info"""

    type: TT
    value: str
    line: int = 0
    column: int = 0
    parts: Optional[Tuple[TemplatePart, ...]] = None
    # source offsets [start, end) of the raw token text
    start: int = -1
    end: int = -1

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"


class SourceError(Exception):
    """Error attributed to a 1-based line/column in the source text."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(message)

    def __str__(self) -> str:
        if self.line is None:
            return self.message

        if self.column is None:
            return f"{self.message} (line {self.line})"

        return f"{self.message} at line {self.line}, col {self.column}"
