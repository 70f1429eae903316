"""Syntax highlighting for MDLX source, plus a prompt_toolkit lexer for the REPL."""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import Lexer as MdlxTokenizer, LexError
from .options import LanguageOptions
from .token_types import TT, Tok

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "boolean": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "literal-string": "ansiyellow",
    "template-string": "ansibrightgreen",
    "identifier": "",
    "function": "bold ansiyellow",
    "global": "bold ansimagenta",
    "operator": "",
    "punctuation": "",
    "comment": "italic ansigray",
    "error": "bold ansired",
}

# Token type → highlight group (same groups as the editor's lx-* classes).
_GROUP_MEMBERS = {
    "keyword": (TT.IF, TT.ELSE, TT.FOR, TT.WHILE),
    "boolean": (TT.BOOLEAN,),
    "number": (TT.NUMBER,),
    "string": (TT.STRING,),
    "template-string": (TT.TEMPLATE_STRING,),
    "literal-string": (TT.LITERAL_STRING,),
    "identifier": (TT.NAME,),
    "function": (TT.IDENTIFIER,),
    "global": (TT.GLOBAL,),
    "operator": (
        TT.ASSIGN, TT.ARROW, TT.PLUS, TT.MINUS, TT.STAR, TT.SLASH, TT.PERCENT,
        TT.INCR, TT.DECR, TT.EQ, TT.NEQ, TT.LT, TT.LTE, TT.GT, TT.GTE,
        TT.AND, TT.OR, TT.NOT,
    ),
    "punctuation": (
        TT.AT, TT.LPAR, TT.RPAR, TT.LSQB, TT.RSQB, TT.LBRACE, TT.RBRACE, TT.COMMA,
    ),
    "comment": (TT.COMMENT,),
}

_TT_GROUP = {tt: group for group, members in _GROUP_MEMBERS.items() for tt in members}

_LAYOUT = {TT.NEWLINE, TT.EOF}

Span = Tuple[str, str]


def highlight_spans(text: str, options: Optional[LanguageOptions] = None) -> List[Span]:
    """
    Split `text` into (group, text) spans that cover it exactly.

    Unstyled gaps get the group "". When lexing fails, everything after
    the last good token is reported as "error".
    """
    if not text:
        return []

    lexer = MdlxTokenizer(text, options=options, emit_comments=True)
    failed = False

    try:
        tokens: List[Tok] = lexer.tokenize()
    except LexError:
        tokens = lexer.tokens
        failed = True

    spans: List[Span] = []
    pos = 0

    for tok in tokens:
        if tok.type in _LAYOUT or tok.start < pos or tok.end <= tok.start:
            continue

        if tok.start > pos:
            spans.append(("", text[pos:tok.start]))

        spans.append((_TT_GROUP.get(tok.type, ""), text[tok.start:tok.end]))
        pos = tok.end

    if pos < len(text):
        spans.append(("error" if failed else "", text[pos:]))

    return spans


def _split_lines(spans: List[Span]) -> List[StyleAndTextTuples]:
    """Style spans → one fragment list per source line."""
    lines: List[StyleAndTextTuples] = [[]]

    for group, chunk in spans:
        style = GROUP_STYLE.get(group, "")
        pieces = chunk.split("\n")

        for i, piece in enumerate(pieces):
            if i > 0:
                lines.append([])
            if piece:
                lines[-1].append((style, piece))

    return lines


class MdlxLexer(Lexer):
    """prompt_toolkit Lexer that highlights MDLX source using the RD lexer."""

    def __init__(self, options: Optional[LanguageOptions] = None):
        self.options = options

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        # Multiline strings span lines, so lex the whole buffer at once.
        lines = _split_lines(highlight_spans(document.text, self.options))

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno < len(lines):
                return lines[lineno]

            return [("", "")]

        return get_line
