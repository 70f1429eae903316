"""
Lexer for MDLX - Recursive Descent Parser

Tokenizes MDLX source code into a stream of tokens.

Features:
- Single-pass tokenization
- Newline tokens as statement separators
- Position tracking (line, column)
- Markdown strings with <expr> template spans and $math$ passthrough
- Backtick literal strings, sigil identifiers (@name, ~@name)
"""

from typing import List, Optional, Tuple

from .options import DEFAULT_OPTIONS, LanguageOptions
from .token_types import TT, SourceError, TemplatePart, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================

class LexError(SourceError):
    """Lexical analysis error"""
    pass


class Lexer:
    """
    MDLX lexer.

    Strings are scanned eagerly: escapes are processed, template spans
    are captured as raw source and handed to the parser as TemplateParts.
    """

    KEYWORDS = {
        'if': TT.IF,
        'else': TT.ELSE,
        'for': TT.FOR,
        'while': TT.WHILE,
        'true': TT.BOOLEAN,
        'false': TT.BOOLEAN,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Two-character operators
        ('==', TT.EQ),
        ('!=', TT.NEQ),
        ('<=', TT.LTE),
        ('>=', TT.GTE),
        ('&&', TT.AND),
        ('||', TT.OR),
        ('=>', TT.ARROW),
        ('++', TT.INCR),
        ('--', TT.DECR),

        # Single-character operators
        ('+', TT.PLUS),
        ('-', TT.MINUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('%', TT.PERCENT),
        ('<', TT.LT),
        ('>', TT.GT),
        ('!', TT.NOT),
        ('=', TT.ASSIGN),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        (',', TT.COMMA),
    ]

    ESCAPES = {
        'n': '\n',
        't': '\t',
        'r': '\r',
        '\\': '\\',
        '"': '"',
        '`': '`',
        '<': '<',
        '>': '>',
    }

    def __init__(self, source: str, options: Optional[LanguageOptions] = None, emit_comments: bool = False):
        self.source = source
        self.options = options or DEFAULT_OPTIONS
        self.emit_comments = emit_comments
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Tok] = []
        self.token_start = 0

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while self.pos < len(self.source):
            self.scan_token()

        self.token_start = self.pos
        self.emit(TT.EOF, '', self.line, self.column)
        return self.tokens

    def scan_token(self):
        """Scan next token"""
        # Skip whitespace (not newlines)
        if self.skip_whitespace():
            return

        self.token_start = self.pos
        ch = self.peek()
        line, column = self.line, self.column

        # Comments
        if ch == '/' and self.peek(1) == '/':
            self.scan_comment()
            return

        # Newlines
        if ch == '\n':
            self.advance()
            self.emit(TT.NEWLINE, '\n', line, column)
            return

        # String literals
        if ch == '"':
            self.scan_string()
            return

        if ch == '`':
            self.scan_literal_string()
            return

        # Numbers
        if ch.isdigit():
            self.scan_number()
            return

        # Global identifiers
        if ch == '~':
            if self.peek(1) != '@':
                raise LexError("Unexpected character '~', did you mean '~@' for a global variable?", line, column)
            self.advance()
            self.scan_identifier(line, column, is_global=True)
            return

        # Sigil identifiers
        if ch == '@':
            self.scan_identifier(line, column)
            return

        # Names and keywords
        if ch.isalpha():
            self.scan_name()
            return

        # Operators and punctuation
        self.scan_operator()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_comment(self):
        """Skip (or emit) a // comment up to the end of the line"""
        line, column = self.line, self.column
        text = ''

        while self.pos < len(self.source) and self.peek() != '\n':
            text += self.advance()

        if self.emit_comments:
            self.emit(TT.COMMENT, text, line, column)

    def scan_string(self):
        """Scan "..." or \"\"\"...\"\"\" markdown strings"""
        line, column = self.line, self.column
        self.advance()  # opening quote

        multiline = self.peek() == '"' and self.peek(1) == '"'
        if multiline:
            self.advance(2)

        value = ''
        parts: List[TemplatePart] = []
        in_math = False
        math_double = False

        while True:
            if self.pos >= len(self.source):
                if multiline:
                    raise LexError("Unterminated multiline string", line, column)
                raise LexError("Unterminated string", line, column)

            ch = self.peek()

            if multiline:
                if ch == '"' and self.peek(1) == '"' and self.peek(2) == '"':
                    self.advance(3)
                    break
            else:
                if ch == '"':
                    self.advance()
                    break
                if ch == '\n':
                    raise LexError("Unterminated string", line, column)

            if self.options.math_mode:
                consumed, in_math, math_double = self.math_toggle(in_math, math_double)
                if consumed:
                    value += self.advance(consumed)
                    continue

            if ch == '\\' and not in_math:
                self.advance()
                if self.pos < len(self.source):
                    value += self.escaped_char(self.advance())
            elif ch == '<' and self.peek(1) != ' ':
                if value:
                    parts.append(TemplatePart('text', value))
                    value = ''
                parts.append(TemplatePart('expr', self.scan_template_span(line, column, multiline)))
            else:
                value += self.advance()

        if parts:
            if value:
                parts.append(TemplatePart('text', value))
            self.emit(TT.TEMPLATE_STRING, '', line, column, parts=tuple(parts))
            return

        self.emit(TT.STRING, value, line, column)

    def scan_template_span(self, line: int, column: int, multiline: bool) -> str:
        """Capture raw expression source between < and its matching >"""
        self.advance()  # <
        source = ''
        depth = 1

        while self.pos < len(self.source):
            ch = self.peek()

            if ch == '<':
                depth += 1
            elif ch == '>':
                depth -= 1
                if depth == 0:
                    self.advance()
                    return source.strip()
            elif ch == '\n' and not multiline:
                raise LexError("Unterminated template expression in string", line, column)

            source += self.advance()

        raise LexError("Unterminated template expression", line, column)

    def math_toggle(self, in_math: bool, math_double: bool) -> Tuple[int, bool, bool]:
        """
        Return (chars consumed, in_math, math_double) for a $ or $$ at pos.

        A region is closed only by the delimiter that opened it.
        """
        if self.peek() != '$':
            return 0, in_math, math_double

        if self.peek(1) == '$':
            if in_math and math_double:
                return 2, False, False
            if not in_math:
                return 2, True, True
        else:
            if in_math and not math_double:
                return 1, False, False
            if not in_math:
                return 1, True, False

        return 0, in_math, math_double

    def escaped_char(self, ch: str) -> str:
        return self.ESCAPES.get(ch, ch)

    def scan_literal_string(self):
        """Scan `...` literal string"""
        line, column = self.line, self.column
        self.advance()  # opening backtick
        value = ''

        while self.pos < len(self.source) and self.peek() != '`':
            if self.options.literal_escapes and self.peek() == '\\':
                self.advance()
                if self.pos < len(self.source):
                    value += self.escaped_char(self.advance())
                continue

            value += self.advance()

        if self.pos >= len(self.source):
            raise LexError("Unterminated literal string", line, column)

        self.advance()  # closing backtick
        self.emit(TT.LITERAL_STRING, value, line, column)

    def scan_number(self):
        """Scan number literal"""
        line, column = self.line, self.column
        value = ''

        # Integer part
        while self.peek().isdigit():
            value += self.advance()

        # Decimal part, only when a digit follows the point
        if self.peek() == '.' and self.peek(1).isdigit():
            value += self.advance()  # .
            while self.peek().isdigit():
                value += self.advance()

        self.emit(TT.NUMBER, value, line, column)

    def scan_identifier(self, line: int, column: int, is_global: bool = False):
        """Scan @name (or ~@name once ~ is consumed); a lone @ is AT"""
        self.advance()  # @

        if not self.is_ident_start(self.peek()):
            if is_global:
                raise LexError("Expected identifier after ~@", line, column)
            self.emit(TT.AT, '@', line, column)
            return

        value = '@' + self.read_word()
        self.emit(TT.GLOBAL if is_global else TT.IDENTIFIER, value, line, column)

    def scan_name(self):
        """Scan bare name or keyword"""
        line, column = self.line, self.column
        value = self.read_word()

        token_type = self.KEYWORDS.get(value, TT.NAME)
        self.emit(token_type, value, line, column)

    def read_word(self) -> str:
        value = ''

        while self.is_word_char(self.peek()):
            if self.peek() == '-' and self.peek(1) == '-':
                break
            value += self.advance()

        return value

    def scan_operator(self):
        """Scan operators and punctuation"""
        line, column = self.line, self.column

        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                self.emit(op_type, op_str, line, column)
                return

        ch = self.peek()
        if ch == '&':
            raise LexError("Unexpected character '&', did you mean '&&'?", line, column)
        if ch == '|':
            raise LexError("Unexpected character '|', did you mean '||'?", line, column)

        raise LexError(f"Unexpected character '{ch}'", line, column)

    # ========================================================================
    # Utilities
    # ========================================================================

    @staticmethod
    def is_ident_start(ch: str) -> bool:
        return ch.isalpha() or ch == '_'

    @staticmethod
    def is_word_char(ch: str) -> bool:
        return ch.isalnum() or ch in ('_', '-')

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        result = ''
        for _ in range(n):
            if self.pos >= len(self.source):
                break
            ch = self.source[self.pos]
            result += ch
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return result

    def skip_whitespace(self) -> bool:
        """Skip whitespace (not newlines), return True if any skipped"""
        skipped = False
        while self.peek() in (' ', '\t', '\r'):
            self.advance()
            skipped = True
        return skipped

    def emit(self, token_type: TT, value: str, line: int, column: int, parts: Optional[Tuple[TemplatePart, ...]] = None):
        """Emit a token"""
        self.tokens.append(Tok(
            type=token_type, value=value, line=line, column=column, parts=parts,
            start=self.token_start, end=self.pos,
        ))


def tokenize(source: str, options: Optional[LanguageOptions] = None, emit_comments: bool = False) -> List[Tok]:
    """Convenience function to tokenize source"""
    lexer = Lexer(source, options=options, emit_comments=emit_comments)
    return lexer.tokenize()
