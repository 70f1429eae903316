"""
Recursive Descent Parser for MDLX

Structure:
- Lexer: Token stream from source (lexer_rd)
- Parser: Recursive descent with one function per precedence level
- AST: lark Tree/Token nodes; every Tree carries meta.line / meta.column

Node labels:
  program, vardecl, fndecl, ifstmt, elifclause, elseclause, forstmt,
  whilestmt, returnstmt, indexassign, body, params, styles, args,
  string, template, number, boolean, array, index, identifier, call,
  anonfn, block, binop, concat, unary, postfix
"""

from dataclasses import replace
from typing import List, Optional

from lark import Token, Tree

from .lexer_rd import LexError, tokenize
from .options import DEFAULT_OPTIONS, LanguageOptions
from .token_types import TT, SourceError, Tok
from .tree import leaf, node, tree_label

# ============================================================================
# Parser
# ============================================================================

class ParseError(SourceError):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None, line: Optional[int] = None, column: Optional[int] = None):
        self.token = token
        if token is not None:
            line = token.line if line is None else line
            column = token.column if column is None else column
        super().__init__(message, line, column)

NAME_TOKENS = (TT.IDENTIFIER, TT.GLOBAL, TT.NAME)
COMPARE_OPS = (TT.EQ, TT.NEQ, TT.LT, TT.LTE, TT.GT, TT.GTE)

class Parser:
    """
    Recursive descent parser for MDLX.

    Expression precedence (lowest to highest):
    1. or (||)
    2. and (&&)
    3. compare (==, !=, <, <=, >, >=), non-chaining
    4. add (+, -)
    5. mul (*, /, %)
    6. unary (!, -, prefix ++/--)
    7. postfix (++/-- on identifiers, [index] on identifiers and calls)
    8. primary (literals, identifiers, calls, arrays, blocks, @(...)[...]())
    """

    def __init__(self, tokens: List[Tok], options: Optional[LanguageOptions] = None):
        self.tokens = tokens
        self.options = options or DEFAULT_OPTIONS
        self.pos = 0
        self.current = tokens[0] if tokens else Tok(TT.EOF, '', 0, 0)

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token"""
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return Tok(TT.EOF, '', 0, 0)

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        self.pos += 1
        self.current = self.peek()
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: Optional[str] = None) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            msg = message or f"Expected {token_type.name}, got {self.current.type.name}"
            raise ParseError(msg, self.current)
        return self.advance()

    def skip_newlines(self) -> None:
        while self.match(TT.NEWLINE):
            pass

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Tree:
        """Parse entire program"""
        stmts = self.parse_statements(until=TT.EOF)
        return node('program', stmts, 1, 1)

    def parse_statements(self, until: TT) -> List[Tree]:
        stmts: List[Tree] = []

        while True:
            self.skip_newlines()
            if self.check(until) or self.check(TT.EOF):
                break
            stmts.append(self.parse_statement())

        return stmts

    def parse_statement(self) -> Tree:
        """
        Parse a single statement:
        - if / for / while / => return
        - name = (params)[styles] { body }   (function declaration)
        - name = expr                        (variable declaration)
        - name[i] = expr                     (index assignment)
        - expr
        """
        if self.check(TT.IF):
            return self.parse_if_stmt()

        if self.check(TT.FOR):
            return self.parse_for_stmt()

        if self.check(TT.WHILE):
            return self.parse_while_stmt()

        if self.check(TT.ARROW):
            return self.parse_return_stmt()

        if self.check(*NAME_TOKENS) and self.peek(1).type == TT.ASSIGN:
            return self.parse_assignment()

        start = self.current
        expr = self.parse_expr()

        if self.check(TT.ASSIGN):
            if tree_label(expr) != 'index':
                raise ParseError("Invalid assignment target", self.current)
            self.advance()
            self.skip_newlines()
            value = self.parse_expr()
            target, index = expr.children
            return node('indexassign', [target, index, value], start.line, start.column)

        return expr

    def parse_assignment(self) -> Tree:
        name_tok = self.advance()
        self.expect(TT.ASSIGN)
        name = leaf(name_tok.type.name, name_tok.value, name_tok.line, name_tok.column)

        if self.check(TT.LPAR) and self._looks_like_fn_decl():
            return self.parse_fn_decl(name, name_tok)

        self.skip_newlines()
        value = self.parse_expr()
        return node('vardecl', [name, value], name_tok.line, name_tok.column)

    def _looks_like_fn_decl(self) -> bool:
        """
        At '(' after `name =`: a parameter list holds only names and is
        followed by a style list or a body.
        """
        offset = 1
        expect_name = True

        while True:
            tok = self.peek(offset)

            if tok.type == TT.RPAR:
                break
            if expect_name and tok.type in (TT.IDENTIFIER, TT.NAME):
                expect_name = False
            elif not expect_name and tok.type == TT.COMMA:
                expect_name = True
            elif tok.type != TT.NEWLINE:
                return False

            offset += 1

        return self.peek(offset + 1).type in (TT.LSQB, TT.LBRACE)

    def parse_fn_decl(self, name: Token, name_tok: Tok) -> Tree:
        """Parse function declaration tail: (params)[styles] { body }"""
        params = self.parse_param_list()
        styles = self.parse_style_list() if self.check(TT.LSQB) else node('styles', [], self.current.line, self.current.column)
        body = self.parse_body("function body")
        return node('fndecl', [name, params, styles, body], name_tok.line, name_tok.column)

    def parse_if_stmt(self) -> Tree:
        """
        Parse if statement:
        if (expr) { body } [else if (expr) { body }]* [else { body }]
        """
        if_tok = self.expect(TT.IF)
        cond = self.parse_condition("if")
        then_body = self.parse_body("if body")

        children = [cond, then_body]

        while self._else_follows():
            self.skip_newlines()
            else_tok = self.advance()

            if self.check(TT.IF):
                self.advance()
                elif_cond = self.parse_condition("else if")
                elif_body = self.parse_body("else if body")
                children.append(node('elifclause', [elif_cond, elif_body], else_tok.line, else_tok.column))
                continue

            else_body = self.parse_body("else body")
            children.append(node('elseclause', [else_body], else_tok.line, else_tok.column))
            break

        return node('ifstmt', children, if_tok.line, if_tok.column)

    def _else_follows(self) -> bool:
        offset = 0
        while self.peek(offset).type == TT.NEWLINE:
            offset += 1
        return self.peek(offset).type == TT.ELSE

    def parse_condition(self, keyword: str) -> Tree:
        self.expect(TT.LPAR, f"Expected '(' after '{keyword}'")
        self.skip_newlines()
        cond = self.parse_expr()
        self.skip_newlines()
        self.expect(TT.RPAR, f"Expected ')' after {keyword} condition")
        return cond

    def parse_for_stmt(self) -> Tree:
        """Parse for loop: for (init, cond, update) { body }"""
        for_tok = self.expect(TT.FOR)
        self.expect(TT.LPAR, "Expected '(' after 'for'")
        self.skip_newlines()

        init = self.parse_statement()
        self.skip_newlines()
        self.expect(TT.COMMA, "Expected ',' after for-loop initializer")
        self.skip_newlines()

        cond = self.parse_expr()
        self.skip_newlines()
        self.expect(TT.COMMA, "Expected ',' after for-loop condition")
        self.skip_newlines()

        update = self.parse_statement()
        self.skip_newlines()
        self.expect(TT.RPAR, "Expected ')' after for-loop clauses")

        body = self.parse_body("for body")
        return node('forstmt', [init, cond, update, body], for_tok.line, for_tok.column)

    def parse_while_stmt(self) -> Tree:
        """Parse while loop: while (expr) { body }"""
        while_tok = self.expect(TT.WHILE)
        cond = self.parse_condition("while")
        body = self.parse_body("while body")
        return node('whilestmt', [cond, body], while_tok.line, while_tok.column)

    def parse_return_stmt(self) -> Tree:
        arrow = self.expect(TT.ARROW)

        if self.check(TT.NEWLINE, TT.RBRACE, TT.EOF):
            return node('returnstmt', [], arrow.line, arrow.column)

        value = self.parse_expr()
        return node('returnstmt', [value], arrow.line, arrow.column)

    def parse_body(self, what: str) -> Tree:
        """Parse { statements } into a body node"""
        lbrace = self.expect(TT.LBRACE, f"Expected '{{' to start {what}")
        stmts = self.parse_statements(until=TT.RBRACE)
        self.expect(TT.RBRACE, f"Expected '}}' to end {what}")
        return node('body', stmts, lbrace.line, lbrace.column)

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expr(self) -> Tree:
        return self.parse_or_expr()

    def _binop(self, left: Tree, op: Tok, right: Tree) -> Tree:
        line, column = left.meta.line, left.meta.column
        return node('binop', [left, leaf(op.type.name, op.value, op.line, op.column), right], line, column)

    def parse_or_expr(self) -> Tree:
        """Parse logical OR: expr || expr"""
        left = self.parse_and_expr()

        while self.check(TT.OR):
            op = self.advance()
            self.skip_newlines()
            right = self.parse_and_expr()
            left = self._binop(left, op, right)

        return left

    def parse_and_expr(self) -> Tree:
        """Parse logical AND: expr && expr"""
        left = self.parse_compare_expr()

        while self.check(TT.AND):
            op = self.advance()
            self.skip_newlines()
            right = self.parse_compare_expr()
            left = self._binop(left, op, right)

        return left

    def parse_compare_expr(self) -> Tree:
        """Parse a single comparison; comparisons do not chain"""
        left = self.parse_add_expr()

        if not self.check(*COMPARE_OPS):
            return left

        op = self.advance()
        self.skip_newlines()
        right = self.parse_add_expr()

        if self.check(*COMPARE_OPS):
            raise ParseError("Comparison operators cannot be chained", self.current)

        return self._binop(left, op, right)

    def parse_add_expr(self) -> Tree:
        """Parse addition/subtraction: expr + expr"""
        if self.options.concat_shorthand:
            return self.parse_concat_expr()

        left = self.parse_mul_expr()

        while self.check(TT.PLUS, TT.MINUS):
            op = self.advance()
            self.skip_newlines()
            right = self.parse_mul_expr()
            left = self._binop(left, op, right)

        return left

    def parse_concat_expr(self) -> Tree:
        """Lower revision: operands joined by '+' form one concat node"""
        first = self.parse_sub_expr()

        if not self.check(TT.PLUS):
            return first

        parts = [first]
        while self.match(TT.PLUS):
            self.skip_newlines()
            parts.append(self.parse_sub_expr())

        return node('concat', parts, first.meta.line, first.meta.column)

    def parse_sub_expr(self) -> Tree:
        left = self.parse_mul_expr()

        while self.check(TT.MINUS):
            op = self.advance()
            self.skip_newlines()
            right = self.parse_mul_expr()
            left = self._binop(left, op, right)

        return left

    def parse_mul_expr(self) -> Tree:
        """Parse multiplication/division/modulo: expr * expr"""
        left = self.parse_unary_expr()

        while self.check(TT.STAR, TT.SLASH, TT.PERCENT):
            op = self.advance()
            self.skip_newlines()
            right = self.parse_unary_expr()
            left = self._binop(left, op, right)

        return left

    def parse_unary_expr(self) -> Tree:
        """Parse unary operators: -expr, !expr, ++name, --name"""
        if self.check(TT.MINUS, TT.NOT, TT.INCR, TT.DECR):
            op = self.advance()
            operand = self.parse_unary_expr()

            if op.type in (TT.INCR, TT.DECR) and tree_label(operand) != 'identifier':
                raise ParseError(f"Prefix '{op.value}' requires an identifier operand", op)

            return node('unary', [leaf(op.type.name, op.value, op.line, op.column), operand], op.line, op.column)

        return self.parse_postfix_expr()

    def parse_postfix_expr(self) -> Tree:
        """Parse postfix ++/-- after an identifier"""
        expr = self.parse_primary_expr()

        if tree_label(expr) == 'identifier' and self.check(TT.INCR, TT.DECR):
            op = self.advance()
            return node('postfix', [expr, leaf(op.type.name, op.value, op.line, op.column)], expr.meta.line, expr.meta.column)

        return expr

    def parse_primary_expr(self) -> Tree:
        """Parse primary expressions"""
        tok = self.current

        if self.match(TT.LPAR):
            self.skip_newlines()
            expr = self.parse_expr()
            self.skip_newlines()
            self.expect(TT.RPAR, "Expected ')' after expression")
            return expr

        if self.match(TT.BOOLEAN):
            return node('boolean', [leaf('BOOLEAN', tok.value, tok.line, tok.column)], tok.line, tok.column)

        if self.match(TT.NUMBER):
            return node('number', [leaf('NUMBER', tok.value, tok.line, tok.column)], tok.line, tok.column)

        if self.match(TT.STRING):
            return node('string', [leaf('STRING', tok.value, tok.line, tok.column)], tok.line, tok.column)

        if self.match(TT.LITERAL_STRING):
            return node('string', [leaf('LITERAL', tok.value, tok.line, tok.column)], tok.line, tok.column)

        if self.match(TT.TEMPLATE_STRING):
            return self.parse_template(tok)

        if self.check(TT.LSQB):
            return self.parse_array_literal()

        if self.check(*NAME_TOKENS):
            return self.parse_name_expr()

        if self.check(TT.AT):
            return self.parse_anonymous_fn()

        if self.check(TT.LBRACE):
            return self.parse_block()

        raise ParseError(f"Unexpected token: {tok.type.name} ('{tok.value}')", tok)

    def parse_name_expr(self) -> Tree:
        """identifier, call, then any [index] chain"""
        tok = self.advance()
        name = leaf(tok.type.name, tok.value, tok.line, tok.column)

        if self.check(TT.LPAR):
            args = self.parse_arg_list()
            expr = node('call', [name, args], tok.line, tok.column)
        else:
            expr = node('identifier', [name], tok.line, tok.column)

        while self.check(TT.LSQB):
            lsqb = self.advance()
            self.skip_newlines()
            index = self.parse_expr()
            self.skip_newlines()
            self.expect(TT.RSQB, "Expected ']' after index")
            expr = node('index', [expr, index], lsqb.line, lsqb.column)

        return expr

    def parse_template(self, tok: Tok) -> Tree:
        """Interleave literal text with independently parsed expressions"""
        children: List = []

        for part in tok.parts or ():
            if part.kind == 'text':
                children.append(leaf('TEXT', part.text, tok.line, tok.column))
            else:
                children.append(parse_expr_fragment(part.text, self.options, tok.line, tok.column))

        return node('template', children, tok.line, tok.column)

    def parse_array_literal(self) -> Tree:
        """[a, b, c] with optional trailing comma"""
        lsqb = self.expect(TT.LSQB)
        items = []
        self.skip_newlines()

        while not self.check(TT.RSQB):
            items.append(self.parse_expr())
            self.skip_newlines()
            if not self.match(TT.COMMA):
                break
            self.skip_newlines()

        self.skip_newlines()
        self.expect(TT.RSQB, "Expected ']' after array elements")
        return node('array', items, lsqb.line, lsqb.column)

    def parse_anonymous_fn(self) -> Tree:
        """@(args)[styles]()"""
        at = self.expect(TT.AT)

        if not self.check(TT.LPAR):
            raise ParseError("Unexpected '@' token - expected identifier or function call", at)

        args = self.parse_arg_list()
        styles = self.parse_style_list() if self.check(TT.LSQB) else node('styles', [], at.line, at.column)

        self.expect(TT.LPAR, "Expected '()' to invoke anonymous function")
        self.expect(TT.RPAR, "Expected ')' to complete anonymous function invocation")

        return node('anonfn', [args, styles], at.line, at.column)

    def parse_block(self) -> Tree:
        """{ statements }[styles]"""
        body = self.parse_body("block")
        styles = self.parse_style_list() if self.check(TT.LSQB) else node('styles', [], body.meta.line, body.meta.column)
        return node('block', [body, styles], body.meta.line, body.meta.column)

    # ========================================================================
    # Lists
    # ========================================================================

    def parse_arg_list(self) -> Tree:
        lpar = self.expect(TT.LPAR, "Expected '(' to start argument list")
        args = []
        self.skip_newlines()

        while not self.check(TT.RPAR):
            args.append(self.parse_expr())
            self.skip_newlines()
            if not self.match(TT.COMMA):
                break
            self.skip_newlines()

        self.expect(TT.RPAR, "Expected ')' after argument list")
        return node('args', args, lpar.line, lpar.column)

    def parse_param_list(self) -> Tree:
        lpar = self.expect(TT.LPAR, "Expected '(' to start parameter list")
        params = []
        self.skip_newlines()

        while not self.check(TT.RPAR):
            if not self.check(TT.IDENTIFIER, TT.NAME):
                raise ParseError("Expected parameter name (identifier)", self.current)
            tok = self.advance()
            params.append(leaf(tok.type.name, tok.value, tok.line, tok.column))
            self.skip_newlines()
            if not self.match(TT.COMMA):
                break
            self.skip_newlines()

        self.expect(TT.RPAR, "Expected ')' after parameter list")
        return node('params', params, lpar.line, lpar.column)

    def parse_style_list(self) -> Tree:
        lsqb = self.expect(TT.LSQB, "Expected '[' to start style list")
        styles = []

        while not self.check(TT.RSQB):
            if not self.check(TT.NAME):
                raise ParseError("Expected style class name", self.current)
            tok = self.advance()
            styles.append(leaf('STYLE', tok.value, tok.line, tok.column))
            if not self.match(TT.COMMA):
                break

        self.expect(TT.RSQB, "Expected ']' after style list")
        return node('styles', styles, lsqb.line, lsqb.column)

# ============================================================================
# Entry Points
# ============================================================================

def parse(tokens: List[Tok], options: Optional[LanguageOptions] = None) -> Tree:
    """Parse a token list into a program tree"""
    return Parser(tokens, options=options).parse()


def parse_source(source: str, options: Optional[LanguageOptions] = None) -> Tree:
    """Convenience: tokenize + parse"""
    tokens = tokenize(source, options=options)
    return parse(tokens, options=options)


def parse_expr_fragment(source: str, options: Optional[LanguageOptions] = None, line: int = 1, column: int = 1) -> Tree:
    """
    Parse a standalone expression fragment (template-string spans).

    Positions are translated so that the fragment's first line is `line`
    of the enclosing source.
    """
    try:
        tokens = tokenize(source, options=options)
    except LexError as e:
        raise LexError(e.message, _shift_line(e.line, line), column) from e

    tokens = [replace(t, line=_shift_line(t.line, line), column=column) for t in tokens]

    parser = Parser(tokens, options=options)
    expr = parser.parse_expr()

    # Ensure we've consumed the entire fragment
    if not parser.check(TT.EOF):
        raise ParseError("Unexpected tokens after template expression", parser.current)

    return expr


def _shift_line(inner: Optional[int], base: int) -> int:
    return base + (inner or 1) - 1


# ============================================================================
# Main
# ============================================================================

if __name__ == '__main__':
    import sys

    if len(sys.argv) > 1 and sys.argv[1] != '-':
        with open(sys.argv[1], 'r') as f:
            source = f.read()
    else:
        source = sys.stdin.read()

    try:
        tree = parse_source(source, options=LanguageOptions.from_env())
        print(tree.pretty())
    except SourceError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        sys.exit(1)
