"""Recursive-descent parser for the EDL language.

The parser pulls tokens from the `Lexer` one at a time and builds the AST
defined in `edl.ast`. Parsing is fail-fast: the first problem raises a
`ParseError` and the rest of the source is not examined. A lexer failure
is turned into an ERROR token, which raises the moment the parser looks
at it.

Expression precedence, lowest first::

    assignment  (right associative, target must be a variable)
    ||
    &&
    == !=
    < <= > >=
    + - ++
    * / %
    ^           (right associative)
    - !         (unary)
    call ( ), field access ., indexing [ ]
    primary
"""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple, TypeVar

from .ast import (
    BinOp, UnOp, Expr, Stmt,
    NumberLit, BoolLit, StringLit, Variable, Binary, Unary, Call, Assign,
    BlockExpr, Lambda, ListLit, DictLit, TupleLit, FieldAccess, Index,
    InstanceLit, ExprStmt, LetStmt, ConstStmt, FunctionStmt, ReturnStmt,
    IfStmt, WhileStmt, ForStmt, ImportStmt, BlockStmt, BreakStmt,
    ContinueStmt, PrintStmt, PrintArgsStmt, TypeStmt,
)
from .errors import LexError, ParseError, ParseErrorKind
from .lexer import Lexer, Token, TokenKind, describe_kind

T = TypeVar('T')

MAX_FUNCTION_LINES = 64

EQUALITY_OPS = {TokenKind.EQEQ: BinOp.EQ, TokenKind.BANGEQ: BinOp.NEQ}
COMPARISON_OPS = {
    TokenKind.LT: BinOp.LT,
    TokenKind.LTE: BinOp.LTE,
    TokenKind.GT: BinOp.GT,
    TokenKind.GTE: BinOp.GTE,
}
ADDITIVE_OPS = {TokenKind.PLUS: BinOp.ADD, TokenKind.MINUS: BinOp.SUB, TokenKind.PLUSPLUS: BinOp.CONCAT}
MULTIPLICATIVE_OPS = {TokenKind.STAR: BinOp.MUL, TokenKind.SLASH: BinOp.DIV, TokenKind.PERCENT: BinOp.MOD}

UNSUPPORTED_KEYWORDS = {
    TokenKind.MATCH, TokenKind.ENUM, TokenKind.STRUCT, TokenKind.YIELD,
    TokenKind.PUB, TokenKind.MOD, TokenKind.AS,
}

STATEMENT_KEYWORDS = {
    TokenKind.LET, TokenKind.CONST, TokenKind.RETURN, TokenKind.IF,
    TokenKind.WHILE, TokenKind.FOR, TokenKind.IMPORT, TokenKind.BREAK,
    TokenKind.CONTINUE, TokenKind.PRINT, TokenKind.TYPE, TokenKind.LBRACE,
}


class Parser:
    def __init__(self, source: str, max_function_lines: Optional[int] = MAX_FUNCTION_LINES):
        self.lexer = Lexer(source)
        self.max_function_lines = max_function_lines
        # record literals (`Point { x: 1 }`) are off inside if/while/for headers
        self.allow_instance = True
        self.lookahead: Optional[Token] = None
        self.current_token = self.pull()

    # Token handling

    def pull(self) -> Token:
        try:
            return self.lexer.next_token()
        except LexError as e:
            return Token(TokenKind.ERROR, e.message, e.line, e.col)

    @property
    def current(self) -> Token:
        token = self.current_token
        if token.kind is TokenKind.ERROR:
            raise ParseError(ParseErrorKind.CUSTOM, token.value, token.line, token.col)
        return token

    def peek_next(self) -> Token:
        if self.lookahead is None:
            self.lookahead = self.pull()
        return self.lookahead

    def advance(self) -> Token:
        token = self.current
        if self.lookahead is not None:
            self.current_token = self.lookahead
            self.lookahead = None
        else:
            self.current_token = self.pull()
        return token

    def check(self, kind: TokenKind) -> bool:
        return self.current.kind is kind

    def match(self, kind: TokenKind) -> bool:
        if self.check(kind):
            self.advance()
            return True
        return False

    def expect(self, kind: TokenKind) -> Token:
        if self.check(kind):
            return self.advance()
        raise self.unexpected(describe_kind(kind))

    def expect_identifier(self, what: str) -> str:
        if self.check(TokenKind.IDENTIFIER):
            return self.advance().value
        raise self.unexpected(what)

    def unexpected(self, expected: str) -> ParseError:
        token = self.current
        kind = ParseErrorKind.UNEXPECTED_EOF if token.kind is TokenKind.EOF else ParseErrorKind.UNEXPECTED_TOKEN
        return ParseError(kind, f"expected {expected}, found {token.describe()}", token.line, token.col)

    def with_instances(self, allowed: bool, parse: Callable[[], T]) -> T:
        saved = self.allow_instance
        self.allow_instance = allowed
        try:
            return parse()
        finally:
            self.allow_instance = saved

    def end_statement(self) -> None:
        self.match(TokenKind.SEMICOLON)

    # Statements

    def parse(self) -> List[Stmt]:
        statements: List[Stmt] = []
        while not self.check(TokenKind.EOF):
            if self.match(TokenKind.SEMICOLON):
                continue
            statements.append(self.parse_statement())
        return statements

    def parse_statement(self) -> Stmt:
        kind = self.current.kind
        if kind is TokenKind.LET:
            return self.parse_let()
        if kind is TokenKind.CONST:
            return self.parse_const()
        if kind is TokenKind.FN and self.peek_next().kind is TokenKind.IDENTIFIER:
            return self.parse_function()
        if kind is TokenKind.RETURN:
            return self.parse_return()
        if kind is TokenKind.IF:
            return self.parse_if()
        if kind is TokenKind.WHILE:
            return self.parse_while()
        if kind is TokenKind.FOR:
            return self.parse_for()
        if kind is TokenKind.IMPORT:
            return self.parse_import()
        if kind is TokenKind.BREAK:
            self.advance()
            self.end_statement()
            return BreakStmt()
        if kind is TokenKind.CONTINUE:
            self.advance()
            self.end_statement()
            return ContinueStmt()
        if kind is TokenKind.PRINT:
            return self.parse_print()
        if kind is TokenKind.TYPE:
            return self.parse_type()
        if kind is TokenKind.LBRACE:
            return BlockStmt(self.parse_block())
        if kind in UNSUPPORTED_KEYWORDS:
            token = self.current
            raise ParseError(ParseErrorKind.CUSTOM, f"'{token.value}' is not supported yet", token.line, token.col)
        expr = self.parse_expression()
        self.end_statement()
        return ExprStmt(expr)

    def parse_annotation(self) -> None:
        # `: Type` is accepted and thrown away
        if self.match(TokenKind.COLON):
            self.match(TokenKind.IDENTIFIER)

    def parse_let(self) -> LetStmt:
        self.expect(TokenKind.LET)
        name = self.expect_identifier('a variable name')
        self.parse_annotation()
        self.expect(TokenKind.ASSIGN)
        expr = self.parse_expression()
        self.end_statement()
        return LetStmt(name, expr)

    def parse_const(self) -> ConstStmt:
        self.expect(TokenKind.CONST)
        name = self.expect_identifier('a constant name')
        self.parse_annotation()
        self.expect(TokenKind.ASSIGN)
        expr = self.parse_expression()
        self.end_statement()
        return ConstStmt(name, expr)

    def parse_params(self) -> List[str]:
        self.expect(TokenKind.LPAREN)
        params: List[str] = []
        while not self.check(TokenKind.RPAREN):
            params.append(self.expect_identifier('a parameter name'))
            if self.match(TokenKind.COMMA):
                continue
            if not self.check(TokenKind.RPAREN):
                raise self.unexpected("',' or ')'")
        self.expect(TokenKind.RPAREN)
        return params

    def parse_function(self) -> FunctionStmt:
        self.expect(TokenKind.FN)
        name = self.expect_identifier('a function name')
        params = self.parse_params()
        self.parse_annotation()
        open_brace = self.expect(TokenKind.LBRACE)
        body = self.parse_statements_until_rbrace()
        close_brace = self.expect(TokenKind.RBRACE)
        self.check_function_length(name, open_brace, close_brace)
        return FunctionStmt(name, params, body)

    def check_function_length(self, name: str, open_brace: Token, close_brace: Token) -> None:
        if self.max_function_lines is None:
            return
        span = close_brace.line - open_brace.line
        if span > self.max_function_lines:
            raise ParseError(
                ParseErrorKind.CUSTOM,
                f"function '{name}' exceeds {self.max_function_lines} lines ({span} lines)",
                open_brace.line,
                open_brace.col,
            )

    def parse_statements_until_rbrace(self) -> List[Stmt]:
        statements: List[Stmt] = []
        while not self.check(TokenKind.RBRACE) and not self.check(TokenKind.EOF):
            if self.match(TokenKind.SEMICOLON):
                continue
            statements.append(self.parse_statement())
        return statements

    def parse_block(self) -> List[Stmt]:
        def block() -> List[Stmt]:
            self.expect(TokenKind.LBRACE)
            statements = self.parse_statements_until_rbrace()
            self.expect(TokenKind.RBRACE)
            return statements
        return self.with_instances(True, block)

    def parse_condition(self) -> Expr:
        return self.with_instances(False, self.parse_expression)

    def parse_return(self) -> ReturnStmt:
        self.expect(TokenKind.RETURN)
        expr = None
        if self.current.kind not in (TokenKind.SEMICOLON, TokenKind.RBRACE, TokenKind.EOF):
            expr = self.parse_expression()
        self.end_statement()
        return ReturnStmt(expr)

    def parse_if(self) -> IfStmt:
        self.expect(TokenKind.IF)
        condition = self.parse_condition()
        then_branch = self.parse_block()
        else_branch = None
        if self.match(TokenKind.ELSE):
            if self.check(TokenKind.IF):
                else_branch = [self.parse_if()]
            else:
                else_branch = self.parse_block()
        return IfStmt(condition, then_branch, else_branch)

    def parse_while(self) -> WhileStmt:
        self.expect(TokenKind.WHILE)
        condition = self.parse_condition()
        body = self.parse_block()
        return WhileStmt(condition, body)

    def parse_for(self) -> ForStmt:
        self.expect(TokenKind.FOR)
        var = self.expect_identifier('a loop variable')
        self.expect(TokenKind.IN)
        start = self.parse_condition()
        self.expect(TokenKind.DOTDOT)
        end = self.parse_condition()
        body = self.parse_block()
        return ForStmt(var, start, end, body)

    def parse_import(self) -> ImportStmt:
        self.expect(TokenKind.IMPORT)
        path = self.expect(TokenKind.STRING).value
        self.end_statement()
        return ImportStmt(path)

    def parse_print(self) -> Stmt:
        self.expect(TokenKind.PRINT)
        exprs = [self.parse_expression()]
        while self.match(TokenKind.COMMA):
            exprs.append(self.parse_expression())
        self.end_statement()
        if len(exprs) == 1 and isinstance(exprs[0], TupleLit):
            # print(a, b) reads as print a, b
            return PrintArgsStmt(exprs[0].elements)
        if len(exprs) == 1:
            return PrintStmt(exprs[0])
        return PrintArgsStmt(exprs)

    def parse_type(self) -> TypeStmt:
        self.expect(TokenKind.TYPE)
        name = self.expect_identifier('a type name')
        self.expect(TokenKind.LBRACE)
        fields: List[Tuple[str, Expr]] = []
        methods: List[FunctionStmt] = []
        while not self.check(TokenKind.RBRACE):
            if self.match(TokenKind.COMMA) or self.match(TokenKind.SEMICOLON):
                continue
            if self.check(TokenKind.FN):
                methods.append(self.parse_function())
            elif self.check(TokenKind.IDENTIFIER):
                field_name = self.advance().value
                self.expect(TokenKind.COLON)
                fields.append((field_name, self.with_instances(True, self.parse_expression)))
            else:
                raise self.unexpected(f"a field or method in type '{name}'")
        self.expect(TokenKind.RBRACE)
        return TypeStmt(name, fields, methods)

    # Expressions

    def parse_expression(self) -> Expr:
        return self.parse_assignment()

    def parse_assignment(self) -> Expr:
        expr = self.parse_or()
        if self.check(TokenKind.ASSIGN):
            token = self.advance()
            value = self.parse_assignment()
            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            raise ParseError(ParseErrorKind.CUSTOM, 'invalid assignment target', token.line, token.col)
        return expr

    def parse_or(self) -> Expr:
        expr = self.parse_and()
        while self.match(TokenKind.OR):
            expr = Binary(expr, BinOp.OR, self.parse_and())
        return expr

    def parse_and(self) -> Expr:
        expr = self.parse_equality()
        while self.match(TokenKind.AND):
            expr = Binary(expr, BinOp.AND, self.parse_equality())
        return expr

    def parse_binary_level(self, ops, operand: Callable[[], Expr]) -> Expr:
        expr = operand()
        while self.current.kind in ops:
            op = ops[self.advance().kind]
            expr = Binary(expr, op, operand())
        return expr

    def parse_equality(self) -> Expr:
        return self.parse_binary_level(EQUALITY_OPS, self.parse_comparison)

    def parse_comparison(self) -> Expr:
        return self.parse_binary_level(COMPARISON_OPS, self.parse_additive)

    def parse_additive(self) -> Expr:
        return self.parse_binary_level(ADDITIVE_OPS, self.parse_multiplicative)

    def parse_multiplicative(self) -> Expr:
        return self.parse_binary_level(MULTIPLICATIVE_OPS, self.parse_power)

    def parse_power(self) -> Expr:
        expr = self.parse_unary()
        if self.match(TokenKind.CARET):
            return Binary(expr, BinOp.POW, self.parse_power())
        return expr

    def parse_unary(self) -> Expr:
        if self.match(TokenKind.MINUS):
            return Unary(UnOp.NEG, self.parse_unary())
        if self.match(TokenKind.BANG):
            return Unary(UnOp.NOT, self.parse_unary())
        return self.parse_postfix()

    def parse_postfix(self) -> Expr:
        expr = self.parse_primary()
        while True:
            if self.match(TokenKind.LPAREN):
                args = self.with_instances(True, lambda: self.parse_expression_list(TokenKind.RPAREN))
                self.expect(TokenKind.RPAREN)
                expr = Call(expr, args)
            elif self.match(TokenKind.DOT):
                expr = FieldAccess(expr, self.expect_identifier('a field or method name'))
            elif self.match(TokenKind.LBRACKET):
                index = self.with_instances(True, self.parse_expression)
                self.expect(TokenKind.RBRACKET)
                expr = Index(expr, index)
            else:
                return expr

    def parse_expression_list(self, closing: TokenKind) -> List[Expr]:
        items: List[Expr] = []
        while not self.check(closing):
            items.append(self.parse_expression())
            if not self.match(TokenKind.COMMA):
                break
        return items

    def parse_primary(self) -> Expr:
        token = self.current
        kind = token.kind
        if kind is TokenKind.NUMBER:
            self.advance()
            return NumberLit(token.value)
        if kind is TokenKind.STRING:
            self.advance()
            return StringLit(token.value)
        if kind in (TokenKind.TRUE, TokenKind.FALSE):
            self.advance()
            return BoolLit(token.value)
        if kind is TokenKind.IDENTIFIER:
            self.advance()
            if self.allow_instance and token.value[0].isupper() and self.check(TokenKind.LBRACE):
                return self.parse_instance(token.value)
            return Variable(token.value)
        if kind is TokenKind.LPAREN:
            return self.with_instances(True, self.parse_group)
        if kind is TokenKind.LBRACKET:
            self.advance()
            elements = self.with_instances(True, lambda: self.parse_expression_list(TokenKind.RBRACKET))
            self.expect(TokenKind.RBRACKET)
            return ListLit(elements)
        if kind is TokenKind.LBRACE:
            return self.with_instances(True, self.parse_brace_expression)
        if kind is TokenKind.FN:
            return self.with_instances(True, self.parse_lambda)
        raise self.unexpected('an expression')

    def parse_group(self) -> Expr:
        self.expect(TokenKind.LPAREN)
        expr = self.parse_expression()
        if self.check(TokenKind.COMMA):
            elements = [expr]
            while self.match(TokenKind.COMMA):
                elements.append(self.parse_expression())
            self.expect(TokenKind.RPAREN)
            return TupleLit(elements)
        self.expect(TokenKind.RPAREN)
        return expr

    def parse_instance(self, type_name: str) -> InstanceLit:
        def fields() -> List[Tuple[str, Expr]]:
            self.expect(TokenKind.LBRACE)
            items: List[Tuple[str, Expr]] = []
            while not self.check(TokenKind.RBRACE):
                name = self.expect_identifier('a field name')
                self.expect(TokenKind.COLON)
                items.append((name, self.parse_expression()))
                if not self.match(TokenKind.COMMA):
                    break
            self.expect(TokenKind.RBRACE)
            return items
        return InstanceLit(type_name, self.with_instances(True, fields))

    def starts_statement(self) -> bool:
        kind = self.current.kind
        if kind in STATEMENT_KEYWORDS:
            return True
        return kind is TokenKind.FN and self.peek_next().kind is TokenKind.IDENTIFIER

    def parse_brace_expression(self) -> Expr:
        """Parse `{` in expression position as a dict literal or a block."""
        self.expect(TokenKind.LBRACE)
        if self.match(TokenKind.RBRACE):
            return DictLit([])
        if self.starts_statement():
            statements = self.parse_statements_until_rbrace()
            self.expect(TokenKind.RBRACE)
            return BlockExpr(statements)
        first = self.parse_expression()
        if self.match(TokenKind.COLON):
            pairs = [(first, self.parse_expression())]
            while self.match(TokenKind.COMMA):
                if self.check(TokenKind.RBRACE):
                    break
                key = self.parse_expression()
                self.expect(TokenKind.COLON)
                pairs.append((key, self.parse_expression()))
            self.expect(TokenKind.RBRACE)
            return DictLit(pairs)
        self.end_statement()
        statements: List[Stmt] = [ExprStmt(first)]
        statements.extend(self.parse_statements_until_rbrace())
        self.expect(TokenKind.RBRACE)
        return BlockExpr(statements)

    def parse_lambda(self) -> Lambda:
        self.expect(TokenKind.FN)
        params = self.parse_params()
        self.parse_annotation()
        if self.check(TokenKind.LBRACE):
            def block() -> List[Stmt]:
                open_brace = self.expect(TokenKind.LBRACE)
                statements = self.parse_statements_until_rbrace()
                close_brace = self.expect(TokenKind.RBRACE)
                self.check_function_length('<lambda>', open_brace, close_brace)
                return statements
            body = self.with_instances(True, block)
        else:
            body = [self.parse_statement()]
        return Lambda(params, body)


def parse_program(source: str, max_function_lines: Optional[int] = MAX_FUNCTION_LINES) -> List[Stmt]:
    """Parse EDL source text into a list of statements.

    Raises `ParseError` on the first syntax (or lexical) error.
    `max_function_lines` bounds the number of lines between a
    function's or lambda's braces; pass None to disable the check.
    """
    return Parser(source, max_function_lines).parse()
