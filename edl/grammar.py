"""Alternative EDL front end built on lark.

The hand-written `edl.parser` is the reference front end. This module
describes the same language as a lark grammar and transforms the parse
tree into the very same AST classes, so either front end can feed the
interpreter. The grammar is run by lark's Earley parser; the few places
where the language is ambiguous on paper (a `{` at statement start, a
lambda whose body is a block) are settled with rule priorities.

Differences from the hand-written parser:

* simple statements (`let`, `print`, `return`, expression statements and
  so on) must end with `;`, except for a final expression directly before
  a closing `}` or the end of input;
* a lambda body is a `{...}` block or a single expression, and a lambda
  sits at the lowest precedence level: its body extends as far right as
  possible, so an immediate call needs parentheses around the lambda.

Errors reported by lark are re-raised as `ParseError`.
"""

from __future__ import annotations

import math
from typing import Any, List, Optional

from lark import Lark, Transformer, v_args
from lark.exceptions import (
    UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken, VisitError,
)

from .ast import (
    BinOp, UnOp, Expr, Stmt,
    NumberLit, BoolLit, StringLit, Variable, Binary, Unary, Call, Assign,
    BlockExpr, Lambda, ListLit, DictLit, TupleLit, FieldAccess, Index,
    InstanceLit, ExprStmt, LetStmt, ConstStmt, FunctionStmt, ReturnStmt,
    IfStmt, WhileStmt, ForStmt, ImportStmt, BlockStmt, BreakStmt,
    ContinueStmt, PrintStmt, PrintArgsStmt, TypeStmt,
)
from .errors import ParseError, ParseErrorKind
from .lexer import unescape_char
from .parser import MAX_FUNCTION_LINES


EDL_GRAMMAR = r"""
    start: _item* expr?

    _item: statement
         | ";"

    ?statement: let_stmt
              | const_stmt
              | fn_stmt
              | return_stmt
              | if_stmt
              | while_stmt
              | for_stmt
              | import_stmt
              | break_stmt
              | continue_stmt
              | print_stmt
              | type_stmt
              | block_stmt
              | expr_stmt

    let_stmt: "let" NAME annotation? "=" expr ";"
    const_stmt: "const" NAME annotation? "=" expr ";"
    annotation: ":" NAME?

    fn_stmt: "fn" NAME params annotation? fn_body
    fn_body: "{" _item* expr? "}"
    params: "(" (NAME ("," NAME)* ","?)? ")"

    return_stmt: "return" expr? ";"
    if_stmt: "if" expr body ("else" (if_stmt | body))?
    while_stmt: "while" expr body
    for_stmt: "for" NAME "in" expr ".." expr body
    import_stmt: "import" STRING ";"
    break_stmt: "break" ";"
    continue_stmt: "continue" ";"
    print_stmt: "print" expr ("," expr)* ";"
    type_stmt: "type" NAME "{" (field_def | fn_stmt | "," | ";")* "}"
    field_def: NAME ":" expr
    block_stmt.2: body
    expr_stmt: expr ";"

    body: "{" _item* expr? "}"

    // Expressions, lowest precedence first
    ?expr: assignment
         | "fn" params annotation? (lambda_block | expr) -> lambda_

    ?assignment: postfix "=" expr -> assign
               | or_expr

    ?or_expr: or_expr "||" and_expr -> or_
            | and_expr

    ?and_expr: and_expr "&&" equality -> and_
             | equality

    ?equality: equality "==" comparison -> eq
             | equality "!=" comparison -> neq
             | comparison

    ?comparison: comparison "<" sum -> lt
               | comparison "<=" sum -> lte
               | comparison ">" sum -> gt
               | comparison ">=" sum -> gte
               | sum

    ?sum: sum "+" product -> add
        | sum "-" product -> sub
        | sum "++" product -> concat
        | product

    ?product: product "*" power -> mul
            | product "/" power -> div
            | product "%" power -> mod
            | power

    ?power: unary "^" power -> pow
          | unary

    ?unary: "-" unary -> neg
          | "!" unary -> not_
          | postfix

    ?postfix: postfix "(" _args? ")" -> call
            | postfix "." NAME -> field
            | postfix "[" expr "]" -> index
            | primary

    _args: expr ("," expr)* ","?

    ?primary: NUMBER -> number
            | STRING -> string
            | "true" -> true
            | "false" -> false
            | NAME -> var
            | "(" expr ")"
            | "(" expr ("," expr)+ ")" -> tuple
            | "[" _args? "]" -> list
            | "{" (pair ("," pair)* ","?)? "}" -> dict
            | NAME "{" (field_init ("," field_init)* ","?)? "}" -> instance
            | "{" _item+ expr? "}" -> block_expr
            | "{" expr "}" -> block_expr

    lambda_block.2: body
    pair: expr ":" expr
    field_init: NAME ":" expr

    NAME: /(?!(?:struct|enum|match|as|pub|mod|yield)\b)[A-Za-z_][A-Za-z0-9_]*/
    NUMBER: /\d+(\.\d+)?/
    STRING: /"(\\.|[^"\\])*"/

    COMMENT: /(\/\/|#)[^\n]*/
    %ignore COMMENT
    %import common.WS
    %ignore WS
"""


EDL_PARSER = Lark(
    EDL_GRAMMAR,
    parser='earley',
    lexer='basic',
    ambiguity='resolve',
    propagate_positions=True,
)


class Annotation:
    """Placeholder produced for a discarded `: Type` annotation."""


ANNOTATION = Annotation()


def _strip(items) -> List[Any]:
    return [item for item in items if item is not ANNOTATION]


def _statements(items) -> List[Stmt]:
    # a trailing expression without ';' becomes an expression statement
    return [ExprStmt(item) if isinstance(item, Expr) else item for item in _strip(items)]


def _unquote(token: str) -> str:
    chars: List[str] = []
    body = token[1:-1]
    i = 0
    while i < len(body):
        if body[i] == '\\' and i + 1 < len(body):
            chars.append(unescape_char(body[i + 1]))
            i += 2
        else:
            chars.append(body[i])
            i += 1
    return ''.join(chars)


def _binary(op: BinOp):
    def build(self, items):
        left, right = items
        return Binary(left, op, right)
    return build


class ASTTransformer(Transformer):
    """Transforms the lark parse tree into EDL AST nodes."""

    def __init__(self, max_function_lines: Optional[int] = MAX_FUNCTION_LINES):
        super().__init__()
        self.max_function_lines = max_function_lines

    def start(self, items):
        return _statements(items)

    def annotation(self, items):
        return ANNOTATION

    # Statements

    def let_stmt(self, items):
        name, expr = _strip(items)
        return LetStmt(str(name), expr)

    def const_stmt(self, items):
        name, expr = _strip(items)
        return ConstStmt(str(name), expr)

    def params(self, items):
        return [str(item) for item in items]

    @v_args(meta=True)
    def fn_body(self, meta, items):
        return _statements(items), meta

    def fn_stmt(self, items):
        name, params, (body, meta) = _strip(items)
        name = str(name)
        self.check_function_length(name, meta)
        return FunctionStmt(name, params, body)

    def check_function_length(self, name: str, meta) -> None:
        if self.max_function_lines is None or meta.empty:
            return
        span = meta.end_line - meta.line
        if span > self.max_function_lines:
            raise ParseError(
                ParseErrorKind.CUSTOM,
                f"function '{name}' exceeds {self.max_function_lines} lines ({span} lines)",
                meta.line,
                meta.column,
            )

    def return_stmt(self, items):
        return ReturnStmt(items[0] if items else None)

    def if_stmt(self, items):
        condition, then_branch = items[0], items[1]
        else_branch = None
        if len(items) > 2:
            other = items[2]
            else_branch = [other] if isinstance(other, IfStmt) else other
        return IfStmt(condition, then_branch, else_branch)

    def while_stmt(self, items):
        condition, body = items
        return WhileStmt(condition, body)

    def for_stmt(self, items):
        var, start, end, body = items
        return ForStmt(str(var), start, end, body)

    def import_stmt(self, items):
        return ImportStmt(_unquote(items[0]))

    def break_stmt(self, items):
        return BreakStmt()

    def continue_stmt(self, items):
        return ContinueStmt()

    def print_stmt(self, items):
        exprs = list(items)
        if len(exprs) == 1 and isinstance(exprs[0], TupleLit):
            return PrintArgsStmt(exprs[0].elements)
        if len(exprs) == 1:
            return PrintStmt(exprs[0])
        return PrintArgsStmt(exprs)

    def field_def(self, items):
        name, expr = items
        return (str(name), expr)

    def type_stmt(self, items):
        name = str(items[0])
        fields = [item for item in items[1:] if isinstance(item, tuple)]
        methods = [item for item in items[1:] if isinstance(item, FunctionStmt)]
        return TypeStmt(name, fields, methods)

    def block_stmt(self, items):
        return BlockStmt(items[0])

    def expr_stmt(self, items):
        return ExprStmt(items[0])

    def body(self, items):
        return _statements(items)

    # Expressions

    @v_args(meta=True)
    def assign(self, meta, items):
        target, value = items
        if not isinstance(target, Variable):
            raise ParseError(ParseErrorKind.CUSTOM, 'invalid assignment target', meta.line, meta.column)
        return Assign(target.name, value)

    or_ = _binary(BinOp.OR)
    and_ = _binary(BinOp.AND)
    eq = _binary(BinOp.EQ)
    neq = _binary(BinOp.NEQ)
    lt = _binary(BinOp.LT)
    lte = _binary(BinOp.LTE)
    gt = _binary(BinOp.GT)
    gte = _binary(BinOp.GTE)
    add = _binary(BinOp.ADD)
    sub = _binary(BinOp.SUB)
    concat = _binary(BinOp.CONCAT)
    mul = _binary(BinOp.MUL)
    div = _binary(BinOp.DIV)
    mod = _binary(BinOp.MOD)
    pow = _binary(BinOp.POW)

    def neg(self, items):
        return Unary(UnOp.NEG, items[0])

    def not_(self, items):
        return Unary(UnOp.NOT, items[0])

    def call(self, items):
        return Call(items[0], list(items[1:]))

    def field(self, items):
        target, name = items
        return FieldAccess(target, str(name))

    def index(self, items):
        collection, index = items
        return Index(collection, index)

    def number(self, items):
        token = items[0]
        value = float(token)
        if math.isinf(value):
            raise ParseError(ParseErrorKind.CUSTOM, "number literal out of range", token.line, token.column)
        return NumberLit(value)

    def string(self, items):
        return StringLit(_unquote(items[0]))

    def true(self, items):
        return BoolLit(True)

    def false(self, items):
        return BoolLit(False)

    def var(self, items):
        return Variable(str(items[0]))

    def tuple(self, items):
        return TupleLit(list(items))

    def list(self, items):
        return ListLit(list(items))

    def pair(self, items):
        key, value = items
        return (key, value)

    def dict(self, items):
        return DictLit(list(items))

    def field_init(self, items):
        name, expr = items
        return (str(name), expr)

    @v_args(meta=True)
    def instance(self, meta, items):
        type_name = str(items[0])
        if not type_name[0].isupper():
            raise ParseError(
                ParseErrorKind.CUSTOM,
                f"record literal needs a type name starting with an upper-case letter, got '{type_name}'",
                meta.line,
                meta.column,
            )
        return InstanceLit(type_name, list(items[1:]))

    def block_expr(self, items):
        return BlockExpr(_statements(items))

    @v_args(meta=True)
    def lambda_block(self, meta, items):
        self.check_function_length('<lambda>', meta)
        return items[0]

    def lambda_(self, items):
        params, body = _strip(items)
        if isinstance(body, Expr):
            body = [ExprStmt(body)]
        return Lambda(params, body)


def _end_position(source: str):
    lines = source.split('\n')
    return len(lines), len(lines[-1]) + 1


def parse_with_lark(source: str, max_function_lines: Optional[int] = MAX_FUNCTION_LINES) -> List[Stmt]:
    """Parse EDL source with the lark grammar.

    Produces the same AST as `edl.parser.parse_program`. Syntax errors are
    raised as `ParseError`.
    """
    try:
        tree = EDL_PARSER.parse(source)
    except UnexpectedEOF:
        line, col = _end_position(source)
        raise ParseError(ParseErrorKind.UNEXPECTED_EOF, 'unexpected end of input', line, col)
    except UnexpectedToken as e:
        if e.token.type == '$END':
            line, col = _end_position(source)
            raise ParseError(ParseErrorKind.UNEXPECTED_EOF, 'unexpected end of input', line, col)
        expected = ', '.join(sorted(e.expected))
        raise ParseError(
            ParseErrorKind.UNEXPECTED_TOKEN,
            f"unexpected '{e.token}' (expected one of: {expected})",
            e.line,
            e.column,
        )
    except UnexpectedCharacters as e:
        raise ParseError(
            ParseErrorKind.CUSTOM, f"unexpected character {source[e.pos_in_stream]!r}", e.line, e.column)
    except UnexpectedInput as e:
        raise ParseError(ParseErrorKind.CUSTOM, str(e), e.line, e.column)
    try:
        return ASTTransformer(max_function_lines).transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, ParseError):
            raise e.orig_exc
        raise
