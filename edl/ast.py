"""Abstract Syntax Tree (AST) definitions for the EDL language.

The AST is pure data: a closed set of expression and statement node
classes plus the binary and unary operator enumerations. Each child node
is owned by exactly one parent, so the tree is never cyclic. Node
equality is structural (dataclass equality), which the interpreter relies
on when comparing function values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class BinOp(Enum):
    ADD = '+'
    SUB = '-'
    MUL = '*'
    DIV = '/'
    POW = '^'
    MOD = '%'
    EQ = '=='
    NEQ = '!='
    LT = '<'
    LTE = '<='
    GT = '>'
    GTE = '>='
    AND = '&&'
    OR = '||'
    CONCAT = '++'


class UnOp(Enum):
    NEG = '-'
    NOT = '!'


@dataclass
class Node:
    """Base class for all AST nodes."""
    pass


@dataclass
class Expr(Node):
    pass


@dataclass
class Stmt(Node):
    pass


# Expressions

@dataclass
class NumberLit(Expr):
    value: float


@dataclass
class BoolLit(Expr):
    value: bool


@dataclass
class StringLit(Expr):
    value: str


@dataclass
class Variable(Expr):
    name: str


@dataclass
class Binary(Expr):
    left: Expr
    op: BinOp
    right: Expr


@dataclass
class Unary(Expr):
    op: UnOp
    expr: Expr


@dataclass
class Call(Expr):
    function: Expr
    arguments: List[Expr]


@dataclass
class Assign(Expr):
    name: str
    expr: Expr


@dataclass
class BlockExpr(Expr):
    statements: List[Stmt]


@dataclass
class Lambda(Expr):
    params: List[str]
    body: List[Stmt]


@dataclass
class ListLit(Expr):
    elements: List[Expr]


@dataclass
class DictLit(Expr):
    pairs: List[Tuple[Expr, Expr]]


@dataclass
class TupleLit(Expr):
    elements: List[Expr]


@dataclass
class FieldAccess(Expr):
    object: Expr
    field: str


@dataclass
class Index(Expr):
    collection: Expr
    index: Expr


@dataclass
class InstanceLit(Expr):
    type_name: str
    fields: List[Tuple[str, Expr]]


@dataclass
class InvalidExpr(Expr):
    text: str


# Statements

@dataclass
class ExprStmt(Stmt):
    expr: Expr


@dataclass
class LetStmt(Stmt):
    name: str
    expr: Expr


@dataclass
class ConstStmt(Stmt):
    name: str
    expr: Expr


@dataclass
class FunctionStmt(Stmt):
    name: str
    params: List[str]
    body: List[Stmt]


@dataclass
class ReturnStmt(Stmt):
    expr: Optional[Expr] = None


@dataclass
class IfStmt(Stmt):
    condition: Expr
    then_branch: List[Stmt]
    else_branch: Optional[List[Stmt]] = None


@dataclass
class WhileStmt(Stmt):
    condition: Expr
    body: List[Stmt]


@dataclass
class ForStmt(Stmt):
    var: str
    start: Expr
    end: Expr
    body: List[Stmt]


@dataclass
class ImportStmt(Stmt):
    path: str


@dataclass
class BlockStmt(Stmt):
    statements: List[Stmt]


@dataclass
class BreakStmt(Stmt):
    pass


@dataclass
class ContinueStmt(Stmt):
    pass


@dataclass
class PrintStmt(Stmt):
    expr: Expr


@dataclass
class PrintArgsStmt(Stmt):
    exprs: List[Expr]


@dataclass
class TypeStmt(Stmt):
    name: str
    fields: List[Tuple[str, Expr]] = field(default_factory=list)
    methods: List[FunctionStmt] = field(default_factory=list)


@dataclass
class InvalidStmt(Stmt):
    text: str
