"""Tree-walking interpreter for the EDL language.

The interpreter owns the active `Environment` frame and a table of
built-in functions. Statements are executed by `execute()`, which returns
either a plain value or one of the control signals from `edl.errors`
(`ReturnSignal`, `BreakSignal`, `ContinueSignal`). Signals travel back up
through blocks until a function call (for return) or a loop (for break
and continue) takes them. Failures are raised as `EdlRuntimeError`.

The public entry points are `eval_stmt()` and `eval_expr()`; `run()`
executes a whole program.
"""

from __future__ import annotations

import builtins
import math
import sys
from contextlib import contextmanager
from typing import Any, Iterable, List, Optional, TextIO

from .ast import (
    BinOp, UnOp, Expr, Stmt,
    NumberLit, BoolLit, StringLit, Variable, Binary, Unary, Call, Assign,
    BlockExpr, Lambda, ListLit, DictLit, TupleLit, FieldAccess, Index,
    InstanceLit, InvalidExpr, ExprStmt, LetStmt, ConstStmt, FunctionStmt,
    ReturnStmt, IfStmt, WhileStmt, ForStmt, ImportStmt, BlockStmt, BreakStmt,
    ContinueStmt, PrintStmt, PrintArgsStmt, TypeStmt, InvalidStmt,
)
from .builtin_function import GLOBAL_BUILTINS, standard_builtins, to_index
from .environment import Environment
from .errors import (
    EdlRuntimeError, ReturnSignal, BreakSignal, ContinueSignal, CONTROL_SIGNALS,
)
from .parser import MAX_FUNCTION_LINES, parse_program
from .types import (
    NULL, FunctionVal, TypeVal, InstanceVal, ListVal,
    is_number, is_truthy, to_string, type_name, values_equal,
)

DEFAULT_MAX_CALL_DEPTH = 200
FRAMES_PER_CALL = 50

LIST_METHODS = ('push', 'remove', 'length', 'len')
STRING_METHODS = ('len', 'length', 'to_upper', 'to_lower')


class Interpreter:
    """Core interpreter that executes EDL statements."""
    def __init__(self, output: Optional[TextIO] = None, input_stream: Optional[TextIO] = None,
                 debug_level: int = 0, debug_file: str = 'debug.txt',
                 max_call_depth: int = DEFAULT_MAX_CALL_DEPTH):
        self.globals = Environment()
        self.env = self.globals
        self.output = output
        self.input_stream = input_stream
        self.max_call_depth = max_call_depth
        self.call_depth = 0
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w', encoding='utf-8') if debug_level > 0 else None
        self.builtins = standard_builtins()
        self.load_builtins()

    def load_builtins(self):
        for name in GLOBAL_BUILTINS:
            builtin = self.builtins[name]
            self.globals.set(name, FunctionVal(list(builtin.params), [], name=name, native=True))

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg, file=sys.stderr)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    # Console I/O

    def write(self, text: str):
        out = self.output if self.output is not None else sys.stdout
        out.write(text + '\n')

    def read_line(self) -> str:
        if self.input_stream is not None:
            return self.input_stream.readline().rstrip('\r\n')
        try:
            return builtins.input()
        except EOFError:
            return ''

    # Public API

    def run(self, statements: Iterable[Stmt]) -> Any:
        result = NULL
        for stmt in statements:
            result = self.eval_stmt(stmt)
        return result

    def eval_stmt(self, stmt: Stmt) -> Any:
        """Execute one top-level statement and return its value."""
        if self.debug_level >= 1:
            self.debug(f"exec {type(stmt).__name__}")
        with self.host_stack():
            result = self.execute(stmt)
        return self.reject_signal(result)

    def eval_expr(self, expr: Expr) -> Any:
        with self.host_stack():
            return self.evaluate(expr)

    @contextmanager
    def host_stack(self):
        # each EDL call nests several Python frames
        saved = sys.getrecursionlimit()
        sys.setrecursionlimit(max(saved, self.max_call_depth * FRAMES_PER_CALL))
        try:
            yield
        except RecursionError:
            raise EdlRuntimeError('StackOverflow', 'maximum recursion depth exceeded')
        finally:
            sys.setrecursionlimit(saved)

    def reject_signal(self, result: Any) -> Any:
        if isinstance(result, ReturnSignal):
            raise EdlRuntimeError('ControlFlowError', "'return' outside of a function")
        if isinstance(result, BreakSignal):
            raise EdlRuntimeError('ControlFlowError', "'break' outside of a loop")
        if isinstance(result, ContinueSignal):
            raise EdlRuntimeError('ControlFlowError', "'continue' outside of a loop")
        return result

    # Statements

    def execute_in(self, frame: Environment, statements: List[Stmt]) -> Any:
        """Run statements with `frame` as the active scope, then restore the previous one."""
        previous = self.env
        self.env = frame
        try:
            result = NULL
            for stmt in statements:
                result = self.execute(stmt)
                if isinstance(result, CONTROL_SIGNALS):
                    return result
            return result
        finally:
            self.env = previous

    def execute_block(self, statements: List[Stmt]) -> Any:
        return self.execute_in(Environment(parent=self.env), statements)

    def execute(self, stmt: Stmt) -> Any:
        if isinstance(stmt, ExprStmt):
            return self.evaluate(stmt.expr)
        if isinstance(stmt, LetStmt):
            value = self.evaluate(stmt.expr)
            self.env.set(stmt.name, value)
            if self.debug_level >= 2:
                self.debug(f"let {stmt.name} = {to_string(value)} (depth {self.env.depth()})")
            return NULL
        if isinstance(stmt, ConstStmt):
            value = self.evaluate(stmt.expr)
            self.env.declare_const(stmt.name, value)
            if self.debug_level >= 2:
                self.debug(f"const {stmt.name} = {to_string(value)}")
            return NULL
        if isinstance(stmt, FunctionStmt):
            self.env.set(stmt.name, FunctionVal(list(stmt.params), stmt.body, name=stmt.name, closure=self.env))
            if self.debug_level >= 2:
                self.debug(f"define function {stmt.name}({', '.join(stmt.params)})")
            return NULL
        if isinstance(stmt, ReturnStmt):
            value = self.evaluate(stmt.expr) if stmt.expr is not None else NULL
            return ReturnSignal(value)
        if isinstance(stmt, IfStmt):
            cond = self.evaluate(stmt.condition)
            truthy = is_truthy(cond)
            if self.debug_level >= 3:
                self.debug(f"if condition {to_string(cond)} -> {truthy}")
            if truthy:
                return self.execute_block(stmt.then_branch)
            if stmt.else_branch is not None:
                return self.execute_block(stmt.else_branch)
            return NULL
        if isinstance(stmt, WhileStmt):
            while is_truthy(self.evaluate(stmt.condition)):
                result = self.execute_block(stmt.body)
                if isinstance(result, BreakSignal):
                    break
                if isinstance(result, ReturnSignal):
                    return result
            return NULL
        if isinstance(stmt, ForStmt):
            return self.execute_for(stmt)
        if isinstance(stmt, ImportStmt):
            if self.debug_level >= 2:
                self.debug(f"import {stmt.path!r} ignored")
            return NULL
        if isinstance(stmt, BlockStmt):
            return self.execute_block(stmt.statements)
        if isinstance(stmt, BreakStmt):
            return BreakSignal()
        if isinstance(stmt, ContinueStmt):
            return ContinueSignal()
        if isinstance(stmt, PrintStmt):
            self.write(to_string(self.evaluate(stmt.expr)))
            return NULL
        if isinstance(stmt, PrintArgsStmt):
            values = [self.evaluate(e) for e in stmt.exprs]
            self.write(' '.join(to_string(v) for v in values))
            return NULL
        if isinstance(stmt, TypeStmt):
            return self.execute_type(stmt)
        if isinstance(stmt, InvalidStmt):
            raise EdlRuntimeError('SyntaxError', f"invalid statement: {stmt.text}")
        raise NotImplementedError(f"execute: unexpected node type {type(stmt)}")

    def execute_for(self, stmt: ForStmt) -> Any:
        start = self.evaluate(stmt.start)
        end = self.evaluate(stmt.end)
        for bound in (start, end):
            if not is_number(bound) or not math.isfinite(bound):
                raise EdlRuntimeError('TypeError', f"for range bounds must be finite numbers, got {type_name(bound)}")
        for i in range(int(start), int(end)):
            frame = Environment(parent=self.env)
            frame.set(stmt.var, float(i))
            result = self.execute_in(frame, stmt.body)
            if isinstance(result, BreakSignal):
                break
            if isinstance(result, ReturnSignal):
                return result
        return NULL

    def execute_type(self, stmt: TypeStmt) -> Any:
        fields = {}
        for name, expr in stmt.fields:
            fields[name] = self.evaluate(expr)
        methods = {}
        for method in stmt.methods:
            methods[method.name] = FunctionVal(list(method.params), method.body,
                                               name=f"{stmt.name}.{method.name}", closure=self.env)
        self.env.set(stmt.name, TypeVal(stmt.name, fields, methods))
        if self.debug_level >= 2:
            self.debug(f"define type {stmt.name} fields={list(fields)} methods={list(methods)}")
        return NULL

    # Expressions

    def evaluate(self, expr: Expr) -> Any:
        if isinstance(expr, NumberLit):
            return float(expr.value)
        if isinstance(expr, BoolLit):
            return bool(expr.value)
        if isinstance(expr, StringLit):
            return expr.value
        if isinstance(expr, Variable):
            value = self.env.get(expr.name)
            if value is None:
                raise EdlRuntimeError('NameError', f"undefined variable '{expr.name}'")
            return value
        if isinstance(expr, Assign):
            value = self.evaluate(expr.expr)
            if not self.env.assign(expr.name, value):
                raise EdlRuntimeError('NameError', f"undefined variable '{expr.name}'")
            return value
        if isinstance(expr, Unary):
            operand = self.evaluate(expr.expr)
            if expr.op is UnOp.NOT:
                return not is_truthy(operand)
            if not is_number(operand):
                raise EdlRuntimeError('TypeError', f"unary '-' expects a Number, got {type_name(operand)}")
            return -operand
        if isinstance(expr, Binary):
            left = self.evaluate(expr.left)
            right = self.evaluate(expr.right)
            return self.apply_binary_op(expr.op, left, right)
        if isinstance(expr, Call):
            func = self.evaluate(expr.function)
            args = [self.evaluate(arg) for arg in expr.arguments]
            return self.call_function(func, args)
        if isinstance(expr, BlockExpr):
            result = self.execute_block(expr.statements)
            if isinstance(result, CONTROL_SIGNALS):
                raise EdlRuntimeError('ControlFlowError', 'control flow statements cannot leave a block expression')
            return result
        if isinstance(expr, Lambda):
            return FunctionVal(list(expr.params), expr.body, closure=self.env)
        if isinstance(expr, (ListLit, TupleLit)):
            return ListVal([self.evaluate(e) for e in expr.elements])
        if isinstance(expr, DictLit):
            return self.evaluate_dict(expr)
        if isinstance(expr, FieldAccess):
            return self.get_member(self.evaluate(expr.object), expr.field)
        if isinstance(expr, Index):
            collection = self.evaluate(expr.collection)
            index = self.evaluate(expr.index)
            return self.get_index(collection, index)
        if isinstance(expr, InstanceLit):
            return self.instantiate(expr)
        if isinstance(expr, InvalidExpr):
            raise EdlRuntimeError('SyntaxError', f"invalid expression: {expr.text}")
        raise NotImplementedError(f"evaluate: unexpected node type {type(expr)}")

    def evaluate_dict(self, expr: DictLit) -> InstanceVal:
        fields = {}
        for key_expr, value_expr in expr.pairs:
            key = self.evaluate(key_expr)
            if not isinstance(key, str):
                raise EdlRuntimeError('TypeError', f"dict keys must be Strings, got {type_name(key)}")
            fields[key] = self.evaluate(value_expr)
        return InstanceVal(TypeVal('dict'), fields)

    def instantiate(self, expr: InstanceLit) -> InstanceVal:
        type_val = self.env.get(expr.type_name)
        if not isinstance(type_val, TypeVal):
            raise EdlRuntimeError('NameError', f"unknown type '{expr.type_name}'")
        fields = dict(type_val.fields)
        for name, field_expr in expr.fields:
            if name not in type_val.fields:
                raise EdlRuntimeError('ValueError', f"type '{type_val.name}' has no field '{name}'")
            fields[name] = self.evaluate(field_expr)
        return InstanceVal(type_val.snapshot(), fields)

    def get_member(self, target: Any, name: str) -> Any:
        if isinstance(target, InstanceVal):
            method = target.type.methods.get(name)
            if method is not None:
                params = method.params[1:] if method.params[:1] == ['self'] else method.params
                return FunctionVal(list(params), method.body, name=method.name,
                                   closure=method.closure, bound_self=target)
            if name in target.fields:
                return target.fields[name]
        elif isinstance(target, ListVal) and name in LIST_METHODS:
            return self.bound_builtin(f"list.{name}", target)
        elif isinstance(target, str) and name in STRING_METHODS:
            return self.bound_builtin(f"string.{name}", target)
        raise EdlRuntimeError('AttributeError', f"unknown field or method '{name}' on {type_name(target)}")

    def bound_builtin(self, name: str, receiver: Any) -> FunctionVal:
        builtin = self.builtins[name]
        return FunctionVal(list(builtin.params), [], name=name, native=True, bound_self=receiver)

    def get_index(self, collection: Any, index: Any) -> Any:
        if isinstance(collection, ListVal):
            return collection.items[to_index(index, len(collection.items))]
        if isinstance(collection, str):
            return collection[to_index(index, len(collection), 'string')]
        if isinstance(collection, InstanceVal):
            if not isinstance(index, str):
                raise EdlRuntimeError('TypeError', f"{type_name(collection)} keys must be Strings, got {type_name(index)}")
            if index not in collection.fields:
                raise EdlRuntimeError('AttributeError', f"unknown field '{index}' on {type_name(collection)}")
            return collection.fields[index]
        raise EdlRuntimeError('TypeError', f"cannot index a value of type {type_name(collection)}")

    def call_function(self, func: Any, args: List[Any]) -> Any:
        if not isinstance(func, FunctionVal):
            raise EdlRuntimeError('TypeError', f"cannot call a value of type {type_name(func)}")
        if len(args) != len(func.params):
            raise EdlRuntimeError(
                'ArityError',
                f"argument count mismatch: {func.name} expects {len(func.params)} argument(s), got {len(args)}",
            )
        if self.debug_level >= 3:
            self.debug(f"call {func.name}({', '.join(to_string(a) for a in args)})")
        if func.native:
            builtin = self.builtins.get(func.name)
            if builtin is None:
                raise EdlRuntimeError('NameError', f"unknown builtin '{func.name}'")
            if func.bound_self is not None:
                args = [func.bound_self] + args
            return builtin.fn(self, args)
        if self.call_depth >= self.max_call_depth:
            raise EdlRuntimeError('StackOverflow', f"maximum call depth of {self.max_call_depth} exceeded")
        frame = Environment(parent=func.closure if func.closure is not None else self.globals)
        if func.bound_self is not None:
            frame.set('self', func.bound_self)
        for param, arg in zip(func.params, args):
            frame.set(param, arg)
        self.call_depth += 1
        try:
            result = self.execute_in(frame, func.body)
        finally:
            self.call_depth -= 1
        if isinstance(result, ReturnSignal):
            return result.value
        if isinstance(result, (BreakSignal, ContinueSignal)):
            return self.reject_signal(result)
        return result

    def apply_binary_op(self, op: BinOp, a: Any, b: Any) -> Any:
        if op is BinOp.EQ:
            return values_equal(a, b)
        if op is BinOp.NEQ:
            return not values_equal(a, b)
        if op in (BinOp.AND, BinOp.OR):
            if not (isinstance(a, bool) and isinstance(b, bool)):
                raise EdlRuntimeError(
                    'TypeError', f"'{op.value}' expects Bool operands, got {type_name(a)} and {type_name(b)}")
            return (a and b) if op is BinOp.AND else (a or b)
        if op is BinOp.CONCAT:
            return to_string(a) + to_string(b)
        if op is BinOp.ADD:
            if is_number(a) and is_number(b):
                return a + b
            if isinstance(a, str) and isinstance(b, str):
                return a + b
            raise EdlRuntimeError('TypeError', f"cannot add {type_name(a)} and {type_name(b)}")
        if not (is_number(a) and is_number(b)):
            raise EdlRuntimeError(
                'TypeError', f"'{op.value}' expects Number operands, got {type_name(a)} and {type_name(b)}")
        if op is BinOp.SUB:
            return a - b
        if op is BinOp.MUL:
            return a * b
        if op is BinOp.DIV:
            if b == 0.0:
                raise EdlRuntimeError('ZeroDivisionError', 'division by zero')
            return a / b
        if op is BinOp.MOD:
            if b == 0.0:
                raise EdlRuntimeError('ZeroDivisionError', 'modulo by zero')
            return math.fmod(a, b)
        if op is BinOp.POW:
            return self.power(a, b)
        if op is BinOp.LT:
            return a < b
        if op is BinOp.LTE:
            return a <= b
        if op is BinOp.GT:
            return a > b
        if op is BinOp.GTE:
            return a >= b
        raise EdlRuntimeError('TypeError', f"unknown operator {op.value}")

    def power(self, a: float, b: float) -> float:
        try:
            result = a ** b
        except ZeroDivisionError:
            raise EdlRuntimeError('ZeroDivisionError', 'zero cannot be raised to a negative power')
        except OverflowError:
            raise EdlRuntimeError('OverflowError', f"{to_string(a)} ^ {to_string(b)} is too large")
        if isinstance(result, complex):
            raise EdlRuntimeError('ValueError', f"{to_string(a)} ^ {to_string(b)} is not a real number")
        return float(result)


def run_program(source: str, max_function_lines: Optional[int] = MAX_FUNCTION_LINES, **options) -> Any:
    """Parse and run EDL source text, returning the last statement's value."""
    statements = parse_program(source, max_function_lines)
    interpreter = Interpreter(**options)
    try:
        return interpreter.run(statements)
    finally:
        interpreter.close()


def run_file(file_path: str, **options) -> Any:
    """Run an EDL source file."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    return run_program(source, **options)
