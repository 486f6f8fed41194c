from pathlib import Path

import pytest

from edl.ast import ExprStmt, Lambda, Binary, BinOp, Variable, NumberLit, Assign
from edl.errors import ParseError, ParseErrorKind
from edl.grammar import parse_with_lark
from edl.interpreter import Interpreter
from edl.parser import parse_program

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


@pytest.mark.parametrize('path', sorted(EXAMPLES.glob('*.edl')), ids=lambda p: p.name)
def test_examples_parse_the_same_with_lark(path):
    source = path.read_text(encoding='utf-8')
    assert parse_with_lark(source) == parse_program(source)


@pytest.mark.parametrize('source', [
    'let a: Number = 1 + 2 * 3 ^ 2;',
    'a = b = -c;',
    'print "x" ++ 1, !true;',
    'print(1, 2);',
    'let d = {"k": [1, 2,], "t": (1, 2)};',
    'let v = { let a = 1; a };',
    'if a { 1; } else if b { 2; } else { 3; }',
    'for i in 0..n { continue; }',
    'while x < 3 { x = x + 1; break; }',
    'fn f(a, b): Number { return a.b(c)[0]; }',
    'type P { x: 0, fn get(self) { return self.x; } }',
    'let p = P { x: 1, };',
    'import "mod.edl"; { }',
    'let f = fn(x) { return x; };',
    'x == 1 || y != 2 && z >= 3;',
    'let s = "tab\\t \\"q\\"";',
])
def test_snippets_parse_the_same_with_lark(source):
    assert parse_with_lark(source) == parse_program(source)


def test_lambda_body_extends_to_the_right():
    assert parse_with_lark('fn(x) x + 1;') == [
        ExprStmt(Lambda(['x'], [ExprStmt(Binary(Variable('x'), BinOp.ADD, NumberLit(1.0)))])),
    ]


def test_trailing_expression_without_semicolon():
    assert parse_with_lark('a = 1') == [ExprStmt(Assign('a', NumberLit(1.0)))]


def test_invalid_assignment_target():
    with pytest.raises(ParseError) as exc:
        parse_with_lark('a.b = 1;')
    assert exc.value.message == 'invalid assignment target'


def test_unexpected_token():
    with pytest.raises(ParseError) as exc:
        parse_with_lark('let = 1;')
    assert exc.value.kind is ParseErrorKind.UNEXPECTED_TOKEN
    assert exc.value.line == 1


def test_unexpected_end_of_input():
    with pytest.raises(ParseError) as exc:
        parse_with_lark('fn f() {')
    assert exc.value.kind is ParseErrorKind.UNEXPECTED_EOF


def test_unknown_character():
    with pytest.raises(ParseError) as exc:
        parse_with_lark('let a = 1 @ 2;')
    assert exc.value.kind is ParseErrorKind.CUSTOM
    assert (exc.value.line, exc.value.col) == (1, 11)


def test_lowercase_record_literal_is_rejected():
    with pytest.raises(ParseError):
        parse_with_lark('let p = point { x: 1 };')


def test_function_length_limit():
    source = 'fn big() {\n' + 'let a = 1;\n' * 70 + '}\n'
    with pytest.raises(ParseError) as exc:
        parse_with_lark(source)
    assert "function 'big' exceeds 64 lines" in exc.value.message
    assert parse_with_lark(source, max_function_lines=None)[0].name == 'big'


def test_function_length_limit_applies_to_lambdas():
    source = 'let f = fn() {\n' + 'let a = 1;\n' * 5 + '};\n'
    assert parse_with_lark(source) == parse_program(source)
    with pytest.raises(ParseError) as exc:
        parse_with_lark(source, max_function_lines=3)
    assert "function '<lambda>' exceeds 3 lines (6 lines)" in exc.value.message
    assert (exc.value.line, exc.value.col) == (1, 14)


def test_number_too_large_for_a_float_is_an_error():
    with pytest.raises(ParseError) as exc:
        parse_with_lark('let n = ' + '9' * 400 + ';')
    assert exc.value.message == 'number literal out of range'
    assert (exc.value.line, exc.value.col) == (1, 9)


def test_lark_program_runs(capsys):
    source = (EXAMPLES / 'fib.edl').read_text(encoding='utf-8')
    Interpreter().run(parse_with_lark(source))
    assert capsys.readouterr().out.split()[-1] == '34'
