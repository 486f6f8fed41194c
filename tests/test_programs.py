import builtins
from pathlib import Path

from edl.parser import parse_program
from edl.interpreter import Interpreter

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def run_example(name):
    with open(EXAMPLES / name, 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    interp.run(ast)


def test_program_hello(capsys):
    run_example('hello.edl')
    out = capsys.readouterr().out.strip()
    assert out == 'Hello World!!'


def test_program_fib(capsys):
    run_example('fib.edl')
    out = capsys.readouterr().out.split()
    assert out == ['0', '1', '1', '2', '3', '5', '8', '13', '21', '34']


def test_program_closures(capsys):
    run_example('closures.edl')
    out = capsys.readouterr().out.splitlines()
    assert out == ['count = 3', '21']


def test_program_types(capsys):
    run_example('types.edl')
    out = capsys.readouterr().out.splitlines()
    assert out == [
        'Point { x: 3, y: 4 }',
        '7',
        '6 8',
        'Point { x: 0, y: 0 }',
    ]


def test_program_lists(capsys):
    run_example('lists.edl')
    out = capsys.readouterr().out.splitlines()
    assert out == [
        '[1, 2, 3, 4]',
        '4',
        '[2, 3, 4]',
        '3',
        '10',
        '["a", "b"]',
        'total: 9',
    ]


def test_program_control(capsys):
    run_example('control.edl')
    out = capsys.readouterr().out.splitlines()
    assert out == ['1', '3', '5', '7', 'negative zero positive', 'EDL has 3 letters']


def test_program_sum_input(monkeypatch, capsys):
    monkeypatch.setattr(builtins, 'input', lambda prompt='': '5')
    run_example('sum_input.edl')
    out = capsys.readouterr().out.strip()
    assert out == 'enter a number:\nsum(1..5) = 15'


def test_program_sum_input_zero(monkeypatch, capsys):
    monkeypatch.setattr(builtins, 'input', lambda prompt='': '0')
    run_example('sum_input.edl')
    out = capsys.readouterr().out.strip()
    assert out.endswith('sum(1..0) = 0')


def test_program_values(capsys):
    run_example('values.edl')
    out = capsys.readouterr().out.splitlines()
    assert out == ['demo', '3', '20', '512', '1 -1', 'true', '2.5']
