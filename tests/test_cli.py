import builtins
import json

import pytest

from edl.__main__ import main


def write(tmp_path, name, source):
    path = tmp_path / name
    path.write_text(source, encoding='utf-8')
    return path


def test_runs_program(tmp_path, capsys):
    program = write(tmp_path, 'hello.edl', 'print "hi", 1 + 1;')
    main([str(program)])
    assert capsys.readouterr().out == 'hi 2\n'


def test_runs_program_with_lark(tmp_path, capsys):
    program = write(tmp_path, 'hello.edl', 'let x = 2;\nprint x * 21;\n')
    main(['--lark', str(program)])
    assert capsys.readouterr().out == '42\n'


def test_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main([str(tmp_path / 'nope.edl')])
    assert exc.value.code == 1
    assert 'not found' in capsys.readouterr().err


def test_parse_error_exits(tmp_path, capsys):
    program = write(tmp_path, 'bad.edl', 'let = 3;')
    with pytest.raises(SystemExit) as exc:
        main([str(program)])
    assert exc.value.code == 1
    assert 'ParseError at 1:5' in capsys.readouterr().err


def test_runtime_error_exits(tmp_path, capsys):
    program = write(tmp_path, 'bad.edl', 'print 1;\nprint 1 / 0;')
    with pytest.raises(SystemExit) as exc:
        main([str(program)])
    assert exc.value.code == 1
    captured = capsys.readouterr()
    assert captured.out == '1\n'
    assert 'Runtime error: ZeroDivisionError: division by zero' in captured.err


def test_emit_and_run_ast(tmp_path, capsys):
    program = write(tmp_path, 'prog.edl', 'fn sq(x) { return x * x; }\nprint sq(7);')
    main(['--emit-ast', str(program)])
    out_path = tmp_path / 'prog.edl.ast.json'
    assert capsys.readouterr().out.strip() == str(out_path)
    data = json.loads(out_path.read_text(encoding='utf-8'))
    assert data['type'] == 'Program'
    main(['--ast', str(out_path)])
    assert capsys.readouterr().out == '49\n'


def test_function_length_options(tmp_path, capsys):
    program = write(tmp_path, 'long.edl', 'fn f() {\n1;\n2;\n3;\n}\nprint f();')
    with pytest.raises(SystemExit):
        main(['--max-fn-lines', '2', str(program)])
    assert 'exceeds 2 lines' in capsys.readouterr().err
    main(['--no-fn-length-check', str(program)])
    assert capsys.readouterr().out == '3\n'


def test_max_depth(tmp_path, capsys):
    program = write(tmp_path, 'deep.edl', 'fn down(n) { if n == 0 { return 0; } return down(n - 1); }\nprint down(30);')
    with pytest.raises(SystemExit):
        main(['--max-depth', '10', str(program)])
    assert 'StackOverflow' in capsys.readouterr().err
    main(['--max-depth', '100', str(program)])
    assert capsys.readouterr().out == '0\n'


def test_debug_file_written(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    program = write(tmp_path, 'prog.edl', 'let a = 1;')
    main(['-vv', str(program)])
    trace = (tmp_path / 'debug.txt').read_text(encoding='utf-8')
    assert 'let a = 1' in trace


def test_input_program(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(builtins, 'input', lambda prompt='': 'World')
    program = write(tmp_path, 'greet.edl', 'print "Hello, " ++ input() ++ "!";')
    main([str(program)])
    assert capsys.readouterr().out == 'Hello, World!\n'


def test_no_program_starts_repl(monkeypatch, capsys):
    lines = iter(['let a = 20;', 'a + 1', 'exit'])
    monkeypatch.setattr(builtins, 'input', lambda prompt='': next(lines))
    main([])
    assert '21' in capsys.readouterr().out.splitlines()
