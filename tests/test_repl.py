import io

from edl.interpreter import Interpreter
from edl.repl import Repl


def session(*lines):
    stdin = io.StringIO(''.join(line + '\n' for line in lines))
    stdout = io.StringIO()
    repl = Repl(Interpreter(output=stdout), stdin=stdin, stdout=stdout)
    repl.use_rawinput = False
    repl.cmdloop(intro='')
    return repl, stdout.getvalue()


def test_results_are_echoed():
    _, out = session('1 + 2', 'let x = 5;', 'x * 2', '"text"')
    assert '3\n' in out
    assert '10\n' in out
    assert 'text\n' in out


def test_null_results_are_not_echoed():
    _, out = session('print "once";', 'fn f() { }', 'f()')
    assert out.count('once') == 1
    assert 'null' not in out


def test_state_is_shared_across_lines():
    _, out = session('fn sq(n) { return n * n; }', 'sq(9)')
    assert '81\n' in out


def test_errors_do_not_end_the_session():
    _, out = session('nope + 1', 'let = 2;', '40 + 2')
    assert "Error: NameError: undefined variable 'nope'" in out
    assert 'Error: ParseError at 1:5' in out
    assert '42\n' in out


def test_unfinished_input_continues():
    repl, out = session('fn add(a, b) {', '  return a + b;', '}', 'add(2, 3)')
    assert '... ' in out
    assert '5\n' in out
    assert repl.prompt == 'edl> '


def test_exit_command_stops_loop():
    _, out = session('exit', '1 + 1')
    assert '2\n' not in out
