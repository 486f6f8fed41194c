"""Interactive read-eval-print loop for EDL. Uses cmd as backend."""

import cmd
from typing import Callable, List, Optional

from .ast import Stmt
from .errors import EdlError, ParseError, ParseErrorKind
from .interpreter import Interpreter
from .parser import parse_program
from .types import NullVal, to_string


class Repl(cmd.Cmd):
    """EDL interpreter shell. One interpreter is shared by the whole session."""
    intro = "EDL interactive interpreter\nType 'exit' or press Ctrl-D to quit."
    prompt = "edl> "
    secondary_prompt = "... "  # used for line continuations
    _tmp_prompt = "edl> "

    def __init__(self, interpreter: Optional[Interpreter] = None,
                 parse: Callable[[str], List[Stmt]] = parse_program, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.interpreter = interpreter if interpreter is not None else Interpreter()
        self.parse = parse
        self._tmp_line = ""

    def default(self, line):
        """Parses and evaluates the input, echoing a non-null result."""
        source = self._tmp_line + line
        try:
            statements = self.parse(source)
        except ParseError as e:
            if e.kind is ParseErrorKind.UNEXPECTED_EOF:
                # input ended early: keep reading on a continuation prompt
                self._tmp_line = source + "\n"
                self.prompt = self.secondary_prompt
                return
            self.reset_input()
            self.report(e)
            return
        self.reset_input()
        result = None
        try:
            for stmt in statements:
                result = self.interpreter.eval_stmt(stmt)
        except EdlError as e:
            self.report(e)
            return
        if result is not None and not isinstance(result, NullVal):
            print(to_string(result), file=self.stdout)

    def reset_input(self):
        self._tmp_line = ""
        self.prompt = self._tmp_prompt

    def report(self, error: EdlError):
        print(f"Error: {error}", file=self.stdout)

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_help(self, arg):
        print("Type EDL statements or expressions, for example:\n"
              "  let x = 2 + 3;\n"
              "  print x * 2;\n"
              "Unfinished input continues on a '... ' prompt. 'exit' quits.", file=self.stdout)

    def do_EOF(self, arg):
        """Exits interpreter."""
        print(file=self.stdout)
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True

    def postloop(self):
        self.interpreter.close()


def run_repl(interpreter: Optional[Interpreter] = None,
             parse: Callable[[str], List[Stmt]] = parse_program):
    Repl(interpreter, parse).cmdloop()
