"""CLI entry point for the EDL interpreter.

Usage:
    python -m edl [-v|-vv|-vvv] <program_file>
    python -m edl [-v...] --emit-ast <program_file>
    python -m edl [-v...] --ast <ast_json_file>
    python -m edl                      (interactive session)

Options:
  -v                    Increase debug verbosity (can be repeated)
  --emit-ast            Parse the given .edl file and emit an AST JSON file
  --ast                 Execute a previously emitted AST JSON file
  --lark                Parse with the lark grammar instead of the built-in parser
  --max-fn-lines N      Longest allowed function body, in lines (default 64)
  --no-fn-length-check  Disable the function length check
  --max-depth N         Maximum call depth before a StackOverflow error

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero.
"""

import argparse
import json
import sys
from functools import partial
from pathlib import Path
from typing import List, Optional

from .ast_json import program_from_obj, program_to_obj
from .errors import EdlError
from .grammar import parse_with_lark
from .interpreter import DEFAULT_MAX_CALL_DEPTH, Interpreter
from .parser import MAX_FUNCTION_LINES, parse_program
from .repl import run_repl


def read_source(path: Path) -> str:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def execute(interpreter: Interpreter, statements) -> None:
    try:
        interpreter.run(statements)
    except EdlError as e:
        print(f"Runtime error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        interpreter.close()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog='edl', description="EDL language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--lark', action='store_true', help='parse with the lark grammar')
    length = parser.add_mutually_exclusive_group()
    length.add_argument('--max-fn-lines', type=int, default=MAX_FUNCTION_LINES, metavar='N',
                        help='maximum number of lines in a function body (default: %(default)s)')
    length.add_argument('--no-fn-length-check', action='store_true', help='do not limit function length')
    parser.add_argument('--max-depth', type=int, default=DEFAULT_MAX_CALL_DEPTH, metavar='N',
                        help='maximum function call depth (default: %(default)s)')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='EDL_FILE', help='emit AST JSON for the given .edl file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('program', nargs='?', help='EDL program file (.edl) to execute')
    args = parser.parse_args(argv)

    max_lines = None if args.no_fn_length_check else args.max_fn_lines
    parse = partial(parse_with_lark if args.lark else parse_program, max_function_lines=max_lines)

    def new_interpreter() -> Interpreter:
        return Interpreter(debug_level=args.v, max_call_depth=args.max_depth)

    # Emit AST mode
    if args.emit_ast:
        program_file = Path(args.emit_ast)
        source = read_source(program_file)
        try:
            statements = parse(source)
        except EdlError as e:
            print(f"{program_file}: {e}", file=sys.stderr)
            sys.exit(1)
        out_path = program_file.with_name(program_file.name + '.ast.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(program_to_obj(statements), out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    # Execute from AST JSON
    if args.ast:
        ast_path = Path(args.ast)
        data = json.loads(read_source(ast_path))
        try:
            statements = program_from_obj(data)
        except (TypeError, ValueError, KeyError) as e:
            print(f"Error: {ast_path} is not a valid AST file ({e})", file=sys.stderr)
            sys.exit(1)
        execute(new_interpreter(), statements)
        return

    # No program: interactive session
    if not args.program:
        run_repl(new_interpreter(), parse)
        return

    program_file = Path(args.program)
    source = read_source(program_file)
    try:
        statements = parse(source)
    except EdlError as e:
        print(f"{program_file}: {e}", file=sys.stderr)
        sys.exit(1)
    execute(new_interpreter(), statements)


if __name__ == '__main__':
    main()
