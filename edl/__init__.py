# EDL language package
# This package provides a lexer, parser and tree-walking interpreter for EDL.
from .errors import EdlError, LexError, ParseError, EdlRuntimeError
from .parser import parse_program
from .interpreter import Interpreter, run_program, run_file

__all__ = [
    'parse_program',
    'Interpreter',
    'run_program',
    'run_file',
    'EdlError',
    'LexError',
    'ParseError',
    'EdlRuntimeError',
]
