from enum import Enum
from typing import Any


class EdlError(Exception):
    """Base exception for every user-facing EDL failure."""
    def __init__(self, name: str, message: str):
        super().__init__(f"{name}: {message}")
        self.name = name
        self.message = message


class LexError(EdlError):
    def __init__(self, message: str, line: int, col: int):
        super().__init__('LexError', message)
        self.line = line
        self.col = col

    def __str__(self) -> str:
        return f"LexError at {self.line}:{self.col}: {self.message}"


class ParseErrorKind(Enum):
    UNEXPECTED_TOKEN = 'UnexpectedToken'
    UNEXPECTED_EOF = 'UnexpectedEof'
    CUSTOM = 'Custom'


class ParseError(EdlError):
    def __init__(self, kind: ParseErrorKind, message: str, line: int, col: int):
        super().__init__('ParseError', message)
        self.kind = kind
        self.line = line
        self.col = col

    def __str__(self) -> str:
        return f"ParseError at {self.line}:{self.col}: {self.message}"


class EdlRuntimeError(EdlError):
    """Raised when evaluation of a statement fails."""


class ReturnSignal:
    """Outcome of a `return` statement, intercepted by the enclosing call."""
    def __init__(self, value: Any):
        self.value = value

    def __repr__(self) -> str:
        return f"ReturnSignal({self.value!r})"


class BreakSignal:
    """Outcome of a `break` statement, intercepted by the enclosing loop."""
    def __repr__(self) -> str:
        return 'BreakSignal()'


class ContinueSignal:
    """Outcome of a `continue` statement, intercepted by the enclosing loop."""
    def __repr__(self) -> str:
        return 'ContinueSignal()'


CONTROL_SIGNALS = (ReturnSignal, BreakSignal, ContinueSignal)
