"""Native functions available to EDL programs.

Every built-in is a `BuiltinFunction` record keyed by name in the table
returned by `standard_builtins()`. The interpreter binds each global
built-in as an empty-bodied `FunctionVal` and, at call time, looks the
handler up in the table by name. Methods on lists and strings
(`xs.push(1)`, `s.to_upper()`) use the same table under dotted names.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, TYPE_CHECKING

from .errors import EdlRuntimeError
from .types import ListVal, is_number, to_string, type_name

if TYPE_CHECKING:
    from .interpreter import Interpreter

NUMBER_TEXT = re.compile(r'[+-]?(\d+(\.\d*)?|\.\d+)')

Handler = Callable[['Interpreter', List[Any]], Any]


@dataclass
class BuiltinFunction:
    name: str
    params: List[str]
    fn: Handler

    @property
    def arity(self) -> int:
        return len(self.params)

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"


def to_index(value: Any, length: int, what: str = 'list') -> int:
    """Validate a list/string index and return it as an int."""
    if not is_number(value) or not math.isfinite(value) or value != int(value):
        raise EdlRuntimeError('TypeError', f"{what} index must be an integer, got {to_string(value)}")
    index = int(value)
    if index < 0 or index >= length:
        raise EdlRuntimeError('IndexError', f"{what} index out of range: {index} (length {length})")
    return index


def expect_list(name: str, value: Any) -> ListVal:
    if not isinstance(value, ListVal):
        raise EdlRuntimeError('TypeError', f"{name} expects a List, got {type_name(value)}")
    return value


def expect_string(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise EdlRuntimeError('TypeError', f"{name} expects a String, got {type_name(value)}")
    return value


def edl_input(interp: 'Interpreter', args: List[Any]) -> Any:
    return interp.read_line()


def edl_to_number(interp: 'Interpreter', args: List[Any]) -> Any:
    text = expect_string('to_number', args[0]).strip()
    if not NUMBER_TEXT.fullmatch(text):
        raise EdlRuntimeError('ValueError', f"cannot convert {args[0]!r} to a number")
    return float(text)


def edl_length(interp: 'Interpreter', args: List[Any]) -> Any:
    return float(len(expect_list('length', args[0]).items))


def edl_push(interp: 'Interpreter', args: List[Any]) -> Any:
    items = expect_list('push', args[0]).items
    return ListVal(items + [args[1]])


def edl_remove(interp: 'Interpreter', args: List[Any]) -> Any:
    items = expect_list('remove', args[0]).items
    index = to_index(args[1], len(items))
    return ListVal(items[:index] + items[index + 1:])


def string_length(interp: 'Interpreter', args: List[Any]) -> Any:
    return float(len(args[0]))


def string_to_upper(interp: 'Interpreter', args: List[Any]) -> Any:
    return args[0].upper()


def string_to_lower(interp: 'Interpreter', args: List[Any]) -> Any:
    return args[0].lower()


def standard_builtins() -> Dict[str, BuiltinFunction]:
    table = [
        BuiltinFunction('input', [], edl_input),
        BuiltinFunction('to_number', ['text'], edl_to_number),
        BuiltinFunction('length', ['list'], edl_length),
        BuiltinFunction('push', ['list', 'item'], edl_push),
        BuiltinFunction('remove', ['list', 'index'], edl_remove),
        # methods: the receiver is passed as the first argument
        BuiltinFunction('list.push', ['item'], edl_push),
        BuiltinFunction('list.remove', ['index'], edl_remove),
        BuiltinFunction('list.length', [], edl_length),
        BuiltinFunction('list.len', [], edl_length),
        BuiltinFunction('string.len', [], string_length),
        BuiltinFunction('string.length', [], string_length),
        BuiltinFunction('string.to_upper', [], string_to_upper),
        BuiltinFunction('string.to_lower', [], string_to_lower),
    ]
    return {b.name: b for b in table}


# names bound in the global frame of every interpreter
GLOBAL_BUILTINS = ('input', 'to_number', 'length', 'push', 'remove')
