"""Runtime values for EDL.

Numbers, booleans and strings are plain Python `float`, `bool` and `str`.
The remaining variants are small classes defined here: `NullVal`,
`FunctionVal`, `TypeVal`, `InstanceVal` and `ListVal`. The module also
holds the helpers every part of the interpreter shares: structural
equality, truthiness, and the two text renderings (`to_string` for
`print`, `literal_repr` for source literals that parse back to an equal
value).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .ast import Stmt
    from .environment import Environment


@dataclass(frozen=True)
class NullVal:
    """The EDL `null` value. All instances compare equal."""
    def __repr__(self) -> str:
        return 'null'


NULL = NullVal()


@dataclass
class FunctionVal:
    """A callable value.

    User functions carry their parameter names, body and the frame they
    were defined in (`closure`). Built-ins have an empty body and
    `native=True`; the interpreter dispatches them by `name` through its
    built-in table. A method fetched from an instance, list or string has
    its receiver stored in `bound_self`.
    """
    params: List[str]
    body: List['Stmt']
    name: str = '<lambda>'
    closure: Optional['Environment'] = field(default=None, compare=False, repr=False)
    native: bool = False
    bound_self: Any = field(default=None, compare=False, repr=False)

    def __repr__(self) -> str:
        if self.native:
            return f"<builtin {self.name}>"
        return f"<fn {self.name}>"


@dataclass
class TypeVal:
    """A user-defined record type: default field values plus methods."""
    name: str
    fields: Dict[str, Any] = field(default_factory=dict)
    methods: Dict[str, FunctionVal] = field(default_factory=dict)

    def snapshot(self) -> 'TypeVal':
        return TypeVal(self.name, dict(self.fields), dict(self.methods))


@dataclass
class InstanceVal:
    type: TypeVal
    fields: Dict[str, Any]


@dataclass
class ListVal:
    items: List[Any]


def type_name(value: Any) -> str:
    """Return the EDL type name of a runtime value."""
    if isinstance(value, bool):
        return 'Bool'
    if isinstance(value, float):
        return 'Number'
    if isinstance(value, str):
        return 'String'
    if isinstance(value, NullVal):
        return 'Null'
    if isinstance(value, FunctionVal):
        return 'Function'
    if isinstance(value, TypeVal):
        return 'Type'
    if isinstance(value, InstanceVal):
        return value.type.name
    if isinstance(value, ListVal):
        return 'List'
    return type(value).__name__


def is_number(value: Any) -> bool:
    # bool is a subclass of int, not float, so this excludes booleans
    return isinstance(value, float)


def values_equal(a: Any, b: Any) -> bool:
    """Structural equality, variant by variant. Never raises."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    if isinstance(a, NullVal) and isinstance(b, NullVal):
        return True
    if isinstance(a, ListVal) and isinstance(b, ListVal):
        if len(a.items) != len(b.items):
            return False
        return all(values_equal(x, y) for x, y in zip(a.items, b.items))
    if isinstance(a, InstanceVal) and isinstance(b, InstanceVal):
        return values_equal(a.type, b.type) and _fields_equal(a.fields, b.fields)
    if isinstance(a, TypeVal) and isinstance(b, TypeVal):
        return (a.name == b.name
                and _fields_equal(a.fields, b.fields)
                and _fields_equal(a.methods, b.methods))
    if isinstance(a, FunctionVal) and isinstance(b, FunctionVal):
        return a == b
    return False


def _fields_equal(a: Dict[str, Any], b: Dict[str, Any]) -> bool:
    if a.keys() != b.keys():
        return False
    return all(values_equal(a[k], b[k]) for k in a)


def is_truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, NullVal):
        return False
    if is_number(value):
        return value != 0.0
    if isinstance(value, str):
        return len(value) > 0
    if isinstance(value, ListVal):
        return len(value.items) > 0
    # functions, types and instances
    return True


def format_number(x: float) -> str:
    """Render a number in plain decimal notation (no exponent).

    Integral values drop the fractional part: 3.0 renders as `3`.
    """
    if x != x or x in (float('inf'), float('-inf')):
        return repr(x)
    if x == int(x):
        return str(int(x))
    text = repr(x)
    if 'e' in text or 'E' in text:
        text = format(Decimal(text), 'f')
    return text


def to_string(value: Any) -> str:
    """Convert a value to the text written by `print`."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if is_number(value):
        return format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, NullVal):
        return 'null'
    if isinstance(value, ListVal):
        return '[' + ', '.join(_nested_string(item) for item in value.items) + ']'
    if isinstance(value, InstanceVal):
        fields = ', '.join(f"{k}: {_nested_string(v)}" for k, v in value.fields.items())
        if not fields:
            return f"{value.type.name} {{}}"
        return f"{value.type.name} {{ {fields} }}"
    if isinstance(value, TypeVal):
        return f"<type {value.name}>"
    return repr(value)


def _nested_string(value: Any) -> str:
    if isinstance(value, str):
        return literal_repr(value)
    return to_string(value)


def literal_repr(value: Any) -> str:
    """Render a Number, Bool or String as EDL source that parses back to it."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if is_number(value):
        return format_number(value)
    if isinstance(value, str):
        escaped = (value.replace('\\', '\\\\')
                   .replace('"', '\\"')
                   .replace('\n', '\\n')
                   .replace('\r', '\\r')
                   .replace('\t', '\\t'))
        return f'"{escaped}"'
    raise TypeError(f"no literal form for {type_name(value)}")
