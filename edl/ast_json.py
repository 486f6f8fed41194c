"""JSON serialization/deserialization for the EDL AST.

This module converts between EDL AST dataclasses and plain Python
dict/list structures suitable for JSON encoding. Every node becomes a
dict with a `"type"` key naming its class plus one key per dataclass
field. Operators are stored by their symbol; `(key, value)` pairs are
stored as two-element lists. A whole program is wrapped as
`{"type": "Program", "body": [...]}`.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Dict, List

from . import ast as nodes
from .ast import BinOp, UnOp, Node, Stmt

NODE_TYPES: Dict[str, type] = {
    cls.__name__: cls
    for cls in vars(nodes).values()
    if isinstance(cls, type) and issubclass(cls, Node) and cls not in (Node, nodes.Expr, nodes.Stmt)
}

# fields holding (name-or-expr, expr) pairs
PAIR_FIELDS = {
    ('DictLit', 'pairs'),
    ('InstanceLit', 'fields'),
    ('TypeStmt', 'fields'),
}


def program_to_obj(statements: List[Stmt]) -> Dict[str, Any]:
    return {"type": "Program", "body": [ast_to_obj(s) for s in statements]}


def program_from_obj(obj: Any) -> List[Stmt]:
    if not isinstance(obj, dict) or obj.get("type") != "Program":
        raise ValueError("Expected a Program object")
    return [ast_from_obj(s) for s in obj["body"]]


def ast_to_obj(node: Any) -> Any:
    # Primitives
    if node is None or isinstance(node, (bool, int, float, str)):
        return node
    if isinstance(node, (BinOp, UnOp)):
        return node.value
    if isinstance(node, (list, tuple)):
        return [ast_to_obj(item) for item in node]
    if isinstance(node, Node):
        obj: Dict[str, Any] = {"type": type(node).__name__}
        for f in fields(node):
            obj[f.name] = ast_to_obj(getattr(node, f.name))
        return obj
    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


def ast_from_obj(obj: Any) -> Any:
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, list):
        return [ast_from_obj(item) for item in obj]
    if not isinstance(obj, dict):
        raise TypeError("Invalid AST object")
    t = obj.get("type")
    cls = NODE_TYPES.get(t)
    if cls is None:
        raise ValueError(f"Unknown AST node type: {t}")
    kwargs = {}
    for f in fields(cls):
        if f.name not in obj:
            continue
        value = obj[f.name]
        if (t, f.name) in PAIR_FIELDS:
            kwargs[f.name] = [(ast_from_obj(k), ast_from_obj(v)) for k, v in value]
        elif t == 'Binary' and f.name == 'op':
            kwargs[f.name] = BinOp(value)
        elif t == 'Unary' and f.name == 'op':
            kwargs[f.name] = UnOp(value)
        elif t == 'NumberLit':
            kwargs[f.name] = float(value)
        else:
            kwargs[f.name] = ast_from_obj(value)
    return cls(**kwargs)
