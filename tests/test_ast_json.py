import json
from pathlib import Path

import pytest

from edl.ast import BinOp, Binary, NumberLit, DictLit, StringLit
from edl.ast_json import ast_from_obj, ast_to_obj, program_from_obj, program_to_obj
from edl.parser import parse_program

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


@pytest.mark.parametrize('path', sorted(EXAMPLES.glob('*.edl')), ids=lambda p: p.name)
def test_examples_survive_json(path):
    statements = parse_program(path.read_text(encoding='utf-8'))
    text = json.dumps(program_to_obj(statements))
    assert program_from_obj(json.loads(text)) == statements


def test_node_encoding():
    node = Binary(NumberLit(1.0), BinOp.ADD, NumberLit(2.0))
    assert ast_to_obj(node) == {
        "type": "Binary",
        "left": {"type": "NumberLit", "value": 1.0},
        "op": "+",
        "right": {"type": "NumberLit", "value": 2.0},
    }


def test_pairs_come_back_as_tuples():
    node = DictLit([(StringLit('k'), NumberLit(1.0))])
    assert ast_from_obj(json.loads(json.dumps(ast_to_obj(node)))) == node


def test_integral_numbers_are_restored_as_floats():
    node = ast_from_obj({"type": "NumberLit", "value": 3})
    assert node == NumberLit(3.0)
    assert isinstance(node.value, float)


def test_unknown_node_type():
    with pytest.raises(ValueError):
        ast_from_obj({"type": "Nope"})
    with pytest.raises(ValueError):
        program_from_obj({"type": "Binary"})
