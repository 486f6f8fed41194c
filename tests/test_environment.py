import pytest

from edl.environment import Environment
from edl.errors import EdlRuntimeError


def test_lookup_walks_outward():
    root = Environment()
    root.set('a', 1.0)
    child = Environment(parent=Environment(parent=root))
    assert child.get('a') == 1.0
    assert child.get('missing') is None
    assert child.is_defined('a')
    assert not child.is_defined('missing')


def test_set_shadows_in_current_frame():
    root = Environment()
    root.set('a', 1.0)
    child = Environment(parent=root)
    child.set('a', 2.0)
    assert child.get('a') == 2.0
    assert root.get('a') == 1.0


def test_assign_updates_nearest_owner():
    root = Environment()
    root.set('a', 1.0)
    child = Environment(parent=root)
    assert child.assign('a', 5.0)
    assert root.get('a') == 5.0
    assert 'a' not in child.values


def test_assign_to_unknown_name_fails():
    assert not Environment(parent=Environment()).assign('nope', 1.0)


def test_constants_cannot_be_assigned():
    env = Environment()
    env.declare_const('LIMIT', 3.0)
    with pytest.raises(EdlRuntimeError) as exc:
        Environment(parent=env).assign('LIMIT', 4.0)
    assert exc.value.name == 'TypeError'
    assert env.get('LIMIT') == 3.0


def test_let_over_a_constant_rebinds_it():
    env = Environment()
    env.declare_const('x', 1.0)
    env.set('x', 2.0)
    assert env.assign('x', 3.0)
    assert env.get('x') == 3.0


def test_depth():
    root = Environment()
    assert root.depth() == 0
    assert Environment(parent=Environment(parent=root)).depth() == 2
