"""Tests for tree value normalization."""

from datetime import date
from typing import Any

import pytest

from yaml_graft.values import copy_value, kind_of, normalize


def test_normalize_copies() -> None:
    """Normalize runtime values into independent trees."""
    source = {'a': ({'b': 1}, [2]), 3: 'three', 'when': date(2020, 1, 2)}

    value = normalize(source)

    assert value == {'a': [{'b': 1}, [2]], '3': 'three', 'when': date(2020, 1, 2)}
    assert value['a'][0] is not source['a'][0]


@pytest.mark.parametrize('value', (
    pytest.param({'a': object()}, id='unsupported value'),
    pytest.param({None: 1}, id='null key'),
    pytest.param({False: 1}, id='boolean key'),
    pytest.param([{(1, 2): 'tuple key'}], id='nested tuple key'),
))
def test_normalize_unsupported(value: Any) -> None:
    """Reject values that can not be stored in a tree."""
    with pytest.raises(TypeError):
        normalize(value)


def test_copy_value() -> None:
    """Deep copy containers and share scalars."""
    value = {'a': [1, {'b': 'c'}]}

    copied = copy_value(value)
    copied['a'][1]['b'] = 'changed'

    assert value == {'a': [1, {'b': 'c'}]}


@pytest.mark.parametrize('value, expected', (
    pytest.param({}, 'map', id='map'),
    pytest.param([], 'list', id='list'),
    pytest.param(None, 'null', id='null'),
    pytest.param('text', 'str', id='string'),
    pytest.param(True, 'bool', id='boolean'),
    pytest.param(1.5, 'float', id='float'),
))
def test_kind_of(value: Any, expected: str) -> None:
    """Name value variants for messages."""
    assert kind_of(value) == expected
