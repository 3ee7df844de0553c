"""Core type definitions for composed YAML trees.

This module defines the value model shared by the merge engine and the
operator evaluator. A tree is whatever PyYAML's safe loader produces for
a document: mappings with string keys, ordered sequences and scalars.

It also provides utilities for recursively normalizing loaded documents
into strict tree values and for copying trees without sharing nodes.
"""

from datetime import date, datetime
from typing import Any

#: Scalars are atomic leaves of a tree. Dates are included because
#: the YAML safe loader resolves timestamps on its own.
type Scalar = date | datetime | str | int | float | bool

#: A tree value is a mapping, a sequence or a scalar (`None` for null).
type Value = Scalar | list['Value'] | dict[str, 'Value'] | None

#: A tree whose root is a mapping, as every merged document must be.
type Tree = dict[str, Value]

#: Anything received from PyYAML or from operator implementations
#: before it is normalized into a strict `Value`.
type RuntimeValue = Any

MAPPINGS = (dict,)
SCALARS = (date, datetime, str, int, float, bool)
SEQUENCES = (list, tuple)


def _normalize_key(value: RuntimeValue) -> str:
    """Validate and normalize a mapping key.

    Numeric keys are accepted and rendered as strings, as YAML happily
    loads `1: one` with an integer key.

    Args:
        value: Candidate mapping key.

    Returns:
        The key as a string.

    Raises:
        TypeError: If the key is neither a string nor a number.
    """
    if isinstance(value, str):
        return value

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)

    raise TypeError(f'Can not use {value!r} as mapping key')


def normalize(value: RuntimeValue) -> Value:
    """Recursively normalize a runtime value into a tree `Value`.

    The result never shares containers with the input, so normalizing is
    also the way to take an independent copy of a subtree.

    Args:
        value: Runtime value to normalize.

    Returns:
        A fully normalized tree value.

    Raises:
        TypeError: If the value or one of its keys has an unsupported type.
    """
    if value is None:
        return None

    if isinstance(value, SCALARS):
        return value

    if isinstance(value, MAPPINGS):
        return {
            _normalize_key(key): normalize(item)
            for key, item in value.items()
        }

    if isinstance(value, SEQUENCES):
        return [
            normalize(item)
            for item in value
        ]

    raise TypeError(f'{value!r} has unsupported type')


def copy_value(value: Value) -> Value:
    """Deep copy a tree value."""
    if isinstance(value, MAPPINGS):
        return {key: copy_value(item) for key, item in value.items()}

    if isinstance(value, SEQUENCES):
        return [copy_value(item) for item in value]

    return value


def kind_of(value: Value) -> str:
    """Name the variant of a tree value for messages."""
    if isinstance(value, MAPPINGS):
        return 'map'

    if isinstance(value, SEQUENCES):
        return 'list'

    if value is None:
        return 'null'

    return type(value).__name__
