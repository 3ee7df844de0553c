"""Built-in operators.

Each operator is a runner function receiving the invocation followed by
the concrete argument values, wrapped into a declarative `Operator`:

- `(( grab path ))` copies the value found at another location;
- `(( concat a b ... ))` concatenates scalars into a string;
- `(( join sep a b ... ))` joins scalars and list items with a separator;
- `(( keys path ))` lists the keys of a mapping;
- `(( empty hash ))` produces an empty map, list or string;
- `(( param "message" ))` marks a value that must be overridden;
- `(( prune ))` removes its own key from the output.
"""

from typing import TYPE_CHECKING, Final

from yaml_graft.errors import OperatorEvaluationError
from yaml_graft.extensions import Operator
from yaml_graft.values import MAPPINGS, SCALARS, SEQUENCES, kind_of

if TYPE_CHECKING:
    from yaml_graft.core.evaluator import Invocation
    from yaml_graft.values import Value

#: Values produced by `(( empty ... ))`, by type name.
_EMPTY_VALUES: Final[dict[str, type]] = {
    'hash': dict,
    'map': dict,
    'array': list,
    'list': list,
    'string': str,
    'str': str,
}


def _stringify(value: 'Value', operator: str) -> str:
    """Render a scalar argument as text."""
    if value is None:
        return ''

    if isinstance(value, bool):
        return 'true' if value else 'false'

    if isinstance(value, SCALARS):
        return str(value)

    raise TypeError(f'`{operator}` can not use a {kind_of(value)} argument')


def _require_arguments(invocation: 'Invocation', args: tuple['Value', ...],
                       minimum: int, maximum: int | None = None) -> None:
    """Validate the number of arguments of a call."""
    if len(args) < minimum or (maximum is not None and len(args) > maximum):
        expected = f'{minimum}' if maximum == minimum else f'at least {minimum}'
        if maximum is not None and maximum != minimum:
            expected = f'{minimum} to {maximum}'
        raise TypeError(
            f'`{invocation.call.name}` expects {expected} argument(s), '
            f'got {len(args)}',
        )


def grab(invocation: 'Invocation', *args: 'Value') -> 'Value':
    """Copy referenced values.

    With a single argument the value itself is returned. With several,
    the values are collected into a list, flattening list values by one
    level.
    """
    _require_arguments(invocation, args, 1)

    if len(args) == 1:
        return args[0]

    values: list[Value] = []
    for value in args:
        if isinstance(value, SEQUENCES):
            values.extend(value)
        else:
            values.append(value)

    return values


def concat(invocation: 'Invocation', *args: 'Value') -> str:
    """Concatenate scalar arguments."""
    _require_arguments(invocation, args, 1)

    return ''.join(_stringify(value, 'concat') for value in args)


def join(invocation: 'Invocation', separator: 'Value', *args: 'Value') -> str:
    """Join scalar arguments and list items with a separator."""
    _require_arguments(invocation, args, 1)

    items: list[str] = []
    for value in args:
        if isinstance(value, SEQUENCES):
            items.extend(_stringify(item, 'join') for item in value)
        else:
            items.append(_stringify(value, 'join'))

    return _stringify(separator, 'join').join(items)


def keys(invocation: 'Invocation', *args: 'Value') -> list['Value']:
    """List the sorted keys of a mapping."""
    _require_arguments(invocation, args, 1, 1)

    (value,) = args
    if not isinstance(value, MAPPINGS):
        raise TypeError(f'`keys` expects a map, got a {kind_of(value)}')

    return sorted(value)


def empty(invocation: 'Invocation', *args: 'Value') -> 'Value':
    """Produce an empty value of the named type."""
    _require_arguments(invocation, args, 1, 1)

    (kind,) = args
    if (factory := _EMPTY_VALUES.get(str(kind).lower())) is None:
        raise TypeError(
            f'`empty` expects one of {", ".join(_EMPTY_VALUES)}, got {kind!r}',
        )

    return factory()


def param(invocation: 'Invocation', *args: 'Value') -> 'Value':
    """Fail with the parameter message.

    A `param` that survives merging means a document required a value
    that no later document provided.
    """
    message = ' '.join(_stringify(value, 'param') for value in args)

    raise OperatorEvaluationError(message or f'Parameter {invocation.path} must be provided')


def prune(invocation: 'Invocation', *args: 'Value') -> 'Value':
    """Remove the key holding the expression after resolution."""
    _require_arguments(invocation, args, 0, 0)

    invocation.prune()

    return None


BUILTINS: Final = (
    Operator(
        name='grab',
        runner=grab,
        description='Copy the value found at another location.',
    ),
    Operator(
        name='concat',
        runner=concat,
        description='Concatenate scalar values into a string.',
    ),
    Operator(
        name='join',
        runner=join,
        description='Join scalar values and list items with a separator.',
    ),
    Operator(
        name='keys',
        runner=keys,
        description='List the keys of a map.',
    ),
    Operator(
        name='empty',
        runner=empty,
        references=False,
        description='Produce an empty hash, array or string.',
    ),
    Operator(
        name='param',
        runner=param,
        description='Require a value to be overridden by a later document.',
    ),
    Operator(
        name='prune',
        runner=prune,
        description='Remove this key from the output.',
    ),
)
