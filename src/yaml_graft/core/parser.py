"""Operator expression parser.

Scalars of the shape `(( name arg1 arg2 ... ))` are operator calls. This
module recognizes them and splits them into an operator name and typed
arguments without evaluating anything.

Arguments are whitespace separated. Quoted strings, numbers, booleans
and nulls are literals; bare words written in path syntax are references
to other locations of the tree; any other bare word is a literal string.
Only whole scalars are expressions: `prefix (( grab a ))` is plain text.
"""

from typing import TYPE_CHECKING, Final, Literal

from pydantic import Field

from yaml_graft.models import SchemaModel
from yaml_graft.names import EXPRESSION_PATTERN, NUMBER_PATTERN, TOKEN_PATTERN
from yaml_graft.paths import Path

if TYPE_CHECKING:
    from yaml_graft.values import Value

#: Type of literal arguments.
type LiteralValue = str | int | float | bool | None

#: Bare words read as literal constants.
_CONSTANTS: Final[dict[str, LiteralValue]] = {
    'nil': None,
    'null': None,
    '~': None,
    'true': True,
    'false': False,
}


class Argument(SchemaModel):
    """Single argument of an operator call."""

    kind: Literal['reference', 'literal'] = Field(
        title='Argument kind',
        description='Whether the argument names a tree location or is a constant.',
    )

    token: str = Field(
        title='Source token',
        description='Argument as written in the expression.',
    )

    reference: Path | None = Field(
        default=None,
        title='Referenced path',
    )

    literal: LiteralValue = Field(
        default=None,
        title='Literal value',
    )

    @property
    def is_reference(self) -> bool:
        """Check whether the argument names a tree location."""
        return self.kind == 'reference'

    @classmethod
    def from_token(cls, token: str) -> 'Argument':
        """Type a raw argument token.

        Args:
            token: Token split from the expression.

        Returns:
            The typed argument.
        """
        if len(token) >= 2 and token[0] == token[-1] and token[0] in '"\'':  # noqa: PLR2004
            return cls(kind='literal', token=token, literal=_unquote(token[1:-1]))

        if NUMBER_PATTERN.match(token):
            number: int | float = float(token)
            if number.is_integer() and '.' not in token and 'e' not in token.lower():
                number = int(token)
            return cls(kind='literal', token=token, literal=number)

        if token.lower() in _CONSTANTS:
            return cls(kind='literal', token=token, literal=_CONSTANTS[token.lower()])

        if Path.is_path(token):
            return cls(kind='reference', token=token, reference=Path.parse(token))

        return cls(kind='literal', token=token, literal=token)


def _unquote(value: str) -> str:
    """Resolve backslash escapes of a quoted token."""
    result, escaped = [], False
    for char in value:
        if escaped:
            result.append({'n': '\n', 't': '\t'}.get(char, char))
            escaped = False
        elif char == '\\':
            escaped = True
        else:
            result.append(char)

    return ''.join(result)


class OperatorCall(SchemaModel):
    """Parsed operator expression."""

    name: str = Field(
        title='Operator name',
    )

    args: tuple[Argument, ...] = Field(
        default=(),
        title='Arguments',
    )

    source: str = Field(
        title='Source text',
        description='The scalar the call was parsed from.',
    )

    @property
    def references(self) -> tuple[Path, ...]:
        """Paths named by reference arguments, in order."""
        return tuple(
            arg.reference
            for arg in self.args
            if arg.reference is not None
        )

    def __str__(self) -> str:
        return f'(( {" ".join((self.name, *(arg.token for arg in self.args)))} ))'


def parse(value: 'Value') -> OperatorCall | None:
    """Parse a scalar into an operator call.

    Args:
        value: Any tree value.

    Returns:
        The operator call, or `None` if the value is not a string made
        entirely of an operator expression.
    """
    if not isinstance(value, str):
        return None

    if (match := EXPRESSION_PATTERN.match(value)) is None:
        return None

    return OperatorCall(
        name=match['name'],
        args=tuple(
            Argument.from_token(token)
            for token in TOKEN_PATTERN.findall(match['args'])
        ),
        source=value,
    )
