"""Names, tokens and path grammar.

This module defines the lexical rules shared by the path parser and the
operator expression parser. They form part of the public document
contract: operator plugins and overlay authors rely on them.
"""

from re import ASCII
from re import compile as regexp
from typing import Annotated

from pydantic import Field

#: Base pattern for operator and plugin identifiers.
_NAME_PATTERN = r'[a-zA-Z][a-zA-Z0-9_-]*'

#: Pattern of a single mapping key inside a dotted path.
#: Keys may contain anything except separators, brackets and quotes.
_KEY_PATTERN = r'[^\s.\[\]"\'()]+'

#: Compiled pattern for operator identifiers.
NAME_PATTERN = regexp(rf'^{_NAME_PATTERN}$', flags=ASCII)

#: Compiled pattern for whole operator expressions: `(( name args ))`.
EXPRESSION_PATTERN = regexp(
    rf'^\s*\(\(\s*(?P<name>{_NAME_PATTERN})(?P<args>(\s+.*?)?)\s*\)\)\s*$',
    flags=ASCII,
)

#: Compiled pattern for expression arguments.
#: A token is a double-quoted string, a single-quoted string or a bare word.
TOKEN_PATTERN = regexp(r'''"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*'|\S+''')

#: Compiled pattern for a dotted path: `key.key.0.key` or `key.key[0].key`.
PATH_PATTERN = regexp(
    rf'^(?!\d+$){_KEY_PATTERN}(\[\d+\])*(\.{_KEY_PATTERN}(\[\d+\])*)*$',
)

#: Compiled pattern for a single path component with optional indices.
SEGMENT_PATTERN = regexp(rf'(?P<key>{_KEY_PATTERN})|\[(?P<index>\d+)\]')

#: Compiled pattern for numeric literals.
NUMBER_PATTERN = regexp(r'^[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?$')


Name = Annotated[
    str, Field(
        pattern=rf'^{_NAME_PATTERN}$',
        title='Operator identifier',
        description=(
            'Name of an operator used inside `(( ))` expressions. '
            'Identifiers must start with a letter and may contain '
            'letters, digits, underscores or dashes. '
            'Names are restricted to ASCII characters.'
        ),
        examples=[
            'grab',
            'concat',
            'static-ips',
        ],
    ),
]
