"""YAML serialization boundary.

Decoding turns raw document bytes into a normalized tree with a mapping
root, encoding turns the resolved tree back into YAML text. Both sides
use PyYAML's safe loader and dumper.

Concourse pipelines use `{{placeholder}}` tokens which YAML would read
as flow mappings. `quote_concourse` wraps them in quotes before decoding
and `dequote_concourse` strips those quotes from the encoded output, so
the tokens pass through the merge untouched.
"""

from re import compile as regexp
from typing import Final

from yaml import YAMLError, safe_dump, safe_load
from yaml.error import MarkedYAMLError

from yaml_graft.errors import ErrorContext, NonMapRootError, YAMLDecodeError, YAMLEncodeError
from yaml_graft.values import MAPPINGS, Tree, kind_of, normalize

#: Pattern of a Concourse placeholder token.
_CONCOURSE_TOKEN: Final = r'\{\{([-\w]+)\}\}'

_QUOTE_PATTERN = regexp(rf'({_CONCOURSE_TOKEN})')
_DEQUOTE_PATTERN = regexp(rf'[\'"]({_CONCOURSE_TOKEN})[\'"]')


def quote_concourse(data: bytes) -> bytes:
    """Wrap every `{{placeholder}}` in double quotes."""
    return _QUOTE_PATTERN.sub(
        lambda match: f'"{match[1]}"',
        data.decode('utf-8'),
    ).encode('utf-8')


def dequote_concourse(text: str) -> str:
    """Strip quotes surrounding `{{placeholder}}` tokens."""
    return _DEQUOTE_PATTERN.sub(r'\1', text)


def decode(data: bytes | str, *, filename: str | None = None) -> Tree:
    """Parse a YAML document into a tree.

    Args:
        data: Raw document contents.
        filename: Name of the source, used in error messages.

    Returns:
        The normalized document, whose root is a mapping.

    Raises:
        YAMLDecodeError: If the data is not valid YAML or contains
            mapping keys that can not be represented.
        NonMapRootError: If the document root is not a mapping.
    """
    try:
        document = safe_load(data)

    except MarkedYAMLError as base:
        raise YAMLDecodeError.from_yaml_error(base, filename=filename) from base

    except YAMLError as base:
        raise YAMLDecodeError(
            'Unable to parse YAML',
            context=ErrorContext(filename=filename, error=base),
        ) from base

    if not isinstance(document, MAPPINGS):
        raise NonMapRootError(
            f'Root of YAML document is not a hash/map: found {kind_of(document)}',
            context=ErrorContext(filename=filename),
        )

    try:
        return normalize(document)  # type: ignore[return-value]

    except TypeError as base:
        raise YAMLDecodeError(
            'Unable to parse YAML',
            context=ErrorContext(filename=filename, error=base),
        ) from base


def encode(tree: Tree, *, concourse: bool = False) -> str:
    """Serialize a tree into YAML text.

    Keys are sorted and block style is used throughout, so equal trees
    always encode to identical text.

    Args:
        tree: Resolved tree.
        concourse: Whether to strip quotes added by `quote_concourse`.

    Returns:
        The YAML document.

    Raises:
        YAMLEncodeError: If the tree holds values YAML can not represent.
    """
    try:
        text = safe_dump(
            tree,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=True,
        )

    except YAMLError as base:
        raise YAMLEncodeError(
            'Unable to convert merged result back to YAML',
            context=ErrorContext(error=base),
        ) from base

    if concourse:
        return dequote_concourse(text)

    return text
