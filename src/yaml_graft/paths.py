"""Addressing of locations inside a tree.

A `Path` is an immutable sequence of segments, each either a mapping key
or a sequence index. Paths are written as dotted strings such as
`jobs.0.networks` or `jobs[0].networks`.

Besides plain keys and indices, a key segment applied to a sequence
selects the first mapping element whose `name` field equals the segment,
so `jobs.api.instances` addresses the `instances` of the job named `api`.
Such paths can be rewritten into their index-only canonical form with
`Path.canonical`.
"""

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Any, Final, Self

from pydantic_core import core_schema

from yaml_graft.names import PATH_PATTERN, SEGMENT_PATTERN
from yaml_graft.values import MAPPINGS, SEQUENCES

if TYPE_CHECKING:
    from pydantic import GetCoreSchemaHandler
    from pydantic_core.core_schema import CoreSchema

if TYPE_CHECKING:
    from yaml_graft.values import Value

#: Field used to address mapping elements of sequences by name.
NAME_FIELD: Final = 'name'

#: Rendering of the empty path.
ROOT: Final = '$'


class _Missing:
    """Marker for a location that does not exist."""

    def __repr__(self) -> str:
        return '<missing>'


#: Returned by lookups when the location does not exist. `None` can not
#: be used because it is a legitimate (null) tree value.
MISSING: Final = _Missing()


def _step(node: 'Value', segment: str | int) -> 'tuple[str | int, Value] | None':
    """Move one segment down from a node.

    Args:
        node: Current node.
        segment: Key, index or element name.

    Returns:
        A tuple of the canonical segment and the child node, or `None`
        if the segment can not be applied to the node.
    """
    if isinstance(node, MAPPINGS):
        key = str(segment)
        if key in node:
            return key, node[key]
        return None

    if not isinstance(node, SEQUENCES):
        return None

    if isinstance(segment, int):
        if 0 <= segment < len(node):
            return segment, node[segment]
        return None

    for index, item in enumerate(node):
        if isinstance(item, MAPPINGS) and item.get(NAME_FIELD) == segment:
            return index, item

    return None


class Path(tuple[str | int, ...]):
    """Location of a value inside a tree."""

    __slots__ = ()

    def __new__(cls, segments: Iterable[str | int] = ()) -> Self:
        """Create a path from segments."""
        return super().__new__(cls, segments)

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any,  # noqa: ANN401
                                     handler: 'GetCoreSchemaHandler') -> 'CoreSchema':
        """Validate paths as instances, parsing dotted strings on the way in.

        Args:
            source: The annotated type.
            handler: Call into Pydantic's internal schema generation.

        Returns:
            A `pydantic-core` CoreSchema.
        """
        return core_schema.no_info_before_validator_function(
            lambda value: cls.parse(value) if isinstance(value, str) else value,
            core_schema.is_instance_schema(cls),
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )

    @classmethod
    def parse(cls, value: str) -> Self:
        """Parse a dotted path string.

        Numeric components become sequence indices, so `list.1` and
        `list[1]` are the same path. `$` and the empty string denote
        the root.

        Args:
            value: Dotted path.

        Returns:
            The parsed path.

        Raises:
            ValueError: If the string is not a valid path.
        """
        text = value.strip()
        if text in ('', ROOT):
            return cls()

        if not PATH_PATTERN.match(text):
            raise ValueError(f'Invalid path {value!r}')

        segments: list[str | int] = []
        for match in SEGMENT_PATTERN.finditer(text):
            if (index := match['index']) is not None:
                segments.append(int(index))
            elif (key := match['key']).isdecimal():
                segments.append(int(key))
            else:
                segments.append(key)

        return cls(segments)

    @staticmethod
    def is_path(value: str) -> bool:
        """Check whether a string is written in path syntax."""
        return bool(PATH_PATTERN.match(value.strip()))

    def __str__(self) -> str:
        if not self:
            return ROOT

        return '.'.join(str(segment) for segment in self)

    def __repr__(self) -> str:
        return f'Path({str(self)!r})'

    def __add__(self, other: Iterable[str | int]) -> Self:  # type: ignore[override]
        return type(self)((*self, *other))

    @property
    def parent(self) -> Self:
        """Path of the enclosing container."""
        return type(self)(self[:-1])

    def child(self, segment: str | int) -> Self:
        """Path of a direct child."""
        return type(self)((*self, segment))

    def startswith(self, prefix: 'Path') -> bool:
        """Check whether this path is `prefix` or lies beneath it."""
        return self[:len(prefix)] == prefix

    def sort_key(self) -> tuple[tuple[int, str | int], ...]:
        """Total ordering key usable across mixed key and index segments."""
        return tuple(
            (0, segment) if isinstance(segment, int) else (1, segment)
            for segment in self
        )

    def walk(self, tree: 'Value') -> Iterator[tuple[Self, 'Value']]:
        """Follow the path through a tree.

        Yields the canonical prefix and the node reached at every step,
        starting with the root itself. The walk stops early when a
        segment can not be applied.

        Args:
            tree: Root of the tree.

        Yields:
            Pairs of canonical prefix path and node.
        """
        prefix, node = type(self)(), tree
        yield prefix, node

        for segment in self:
            if (step := _step(node, segment)) is None:
                return
            key, node = step
            prefix = prefix.child(key)
            yield prefix, node

    def get(self, tree: 'Value', default: 'Value | _Missing' = MISSING) -> 'Value | _Missing':
        """Look the path up in a tree.

        Args:
            tree: Root of the tree.
            default: Returned if the location does not exist.

        Returns:
            The value at the path or `default`.
        """
        steps = 0
        node: Value = None
        for steps, (_, node) in enumerate(self.walk(tree)):  # noqa: B007
            pass

        if steps < len(self):
            return default

        return node

    def exists(self, tree: 'Value') -> bool:
        """Check whether the path exists in a tree."""
        return self.get(tree) is not MISSING

    def canonical(self, tree: 'Value') -> Self | None:
        """Rewrite element names into sequence indices.

        Args:
            tree: Root of the tree.

        Returns:
            The index-only path, or `None` if the location does not exist.
        """
        prefix = None
        for prefix, _ in self.walk(tree):  # noqa: B007
            pass

        if prefix is None or len(prefix) < len(self):
            return None

        return prefix

    def set(self, tree: 'Value', value: 'Value') -> None:
        """Store a value at an existing location or a new mapping key.

        Args:
            tree: Root of the tree.
            value: Value to store.

        Raises:
            KeyError: If the parent location does not exist or the path
                is the root.
            IndexError: If a sequence index is out of range.
        """
        if not self:
            raise KeyError('Can not replace the root of a tree')

        container = self.parent.get(tree)
        segment = self[-1]

        if isinstance(container, MAPPINGS):
            container[str(segment)] = value
            return

        if isinstance(container, SEQUENCES):
            if (step := _step(container, segment)) is None:
                raise IndexError(f'No element {segment!r} at {self.parent}')
            container[step[0]] = value
            return

        raise KeyError(f'No container at {self.parent}')

    def delete(self, tree: 'Value') -> bool:
        """Remove the value at the path and everything beneath it.

        Args:
            tree: Root of the tree.

        Returns:
            `True` if something was removed, `False` if the path did not exist.
        """
        if not self:
            return False

        container = self.parent.get(tree)
        if (step := _step(container, self[-1])) is None:
            return False

        del container[step[0]]  # type: ignore[index, union-attr]
        return True
