"""Document merge engine.

Documents are folded one by one into an accumulating root mapping. The
later document wins for scalars, mappings are united key by key and
sequences are combined according to a merge directive declared by a
marker in their first element:

    (( append ))    incoming elements go after the existing ones;
    (( prepend ))   incoming elements go before the existing ones;
    (( inline ))    elements are merged index by index (the default);
    (( replace ))   the incoming sequence replaces the existing one.

The marker is consumed and never reaches the output. Merging never fails
halfway: problems are recorded and the first one is reported by `error`
after every document was processed.
"""

from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from yaml_graft.errors import ErrorContext, MergeError
from yaml_graft.paths import Path
from yaml_graft.values import MAPPINGS, SEQUENCES, copy_value, kind_of

if TYPE_CHECKING:
    from yaml_graft.settings import GraftSettings
    from yaml_graft.values import Tree, Value

logger = getLogger(__name__)


class Directive(StrEnum):
    """Merge policy of a sequence."""

    APPEND = 'append'
    PREPEND = 'prepend'
    INLINE = 'inline'
    REPLACE = 'replace'


class Merger:
    """Recursive tree merger.

    A single instance is meant to merge all documents of one run, so that
    errors found in any of them are reported together at the end.
    """

    def __init__(self, settings: 'GraftSettings') -> None:
        """Initialize the merger.

        Args:
            settings: Run settings providing the directive marker pattern.
        """
        self.settings = settings
        self.errors: list[MergeError] = []

    def error(self) -> MergeError | None:
        """Return the first error recorded so far."""
        if self.errors:
            return self.errors[0]

        return None

    def merge(self, root: 'Tree', document: 'Tree') -> None:
        """Merge a document into the root in place.

        Args:
            root: Accumulated tree, mutated.
            document: Incoming document, left untouched.
        """
        self.merge_mapping(root, document, Path())

    def merge_mapping(self, root: dict[str, 'Value'],
                      document: dict[str, 'Value'], path: Path) -> None:
        """Merge the keys of an incoming mapping into an existing one."""
        for key, value in document.items():
            if key in root:
                root[key] = self.merge_value(root[key], value, path.child(key))
            else:
                root[key] = self.merge_value(None, value, path.child(key))

    def merge_value(self, current: 'Value', incoming: 'Value', path: Path) -> 'Value':
        """Combine two values found at the same location.

        Args:
            current: Existing value, or `None` for a fresh location.
            incoming: Value from the document being merged.
            path: Location of both values.

        Returns:
            The merged value to store at the location.
        """
        if isinstance(incoming, MAPPINGS):
            if not isinstance(current, MAPPINGS):
                current = {}
            self.merge_mapping(current, incoming, path)
            return current

        if isinstance(incoming, SEQUENCES):
            if not isinstance(current, SEQUENCES):
                current = []
            return self.merge_sequence(current, incoming, path)

        if current is not None:
            logger.debug('%s: replacing %r with %r', path, current, incoming)

        return copy_value(incoming)

    def merge_sequence(self, current: list['Value'],
                       incoming: list['Value'], path: Path) -> list['Value']:
        """Combine two sequences according to the incoming directive.

        Args:
            current: Existing sequence, mutated for inline merges.
            incoming: Sequence from the document being merged.
            path: Location of both sequences.

        Returns:
            The merged sequence.
        """
        directive, items = self.read_directive(incoming, path)
        logger.debug('%s: merging sequence with %s directive', path, directive)

        match directive:
            case Directive.APPEND:
                return current + self.copy_items(items, path, offset=len(current))

            case Directive.PREPEND:
                return self.copy_items(items, path) + current

            case Directive.REPLACE:
                return self.copy_items(items, path)

        for index, item in enumerate(items):
            if index < len(current) and kind_of(current[index]) == kind_of(item):
                current[index] = self.merge_value(current[index], item, path.child(index))
            else:
                current.append(self.merge_value(None, item, path.child(len(current))))

        return current

    def copy_items(self, items: list['Value'], path: Path, offset: int = 0) -> list['Value']:
        """Copy incoming elements, consuming nested directive markers."""
        return [
            self.merge_value(None, item, path.child(offset + index))
            for index, item in enumerate(items)
        ]

    def read_directive(self, items: list['Value'], path: Path) -> tuple[Directive, list['Value']]:
        """Split the directive marker off a sequence.

        Markers found after the first element are recorded as errors and
        dropped from the sequence.

        Args:
            items: Incoming sequence.
            path: Location of the sequence.

        Returns:
            A tuple of the directive and the remaining elements.
        """
        directive = Directive.INLINE
        remaining: list[Value] = []

        for index, item in enumerate(items):
            if (marker := self.match_directive(item)) is None:
                remaining.append(item)
            elif index == 0:
                directive = marker
            else:
                self.errors.append(MergeError(
                    f'Merge directive `{item}` must be the first element of a list',
                    context=ErrorContext(path=path.child(index)),
                ))

        return directive, remaining

    def match_directive(self, value: 'Value') -> Directive | None:
        """Recognize a directive marker."""
        if not isinstance(value, str):
            return None

        if (match := self.settings.directive_pattern.match(value.strip())) is None:
            return None

        try:
            return Directive(match[1].lower())

        except (IndexError, ValueError):
            return None
