"""Operator evaluation.

The evaluator resolves every operator expression of a merged tree in
place. A run goes through the following states:

    INIT -> GRAPH_BUILT -> TOPO_ORDERED -> EVALUATING -> PRUNING -> DONE

Any failure moves the evaluator to FAILED and propagates; nothing is
retried and a failed tree must not be used as a result.
"""

from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from yaml_graft.core.graph import build_graph
from yaml_graft.core.parser import parse
from yaml_graft.core.registry import OperatorRegistry
from yaml_graft.errors import (
    GraftError,
    OperatorEvaluationError,
    UnknownOperatorError,
    UnresolvedReferenceError,
)
from yaml_graft.paths import MISSING, Path
from yaml_graft.values import copy_value, normalize

if TYPE_CHECKING:
    from collections.abc import Iterable

if TYPE_CHECKING:
    from yaml_graft.core.graph import DependencyGraph
    from yaml_graft.core.parser import Argument, OperatorCall
    from yaml_graft.extensions import Operator
    from yaml_graft.settings import GraftSettings
    from yaml_graft.values import Tree, Value

logger = getLogger(__name__)


class State(StrEnum):
    """Lifecycle of an evaluator run."""

    INIT = 'init'
    GRAPH_BUILT = 'graph-built'
    TOPO_ORDERED = 'topo-ordered'
    EVALUATING = 'evaluating'
    PRUNING = 'pruning'
    DONE = 'done'
    FAILED = 'failed'


class Invocation:
    """Single call of an operator, as seen by its runner.

    Attributes:
        path: Location of the expression being replaced.
        call: Parsed expression.
    """

    def __init__(self, evaluator: 'Evaluator', path: Path, call: 'OperatorCall') -> None:
        self.evaluator = evaluator
        self.path = path
        self.call = call

    @property
    def tree(self) -> 'Tree':
        """Tree being resolved. Runners should treat it as read-only."""
        return self.evaluator.tree

    @property
    def settings(self) -> 'GraftSettings':
        """Run settings."""
        return self.evaluator.settings

    def lookup(self, path: Path) -> 'Value':
        """Copy the value at a location of the tree.

        Raises:
            UnresolvedReferenceError: If the location does not exist.
        """
        if (value := path.get(self.tree)) is MISSING:
            raise UnresolvedReferenceError(path, path=self.path, operator=self.call.name)

        return copy_value(value)  # type: ignore[arg-type]

    def prune(self, path: Path | None = None) -> None:
        """Schedule a location (this one by default) for removal."""
        self.evaluator.marked.append(self.path if path is None else path)


class Evaluator:
    """Resolver of operator expressions in a tree.

    Attributes:
        tree: Tree resolved in place; authoritative result after `run`.
        state: Current lifecycle state.
        graph: Dependency graph, once built.
        marked: Locations scheduled for pruning by operators.
    """

    def __init__(self, tree: 'Tree', settings: 'GraftSettings',
                 registry: OperatorRegistry | None = None) -> None:
        """Initialize the evaluator.

        Args:
            tree: Merged tree to resolve.
            settings: Run settings.
            registry: Available operators; built from settings if omitted.
        """
        self.tree = tree
        self.settings = settings
        self.registry = registry if registry is not None else OperatorRegistry(settings)

        self.state = State.INIT
        self.graph: DependencyGraph | None = None
        self.marked: list[Path] = []

    def run(self, prune: 'Iterable[Path | str]' = ()) -> None:
        """Resolve all operators, then prune.

        Args:
            prune: Locations to remove after resolution, as paths or
                dotted strings. Missing locations are ignored.

        Raises:
            RuntimeError: If the evaluator already ran.
            ValueError: If a prune location is not a valid path.
            GraftError: If resolution fails.
        """
        if self.state is not State.INIT:
            raise RuntimeError(f'Evaluator can not run in {self.state} state')

        try:
            self._run([
                item if isinstance(item, Path) else Path.parse(item)
                for item in prune
            ])

        except BaseException:
            self.state = State.FAILED
            raise

    def _run(self, prune: list[Path]) -> None:
        """Drive the run through its states."""
        self.graph = build_graph(self.tree, self.registry.operators)
        self.state = State.GRAPH_BUILT

        for path, call in zip(self.graph.paths, self.graph.calls, strict=True):
            if call.name not in self.registry:
                raise UnknownOperatorError(call.name, path=path)

        order = self.graph.order()
        self.state = State.TOPO_ORDERED
        logger.debug(
            'Evaluation order:\n%s',
            '\n'.join(f'  {self.graph.paths[node]}: {self.graph.calls[node]}' for node in order),
        )

        self.state = State.EVALUATING
        for node in order:
            self.evaluate(self.graph.paths[node])

        self.state = State.PRUNING
        self.prune([*prune, *self.marked])

        self.state = State.DONE

    def evaluate(self, path: Path) -> None:
        """Evaluate the expression currently stored at a location.

        Args:
            path: Location of an operator node.

        Raises:
            UnknownOperatorError: If the operator is not registered.
            UnresolvedReferenceError: If a referenced location is missing.
            OperatorEvaluationError: If the operator implementation fails.
        """
        if (call := parse(path.get(self.tree))) is None:  # type: ignore[arg-type]
            return

        if call.name not in self.registry:
            raise UnknownOperatorError(call.name, path=path)

        operator = self.registry[call.name]
        invocation = Invocation(self, path, call)
        args = [
            self.resolve_argument(argument, operator, invocation)
            for argument in call.args
        ]

        try:
            value = normalize(operator.runner(invocation, *args))

        except GraftError as base:
            base.add_context(path=path, operator=call.name)
            raise

        except Exception as base:
            raise OperatorEvaluationError.from_exception(
                base,
                operator=call.name,
                path=path,
            ) from base

        logger.debug('%s: %s => %r', path, call, value)
        path.set(self.tree, value)

    @staticmethod
    def resolve_argument(argument: 'Argument', operator: 'Operator',
                         invocation: Invocation) -> 'Value':
        """Turn an argument into the concrete value passed to a runner."""
        if argument.reference is None:
            return argument.literal

        if not operator.references:
            return argument.token

        return invocation.lookup(argument.reference)

    def prune(self, paths: 'Iterable[Path]') -> None:
        """Remove locations and everything beneath them.

        Paths are resolved against the tree before anything is removed,
        and sequence elements are removed from the highest index down,
        so the order of `paths` does not matter.

        Args:
            paths: Locations to remove; missing ones are ignored.
        """
        targets = {
            canonical
            for path in paths
            if (canonical := path.canonical(self.tree)) is not None and canonical
        }

        for path in sorted(targets, key=Path.sort_key, reverse=True):
            logger.debug('Pruning %s', path)
            path.delete(self.tree)
