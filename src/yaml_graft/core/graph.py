"""Dependency graph of operator calls.

Every scalar holding an operator expression becomes a node, identified by
a stable integer index assigned in document order. A node that references
another location depends on:

- the operator node enclosing that location, when the reference points
  inside a value that has not been computed yet;
- every operator node at or beneath that location, since the referenced
  value is only final once they are resolved.

The graph must be acyclic. Nodes are evaluated in topological order, ties
broken by discovery order, so the same tree always evaluates the same way.
"""

from heapq import heapify, heappop, heappush
from typing import TYPE_CHECKING, Final

from yaml_graft.core.parser import OperatorCall, parse
from yaml_graft.errors import DependencyCycleError, UnresolvedReferenceError
from yaml_graft.paths import Path
from yaml_graft.values import MAPPINGS, SEQUENCES

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

if TYPE_CHECKING:
    from yaml_graft.extensions import Operator
    from yaml_graft.values import Value

_UNVISITED: Final = 0
_IN_PROGRESS: Final = 1
_DONE: Final = 2


class DependencyGraph:
    """Arena of operator nodes with adjacency sets.

    Attributes:
        paths: Location of each node, by index.
        calls: Parsed operator call of each node, by index.
        index: Node index of each location.
        dependents: For each node, the nodes that must wait for it.
        dependencies: For each node, the nodes it waits for.
    """

    def __init__(self) -> None:
        self.paths: list[Path] = []
        self.calls: list[OperatorCall] = []
        self.index: dict[Path, int] = {}
        self.dependents: list[set[int]] = []
        self.dependencies: list[set[int]] = []

    def __len__(self) -> int:
        return len(self.paths)

    def __contains__(self, path: object) -> bool:
        return path in self.index

    def add_node(self, path: Path, call: OperatorCall) -> int:
        """Register an operator call found at a location.

        Returns:
            Index of the new node.
        """
        node = len(self.paths)

        self.paths.append(path)
        self.calls.append(call)
        self.index[path] = node
        self.dependents.append(set())
        self.dependencies.append(set())

        return node

    def add_edge(self, before: int, after: int) -> None:
        """Require `before` to be evaluated ahead of `after`."""
        self.dependents[before].add(after)
        self.dependencies[after].add(before)

    def nodes_within(self, path: Path) -> 'Iterator[int]':
        """Iterate over nodes located at or beneath a path."""
        for node, node_path in enumerate(self.paths):
            if node_path.startswith(path):
                yield node

    def find_cycle(self) -> list[int] | None:
        """Search for a cycle with a three-colour depth-first traversal.

        Returns:
            The nodes forming a cycle, in evaluation order, or `None` if
            the graph is acyclic.
        """
        colour = [_UNVISITED] * len(self)

        for start in range(len(self)):
            if colour[start] != _UNVISITED:
                continue

            colour[start] = _IN_PROGRESS
            trail = [start]
            stack = [iter(sorted(self.dependents[start]))]

            while stack:
                for child in stack[-1]:
                    if colour[child] == _IN_PROGRESS:
                        return trail[trail.index(child):]
                    if colour[child] == _UNVISITED:
                        colour[child] = _IN_PROGRESS
                        trail.append(child)
                        stack.append(iter(sorted(self.dependents[child])))
                        break
                else:
                    colour[trail.pop()] = _DONE
                    stack.pop()

        return None

    def order(self) -> list[int]:
        """Produce a deterministic topological order.

        Kahn's algorithm over a heap of ready nodes: whenever several
        nodes are ready, the one discovered first goes first.

        Returns:
            Node indices in evaluation order.

        Raises:
            DependencyCycleError: If the graph contains a cycle.
        """
        if (cycle := self.find_cycle()) is not None:
            raise DependencyCycleError([self.paths[node] for node in cycle])

        waiting = [len(dependencies) for dependencies in self.dependencies]
        ready = [node for node, count in enumerate(waiting) if count == 0]
        heapify(ready)

        order = []
        while ready:
            node = heappop(ready)
            order.append(node)
            for child in self.dependents[node]:
                waiting[child] -= 1
                if waiting[child] == 0:
                    heappush(ready, child)

        return order


def _scan(value: 'Value', path: Path) -> 'Iterator[tuple[Path, OperatorCall]]':
    """Find operator calls in document order."""
    if isinstance(value, MAPPINGS):
        for key, item in value.items():
            yield from _scan(item, path.child(key))

    elif isinstance(value, SEQUENCES):
        for index, item in enumerate(value):
            yield from _scan(item, path.child(index))

    elif (call := parse(value)) is not None:
        yield path, call


def _reference_dependencies(graph: DependencyGraph, tree: 'Value',
                            reference: Path) -> set[int] | None:
    """Find the nodes a reference waits for.

    Args:
        graph: Graph with all nodes registered.
        tree: Root of the tree.
        reference: Referenced location.

    Returns:
        Node indices, or `None` if the location does not exist and is
        not inside a value still to be computed.
    """
    reached = None
    for prefix, _ in reference.walk(tree):
        reached = prefix
        if prefix in graph and len(prefix) < len(reference):
            return {graph.index[prefix]}

    if reached is None or len(reached) < len(reference):
        return None

    return set(graph.nodes_within(reached))


def build_graph(tree: 'Value', operators: 'Mapping[str, Operator]') -> DependencyGraph:
    """Build the dependency graph of all operator calls in a tree.

    Args:
        tree: Merged tree.
        operators: Registered operators by name. Arguments of unknown
            operators and of operators that do not resolve references
            add no edges.

    Returns:
        The acyclic dependency graph.

    Raises:
        UnresolvedReferenceError: If a reference names a missing location.
        DependencyCycleError: If operator references form a cycle.
    """
    graph = DependencyGraph()
    for path, call in _scan(tree, Path()):
        graph.add_node(path, call)

    for node, (path, call) in enumerate(zip(graph.paths, graph.calls, strict=True)):
        operator = operators.get(call.name)
        if operator is None or not operator.references:
            continue

        for reference in call.references:
            dependencies = _reference_dependencies(graph, tree, reference)
            if dependencies is None:
                raise UnresolvedReferenceError(reference, path=path, operator=call.name)

            for dependency in dependencies:
                graph.add_edge(dependency, node)

    if (cycle := graph.find_cycle()) is not None:
        raise DependencyCycleError([graph.paths[node] for node in cycle])

    return graph
