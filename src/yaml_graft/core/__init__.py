"""Merge and resolution engine.

This package holds the two stages of a run:

- merging: documents are read, decoded and folded into one tree by the
  `Merger`, honoring sequence merge directives;
- resolution: the `Evaluator` finds operator expressions, orders them by
  their references and replaces each with its computed value, then prunes
  requested locations.

The primary public entry points are `merge_documents` and `Evaluator`.
"""

from .documents import merge_documents, read_document
from .evaluator import Evaluator, Invocation, State
from .graph import DependencyGraph, build_graph
from .merger import Directive, Merger
from .parser import Argument, OperatorCall, parse
from .registry import OperatorRegistry

__all__ = (
    'Argument',
    'DependencyGraph',
    'Directive',
    'Evaluator',
    'Invocation',
    'Merger',
    'OperatorCall',
    'OperatorRegistry',
    'State',
    'build_graph',
    'merge_documents',
    'parse',
    'read_document',
)
