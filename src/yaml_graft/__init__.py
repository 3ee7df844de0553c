"""Merge YAML documents and resolve cross-references between them.

The `yaml_graft` package composes manifests from a base document and any
number of overlays, then resolves `(( operator args ))` expressions that
let one part of the result reference or compute values defined elsewhere.

Key features:
- deep merging of mappings, with per-sequence append, prepend, inline
  and replace policies;
- reference resolution ordered by a dependency graph, with cycle and
  missing-reference detection;
- pruning of helper keys from the final output;
- operators extensible through plugins.
"""

__version__ = '0.12.0'
