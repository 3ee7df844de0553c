"""Declarative operator and plugin definitions.

This module defines the models extension authors use to contribute
operators to yaml-graft.

An operator binds a name, usable as `(( name args ))` inside documents,
to a runner callable. A plugin groups operators under a namespace and is
exposed through the `graft_plugins` entry point group:

    [project.entry-points.graft_plugins]
    myplugin = "my_package.graft:plugin"

Definitions are purely declarative. They are consumed by the operator
registry, which checks names for conflicts and hands runners to the
evaluator.
"""

from collections.abc import Callable
from typing import Any

from pydantic import Field

from yaml_graft.models import SchemaModel
from yaml_graft.names import Name  # noqa: TC001

#: Operator implementation. Called with the invocation (tree, location
#: and parsed call) followed by the concrete argument values.
type OperatorRunner = Callable[..., Any]


class Operator(SchemaModel):
    """Declarative operator definition."""

    name: Name = Field(
        title='Operator name',
        description='Name used in `(( name args ))` expressions.',
    )

    runner: OperatorRunner = Field(
        title='Runner',
        description=(
            'Callable computing the operator result. It receives the '
            'invocation followed by one value per argument and returns '
            'the value stored in place of the expression.'
        ),
    )

    references: bool = Field(
        default=True,
        title='Resolve references',
        description=(
            'Whether arguments written in path syntax are references to '
            'tree locations. When disabled, such arguments are passed as '
            'their source text and add no dependencies.'
        ),
    )

    description: str | None = Field(
        default=None,
        title='Description',
    )


class Plugin(SchemaModel):
    """Declarative container for operator extensions."""

    name: Name = Field(
        title='Plugin namespace',
        description=(
            'Logical namespace of the plugin. '
            'Used for identification, diagnostics, and conflict detection.'
        ),
    )

    version: int = Field(
        default=1,
        title='Extension version',
        description=(
            'Version of the operator contract implemented by the plugin. '
            'This is not a semantic version of the plugin implementation.'
        ),
    )

    operators: list[Operator] = Field(
        default_factory=list,
        title='Operators',
        description='Operators contributed by the plugin.',
    )


__all__ = (
    'Operator',
    'OperatorRunner',
    'Plugin',
)
