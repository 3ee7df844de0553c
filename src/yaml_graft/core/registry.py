"""Operator registry and plugin loading.

The registry maps operator names to their definitions. It starts with
the built-in operators and then discovers plugins exposed via the
`graft_plugins` entry point group.

Plugins are loaded defensively: individual failures do not interrupt
the loading process unless strict mode is enabled.
"""

from typing import TYPE_CHECKING
from warnings import warn

from pydantic import ValidationError

from yaml_graft.builtins import operators as builtin_operators
from yaml_graft.errors import PluginError, PluginWarning
from yaml_graft.extensions import Operator, Plugin

if TYPE_CHECKING:
    from importlib.metadata import EntryPoint

if TYPE_CHECKING:
    from yaml_graft.settings import GraftSettings

#: Entry point group scanned for plugins.
ENTRYPOINT_GROUP = 'graft_plugins'


class OperatorRegistry:
    """Operators available to the evaluator.

    Attributes:
        strict_mode: If True, any plugin loading issue raises an error.
            If False, issues are emitted as warnings and loading continues.
        operators: Registered operators by name.
    """

    strict_mode: bool = False

    operators: dict[str, Operator]

    def __init__(self, settings: 'GraftSettings', *,
                 builtins: bool = True) -> None:
        """Initialize the registry.

        Args:
            settings: Run settings selecting strict mode and plugin discovery.
            builtins: Whether to register the built-in operators.

        Raises:
            PluginError: If a plugin can not be loaded on strict mode.
        """
        self.strict_mode = settings.strict
        self.clear()

        if builtins:
            for operator in builtin_operators.BUILTINS:
                self.add_operator(operator)

        if settings.load_plugins:
            self.load_plugins()

    def __contains__(self, name: object) -> bool:
        return name in self.operators

    def __getitem__(self, name: str) -> Operator:
        return self.operators[name]

    def add_operator(self, operator: Operator,
                     entrypoint: 'EntryPoint | None' = None,
                     namespace: str | None = None) -> None:
        """Register an operator definition.

        Args:
            operator: Declarative operator definition.
            entrypoint: Entry point from which the operator was loaded,
                if applicable. Used for diagnostics and warnings.
            namespace: Optional plugin namespace, for diagnostics.

        Raises:
            PluginError: If the operator shadows an existing one on strict mode.
        """
        module, qualname = self.resolve_plugin_names(operator, entrypoint, namespace)

        if operator.name in self.operators and (error := self.emit_plugin_issue(
            f'Operator {qualname!r} from {module!r} is shadowing an existing',
            entrypoint,
        )):
            raise error

        self.operators[operator.name] = operator

    @staticmethod
    def resolve_plugin_names(item: Operator,
                             entrypoint: 'EntryPoint | None' = None,
                             namespace: str | None = None) -> tuple[str, str]:
        """Resolve plugin display names for a definition.

        Args:
            item: Declarative definition.
            entrypoint: Entry point from which the definition was loaded, if applicable.
            namespace: Optional plugin namespace to prefix the definition name.

        Returns:
            Tuple with a module name and a qualified name for a definition.
        """
        return (
            f'{entrypoint.value if entrypoint else getattr(item.runner, '__module__', None)}',
            f'{namespace or 'builtins'}.{item.name}',
        )

    def emit_plugin_issue(self, message: str,
                          entrypoint: 'EntryPoint | None' = None) -> Exception | None:
        """Emit a plugin warning or return the exception.

        Args:
            message: Warning message to emit.
            entrypoint: Entry point involved, if applicable.

        Returns:
            PluginError on strict mode, otherwise `None`
                with producing a PluginWarning.
        """
        if self.strict_mode:
            return PluginError(message, entrypoint=entrypoint)

        warn(message, category=PluginWarning, stacklevel=2)

        return None

    def _load_plugin(self, entrypoint: 'EntryPoint') -> None:
        """Load and register a single plugin entry point.

        Args:
            entrypoint: Entry point describing the plugin to load.

        Raises:
            PluginError: If any loading issues occur on strict mode.
        """
        try:
            plugin = entrypoint.load()

        except ValidationError as base:
            if error := self.emit_plugin_issue(
                f'Failed to validate entrypoint {entrypoint.name!r}',
                entrypoint,
            ):
                raise error from base
            return None

        except Exception as base:
            if error := self.emit_plugin_issue(
                f'Failed to load entrypoint {entrypoint.name!r}',
                entrypoint,
            ):
                raise error from base
            return None

        if not isinstance(plugin, Plugin):
            if error := self.emit_plugin_issue(
                f'Loaded from entrypoint {entrypoint.name!r} object is not a plugin',
                entrypoint,
            ):
                raise error
            return None

        for operator in plugin.operators:
            self.add_operator(operator, entrypoint, namespace=plugin.name)

        return None

    def clear(self) -> None:
        """Forget all registered operators."""
        self.operators = {}

    def load_plugins(self) -> None:
        """Load plugins via entry points and register their operators.

        Raises:
            PluginError: If any loading issues occur on strict mode.
        """
        from importlib.metadata import entry_points  # noqa: PLC0415

        for entrypoint in entry_points().select(group=ENTRYPOINT_GROUP):
            self._load_plugin(entrypoint)
