"""Core exception hierarchy.

This module defines base error and warning types used across the library
to report file reading, YAML decoding, merging, operator resolution and
plugin loading failures in a structured way.

Every error renders as a single line that names the file and/or the tree
path involved, so it can be printed as is by the command line.
"""

from typing import TYPE_CHECKING, Any, TypedDict

from yaml.error import MarkedYAMLError

if TYPE_CHECKING:
    from importlib.metadata import EntryPoint
    from typing import Self

if TYPE_CHECKING:
    from yaml_graft.paths import Path


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Name of the source file where the error occurred.
    filename: str | None

    #: Line number in the source file.
    line_num: int | None
    #: Column number in the source file.
    column_num: int | None

    #: Tree location the error is about.
    path: 'Path | None'
    #: Name of the operator involved.
    operator: str | None

    #: Underlying exception that triggered formatting.
    error: Exception | None


class ErrorFormatter:
    """Utility class for formatting errors on a single line."""

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        The result has the shape
        `<filename>: <message> (line L, column C) at <path>: <cause>`
        with every part except the message optional.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location data.

        Returns:
            A fully formatted, single-line error message.
        """
        if not context:
            return message

        if filename := context.get('filename'):
            message = f'{filename}: {message}'

        message += cls.get_location_string(context)

        if (error := context.get('error')) is not None and not isinstance(error, MarkedYAMLError):
            message += f': {cls._flatten(str(error) or type(error).__name__)}'

        return message

    @classmethod
    def get_location_string(cls, context: ErrorContext) -> str:
        """Format source and tree location information.

        Args:
            context: Error context containing location metadata.

        Returns:
            A location suffix, possibly empty.
        """
        location = ''

        if (line_num := context.get('line_num')) is not None:
            location += f' (line {line_num + 1}'
            if (column_num := context.get('column_num')) is not None:
                location += f', column {column_num + 1}'
            location += ')'

        if (path := context.get('path')) is not None:
            location += f' at {path}'

        return location

    @staticmethod
    def _flatten(value: str) -> str:
        """Join the lines of a multi-line message."""
        return ' '.join(line.strip() for line in value.splitlines() if line.strip())


class PluginWarning(UserWarning):
    """Warning emitted for non-fatal plugin-related issues.

    This warning is used when a plugin cannot be loaded or an operator
    shadows an existing one, but the issue does not prevent further
    execution (when running in non-strict mode).
    """


class GraftError(Exception, ErrorFormatter):
    """Base exception for all yaml-graft errors.

    All custom exceptions raised by the library inherit from this class
    to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing location and cause.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String represenatation."""
        return self.format(self.message, self.context)

    @property
    def path(self) -> 'Path | None':
        """Tree location the error is about, if any."""
        return (self.context or {}).get('path')

    @property
    def filename(self) -> str | None:
        """Source file the error is about, if any."""
        return (self.context or {}).get('filename')

    def add_context(self, **values: Any) -> None:  # noqa: ANN401
        """Fill in missing context fields.

        Values already present in the context are kept, so the innermost
        raiser has the last word on where the error happened.

        Args:
            values: `ErrorContext` fields to add.
        """
        self.context = ErrorContext(**{**values, **(self.context or {})})  # type: ignore[typeddict-item]


class PluginError(GraftError):
    """Error raised for fatal plugin-related failures.

    This exception is raised when a plugin entry point is invalid,
    misconfigured, or fails to load in strict mode.
    """

    def __init__(self, message: str, *,
                 entrypoint: 'EntryPoint | None' = None) -> None:
        """Initialize a plugin error.

        Args:
            message: Human-readable error description.
            entrypoint: Optional plugin entry point associated with the error.
        """
        self.entrypoint = entrypoint

        super().__init__(message)


class FileReadError(GraftError):
    """Error raised when an input document can not be read."""

    @classmethod
    def from_os_error(cls, filename: str, error: OSError) -> 'Self':
        """Create an error from a failed read.

        Args:
            filename: Path of the input file.
            error: Exception raised by the filesystem.

        Returns:
            FileReadError naming the file and the reason.
        """
        reason = error.strerror or str(error)

        return cls(f'Error reading file {filename}: {reason}')


class YAMLDecodeError(GraftError):
    """Error raised when an input document is not valid YAML."""

    @classmethod
    def from_yaml_error(cls, error: MarkedYAMLError, *,
                        filename: str | None = None) -> 'Self':
        """Create a decode error from a YAML parsing failure.

        Args:
            error: Exception raised by the YAML parser.
            filename: Name of the decoded file.

        Returns:
            YAMLDecodeError with the position of the problem.
        """
        mark = error.problem_mark or error.context_mark

        error_context = ErrorContext(
            filename=filename,
            line_num=mark.line if mark else None,
            column_num=mark.column if mark else None,
            error=error,
        )

        message = 'Unable to parse YAML'
        if error.problem:
            message += f': {error.problem}'

        return cls(message, context=error_context)


class NonMapRootError(GraftError):
    """Error raised when the root of a document is not a mapping."""


class MergeError(GraftError):
    """Error raised when documents can not be merged as written.

    The merger records these errors while it keeps going and reports
    the first of them once all documents were processed.
    """


class ResolutionError(GraftError):
    """Base error for the operator resolution stage."""


class DependencyCycleError(ResolutionError):
    """Error raised when operators reference each other in a cycle."""

    def __init__(self, cycle: 'list[Path]') -> None:
        """Initialize a cycle error.

        Args:
            cycle: Paths of the operators forming the cycle, in order.
        """
        self.cycle = cycle

        chain = ' -> '.join(str(path) for path in (*cycle, cycle[0]))
        super().__init__(
            f'Cycle detected in operator references: {chain}',
            context=ErrorContext(path=cycle[0]),
        )


class UnresolvedReferenceError(ResolutionError):
    """Error raised when an operator references a missing location."""

    def __init__(self, reference: 'Path', *, path: 'Path',
                 operator: str | None = None) -> None:
        """Initialize an unresolved reference error.

        Args:
            reference: The missing location.
            path: Location of the operator call.
            operator: Name of the operator.
        """
        self.reference = reference

        super().__init__(
            f'Unable to resolve `{reference}`',
            context=ErrorContext(path=path, operator=operator),
        )


class UnknownOperatorError(ResolutionError):
    """Error raised when no operator is registered under a name."""

    def __init__(self, operator: str, *, path: 'Path') -> None:
        """Initialize an unknown operator error.

        Args:
            operator: Name used in the expression.
            path: Location of the operator call.
        """
        super().__init__(
            f'Unknown operator `{operator}`',
            context=ErrorContext(path=path, operator=operator),
        )


class OperatorEvaluationError(ResolutionError):
    """Error raised when an operator implementation fails."""

    @classmethod
    def from_exception(cls, error: Exception, *, operator: str,
                       path: 'Path') -> 'Self':
        """Wrap an exception raised by an operator implementation.

        Args:
            error: The underlying failure.
            operator: Name of the operator.
            path: Location of the operator call.

        Returns:
            OperatorEvaluationError carrying the cause.
        """
        return cls(
            f'Operator `{operator}` failed',
            context=ErrorContext(path=path, operator=operator, error=error),
        )


class YAMLEncodeError(GraftError):
    """Error raised when the resolved tree can not be serialized."""
