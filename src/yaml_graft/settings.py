"""Runtime settings.

Settings are resolved once, from keyword arguments (command-line flags)
and environment variables, and then handed explicitly to the merger, the
evaluator and the operator registry. Nothing in the core reads process
state on its own.
"""

from re import Pattern
from re import compile as regexp
from re import error as RegexError
from typing import Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import SettingsConfigDict

from yaml_graft.models import SettingsModel

#: Values of the `DEBUG` variable that keep debugging disabled.
_FALSY = frozenset({'', '0', 'false'})

#: Default marker for sequence merge directives: `(( append ))` and friends.
DEFAULT_DIRECTIVE_PATTERN = r'^\(\(\s*(append|prepend|inline|replace)\s*\)\)$'


class GraftSettings(SettingsModel):
    """Configuration of a merge and resolve run."""

    model_config = SettingsConfigDict(
        env_prefix='GRAFT_',
    )

    debug: bool = Field(
        default=False,
        validation_alias=AliasChoices('debug', 'DEBUG', 'GRAFT_DEBUG'),
        title='Debug output',
        description=(
            'Log every processed file, the intermediate trees and each '
            'operator evaluation on standard error. Any non-empty value of '
            'the `DEBUG` variable other than `false` or `0` enables it.'
        ),
    )

    concourse: bool = Field(
        default=False,
        title='Concourse quoting',
        description=(
            'Quote `{{placeholder}}` tokens before parsing and unquote them '
            'in the output, so CI templating survives the YAML parser.'
        ),
    )

    strict: bool = Field(
        default=False,
        title='Strict plugins',
        description='Fail instead of warning on plugin loading or shadowing issues.',
    )

    load_plugins: bool = Field(
        default=True,
        title='Load plugins',
        description='Discover operators from the `graft_plugins` entry point group.',
    )

    directive_pattern: Pattern[str] = Field(
        default=regexp(DEFAULT_DIRECTIVE_PATTERN),
        title='Merge directive marker',
        description=(
            'Regular expression matching the leading element of a sequence '
            'that declares its merge directive. The first group must capture '
            'one of `append`, `prepend`, `inline` or `replace`.'
        ),
    )

    @field_validator('debug', mode='before')
    @classmethod
    def _parse_debug(cls, value: Any) -> Any:  # noqa: ANN401
        """Accept any non-falsy string as enabling."""
        if isinstance(value, str):
            return value.strip().lower() not in _FALSY

        return value

    @field_validator('directive_pattern', mode='before')
    @classmethod
    def _compile_pattern(cls, value: Any) -> Any:  # noqa: ANN401
        """Compile string patterns."""
        if isinstance(value, str):
            try:
                return regexp(value)

            except RegexError as base:
                raise ValueError(f'Invalid directive pattern: {base}') from base

        return value
