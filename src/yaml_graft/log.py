"""Debug logging setup.

The library logs through per-module loggers below `yaml_graft` and never
configures handlers itself. The command line calls `configure_logging`,
which routes those records to standard error with every line prefixed
by `DEBUG> ` when debugging is enabled.
"""

import logging
import sys
from typing import TYPE_CHECKING, Final, TextIO

if TYPE_CHECKING:
    from yaml_graft.settings import GraftSettings

LOGGER_NAME: Final = 'yaml_graft'
LINE_PREFIX: Final = 'DEBUG> '

_HANDLER_ATTR: Final = '_yaml_graft_handler'


class PrefixFormatter(logging.Formatter):
    """Formatter prefixing every line of a record."""

    def __init__(self, prefix: str = LINE_PREFIX) -> None:
        super().__init__('%(message)s')
        self.prefix = prefix

    def format(self, record: logging.LogRecord) -> str:
        """Format a record and prefix each of its lines."""
        return '\n'.join(
            f'{self.prefix}{line}'
            for line in super().format(record).split('\n')
        )


def configure_logging(settings: 'GraftSettings', *,
                      stream: TextIO | None = None) -> logging.Logger:
    """Attach the stderr handler to the package logger.

    Calling this function again replaces the handler installed by the
    previous call, so the command line can be invoked repeatedly in one
    process (as tests do).

    Args:
        settings: Run settings; `debug` selects the level.
        stream: Output stream, standard error by default.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_ATTR, False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(PrefixFormatter())
    setattr(handler, _HANDLER_ATTR, True)

    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if settings.debug else logging.WARNING)

    if settings.debug:
        logger.debug('Debugging enabled')

    return logger
