"""Tests for error formatting."""

import pytest
import yaml

from yaml_graft.errors import (
    ErrorContext,
    ErrorFormatter,
    FileReadError,
    GraftError,
    OperatorEvaluationError,
    UnresolvedReferenceError,
    YAMLDecodeError,
)
from yaml_graft.paths import Path


@pytest.mark.parametrize('context, expected', (
    pytest.param(None, 'Problem', id='no context'),
    pytest.param(ErrorContext(filename='a.yml'), 'a.yml: Problem', id='filename'),
    pytest.param(
        ErrorContext(filename='a.yml', line_num=0, column_num=4),
        'a.yml: Problem (line 1, column 5)',
        id='position',
    ),
    pytest.param(ErrorContext(line_num=9), 'Problem (line 10)', id='line only'),
    pytest.param(ErrorContext(path=Path.parse('jobs.0.name')), 'Problem at jobs.0.name', id='path'),
    pytest.param(ErrorContext(path=Path()), 'Problem at $', id='root path'),
    pytest.param(
        ErrorContext(path=Path.parse('a'), error=KeyError('b')),
        "Problem at a: 'b'",
        id='cause',
    ),
    pytest.param(
        ErrorContext(error=RuntimeError('first\n  second\n')),
        'Problem: first second',
        id='multi-line cause',
    ),
    pytest.param(ErrorContext(error=RuntimeError()), 'Problem: RuntimeError', id='empty cause'),
))
def test_format(context: ErrorContext | None, expected: str) -> None:
    """Format errors on a single line."""
    assert ErrorFormatter.format('Problem', context) == expected


def test_add_context() -> None:
    """Fill missing context fields only."""
    error = UnresolvedReferenceError(Path.parse('a.b'), path=Path.parse('inner'))

    error.add_context(path=Path.parse('outer'), filename='doc.yml', operator='grab')

    assert error.path == Path.parse('inner')
    assert error.filename == 'doc.yml'
    assert str(error) == 'doc.yml: Unable to resolve `a.b` at inner'


def test_add_context_without_context() -> None:
    """Create the context of errors raised without one."""
    error = GraftError('Problem')

    error.add_context(path=Path.parse('x'))

    assert error.message == 'Problem'
    assert str(error) == 'Problem at x'


def test_file_read_error() -> None:
    """Name the file and the reason of a failed read."""
    error = FileReadError.from_os_error('a.yml', FileNotFoundError(2, 'No such file or directory'))

    assert str(error) == 'Error reading file a.yml: No such file or directory'


def test_yaml_decode_error() -> None:
    """Keep the position of YAML syntax errors."""
    try:
        yaml.safe_load('key: [unclosed\n')
    except yaml.MarkedYAMLError as base:
        error = YAMLDecodeError.from_yaml_error(base, filename='a.yml')

    assert error.filename == 'a.yml'
    assert error.context is not None
    assert error.context['line_num'] is not None
    assert str(error).startswith('a.yml: Unable to parse YAML: ')
    assert '\n' not in str(error)


def test_operator_evaluation_error() -> None:
    """Wrap operator failures with their location."""
    error = OperatorEvaluationError.from_exception(
        ZeroDivisionError('division by zero'),
        operator='calc',
        path=Path.parse('meta.ratio'),
    )

    assert str(error) == 'Operator `calc` failed at meta.ratio: division by zero'
