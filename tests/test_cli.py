"""Tests for the command line interface."""

from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

from yaml_graft import __version__
from yaml_graft.__main__ import cli

if TYPE_CHECKING:
    from collections.abc import Callable

    from click.testing import Result
    from pyfakefs.fake_filesystem import FakeFilesystem
    from pytest_mock import MockType

MERGED = """\
array_append:
- one
- two
- three
array_inline:
- name: first_elem
  val: overwritten
- second_elem was overwritten
- third elem is appended
array_prepend:
- three
- four
- five
key: overridden
map:
  key: value
  key2: val2

"""


@pytest.fixture(autouse=True)
def no_plugins(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Hide installed plugins from the command line."""
    patch_entrypoints()


def invoke(*args: str, env: dict[str, str] | None = None) -> 'Result':
    """Run the command line with arguments."""
    return CliRunner().invoke(cli, args, env=env)


@pytest.mark.parametrize('args', (
    pytest.param((), id='no arguments'),
    pytest.param(('fdsafdada',), id='unknown command'),
    pytest.param(('merge',), id='no files to merge'),
    pytest.param(('merge', '--bogus', 'x.yml'), id='unknown merge option'),
    pytest.param(('--bogus',), id='unknown global option'),
))
def test_usage(args: tuple[str, ...]) -> None:
    """Print usage and exit with status 1 on bad arguments."""
    result = invoke(*args)

    assert result.exit_code == 1
    assert result.stdout == ''
    assert 'Usage:' in result.stderr


@pytest.mark.parametrize('flag', (
    pytest.param('--version', id='long'),
    pytest.param('-v', id='short'),
))
def test_version(flag: str) -> None:
    """Print the version on standard error."""
    result = invoke(flag)

    assert result.exit_code == 0
    assert result.stdout == ''
    assert result.stderr == f'graft - Version {__version__}\n'


@pytest.mark.usefixtures('merge_assets')
def test_merge() -> None:
    """Print the merged document on success."""
    result = invoke('merge', 'assets/merge/first.yml', 'assets/merge/second.yml')

    assert result.exit_code == 0
    assert result.stdout == MERGED
    assert result.stderr == ''


@pytest.mark.usefixtures('merge_assets')
def test_merge_operators_and_prune() -> None:
    """Resolve operators and prune helper keys."""
    result = invoke('merge', '--prune', 'meta', '--prune', 'jobs.api', 'assets/merge/operators.yml')

    assert result.exit_code == 0
    assert result.stdout == (
        'jobs:\n'
        '- hostname: shop-web\n'
        '  instances: 2\n'
        '  name: web\n'
        '  zones:\n'
        '  - z1\n'
        '  - z2\n'
        '\n'
    )


@pytest.mark.usefixtures('merge_assets')
def test_merge_concourse() -> None:
    """Pass Concourse placeholders through."""
    result = invoke('--concourse', 'merge', 'assets/merge/concourse.yml')

    assert result.exit_code == 0
    assert result.stdout == 'password: {{db-password}}\n\n'


@pytest.mark.usefixtures('merge_assets')
@pytest.mark.parametrize('args, message', (
    pytest.param(
        ('assets/merge/bad.yml',),
        'assets/merge/bad.yml: Root of YAML document is not a hash/map:',
        id='non-map root',
    ),
    pytest.param(
        ('assets/merge/nonexistent.yml', 'assets/merge/first.yml'),
        'Error reading file assets/merge/nonexistent.yml:',
        id='missing file',
    ),
    pytest.param(
        ('--prune', 'a..b', 'assets/merge/first.yml'),
        "Invalid path 'a..b'",
        id='invalid prune path',
    ),
))
def test_merge_failure(args: tuple[str, ...], message: str) -> None:
    """Print errors on one line and exit with status 2."""
    result = invoke('merge', *args)

    assert result.exit_code == 2
    assert result.stdout == ''
    assert result.stderr.startswith(message)
    assert result.stderr.count('\n') == 1


def test_merge_resolution_failure(merge_assets: 'FakeFilesystem') -> None:
    """Report operator failures with their location."""
    merge_assets.create_file('cycle.yml', contents='a: (( grab b ))\nb: (( grab a ))\n')

    result = invoke('merge', 'cycle.yml')

    assert result.exit_code == 2
    assert result.stderr == 'Cycle detected in operator references: a -> b -> a at a\n'


@pytest.mark.parametrize('args, env', (
    pytest.param(('-D',), None, id='short flag'),
    pytest.param(('--debug',), None, id='long flag'),
    pytest.param((), {'DEBUG': 'tRuE'}, id='true variable'),
    pytest.param((), {'DEBUG': '1'}, id='numeric variable'),
    pytest.param((), {'DEBUG': 'randomval'}, id='any variable'),
    pytest.param((), {'GRAFT_DEBUG': 'yes'}, id='prefixed variable'),
))
def test_debug_enabled(args: tuple[str, ...], env: dict[str, str] | None) -> None:
    """Enable debugging from flags or the environment."""
    result = invoke(*args, env=env)

    assert result.stderr.startswith('DEBUG> Debugging enabled\n')


@pytest.mark.parametrize('value', (
    pytest.param('fAlSe', id='false'),
    pytest.param('0', id='zero'),
    pytest.param('', id='empty'),
))
def test_debug_disabled(value: str) -> None:
    """Keep debugging disabled for falsy variables."""
    result = invoke(env={'DEBUG': value})

    assert 'DEBUG>' not in result.stderr


@pytest.mark.usefixtures('merge_assets')
def test_debug_merge_output() -> None:
    """Trace merging on standard error without touching the output."""
    result = invoke('-D', 'merge', 'assets/merge/first.yml', 'assets/merge/second.yml')

    assert result.exit_code == 0
    assert result.stdout == MERGED
    assert "DEBUG> Processing file 'assets/merge/second.yml'\n" in result.stderr
    assert all(line.startswith('DEBUG> ') for line in result.stderr.splitlines())


def test_invalid_settings() -> None:
    """Exit with status 1 on invalid settings."""
    result = invoke('merge', 'file.yml', env={'GRAFT_DIRECTIVE_PATTERN': '(('})

    assert result.exit_code == 1
    assert result.stderr.startswith('Invalid settings: ')
