"""Tests configurations and fixtures."""

import logging
from importlib.metadata import EntryPoint, EntryPoints
from typing import TYPE_CHECKING

import pytest

from yaml_graft.core import Evaluator, OperatorRegistry
from yaml_graft.log import LOGGER_NAME
from yaml_graft.settings import GraftSettings

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem
    from pytest_mock import MockerFixture, MockType

if TYPE_CHECKING:
    from yaml_graft.extensions import Plugin
    from yaml_graft.values import Tree

#: Environment variables read by `GraftSettings`.
SETTINGS_VARIABLES = (
    'DEBUG',
    'GRAFT_DEBUG',
    'GRAFT_CONCOURSE',
    'GRAFT_STRICT',
    'GRAFT_LOAD_PLUGINS',
    'GRAFT_DIRECTIVE_PATTERN',
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove settings variables inherited from the calling shell."""
    for name in SETTINGS_VARIABLES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_logging() -> 'Iterator[None]':
    """Drop handlers installed by the command line after each test."""
    yield

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def settings() -> GraftSettings:
    """Provide default settings without plugin discovery."""
    return GraftSettings(load_plugins=False)


@pytest.fixture
def registry(settings: GraftSettings) -> OperatorRegistry:
    """Provide a registry holding the built-in operators only."""
    return OperatorRegistry(settings)


@pytest.fixture
def resolve(settings: GraftSettings,
            registry: OperatorRegistry) -> 'Callable[..., Tree]':
    """Provide a helper resolving a tree in place and returning it."""
    def run(tree: 'Tree', prune: tuple[str, ...] = ()) -> 'Tree':
        evaluator = Evaluator(tree, settings, registry)
        evaluator.run(prune)
        return evaluator.tree

    return run


@pytest.fixture
def patch_entrypoints(mocker: 'MockerFixture') -> 'Callable[..., MockType]':
    """Provide a factory for mocking `importlib.metadata.entry_points`.

    Returns a callable that patches `entry_points()` to simulate
    discovery of plugins in the `graft_plugins` entry point group.
    """
    def patch(*plugins: 'Plugin | object', raises: Exception | None = None) -> 'MockType':
        """Patch `entry_points` with a controlled plugin configuration.

        Args:
            plugins: Objects to be returned by `EntryPoint.load()`.
                If empty, no entry points are registered.
            raises: Exception to raise when `EntryPoint.load()` is called.

        Returns:
            A mock patch object replacing `importlib.metadata.entry_points`.
        """
        entrypoints = []
        for plugin in plugins:
            ep = mocker.Mock(spec=EntryPoint)
            ep.group = 'graft_plugins'
            ep.name = 'tests'
            ep.value = 'tests.examples.plugins:plugin'
            ep.load.return_value = plugin
            if raises is not None:
                ep.load.side_effect = raises
            entrypoints.append(ep)

        return mocker.patch(
            'importlib.metadata.entry_points',
            return_value=EntryPoints(entrypoints),
        )

    return patch


#: Documents merged by the file and command line tests.
MERGE_ASSETS = {
    'assets/merge/first.yml': """\
key: value
array_append:
- one
array_prepend:
- five
array_inline:
- name: first_elem
  val: first
- second_elem
map:
  key: value
""",
    'assets/merge/second.yml': """\
key: overridden
array_append:
- (( append ))
- two
- three
array_prepend:
- (( prepend ))
- three
- four
array_inline:
- name: first_elem
  val: overwritten
- second_elem was overwritten
- third elem is appended
map:
  key2: val2
""",
    'assets/merge/bad.yml': """\
- 1
- 2
""",
    'assets/merge/operators.yml': """\
meta:
  name: shop
  zones: [z1, z2]
jobs:
- name: api
  instances: 2
- name: web
  instances: (( grab jobs.api.instances ))
  zones: (( grab meta.zones ))
  hostname: (( concat meta.name "-web" ))
""",
    'assets/merge/concourse.yml': """\
password: {{db-password}}
""",
}


@pytest.fixture
def merge_assets(fs: 'FakeFilesystem') -> 'FakeFilesystem':
    """Provide a fake filesystem holding the merge documents."""
    for path, contents in MERGE_ASSETS.items():
        fs.create_file(path, contents=contents)

    return fs
