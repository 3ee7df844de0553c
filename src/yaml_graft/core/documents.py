"""Reading and merging input documents."""

from logging import getLogger
from pathlib import Path as FilePath
from typing import TYPE_CHECKING

from yaml import safe_dump

from yaml_graft.codec import decode, quote_concourse
from yaml_graft.errors import ErrorContext, FileReadError, YAMLDecodeError

from .merger import Merger

if TYPE_CHECKING:
    from collections.abc import Iterable
    from os import PathLike

if TYPE_CHECKING:
    from yaml_graft.settings import GraftSettings
    from yaml_graft.values import Tree

logger = getLogger(__name__)


def read_document(filename: 'str | PathLike[str]', settings: 'GraftSettings') -> 'Tree':
    """Read and decode a single document.

    Args:
        filename: Path of the YAML file.
        settings: Run settings; `concourse` enables placeholder quoting.

    Returns:
        The decoded document.

    Raises:
        FileReadError: If the file can not be read.
        YAMLDecodeError: If the file is not valid YAML.
        NonMapRootError: If the document root is not a mapping.
    """
    try:
        data = FilePath(filename).read_bytes()

    except OSError as base:
        raise FileReadError.from_os_error(str(filename), base) from base

    if settings.concourse:
        try:
            data = quote_concourse(data)

        except UnicodeDecodeError as base:
            raise YAMLDecodeError(
                'Unable to parse YAML',
                context=ErrorContext(filename=str(filename), error=base),
            ) from base

    return decode(data, filename=str(filename))


def merge_documents(root: 'Tree', filenames: 'Iterable[str | PathLike[str]]',
                    settings: 'GraftSettings', *,
                    merger: Merger | None = None) -> None:
    """Merge documents, in order, into a root tree.

    Reading stops at the first file that can not be read or decoded.
    Problems found while merging are reported once all documents were
    merged.

    Args:
        root: Tree receiving the documents, mutated.
        filenames: Paths of the YAML files, lowest precedence first.
        settings: Run settings.
        merger: Merger to use; a new one is created if omitted.

    Raises:
        FileReadError: If a file can not be read.
        YAMLDecodeError: If a file is not valid YAML.
        NonMapRootError: If a document root is not a mapping.
        MergeError: If a document can not be merged as written.
    """
    if merger is None:
        merger = Merger(settings)

    for filename in filenames:
        logger.debug("Processing file '%s'", filename)
        merger.merge(root, read_document(filename, settings))

        if settings.debug:
            logger.debug(
                "Current data after processing '%s':\n%s",
                filename,
                safe_dump(root, default_flow_style=False).rstrip('\n'),
            )

    if error := merger.error():
        raise error
