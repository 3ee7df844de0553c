"""Command line interface.

    graft [-D|--debug] [-v|--version] [--concourse] merge [--prune PATH]... FILE...

Merges the files in order, resolves operators, prunes the given paths and
prints the result as YAML. Errors are printed on standard error as one
line and end the process with status 2; usage problems use status 1.
"""

from typing import TYPE_CHECKING, Any, Final

from click import (
    Command,
    Context,
    Group,
    Option,
    UsageError,
    argument,
    echo,
    group,
    option,
    pass_context,
)
from click import Path as PathParam
from pydantic import ValidationError

from yaml_graft import __version__
from yaml_graft.codec import encode
from yaml_graft.core import Evaluator, merge_documents
from yaml_graft.errors import GraftError
from yaml_graft.log import configure_logging
from yaml_graft.settings import GraftSettings

if TYPE_CHECKING:
    from yaml_graft.values import Tree

#: Exit status for failed runs.
EXIT_FAILURE: Final = 2
#: Exit status for usage errors.
EXIT_USAGE: Final = 1

InputFilepath = PathParam(
    dir_okay=False,
    path_type=str,
)


def _usage(ctx: Context) -> None:
    """Print help on standard error and exit."""
    echo(ctx.get_help(), err=True)
    ctx.exit(EXIT_USAGE)


def _version(ctx: Context, _: Option, value: bool) -> None:
    """Print the version on standard error and exit."""
    if not value or ctx.resilient_parsing:
        return

    echo(f'{ctx.find_root().info_name} - Version {__version__}', err=True)
    ctx.exit()


class UsageCommand(Command):
    """Command reporting bad arguments with the usage status."""

    def make_context(self, info_name: str | None, args: list[str],
                     parent: Context | None = None, **extra: Any) -> Context:
        """Parse arguments, marking usage errors with the usage status."""
        try:
            return super().make_context(info_name, args, parent, **extra)

        except UsageError as error:
            error.exit_code = EXIT_USAGE
            raise


class CommandGroup(UsageCommand, Group):
    """Command group reporting unknown commands with the usage status."""

    command_class = UsageCommand

    def resolve_command(self, ctx: Context,
                        args: list[str]) -> tuple[str | None, Command | None, list[str]]:
        """Resolve a subcommand, printing help for unknown ones."""
        try:
            return super().resolve_command(ctx, args)

        except UsageError:
            _usage(ctx)
            raise


@group(
    name='graft',
    cls=CommandGroup,
    help='Merge YAML documents and resolve (( operator )) expressions.',
    invoke_without_command=True,
)
@option('-D', '--debug', is_flag=True, help='Enable debugging.')
@option(
    '--concourse',
    is_flag=True,
    default=False,
    help='Pre/Post-process YAML for Concourse CI (handles {{ }} quoting).',
)
@option(
    '-v',
    '--version',
    is_flag=True,
    expose_value=False,
    is_eager=True,
    callback=_version,
    help='Show the version and exit.',
)
@pass_context
def cli(ctx: Context, debug: bool, concourse: bool) -> None:
    """Root command: resolve settings and logging."""
    # Flags only ever enable; absent flags leave the environment in charge.
    overrides = {
        name: True
        for name, value in (('debug', debug), ('concourse', concourse))
        if value
    }

    try:
        settings = GraftSettings(**overrides)

    except ValidationError as base:
        echo(f'Invalid settings: {base.errors(include_url=False)[0]["msg"]}', err=True)
        ctx.exit(EXIT_USAGE)

    configure_logging(settings)
    ctx.obj = settings

    if ctx.invoked_subcommand is None:
        _usage(ctx)


@cli.command(
    name='merge',
    help='Merges file2.yml through fileN.yml on top of file1.yml.',
)
@option(
    '--prune',
    multiple=True,
    metavar='PATH',
    help='Specify keys to prune from final output (may be specified more than once).',
)
@argument('files', nargs=-1, type=InputFilepath)
@pass_context
def merge(ctx: Context, prune: tuple[str, ...], files: tuple[str, ...]) -> None:
    """Merge, resolve and print documents."""
    if not files:
        _usage(ctx)

    settings: GraftSettings = ctx.obj
    root: Tree = {}

    try:
        merge_documents(root, files, settings)

        evaluator = Evaluator(root, settings)
        evaluator.run(prune)

        output = encode(evaluator.tree, concourse=settings.concourse)

    except (GraftError, ValueError) as error:
        echo(str(error), err=True)
        ctx.exit(EXIT_FAILURE)

    echo(f'{output}\n', nl=False)


if __name__ == '__main__':
    cli()
