"""Command-line utilities for config-macros.

The `resolve` command loads a YAML configuration, replaces its macros
with values from the environment and from repository files, and prints
the result. The `get` command looks up a single key.
"""

import logging
from json import dumps
from pathlib import Path
from typing import TYPE_CHECKING, Any

from click import BadParameter, ClickException, Context, argument, echo, group, option
from click import Path as PathParam
from yaml import safe_dump

from config_macros.core import ConfigUpdater
from config_macros.errors import ConfigError
from config_macros.loader import load_file
from config_macros.values import MISSING

if TYPE_CHECKING:
    from click import Parameter

LOG_FORMAT = '%(levelname)s %(name)s: %(message)s'

InputFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)


def _parse_repositories(ctx: Context, param: 'Parameter',
                        values: tuple[str, ...]) -> list[tuple[str, Path]]:
    """Split `NAME=FILE` repository options."""
    repositories = []
    for value in values:
        name, separator, filename = value.partition('=')
        if not separator or not name or not filename:
            raise BadParameter(f'{value!r} is not in NAME=FILE form', ctx=ctx, param=param)
        repositories.append((name, Path(filename)))

    return repositories


def _make_updater(repositories: list[tuple[str, Path]], no_env: bool) -> ConfigUpdater:  # noqa: FBT001
    """Build an updater with the repositories given on the command line."""
    updater = ConfigUpdater()
    if no_env:
        updater.unregister(updater.settings.environment_name)

    for name, filename in repositories:
        updater.register(name, load_file(filename))

    return updater


def _dump(value: Any, as_json: bool = False) -> str:  # noqa: ANN401, FBT001, FBT002
    """Serialize a value for standard output."""
    if as_json:
        return dumps(value, ensure_ascii=False, indent=4, default=str)

    if isinstance(value, (dict, list)):
        return safe_dump(value, sort_keys=False, allow_unicode=True).rstrip()

    return str(value)


repository_option = option(
    '-r', '--repository', 'repositories',
    multiple=True,
    metavar='NAME=FILE',
    callback=_parse_repositories,
    help='Register a YAML or JSON file as a repository (repeatable, in priority order).',
)

no_env_option = option(
    '--no-env',
    is_flag=True,
    help='Do not look up values in the process environment.',
)


@group(help='Command-line utilities for resolving configuration macros.')
@option('-v', '--verbose', is_flag=True, help='Log resolution details.')
def cli(verbose: bool) -> None:  # noqa: FBT001
    """Root CLI group for config-macros tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
    )


@cli.command(
    name='resolve',
    help='Resolve all macros of a YAML configuration and print the result.',
)
@argument('config', type=InputFilepath)
@repository_option
@option(
    '-x', '--exclude',
    multiple=True,
    help='Property name left untouched at any level (repeatable).',
)
@option(
    '-p', '--parent',
    default='',
    help='Name of the property holding CONFIG, for parent-dependent keys.',
)
@no_env_option
@option('--json', 'as_json', is_flag=True, help='Print JSON instead of YAML.')
def resolve_config(config: Path, repositories: list[tuple[str, Path]],  # noqa: PLR0913
                   exclude: tuple[str, ...], parent: str,
                   no_env: bool, as_json: bool) -> None:  # noqa: FBT001
    """Resolve a configuration file."""
    try:
        updater = _make_updater(repositories, no_env)
        data = updater.update_config(load_file(config), exclude, parent)

    except ConfigError as error:
        raise ClickException(str(error)) from error

    echo(_dump(data, as_json))


@cli.command(
    name='get',
    help='Print the value of a single key. Exits with status 1 when not found.',
)
@argument('key')
@repository_option
@option('-d', '--default', help='Value printed when the key is not found.')
@no_env_option
def get_value(key: str, repositories: list[tuple[str, Path]],
              default: str | None, no_env: bool) -> None:  # noqa: FBT001
    """Look up one key."""
    try:
        updater = _make_updater(repositories, no_env)
        value = updater.get_value(key, MISSING if default is None else default)

    except ConfigError as error:
        raise ClickException(str(error)) from error

    if value is MISSING:
        raise ClickException(f'No value for {key!r}')

    echo(_dump(value))


if __name__ == '__main__':
    cli()
