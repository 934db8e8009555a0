"""Repository chain management.

This module defines a mixin holding the ordered list of value sources
("repositories") searched when a macro is resolved. The position of a
repository is its priority: index 0 is asked first.
"""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pydantic import Field, ValidationError

from config_macros.builtins.resolvers import default_resolver
from config_macros.errors import RepositoryError
from config_macros.models import SchemaModel
from config_macros.names import RepositoryName  # noqa: TC001

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from typing import Self

if TYPE_CHECKING:
    from config_macros.settings import UpdaterSettings
    from config_macros.values import Lookup, PathSegment, Resolver

logger = logging.getLogger(__name__)


class Repository(SchemaModel):
    """A named value source paired with its resolver."""

    name: RepositoryName

    source: Any = Field(
        title='Source',
        description='Object searched by the resolver, usually a nested mapping.',
    )

    resolver: Callable[..., Any] = Field(
        default=default_resolver,
        title='Resolver',
        description='Called as `resolver(source, segments, macro_node, path)`.',
    )

    def lookup(self, segments: list[str], node: Any,  # noqa: ANN401
               path: 'Sequence[PathSegment]') -> 'Lookup':
        """Search the source for a split lookup key."""
        return self.resolver(self.source, segments, node, path)


class RepositoriesMixin:
    """Mixin defining the repository chain of a config updater.

    Implementers provide `settings` and `environ`; the built-in
    environment repository is registered from them on `reset()`.
    """

    settings: 'UpdaterSettings'
    environ: 'Mapping[str, str]'

    _repositories: list[Repository]

    @property
    def repositories(self) -> tuple[Repository, ...]:
        """Snapshot of the registered repositories in priority order."""
        return tuple(self._repositories)

    def register(self, name: str, source: Any,  # noqa: ANN401
                 index: int | None = None,
                 resolver: 'Resolver | None' = None) -> 'Self':
        """Register a repository.

        A repository already registered under the same name is removed
        first, so a name is never present twice.

        Args:
            name: Unique name of the repository.
            source: Object searched for values, usually a nested mapping.
            index: Position in the chain; lower positions are asked
                first. Defaults to the end of the chain. As with
                `list.insert`, negative values count from the end and
                out-of-range values are clamped.
            resolver: Optional lookup function. Defaults to
                `default_resolver`, which walks nested mappings.

        Returns:
            The updater itself, for chaining.

        Raises:
            RepositoryError: If the name is empty or not a string, or
                the resolver is not callable.
        """
        try:
            repository = Repository(
                name=name,
                source=source,
                resolver=resolver or default_resolver,
            )
        except ValidationError as base:
            raise RepositoryError(f'Invalid repository {name!r}') from base

        replaced = self.unregister(name)

        if index is None:
            index = len(self._repositories)
        self._repositories.insert(index, repository)

        logger.debug(
            'Repository %r %s at position %d',
            name, 'replaced' if replaced else 'registered',
            self._repositories.index(repository),
        )

        return self

    def unregister(self, name: str) -> bool:
        """Remove a repository by name.

        Args:
            name: Name given on registration.

        Returns:
            `True` if a repository was removed, `False` if the name is
            not registered.
        """
        for position, repository in enumerate(self._repositories):
            if repository.name == name:
                del self._repositories[position]
                logger.debug('Repository %r unregistered', name)
                return True

        return False

    def repository_names(self) -> list[str]:
        """Return the registered names in priority order."""
        return [repository.name for repository in self._repositories]

    def reset(self) -> 'Self':
        """Restore the chain to the built-in environment repository only.

        Returns:
            The updater itself, for chaining.
        """
        self._repositories = []
        self.register(self.settings.environment_name, self.environ, 0)

        return self
