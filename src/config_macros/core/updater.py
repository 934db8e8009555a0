"""Configuration updater.

This module assembles the repository chain, the macro resolution engine
and the tree updater into `ConfigUpdater`, and provides the shared
process-wide instance.
"""

import os
from functools import cache
from typing import TYPE_CHECKING

from config_macros.settings import UpdaterSettings

from .repositories import RepositoriesMixin, Repository
from .resolver import MacroResolverMixin
from .traversal import TreeUpdaterMixin

if TYPE_CHECKING:
    from collections.abc import Mapping


class ConfigUpdater(TreeUpdaterMixin, MacroResolverMixin, RepositoriesMixin):
    """Resolve configuration macros from a chain of repositories.

    A new updater knows a single repository, the process environment,
    registered under `settings.environment_name` with the highest
    priority. Further repositories are added with `register()`; `reset()`
    brings the updater back to its initial state.

    The updater is not thread-safe. Repositories must not be registered
    or removed while a resolution is in progress.
    """

    def __init__(self, settings: UpdaterSettings | None = None,
                 environ: 'Mapping[str, str] | None' = None) -> None:
        """Initialize the updater.

        Args:
            settings: Updater settings. Read from the environment
                (`CONFIG_MACROS_*` variables) if not given.
            environ: Source of the built-in environment repository.
                Defaults to `os.environ`.
        """
        self.settings = settings or UpdaterSettings()
        self.environ = os.environ if environ is None else environ

        self._repositories: list[Repository] = []
        self.reset()

    def __repr__(self) -> str:
        """String representation."""
        return f'{type(self).__name__}(repositories={self.repository_names()!r})'


@cache
def get_updater() -> ConfigUpdater:
    """Return the shared updater of the process.

    The instance is created on first use. Call `reset()` on it to drop
    repositories registered by earlier callers.
    """
    return ConfigUpdater()
