"""In-place configuration tree updates.

This module defines a mixin walking a configuration tree depth-first.
Every macro found below the root is replaced with its resolved value,
and branches inherit the entries of their sibling fallback template
(`$defaults`) before they are visited themselves.

Containers are copied before they are changed: fallback entries are
rebuilt for every branch, and mappings or lists returned by a macro are
rebuilt before they are written, so templates and repository sources
are never altered by a pass.

Updates happen in place. If resolving a macro fails, the error is
raised immediately and the tree is left partially updated: nodes
visited before the failure already hold their resolved values.
"""

import logging
from typing import TYPE_CHECKING, Any
from warnings import warn

from config_macros.errors import FallbackWarning
from config_macros.models import Macro
from config_macros.values import CONTAINERS, MAPPINGS, MISSING, copy_tree, format_path

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterable

if TYPE_CHECKING:
    from config_macros.settings import UpdaterSettings
    from config_macros.values import Lookup, Path, PathSegment

logger = logging.getLogger(__name__)

#: Values a traversal hands to the resolution engine.
_VISITED = (*CONTAINERS, Macro)


class TreeUpdaterMixin:
    """Mixin replacing macros of a whole configuration tree."""

    settings: 'UpdaterSettings'
    resolve: 'Callable[[Any, Path], Lookup]'

    def update_config[T](self, root: T, exclude: 'Collection[PathSegment]' = (),
                         initial_parent_key: str = '') -> T:
        """Replace all macros of a configuration tree.

        Every mapping and list below `root` is visited. Macros are
        replaced with their resolved value (`None` when a non-mandatory
        macro finds nothing). If a mapping holds a fallback template,
        its entries are copied onto each sibling branch lacking them
        and are then resolved in the context of that branch.

        Args:
            root: Configuration tree, changed in place. Values other
                than mappings and lists are returned untouched.
            exclude: Property names that are skipped at any level.
            initial_parent_key: Name of the property holding `root`,
                for trees that are a branch of a larger configuration.
                Parent-dependent keys use it as their parent.

        Returns:
            The given `root`, for chaining.

        Raises:
            ConfigError: If any macro fails to resolve. The tree is
                left partially updated.
        """
        if not isinstance(root, CONTAINERS):
            return root

        path: Path = [initial_parent_key] if initial_parent_key else []
        self._update_node(root, path, exclude)

        return root

    def _update_node(self, node: dict[Any, Any] | list[Any], path: 'Path',
                     exclude: 'Collection[PathSegment]') -> None:
        """Resolve the children of one node and descend into them."""
        fallback_key = self.settings.fallback_key
        fallback = None

        entries: Iterable[tuple[PathSegment, Any]]
        if isinstance(node, MAPPINGS):
            fallback = self._get_fallback(node, path)
            entries = list(node.items())
        else:
            entries = list(enumerate(node))

        for key, value in entries:
            if not isinstance(value, _VISITED) or key == fallback_key or key in exclude:
                continue

            path.append(key)
            try:
                result = self.resolve(value, path)
                if result is MISSING:
                    result = None

                if result is not value:
                    if isinstance(result, CONTAINERS):
                        result = copy_tree(result)
                    node[key] = result

                if isinstance(result, CONTAINERS):
                    if fallback and isinstance(result, MAPPINGS):
                        self._apply_fallback(result, fallback, path)
                    self._update_node(result, path, exclude)
            finally:
                path.pop()

    def _get_fallback(self, node: dict[Any, Any], path: 'Path') -> dict[Any, Any] | None:
        """Return the fallback template of a mapping, if it has a usable one."""
        fallback = node.get(self.settings.fallback_key)
        if fallback is None or isinstance(fallback, MAPPINGS):
            return fallback

        warn(
            f'Ignoring {self.settings.fallback_key!r} at {format_path(path) or '<root>'!r}: '
            f'expected a mapping, got {type(fallback).__name__}',
            category=FallbackWarning,
            stacklevel=4,
        )

        return None

    @staticmethod
    def _apply_fallback(target: dict[Any, Any], fallback: dict[Any, Any],
                        path: 'Path') -> None:
        """Copy template entries missing from a branch onto it."""
        for key, value in fallback.items():
            if key not in target:
                target[key] = copy_tree(value)
                logger.debug('Inherited %r at %r', key, format_path(path))
