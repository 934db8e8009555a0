"""Macro resolution engine.

This module defines a mixin that turns a single configuration value
into its effective value. Plain values pass through untouched; macros
are looked up in the repository chain, fall back to their defaults,
go through their callback and are finally checked for `mandatory`.
"""

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from config_macros.errors import MandatoryValueMissing
from config_macros.models import Macro, is_macro, macro
from config_macros.names import DEFAULT_SEGMENT, PARENT_MARKER, DefaultSegment
from config_macros.values import MISSING, format_path

if TYPE_CHECKING:
    from config_macros.core.repositories import Repository
    from config_macros.settings import UpdaterSettings
    from config_macros.values import Lookup, PathSegment


logger = logging.getLogger(__name__)


def find_parent_key(path: 'Sequence[PathSegment]') -> str:
    """Find the name of the nearest named ancestor of a node.

    The last segment is the node's own key and is skipped. A run of
    sequence indices is skipped together with the property holding the
    sequence, so items of `servers: [...]` take the parent of `servers`.
    Synthetic default segments are ignored, so a default macro sees the
    same parent as the macro declaring it.

    Args:
        path: Keys and indices from the root to the node.

    Returns:
        The ancestor key, or an empty string if there is none.
    """
    segments = [segment for segment in path if not isinstance(segment, DefaultSegment)]
    last = len(segments) - 1
    position = last

    while position >= 0:
        if isinstance(segments[position], str):
            if position < last:
                return segments[position]
            position -= 1
        else:
            while position >= 0 and not isinstance(segments[position], str):
                position -= 1
            position -= 1

    return ''


class MacroResolverMixin:
    """Mixin resolving macros against the repository chain."""

    settings: 'UpdaterSettings'
    repositories: tuple['Repository', ...]

    def resolve(self, value: Any,  # noqa: ANN401
                path: 'Sequence[PathSegment] | None' = None) -> 'Lookup':
        """Resolve a configuration value.

        Args:
            value: Any configuration value. Only macros (`Macro`
                instances or mappings with a `$$` key) are resolved;
                every other value is returned unchanged.
            path: Keys and indices from the root to the value. Used to
                expand parent-dependent keys and for error messages.

        Returns:
            The effective value, or `MISSING` if a non-mandatory macro
            found nothing.

        Raises:
            InvalidMacroKey: If the macro key is empty or not a string.
            InvalidCallback: If the macro callback is not callable.
            MandatoryValueMissing: If a mandatory macro found nothing.
        """
        if not is_macro(value):
            return value

        path = list(path or ())
        definition = value if isinstance(value, Macro) else Macro.from_node(value, path)

        search_key = self.expand_key(definition.key, path)
        result = self.lookup(search_key, value, path)

        if result is MISSING and definition.has_default:
            logger.debug('Using default of %r at %r', search_key, format_path(path))
            result = self.resolve(definition.default, [*path, DEFAULT_SEGMENT])

        if definition.callback is not None:
            result = definition.callback(result, value, path)

        if result is MISSING and definition.mandatory:
            raise MandatoryValueMissing.at(
                f'Property {format_path(path)!r} is mandatory '
                f'but {search_key!r} has no value',
                path, value,
            )

        return result

    def lookup(self, search_key: str, node: Any = None,  # noqa: ANN401
               path: 'Sequence[PathSegment]' = ()) -> 'Lookup':
        """Ask each repository in priority order for a key.

        Args:
            search_key: Expanded lookup key, split on the path separator.
            node: Macro node being resolved, passed to the resolvers.
            path: Path of the macro node, passed to the resolvers.

        Returns:
            The first value that is not `MISSING`, or `MISSING`.
        """
        segments = search_key.split(self.settings.path_separator)

        for repository in self.repositories:
            result = repository.lookup(segments, node, path)
            if result is not MISSING:
                logger.debug('Key %r found in repository %r', search_key, repository.name)
                return result

        return MISSING

    def expand_key(self, key: str, path: 'Sequence[PathSegment]') -> str:
        """Replace a leading parent marker with the parent property name."""
        if not key.startswith(PARENT_MARKER):
            return key

        return find_parent_key(path) + key.removeprefix(PARENT_MARKER)

    def get_value(self, key: str, default: Any = MISSING,  # noqa: ANN401
                  parent: 'PathSegment | Sequence[PathSegment]' = ()) -> 'Lookup':
        """Look up a single key.

        Args:
            key: Lookup key, optionally slash-separated or parent-dependent.
            default: Optional default value or macro.
            parent: A parent key or a full path used as context.

        Returns:
            The effective value, or `MISSING`.
        """
        if isinstance(parent, (str, int)):
            parent = [parent] if parent != '' else []

        return self.resolve(macro(key, default), [*parent, key])
