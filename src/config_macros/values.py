"""Core type definitions for macro resolution.

This module defines the vocabulary shared by resolvers, the resolution
engine and the tree updater: the explicit absent marker, the container
classification used while walking configuration trees and the type
aliases for paths, resolvers and callbacks.
"""

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Final, final


@final
class Missing:
    """Marker type for a value that could not be found.

    A single instance, `MISSING`, exists. It is the only value that tells
    the repository chain to keep searching, so legitimate falsy payloads
    (`0`, `''`, `False`) are never confused with "not found".
    """

    _instance: 'Missing | None' = None

    def __new__(cls) -> 'Missing':
        """Return the shared instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        """Absent values are falsy."""
        return False

    def __repr__(self) -> str:
        """String representation."""
        return '<missing>'

    def __copy__(self) -> 'Missing':
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> 'Missing':
        return self

    def __reduce__(self) -> str:
        return 'MISSING'


#: The absent marker.
MISSING: Final = Missing()

#: Containers the tree updater descends into and rewrites in place.
MAPPINGS = (dict,)
SEQUENCES = (list,)
CONTAINERS = (*MAPPINGS, *SEQUENCES)

#: A path segment is a mapping key or a sequence index.
type PathSegment = str | int

#: Ordered keys and indices from the tree root to the current node.
type Path = list[PathSegment]

#: A value returned by a lookup: anything, or `MISSING`.
type Lookup = Any | Missing

#: Resolver contract: `(source, segments, macro_node, path) -> value | MISSING`.
type Resolver = Callable[[Any, list[str], Any, Sequence[PathSegment]], Lookup]

#: Callback contract: `(value, macro_node, path) -> value | MISSING`.
type MacroCallback = Callable[[Lookup, Any, Sequence[PathSegment]], Lookup]

#: A named key-value source the default resolver can walk.
type Source = Mapping[str, Any] | Sequence[Any] | Any


def format_path(path: 'Sequence[PathSegment]', separator: str = '/') -> str:
    """Render a tree path for diagnostics.

    Args:
        path: Keys and indices from the root.
        separator: String placed between segments.

    Returns:
        The joined path, or an empty string for the root.
    """
    return separator.join(str(segment) for segment in path)


def copy_tree[T](value: T) -> T:
    """Rebuild the mappings and lists of a tree, sharing everything else.

    Leaves, macros and callables are kept by reference, so runtime
    objects reachable from callbacks are never cloned.
    """
    if isinstance(value, MAPPINGS):
        return {key: copy_tree(item) for key, item in value.items()}  # type: ignore[return-value]

    if isinstance(value, SEQUENCES):
        return [copy_tree(item) for item in value]  # type: ignore[return-value]

    return value
