"""Built-in repository resolvers.

A resolver receives a repository source, the lookup key split into
segments, the macro node being resolved and the path to that node. It
returns the value found in the source, or `MISSING` to let the next
repository in the chain try. Any other return value, falsy or not,
ends the search.

Available resolvers:

- `default_resolver` walks nested mappings (and sequences by index)
  one segment at a time;
- `flat_resolver` joins the segments back and looks up a single key,
  suitable for flat sources such as the environment;
- `secret_resolver` behaves like `default_resolver` and unwraps
  `pydantic.SecretStr` values.
"""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from config_macros.names import PATH_SEPARATOR
from config_macros.values import MISSING

if TYPE_CHECKING:
    from pydantic import SecretStr

if TYPE_CHECKING:
    from config_macros.values import Lookup, PathSegment, Source


def _step(source: 'Source', segment: str) -> 'Lookup':
    """Descend one level into a source."""
    if isinstance(source, Mapping):
        return source.get(segment, MISSING)

    if isinstance(source, Sequence) and not isinstance(source, (str, bytes)):
        if segment.isdecimal() and int(segment) < len(source):
            return source[int(segment)]

    return MISSING


def default_resolver(source: 'Source', segments: list[str],
                     node: object = None,
                     path: 'Sequence[PathSegment]' = ()) -> 'Lookup':
    """Walk a nested source segment by segment.

    Each segment selects a mapping key, or a sequence index when the
    segment is numeric. The walk stops as soon as a level is missing.
    `None` counts as missing, so `{'a': None}` does not provide `a`.

    Args:
        source: Repository source, usually a nested mapping.
        segments: Lookup key split into path segments.
        node: Macro node being resolved (unused).
        path: Path of the macro node (unused).

    Returns:
        The value at the end of the walk, or `MISSING`.
    """
    for segment in segments:
        source = _step(source, segment)
        if source is MISSING or source is None:
            return MISSING

    return source


def flat_resolver(source: 'Source', segments: list[str],
                  node: object = None,
                  path: 'Sequence[PathSegment]' = ()) -> 'Lookup':
    """Look up the whole key in a flat mapping.

    The segments are joined back with `/`, so `{'$$': 'a/b'}` finds
    the entry named `a/b` instead of descending into `a`.
    """
    if not isinstance(source, Mapping):
        return MISSING

    value = source.get(PATH_SEPARATOR.join(segments), MISSING)
    if value is None:
        return MISSING

    return value


def secret_resolver(source: 'Source', segments: list[str],
                    node: object = None,
                    path: 'Sequence[PathSegment]' = ()) -> 'Lookup':
    """Walk a nested source and unwrap secret values.

    Values of type `SecretStr` are replaced with their underlying
    secret; other values are returned unchanged.
    """
    value = default_resolver(source, segments, node, path)

    if hasattr(value, 'get_secret_value'):
        secret: SecretStr = value
        return secret.get_secret_value()

    return value
