"""Core exception hierarchy.

This module defines the error and warning types raised while loading
configuration documents, managing repositories and resolving macros.
Every error belongs to a single category, `ConfigError`, so callers can
handle all configuration failures uniformly.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml import dump
from yaml.error import MarkedYAMLError

from config_macros.values import MAPPINGS, SEQUENCES, format_path

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Self

if TYPE_CHECKING:
    from yaml.nodes import Node

if TYPE_CHECKING:
    from config_macros.values import PathSegment

SNIPPET_ELLIPSIS = f' ...{linesep}'
SNIPPET_INDENT = 2

FORMAT_REPLACER = '<runtime object>'
FORMAT_FILENAME = '<unicode string>'
FORMAT_INDENT = 4

#: Values rendered verbatim inside error snippets.
_PLAIN = (str, bytes, int, float, bool)


class ErrorContext(TypedDict, total=False):
    """Where an error happened and what it happened on.

    Resolution errors fill `path` and `element`; load errors fill the
    source position. Every field may be left out.
    """

    #: Keys and indices from the configuration root to the failing node.
    path: 'Sequence[PathSegment] | None'

    #: Source document name, as reported by the YAML reader.
    filename: str | None
    #: Zero-based position in the source document.
    line_num: int | None
    column_num: int | None

    #: Lower-level exception, rendered as a source snippet when it has a mark.
    error: Exception | None

    #: Offending configuration node, rendered as a YAML snippet.
    element: Any


class ErrorFormatter:
    """Render configuration errors with location and a node snippet."""

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Append the location and a snippet to an error message.

        Args:
            message: First line of the output.
            context: Where the error happened, if known.

        Returns:
            The message alone when there is nothing to add.
        """
        if not context:
            return message

        location = cls.get_location_string(context, indent=FORMAT_INDENT)
        snippet = cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)

        if not location and not snippet:
            return message

        return f'{message}{linesep}{location}{snippet}'

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format the tree path and the source location.

        Args:
            context: Context with a tree path and/or a source position.
            indent: Prefix of every line, or a number of spaces.

        Returns:
            Up to two lines: the tree path, then the source position.
        """
        indent = cls._ensure_indent(indent)
        message = ''

        if (path := context.get('path')) is not None:
            message += f'{indent}at "{format_path(path) or '<root>'}"{linesep}'

        if 'filename' in context or context.get('line_num') is not None:
            filename = context.get('filename') or FORMAT_FILENAME
            message += f'{indent}in "{filename}"'
            if (line_num := context.get('line_num')) is not None:
                message += f', line {line_num + 1}'
                if (column_num := context.get('column_num')) is not None:
                    message += f', column {column_num + 1}'
            message += linesep

        return message

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Show the offending part of the document or of the tree.

        Args:
            context: Context with a YAML error or a configuration node.
            indent: Prefix of every line, or a number of spaces.

        Returns:
            The snippet lines, or an empty string when neither is set.
        """
        indent = cls._ensure_indent(indent)

        if (error := context.get('error')) and isinstance(error, MarkedYAMLError):
            if error.problem_mark is None:
                return ''
            snippet = error.problem_mark.get_snippet(indent=0) or ''
            return cls._make_indent(snippet, indent)

        if (element := context.get('element')) is not None:
            snippet = f'{indent}{SNIPPET_ELLIPSIS}'
            snippet += cls._make_yaml(element, indent)
            return snippet + linesep

        return ''

    @classmethod
    def _filter_unsafe(cls, value: Any) -> Any:  # noqa: ANN401
        """Replace opaque objects (callbacks, sources) with a placeholder."""
        if value is None or isinstance(value, _PLAIN):
            return value

        if isinstance(value, MAPPINGS):
            return {
                str(key): cls._filter_unsafe(item)
                for key, item in value.items()
            }

        if isinstance(value, (*SEQUENCES, tuple)):
            return [cls._filter_unsafe(item) for item in value]

        if hasattr(value, 'to_node'):
            return cls._filter_unsafe(value.to_node())

        return FORMAT_REPLACER

    @classmethod
    def _make_yaml(cls, value: Any, indent: str = '') -> str:  # noqa: ANN401
        """Serialize a sanitized value to indented YAML."""
        data = dump(
            cls._filter_unsafe(value),
            indent=SNIPPET_INDENT,
            sort_keys=False,
            allow_unicode=True,
        )

        return cls._make_indent(data, indent)

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Indent every non-blank line of a multi-line string."""
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation given as a string or a number of spaces."""
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class FallbackWarning(UserWarning):
    """Warning emitted for a fallback template that can not be applied.

    Raised through `warnings.warn` when a `$defaults` entry holds
    something other than a mapping. The template is skipped and the
    traversal continues.
    """


class ConfigError(Exception, ErrorFormatter):
    """Base exception for all configuration errors.

    All custom exceptions raised by the library inherit from this class
    to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: What went wrong, in one line.
            context: Location of the failure.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """Message followed by the location and snippet lines."""
        return self.format(self.message, self.context)

    @property
    def path(self) -> 'list[PathSegment]':
        """Path to the offending node, empty when unknown."""
        if not self.context:
            return []
        return list(self.context.get('path') or ())

    @classmethod
    def at(cls, message: str, path: 'Sequence[PathSegment]',
           element: Any = None) -> 'Self':  # noqa: ANN401
        """Create an error bound to a configuration node.

        Args:
            message: Human-readable error description.
            path: Keys and indices from the root to the node.
            element: The node itself, rendered as a snippet.

        Returns:
            An error instance with path context.
        """
        return cls(message, context=ErrorContext(path=list(path), element=element))


class MacroError(ConfigError):
    """Error raised for a malformed macro node."""


class InvalidMacroKey(MacroError):
    """Error raised when a macro key is missing, empty or not a string."""


class InvalidCallback(MacroError):
    """Error raised when a declared macro callback is not callable."""


class MandatoryValueMissing(ConfigError):
    """Error raised when a mandatory macro resolves to no value.

    The value is checked after repository lookup, defaults and the
    callback have all been applied.
    """


class RepositoryError(ConfigError):
    """Error raised for an invalid repository registration."""


class ConfigLoadError(ConfigError):
    """Error raised when a configuration document can not be loaded."""

    @classmethod
    def from_yaml_node(cls, message: str, node: 'Node',
                       error: Exception | None = None) -> 'Self':
        """Create an error instance from a YAML node.

        Args:
            message: What went wrong, in one line.
            node: Tagged node that could not be constructed.
            error: The error raised while constructing it, if any.

        Returns:
            An error carrying the node position.
        """
        error_context = ErrorContext(
            filename=node.start_mark.name,
            line_num=node.start_mark.line,
            column_num=node.start_mark.column,
            error=error,
        )

        return cls(message, context=error_context)

    @classmethod
    def from_yaml_error(cls, error: MarkedYAMLError) -> 'Self':
        """Create an error from a YAML parsing failure.

        Args:
            error: Scanner, parser or constructor error.

        Returns:
            An error pointing at the problem mark.
        """
        mark = error.problem_mark

        error_context = ErrorContext(
            filename=mark.name if mark else None,
            line_num=mark.line if mark else None,
            column_num=mark.column if mark else None,
            error=error,
        )

        message = 'Invalid YAML'
        if error.problem:
            message += f'{linesep}{' ' * FORMAT_INDENT}{error.problem}'

        return cls(message, context=error_context)
