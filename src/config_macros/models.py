"""Base Pydantic models and the configuration macro value.

This module defines the foundational model classes and `Macro`, the
immutable description of a single substitution request. Macros may be
written by hand as plain mappings (`{'$$': 'DB_URL', '$mandatory': True}`)
or built from code with `macro()` and the copy-on-write `with_*` methods:

    db_url = macro('DB_URL').with_default('sqlite://').with_mandatory()

Both forms are accepted anywhere a macro is expected.
"""

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from config_macros.errors import InvalidCallback, InvalidMacroKey, MacroError
from config_macros.names import (
    CALLBACK_FIELD,
    DEFAULT_FIELD,
    KEY_FIELD,
    MANDATORY_FIELD,
    PARENT_MARKER,
    MacroKey,
)
from config_macros.values import MISSING, MAPPINGS

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Self

if TYPE_CHECKING:
    from config_macros.values import MacroCallback, PathSegment


class SchemaModel(BaseModel):
    """Base immutable model.

    Instances can not be modified after creation, and unknown fields
    are rejected to avoid silent errors caused by typos.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    Settings are resolved from environment variables. Unknown
    variables are ignored so the surrounding environment can contain
    unrelated values.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )


class Macro(SchemaModel):
    """Immutable configuration macro.

    A macro asks the repository chain for the value stored under `key`.
    When no repository knows the key the `default` is used instead; a
    default may itself be a macro, forming a chain of fallbacks. The
    optional `callback` post-processes the value and `mandatory` makes
    an absent final value an error.

    Every `with_*` method returns a new macro, so a macro can be reused
    as a template at many places of a configuration tree.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='ignore',
        populate_by_name=True,
    )

    key: MacroKey = Field(alias=KEY_FIELD, strict=True)

    default: Any = Field(
        default=MISSING,
        alias=DEFAULT_FIELD,
        title='Default value',
        description='Value or nested macro used when no repository has the key.',
    )

    mandatory: bool = Field(
        default=False,
        alias=MANDATORY_FIELD,
        title='Mandatory flag',
        description='Whether resolving to no value is an error.',
    )

    callback: Callable[..., Any] | None = Field(
        default=None,
        alias=CALLBACK_FIELD,
        title='Callback',
        description='Called as `callback(value, macro_node, path)` after lookup.',
    )

    @classmethod
    def from_node(cls, node: Mapping[str, Any],
                  path: 'Sequence[PathSegment]' = ()) -> 'Self':
        """Validate a macro mapping node.

        Args:
            node: A mapping carrying the reserved macro fields.
            path: Location of the node, used for error messages.

        Returns:
            The validated macro.

        Raises:
            InvalidMacroKey: If the key is missing, empty or not a string.
            InvalidCallback: If the callback is present but not callable.
            MacroError: If any other reserved field is malformed.
        """
        if not isinstance(node, Mapping):
            raise MacroError.at(f'Macro must be a mapping, got {type(node).__name__}', path)

        node = dict(node)
        if not node.get(CALLBACK_FIELD):
            node.pop(CALLBACK_FIELD, None)

        try:
            return cls.model_validate(node)

        except ValidationError as base:
            fields = {str(error['loc'][0]) for error in base.errors() if error['loc']}
            if KEY_FIELD in fields:
                raise InvalidMacroKey.at(
                    f'Invalid macro key {node.get(KEY_FIELD)!r}', path, node,
                ) from base
            if CALLBACK_FIELD in fields:
                raise InvalidCallback.at(
                    'The macro callback must be callable', path, node,
                ) from base
            raise MacroError.at('Invalid macro definition', path, node) from base

    @property
    def has_default(self) -> bool:
        """Whether a default value is declared."""
        return self.default is not MISSING

    @property
    def parent_dependent(self) -> bool:
        """Whether the key is prefixed with the parent marker."""
        return self.key.startswith(PARENT_MARKER)

    def with_default(self, value: Any = MISSING) -> 'Self':  # noqa: ANN401
        """Return a copy with a new default; `MISSING` removes it."""
        return self.model_copy(update={'default': value})

    def with_mandatory(self, value: bool = True) -> 'Self':  # noqa: FBT001, FBT002
        """Return a copy with the mandatory flag set or cleared."""
        return self.model_copy(update={'mandatory': bool(value)})

    def with_callback(self, callback: 'MacroCallback | None' = None) -> 'Self':
        """Return a copy with a new callback; a falsy value removes it.

        Raises:
            InvalidCallback: If `callback` is truthy but not callable.
        """
        if not callback:
            return self.model_copy(update={'callback': None})

        if not callable(callback):
            raise InvalidCallback.at('The macro callback must be callable', (), self)

        return self.model_copy(update={'callback': callback})

    def with_parent_dependent(self, value: bool = True) -> 'Self':  # noqa: FBT001, FBT002
        """Return a copy with the parent marker added to or removed from the key."""
        if value and not self.parent_dependent:
            return self.model_copy(update={'key': f'{PARENT_MARKER}{self.key}'})

        if not value and self.parent_dependent:
            key = self.key.removeprefix(PARENT_MARKER)
            if not key:
                raise InvalidMacroKey.at('Macro key can not be empty', (), self)
            return self.model_copy(update={'key': key})

        return self

    def to_node(self) -> dict[str, Any]:
        """Return the plain mapping form with declared fields only."""
        node: dict[str, Any] = {KEY_FIELD: self.key}

        if self.has_default:
            default = self.default
            node[DEFAULT_FIELD] = default.to_node() if isinstance(default, Macro) else default
        if self.mandatory:
            node[MANDATORY_FIELD] = True
        if self.callback is not None:
            node[CALLBACK_FIELD] = self.callback

        return node


def is_macro(value: Any) -> bool:  # noqa: ANN401
    """Check whether a configuration value is a macro.

    A value is a macro if it is a `Macro` instance or a mapping that
    carries the reserved key field. Nothing else is treated as one.
    """
    if isinstance(value, Macro):
        return True

    return isinstance(value, MAPPINGS) and KEY_FIELD in value


def macro(key: 'str | Mapping[str, Any] | Macro',
          default: Any = MISSING) -> Macro:  # noqa: ANN401
    """Build a macro.

    Args:
        key: A lookup key, a macro mapping node to copy, or another macro.
        default: Optional default value or nested macro; overrides the
            default of a copied macro when given.

    Returns:
        A new macro.

    Raises:
        InvalidMacroKey: If the key is empty or not a string.
    """
    if isinstance(key, Macro):
        result = key
    elif isinstance(key, Mapping):
        result = Macro.from_node(key)
    elif isinstance(key, str) and key:
        result = Macro(key=key)
    else:
        raise InvalidMacroKey(f'Macro key must be a non-empty string, got {key!r}')

    if default is not MISSING:
        result = result.with_default(default)

    return result
