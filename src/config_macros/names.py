"""Reserved keywords and name types for configuration macros.

A macro is a mapping node carrying the reserved `$$` field. The other
reserved fields are optional and tune how the macro is resolved. These
names form part of the public configuration contract and are relied
upon by the resolution engine, the YAML loader and the command line.
"""

from typing import Annotated, Final, final

from pydantic import Field

#: Field holding the lookup key of a macro.
KEY_FIELD: Final = '$$'

#: Field holding a default value (or a nested macro) of a macro.
DEFAULT_FIELD: Final = '$default'

#: Field marking a macro as requiring a value.
MANDATORY_FIELD: Final = '$mandatory'

#: Field holding a callable applied to the resolved value.
CALLBACK_FIELD: Final = '$callback'

#: Key prefix replaced with the nearest named ancestor property.
PARENT_MARKER: Final = '?'

#: Sibling key holding a fallback template on a mapping node.
FALLBACK_KEY: Final = '$defaults'


@final
class DefaultSegment(str):
    """Path segment appended while the default of a macro is resolved.

    It reads as `$default` in paths and messages, but is told apart
    from a configuration property of the same name by its type.
    """

    __slots__ = ()


#: Synthetic path segment appended while a default value is resolved.
DEFAULT_SEGMENT: Final = DefaultSegment(DEFAULT_FIELD)

#: Name of the built-in environment repository.
ENVIRONMENT_NAME: Final = 'env'

#: Separator between nested lookup keys.
PATH_SEPARATOR: Final = '/'


RepositoryName = Annotated[
    str, Field(
        min_length=1,
        title='Repository name',
        description=(
            'Unique name of a value source in the repository chain. '
            'Used to replace or remove the source later on.'
        ),
        examples=[
            'env',
            'secrets',
        ],
    ),
]

MacroKey = Annotated[
    str, Field(
        min_length=1,
        title='Macro key',
        description=(
            'Lookup key searched in the repositories. Nested values are '
            'addressed with slash-separated segments (for example, `db/url`). '
            'A leading `?` is replaced with the name of the nearest named '
            'ancestor property.'
        ),
        examples=[
            'DATABASE_URL',
            'db/url',
            '?_URL',
        ],
    ),
]
