"""Runtime settings of the configuration updater.

Settings are read from environment variables prefixed with
`CONFIG_MACROS_` (for example, `CONFIG_MACROS_FALLBACK_KEY`).
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from config_macros.models import SettingsModel
from config_macros.names import ENVIRONMENT_NAME, FALLBACK_KEY, PATH_SEPARATOR, RepositoryName


class UpdaterSettings(SettingsModel):
    """Settings shared by every `ConfigUpdater` instance."""

    model_config = SettingsConfigDict(
        env_prefix='CONFIG_MACROS_',
        frozen=True,
        extra='ignore',
    )

    environment_name: RepositoryName = Field(
        default=ENVIRONMENT_NAME,
        title='Environment repository name',
        description='Name under which the process environment is registered.',
    )

    fallback_key: str = Field(
        default=FALLBACK_KEY,
        min_length=1,
        title='Fallback template key',
        description='Sibling key whose entries are inherited by mapping branches.',
    )

    path_separator: str = Field(
        default=PATH_SEPARATOR,
        min_length=1,
        title='Key path separator',
        description='Separator between nested lookup keys in a macro key.',
    )
