"""Tests configurations and fixtures."""

from typing import TYPE_CHECKING

import pytest

from config_macros.core import ConfigUpdater
from config_macros.loader import make_loader
from config_macros.settings import UpdaterSettings

if TYPE_CHECKING:
    import yaml


@pytest.fixture
def environ() -> dict[str, str]:
    """Provide a controlled stand-in for the process environment."""
    return {
        'PATH': '/usr/bin:/bin',
        'URL': 'env-url',
        'EMPTY': '',
    }


@pytest.fixture
def updater(environ: dict[str, str]) -> ConfigUpdater:
    """Provide a fresh updater backed by the controlled environment.

    Settings are built explicitly so `CONFIG_MACROS_*` variables of the
    machine running the tests can not change the reserved names.
    """
    settings = UpdaterSettings(environment_name='env', fallback_key='$defaults', path_separator='/')

    return ConfigUpdater(settings=settings, environ=environ)


@pytest.fixture
def loader() -> type['yaml.SafeLoader']:
    """Provide an isolated YAML loader class with the macro tags."""
    return make_loader()
