"""YAML integration for configuration macros.

This module defines YAML tags producing macro nodes, so configuration
files can declare macros tersely:

    database:
      url: !macro DATABASE_URL
      password: !required ?_PASSWORD
      pool: !macro {key: POOL_SIZE, default: 5}

Each tag constructs the plain mapping form of a macro
(`{'$$': 'DATABASE_URL'}`), identical to writing the reserved keys by
hand. Loading never resolves anything; pass the result to
`ConfigUpdater.update_config()`.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any

from yaml import SafeLoader, load
from yaml.error import MarkedYAMLError
from yaml.nodes import MappingNode, ScalarNode

from config_macros.errors import ConfigError, ConfigLoadError
from config_macros.names import DEFAULT_FIELD, KEY_FIELD, MANDATORY_FIELD
from config_macros.models import Macro, macro

if TYPE_CHECKING:
    from io import TextIOBase

if TYPE_CHECKING:
    from yaml import BaseLoader
    from yaml.nodes import Node

#: Keys accepted by the mapping form of `!macro`.
_MAPPING_FIELDS = {
    'key': KEY_FIELD,
    'default': DEFAULT_FIELD,
    'mandatory': MANDATORY_FIELD,
}


def _construct(loader: 'BaseLoader', node: 'Node') -> Macro:
    """Build a macro from a scalar or mapping node."""
    if isinstance(node, ScalarNode):
        return macro(loader.construct_scalar(node))

    if isinstance(node, MappingNode):
        data = loader.construct_mapping(node, deep=True)
        if unknown := sorted(str(key) for key in data if key not in _MAPPING_FIELDS):
            raise ConfigLoadError.from_yaml_node(
                f'Unknown macro fields: {', '.join(unknown)}', node,
            )
        return Macro.from_node({
            _MAPPING_FIELDS[name]: value
            for name, value in data.items()
        })

    raise ConfigLoadError.from_yaml_node('Macro must be a scalar or a mapping', node)


def macro_constructor(loader: 'BaseLoader', node: 'Node') -> dict[str, Any]:
    """Construct a macro node for the `!macro` tag.

    Args:
        loader: YAML loader instance.
        node: Scalar node with the lookup key, or mapping node with
            `key`, `default` and `mandatory` entries.

    Returns:
        The macro in its plain mapping form.

    Raises:
        ConfigLoadError: If the node does not describe a valid macro.
    """
    try:
        return _construct(loader, node).to_node()

    except ConfigLoadError:
        raise

    except MarkedYAMLError as base:
        raise ConfigLoadError.from_yaml_error(base) from base

    except ConfigError as base:
        raise ConfigLoadError.from_yaml_node(base.message, node, base) from base


def required_constructor(loader: 'BaseLoader', node: 'Node') -> dict[str, Any]:
    """Construct a mandatory macro node for the `!required` tag.

    Args:
        loader: YAML loader instance.
        node: Scalar node with the lookup key.

    Returns:
        The mandatory macro in its plain mapping form.

    Raises:
        ConfigLoadError: If the node is not a scalar or the key is empty.
    """
    if not isinstance(node, ScalarNode):
        raise ConfigLoadError.from_yaml_node('Required macro must be a scalar', node)

    try:
        return macro(loader.construct_scalar(node)).with_mandatory().to_node()

    except ConfigError as base:
        raise ConfigLoadError.from_yaml_node(base.message, node, base) from base


def attach_constructors(loader: type['BaseLoader']) -> type['BaseLoader']:
    """Register the macro tags on a YAML loader class.

    Args:
        loader: Loader class to extend. It is changed in place, so pass
            a dedicated subclass to keep other loaders untouched.

    Returns:
        The given loader class.
    """
    loader.add_constructor('!macro', macro_constructor)
    loader.add_constructor('!required', required_constructor)

    return loader


def make_loader() -> type[SafeLoader]:
    """Create an isolated `SafeLoader` subclass with the macro tags."""
    class Loader(SafeLoader):
        pass

    return attach_constructors(Loader)


def load_config(stream: 'str | bytes | TextIOBase',
                loader: type['BaseLoader'] | None = None) -> Any:  # noqa: ANN401
    """Parse a YAML configuration document.

    Args:
        stream: YAML text or an open text stream.
        loader: Loader class with the macro tags attached. A fresh
            one is made when not given.

    Returns:
        The parsed document.

    Raises:
        ConfigLoadError: If the document is not valid YAML or contains
            invalid macros.
    """
    try:
        return load(stream, Loader=loader or make_loader())  # noqa: S506

    except MarkedYAMLError as base:
        raise ConfigLoadError.from_yaml_error(base) from base


def load_file(path: str | Path,
              loader: type['BaseLoader'] | None = None) -> Any:  # noqa: ANN401
    """Parse a YAML (or JSON) configuration file.

    Args:
        path: File to read.
        loader: Optional loader class, as for `load_config()`.

    Returns:
        The parsed document.

    Raises:
        ConfigLoadError: If the file can not be read or parsed.
    """
    path = Path(path)

    try:
        with path.open('rt', encoding='utf-8') as stream:
            return load_config(stream, loader)

    except OSError as base:
        raise ConfigLoadError(f'Can not read {path.as_posix()!r}') from base
