"""Tests for the YAML macro tags."""

from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import yaml

from config_macros.errors import ConfigLoadError
from config_macros.loader import load_config, load_file, make_loader

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem


def test_scalar_macro(loader: type[yaml.SafeLoader]) -> None:
    """`!macro KEY` builds a plain macro node."""
    data = load_config('url: !macro DATABASE_URL', loader)

    assert data == {'url': {'$$': 'DATABASE_URL'}}


def test_mapping_macro(loader: type[yaml.SafeLoader]) -> None:
    """The mapping form accepts key, default and mandatory."""
    data = load_config(
        'pool: !macro {key: POOL_SIZE, default: 5, mandatory: true}',
        loader,
    )

    assert data == {'pool': {'$$': 'POOL_SIZE', '$default': 5, '$mandatory': True}}


def test_nested_default(loader: type[yaml.SafeLoader]) -> None:
    """Defaults may be macros themselves."""
    data = load_config(
        "url: !macro {key: '?_URL', default: !macro {key: URL, default: localhost}}",
        loader,
    )

    assert data == {'url': {
        '$$': '?_URL',
        '$default': {'$$': 'URL', '$default': 'localhost'},
    }}


def test_null_default(loader: type[yaml.SafeLoader]) -> None:
    """An explicit null default is kept."""
    data = load_config('token: !macro {key: TOKEN, default: null}', loader)

    assert data == {'token': {'$$': 'TOKEN', '$default': None}}


def test_required_macro(loader: type[yaml.SafeLoader]) -> None:
    """`!required KEY` builds a mandatory macro node."""
    data = load_config('password: !required ?_PASSWORD', loader)

    assert data == {'password': {'$$': '?_PASSWORD', '$mandatory': True}}


def test_plain_documents(loader: type[yaml.SafeLoader]) -> None:
    """Documents without tags load as usual."""
    data = load_config('a: 1\nb: [x, y]\nc: {$$: URL}', loader)

    assert data == {'a': 1, 'b': ['x', 'y'], 'c': {'$$': 'URL'}}


def test_loader_isolation() -> None:
    """Macro tags are only known to loaders made for them."""
    make_loader()

    with pytest.raises(yaml.constructor.ConstructorError):
        yaml.safe_load('url: !macro URL')


def test_default_loader() -> None:
    """A loader is made when none is given."""
    assert load_config('url: !macro URL') == {'url': {'$$': 'URL'}}


@pytest.mark.parametrize(('document', 'message', 'line'), (
    pytest.param(
        'a: 1\nurl: !macro {key: URL, fallback: x}',
        r'^Unknown macro fields: fallback', 2,
        id='unknown-field',
    ),
    pytest.param(
        "url: !macro ''",
        r'^Macro key must be a non-empty string', 1,
        id='empty-key',
    ),
    pytest.param(
        'url: !macro {key: 5}',
        r'^Invalid macro key 5', 1,
        id='non-string-key',
    ),
    pytest.param(
        'url: !macro [URL]',
        r'^Macro must be a scalar or a mapping', 1,
        id='sequence',
    ),
    pytest.param(
        'a: 1\n\nurl: !required {key: URL}',
        r'^Required macro must be a scalar', 3,
        id='required-mapping',
    ),
))
def test_invalid_macro(loader: type[yaml.SafeLoader], document: str,
                       message: str, line: int) -> None:
    """Malformed tags report their position in the document."""
    with pytest.raises(ConfigLoadError, match=message) as info:
        load_config(document, loader)

    assert f'line {line}' in str(info.value)


def test_invalid_yaml(loader: type[yaml.SafeLoader]) -> None:
    """Parser errors are reported as load errors."""
    with pytest.raises(ConfigLoadError, match=r'^Invalid YAML') as info:
        load_config('key: [unclosed', loader)

    assert isinstance(info.value.__cause__, yaml.MarkedYAMLError)
    assert info.value.context is not None
    assert info.value.context['line_num'] is not None


def test_load_file(fs: 'FakeFilesystem') -> None:
    """Files are read as UTF-8 YAML."""
    fs.create_file('config.yaml', contents='name: café\nurl: !macro URL\n', encoding='utf-8')

    assert load_file(Path('config.yaml')) == {'name': 'café', 'url': {'$$': 'URL'}}


def test_load_json_file(fs: 'FakeFilesystem') -> None:
    """JSON documents are valid YAML."""
    fs.create_file('values.json', contents='{"URL": "json-url", "nested": {"port": 80}}')

    assert load_file('values.json') == {'URL': 'json-url', 'nested': {'port': 80}}


def test_load_missing_file(fs: 'FakeFilesystem') -> None:  # noqa: ARG001
    """Unreadable files are reported as load errors."""
    with pytest.raises(ConfigLoadError, match=r"^Can not read 'missing\.yaml'"):
        load_file('missing.yaml')
