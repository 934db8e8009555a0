"""Tests for built-in and custom repository resolvers."""

from typing import TYPE_CHECKING, Any

import pydantic
import pytest

from config_macros.builtins.resolvers import default_resolver, flat_resolver, secret_resolver
from config_macros.core import ConfigUpdater
from config_macros.values import MISSING

if TYPE_CHECKING:
    from pytest_mock import MockerFixture

NESTED = {
    'a': 12,
    'b': {
        'a': 122,
        'b': {
            'a': 1222,
            'b': {'a': 12222, 'b': {'a': 122222, 'b': 222222}},
        },
    },
    'lst': ['ignore this', {'field': 42}],
    'nothing': None,
}


@pytest.mark.parametrize('key, expected', (
    pytest.param('a', 12, id='simple name'),
    pytest.param('b/a', 122, id='nested'),
    pytest.param('b/b/b/b/b', 222222, id='deeply nested'),
    pytest.param('b/b', NESTED['b']['b'], id='intermediate mapping'),
    pytest.param('lst/1/field', 42, id='sequence index'),
))
def test_default_resolver_found(key: str, expected: Any) -> None:
    """Walk nested sources segment by segment."""
    assert default_resolver(NESTED, key.split('/')) == expected


@pytest.mark.parametrize('key', (
    pytest.param('x', id='unknown name'),
    pytest.param('b/x', id='unknown nested name'),
    pytest.param('a/a/a/b/b', id='scalar container'),
    pytest.param('lst/5', id='index out of range'),
    pytest.param('lst/first', id='non-numeric index'),
    pytest.param('nothing', id='none value'),
    pytest.param('nothing/deeper', id='none container'),
))
def test_default_resolver_missing(key: str) -> None:
    """Missing levels stop the walk with the absent marker."""
    assert default_resolver(NESTED, key.split('/')) is MISSING


@pytest.mark.parametrize('value', (
    pytest.param(0, id='zero'),
    pytest.param('', id='empty string'),
    pytest.param(False, id='false'),
    pytest.param([], id='empty list'),
))
def test_default_resolver_falsy_values(value: Any) -> None:
    """Falsy values are found values."""
    assert default_resolver({'k': value}, ['k']) == value


def test_flat_resolver() -> None:
    """Look up the joined key in a flat mapping."""
    source = {'db/url': 'flat', 'db': {'url': 'nested'}, 'none': None}

    assert flat_resolver(source, ['db', 'url']) == 'flat'
    assert flat_resolver(source, ['db']) == {'url': 'nested'}
    assert flat_resolver(source, ['unknown']) is MISSING
    assert flat_resolver(source, ['none']) is MISSING
    assert flat_resolver(['not', 'a', 'mapping'], ['0']) is MISSING


def test_secret_resolver() -> None:
    """Secrets are unwrapped, other values pass through."""
    source = {'db': {'password': pydantic.SecretStr('secret'), 'user': 'admin'}}

    assert secret_resolver(source, ['db', 'password']) == 'secret'
    assert secret_resolver(source, ['db', 'user']) == 'admin'
    assert secret_resolver(source, ['db', 'port']) is MISSING


def test_custom_resolver(updater: ConfigUpdater) -> None:
    """Custom resolvers receive the source and the split key."""
    updater.unregister('env')
    updater.register(
        'custom', {'value': 'value'}, 0,
        lambda source, segments, node, path: ','.join(segments) + ':' + source['value'],
    )

    assert updater.get_value('any') == 'any:value'
    assert updater.get_value('any/any') == 'any,any:value'


def test_custom_resolver_arguments(updater: ConfigUpdater, mocker: 'MockerFixture') -> None:
    """Custom resolvers receive the macro node and its path."""
    resolver = mocker.Mock(return_value='found')
    source = {'any': 'thing'}
    node = {'$$': 'a/b'}

    updater.register('custom', source, 0, resolver)

    assert updater.resolve(node, ['branch', 'field']) == 'found'
    resolver.assert_called_once_with(source, ['a', 'b'], node, ['branch', 'field'])


def test_custom_resolver_none_is_found(updater: ConfigUpdater) -> None:
    """Only the absent marker continues the search."""
    updater.register('nones', {}, 0, lambda *args: None)
    updater.register('values', {'key': 'value'}, 1)

    assert updater.get_value('key') is None


def test_secret_resolver_registered(updater: ConfigUpdater) -> None:
    """Secret sources are usable as repositories."""
    updater.register('secrets', {'token': pydantic.SecretStr('t0k3n')}, 0, secret_resolver)

    assert updater.resolve({'$$': 'token'}) == 't0k3n'
