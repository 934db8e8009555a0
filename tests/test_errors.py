"""Tests for error formatting."""

from os import linesep

import pytest

from config_macros.errors import (
    ConfigError,
    ConfigLoadError,
    ErrorContext,
    MacroError,
    MandatoryValueMissing,
)
from config_macros.loader import load_config
from config_macros.models import macro


def test_plain_message() -> None:
    """Errors without context render their message only."""
    error = ConfigError('Something failed')

    assert str(error) == 'Something failed'
    assert error.path == []


def test_node_context() -> None:
    """Errors bound to a node show its path and a snippet."""
    error = MacroError.at('Bad macro', ['servers', 0, 'url'], {'$$': 'URL', '$mandatory': True})

    lines = str(error).splitlines()

    assert lines[0] == 'Bad macro'
    assert lines[1] == '    at "servers/0/url"'
    assert lines[2] == '         ...'
    assert lines[3] == "        $$: URL"
    assert lines[4] == '        $mandatory: true'
    assert error.path == ['servers', 0, 'url']


def test_root_context() -> None:
    """An empty path designates the root."""
    error = ConfigError.at('Bad root', [])

    assert str(error).splitlines() == ['Bad root', '    at "<root>"']


def test_runtime_objects_hidden() -> None:
    """Callables and other opaque values are masked in snippets."""
    node = {'$$': 'URL', '$callback': print, 'source': object()}
    error = MandatoryValueMissing.at('Missing', ['url'], node)

    text = str(error)

    assert '$callback: <runtime object>' in text
    assert 'source: <runtime object>' in text
    assert 'built-in' not in text


def test_macro_snippet() -> None:
    """Macro instances are rendered in their mapping form."""
    error = ConfigError.at('Bad', ['a'], macro('URL', macro('OTHER', 'x')))

    text = str(error)

    assert '$$: URL' in text
    assert '$default:' in text
    assert '$$: OTHER' in text


def test_location_only() -> None:
    """A source location is rendered with one-based numbers."""
    context = ErrorContext(filename='config.yaml', line_num=4, column_num=2)

    assert ConfigError.get_location_string(context) == f'in "config.yaml", line 5, column 3{linesep}'


@pytest.mark.parametrize(('indent', 'expected'), (
    pytest.param(None, '', id='none'),
    pytest.param(0, '', id='zero'),
    pytest.param(2, '  ', id='number'),
    pytest.param('\t', '\t', id='string'),
))
def test_ensure_indent(indent: str | int | None, expected: str) -> None:
    """Indentation is given as spaces count or as a string."""
    assert ConfigError._ensure_indent(indent) == expected  # noqa: SLF001


def test_yaml_error_snippet() -> None:
    """Parser errors show the failing line of the document."""
    with pytest.raises(ConfigLoadError) as info:
        load_config('a: 1\nb: [2, 3\nc: 4\n')

    text = str(info.value)

    assert text.startswith('Invalid YAML')
    assert 'in "<unicode string>", line' in text
    assert info.value.path == []
