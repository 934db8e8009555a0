"""Macro resolution engine.

This package defines the infrastructure that replaces configuration
macros with values taken from a prioritized chain of repositories.

It provides:
- the repository chain with insertion by index and replacement by name;
- the macro resolution engine with defaults, callbacks, mandatory
  values and parent-dependent keys;
- the in-place tree updater with fallback template inheritance.

The primary public entry point is `ConfigUpdater`; `get_updater()`
returns the shared instance of the process.
"""

from .repositories import Repository
from .resolver import find_parent_key
from .updater import ConfigUpdater, get_updater

__all__ = (
    'ConfigUpdater',
    'Repository',
    'find_parent_key',
    'get_updater',
)
