"""Configuration macros resolved from a chain of value sources.

The `config_macros` package replaces placeholder "macros" embedded in
nested configuration structures with values taken from prioritized
repositories such as the process environment or custom dictionaries.

Key features:
- macros with defaults (including default chains), callbacks and
  mandatory values;
- slash-separated keys for nested lookups and parent-dependent keys
  derived from the surrounding property name;
- fallback templates (`$defaults`) inherited by sibling branches;
- YAML tags and a command line for resolving configuration files.

Configuration trees are updated in place and returned for chaining.
"""
