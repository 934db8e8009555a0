"""Test suite for the config-macros package.

This package contains unit and integration tests validating the
repository chain, macro resolution, in-place tree updates, YAML
loading and the command line.
"""
