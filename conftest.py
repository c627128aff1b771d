"""
Pytest configuration and hooks for the scriptboard test suite.

This conftest.py handles:
1. Registering the markers used by the suite
2. Automatic marking of tests that drive the command line entry point
"""

import pytest


# Test files that exercise the CLI end to end
CLI_TEST_FILES = {
    "test_script_cli.py",
}


def pytest_configure(config):
    config.addinivalue_line("markers", "cli: tests that run scriptboard.main end to end")


def pytest_collection_modifyitems(config, items):
    """
    Hook to modify test collection.

    Automatically marks CLI tests with the 'cli' marker so they can be
    deselected with -m "not cli".
    """
    for item in items:
        if item.path.name in CLI_TEST_FILES:
            item.add_marker(pytest.mark.cli)
