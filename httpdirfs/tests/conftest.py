"""Module that adds flags to pytest to enable certain extra tests."""

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="Run tests against a local HTTP server",
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: mark test as requiring a local HTTP server to run"
    )


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="only runs with --integration option")

        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)
