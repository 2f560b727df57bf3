"""Root conftest -- ``--run-slow`` flag for the stress tests."""

from __future__ import annotations

import os

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=bool(os.getenv("MEDIAVAULT_RUN_SLOW")),
        help="Include tests marked @pytest.mark.slow (also enabled by MEDIAVAULT_RUN_SLOW=1).",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="stress test -- pass --run-slow to include")
    for item in items:
        if item.get_closest_marker("slow") is not None:
            item.add_marker(skip_slow)
