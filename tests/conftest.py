"""
conftest.py - shared fixtures for the gasbuild test suite.

Every test gets a clean ``GASBUILD_*`` environment and the toolchain cache
is emptied afterwards, so no test sees another's settings or tools.
"""
import os

import pytest

from gasbuild.tools import factory
from tests.fakes import make_toolchain, write_project


@pytest.fixture(autouse=True)
def _clean_env_vars():
    """Snapshot and restore GASBUILD_* environment variables after each test."""
    saved = {key: value for key, value in os.environ.items() if key.startswith("GASBUILD_")}

    yield

    for key in [k for k in os.environ if k.startswith("GASBUILD_")]:
        if key not in saved:
            os.environ.pop(key, None)
    os.environ.update(saved)


@pytest.fixture(autouse=True)
def _clear_toolchain_cache():
    yield
    factory._TOOLCHAIN_CACHE.clear()


@pytest.fixture
def toolchain():
    return make_toolchain()


@pytest.fixture
def project(tmp_path):
    """A minimal project on disk; yields its build.config.json path."""
    return write_project(tmp_path)
