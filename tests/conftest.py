import logging

import pytest
from dbmap.connection import dispose_all_engines


@pytest.fixture(autouse=True)
def debug_logging(caplog):
    """Capture dbmap debug logging for every test."""
    caplog.set_level(logging.DEBUG, logger='dbmap')
    yield


@pytest.fixture(scope='session', autouse=True)
def dispose_engines():
    yield
    dispose_all_engines()


pytest_plugins = [
    'tests.fixtures.stubs',
    'tests.fixtures.sqlite',
    'tests.fixtures.postgres',
]
