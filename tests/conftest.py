import importlib
import os

import pytest

from strongbus import Bus


@pytest.fixture(autouse=True)
def set_log_level():
    os.environ['STRONGBUS_LOGGING_LEVEL'] = 'WARNING'
    importlib.import_module('strongbus')


@pytest.fixture(autouse=True)
def reset_default_options():
    original = Bus.default_options
    yield
    Bus.default_options = original
