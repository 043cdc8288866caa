import os
import sys

import pytest

# tests/utils.py is imported as a plain module
sys.path.insert(0, os.path.dirname(__file__))

from capturepng import config  # noqa: E402


@pytest.fixture(autouse=True)
def _default_config():
    config.reset_config()
    yield
    config.reset_config()
