"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
from pathlib import Path

# Set asyncio mode
pytest_plugins = ('pytest_asyncio',)

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from chatterhub.storage.backend import Store


def pytest_configure(config):
    config.option.asyncio_mode = "auto"


@pytest.fixture
def home(tmp_path):
    """A throwaway ChatterHub home directory."""
    home_dir = tmp_path / ".chatterhub"
    home_dir.mkdir()
    return home_dir


@pytest.fixture
def store(home):
    """A Store backed by the temp home directory."""
    return Store(home)
