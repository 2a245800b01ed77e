"""
Shared fixtures for the viewer test suite.
"""

import sys
from pathlib import Path

import pytest

# Make explore.py importable when running from a source checkout
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from mandelview import InteractionController, ViewerSettings, create_default_viewport


@pytest.fixture
def settings():
    return ViewerSettings()


@pytest.fixture
def viewport(settings):
    return create_default_viewport(settings)


@pytest.fixture
def controller(settings):
    """Controller for an 800x600 target buffer."""
    return InteractionController(800, 600, settings)
