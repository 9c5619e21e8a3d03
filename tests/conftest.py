"""Pytest configuration shared by all agentOrchestra tests.

Puts the project root on ``sys.path`` and keeps cached settings from leaking
between tests that patch the environment.
"""

import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture(autouse=True)
def _fresh_settings():
    from agentOrchestra.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
