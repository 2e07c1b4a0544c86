"""
Pytest configuration and fixtures for all tests.

Provides zero-delay settings so translator and scout tests run without
sleeping. Scripted providers live in tests/fakes.py.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from tsundoku.config import NameScoutSettings, TranslationSettings
from tsundoku.core.events import EventBus


@pytest.fixture
def translation_settings():
    """Translation settings without any delays."""
    return TranslationSettings(
        chunk_size_chars=4000,
        retries=3,
        delay_between_requests=0,
        history_length=5,
        retry_base_delay=0,
    )


@pytest.fixture
def scout_settings():
    """Name scout settings without any delays."""
    return NameScoutSettings(
        chunk_size_chars=2500,
        delay_between_requests=0,
        json_retries=3,
        retry_base_delay=0,
    )


@pytest.fixture
def event_bus():
    """Event bus that records history."""
    return EventBus(record_history=True)


@pytest.fixture
def names_dir(tmp_path):
    """Empty directory for name mapping files."""
    directory = tmp_path / "names"
    directory.mkdir()
    return directory
