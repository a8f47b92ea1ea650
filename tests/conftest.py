"""
Pytest configuration and shared fixtures for helixevo tests.
"""

from pathlib import Path
import random
import sys

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from helixevo.database.memory_entity_storage import MemoryEntityStorage  # noqa: E402
from helixevo.economy.collaborator import RecordingEconomy  # noqa: E402
from helixevo.genome.builder import build  # noqa: E402

ALL_A = "A" * 27
MIXED = "ATGCATGCATGCATGCATGCATGCATG"


@pytest.fixture
def rng():
    """Seeded RNG so random draws are reproducible."""
    return random.Random(1234)


@pytest.fixture
def all_a():
    """The all-A regression entity (standard protection, full aging budget)."""
    return build(ALL_A)


@pytest.fixture
def mixed():
    return build(MIXED)


@pytest.fixture
def storage():
    return MemoryEntityStorage(rng=random.Random(7))


@pytest.fixture
def economy():
    return RecordingEconomy()
