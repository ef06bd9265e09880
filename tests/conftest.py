"""
Pytest configuration and fixtures for cayley-client tests.
"""

import pytest

from src.core.config import Settings
from src.graph.transport import FakeCayleyTransport
from src.path.registry import MorphismRegistry


@pytest.fixture
def settings() -> Settings:
    """Provide test settings pointing at a local Cayley."""
    return Settings(
        cayley_host="localhost",
        cayley_port=64210,
        cayley_api_version="v1",
    )


@pytest.fixture
def registry() -> MorphismRegistry:
    """Provide an empty morphism registry."""
    return MorphismRegistry()


@pytest.fixture
def fake_transport() -> FakeCayleyTransport:
    """Provide an in-memory transport answering with empty results."""
    return FakeCayleyTransport()
