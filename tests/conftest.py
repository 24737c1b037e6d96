"""
Pytest configuration and shared fixtures for lowmain tests.
"""

from pathlib import Path
import sys

import pytest


# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tests.fixtures.graph_fixtures import FakeGateway  # noqa: E402


@pytest.fixture
def environ():
    """Environment with just enough configuration to connect."""
    return {"NEO4J_PASSWORD": "secret"}


@pytest.fixture
def fake_gateway():
    """Recording in-memory gateway."""
    return FakeGateway()


@pytest.fixture
def gateway_factory(fake_gateway):
    """Factory handing out fake_gateway and remembering each descriptor."""
    descriptors = []

    def factory(descriptor):
        descriptors.append(descriptor)
        fake_gateway.descriptor = descriptor
        return fake_gateway

    factory.descriptors = descriptors
    return factory
