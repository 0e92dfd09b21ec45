"""Shared fixtures."""

import pytest

from mcp_archy.ai import DiagramAI
from mcp_archy.config import Settings
from mcp_archy.orchestrator import DiagramOrchestrator
from tests.helpers import FakeValidator


@pytest.fixture
def settings():
    """Settings with no API keys (AI unconfigured)."""
    return Settings()


@pytest.fixture
def ai_settings():
    return Settings(openrouter_api_key="test-key")


@pytest.fixture
def validator():
    """Validator that accepts everything."""
    return FakeValidator()


@pytest.fixture
def orchestrator(settings, validator):
    """Orchestrator with a permissive validator and no AI backend."""
    return DiagramOrchestrator(settings, validator=validator, ai=DiagramAI(settings))
