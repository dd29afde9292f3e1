"""
Test Configuration
==================

Pytest configuration with fixtures for all test types.
Provides test settings, a fake render engine, wired services and an API client.
"""

import os
import tempfile

# Settings are read on first import of the package
_TEST_STORAGE = tempfile.mkdtemp(prefix="inkrecipes_test_")
os.environ.setdefault("INKRECIPES_ENVIRONMENT", "testing")
os.environ.setdefault("INKRECIPES_MIXUP_STORE", "memory")
os.environ.setdefault("INKRECIPES_STORAGE_PATH", _TEST_STORAGE)
os.environ.setdefault("INKRECIPES_LOG_LEVEL", "WARNING")

from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from inkrecipes.api.dependencies import Services, build_services
from inkrecipes.api.main import create_app
from inkrecipes.config.settings import Settings
from inkrecipes.core.mixup import InMemoryMixupStore
from inkrecipes.core.recipes import RecipeRegistry
from inkrecipes.recipes import build_registry

from tests.utils.mocks import FakeRenderEngine


class TestSettings(Settings):
    """Test-specific settings."""

    __test__ = False

    environment: str = "testing"
    debug: bool = True
    mixup_store: str = "memory"
    storage_path: Path = Path(_TEST_STORAGE)
    browser_pool_size: int = 1
    data_fetch_timeout: float = 0.5
    log_level: str = "WARNING"


@pytest.fixture(scope="session")
def test_settings() -> TestSettings:
    """Test settings fixture."""
    return TestSettings()


@pytest.fixture
def registry() -> RecipeRegistry:
    """Registry of the bundled recipes."""
    return build_registry()


@pytest.fixture
def render_engine() -> FakeRenderEngine:
    """Engine producing white PNGs without a browser."""
    return FakeRenderEngine()


@pytest.fixture
def mixup_store() -> InMemoryMixupStore:
    return InMemoryMixupStore()


@pytest.fixture
def services(
    test_settings: TestSettings,
    registry: RecipeRegistry,
    render_engine: FakeRenderEngine,
    mixup_store: InMemoryMixupStore,
) -> Services:
    """Fully wired services over the fake engine."""
    return build_services(test_settings, engine=render_engine, registry=registry, mixup_store=mixup_store)


@pytest.fixture
def client(test_settings: TestSettings, services: Services) -> Generator[TestClient, None, None]:
    """API client over injected services."""
    app = create_app(test_settings, services)
    with TestClient(app) as test_client:
        yield test_client
