"""
Global test configuration with support for different test types.
"""

import os

import pytest

from recipe_extract.config import resolve_config
from recipe_extract.config.types import FrozenConfig
from recipe_extract.resilience import reset_breakers


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_recipe_env(request, monkeypatch):
    """Ensure a clean RECIPE_EXTRACT_* environment for each test.

    Escape hatches:
      - @pytest.mark.allow_env_pollution: keep current env unchanged
      - tests marked with @pytest.mark.api bypass isolation so the real
        environment can be used when explicitly running API tests.
    """
    if request.node.get_closest_marker("allow_env_pollution") or (
        "api" in request.node.keywords
    ):
        return

    for key in list(os.environ.keys()):
        if key.startswith("RECIPE_EXTRACT_"):
            monkeypatch.delenv(key, raising=False)
    # Avoid DEBUG toggles affecting telemetry
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture(autouse=True)
def fresh_breakers():
    """Process-wide circuit breakers start closed in every test."""
    reset_breakers()
    yield
    reset_breakers()


@pytest.fixture
def isolated_project(tmp_path, monkeypatch):
    """Run from an empty directory with an empty home so no real config is read."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    return project


@pytest.fixture
def frozen_config(isolated_project) -> FrozenConfig:  # noqa: ARG001
    """Default configuration with the headless renderer switched off."""
    return resolve_config({"headless_enabled": False}).to_frozen()


@pytest.fixture
def make_config(isolated_project):  # noqa: ARG001
    """Factory for frozen configs with programmatic overrides."""

    def _make(**overrides) -> FrozenConfig:
        values = {"headless_enabled": False, **overrides}
        return resolve_config(values).to_frozen()

    return _make


def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: Component integration tests with mocked services",
        "api: Real API integration tests (requires API keys)",
        "slow: Tests that take >1 second",
        "allow_env_pollution: Keep the current RECIPE_EXTRACT_* environment",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


def pytest_collection_modifyitems(config, items):  # noqa: ARG001
    """Automatically skip API tests when API keys are unavailable."""
    if not (
        os.getenv("RECIPE_EXTRACT_MEMORIES_API_KEY") and os.getenv("ENABLE_API_TESTS")
    ):
        skip_api = pytest.mark.skip(
            reason="API tests require RECIPE_EXTRACT_MEMORIES_API_KEY and ENABLE_API_TESTS=1",
        )
        for item in items:
            if "api" in item.keywords:
                item.add_marker(skip_api)
