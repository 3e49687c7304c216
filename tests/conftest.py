# tests/conftest.py
"""Shared test fixtures and helpers.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import os
from collections.abc import Iterator

import pytest
from hypothesis import Phase, Verbosity, settings

from flowfan.contracts import FlowUnit
from flowfan.engine import MockClock, UnitQueue
from flowfan.plugins.context import ProcessContext
from flowfan.plugins.manager import PluginManager

# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def ctx() -> ProcessContext:
    """Context for direct processor calls."""
    return ProcessContext(run_id="test-run", node_id="test-node", plugin_name="test")


@pytest.fixture
def plugin_manager() -> PluginManager:
    """Plugin manager with built-in processors registered."""
    manager = PluginManager()
    manager.register_builtin_plugins()
    return manager


@pytest.fixture
def clock() -> MockClock:
    return MockClock(now=1000.0)


@pytest.fixture
def input_queue(clock: MockClock) -> UnitQueue:
    return UnitQueue(clock=clock)


def make_unit(content: bytes = b"payload", **attributes: str) -> FlowUnit:
    """Build a unit with keyword attributes."""
    return FlowUnit.create(content, attributes)


@pytest.fixture
def reset_logging() -> Iterator[None]:
    """Restore structlog defaults after a test reconfigures logging."""
    import logging

    import structlog

    yield
    structlog.reset_defaults()
    # Handlers bound to a captured stream must not outlive the test
    logging.getLogger().handlers = []
