# tests/conftest.py
"""Shared test fixtures.

Catalog Fixtures:
- image_catalog: Minimal two-type catalog (A produces IMAGE, B consumes it)
- sampler_catalog: Realistic catalog parsed from an object_info document

Graph builders live in tests.fixtures.graphs so they can be imported directly.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import os

import pytest
from hypothesis import Phase, Verbosity, settings

from tests.fixtures.graphs import A_SCHEMA, B_SCHEMA, SAMPLER_OBJECT_INFO
from toucan.core.catalog import SchemaCatalog


@pytest.fixture
def image_catalog() -> SchemaCatalog:
    """A (one IMAGE output) and B (one required IMAGE input)."""
    return SchemaCatalog.from_schemas(A_SCHEMA, B_SCHEMA)


@pytest.fixture
def sampler_catalog() -> SchemaCatalog:
    """Catalog parsed from a realistic object_info document."""
    return SchemaCatalog.from_object_info(SAMPLER_OBJECT_INFO)


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
