# tests/property/settings.py
"""Standardized Hypothesis settings for property tests.

Provides consistent test intensity across all property test modules.
Import these instead of using inline @settings(max_examples=...).

Usage:
    from tests.property.settings import STANDARD_SETTINGS

    @given(values=st.lists(st.integers()))
    @STANDARD_SETTINGS
    def test_something(values):
        ...

The active profile (ci / nightly / debug, see tests/conftest.py) still
controls deadlines and verbosity.
"""

from hypothesis import settings

# Standard property tests - good balance of coverage and speed
STANDARD_SETTINGS = settings(max_examples=100)
