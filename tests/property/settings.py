# tests/property/settings.py
"""Standardized Hypothesis settings for property tests.

Usage:
    from tests.property.settings import STANDARD_SETTINGS

    @given(shape=pipeline_shapes)
    @STANDARD_SETTINGS
    def test_something(shape):
        ...

Deadlines and phases come from the profile loaded in tests/conftest.py.
"""

from hypothesis import settings

# Standard property tests - good balance of coverage and speed
STANDARD_SETTINGS = settings(max_examples=100)
