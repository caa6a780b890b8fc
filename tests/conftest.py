"""Pytest configuration shared by unit and integration tests.

The module-level config is validated at import, so placeholder API keys are
seeded before any recipe_engine module is collected. Real keys from the
environment take precedence; no test talks to a real provider.
"""

import os


def pytest_configure(config):
    """Seed placeholder credentials and quiet logging before collection."""
    os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
    os.environ.setdefault("SPOONACULAR_API_KEY", "test-spoonacular-key")
    os.environ.setdefault("LOG_LEVEL", "WARNING")
