"""
Shared fixtures.

The plugin registry and the fallback temp-id counter are process-wide, so
every test starts from an empty registry and a fresh counter.
"""

import pytest

from reify import clear_plugins, reset_temp_id_counter, EvalContext


@pytest.fixture(autouse=True)
def clean_state():
    clear_plugins()
    reset_temp_id_counter()
    yield
    clear_plugins()


@pytest.fixture
def context():
    """Create a context with an empty results table."""
    return EvalContext(input={}, results={})
