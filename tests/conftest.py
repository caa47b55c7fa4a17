"""Pytest configuration and shared fixtures."""
import pytest

from scopedioc import ReflectionRegistry
import scopedioc.config as config_module


@pytest.fixture(autouse=True)
def restore_scope_prefix():
    """Restore the scope prefix after each test."""
    # Store original value
    original_prefix = config_module._scope_prefix

    yield

    # Restore original value after test
    config_module._scope_prefix = original_prefix


@pytest.fixture
def registry():
    """Provide a registry, disposed after the test so classes get their constructor back."""
    registry = ReflectionRegistry()
    yield registry
    registry.dispose()


@pytest.fixture
def klass():
    """Provide a fresh class per test (registration patches the class)."""
    class Klass:
        prop = 'foo'

        def get(self):
            return 'default-' + self.prop

    return Klass
