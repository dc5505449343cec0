"""Pytest configuration for the Data Governance Toolkit."""

import pytest

from data_governance.config import set_config


def pytest_configure(config):
    """Configure pytest with custom settings."""
    config.addinivalue_line("markers", "lifecycle: mark test as lifecycle rule test")


@pytest.fixture(autouse=True)
def reset_global_config():
    """Keep the module-level configuration from leaking between tests."""
    set_config(None)
    yield
    set_config(None)
