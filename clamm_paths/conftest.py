import copy

import pytest

import clamm_paths.core.config as clamm_config


def pytest_configure(config):
    config.addinivalue_line("markers", "smoke: mark test as a smoke test")
    config.addinivalue_line("markers", "integration: mark test as integration (live RPC)")


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "smoke" in item.nodeid:
            item.add_marker(pytest.mark.smoke)


@pytest.fixture
def restore_global_config():
    original = copy.deepcopy(clamm_config.CONFIG)
    yield
    clamm_config.set_config(original)
