import pytest

from tree_config import reset_to_default_config

DEMO_ADDRESSES = [f"0x{n:040x}" for n in range(1, 6)]


@pytest.fixture(autouse=True)
def default_tree_config():
    reset_to_default_config()
    yield
    reset_to_default_config()


@pytest.fixture
def demo_values():
    return [[address] for address in DEMO_ADDRESSES]
