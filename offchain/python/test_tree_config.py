import pytest

from tree_config import (
    DuplicatePolicy,
    TreeConfig,
    get_tree_config,
    reset_to_default_config,
    resolve_tree_config,
    set_tree_config,
)


def test_defaults():
    config = get_tree_config()
    assert config == TreeConfig()
    assert config.sort_leaves is False
    assert config.duplicate_policy is DuplicatePolicy.WARN
    assert config.hash_workers == 1


def test_set_and_reset():
    set_tree_config(sort_leaves=True, duplicate_policy="reject")
    assert get_tree_config().sort_leaves is True
    assert get_tree_config().duplicate_policy is DuplicatePolicy.REJECT
    reset_to_default_config()
    assert get_tree_config() == TreeConfig()


def test_overrides_ignore_unset_values():
    set_tree_config(hash_workers=3)
    config = resolve_tree_config(sort_leaves=None, hash_workers=None, duplicate_policy=DuplicatePolicy.ALLOW)
    assert config.hash_workers == 3
    assert config.duplicate_policy is DuplicatePolicy.ALLOW
    assert get_tree_config().duplicate_policy is DuplicatePolicy.WARN


@pytest.mark.parametrize("kwargs", [{"hash_workers": 0}, {"unknown_field": 1}, {"duplicate_policy": "maybe"}])
def test_invalid_settings(kwargs):
    with pytest.raises(ValueError):
        set_tree_config(**kwargs)
