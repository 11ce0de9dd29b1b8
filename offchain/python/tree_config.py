#!/usr/bin/env python3
"""
Tree Configuration for Standard Merkle Trees

This module keeps the process-wide defaults used when building trees:
1. Leaf ordering (input order, or sorted by leaf hash like StandardMerkleTree.of)
2. Duplicate leaf policy (allow, warn, reject)
3. Leaf hashing fan-out (number of worker threads)

Every builder call can override these with keyword arguments.
"""

from enum import Enum
from dataclasses import dataclass, fields, replace


class DuplicatePolicy(Enum):
    """What to do when two values encode to the same leaf."""
    ALLOW = "allow"     # Build silently
    WARN = "warn"       # Build and emit a DuplicateLeafWarning
    REJECT = "reject"   # Raise DuplicateLeafError


@dataclass(frozen=True)
class TreeConfig:
    """Configuration for tree construction."""
    # Sort leaf hashes before placing them (OpenZeppelin sortLeaves option)
    sort_leaves: bool = False

    duplicate_policy: DuplicatePolicy = DuplicatePolicy.WARN

    # Threads used to hash leaves; 1 hashes serially
    hash_workers: int = 1

    # Debugging
    verbose_logging: bool = False

    def __post_init__(self):
        if not isinstance(self.duplicate_policy, DuplicatePolicy):
            object.__setattr__(self, "duplicate_policy", DuplicatePolicy(self.duplicate_policy))
        if self.hash_workers < 1:
            raise ValueError(f"hash_workers must be at least 1, got {self.hash_workers}")


# Global configuration
TREE_CONFIG = TreeConfig()


def get_tree_config() -> TreeConfig:
    """Get current tree configuration."""
    return TREE_CONFIG


def set_tree_config(**kwargs) -> TreeConfig:
    """Replace fields of the global configuration."""
    global TREE_CONFIG
    known = {f.name for f in fields(TreeConfig)}
    unknown = set(kwargs) - known
    if unknown:
        raise ValueError(f"Unknown tree config fields: {sorted(unknown)}")
    TREE_CONFIG = replace(TREE_CONFIG, **kwargs)
    return TREE_CONFIG


def resolve_tree_config(**overrides) -> TreeConfig:
    """Global configuration with per-call overrides applied (None means unset)."""
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if not overrides:
        return TREE_CONFIG
    return replace(TREE_CONFIG, **overrides)


def reset_to_default_config():
    """Reset configuration to default values."""
    global TREE_CONFIG
    TREE_CONFIG = TreeConfig()
