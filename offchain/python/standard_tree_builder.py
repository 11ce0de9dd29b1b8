"""
Standard Merkle Tree Builder

This module provides the StandardMerkleTree: a flat, immutable Merkle tree over
ABI-encoded leaf values, compatible with OpenZeppelin's StandardMerkleTree
(`standard-v1` dumps, double-hashed leaves, sorted pair hashing).
"""

import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List

from heap_layout import (
    is_tree_node,
    left_child_index,
    right_child_index,
    tree_size,
)
from leaf_encoder import as_leaf_encoding
from merkle_errors import (
    DuplicateLeafError,
    DuplicateLeafWarning,
    EmptyInputError,
    EncodingError,
    IndexOutOfRangeError,
    InvalidTreeError,
    LeafNotFoundError,
)
from merkle_hasher import hash_leaf, hash_pair, is_valid_merkle_node, to_hash_bytes, to_hex
from openzeppelin_multiproof import Multiproof, get_multiproof, process_multiproof
from proof_generator import prove_index
from proof_verifier import process_proof, proof_nodes, verify as verify_proof
from tree_config import DuplicatePolicy, resolve_tree_config


@dataclass(frozen=True)
class LeafValue:
    """A normalized leaf value and the array position of its hash."""
    value: tuple
    tree_index: int


# --- FLAT TREE LOGIC ---

def make_merkle_tree(leaves: List[bytes]) -> List[bytes]:
    """Build the 2n - 1 heap array over leaf hashes given in tree order."""
    if not leaves:
        raise EmptyInputError("Expected non-zero number of leaves")
    leaves = [to_hash_bytes(leaf, "leaf") for leaf in leaves]

    tree = [b""] * tree_size(len(leaves))
    for i, leaf in enumerate(leaves):
        tree[len(tree) - 1 - i] = leaf

    # Every internal slot depends only on higher slots, so one backwards pass
    # completes each level before its parents are hashed
    for i in range(len(tree) - 1 - len(leaves), -1, -1):
        tree[i] = hash_pair(tree[left_child_index(i)], tree[right_child_index(i)])
    return tree


def is_valid_merkle_tree(tree) -> bool:
    """Check that every internal node is the pair hash of its children."""
    for i, node in enumerate(tree):
        if not is_valid_merkle_node(node):
            return False
        left, right = left_child_index(i), right_child_index(i)
        if right >= len(tree):
            if left < len(tree):
                return False
        elif to_hash_bytes(node) != hash_pair(to_hash_bytes(tree[left]), to_hash_bytes(tree[right])):
            return False
    return len(tree) > 0


def render_merkle_tree(tree) -> str:
    """ASCII drawing of a heap-layout tree, one node per line."""
    if not tree:
        raise EmptyInputError("Expected non-zero number of nodes")

    stack = [(0, [])]
    lines = []
    while stack:
        i, path = stack.pop()
        prefix = "".join("│  " if p else "   " for p in path[:-1])
        prefix += "".join("├─ " if p else "└─ " for p in path[-1:])
        lines.append(f"{prefix}{i}) {to_hex(to_hash_bytes(tree[i]))}")
        if is_tree_node(tree, right_child_index(i)):
            stack.append((right_child_index(i), path + [0]))
            stack.append((left_child_index(i), path + [1]))
    return "\n".join(lines)


def _hash_leaves(leaf_encoding, normalized_values, workers):
    def leaf_hash(value):
        return hash_leaf(leaf_encoding.encode_normalized(value))

    if workers <= 1 or len(normalized_values) < 2:
        return [leaf_hash(value) for value in normalized_values]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(leaf_hash, normalized_values))


def _check_duplicates(leaf_hashes, policy):
    if policy is DuplicatePolicy.ALLOW:
        return
    first_seen = {}
    duplicates = []
    for index, leaf in enumerate(leaf_hashes):
        if leaf in first_seen:
            duplicates.append((first_seen[leaf], index))
        else:
            first_seen[leaf] = index
    if not duplicates:
        return

    pairs = ", ".join(f"{a}={b}" for a, b in duplicates)
    if policy is DuplicatePolicy.REJECT:
        raise DuplicateLeafError(f"Duplicate leaf values at indices {pairs}")
    warnings.warn(
        f"Duplicate leaf values at indices {pairs}; one value will satisfy proofs at several indices",
        DuplicateLeafWarning,
        stacklevel=3,
    )


class StandardMerkleTree:
    """Immutable Merkle tree over ABI-encoded leaf values."""

    def __init__(self, tree, values, leaf_encoding):
        self._tree = tuple(to_hash_bytes(node) for node in tree)
        self._values = tuple(values)
        self.leaf_encoding = as_leaf_encoding(leaf_encoding)

        # First index wins when the same value appears more than once
        self._hash_lookup = {}
        for index, leaf_value in enumerate(self._values):
            self._hash_lookup.setdefault(self._tree[leaf_value.tree_index], index)

    @classmethod
    def of(cls, values, types, sort_leaves=None, duplicate_policy=None, hash_workers=None):
        """
        Build a tree from raw values and their declared ABI types.

        Values are encoded and hashed in input order; that order is the public
        index of each value. With `sort_leaves` the leaf hashes are sorted
        before placement, which reproduces StandardMerkleTree.of() roots from
        the JavaScript library.
        """
        config = resolve_tree_config(
            sort_leaves=sort_leaves,
            duplicate_policy=duplicate_policy,
            hash_workers=hash_workers,
        )
        leaf_encoding = as_leaf_encoding(types)
        values = list(values)
        if not values:
            raise EmptyInputError("Expected non-zero number of leaves")

        normalized = []
        for index, value in enumerate(values):
            try:
                normalized.append(leaf_encoding.normalize(value))
            except EncodingError as exc:
                raise EncodingError(f"Value {index}: {exc}") from exc

        leaf_hashes = _hash_leaves(leaf_encoding, normalized, config.hash_workers)
        _check_duplicates(leaf_hashes, config.duplicate_policy)

        order = list(range(len(values)))
        if config.sort_leaves:
            order.sort(key=lambda i: leaf_hashes[i])

        tree = make_merkle_tree([leaf_hashes[i] for i in order])
        tree_indices = [0] * len(values)
        for position, value_index in enumerate(order):
            tree_indices[value_index] = len(tree) - 1 - position

        leaf_values = [LeafValue(value, tree_index) for value, tree_index in zip(normalized, tree_indices)]
        return cls(tree, leaf_values, leaf_encoding)

    # --- READ ACCESS ---

    @property
    def root(self) -> str:
        return to_hex(self._tree[0])

    @property
    def node_hashes(self):
        """The flat heap array as bytes."""
        return self._tree

    @property
    def tree(self):
        """The flat heap array as 0x-prefixed hex strings."""
        return tuple(to_hex(node) for node in self._tree)

    @property
    def values(self):
        return self._values

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        return f"StandardMerkleTree(root={self.root}, leaves={len(self)}, types={list(self.leaf_encoding.types)})"

    def _check_index(self, index):
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._values):
            raise IndexOutOfRangeError(f"Index {index!r} out of bounds for a tree of {len(self._values)} leaves")

    def at(self, index) -> tuple:
        self._check_index(index)
        return self._values[index].value

    def tree_index(self, index) -> int:
        """Array position of the hash of the value at input position `index`."""
        self._check_index(index)
        return self._values[index].tree_index

    def entries(self):
        for index, leaf_value in enumerate(self._values):
            yield index, leaf_value.value

    def __iter__(self):
        return self.entries()

    # --- LEAVES ---

    def _leaf_hash(self, value) -> bytes:
        return hash_leaf(self.leaf_encoding.encode(value))

    def leaf_hash(self, value) -> str:
        return to_hex(self._leaf_hash(value))

    def leaf_lookup(self, value) -> int:
        """Input position of `value`."""
        index = self._hash_lookup.get(self._leaf_hash(value))
        if index is None:
            raise LeafNotFoundError("Leaf is not in tree")
        return index

    def _resolve_index(self, leaf) -> int:
        if isinstance(leaf, int) and not isinstance(leaf, bool):
            self._check_index(leaf)
            return leaf
        return self.leaf_lookup(leaf)

    # --- PROOFS ---

    def get_proof(self, leaf) -> List[str]:
        """Proof for a value, given either its index or the value itself."""
        return prove_index(self, self._resolve_index(leaf))

    def verify(self, leaf, proof) -> bool:
        if isinstance(leaf, int) and not isinstance(leaf, bool):
            leaf = self.at(leaf)
        return process_proof(self._leaf_hash(leaf), proof_nodes(proof)) == self._tree[0]

    @staticmethod
    def verify_static(root, types, value, proof) -> bool:
        """Verify a proof against a published root without building a tree."""
        return verify_proof(value, types, proof, root)

    def get_multiproof(self, leaves) -> Multiproof:
        """
        Multiproof for several values (indices or values).

        The returned leaves are the values themselves, in the order the
        verifier consumes them.
        """
        indices = [self._resolve_index(leaf) for leaf in leaves]
        hash_proof = get_multiproof(self._tree, [self._values[i].tree_index for i in indices])
        return Multiproof(
            leaves=[self._values[self._hash_lookup[leaf]].value for leaf in hash_proof.leaves],
            proof=[to_hex(node) for node in hash_proof.proof],
            proof_flags=list(hash_proof.proof_flags),
        )

    def verify_multiproof(self, multiproof: Multiproof) -> bool:
        return self.verify_multiproof_static(self.root, self.leaf_encoding, multiproof)

    @staticmethod
    def verify_multiproof_static(root, types, multiproof: Multiproof) -> bool:
        leaf_encoding = as_leaf_encoding(types)
        hashed = Multiproof(
            leaves=[hash_leaf(leaf_encoding.encode(value)) for value in multiproof.leaves],
            proof=list(multiproof.proof),
            proof_flags=list(multiproof.proof_flags),
        )
        return process_multiproof(hashed) == to_hash_bytes(root, "root")

    # --- INTEGRITY AND OUTPUT ---

    def validate(self):
        """Re-hash every value and every internal node; raise InvalidTreeError on any mismatch."""
        for index, leaf_value in enumerate(self._values):
            if self._tree[leaf_value.tree_index] != self._leaf_hash(leaf_value.value):
                raise InvalidTreeError(f"Merkle tree does not contain the expected value at index {index}")
        if not is_valid_merkle_tree(self._tree):
            raise InvalidTreeError("Merkle tree is invalid")

    def render(self) -> str:
        return render_merkle_tree(self._tree)

    def dump(self) -> dict:
        from tree_serializer import dump
        return dump(self)

    @classmethod
    def load(cls, record, verify=False):
        from tree_serializer import load
        return load(record, verify=verify)


def build(values, types, **options) -> StandardMerkleTree:
    """Build a StandardMerkleTree; keyword options override the global TreeConfig."""
    return StandardMerkleTree.of(values, types, **options)
