"""
Single Proof Verifier

Recomputes a root from a leaf value and its sibling path. The verifier keeps no
state and needs nothing from the tree besides the public root, so it mirrors
what an on-chain `MerkleProof.verify` call does with the same inputs.
"""

from heap_layout import proof_length_bounds
from leaf_encoder import as_leaf_encoding
from merkle_errors import MalformedProofError
from merkle_hasher import hash_leaf, hash_pair, to_hash_bytes


def proof_nodes(proof):
    """Validate a proof's shape and return its entries as bytes."""
    if isinstance(proof, (str, bytes, bytearray)) or not isinstance(proof, (list, tuple)):
        raise MalformedProofError(f"Proof must be a list of hashes, got {type(proof).__name__}")
    return [to_hash_bytes(node, "proof") for node in proof]


def process_proof(leaf, proof):
    """Fold the proof into `leaf` and return the implied root (bytes)."""
    nodes = proof_nodes(proof)
    computed = to_hash_bytes(leaf, "leaf")
    for node in nodes:
        computed = hash_pair(computed, node)
    return computed


def check_proof_length(proof, leaf_count):
    if isinstance(leaf_count, bool) or not isinstance(leaf_count, int) or leaf_count < 1:
        raise MalformedProofError(f"Cannot check a proof against a tree of {leaf_count!r} leaves")
    shortest, longest = proof_length_bounds(leaf_count)
    if not shortest <= len(proof) <= longest:
        raise MalformedProofError(
            f"Proof of length {len(proof)} is impossible in a tree of {leaf_count} leaves "
            f"(expected {shortest}..{longest})")


def verify(value, types, proof, root, leaf_count=None):
    """
    Check that `value` is a leaf of the tree committed to by `root`.

    Returns False for any mismatch. Raises MalformedProofError only when the
    proof or root is not made of 32-byte hashes, or when `leaf_count` is given
    and no leaf of such a tree could have a proof of this length.
    """
    nodes = proof_nodes(proof)
    expected_root = to_hash_bytes(root, "root")
    if leaf_count is not None:
        check_proof_length(nodes, leaf_count)

    leaf = hash_leaf(as_leaf_encoding(types).encode(value))
    return process_proof(leaf, nodes) == expected_root
