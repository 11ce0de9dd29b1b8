#!/usr/bin/env python3
"""
OpenZeppelin Multiproof Implementation

This module implements the OpenZeppelin multiproof algorithm over the flat
heap-layout tree, so that proofs it generates are accepted by
`MerkleProof.multiProofVerify` and by the JavaScript StandardMerkleTree.
"""

from dataclasses import dataclass, field
from typing import List

from heap_layout import check_leaf_node, parent_index, sibling_index
from merkle_errors import MalformedProofError
from merkle_hasher import hash_pair, to_hash_bytes


@dataclass(frozen=True)
class Multiproof:
    """Leaves (hashes or values), sibling hashes and the flags that interleave them."""
    leaves: list
    proof: List[str] = field(default_factory=list)
    proof_flags: List[bool] = field(default_factory=list)


def get_multiproof(tree, indices):
    """
    Generate a multiproof for several leaf slots of a heap-layout tree.

    Args:
        tree: Flat list of node hashes (bytes)
        indices: Array positions of the leaves to prove

    Returns:
        Multiproof: leaves in the order the verifier consumes them (descending
        array position), the proof hashes and proof flags, with
        len(leaves) + len(proof) == len(proof_flags) + 1
    """
    for i in indices:
        check_leaf_node(tree, i)

    # Process deepest positions first, exactly like the on-chain verifier
    sorted_indices = sorted(indices, reverse=True)
    if any(a == b for a, b in zip(sorted_indices, sorted_indices[1:])):
        raise MalformedProofError("Cannot prove duplicated index")

    stack = list(sorted_indices)
    proof = []
    proof_flags = []

    while stack and stack[0] > 0:
        j = stack.pop(0)
        s = sibling_index(j)
        p = parent_index(j)

        if stack and s == stack[0]:
            # Sibling is also being proven - no proof hash needed
            proof_flags.append(True)
            stack.pop(0)
        else:
            proof_flags.append(False)
            proof.append(tree[s])
        stack.append(p)

    if not indices:
        proof.append(tree[0])

    return Multiproof(
        leaves=[tree[i] for i in sorted_indices],
        proof=proof,
        proof_flags=proof_flags,
    )


def process_multiproof(multiproof):
    """
    Rebuild the root implied by a multiproof whose leaves are hashes.

    Raises MalformedProofError when the leaves, proof and flags cannot belong
    to the same multiproof.
    """
    leaves = [to_hash_bytes(leaf, "leaf") for leaf in multiproof.leaves]
    proof = [to_hash_bytes(node, "proof") for node in multiproof.proof]
    proof_flags = list(multiproof.proof_flags)

    if any(not isinstance(flag, bool) for flag in proof_flags):
        raise MalformedProofError("Proof flags must be booleans")
    if len(proof) < proof_flags.count(False):
        raise MalformedProofError("Invalid multiproof format")
    if len(leaves) + len(proof) != len(proof_flags) + 1:
        raise MalformedProofError("Provided leaves and multiproof are not compatible")

    hashes = list(leaves)
    proof_pos = 0
    for flag in proof_flags:
        if not hashes:
            raise MalformedProofError("Broken invariant: multiproof ran out of hashes")
        a = hashes.pop(0)
        if flag:
            if not hashes:
                raise MalformedProofError("Broken invariant: multiproof ran out of hashes")
            b = hashes.pop(0)
        else:
            b = proof[proof_pos]
            proof_pos += 1
        hashes.append(hash_pair(a, b))

    remaining_proof = len(proof) - proof_pos
    if len(hashes) + remaining_proof != 1:
        raise MalformedProofError("Broken invariant: multiproof did not reduce to a single root")

    # The last hash should be the root
    return hashes[-1] if hashes else proof[proof_pos]


def verify_multiproof(multiproof, root):
    """True when the multiproof's hashed leaves rebuild `root`."""
    expected_root = to_hash_bytes(root, "root")
    return process_multiproof(multiproof) == expected_root
