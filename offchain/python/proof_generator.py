"""
Single Proof Generator

Walks from a leaf slot up to the root of a flat heap-layout tree, collecting
the sibling hash at every level. A leaf that was lifted past an unpaired level
has no sibling there, so its proof is one entry shorter.
"""

from heap_layout import check_leaf_node, parent_index, sibling_index
from merkle_hasher import to_hex


def get_proof(tree, index):
    """Sibling hashes (bytes) for the leaf stored at array position `index`, leaf to root."""
    check_leaf_node(tree, index)
    proof = []
    while index > 0:
        proof.append(tree[sibling_index(index)])
        index = parent_index(index)
    return proof


def prove_index(tree, index):
    """
    Generate the proof for the value at input position `index`.

    Args:
        tree: A StandardMerkleTree
        index: Position of the value in the list the tree was built from

    Returns:
        list: 0x-prefixed sibling hashes in leaf-to-root order
    """
    slot = tree.tree_index(index)
    return [to_hex(node) for node in get_proof(tree.node_hashes, slot)]
