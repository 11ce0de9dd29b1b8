"""
Binary-heap addressing for flat Merkle tree arrays.

A tree over n leaves is stored as 2n - 1 hashes. Node i has children 2i + 1
and 2i + 2, the root lives at 0, and the leaves fill the tail of the array.
When a level has an unpaired node it is lifted unchanged to the level above,
so leaves only ever sit on the last two levels and no hash is duplicated.
"""

from merkle_errors import IndexOutOfRangeError


def left_child_index(i):
    return 2 * i + 1


def right_child_index(i):
    return 2 * i + 2


def parent_index(i):
    if i <= 0:
        raise IndexOutOfRangeError("Root has no parent")
    return (i - 1) // 2


def sibling_index(i):
    if i <= 0:
        raise IndexOutOfRangeError("Root has no siblings")
    return i + 1 if i % 2 else i - 1


def is_tree_node(tree, i):
    return 0 <= i < len(tree)


def is_internal_node(tree, i):
    return is_tree_node(tree, left_child_index(i))


def is_leaf_node(tree, i):
    return is_tree_node(tree, i) and not is_internal_node(tree, i)


def check_leaf_node(tree, i):
    if not is_leaf_node(tree, i):
        raise IndexOutOfRangeError(f"Index {i} is not a leaf")


def tree_size(leaf_count):
    return 2 * leaf_count - 1


def leaf_slots(leaf_count):
    """Array positions holding leaves; the j-th leaf (tree order) is at size - 1 - j."""
    return range(leaf_count - 1, tree_size(leaf_count))


def proof_length_bounds(leaf_count):
    """Shortest and longest single proof in a tree of `leaf_count` leaves."""
    if leaf_count < 1:
        raise IndexOutOfRangeError("A tree needs at least one leaf")
    return leaf_count.bit_length() - 1, (leaf_count - 1).bit_length()
