import pytest

from merkle_errors import IndexOutOfRangeError, MalformedProofError
from openzeppelin_multiproof import Multiproof, get_multiproof, process_multiproof, verify_multiproof
from standard_tree_builder import StandardMerkleTree, build


@pytest.fixture
def demo_tree(demo_values):
    return build(demo_values, ["address"])


def test_reference_multiproof(demo_tree):
    multiproof = demo_tree.get_multiproof([0, 1])
    assert multiproof.leaves == [("0x0000000000000000000000000000000000000001",),
                                 ("0x0000000000000000000000000000000000000002",)]
    assert multiproof.proof == [
        "0x16db2e4b9f8dc120de98f8491964203ba76de27b27b29c2d25f85a325cd37477",
        "0x4ade9dd0b7697e91d2ea0b16f6c27805fc07b11e169a931b0d5457ccb32eb77c",
    ]
    assert multiproof.proof_flags == [True, False, False]
    assert demo_tree.verify_multiproof(multiproof)


@pytest.mark.parametrize("indices", [[0], [4], [0, 4], [1, 2, 3], [4, 3, 2, 1, 0], [2, 0]])
def test_multiproof_round_trip(demo_tree, indices):
    multiproof = demo_tree.get_multiproof(indices)
    assert len(multiproof.leaves) + len(multiproof.proof) == len(multiproof.proof_flags) + 1
    assert demo_tree.verify_multiproof(multiproof)
    assert StandardMerkleTree.verify_multiproof_static(demo_tree.root, ["address"], multiproof)


def test_multiproof_by_value(demo_tree, demo_values):
    by_value = demo_tree.get_multiproof([demo_values[3], demo_values[1]])
    by_index = demo_tree.get_multiproof([3, 1])
    assert by_value == by_index


def test_empty_multiproof_proves_root(demo_tree):
    multiproof = demo_tree.get_multiproof([])
    assert multiproof.leaves == []
    assert multiproof.proof == [demo_tree.root]
    assert demo_tree.verify_multiproof(multiproof)


def test_tampered_multiproof_is_rejected(demo_tree):
    multiproof = demo_tree.get_multiproof([0, 3])
    swapped = Multiproof(
        leaves=[("0x0000000000000000000000000000000000000009",)] + multiproof.leaves[1:],
        proof=multiproof.proof,
        proof_flags=multiproof.proof_flags,
    )
    assert not demo_tree.verify_multiproof(swapped)


def test_duplicated_index_is_rejected(demo_tree):
    with pytest.raises(MalformedProofError):
        demo_tree.get_multiproof([1, 1])


def test_non_leaf_index_is_rejected(demo_tree):
    with pytest.raises(IndexOutOfRangeError):
        get_multiproof(demo_tree.node_hashes, [0])


def test_incompatible_multiproof_shapes(demo_tree):
    tree = demo_tree.node_hashes
    multiproof = get_multiproof(tree, [8, 7])
    assert verify_multiproof(multiproof, demo_tree.root)

    too_few_flags = Multiproof(multiproof.leaves, multiproof.proof, multiproof.proof_flags[:-1])
    with pytest.raises(MalformedProofError):
        process_multiproof(too_few_flags)

    not_enough_proof = Multiproof(multiproof.leaves, multiproof.proof[:1], [False, False])
    with pytest.raises(MalformedProofError):
        process_multiproof(not_enough_proof)

    bad_hash = Multiproof(multiproof.leaves, ["0x00"] + multiproof.proof[1:], multiproof.proof_flags)
    with pytest.raises(MalformedProofError):
        process_multiproof(bad_hash)
