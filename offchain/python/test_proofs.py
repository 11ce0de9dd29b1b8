"""
Single proof generation and verification.
"""

import pytest

from merkle_errors import EncodingError, IndexOutOfRangeError, LeafNotFoundError, MalformedProofError
from proof_generator import get_proof, prove_index
from proof_verifier import process_proof, verify
from standard_tree_builder import StandardMerkleTree, build

DEMO_ROOT = "0x26b6b78b5477f2b0f2a2070fc0dfae6643f3972b71dba4a09176db581b4a07ba"
DEMO_PROOF_2 = [
    "0xc167b0e3c82238f4f2d1a50a8b3a44f96311d77b148c30dc0ef863e1a060dcb6",
    "0xfb9d5d080ab994978e4a5f91e279a4584e57ea12f7e30a5aea9fad1cd2f02676",
]
DEMO_SORTED_ROOT = "0x21abd2f655ded75d91fbd5e0b1ad35171a675fd315a077efa7f2d555a26e7094"
DEMO_SORTED_PROOF_2 = [
    "0xb5d9d894133a730aa651ef62d26b0ffa846233c74177a591a4a896adfda97d22",
    "0xc949c2dc5da2bd9a4f5ae27532dfbb3551487bed50825cd099ff5d0a8d613ab5",
]
THIRD = ["0x0000000000000000000000000000000000000003"]


@pytest.fixture
def demo_tree(demo_values):
    return build(demo_values, ["address"])


def test_reference_proof(demo_tree):
    assert prove_index(demo_tree, 2) == DEMO_PROOF_2
    assert demo_tree.get_proof(THIRD) == DEMO_PROOF_2
    assert verify(THIRD, ["address"], DEMO_PROOF_2, DEMO_ROOT)


def test_reference_proof_sorted(demo_values):
    tree = build(demo_values, ["address"], sort_leaves=True)
    assert tree.get_proof(2) == DEMO_SORTED_PROOF_2
    assert verify(THIRD, ["address"], DEMO_SORTED_PROOF_2, DEMO_SORTED_ROOT)


@pytest.mark.parametrize("count", [1, 2, 3, 4, 5, 7, 8, 13])
def test_every_index_verifies(count):
    values = [[f"0x{n:040x}", n * 10] for n in range(1, count + 1)]
    tree = build(values, ["address", "uint256"])
    for i, value in enumerate(values):
        proof = tree.get_proof(i)
        assert verify(value, ["address", "uint256"], proof, tree.root, leaf_count=count)
        assert tree.verify(i, proof)
        assert tree.verify(value, proof)
        assert StandardMerkleTree.verify_static(tree.root, ["address", "uint256"], value, proof)


def test_tampered_value_is_rejected(demo_tree):
    proof = demo_tree.get_proof(2)
    assert not verify(["0x0000000000000000000000000000000000000006"], ["address"], proof, demo_tree.root)
    assert not verify(["0x0000000000000000000000000000000000000004"], ["address"], proof, demo_tree.root)


def test_every_corrupted_proof_byte_is_rejected(demo_tree):
    proof = demo_tree.get_proof(2)
    for entry in range(len(proof)):
        raw = bytearray.fromhex(proof[entry][2:])
        for position in range(len(raw)):
            corrupted = bytearray(raw)
            corrupted[position] ^= 0x01
            tampered = list(proof)
            tampered[entry] = "0x" + corrupted.hex()
            assert verify(THIRD, ["address"], tampered, demo_tree.root) is False


def test_wrong_root_is_rejected(demo_tree):
    proof = demo_tree.get_proof(2)
    assert not verify(THIRD, ["address"], proof, demo_tree.tree[1])
    assert not verify(THIRD, ["address"], proof[:1], demo_tree.root)


def test_carried_leaf_has_shorter_proof(demo_tree):
    paired = demo_tree.get_proof(0)
    carried = demo_tree.get_proof(4)
    assert len(carried) == len(paired) - 1
    assert verify(["0x0000000000000000000000000000000000000005"], ["address"], carried, demo_tree.root)


def test_proof_generation_bounds(demo_tree):
    with pytest.raises(IndexOutOfRangeError):
        demo_tree.get_proof(5)
    with pytest.raises(IndexOutOfRangeError):
        demo_tree.get_proof(-1)
    with pytest.raises(IndexOutOfRangeError):
        prove_index(demo_tree, 7)
    with pytest.raises(LeafNotFoundError):
        demo_tree.get_proof(["0x0000000000000000000000000000000000000009"])
    # Internal array positions are not leaves
    with pytest.raises(IndexOutOfRangeError):
        get_proof(demo_tree.node_hashes, 1)


@pytest.mark.parametrize("proof", [
    "0xc167b0e3c82238f4f2d1a50a8b3a44f96311d77b148c30dc0ef863e1a060dcb6",
    ["0x1234"],
    [None],
    None,
])
def test_malformed_proofs_raise(demo_tree, proof):
    with pytest.raises(MalformedProofError):
        verify(THIRD, ["address"], proof, demo_tree.root)


def test_malformed_root_raises(demo_tree):
    with pytest.raises(MalformedProofError):
        verify(THIRD, ["address"], DEMO_PROOF_2, "0xroot")


def test_impossible_proof_length_for_leaf_count(demo_tree):
    with pytest.raises(MalformedProofError):
        verify(THIRD, ["address"], DEMO_PROOF_2[:1], demo_tree.root, leaf_count=5)
    with pytest.raises(MalformedProofError):
        verify(THIRD, ["address"], DEMO_PROOF_2 * 2, demo_tree.root, leaf_count=5)


@pytest.mark.parametrize("leaf_count", [0, -1, "5", True])
def test_nonsense_leaf_count_raises(demo_tree, leaf_count):
    with pytest.raises(MalformedProofError):
        verify(THIRD, ["address"], DEMO_PROOF_2, demo_tree.root, leaf_count=leaf_count)


def test_value_that_does_not_encode_raises(demo_tree):
    with pytest.raises(EncodingError):
        verify([42], ["address"], DEMO_PROOF_2, demo_tree.root)


def test_process_proof_folds_siblings(demo_tree):
    leaf = demo_tree.node_hashes[demo_tree.tree_index(2)]
    assert process_proof(leaf, DEMO_PROOF_2) == demo_tree.node_hashes[0]
