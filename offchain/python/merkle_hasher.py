"""
Merkle Hasher (OpenZeppelin StandardMerkleTree compatible)

Leaves are hashed twice with keccak256 and internal nodes once over the sorted
concatenation of their children. A leaf hash is therefore the keccak of 32
bytes while a node hash is the keccak of 64 bytes, which keeps the two apart.
"""

from eth_utils import encode_hex, keccak, remove_0x_prefix

from merkle_errors import MalformedProofError

HASH_LENGTH = 32


def hash_leaf(encoding: bytes) -> bytes:
    """keccak256(keccak256(encoding))"""
    return keccak(keccak(encoding))


def hash_pair(a: bytes, b: bytes) -> bytes:
    """Combine two node hashes in canonical (byte-sorted) order."""
    combined = a + b if a <= b else b + a
    return keccak(combined)


def to_hash_bytes(node, what="node") -> bytes:
    """Accept a 32-byte hash as bytes or (optionally 0x-prefixed) hex."""
    if isinstance(node, (bytes, bytearray)):
        data = bytes(node)
    elif isinstance(node, str):
        try:
            data = bytes.fromhex(remove_0x_prefix(node))
        except ValueError as exc:
            raise MalformedProofError(f"Invalid {what} hash {node!r}") from exc
    else:
        raise MalformedProofError(f"Invalid {what} hash of type {type(node).__name__}")
    if len(data) != HASH_LENGTH:
        raise MalformedProofError(f"Invalid {what} hash: expected {HASH_LENGTH} bytes, got {len(data)}")
    return data


def is_valid_merkle_node(node) -> bool:
    try:
        to_hash_bytes(node)
    except MalformedProofError:
        return False
    return True


def to_hex(node: bytes) -> str:
    return encode_hex(node)
