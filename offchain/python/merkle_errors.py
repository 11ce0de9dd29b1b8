"""
Merkle Tree Errors

Every failure raised by the standard tree modules derives from MerkleTreeError,
which is itself a ValueError so callers that already guard with ValueError keep
working. A proof that simply does not match a root is not an error: verifiers
return False for that case.
"""


class MerkleTreeError(ValueError):
    """Base class for all standard Merkle tree errors."""


class EncodingError(MerkleTreeError):
    """A value does not match its declared leaf encoding."""


class DuplicateLeafError(EncodingError):
    """Two values produce the same leaf (raised under DuplicatePolicy.REJECT)."""


class EmptyInputError(MerkleTreeError):
    """A tree was requested over zero leaves."""


class IndexOutOfRangeError(MerkleTreeError):
    """A leaf index does not exist in the tree."""


class LeafNotFoundError(MerkleTreeError):
    """A value was looked up that is not a leaf of the tree."""


class MalformedProofError(MerkleTreeError):
    """A proof, multiproof or root hash is structurally invalid."""


class FormatError(MerkleTreeError):
    """A serialized tree record is unknown or inconsistent."""


class InvalidTreeError(FormatError):
    """A loaded tree does not hash to what its values and nodes claim."""


class DuplicateLeafWarning(UserWarning):
    """One value satisfies proofs at several indices."""
