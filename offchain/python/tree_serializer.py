"""
Tree Serializer (standard-v1)

Dumps a StandardMerkleTree to the record format shared with OpenZeppelin's
JavaScript StandardMerkleTree and loads it back:

    {
      "format": "standard-v1",
      "leafEncoding": ["address", "uint256"],
      "tree": ["0x<root>", ..., "0x<leaf>"],
      "values": [{"value": [...], "treeIndex": 4}, ...]
    }

The `tree` array is the heap layout: node i has children 2i + 1 and 2i + 2 and
the root is element 0. Integers in `values` are written as decimal strings and
bytes as 0x hex so other implementations read them without losing precision.
"""

import json
from collections.abc import Mapping

from heap_layout import leaf_slots, tree_size
from leaf_encoder import LeafEncoding
from merkle_errors import EncodingError, FormatError, MalformedProofError
from merkle_hasher import to_hash_bytes, to_hex
from standard_tree_builder import LeafValue, StandardMerkleTree

FORMAT_VERSION = "standard-v1"


def dump(tree):
    """Serialize a tree into a standard-v1 record (plain dict)."""
    leaf_encoding = tree.leaf_encoding
    return {
        "format": FORMAT_VERSION,
        "leafEncoding": list(leaf_encoding.types),
        "tree": [to_hex(node) for node in tree.node_hashes],
        "values": [
            {"value": leaf_encoding.to_json(leaf_value.value), "treeIndex": leaf_value.tree_index}
            for leaf_value in tree.values
        ],
    }


def _require(record, key, kind):
    if key not in record:
        raise FormatError(f"Record is missing '{key}'")
    value = record[key]
    if not isinstance(value, kind):
        raise FormatError(f"Record field '{key}' has the wrong type ({type(value).__name__})")
    return value


def load(record, verify=False):
    """
    Rebuild a tree from a standard-v1 record.

    The hash array is trusted as stored unless `verify` is set, in which case
    every value is re-hashed and every internal node re-checked.
    """
    if not isinstance(record, Mapping):
        raise FormatError(f"Record must be a mapping, got {type(record).__name__}")
    if record.get("format") != FORMAT_VERSION:
        raise FormatError(f"Unknown format '{record.get('format')}'")

    types = _require(record, "leafEncoding", list)
    hashes = _require(record, "tree", list)
    entries = _require(record, "values", list)

    if not entries:
        raise FormatError("Record holds no values")
    if len(hashes) != tree_size(len(entries)):
        raise FormatError(
            f"Tree of {len(hashes)} nodes does not fit {len(entries)} values (expected {tree_size(len(entries))})")

    try:
        leaf_encoding = LeafEncoding(types)
    except EncodingError as exc:
        raise FormatError(f"Invalid leafEncoding: {exc}") from exc

    try:
        nodes = [to_hash_bytes(node, "tree") for node in hashes]
    except MalformedProofError as exc:
        raise FormatError(str(exc)) from exc

    slots = leaf_slots(len(entries))
    seen = set()
    leaf_values = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping) or "value" not in entry or "treeIndex" not in entry:
            raise FormatError(f"Value entry {index} must hold 'value' and 'treeIndex'")
        tree_index = entry["treeIndex"]
        if isinstance(tree_index, bool) or not isinstance(tree_index, int) or tree_index not in slots:
            raise FormatError(f"Value entry {index} has invalid treeIndex {tree_index!r}")
        if tree_index in seen:
            raise FormatError(f"Value entry {index} reuses treeIndex {tree_index}")
        seen.add(tree_index)
        try:
            value = leaf_encoding.normalize(entry["value"])
        except EncodingError as exc:
            raise FormatError(f"Value entry {index}: {exc}") from exc
        leaf_values.append(LeafValue(value, tree_index))

    tree = StandardMerkleTree(nodes, leaf_values, leaf_encoding)
    if verify:
        tree.validate()
    return tree


def verify_load(record):
    """Load a record and check it against its own values."""
    return load(record, verify=True)


def dumps(tree, indent=None):
    return json.dumps(dump(tree), indent=indent)


def loads(text, verify=False):
    try:
        record = json.loads(text)
    except json.JSONDecodeError as exc:
        raise FormatError(f"Record is not valid JSON: {exc}") from exc
    return load(record, verify=verify)
