"""
Leaf Encoder

Turns a typed value tuple into its leaf encoding: the Solidity `abi.encode` of
the value under the declared leaf types. Type strings are parsed once with the
eth_abi grammar, so every value is checked against a closed set of ABI shapes
(basic types, tuples and arrays) before it is encoded.
"""

import re

from eth_abi import encode as abi_encode
from eth_abi.exceptions import ABITypeError, EncodingError as AbiEncodingError, ParseError
from eth_abi.grammar import TupleType, normalize, parse
from eth_utils import (
    decode_hex,
    encode_hex,
    is_0x_prefixed,
    is_address,
    is_checksum_address,
    is_checksum_formatted_address,
    is_hexstr,
    to_checksum_address,
)

from merkle_errors import EncodingError

SUPPORTED_BASES = {"address", "bool", "bytes", "int", "string", "uint"}

DECIMAL_PATTERN = re.compile(r"-?[0-9]+")
HEX_PATTERN = re.compile(r"0[xX][0-9a-fA-F]+")


def parse_leaf_type(type_str):
    """Parse and validate a single ABI type string."""
    if not isinstance(type_str, str):
        raise EncodingError(f"ABI type must be a string, got {type(type_str).__name__}")
    try:
        abi_type = parse(normalize(type_str))
        abi_type.validate()
    except (ParseError, ABITypeError) as exc:
        raise EncodingError(f"Invalid ABI type '{type_str}': {exc}") from exc
    _check_supported(abi_type, type_str)
    return abi_type


def _check_supported(abi_type, type_str):
    if abi_type.is_array:
        _check_supported(abi_type.item_type, type_str)
    elif isinstance(abi_type, TupleType):
        for component in abi_type.components:
            _check_supported(component, type_str)
    elif abi_type.base not in SUPPORTED_BASES:
        raise EncodingError(f"Unsupported ABI type '{abi_type.to_type_str()}' in '{type_str}'")


def _as_sequence(value, expected, path):
    if not isinstance(value, (list, tuple)):
        raise EncodingError(f"{path}: expected a list for '{expected}', got {type(value).__name__}")
    return value


def _normalize_address(value, path):
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise EncodingError(f"{path}: address must be 20 bytes, got {len(value)}")
        return to_checksum_address(encode_hex(bytes(value)))
    if isinstance(value, str) and is_0x_prefixed(value) and is_address(value):
        # Mixed case means the caller claims an EIP-55 checksum
        if is_checksum_formatted_address(value) and not is_checksum_address(value):
            raise EncodingError(f"{path}: bad address checksum {value!r}")
        return to_checksum_address(value)
    raise EncodingError(f"{path}: invalid address {value!r}")


def _normalize_integer(abi_type, value, path):
    if isinstance(value, bool):
        raise EncodingError(f"{path}: expected an integer, got a boolean")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        if HEX_PATTERN.fullmatch(value):
            number = int(value, 16)
        elif DECIMAL_PATTERN.fullmatch(value):
            number = int(value, 10)
        else:
            raise EncodingError(f"{path}: invalid integer string {value!r}")
    else:
        raise EncodingError(f"{path}: expected an integer, got {type(value).__name__}")

    bits = abi_type.sub
    if abi_type.base == "uint":
        low, high = 0, 2 ** bits - 1
    else:
        low, high = -(2 ** (bits - 1)), 2 ** (bits - 1) - 1
    if not low <= number <= high:
        raise EncodingError(f"{path}: {number} is out of range for {abi_type.to_type_str()}")
    return number


def _normalize_bytes(abi_type, value, path):
    if isinstance(value, (bytes, bytearray)):
        data = bytes(value)
    elif isinstance(value, str) and is_0x_prefixed(value) and is_hexstr(value):
        if len(value) % 2:
            raise EncodingError(f"{path}: odd-length hex string {value!r}")
        try:
            data = decode_hex(value)
        except ValueError as exc:
            raise EncodingError(f"{path}: invalid hex string {value!r}") from exc
    else:
        raise EncodingError(f"{path}: expected bytes or a 0x-prefixed hex string, got {value!r}")
    if abi_type.sub is not None and len(data) != abi_type.sub:
        raise EncodingError(f"{path}: {abi_type.to_type_str()} needs exactly {abi_type.sub} bytes, got {len(data)}")
    return data


def normalize_value(abi_type, value, path="value"):
    """Check `value` against `abi_type` and convert it to the form eth_abi encodes."""
    if abi_type.is_array:
        items = _as_sequence(value, abi_type.to_type_str(), path)
        dimension = abi_type.arrlist[-1]
        if dimension and len(items) != dimension[0]:
            raise EncodingError(f"{path}: expected {dimension[0]} items for '{abi_type.to_type_str()}', got {len(items)}")
        item_type = abi_type.item_type
        return [normalize_value(item_type, item, f"{path}[{i}]") for i, item in enumerate(items)]

    if isinstance(abi_type, TupleType):
        items = _as_sequence(value, abi_type.to_type_str(), path)
        if len(items) != len(abi_type.components):
            raise EncodingError(
                f"{path}: expected {len(abi_type.components)} fields for '{abi_type.to_type_str()}', got {len(items)}")
        return tuple(normalize_value(component, item, f"{path}[{i}]")
                     for i, (component, item) in enumerate(zip(abi_type.components, items)))

    base = abi_type.base
    if base == "address":
        return _normalize_address(value, path)
    if base in ("uint", "int"):
        return _normalize_integer(abi_type, value, path)
    if base == "bytes":
        return _normalize_bytes(abi_type, value, path)
    if base == "bool":
        if not isinstance(value, bool):
            raise EncodingError(f"{path}: expected a boolean, got {type(value).__name__}")
        return value
    if base == "string":
        if not isinstance(value, str):
            raise EncodingError(f"{path}: expected a string, got {type(value).__name__}")
        return value
    raise EncodingError(f"{path}: unsupported ABI type '{abi_type.to_type_str()}'")


def to_json_value(abi_type, value):
    """Render a normalized value with JSON-safe scalars (big integers as decimal strings)."""
    if abi_type.is_array:
        return [to_json_value(abi_type.item_type, item) for item in value]
    if isinstance(abi_type, TupleType):
        return [to_json_value(component, item) for component, item in zip(abi_type.components, value)]
    if abi_type.base in ("uint", "int"):
        return str(value)
    if abi_type.base == "bytes":
        return encode_hex(value)
    return value


class LeafEncoding:
    """The declared ABI types shared by every leaf of a tree."""

    def __init__(self, types):
        if isinstance(types, str) or not isinstance(types, (list, tuple)):
            raise EncodingError(f"Leaf encoding must be a list of ABI types, got {types!r}")
        if not types:
            raise EncodingError("Leaf encoding must declare at least one ABI type")
        self.types = tuple(types)
        self.abi_types = tuple(parse_leaf_type(t) for t in self.types)
        self.canonical_types = tuple(t.to_type_str() for t in self.abi_types)

    def __eq__(self, other):
        return isinstance(other, LeafEncoding) and self.canonical_types == other.canonical_types

    def __hash__(self):
        return hash(self.canonical_types)

    def __repr__(self):
        return f"LeafEncoding({list(self.types)})"

    def normalize(self, value):
        """Validate a whole leaf value and return it as a tuple of normalized fields."""
        fields = _as_sequence(value, ",".join(self.types), "value")
        if len(fields) != len(self.abi_types):
            raise EncodingError(f"Expected {len(self.abi_types)} fields for {list(self.types)}, got {len(fields)}")
        return tuple(normalize_value(abi_type, field, f"value[{i}]")
                     for i, (abi_type, field) in enumerate(zip(self.abi_types, fields)))

    def encode_normalized(self, normalized):
        try:
            return abi_encode(list(self.canonical_types), list(normalized))
        except (AbiEncodingError, TypeError, ValueError) as exc:
            raise EncodingError(f"Cannot encode value for {list(self.types)}: {exc}") from exc

    def encode(self, value):
        """ABI-encode a leaf value."""
        return self.encode_normalized(self.normalize(value))

    def to_json(self, normalized):
        return [to_json_value(abi_type, field) for abi_type, field in zip(self.abi_types, normalized)]


def as_leaf_encoding(types):
    return types if isinstance(types, LeafEncoding) else LeafEncoding(types)


def encode(types, value):
    """Leaf encoding of `value` under `types` (ABI type strings or a LeafEncoding)."""
    return as_leaf_encoding(types).encode(value)
