#!/usr/bin/env python3
"""
Standard Merkle Tree command line

Builds a standard-v1 tree from a list of values, prints its root and writes
the dump; proves, verifies and renders trees loaded from such dumps.
"""

import argparse
import json
import sys

from merkle_errors import MerkleTreeError
from proof_verifier import verify
from standard_tree_builder import StandardMerkleTree
from tree_config import get_tree_config, set_tree_config
from tree_serializer import dumps, load

# --- CONFIGURATION ---
DEFAULT_TREE_FILE = "tree.json"
DEFAULT_TYPES = ["address"]

# Addresses included when no values file is given
DEMO_VALUES = [
    ["0x0000000000000000000000000000000000000001"],
    ["0x0000000000000000000000000000000000000002"],
    ["0x0000000000000000000000000000000000000003"],
    ["0x0000000000000000000000000000000000000004"],
    ["0x0000000000000000000000000000000000000005"],
]


def print_verbose(message: str):
    if get_tree_config().verbose_logging:
        print(message)


def read_json(path):
    with open(path, "r") as f:
        return json.load(f)


def load_tree(path, verify_load=False):
    tree = load(read_json(path), verify=verify_load)
    print_verbose(f"Loaded {len(tree)} values from {path} (root {tree.root})")
    return tree


# --- COMMANDS ---

def run_build(args):
    values = read_json(args.values) if args.values else DEMO_VALUES
    print_verbose(f"Building tree over {len(values)} values with leaf encoding {args.types}")

    tree = StandardMerkleTree.of(values, args.types, sort_leaves=args.sort_leaves, hash_workers=args.workers)
    print(f"Merkle Root: {tree.root}")

    with open(args.out, "w") as f:
        f.write(dumps(tree, indent=args.indent))
    print_verbose(f"-> Tree written to {args.out}")
    print_verbose(tree.render())
    return 0


def run_prove(args):
    tree = load_tree(args.tree, args.verify_load)
    index = args.index if args.value is None else tree.leaf_lookup(json.loads(args.value))

    proof = tree.get_proof(index)
    print(json.dumps({
        "index": index,
        "value": tree.leaf_encoding.to_json(tree.at(index)),
        "proof": proof,
    }, indent=2))
    return 0


def run_verify(args):
    if args.tree:
        tree = load_tree(args.tree, args.verify_load)
        root = args.root or tree.root
        types = args.types or list(tree.leaf_encoding.types)
        leaf_count = len(tree)
        if args.value is None and args.index is not None:
            value = tree.at(args.index)
        elif args.value is not None:
            value = json.loads(args.value)
        else:
            raise MerkleTreeError("verify needs --index or --value")
        proof = json.loads(args.proof) if args.proof else tree.get_proof(tree.leaf_lookup(value))
    else:
        if not (args.root and args.types and args.value and args.proof):
            raise MerkleTreeError("verify without --tree needs --root, --types, --value and --proof")
        root, types, leaf_count = args.root, args.types, None
        value = json.loads(args.value)
        proof = json.loads(args.proof)

    is_valid = verify(value, types, proof, root, leaf_count=leaf_count)
    print(f"Valid proof: {is_valid}")
    return 0 if is_valid else 1


def run_render(args):
    print(load_tree(args.tree, args.verify_load).render())
    return 0


def build_parser():
    parser = argparse.ArgumentParser(description="Build, prove and verify standard-v1 Merkle trees")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build a tree and write its dump")
    build.add_argument("--types", nargs="+", default=DEFAULT_TYPES, help="Leaf ABI types (default: address)")
    build.add_argument("--values", type=str, default=None,
                       help="JSON file holding a list of values (default: five demo addresses)")
    build.add_argument("--out", type=str, default=DEFAULT_TREE_FILE, help="Where to write the dump")
    build.add_argument("--sort-leaves", dest="sort_leaves", action="store_true", default=True,
                       help="Sort leaf hashes like StandardMerkleTree.of in JavaScript (default)")
    build.add_argument("--no-sort-leaves", dest="sort_leaves", action="store_false",
                       help="Keep leaves in input order")
    build.add_argument("--workers", type=int, default=None, help="Threads used to hash leaves")
    build.add_argument("--indent", type=int, default=None, help="Indent the JSON dump")
    build.set_defaults(handler=run_build)

    prove = subparsers.add_parser("prove", help="Print the proof for one value")
    prove.add_argument("--tree", type=str, default=DEFAULT_TREE_FILE, help="Dump to load")
    prove.add_argument("--index", type=int, default=0, help="Input position of the value")
    prove.add_argument("--value", type=str, default=None, help="JSON value to prove instead of --index")
    prove.add_argument("--verify-load", action="store_true", help="Re-hash the dump before using it")
    prove.set_defaults(handler=run_prove)

    verify_cmd = subparsers.add_parser("verify", help="Verify a proof against a root")
    verify_cmd.add_argument("--tree", type=str, default=None, help="Take root, types and proof from a dump")
    verify_cmd.add_argument("--index", type=int, default=None, help="Input position of the value in --tree")
    verify_cmd.add_argument("--root", type=str, default=None, help="Expected root (0x hex)")
    verify_cmd.add_argument("--types", nargs="+", default=None, help="Leaf ABI types")
    verify_cmd.add_argument("--value", type=str, default=None, help="JSON value")
    verify_cmd.add_argument("--proof", type=str, default=None, help="JSON list of proof hashes")
    verify_cmd.add_argument("--verify-load", action="store_true", help="Re-hash the dump before using it")
    verify_cmd.set_defaults(handler=run_verify)

    render = subparsers.add_parser("render", help="Draw the tree")
    render.add_argument("--tree", type=str, default=DEFAULT_TREE_FILE, help="Dump to load")
    render.add_argument("--verify-load", action="store_true", help="Re-hash the dump before using it")
    render.set_defaults(handler=run_render)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    if args.verbose:
        set_tree_config(verbose_logging=True)

    try:
        return args.handler(args)
    except FileNotFoundError as e:
        print(f"Error: File not found at '{e.filename}'.")
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON input: {e}")
    except MerkleTreeError as e:
        print(f"Error: {e}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
