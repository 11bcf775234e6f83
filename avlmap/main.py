import argparse
import sys
import time
from typing import List, Optional

from avlmap.avl import AVLTreeMap
from avlmap.loader import KEY_TYPES, ingest_csv, parse_key


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="avlmap",
        description="Build an AVL tree map from keys or a CSV file and draw it.",
    )
    parser.add_argument("keys", nargs="*", help="keys to insert, in order")
    parser.add_argument("--csv", dest="csv_path", help="CSV file to ingest instead of (or before) the keys")
    parser.add_argument("--key-column", default="key")
    parser.add_argument("--value-column", default="value")
    parser.add_argument("--key-type", choices=sorted(KEY_TYPES), default="int")
    parser.add_argument("--remove", nargs="*", default=[], metavar="KEY",
                        help="keys to remove after insertion")
    parser.add_argument("--no-draw", action="store_true", help="skip printing the tree")
    return parser


def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    print("--- AVL tree map smoke test ---")
    tree_map = AVLTreeMap()

    start_time = time.time()
    if args.csv_path:
        ingest_csv(tree_map, args.csv_path, args.key_column, args.value_column, args.key_type)
    try:
        for raw in args.keys:
            key = parse_key(raw, args.key_type)
            tree_map.put(key, raw)
        for raw in args.remove:
            tree_map.remove(parse_key(raw, args.key_type))
    except ValueError as e:
        print(f"Error: {e}")
        return 2
    end_time = time.time()

    print(f"Stored {len(tree_map)} entries in {end_time - start_time:.4f}s, height {tree_map.height()}")
    if tree_map.is_empty():
        print("No entries loaded.")
        return 0

    first, last = tree_map.first_entry(), tree_map.last_entry()
    print(f"First key: {first.get_key()}, last key: {last.get_key()}")

    if not args.no_draw:
        print()
        tree_map.print_tree()

    if tree_map.sanity_check():
        print("AVL check: OK")
        return 0
    print("AVL check: FAILED")
    return 1


if __name__ == "__main__":
    sys.exit(run())
