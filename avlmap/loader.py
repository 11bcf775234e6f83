import csv
import math
import os
from typing import Any, Callable, Dict

from avlmap.maps import TreeMap

KEY_TYPES: Dict[str, Callable[[str], Any]] = {
    "int": int,
    "float": float,
    "str": str,
}


def parse_key(raw_key: Any, key_type: str = "int") -> Any:
    """
    Convert a raw key (from a CSV cell or URL) to the configured key type.
    NaN is rejected: it is unordered against every key, including itself.
    """
    if raw_key is None:
        raise ValueError("Missing key")
    if key_type not in KEY_TYPES:
        raise ValueError(f"Unknown key type '{key_type}'; expected one of {sorted(KEY_TYPES)}")
    if key_type != "str" and isinstance(raw_key, (int, float)) and not isinstance(raw_key, bool):
        key = KEY_TYPES[key_type](raw_key)
    else:
        raw_str = str(raw_key).strip()
        if not raw_str:
            raise ValueError("Empty key")
        key = KEY_TYPES[key_type](raw_str)
    if isinstance(key, float) and math.isnan(key):
        raise ValueError("NaN is not a valid key")
    return key


def ingest_csv(tree_map: TreeMap, file_path: str, key_column: str = "key",
               value_column: str = "value", key_type: str = "int") -> int:
    """
    Reads rows from a CSV file and puts (key, value) pairs into tree_map.
    Rows whose key cannot be parsed are skipped. Returns the number of rows stored.
    """
    if not os.path.exists(file_path):
        print(f"Error: File not found at {file_path}.")
        return 0

    print(f"Ingesting data from: {file_path}")
    total_rows = 0
    skipped = 0

    try:
        with open(file_path, mode='r', newline='', encoding='utf-8') as csvfile:
            reader = csv.DictReader(csvfile)

            fieldnames = reader.fieldnames or []
            if key_column not in fieldnames:
                print(f"Warning: key column '{key_column}' not found; available columns: {fieldnames}")

            for row in reader:
                try:
                    key = parse_key(row.get(key_column), key_type)
                except ValueError:
                    skipped += 1
                    continue

                tree_map.put(key, row.get(value_column))
                total_rows += 1

                if total_rows % 100000 == 0:
                    print(f"Progress: {total_rows:,} rows ingested...")

    except (OSError, csv.Error) as e:
        print(f"An error occurred during ingestion: {e}")

    print("--- Ingestion Summary ---")
    print(f"Rows ingested: {total_rows:,}")
    print(f"Rows skipped: {skipped:,}")
    print(f"Map size: {len(tree_map):,}")
    return total_rows
