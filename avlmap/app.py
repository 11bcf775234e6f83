import io
import os
import threading
import time
from typing import Any, Dict, List

from flask import Flask, jsonify, request, render_template_string, Response

from avlmap.avl import AVLTreeMap
from avlmap.loader import KEY_TYPES, ingest_csv, parse_key

app = Flask(__name__)

tree_map = AVLTreeMap()
# held around every read or write of tree_map
map_lock = threading.Lock()

STATE: Dict[str, Any] = {"csv_path": None, "loaded": False}

DEFAULT_CSV_PATH = os.environ.get("AVLMAP_CSV_PATH", "")
KEY_TYPE = os.environ.get("AVLMAP_KEY_TYPE", "int")


def ok(data=None, **extra):
    payload = {"ok": True}
    if data is not None:
        payload["data"] = data
    payload.update(extra)
    return jsonify(payload)

def err(message: str, status: int = 400, **extra):
    payload = {"ok": False, "error": message}
    payload.update(extra)
    return jsonify(payload), status

def key_or_none(raw: str):
    try:
        return parse_key(raw, KEY_TYPE)
    except ValueError:
        return None

def parse_limit(default: int = 50) -> int:
    limit = request.args.get("limit", str(default))
    try:
        return max(1, min(1000, int(limit)))
    except ValueError:
        return default

def warm_start():
    """Ingest the configured CSV at startup."""
    csv_path = (DEFAULT_CSV_PATH or "").strip()
    STATE["csv_path"] = csv_path

    if KEY_TYPE not in KEY_TYPES:
        print(f"[warm_start] Unknown AVLMAP_KEY_TYPE '{KEY_TYPE}'; expected one of {sorted(KEY_TYPES)}")
        return
    if not csv_path:
        print("[warm_start] No CSV path provided; starting with an empty map.")
        return
    if not os.path.exists(csv_path):
        print(f"[warm_start] CSV not found: {csv_path}")
        return

    print(f"[warm_start] Ingesting CSV: {csv_path}")
    t0 = time.time()
    with map_lock:
        ingest_csv(tree_map, csv_path, key_type=KEY_TYPE)
    t1 = time.time()
    STATE["loaded"] = True
    print(f"[warm_start] Map loaded: {len(tree_map):,} entries in {t1 - t0:.2f}s")


@app.get("/api/status")
def api_status():
    with map_lock:
        size, height = len(tree_map), tree_map.height()
    return ok({
        "csv_path": STATE["csv_path"],
        "loaded": STATE["loaded"],
        "key_type": KEY_TYPE,
        "size": size,
        "height": height,
    })


@app.get("/api/entries")
def api_entries():
    start = request.args.get("start")
    end = request.args.get("end")
    limit = parse_limit()

    if (start is None) != (end is None):
        return err("start and end must be given together: /api/entries?start=...&end=...")

    start_key = end_key = None
    if start is not None:
        start_key = key_or_none(start)
        end_key = key_or_none(end)
        if start_key is None or end_key is None:
            return err(f"start/end must be of type '{KEY_TYPE}'")

    rows: List[Dict[str, Any]] = []
    with map_lock:
        pairs = tree_map.sub_map(start_key, end_key) if start is not None else tree_map.items()
        for k, v in pairs:
            rows.append({"key": k, "value": v})
            if len(rows) >= limit:
                break
    return ok({"count_returned": len(rows), "rows": rows})


@app.get("/api/entries/<raw_key>")
def api_get_entry(raw_key: str):
    key = key_or_none(raw_key)
    if key is None:
        return err(f"key must be of type '{KEY_TYPE}'")
    with map_lock:
        if key not in tree_map:
            return err("key not found", 404)
        value = tree_map[key]
    return ok({"key": key, "value": value})


@app.post("/api/entries/<raw_key>")
def api_put_entry(raw_key: str):
    key = key_or_none(raw_key)
    if key is None:
        return err(f"key must be of type '{KEY_TYPE}'")

    data = request.get_json(silent=True) or {}
    if "value" not in data:
        return err("missing field: value")

    with map_lock:
        replaced = key in tree_map
        old_value = tree_map.put(key, data["value"])
    return ok({"key": key, "value": data["value"], "replaced": replaced, "old_value": old_value})


@app.delete("/api/entries/<raw_key>")
def api_delete_entry(raw_key: str):
    key = key_or_none(raw_key)
    if key is None:
        return err(f"key must be of type '{KEY_TYPE}'")
    with map_lock:
        if key not in tree_map:
            return err("key not found", 404)
        value = tree_map.remove(key)
    return ok({"key": key, "value": value})


@app.post("/api/clear")
def api_clear():
    with map_lock:
        tree_map.clear()
    return ok({"size": 0})


@app.get("/api/tree")
def api_tree():
    with map_lock:
        drawing = tree_map.render()
    return Response(drawing + "\n", mimetype="text/plain")


@app.get("/api/check")
def api_check():
    report = io.StringIO()
    with map_lock:
        valid = tree_map.sanity_check(report)
    return ok({"valid": valid, "report": report.getvalue()})


HTML = """
<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <title>AVL tree map</title>
  <style>
    body { font-family: sans-serif; margin: 2rem; }
    pre { background: #f4f4f4; padding: 1rem; overflow-x: auto; }
  </style>
</head>
<body>
  <h1>AVL tree map</h1>
  <p>{{ size }} entries, height {{ height }}</p>
  <pre>{{ drawing }}</pre>
</body>
</html>
"""

@app.get("/")
def home():
    with map_lock:
        size, height, drawing = len(tree_map), tree_map.height(), tree_map.render()
    return render_template_string(HTML, size=size, height=height, drawing=drawing or "(empty)")


if __name__ == "__main__":
    warm_start()
    app.run(host="127.0.0.1", port=5000, debug=True, use_reloader=False)
