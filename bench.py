from __future__ import annotations
import argparse
import json
import subprocess
import sys
import re
from pathlib import Path

from tools.make_trace import generate

PY = sys.executable  # respects venv if activated, otherwise uses current python

SCENARIOS = [
    ("never", []),
    ("on-fail", ["--defrag-on-fail"]),
    ("every-25", ["--defrag-every", "25"]),
    ("both", ["--defrag-on-fail", "--defrag-every", "25"]),
]

TRACE = str(Path("traces") / "stressor.jsonl")

PATTERNS = {
    "alloc_ok": re.compile(r"Allocations: ok=(\d+)"),
    "alloc_rejected": re.compile(r"Allocations: ok=\d+ rejected=(\d+)"),
    "defrag": re.compile(r"Defragments:\s+(\d+)"),
    "bytes_moved": re.compile(r"Bytes moved:\s+(\d+)"),
    "used": re.compile(r"Used:\s+(\d+)"),
    "lfe": re.compile(r"Fragmentation: LFE=(\d+)"),
    "holes": re.compile(r"holes=(\d+)"),
    "external_frag": re.compile(r"external_frag=([0-9\.]+)"),
}

def run(trace: str, capacity: int, extra) -> str:
    cmd = [PY, "run_sim.py", "--trace", trace, "--capacity", str(capacity), *extra]
    out = subprocess.check_output(cmd, stderr=subprocess.STDOUT, text=True)
    return out

def parse(out: str):
    def get(key, default=None):
        m = PATTERNS[key].search(out)
        return m.group(1) if m else default
    return {
        "alloc_ok": int(get("alloc_ok", 0)),
        "alloc_rejected": int(get("alloc_rejected", 0)),
        "defrag": int(get("defrag", 0)),
        "bytes_moved": int(get("bytes_moved", 0)),
        "used": int(get("used", 0)),
        "lfe": int(get("lfe", 0)),
        "holes": int(get("holes", 0)),
        "external_frag": float(get("external_frag", 0.0)),
    }

def ensure_trace(path: str, capacity: int, events: int, seed: int):
    p = Path(path)
    if p.exists():
        return
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8") as f:
        for rec in generate(events, capacity, seed=seed):
            f.write(json.dumps(rec) + "\n")

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--trace", default=TRACE, help="Trace to replay; generated if missing")
    ap.add_argument("--capacity", type=int, default=200)
    ap.add_argument("--events", type=int, default=400)
    ap.add_argument("--seed", type=int, default=0)
    args = ap.parse_args()

    ensure_trace(args.trace, args.capacity, args.events, args.seed)

    rows=[]
    for name, extra in SCENARIOS:
        out = run(args.trace, args.capacity, extra)
        rows.append((name, parse(out)))

    # Print table
    header = ["defrag","alloc_ok","rejected","defrags","moved","used","LFE","holes","ext_frag"]
    print("="*90)
    print(f"Region Allocator — Defragmentation Strategies ({args.trace})")
    print("="*90)
    print("{:<10} {:>9} {:>9} {:>8} {:>8} {:>6} {:>6} {:>6} {:>9}".format(*header))
    for name, m in rows:
        print("{:<10} {:>9} {:>9} {:>8} {:>8} {:>6} {:>6} {:>6} {:>9.3f}".format(
            name, m["alloc_ok"], m["alloc_rejected"], m["defrag"], m["bytes_moved"],
            m["used"], m["lfe"], m["holes"], m["external_frag"]
        ))
    print("="*90)
    print("Tip: render the same trace as a heatmap:")
    print(f"  python -m tools.visualize_fragmentation --trace {args.trace} --capacity {args.capacity}")

if __name__ == "__main__":
    main()
