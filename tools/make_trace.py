"""
Region Allocator — trace generator

Writes a reproducible random JSONL workload of alloc/free/defrag events.
Frees target the start of a live allocation most of the time and an
arbitrary range otherwise, so partial and multi-region frees are exercised.

How to run (from repo root):
    python -m tools.make_trace --out traces/stressor.jsonl --events 400 --capacity 200
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import numpy as np

from memory.allocator import RegionAllocator


def generate(events: int, capacity: int, seed: int = 0, mean_size: float = 0.06,
             free_prob: float = 0.4, random_free_prob: float = 0.25,
             defrag_prob: float = 0.0) -> list[dict]:
    """Return a list of trace records.

    Sizes are drawn from an exponential distribution with mean
    ``mean_size * capacity`` and clipped to [1, capacity].
    """
    rng = np.random.default_rng(seed)
    # Replayed alongside generation so frees can target real region positions.
    mem = RegionAllocator(capacity)
    records: list[dict] = []
    for _ in range(events):
        r = rng.random()
        live = mem.snapshot().regions
        if r < defrag_prob:
            records.append({"event": "defrag"})
            mem.defragment()
        elif r < defrag_prob + free_prob and live:
            if rng.random() < random_free_prob:
                pos = int(rng.integers(0, capacity))
                size = int(rng.integers(1, capacity - pos + 1))
            else:
                pos, size = live[int(rng.integers(0, len(live)))]
            records.append({"event": "free", "pos": pos, "size": size})
            mem.free(pos, size)
        else:
            size = int(np.clip(rng.exponential(mean_size * capacity), 1, capacity))
            records.append({"event": "alloc", "size": size})
            mem.allocate(size)
    return records


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--out", required=True, help="Output JSONL path")
    ap.add_argument("--events", type=int, default=400)
    ap.add_argument("--capacity", type=int, default=200)
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--mean-size", type=float, default=0.06, help="Mean allocation as a fraction of capacity")
    ap.add_argument("--defrag-prob", type=float, default=0.0)
    args = ap.parse_args()

    records = generate(args.events, args.capacity, seed=args.seed,
                       mean_size=args.mean_size, defrag_prob=args.defrag_prob)
    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        for rec in records:
            f.write(json.dumps(rec) + "\n")
    print(f"Wrote {len(records)} events: {out_path.resolve()}")


if __name__ == "__main__":
    main()
