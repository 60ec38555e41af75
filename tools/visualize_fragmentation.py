"""
Region Allocator — Visualizer

Replays a command trace and draws a Matplotlib heatmap of address-space
occupancy over time. Defragment events are marked as horizontal lines.

How to run (recommended, from repo root):
    python -m tools.visualize_fragmentation --trace traces/stressor.jsonl --capacity 200 --out out_fragmentation.png

Notes:
- Every region is drawn at its own intensity so that touching regions remain
  distinguishable; free space is 0.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script:
# (python -m tools.visualize_fragmentation already works without this,
#  but this makes `python tools/visualize_fragmentation.py ...` work too.)
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import numpy as np
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from control.commands import DefragmentRequest, load_trace
from control.session import Session
from memory.allocator import Layout, RegionAllocator
from memory.fragmentation import compute_metrics


def render_state(layout: Layout, width: int) -> np.ndarray:
    """
    Return a 1D occupancy array over the address space, binned to 'width'.
    Occupied bins alternate between 1.0 and 0.6 per region.
    """
    cap = layout.capacity
    bins = np.zeros(width, dtype=np.float32)
    scale = cap / width

    for i, (start, length) in enumerate(layout.regions):
        a = int(start / scale)
        b = int((start + length - 1) / scale)
        a = max(0, min(width - 1, a))
        b = max(0, min(width - 1, b))
        bins[a : b + 1] = 1.0 if i % 2 == 0 else 0.6

    return bins


def replay_frames(mem: RegionAllocator, requests, width: int, every: int = 1, **session_opts):
    """Apply ``requests`` and return (frames, defrag_marks)."""
    session = Session(mem, **session_opts)
    frames: list[np.ndarray] = []
    defrag_marks: list[int] = []

    i = 0
    for req in requests:
        i += 1
        defrags_before = session.stats["defrag"]
        session.apply(req)
        if isinstance(req, DefragmentRequest) or session.stats["defrag"] > defrags_before:
            # mark current frame index (where the line will be drawn)
            defrag_marks.append(len(frames))
        if every <= 1 or (i % every == 0):
            frames.append(render_state(mem.snapshot(), width))

    return frames, defrag_marks


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--trace", required=True, help="Path to JSONL or text command trace")
    ap.add_argument("--out", default="out_fragmentation.png", help="Output image file")
    ap.add_argument("--capacity", type=int, default=200, help="Address space capacity")
    ap.add_argument("--width", type=int, default=140, help="Heatmap width (bins)")
    ap.add_argument("--every", type=int, default=1, help="Record every N commands")
    ap.add_argument("--defrag-on-fail", action="store_true")
    args = ap.parse_args()

    trace_path = Path(args.trace)
    if not trace_path.exists():
        raise SystemExit(f"Trace not found: {trace_path}")

    mem = RegionAllocator(args.capacity)
    frames, defrag_marks = replay_frames(mem, load_trace(str(trace_path)), args.width,
                                         every=args.every, defrag_on_fail=args.defrag_on_fail)

    if not frames:
        raise SystemExit("No frames captured. Check trace path and --every.")

    H = np.stack(frames, axis=0)  # (time, width)

    fig = plt.figure(figsize=(10.5, 4.6))
    ax = fig.add_subplot(111)
    ax.imshow(H, aspect="auto", interpolation="nearest", vmin=0.0, vmax=1.0)
    ax.set_title("Address Space Occupancy Heatmap (Trace-driven)")
    ax.set_xlabel("address (binned)")
    ax.set_ylabel("time (frames)")

    for t in defrag_marks:
        ax.axhline(t, linewidth=1)

    m = compute_metrics(mem.snapshot())
    caption = (
        f"Final: used={m.used}/{args.capacity}, LFE={m.lfe}, holes={m.hole_count}, "
        f"external_frag={m.external_frag:.3f}, entropy={m.entropy:.3f}"
    )
    fig.text(0.01, 0.01, caption, fontsize=9)

    fig.tight_layout()
    out_path = Path(args.out)
    fig.savefig(str(out_path), dpi=220)
    plt.close(fig)
    print(f"Wrote: {out_path.resolve()}")


if __name__ == "__main__":
    main()
