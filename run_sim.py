from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from control.commands import iter_requests, load_trace
from control.session import Session
from memory.allocator import RegionAllocator
from memory.fragmentation import compute_metrics
from viz.ascii_map import render_grid, render_map

DEMO_CAPACITY = 25
DEMO_REGIONS = [(1, 3), (8, 5), (22, 1)]

def build_parser() -> argparse.ArgumentParser:
    ap=argparse.ArgumentParser(description="Replay allocate/free/defragment commands against a region allocator.")
    ap.add_argument('--trace', default='-',
                    help="JSONL or text command file; '-' reads commands from stdin")
    ap.add_argument('--capacity', type=int, default=DEMO_CAPACITY)
    ap.add_argument('--seed-demo', action='store_true',
                    help=f"Start from the demonstration regions {DEMO_REGIONS}")
    ap.add_argument('--defrag-on-fail', action='store_true',
                    help="Defragment and retry when an allocation fails but enough total space is free")
    ap.add_argument('--defrag-every', type=int, default=0,
                    help="Defragment after every N accepted commands (0 disables)")
    ap.add_argument('--show-map', action='store_true')
    ap.add_argument('--echo', action='store_true', help="Print the grid after every command")
    ap.add_argument('--width', type=int, default=72, help="Width of the final memory map")
    ap.add_argument('-v', '--verbose', action='store_true')
    return ap

def main(argv: Optional[List[str]]=None):
    args=build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    if args.capacity <= 0:
        raise SystemExit(f"--capacity must be positive, got {args.capacity}")
    if args.defrag_every < 0:
        raise SystemExit(f"--defrag-every must be >= 0, got {args.defrag_every}")

    seed = DEMO_REGIONS if args.seed_demo else []
    if seed and args.capacity < DEMO_CAPACITY:
        raise SystemExit(f"--seed-demo needs --capacity >= {DEMO_CAPACITY}")
    mem=RegionAllocator(args.capacity, seed)
    session=Session(mem, defrag_on_fail=args.defrag_on_fail, defrag_every=args.defrag_every)

    if args.trace == '-':
        if hasattr(sys.stdin, 'reconfigure'):
            sys.stdin.reconfigure(errors='replace')
        requests = iter_requests(sys.stdin)
    else:
        if not Path(args.trace).exists():
            raise SystemExit(f"Trace not found: {args.trace}")
        requests = load_trace(args.trace)

    def echo(req, ok):
        print(f"{req!r} -> {'ok' if ok else 'rejected'}")
        print(render_grid(mem.snapshot()))

    stats=session.run(requests, on_step=echo if args.echo else None)

    layout=mem.snapshot()
    m=compute_metrics(layout)
    print("="*72)
    print("Region Allocator — Session Summary")
    print("="*72)
    print(f"Capacity: {layout.capacity}  Used: {m.used}  Free: {m.total_free}  Regions: {m.region_count}")
    print(f"Commands: {stats['commands']}  Malformed: {stats['malformed']}")
    print(f"Allocations: ok={stats['alloc_ok']} rejected={stats['alloc_rejected']}")
    print(f"Frees: ok={stats['free_ok']} rejected={stats['free_rejected']}")
    print(f"Defragments: {stats['defrag']}  Bytes moved: {stats['bytes_moved']}")
    print("-"*72)
    print(f"Fragmentation: LFE={m.lfe} holes={m.hole_count} external_frag={m.external_frag:.3f} entropy={m.entropy:.3f}")
    if args.show_map:
        print("-"*72)
        print("Memory map (ASCII):")
        print(render_map(layout, min(args.width, layout.capacity)))
    print("="*72)
    return stats

if __name__=='__main__':
    main()
