from __future__ import annotations
from typing import Optional

from memory.allocator import Layout

FREE_CELL = '.'
REGION_CELLS = 'AB'

def render_map(layout: Layout, width: Optional[int]=None) -> str:
    """One character per cell, or the address space binned to ``width`` chars.

    Neighbouring regions alternate between 'A' and 'B' so that touching
    ranges stay distinguishable.
    """
    cap = layout.capacity
    width = width or cap
    buf = [FREE_CELL]*width
    for i, (start, length) in enumerate(layout.regions):
        s = int((start/cap)*width)
        e = int(((start+length)/cap)*width)
        ch = REGION_CELLS[i % len(REGION_CELLS)]
        for j in range(max(0, s), min(width, max(s+1, e))):
            buf[j] = ch
    return ''.join(buf)

def render_grid(layout: Layout) -> str:
    """Cell map with an index ruler, e.g. for capacity 12::

        No. of blocks: 2
        |.AAA....BB..|
         0         1
         012345678901
    """
    cap = layout.capacity
    tens = ''.join(str(i // 10 % 10) if i % 10 == 0 else ' ' for i in range(cap))
    ones = ''.join(str(i % 10) for i in range(cap))
    lines = [f"No. of blocks: {len(layout.regions)}",
             f"|{render_map(layout)}|",
             f" {tens.rstrip()}",
             f" {ones}"]
    return '\n'.join(lines)
