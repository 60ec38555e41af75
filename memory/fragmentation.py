from __future__ import annotations
from dataclasses import dataclass
from typing import List
import math

from memory.allocator import Layout

@dataclass
class FragMetrics:
    used: int
    total_free: int
    lfe: int
    external_frag: float
    entropy: float
    hole_count: int
    region_count: int

def _entropy(hole_sizes: List[int]) -> float:
    total = sum(hole_sizes)
    if total <= 0:
        return 0.0
    ps = [s/total for s in hole_sizes if s > 0]
    return max(0.0, -sum(p*math.log2(p) for p in ps))

def compute_metrics(layout: Layout) -> FragMetrics:
    """Fragmentation of the gaps in ``layout``.

    external_frag is 0 when all free space is one hole and approaches 1 as
    the largest hole shrinks relative to the total free space.
    """
    holes = [s for _, s in layout.extents_free() if s > 0]
    total_free = sum(holes)
    lfe = max(holes, default=0)
    external = 0.0 if total_free == 0 else 1.0 - lfe/total_free
    return FragMetrics(layout.used(), total_free, lfe, external, _entropy(holes),
                       len(holes), len(layout.regions))
