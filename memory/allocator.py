from __future__ import annotations
import enum
import logging
import threading
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

class Error(Exception):
    pass

class LayoutError(Error):
    pass

@dataclass
class Region:
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length

@dataclass(frozen=True)
class Layout:
    """Read-only view of an address space handed to reporters."""
    capacity: int
    regions: Tuple[Tuple[int, int], ...]

    def used(self) -> int:
        return sum(length for _, length in self.regions)

    def extents_free(self) -> List[Tuple[int, int]]:
        ext = []
        cur = 0
        for start, length in self.regions:
            if start > cur:
                ext.append((cur, start - cur))
            cur = start + length
        if cur < self.capacity:
            ext.append((cur, self.capacity - cur))
        return ext

class Overlap(enum.Enum):
    NO_OVERLAP = 'no_overlap'
    FULLY_CONTAINED = 'fully_contained'
    LEFT_OVERLAP = 'left_overlap'
    RIGHT_OVERLAP = 'right_overlap'
    INTERIOR_SPLIT = 'interior_split'

def classify_overlap(pos: int, end: int, bstart: int, bend: int) -> Overlap:
    """Relate the freed range [pos, end) to a region [bstart, bend).

    The first matching case wins, so a range covering the whole region is
    FULLY_CONTAINED even though it also reaches past both of its ends.
    """
    if end <= bstart or pos >= bend:
        return Overlap.NO_OVERLAP
    if pos <= bstart and end >= bend:
        return Overlap.FULLY_CONTAINED
    if pos < bstart and end >= bstart:
        return Overlap.LEFT_OVERLAP
    if pos < bend and end >= bend:
        return Overlap.RIGHT_OVERLAP
    return Overlap.INTERIOR_SPLIT

def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)

class RegionAllocator:
    """First-fit allocator over a fixed-capacity linear address space.

    Only occupied ranges are tracked. ``regions`` is kept disjoint, sorted by
    start and free of empty entries between calls; every public operation
    holds ``_lock`` for its whole duration.
    """

    def __init__(self, capacity: int, regions: Iterable[Tuple[int, int]] = ()):
        if not _is_int(capacity) or capacity <= 0:
            raise ValueError(f"capacity must be a positive integer, got {capacity!r}")
        self.capacity = capacity
        seed = list(regions)
        for r in seed:
            if not isinstance(r, (tuple, list)) or len(r) != 2 or not all(_is_int(v) for v in r):
                raise LayoutError(f"seed region {r!r} is not an integer (start, length) pair")
        self.regions: List[Region] = sorted((Region(s, n) for s, n in seed), key=lambda r: r.start)
        self._lock = threading.Lock()
        self.check()

    def allocate(self, size: int) -> Optional[int]:
        """Place ``size`` units in the lowest gap that fits; return its start."""
        if not _is_int(size) or size <= 0 or size > self.capacity:
            logger.debug("allocate(%r) rejected: size out of range", size)
            return None
        with self._lock:
            prev_end = 0
            for i, region in enumerate(self.regions):
                if region.start - prev_end >= size:
                    self.regions.insert(i, Region(prev_end, size))
                    return prev_end
                prev_end = region.end
            if self.capacity - prev_end >= size:
                self.regions.append(Region(prev_end, size))
                return prev_end
        logger.debug("allocate(%d) rejected: no gap large enough", size)
        return None

    def free(self, pos: int, size: int) -> bool:
        """Release [pos, pos+size) from whatever regions it overlaps.

        The range does not have to match an earlier allocation. Returns False
        when the range lies outside the address space.
        """
        if not (_is_int(pos) and _is_int(size)) or size <= 0:
            logger.debug("free(%r, %r) rejected: bad arguments", pos, size)
            return False
        end = pos + size
        if pos < 0 or pos >= self.capacity or end <= 0 or end > self.capacity:
            logger.debug("free(%d, %d) rejected: outside [0, %d)", pos, size, self.capacity)
            return False
        with self._lock:
            resolved: List[Region] = []
            for region in list(self.regions):
                bstart, bend = region.start, region.end
                overlap = classify_overlap(pos, end, bstart, bend)
                if overlap is Overlap.FULLY_CONTAINED:
                    region.length = 0
                elif overlap is Overlap.LEFT_OVERLAP:
                    region.start, region.length = end, bend - end
                elif overlap is Overlap.RIGHT_OVERLAP:
                    region.length = pos - bstart
                elif overlap is Overlap.INTERIOR_SPLIT:
                    region.length = pos - bstart
                    resolved.append(region)
                    region = Region(end, bend - end)
                resolved.append(region)
            self.regions = [r for r in resolved if r.length > 0]
        return True

    def defragment(self) -> int:
        """Pack all regions towards 0 in their current order; return bytes moved."""
        moved = 0
        with self._lock:
            cursor = 0
            for region in self.regions:
                if region.start != cursor:
                    moved += region.length
                    region.start = cursor
                cursor += region.length
        logger.debug("defragment moved %d bytes", moved)
        return moved

    def snapshot(self) -> Layout:
        with self._lock:
            return Layout(self.capacity, tuple((r.start, r.length) for r in self.regions))

    def used(self) -> int:
        with self._lock:
            return sum(r.length for r in self.regions)

    def free_bytes(self) -> int:
        return self.capacity - self.used()

    def extents_free(self) -> List[Tuple[int, int]]:
        return self.snapshot().extents_free()

    def largest_free_extent(self) -> int:
        return max((s for _, s in self.extents_free()), default=0)

    def check(self):
        """Raise LayoutError unless the regions are in-bounds, non-empty, sorted and disjoint."""
        with self._lock:
            prev_end = 0
            for i, r in enumerate(self.regions):
                if r.length <= 0:
                    raise LayoutError(f"region {i} at {r.start} has length {r.length}")
                if r.start < 0 or r.end > self.capacity:
                    raise LayoutError(
                        f"region {i} [{r.start}, {r.end}) exceeds capacity {self.capacity}")
                if r.start < prev_end:
                    raise LayoutError(
                        f"region {i} at {r.start} overlaps or precedes the previous end {prev_end}")
                prev_end = r.end
