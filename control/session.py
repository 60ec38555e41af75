from __future__ import annotations
import logging
from typing import Callable, Dict, Iterable, Optional

from control.commands import AllocateRequest, DefragmentRequest, FreeRequest, Request
from memory.allocator import RegionAllocator

logger = logging.getLogger(__name__)

STAT_KEYS = ('commands', 'alloc_ok', 'alloc_rejected', 'free_ok', 'free_rejected',
             'defrag', 'bytes_moved', 'malformed')

class Session:
    """Single writer feeding requests to one allocator.

    defrag_on_fail: on a rejected allocation that total free space could
    still satisfy, defragment once and retry.
    defrag_every: defragment after every N-th accepted command (0 = never).
    """
    def __init__(self, allocator: RegionAllocator, defrag_on_fail: bool=False, defrag_every: int=0):
        if defrag_every < 0:
            raise ValueError("defrag_every must be >= 0")
        self.allocator = allocator
        self.defrag_on_fail = defrag_on_fail
        self.defrag_every = defrag_every
        self.stats: Dict[str, int] = {k: 0 for k in STAT_KEYS}
        self._accepted = 0

    def _defragment(self):
        self.stats['bytes_moved'] += self.allocator.defragment()
        self.stats['defrag'] += 1

    def _allocate(self, size: int) -> bool:
        start = self.allocator.allocate(size)
        if start is None and self.defrag_on_fail and 0 < size <= self.allocator.free_bytes():
            logger.info("allocate(%d) failed with %d free, defragmenting", size, self.allocator.free_bytes())
            self._defragment()
            start = self.allocator.allocate(size)
        self.stats['alloc_ok' if start is not None else 'alloc_rejected'] += 1
        return start is not None

    def apply(self, request: Optional[Request]) -> bool:
        self.stats['commands'] += 1
        if isinstance(request, AllocateRequest):
            ok = self._allocate(request.size)
        elif isinstance(request, FreeRequest):
            ok = self.allocator.free(request.pos, request.size)
            self.stats['free_ok' if ok else 'free_rejected'] += 1
        elif isinstance(request, DefragmentRequest):
            self._defragment()
            ok = True
        else:
            self.stats['malformed'] += 1
            return False
        if ok:
            self._accepted += 1
            if self.defrag_every and self._accepted % self.defrag_every == 0 \
                    and not isinstance(request, DefragmentRequest):
                self._defragment()
        return ok

    def run(self, requests: Iterable[Optional[Request]],
            on_step: Optional[Callable[[Optional[Request], bool], None]]=None) -> Dict[str, int]:
        for req in requests:
            ok = self.apply(req)
            if on_step is not None:
                on_step(req, ok)
        return self.stats
