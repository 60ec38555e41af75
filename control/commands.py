from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Union

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class AllocateRequest:
    size: int

@dataclass(frozen=True)
class FreeRequest:
    pos: int
    size: int

@dataclass(frozen=True)
class DefragmentRequest:
    pass

Request = Union[AllocateRequest, FreeRequest, DefragmentRequest]

ALLOC_VERBS = ('new', 'alloc', 'allocate')
FREE_VERBS = ('free',)
DEFRAG_VERBS = ('defrag', 'defragment')

def _ints(text: str, count: int):
    fields = text.split()
    if len(fields) != count:
        return None
    try:
        return [int(f) for f in fields]
    except ValueError:
        return None

def parse_allocate(text: str) -> Optional[AllocateRequest]:
    """Parse the allocation field: a single size."""
    vals = _ints(text, 1)
    return AllocateRequest(*vals) if vals else None

def parse_free(text: str) -> Optional[FreeRequest]:
    """Parse the free field: ``pos size``."""
    vals = _ints(text, 2)
    return FreeRequest(*vals) if vals else None

def parse_command(line: str) -> Optional[Request]:
    line = line.strip()
    if not line or line.startswith('#'):
        return None
    parts = line.split(None, 1)
    verb = parts[0].lower()
    rest = parts[1] if len(parts) > 1 else ''
    if verb in ALLOC_VERBS:
        return parse_allocate(rest)
    if verb in FREE_VERBS:
        return parse_free(rest)
    if verb in DEFRAG_VERBS:
        return DefragmentRequest() if not rest.strip() else None
    return None

def _int_field(record: dict, key: str) -> Optional[int]:
    v = record.get(key)
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        try:
            return int(v)
        except ValueError:
            return None
    return None

def parse_event(record) -> Optional[Request]:
    """Turn one JSONL trace record into a request.

    Records look like {"event": "alloc", "size": 4},
    {"event": "free", "pos": 0, "size": 5} or {"event": "defrag"}.
    """
    if not isinstance(record, dict):
        return None
    et = record.get('event')
    if et in ALLOC_VERBS:
        size = _int_field(record, 'size')
        return None if size is None else AllocateRequest(size)
    if et in FREE_VERBS:
        pos = _int_field(record, 'pos'); size = _int_field(record, 'size')
        if pos is None or size is None:
            return None
        return FreeRequest(pos, size)
    if et in DEFRAG_VERBS:
        return DefragmentRequest()
    return None

def parse_line(line: str) -> Optional[Request]:
    line = line.strip()
    if line.startswith('{'):
        try:
            return parse_event(json.loads(line))
        except (ValueError, RecursionError):
            return None
    return parse_command(line)

def iter_requests(lines) -> Iterator[Optional[Request]]:
    """Yield one entry per meaningful line; None marks malformed input."""
    for lineno, line in enumerate(lines, 1):
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        req = parse_line(line)
        if req is None:
            logger.warning("line %d: cannot parse %r", lineno, line)
        yield req

def load_trace(path: str) -> Iterator[Optional[Request]]:
    with open(path, 'r', encoding='utf-8', errors='replace') as f:
        yield from iter_requests(f)
