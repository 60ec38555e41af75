import pytest

from control.commands import AllocateRequest, DefragmentRequest, FreeRequest
from control.session import Session
from memory.allocator import RegionAllocator

DEMO = [(1, 3), (8, 5), (22, 1)]


@pytest.fixture
def session():
    return Session(RegionAllocator(25, DEMO))


def test_demo_session(session):
    steps = [AllocateRequest(4), FreeRequest(0, 5), DefragmentRequest(),
             AllocateRequest(30), None]
    results = [session.apply(r) for r in steps]
    assert results == [True, True, True, False, False]
    assert session.allocator.snapshot().regions == ((0, 3), (3, 5), (8, 1))
    assert session.stats == {
        'commands': 5, 'alloc_ok': 1, 'alloc_rejected': 1, 'free_ok': 1,
        'free_rejected': 0, 'defrag': 1, 'bytes_moved': 9, 'malformed': 1,
    }


def test_free_rejection_counted(session):
    assert session.apply(FreeRequest(20, 10)) is False
    assert session.stats['free_rejected'] == 1


def test_defrag_on_fail_retries():
    mem = RegionAllocator(25, DEMO)
    plain = Session(RegionAllocator(25, DEMO))
    assert plain.apply(AllocateRequest(12)) is False

    s = Session(mem, defrag_on_fail=True)
    assert s.apply(AllocateRequest(12)) is True
    assert mem.snapshot().regions == ((0, 3), (3, 5), (8, 1), (9, 12))
    assert s.stats['defrag'] == 1


def test_defrag_on_fail_skips_hopeless_requests():
    mem = RegionAllocator(25, DEMO)
    s = Session(mem, defrag_on_fail=True)
    assert s.apply(AllocateRequest(20)) is False
    assert s.stats['defrag'] == 0
    assert mem.snapshot().regions == tuple(DEMO)


def test_defrag_every():
    mem = RegionAllocator(25)
    s = Session(mem, defrag_every=2)
    s.run([AllocateRequest(3), AllocateRequest(3), FreeRequest(0, 3),
           AllocateRequest(30), AllocateRequest(1)])
    # rejected requests do not count towards the period
    assert s.stats['defrag'] == 2
    assert mem.snapshot().regions == ((0, 1), (1, 3))


def test_run_reports_each_step(session):
    seen = []
    session.run([AllocateRequest(4), None], on_step=lambda req, ok: seen.append((req, ok)))
    assert seen == [(AllocateRequest(4), True), (None, False)]


def test_negative_defrag_every_rejected():
    with pytest.raises(ValueError):
        Session(RegionAllocator(10), defrag_every=-1)
