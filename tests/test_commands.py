import pytest

from control.commands import (AllocateRequest, DefragmentRequest, FreeRequest,
                              iter_requests, load_trace, parse_allocate,
                              parse_command, parse_event, parse_free)


def test_parse_allocate_field():
    assert parse_allocate("4") == AllocateRequest(4)
    assert parse_allocate("  12 ") == AllocateRequest(12)


@pytest.mark.parametrize("text", ["", "abc", "4 5", "4.5", "|"])
def test_parse_allocate_malformed(text):
    assert parse_allocate(text) is None


def test_parse_free_field():
    assert parse_free("0 5") == FreeRequest(0, 5)


@pytest.mark.parametrize("text", ["", "5", "1 2 3", "a b", "1 x"])
def test_parse_free_malformed(text):
    assert parse_free(text) is None


@pytest.mark.parametrize("line,expected", [
    ("new 4", AllocateRequest(4)),
    ("ALLOC 4", AllocateRequest(4)),
    ("allocate\t7", AllocateRequest(7)),
    ("free 9 2", FreeRequest(9, 2)),
    ("defrag", DefragmentRequest()),
    ("Defragment", DefragmentRequest()),
    ("new -3", AllocateRequest(-3)),
])
def test_parse_command(line, expected):
    assert parse_command(line) == expected


@pytest.mark.parametrize("line", ["", "# comment", "new", "new four", "free 1",
                                  "free 1 2 3", "defrag now", "resize 3"])
def test_parse_command_malformed(line):
    assert parse_command(line) is None


@pytest.mark.parametrize("record,expected", [
    ({"event": "alloc", "size": 4}, AllocateRequest(4)),
    ({"event": "alloc", "size": "4"}, AllocateRequest(4)),
    ({"event": "free", "pos": 0, "size": 5}, FreeRequest(0, 5)),
    ({"event": "defrag"}, DefragmentRequest()),
    ({"event": "alloc"}, None),
    ({"event": "alloc", "size": True}, None),
    ({"event": "alloc", "size": 1.5}, None),
    ({"event": "free", "pos": 0}, None),
    ({"event": "touch", "id": "a"}, None),
    (["alloc", 4], None),
])
def test_parse_event(record, expected):
    assert parse_event(record) == expected


def test_iter_requests_mixes_formats_and_marks_malformed():
    lines = [
        "# header",
        "new 4",
        "",
        '{"event": "free", "pos": 0, "size": 5}',
        '{"event": "free", "pos": ',
        "bogus",
        "defrag",
    ]
    assert list(iter_requests(lines)) == [
        AllocateRequest(4), FreeRequest(0, 5), None, None, DefragmentRequest()]


def test_load_trace(tmp_path):
    trace = tmp_path / "trace.jsonl"
    trace.write_text('{"event": "alloc", "size": 3}\n{"event": "defrag"}\n', encoding="utf-8")
    assert list(load_trace(str(trace))) == [AllocateRequest(3), DefragmentRequest()]


@pytest.mark.parametrize("line", [
    '{"event": "alloc", "size": ' + '9' * 5000 + '}',
    '{"event": ' + '[' * 100000 + ']' * 100000 + '}',
])
def test_oversized_json_is_malformed(line):
    assert list(iter_requests([line])) == [None]


def test_load_trace_undecodable_bytes(tmp_path):
    trace = tmp_path / "trace.txt"
    trace.write_bytes(b"new 4\n\xff\xfe bogus\nnew 3\n")
    assert list(load_trace(str(trace))) == [AllocateRequest(4), None, AllocateRequest(3)]
