import io

import pytest

import run_sim


@pytest.fixture
def demo_trace(tmp_path):
    path = tmp_path / "demo.txt"
    path.write_text("new 4\nfree 0 5\nfree 9 2\ndefrag\nnew 30\nnonsense\n", encoding="utf-8")
    return str(path)


def test_replay_demo_trace(demo_trace, capsys):
    stats = run_sim.main(["--seed-demo", "--trace", demo_trace, "--show-map"])
    out = capsys.readouterr().out
    assert stats["alloc_ok"] == 1 and stats["alloc_rejected"] == 1
    assert stats["malformed"] == 1
    assert "Capacity: 25  Used: 7  Free: 18  Regions: 4" in out
    assert "Fragmentation: LFE=18 holes=1" in out
    assert "AAABAAB" in out


def test_echo_prints_grid(demo_trace, capsys):
    run_sim.main(["--seed-demo", "--trace", demo_trace, "--echo"])
    out = capsys.readouterr().out
    assert "AllocateRequest(size=4) -> ok" in out
    assert "AllocateRequest(size=30) -> rejected" in out
    assert out.count("No. of blocks:") == 6


def test_commands_from_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("new 10\nnew 10\nfree 0 10\nnew 12\n"))
    stats = run_sim.main(["--capacity", "25", "--defrag-on-fail"])
    assert stats["defrag"] == 1
    assert stats["alloc_ok"] == 3
    assert "Used: 22" in capsys.readouterr().out


def test_missing_trace_exits(tmp_path):
    with pytest.raises(SystemExit):
        run_sim.main(["--trace", str(tmp_path / "nope.jsonl")])


def test_bad_capacity_exits():
    with pytest.raises(SystemExit):
        run_sim.main(["--capacity", "0", "--trace", "-"])


def test_undecodable_line_does_not_stop_replay(tmp_path, capsys):
    trace = tmp_path / "bad.txt"
    trace.write_bytes(b"new 4\nnew \xff\nnew 3\n")
    stats = run_sim.main(["--trace", str(trace)])
    assert stats["alloc_ok"] == 2
    assert stats["malformed"] == 1
    assert "Used: 7" in capsys.readouterr().out
