"""Tests for src.core.chunker — size-bounded message blocks."""

from src.core.chunker import chunk_lines


def _rejoin(chunks):
    lines = []
    for chunk in chunks:
        lines.extend(chunk.split("\n"))
    return lines


class TestChunkLines:
    def test_empty_input(self):
        assert chunk_lines([]) == []

    def test_fits_in_one_block(self):
        assert chunk_lines(["a", "b", "c"], limit=100) == ["a\nb\nc"]

    def test_splits_at_line_boundary(self):
        # "aaa\nbbb" is 7 chars; adding "\nccc" would make 11
        assert chunk_lines(["aaa", "bbb", "ccc"], limit=7) == ["aaa\nbbb", "ccc"]

    def test_exact_limit_is_allowed(self):
        assert chunk_lines(["aaa", "bbb"], limit=7) == ["aaa\nbbb"]

    def test_long_line_gets_own_block(self):
        long = "x" * 20
        chunks = chunk_lines(["a", long, "b"], limit=5)
        assert chunks == ["a", long, "b"]

    def test_no_block_exceeds_limit_except_single_long_lines(self):
        lines = [f"line {i}" * (i % 4 + 1) for i in range(60)]
        chunks = chunk_lines(lines, limit=40)
        for chunk in chunks:
            assert len(chunk) <= 40 or "\n" not in chunk

    def test_round_trip(self):
        lines = ["王小明", "", "Bob", "x" * 50, "", "end"]
        for limit in (1, 5, 10, 60, 4500):
            assert _rejoin(chunk_lines(lines, limit=limit)) == lines

    def test_default_limit_keeps_small_report_whole(self):
        lines = [f"2025-08-{d:02d}: {d}" for d in range(1, 32)]
        assert len(chunk_lines(lines)) == 1
