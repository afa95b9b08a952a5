"""Output chunker — packs report lines into size-bounded message blocks."""

from __future__ import annotations

from typing import Iterable

DEFAULT_CHUNK_LIMIT = 4500


def chunk_lines(lines: Iterable[str], limit: int = DEFAULT_CHUNK_LIMIT) -> list[str]:
    """Join lines with newlines into blocks no longer than `limit`.

    Lines are never split: a line longer than `limit` on its own becomes a
    block by itself. Splitting every block on "\\n" and concatenating the
    results gives back the input lines in order.
    """
    chunks: list[str] = []
    buf: list[str] = []
    size = 0

    for line in lines:
        added = len(line) + (1 if buf else 0)
        if buf and size + added > limit:
            chunks.append("\n".join(buf))
            buf, size = [], 0
            added = len(line)
        buf.append(line)
        size += added

    if buf:
        chunks.append("\n".join(buf))
    return chunks
