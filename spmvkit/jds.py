"""Coordinate entries ordered by diagonal, with a plain sparse matrix-vector product."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import IO, Iterable, Optional, Sequence

ENTRY_BYTES = 16  # two 4-byte indices and one 8-byte value
DOUBLE_BYTES = 8


@dataclass(frozen=True)
class Entry:
    """One non-zero of a sparse matrix with 0-based indices."""

    row: int
    col: int
    value: float

    @property
    def diagonal(self) -> int:
        return self.col - self.row


def sort_by_diagonal(entries: Iterable[Entry]) -> list[Entry]:
    """Return the entries ordered by diagonal (col - row), then by row."""
    return sorted(entries, key=lambda e: (e.diagonal, e.row))


def spmv(rows: int, entries: Iterable[Entry], x: Sequence[float]) -> list[float]:
    """Multiply the sparse matrix given by its entries with the dense vector x."""
    y = [0.0] * rows
    for entry in entries:
        y[entry.row] += entry.value * x[entry.col]
    return y


def read_entries(stream: IO[str]) -> tuple[int, int, list[Entry]]:
    """Read a Matrix Market coordinate body; return rows, cols and 0-based entries."""
    while True:
        line = stream.readline()
        if not line:
            raise ValueError("no size line found")
        if not line.startswith("%"):
            break
    header = line.split()
    try:
        rows, cols, nnz = (int(t) for t in header[:3])
    except ValueError:
        raise ValueError(f"cannot parse size line: {line.strip()!r}") from None
    if len(header) < 3:
        raise ValueError(f"cannot parse size line: {line.strip()!r}")

    tokens = stream.read().split()
    if len(tokens) < 3 * nnz:
        raise ValueError(f"expected {nnz} entries, input ended early")
    entries = []
    for k in range(nnz):
        r, c, v = tokens[3 * k : 3 * k + 3]
        try:
            entries.append(Entry(int(r) - 1, int(c) - 1, float(v)))
        except ValueError:
            raise ValueError(f"malformed entry: {r} {c} {v}") from None
    return rows, cols, entries


def storage_bytes(rows: int, cols: int, nnz: int) -> int:
    """Bytes taken by the entries, the input vector and the output vector."""
    return nnz * ENTRY_BYTES + cols * DOUBLE_BYTES + rows * DOUBLE_BYTES


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Read a matrix file, order its entries and report the storage it needs."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        print("Usage: jds <file.mtx>")
        return 1
    try:
        with open(args[0], "r", encoding="utf-8") as stream:
            rows, cols, entries = read_entries(stream)
    except OSError as exc:
        print(f"Error opening file: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error reading file: {exc}", file=sys.stderr)
        return 1

    entries = sort_by_diagonal(entries)
    total = storage_bytes(rows, cols, len(entries))
    print(f"\nTotal Storage: {total / (1024.0 * 1024.0):.6f} MB")
    return 0