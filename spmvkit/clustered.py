"""Clustered diagonal storage: runs of consecutive non-zeros along each diagonal."""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass, field
from typing import IO, Iterable, Optional, Sequence

DEFAULT_MATRIX = "matrixDataset/crystk02.mtx"

INT_BYTES = 4
DOUBLE_BYTES = 8


@dataclass(frozen=True)
class DiagEntry:
    """One non-zero of a sparse matrix with 1-based row and column indices."""

    row: int
    col: int
    value: float

    @property
    def offset(self) -> int:
        return self.col - self.row


def sort_by_offset(entries: Iterable[DiagEntry]) -> list[DiagEntry]:
    """Return the entries ordered by offset (col - row), keeping input order on ties."""
    return sorted(entries, key=lambda e: e.offset)


def _continues(previous: DiagEntry, current: DiagEntry) -> bool:
    return previous.row == current.row - 1 and previous.col == current.col - 1


@dataclass
class ClusteredMatrix:
    """A sparse matrix stored as clusters of consecutive diagonal elements.

    Cluster k starts at the 1-based position ``(start_rows[k], start_cols[k])``
    and runs ``cluster_sizes[k]`` elements down its diagonal.  ``values``
    holds the elements of all clusters one after another.
    """

    rows: int
    cols: int
    cluster_sizes: list[int] = field(default_factory=list)
    start_rows: list[int] = field(default_factory=list)
    start_cols: list[int] = field(default_factory=list)
    values: list[float] = field(default_factory=list)

    @classmethod
    def from_entries(
        cls, rows: int, cols: int, entries: Iterable[DiagEntry]
    ) -> "ClusteredMatrix":
        """Group entries, taken in the given order, into diagonal clusters.

        A new cluster starts wherever an entry does not sit one row and one
        column after the entry before it; sort with :func:`sort_by_offset` first.
        """
        matrix = cls(rows=rows, cols=cols)
        previous: Optional[DiagEntry] = None
        for entry in entries:
            if previous is not None and _continues(previous, entry):
                matrix.cluster_sizes[-1] += 1
            else:
                matrix.cluster_sizes.append(1)
                matrix.start_rows.append(entry.row)
                matrix.start_cols.append(entry.col)
            matrix.values.append(entry.value)
            previous = entry
        return matrix

    def num_clusters(self) -> int:
        """Number of clusters stored."""
        return len(self.cluster_sizes)

    def spmv(self, x: Sequence[float]) -> list[float]:
        """Multiply the matrix with the dense vector x."""
        if len(x) < self.cols:
            raise ValueError(f"vector has {len(x)} elements, need {self.cols}")
        result = [0.0] * self.rows
        values = iter(self.values)
        for size, start_row, start_col in zip(
            self.cluster_sizes, self.start_rows, self.start_cols
        ):
            for j in range(size):
                result[start_row + j - 1] += next(values) * x[start_col + j - 1]
        return result

    def space_bytes(self) -> int:
        """Bytes for two integer indices per cluster plus one double per value."""
        return 2 * INT_BYTES * self.num_clusters() + DOUBLE_BYTES * len(self.values)


def read_entries(stream: IO[str]) -> tuple[int, int, list[DiagEntry]]:
    """Read a Matrix Market coordinate body into rows, cols and 1-based entries.

    Comment and blank lines before the size line are skipped.  Entries whose
    indices fall outside the matrix are reported on stderr and left out;
    reading stops at the first entry that cannot be parsed.
    """
    line = ""
    for line in stream:
        if not line.startswith("%") and line != "\n":
            break
    else:
        line = ""
    header = line.split()
    try:
        rows, cols, _nnz = (int(t) for t in header[:3])
    except ValueError:
        raise ValueError(f"cannot parse size line: {line.strip()!r}") from None

    tokens = iter(stream.read().split())
    entries: list[DiagEntry] = []
    for r, c, v in zip(tokens, tokens, tokens):
        try:
            row, col, value = int(r), int(c), float(v)
        except ValueError:
            break
        if 1 <= row <= rows and 1 <= col <= cols:
            entries.append(DiagEntry(row, col, value))
        else:
            print(f"Warning: Index out of bounds ({row}, {col})", file=sys.stderr)
    return rows, cols, entries


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Read a matrix, cluster its diagonals and time a product with ones."""
    args = list(sys.argv[1:] if argv is None else argv)
    filename = args[0] if args else DEFAULT_MATRIX
    try:
        with open(filename, "r", encoding="utf-8") as stream:
            rows, cols, entries = read_entries(stream)
    except OSError as exc:
        print(f"Error opening file: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error reading file: {exc}", file=sys.stderr)
        return 1

    print(f"The no. of Rows: {rows} ")
    print(f"The no. of Columns: {cols} ")
    print(f"The No. of NonZeros in this matrix: {len(entries)}")

    matrix = ClusteredMatrix.from_entries(rows, cols, sort_by_offset(entries))
    vector = [1.0] * cols
    start = time.process_time()
    matrix.spmv(vector)
    elapsed = time.process_time() - start

    print(f"Time taken for SPMV_CC is {elapsed:f}")
    print(f"Num of clusters : {matrix.num_clusters()}")
    print(f"Space occupied : {matrix.space_bytes() / (1024 * 1024):f}MB")
    return 0