"""Diagonal cluster storage built from a dense matrix, with serial and threaded products."""

from __future__ import annotations

import sys
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from itertools import groupby
from typing import IO, Iterator, Optional, Sequence

DEFAULT_MATRIX = "matrixDataset/af23560.mtx"
DEFAULT_THREADS = 1

INT_BYTES = 4
DOUBLE_BYTES = 8
RESULT_PREVIEW = 5


@dataclass(frozen=True)
class Cluster:
    """A run of consecutive non-zeros along one diagonal.

    ``start_row`` and ``start_col`` are the 1-based position of the first
    element; element j of ``values`` sits j rows and j columns further on.
    """

    start_row: int
    start_col: int
    values: tuple[float, ...]

    def __len__(self) -> int:
        return len(self.values)


def _diagonal(matrix: Sequence[Sequence[float]], rows: int, cols: int, offset: int):
    start_row = max(0, -offset)
    start_col = max(0, offset)
    length = min(rows - start_row, cols - start_col)
    return [
        (start_row + k, start_col + k, matrix[start_row + k][start_col + k])
        for k in range(length)
    ]


@dataclass
class DiagonalClusters:
    """A matrix stored as its clusters, diagonal by diagonal from the bottom-left.

    Diagonals are visited from offset ``-(rows - 1)`` up to ``cols - 1``, and
    clusters within a diagonal from top to bottom.
    """

    rows: int
    cols: int
    clusters: list[Cluster] = field(default_factory=list)

    @classmethod
    def from_dense(cls, matrix: Sequence[Sequence[float]]) -> "DiagonalClusters":
        """Find every maximal run of non-zeros along the diagonals of ``matrix``."""
        rows = len(matrix)
        cols = len(matrix[0]) if rows else 0
        if any(len(row) != cols for row in matrix):
            raise ValueError("matrix rows must all have the same length")
        result = cls(rows=rows, cols=cols)
        for offset in range(-(rows - 1), cols):
            diagonal = _diagonal(matrix, rows, cols, offset)
            for nonzero, run in groupby(diagonal, key=lambda cell: cell[2] != 0):
                if not nonzero:
                    continue
                cells = list(run)
                first_row, first_col, _ = cells[0]
                result.clusters.append(
                    Cluster(
                        start_row=first_row + 1,
                        start_col=first_col + 1,
                        values=tuple(float(value) for _, _, value in cells),
                    )
                )
        return result

    def _check_vector(self, x: Sequence[float]) -> None:
        if len(x) < self.cols:
            raise ValueError(f"vector has {len(x)} elements, need {self.cols}")

    def _accumulate(self, clusters: Sequence[Cluster], x: Sequence[float]) -> list[float]:
        result = [0.0] * self.rows
        for cluster in clusters:
            for j, value in enumerate(cluster.values):
                result[cluster.start_row + j - 1] += value * x[cluster.start_col + j - 1]
        return result

    def spmv(self, x: Sequence[float]) -> list[float]:
        """Multiply the matrix with the dense vector x."""
        self._check_vector(x)
        return self._accumulate(self.clusters, x)

    def spmv_parallel(self, x: Sequence[float], threads: int = DEFAULT_THREADS) -> list[float]:
        """Multiply with x, sharing the clusters out among ``threads`` workers."""
        if threads < 1:
            raise ValueError("threads must be at least 1")
        self._check_vector(x)
        chunks = [self.clusters[k::threads] for k in range(threads)]
        with ThreadPoolExecutor(max_workers=threads) as pool:
            partials = list(pool.map(lambda chunk: self._accumulate(chunk, x), chunks))
        return [sum(column) for column in zip(*partials)] if partials else []

    def flop_count(self) -> int:
        """Floating-point operations of one product: a multiply and an add per value."""
        return 2 * sum(len(cluster) for cluster in self.clusters)

    def space_bytes(self) -> int:
        """Bytes for two integer indices per cluster plus one double per value."""
        values = sum(len(cluster) for cluster in self.clusters)
        return 2 * INT_BYTES * len(self.clusters) + DOUBLE_BYTES * values


def _header_line(stream: IO[str]) -> str:
    for line in stream:
        if not line.startswith("%") and line != "\n":
            return line
    return ""


def _triples(text: str) -> Iterator[tuple[str, str, str]]:
    tokens = iter(text.split())
    return zip(tokens, tokens, tokens)


def read_dense(stream: IO[str]) -> tuple[list[list[float]], int]:
    """Read a Matrix Market coordinate body into a dense matrix.

    Returns the matrix and the entry count given on the size line.  Entries
    outside the matrix are reported on stderr and left out; reading stops at
    the first entry that cannot be parsed.
    """
    line = _header_line(stream)
    header = line.split()
    try:
        rows, cols, nnz = (int(t) for t in header[:3])
    except ValueError:
        raise ValueError(f"cannot parse size line: {line.strip()!r}") from None

    matrix = [[0.0] * cols for _ in range(rows)]
    for r, c, v in _triples(stream.read()):
        try:
            row, col, value = int(r), int(c), float(v)
        except ValueError:
            break
        if 1 <= row <= rows and 1 <= col <= cols:
            matrix[row - 1][col - 1] = value
        else:
            print(f"Warning: Index out of bounds ({row}, {col})", file=sys.stderr)
    return matrix, nnz


def _gflops(flops: int, seconds: float) -> float:
    return float("inf") if seconds == 0 else flops / seconds / 1e9


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Read a matrix, cluster its diagonals and time serial and threaded products."""
    args = list(sys.argv[1:] if argv is None else argv)
    filename = args[0] if args else DEFAULT_MATRIX
    try:
        threads = int(args[1]) if len(args) > 1 else DEFAULT_THREADS
    except ValueError:
        print(f"Invalid thread count: {args[1]}", file=sys.stderr)
        return 1
    try:
        with open(filename, "r", encoding="utf-8") as stream:
            matrix, nnz = read_dense(stream)
    except OSError as exc:
        print(f"Error opening file: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error reading file: {exc}", file=sys.stderr)
        return 1

    rows = len(matrix)
    cols = len(matrix[0]) if rows else 0
    print(f"The no. of Rows: {rows} ")
    print(f"The no. of Columns: {cols} ")
    print(f"The No. of terms in this matrix: {nnz}")

    clusters = DiagonalClusters.from_dense(matrix)
    vector = [1.0] * cols

    start = time.process_time()
    result = clusters.spmv(vector)
    elapsed = time.process_time() - start

    flops = clusters.flop_count()
    print("\n\nResult Matrix : \n")
    for value in result[:RESULT_PREVIEW]:
        print(f"{value:f}")
    print(f"\n\n\nTime used: {elapsed:f} seconds")
    print(f"\n\n\n{float(flops):f} flop Arithmatic operation count")
    print(f"\n\n\n{_gflops(flops, elapsed):f} gflops")
    print(f"\n\n\n{clusters.space_bytes()} byte")

    try:
        start = time.process_time()
        parallel = clusters.spmv_parallel(vector, threads)
        elapsed = time.process_time() - start
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1
    print(f"\n\n\nParallel computing time used: {elapsed:f} seconds")
    print("\n\nResult Matrix : \n")
    for value in parallel[:RESULT_PREVIEW]:
        print(f"{value:f}")
    return 0