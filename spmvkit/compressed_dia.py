"""Diagonal-offset storage over a dense matrix, with counted work and timing."""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass, field
from typing import IO, Iterator, Optional, Sequence

from spmvkit.diag_clusters import read_dense as _read_dense_body

DEFAULT_MATRIX = "matrixDataset/af23560.mtx"

INT_BYTES = 4
DOUBLE_BYTES = 8
RESULT_PREVIEW = 10


@dataclass
class DiaReport:
    """What one analysis of a matrix in diagonal-offset form found and measured."""

    rows: int
    cols: int
    offsets: list[int] = field(default_factory=list)
    result: list[float] = field(default_factory=list)
    nonzeros: int = 0
    stored_elements: int = 0
    flops: int = 0
    int_operations: int = 0
    space_bytes: int = 0
    spmv_seconds: float = 0.0
    traversal_seconds: float = 0.0

    @property
    def gflops(self) -> float:
        """Rate of the timed product, loop overhead included."""
        if self.spmv_seconds == 0:
            return float("inf")
        return self.flops / self.spmv_seconds / 1e9

    @property
    def gflops_spmv_only(self) -> float:
        """Rate with the time of a bare traversal of the diagonals taken off."""
        elapsed = self.spmv_seconds - self.traversal_seconds
        if elapsed == 0:
            return float("inf")
        return self.flops / elapsed / 1e9


def _matrix_shape(matrix: Sequence[Sequence[float]]) -> tuple[int, int]:
    rows = len(matrix)
    cols = len(matrix[0]) if rows else 0
    if any(len(row) != cols for row in matrix):
        raise ValueError("matrix rows must all have the same length")
    return rows, cols


def _diagonal_cells(rows: int, cols: int, offset: int) -> Iterator[tuple[int, int]]:
    start_row = max(0, -offset)
    start_col = max(0, offset)
    length = max(0, min(rows - start_row, cols - start_col))
    return ((start_row + k, start_col + k) for k in range(length))


def diagonal_offsets(matrix: Sequence[Sequence[float]]) -> list[int]:
    """Offsets (col - row) of the diagonals holding a non-zero, in ascending order."""
    _matrix_shape(matrix)
    return sorted(
        {j - i for i, row in enumerate(matrix) for j, value in enumerate(row) if value != 0}
    )


def compressed_dia_spmv(
    matrix: Sequence[Sequence[float]], offsets: Sequence[int], x: Sequence[float]
) -> list[float]:
    """Multiply by x, visiting only the diagonals named in ``offsets``."""
    rows, cols = _matrix_shape(matrix)
    if len(x) < cols:
        raise ValueError(f"vector has {len(x)} elements, need {cols}")
    result = [0.0] * rows
    for offset in offsets:
        for i, j in _diagonal_cells(rows, cols, offset):
            value = matrix[i][j]
            if value != 0:
                result[i] += value * x[j]
    return result


def _traverse(
    matrix: Sequence[Sequence[float]], rows: int, cols: int, offsets: Sequence[int]
) -> tuple[int, int]:
    stored = 0
    nonzero = 0
    for offset in offsets:
        for i, j in _diagonal_cells(rows, cols, offset):
            stored += 1
            if matrix[i][j] != 0:
                nonzero += 1
    return stored, nonzero


def analyse(matrix: Sequence[Sequence[float]]) -> DiaReport:
    """Multiply the matrix with a vector of ones and count the work and space it took."""
    rows, cols = _matrix_shape(matrix)
    offsets = diagonal_offsets(matrix)
    vector = [1.0] * cols

    start = time.process_time()
    result = compressed_dia_spmv(matrix, offsets, vector)
    spmv_seconds = time.process_time() - start

    start = time.process_time()
    stored, on_diagonals = _traverse(matrix, rows, cols, offsets)
    traversal_seconds = time.process_time() - start

    nonzeros = sum(1 for row in matrix for value in row if value != 0)
    return DiaReport(
        rows=rows,
        cols=cols,
        offsets=offsets,
        result=result,
        nonzeros=nonzeros,
        stored_elements=stored,
        flops=2 * on_diagonals,
        int_operations=stored + (rows + cols - 1),
        space_bytes=INT_BYTES * nonzeros + DOUBLE_BYTES * stored,
        spmv_seconds=spmv_seconds,
        traversal_seconds=traversal_seconds,
    )


def read_dense(stream: IO[str]) -> tuple[list[list[float]], int]:
    """Read a Matrix Market coordinate body into a dense matrix and its stated entry count."""
    return _read_dense_body(stream)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Read a matrix, multiply it in diagonal-offset form and report the figures."""
    args = list(sys.argv[1:] if argv is None else argv)
    filename = args[0] if args else DEFAULT_MATRIX
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

    report = analyse(matrix)
    print(f"\n\n\nTime used: {report.spmv_seconds:f} seconds", end="")
    print(f"\n\n\nTime used: {report.traversal_seconds:f} seconds", end="")
    print(f"\n\nFlops : {float(report.flops):f}", end="")
    print(f"\n\n\n{report.int_operations} int operations", end="")
    print(f"\n\n\n{report.gflops:f} flops with the loop and all", end="")
    print(f"\n\n\n{report.gflops_spmv_only:f} flops without the loop and all only the svmp", end="")
    print(f"\n\n\n{report.space_bytes} byte\n\n")
    print("".join(f"{value:f}\t" for value in report.result[:RESULT_PREVIEW]))
    return 0