"""Compressed diagonal storage of square integer matrices."""

from __future__ import annotations

import re
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union

DEFAULT_MATRIX = "matrixDataset/bfw398a.mtx"

_INT_PREFIX = re.compile(r"[+-]?\d+")


class MtxFormatError(ValueError):
    """The matrix file could not be parsed."""


class TooManyDiagonalsError(ValueError):
    """The matrix has more non-zero diagonals than allowed."""


@dataclass
class CDSMatrix:
    """An N x N matrix stored as its non-zero diagonals.

    ``offsets[k]`` is the offset (col - row) of the k-th stored diagonal and
    ``ad[i][k]`` is the element of that diagonal in row i, 0 where the
    diagonal does not reach row i.
    """

    n: int
    offsets: list[int] = field(default_factory=list)
    ad: list[list[int]] = field(default_factory=list)

    @property
    def num_diags(self) -> int:
        return len(self.offsets)

    @classmethod
    def from_dense(cls, dense: Sequence[Sequence[int]], max_diags: int) -> "CDSMatrix":
        """Build the diagonal storage of a square dense matrix."""
        n = len(dense)
        cds = cls(n=n, ad=[[] for _ in range(n)])
        for d in range(-(n - 1), n):
            column = [dense[i][i + d] if 0 <= i + d < n else 0 for i in range(n)]
            if not any(column):
                continue
            if cds.num_diags >= max_diags:
                raise TooManyDiagonalsError(
                    "Exceeded maximum number of diagonals allowed."
                )
            cds.offsets.append(d)
            for row, value in zip(cds.ad, column):
                row.append(value)
        return cds

    def spmv(self) -> list[float]:
        """Sum each row's stored diagonal values (a product with a vector of ones)."""
        return [
            float(
                sum(
                    value
                    for value, d in zip(self.ad[i], self.offsets)
                    if 0 <= i + d < self.n
                )
            )
            for i in range(self.n)
        ]


def _scan_three_ints(line: str) -> Optional[tuple[int, int, int]]:
    tokens = line.split()
    if len(tokens) < 3:
        return None
    if not (_INT_PREFIX.fullmatch(tokens[0]) and _INT_PREFIX.fullmatch(tokens[1])):
        return None
    third = _INT_PREFIX.match(tokens[2])
    if third is None:
        return None
    return int(tokens[0]), int(tokens[1]), int(third.group())


def read_dense_mtx(path: Union[str, Path]) -> list[list[int]]:
    """Read a square Matrix Market coordinate file into a dense integer matrix."""
    with open(path, "r", encoding="utf-8") as stream:
        line = ""
        for line in stream:
            if not line.startswith("%"):
                break
        else:
            line = ""
        header = _scan_three_ints(line)
        if header is None:
            raise MtxFormatError("Error reading matrix dimensions and nnz.")
        rows, cols, nnz = header
        if rows != cols:
            raise MtxFormatError("Matrix must be square.")
        dense = [[0] * cols for _ in range(rows)]
        for _ in range(nnz):
            entry_line = stream.readline()
            if not entry_line:
                raise MtxFormatError("Error reading matrix entry.")
            entry = _scan_three_ints(entry_line)
            if entry is None:
                raise MtxFormatError("Error parsing matrix entry.")
            row, col, value = entry
            if not (1 <= row <= rows and 1 <= col <= cols):
                raise MtxFormatError(f"Index out of bounds ({row}, {col})")
            dense[row - 1][col - 1] = value
    return dense


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Read a matrix, convert it to diagonal storage and time the product."""
    args = list(sys.argv[1:] if argv is None else argv)
    filename = args[0] if args else DEFAULT_MATRIX
    try:
        dense = read_dense_mtx(filename)
    except OSError:
        print(f"Error opening file: {filename}", file=sys.stderr)
        return 1
    except MtxFormatError as exc:
        print(exc, file=sys.stderr)
        return 1

    n = len(dense)
    try:
        cds = CDSMatrix.from_dense(dense, 2 * n - 1)
    except TooManyDiagonalsError as exc:
        print(exc, file=sys.stderr)
        return 0

    start = time.process_time()
    cds.spmv()
    elapsed = time.process_time() - start
    print(f"Time taken for SpMV: {elapsed:f} seconds")
    return 0