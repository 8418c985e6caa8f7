"""Compressed sparse row storage built from coordinate entries."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import IO, Optional, Sequence

DEFAULT_MATRIX = "try.mtx"


class EntryCountError(ValueError):
    """The number of entries read differs from the count on the size line."""

    def __init__(self, read: int, expected: int) -> None:
        super().__init__(
            f"Number of non-zero elements read ({read}) does not match expected ({expected})"
        )
        self.read = read
        self.expected = expected


@dataclass
class CSRMatrix:
    """A sparse matrix in compressed sparse row form with 0-based indices.

    The entries of row i are ``col_indices[row_ptr[i]:row_ptr[i + 1]]`` with
    the matching ``values``.
    """

    rows: int
    cols: int
    row_ptr: list[int] = field(default_factory=list)
    col_indices: list[int] = field(default_factory=list)
    values: list[float] = field(default_factory=list)

    @property
    def nnz(self) -> int:
        return len(self.values)

    @classmethod
    def from_coo(
        cls,
        rows: int,
        cols: int,
        row_indices: Sequence[int],
        col_indices: Sequence[int],
        values: Sequence[float],
    ) -> "CSRMatrix":
        """Build the row form from 0-based coordinate entries in any order."""
        if not len(row_indices) == len(col_indices) == len(values):
            raise ValueError("coordinate arrays must have the same length")
        for r, c in zip(row_indices, col_indices):
            if not (0 <= r < rows and 0 <= c < cols):
                raise ValueError(f"index out of bounds ({r}, {c})")
        counts = [0] * rows
        for r in row_indices:
            counts[r] += 1
        row_ptr = [0]
        for count in counts:
            row_ptr.append(row_ptr[-1] + count)
        order = sorted(range(len(row_indices)), key=lambda k: row_indices[k])
        return cls(
            rows=rows,
            cols=cols,
            row_ptr=row_ptr,
            col_indices=[col_indices[k] for k in order],
            values=[float(values[k]) for k in order],
        )

    def spmv(self, x: Sequence[float]) -> list[float]:
        """Multiply the matrix with the dense vector x."""
        if len(x) < self.cols:
            raise ValueError(f"vector has {len(x)} elements, need {self.cols}")
        return [
            sum(
                value * x[col]
                for col, value in zip(
                    self.col_indices[begin:end], self.values[begin:end]
                )
            )
            for begin, end in zip(self.row_ptr, self.row_ptr[1:])
        ]


def read_coo(stream: IO[str]) -> tuple[int, int, list[int], list[int], list[float]]:
    """Read a Matrix Market coordinate body into 0-based coordinate arrays.

    Entries outside the matrix are reported on stderr and left out; reading
    stops at the first entry that cannot be parsed.  Raises
    :class:`EntryCountError` when the number kept differs from the size line.
    """
    line = ""
    for line in stream:
        if not line.startswith("%") and line != "\n":
            break
    else:
        line = ""
    header = line.split()
    try:
        rows, cols, nnz = (int(t) for t in header[:3])
    except ValueError:
        raise ValueError(f"cannot parse size line: {line.strip()!r}") from None

    row_indices: list[int] = []
    col_indices: list[int] = []
    values: list[float] = []
    tokens = iter(stream.read().split())
    for r, c, v in zip(tokens, tokens, tokens):
        try:
            row, col, value = int(r), int(c), float(v)
        except ValueError:
            break
        if 1 <= row <= rows and 1 <= col <= cols:
            row_indices.append(row - 1)
            col_indices.append(col - 1)
            values.append(value)
        else:
            print(f"Warning: Index out of bounds ({row}, {col})", file=sys.stderr)
    if len(values) != nnz:
        raise EntryCountError(len(values), nnz)
    return rows, cols, row_indices, col_indices, values


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Read a matrix, multiply it with a vector of ones and print the result."""
    args = list(sys.argv[1:] if argv is None else argv)
    filename = args[0] if args else DEFAULT_MATRIX
    try:
        with open(filename, "r", encoding="utf-8") as stream:
            rows, cols, row_indices, col_indices, values = read_coo(stream)
    except OSError as exc:
        print(f"Error opening file: {exc}", file=sys.stderr)
        return 1
    except EntryCountError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error reading file: {exc}", file=sys.stderr)
        return 1

    matrix = CSRMatrix.from_coo(rows, cols, row_indices, col_indices, values)
    result = matrix.spmv([1.0] * cols)
    print("Result of Sparse Matrix-Vector Multiplication:")
    for value in result:
        print(f"{value:f}")
    return 0