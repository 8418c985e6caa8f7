"""Coordinate and diagonal sparse formats with serial and threaded products."""

from __future__ import annotations

import os
import random
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import IO, Optional, Sequence

from spmvkit.mmio import (
    Field,
    MatrixMarketError,
    PrematureEOFError,
    read_banner,
    read_crd_size,
)

INT_BYTES = 4
DOUBLE_BYTES = 8
VECTOR_LOW = 5
VECTOR_HIGH = 10


def _start_vector(y: Optional[Sequence[float]], length: int) -> list[float]:
    if y is None:
        return [0.0] * length
    if len(y) != length:
        raise ValueError(f"result vector has {len(y)} elements, need {length}")
    return [float(v) for v in y]


def _check_x(x: Sequence[float], cols: int) -> None:
    if len(x) < cols:
        raise ValueError(f"vector has {len(x)} elements, need {cols}")


@dataclass
class DIAMatrix:
    """A sparse matrix stored by diagonals.

    ``offsets`` holds the ascending offsets (col - row) of the diagonals that
    contain a non-zero; ``data[k][i]`` is the element of diagonal k in row i,
    0 where that diagonal does not reach row i.
    """

    nrows: int
    ncols: int
    nnz: int
    offsets: list[int] = field(default_factory=list)
    data: list[list[float]] = field(default_factory=list)

    @property
    def ndiags(self) -> int:
        return len(self.offsets)

    def spmv(self, x: Sequence[float], y: Optional[Sequence[float]] = None) -> list[float]:
        """Return y + A x, with y taken as zeros when it is not given."""
        _check_x(x, self.ncols)
        result = _start_vector(y, self.nrows)
        for offset, diagonal in zip(self.offsets, self.data):
            istart = max(0, -offset)
            jstart = max(0, offset)
            length = min(self.nrows - istart, self.ncols - jstart)
            for n in range(max(0, length)):
                result[istart + n] += diagonal[istart + n] * x[jstart + n]
        return result


@dataclass
class COOMatrix:
    """A sparse matrix in coordinate form with 0-based indices."""

    nrows: int
    ncols: int
    rows: list[int] = field(default_factory=list)
    cols: list[int] = field(default_factory=list)
    values: list[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not len(self.rows) == len(self.cols) == len(self.values):
            raise ValueError("coordinate arrays must have the same length")
        for r, c in zip(self.rows, self.cols):
            if not (0 <= r < self.nrows and 0 <= c < self.ncols):
                raise ValueError(f"index out of bounds ({r}, {c})")

    @property
    def nnz(self) -> int:
        return len(self.values)

    def _accumulate(self, result: list[float], x: Sequence[float], part: range) -> list[float]:
        for k in part:
            result[self.rows[k]] += self.values[k] * x[self.cols[k]]
        return result

    def spmv(self, x: Sequence[float], y: Optional[Sequence[float]] = None) -> list[float]:
        """Return y + A x, with y taken as zeros when it is not given."""
        _check_x(x, self.ncols)
        result = _start_vector(y, self.nrows)
        return self._accumulate(result, x, range(self.nnz))

    def spmv_parallel(
        self, x: Sequence[float], y: Optional[Sequence[float]] = None
    ) -> list[float]:
        """Return y + A x, sharing the entries out among worker threads."""
        _check_x(x, self.ncols)
        result = _start_vector(y, self.nrows)
        workers = max(1, min(os.cpu_count() or 1, self.nnz))
        parts = [range(k, self.nnz, workers) for k in range(workers)]
        with ThreadPoolExecutor(max_workers=workers) as pool:
            partials = list(
                pool.map(
                    lambda part: self._accumulate([0.0] * self.nrows, x, part), parts
                )
            )
        for partial in partials:
            for i, value in enumerate(partial):
                result[i] += value
        return result

    def to_dia(self) -> DIAMatrix:
        """Convert to diagonal storage; a later duplicate entry overwrites an earlier one."""
        offsets = sorted({c - r for r, c in zip(self.rows, self.cols)})
        position = {offset: k for k, offset in enumerate(offsets)}
        data = [[0.0] * self.nrows for _ in offsets]
        for r, c, value in zip(self.rows, self.cols, self.values):
            data[position[c - r]][r] = float(value)
        return DIAMatrix(
            nrows=self.nrows,
            ncols=self.ncols,
            nnz=self.nnz,
            offsets=offsets,
            data=data,
        )


def coo_size_bytes(nnz: int) -> int:
    """Bytes for the coordinate form: two index arrays, a count and the values."""
    return INT_BYTES * (2 * nnz + 1) + DOUBLE_BYTES * nnz


def random_vector(
    size: int, low: int, high: int, rng: Optional[random.Random] = None
) -> list[float]:
    """A vector of ``size`` random whole numbers from ``low`` to ``high`` inclusive."""
    if high < low:
        raise ValueError("high must not be less than low")
    if size < 0:
        raise ValueError("size must not be negative")
    source = rng if rng is not None else random.Random()
    return [float(source.randint(low, high)) for _ in range(size)]


def _read_matrix(stream: IO[str]) -> COOMatrix:
    code = read_banner(stream)
    if code.field is Field.COMPLEX and code.is_matrix and code.is_sparse:
        raise _UnsupportedComplex(str(code))
    nrows, ncols, nnz = read_crd_size(stream)
    tokens = stream.read().split()
    if len(tokens) < 3 * nnz:
        raise PrematureEOFError(f"expected {nnz} entries, input ended early")
    it = iter(tokens[: 3 * nnz])
    rows: list[int] = []
    cols: list[int] = []
    values: list[float] = []
    for r, c, v in zip(it, it, it):
        try:
            rows.append(int(r) - 1)
            cols.append(int(c) - 1)
            values.append(float(v))
        except ValueError:
            raise PrematureEOFError(f"malformed entry: {r} {c} {v}") from None
    return COOMatrix(nrows, ncols, rows, cols, values)


class _UnsupportedComplex(MatrixMarketError):
    pass


def _report(nnz: int, seconds: float) -> None:
    gflops = float("inf") if seconds == 0 else 2 * nnz / (seconds * 1e9)
    print(f"Time for SpMV for matrix having {nnz} non-zeros is {seconds:f}")
    print(f"GFlops for SpMV for matrix having {nnz} non-zeros is {gflops:f}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Read a matrix and time coordinate, threaded and diagonal products."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("Usage: coo [matrix-market-filename]", file=sys.stderr)
        return 1
    try:
        with open(args[0], "r", encoding="utf-8") as stream:
            matrix = _read_matrix(stream)
    except OSError as exc:
        print(f"Error opening file: {exc}", file=sys.stderr)
        return 1
    except _UnsupportedComplex as exc:
        print(f"Sorry, this application does not support Market Market type: [{exc}]")
        return 1
    except MatrixMarketError as exc:
        print(f"Could not read matrix: {exc}")
        return 1
    except ValueError as exc:
        print(f"Could not read matrix: {exc}")
        return 1

    x = random_vector(matrix.ncols, VECTOR_LOW, VECTOR_HIGH)

    start = time.process_time()
    matrix.spmv(x)
    _report(matrix.nnz, time.process_time() - start)

    start = time.process_time()
    matrix.spmv_parallel(x)
    _report(matrix.nnz, time.process_time() - start)

    dia = matrix.to_dia()
    print(f"Number of rows: {dia.nrows}")
    print(f"Number of columns: {dia.ncols}")
    print(f"Number of non-zero elements: {dia.nnz}")
    print(f"Number of diagonals: {dia.ndiags}")

    start = time.process_time()
    dia.spmv(x)
    _report(dia.nnz, time.process_time() - start)
    return 0