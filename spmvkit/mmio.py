"""Reading and writing of Matrix Market (coordinate and array) files."""

from __future__ import annotations

import re
import sys
from contextlib import nullcontext
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, Optional, Sequence, Union

BANNER = "%%MatrixMarket"
MATRIX_STR = "matrix"

_INT_RE = re.compile(r"[+-]?\d+")

Value = Union[float, complex, None]


class MatrixMarketError(ValueError):
    """Base class for Matrix Market read and write failures."""


class PrematureEOFError(MatrixMarketError):
    """The input ended, or stopped matching the format, before it was complete."""


class NoHeaderError(MatrixMarketError):
    """The first line does not carry the Matrix Market banner."""


class UnsupportedTypeError(MatrixMarketError):
    """The matrix type is unknown or not handled by the requested operation."""


class CouldNotReadFileError(MatrixMarketError):
    """The input file could not be opened."""


class CouldNotWriteFileError(MatrixMarketError):
    """The output file could not be opened or written."""


class StorageFormat(Enum):
    COORDINATE = "coordinate"
    ARRAY = "array"


class Field(Enum):
    REAL = "real"
    COMPLEX = "complex"
    PATTERN = "pattern"
    INTEGER = "integer"


class Symmetry(Enum):
    GENERAL = "general"
    SYMMETRIC = "symmetric"
    HERMITIAN = "hermitian"
    SKEW = "skew-symmetric"


@dataclass(frozen=True)
class MatrixCode:
    """The type of a Matrix Market object as given by its banner."""

    is_matrix: bool = False
    storage: Optional[StorageFormat] = None
    field: Optional[Field] = None
    symmetry: Symmetry = Symmetry.GENERAL

    @property
    def is_sparse(self) -> bool:
        return self.storage is StorageFormat.COORDINATE

    @property
    def is_dense(self) -> bool:
        return self.storage is StorageFormat.ARRAY

    def is_valid(self) -> bool:
        """Whether the combination of object, storage, field and symmetry is allowed."""
        if not self.is_matrix:
            return False
        if self.is_dense and self.field is Field.PATTERN:
            return False
        if self.field is Field.REAL and self.symmetry is Symmetry.HERMITIAN:
            return False
        if self.field is Field.PATTERN and self.symmetry in (
            Symmetry.HERMITIAN,
            Symmetry.SKEW,
        ):
            return False
        return True

    def __str__(self) -> str:
        if not self.is_matrix or self.storage is None or self.field is None:
            raise UnsupportedTypeError("matrix code is incomplete")
        return " ".join(
            (MATRIX_STR, self.storage.value, self.field.value, self.symmetry.value)
        )


@dataclass
class CoordinateData:
    """A sparse matrix in coordinate form together with its type."""

    rows: int
    cols: int
    code: MatrixCode
    row_indices: list[int]
    col_indices: list[int]
    values: Optional[list]

    @property
    def nnz(self) -> int:
        return len(self.row_indices)


def _scan_ints(line: str, count: int) -> Optional[list[int]]:
    tokens = line.split()[:count]
    if len(tokens) < count or not all(_INT_RE.fullmatch(t) for t in tokens):
        return None
    return [int(t) for t in tokens]


def _take_tokens(stream: IO[str], count: int) -> list[str]:
    tokens: list[str] = []
    while len(tokens) < count:
        line = stream.readline()
        if not line:
            raise PrematureEOFError("unexpected end of input")
        tokens.extend(line.split())
    return tokens[:count]


def _skip_comments(stream: IO[str]) -> str:
    while True:
        line = stream.readline()
        if not line:
            raise PrematureEOFError("unexpected end of input before size line")
        if not line.startswith("%"):
            return line


def _read_size(stream: IO[str], count: int) -> tuple[int, ...]:
    line = _skip_comments(stream)
    values = _scan_ints(line, count)
    if values is None:
        tokens = _take_tokens(stream, count)
        if not all(_INT_RE.fullmatch(t) for t in tokens):
            raise MatrixMarketError("could not parse matrix size")
        values = [int(t) for t in tokens]
    return tuple(values)


def read_banner(stream: IO[str]) -> MatrixCode:
    """Read and decode the banner line that starts a Matrix Market file."""
    line = stream.readline()
    if not line:
        raise PrematureEOFError("missing banner line")
    tokens = line.split()
    if len(tokens) < 5:
        raise PrematureEOFError("incomplete banner line")
    banner = tokens[0]
    obj, storage, field, symmetry = (t.lower() for t in tokens[1:5])
    if not banner.startswith(BANNER):
        raise NoHeaderError(f"not a Matrix Market banner: {banner!r}")
    if obj != MATRIX_STR:
        raise UnsupportedTypeError(f"unsupported object: {obj!r}")
    try:
        return MatrixCode(
            is_matrix=True,
            storage=StorageFormat(storage),
            field=Field(field),
            symmetry=Symmetry(symmetry),
        )
    except ValueError as exc:
        raise UnsupportedTypeError(str(exc)) from None


def read_crd_size(stream: IO[str]) -> tuple[int, int, int]:
    """Read the rows, columns and entry count of a coordinate matrix."""
    rows, cols, nnz = _read_size(stream, 3)
    return rows, cols, nnz


def read_array_size(stream: IO[str]) -> tuple[int, int]:
    """Read the rows and columns of a dense array matrix."""
    rows, cols = _read_size(stream, 2)
    return rows, cols


def write_banner(stream: IO[str], code: MatrixCode) -> None:
    """Write the banner line for the given matrix code."""
    stream.write(f"{BANNER} {code}\n")


def write_crd_size(stream: IO[str], rows: int, cols: int, nnz: int) -> None:
    """Write the size line of a coordinate matrix."""
    stream.write(f"{rows} {cols} {nnz}\n")


def write_array_size(stream: IO[str], rows: int, cols: int) -> None:
    """Write the size line of a dense array matrix."""
    stream.write(f"{rows} {cols}\n")


_ENTRY_WIDTH = {Field.COMPLEX: 4, Field.REAL: 3, Field.PATTERN: 2}


def read_crd_entry(stream: IO[str], code: MatrixCode) -> tuple[int, int, Value]:
    """Read one coordinate entry; the value is None for pattern matrices."""
    width = _ENTRY_WIDTH.get(code.field)
    if width is None:
        raise UnsupportedTypeError(f"cannot read entries of field {code.field}")
    tokens = _take_tokens(stream, width)
    try:
        i, j = int(tokens[0]), int(tokens[1])
        if code.field is Field.COMPLEX:
            value: Value = complex(float(tokens[2]), float(tokens[3]))
        elif code.field is Field.REAL:
            value = float(tokens[2])
        else:
            value = None
    except ValueError:
        raise PrematureEOFError(f"malformed entry: {' '.join(tokens)!r}") from None
    return i, j, value


def read_crd_data(
    stream: IO[str], nnz: int, code: MatrixCode
) -> tuple[list[int], list[int], Optional[list]]:
    """Read nnz coordinate entries with their indices as written in the file."""
    if code.field not in _ENTRY_WIDTH:
        raise UnsupportedTypeError(f"cannot read entries of field {code.field}")
    row_indices: list[int] = []
    col_indices: list[int] = []
    values: list = []
    for _ in range(nnz):
        i, j, value = read_crd_entry(stream, code)
        row_indices.append(i)
        col_indices.append(j)
        values.append(value)
    return row_indices, col_indices, None if code.field is Field.PATTERN else values


def _open_for_reading(path: Union[str, Path]):
    if str(path) == "stdin":
        return nullcontext(sys.stdin)
    try:
        return open(path, "r", encoding="utf-8")
    except OSError as exc:
        raise CouldNotReadFileError(f"cannot open {path}: {exc}") from exc


def read_mtx_crd(path: Union[str, Path]) -> CoordinateData:
    """Read a whole sparse coordinate file; "stdin" reads standard input."""
    with _open_for_reading(path) as stream:
        code = read_banner(stream)
        if not (code.is_valid() and code.is_sparse):
            raise UnsupportedTypeError("only valid sparse matrices can be read")
        rows, cols, nnz = read_crd_size(stream)
        row_indices, col_indices, values = read_crd_data(stream, nnz, code)
    return CoordinateData(rows, cols, code, row_indices, col_indices, values)


def write_mtx_crd(
    path: Union[str, Path],
    rows: int,
    cols: int,
    row_indices: Sequence[int],
    col_indices: Sequence[int],
    values: Optional[Sequence],
    code: MatrixCode,
) -> None:
    """Write a sparse coordinate file; "stdout" writes to standard output."""
    if code.field not in (Field.PATTERN, Field.REAL, Field.COMPLEX):
        raise UnsupportedTypeError(f"cannot write entries of field {code.field}")
    header = f"{BANNER} {code}\n"
    if str(path) == "stdout":
        target = nullcontext(sys.stdout)
    else:
        try:
            target = open(path, "w", encoding="utf-8")
        except OSError as exc:
            raise CouldNotWriteFileError(f"cannot open {path}: {exc}") from exc
    with target as stream:
        stream.write(header)
        stream.write(f"{rows} {cols} {len(row_indices)}\n")
        if code.field is Field.PATTERN:
            for i, j in zip(row_indices, col_indices):
                stream.write(f"{i} {j}\n")
        elif code.field is Field.REAL:
            for i, j, v in zip(row_indices, col_indices, values):
                stream.write(f"{i} {j} {v:20.16g}\n")
        else:
            for i, j, v in zip(row_indices, col_indices, values):
                v = complex(v)
                stream.write(f"{i} {j} {v.real:20.16g} {v.imag:20.16g}\n")


def read_unsymmetric_sparse(path: Union[str, Path]) -> CoordinateData:
    """Read a real general sparse file, converting indices to 0-based."""
    try:
        stream = open(path, "r", encoding="utf-8")
    except OSError as exc:
        raise CouldNotReadFileError(f"cannot open {path}: {exc}") from exc
    with stream:
        code = read_banner(stream)
        if not (code.field is Field.REAL and code.is_matrix and code.is_sparse):
            raise UnsupportedTypeError(f"unsupported Matrix Market type: {code}")
        rows, cols, nnz = read_crd_size(stream)
        row_indices: list[int] = []
        col_indices: list[int] = []
        values: list[float] = []
        for _ in range(nnz):
            i, j, value = read_crd_entry(stream, code)
            row_indices.append(i - 1)
            col_indices.append(j - 1)
            values.append(value)
    return CoordinateData(rows, cols, code, row_indices, col_indices, values)