import io
import sys

import pytest

from spmvkit.mmio import (
    CouldNotReadFileError,
    CouldNotWriteFileError,
    Field,
    MatrixCode,
    NoHeaderError,
    PrematureEOFError,
    StorageFormat,
    Symmetry,
    UnsupportedTypeError,
    read_array_size,
    read_banner,
    read_crd_data,
    read_crd_entry,
    read_crd_size,
    read_mtx_crd,
    read_unsymmetric_sparse,
    write_array_size,
    write_banner,
    write_crd_size,
    write_mtx_crd,
)

REAL_GENERAL = MatrixCode(True, StorageFormat.COORDINATE, Field.REAL, Symmetry.GENERAL)

SAMPLE = """%%MatrixMarket matrix coordinate real general
% a comment
% another
3 4 3
1 1 2.5
2 3 -1.0
3 4 7
"""


def test_read_banner_decodes_fields_case_insensitively():
    code = read_banner(io.StringIO("%%MatrixMarket MATRIX Coordinate Complex Hermitian\n"))
    assert code == MatrixCode(
        True, StorageFormat.COORDINATE, Field.COMPLEX, Symmetry.HERMITIAN
    )


def test_read_banner_skew_symmetric_array():
    code = read_banner(io.StringIO("%%MatrixMarket matrix array integer skew-symmetric\n"))
    assert code.storage is StorageFormat.ARRAY
    assert code.symmetry is Symmetry.SKEW
    assert code.field is Field.INTEGER


@pytest.mark.parametrize(
    "text, error",
    [
        ("", PrematureEOFError),
        ("%%MatrixMarket matrix coordinate real\n", PrematureEOFError),
        ("MatrixMarket matrix coordinate real general\n", NoHeaderError),
        ("%%MatrixMarket vector coordinate real general\n", UnsupportedTypeError),
        ("%%MatrixMarket matrix sparse real general\n", UnsupportedTypeError),
        ("%%MatrixMarket matrix coordinate double general\n", UnsupportedTypeError),
        ("%%MatrixMarket matrix coordinate real lower\n", UnsupportedTypeError),
    ],
)
def test_read_banner_errors(text, error):
    with pytest.raises(error):
        read_banner(io.StringIO(text))


def test_code_str_and_banner_roundtrip():
    assert str(REAL_GENERAL) == "matrix coordinate real general"
    out = io.StringIO()
    write_banner(out, REAL_GENERAL)
    assert out.getvalue() == "%%MatrixMarket matrix coordinate real general\n"
    out.seek(0)
    assert read_banner(out) == REAL_GENERAL


def test_incomplete_code_has_no_string():
    with pytest.raises(UnsupportedTypeError):
        str(MatrixCode())


@pytest.mark.parametrize(
    "code, valid",
    [
        (REAL_GENERAL, True),
        (MatrixCode(False, StorageFormat.COORDINATE, Field.REAL), False),
        (MatrixCode(True, StorageFormat.ARRAY, Field.PATTERN), False),
        (MatrixCode(True, StorageFormat.COORDINATE, Field.REAL, Symmetry.HERMITIAN), False),
        (MatrixCode(True, StorageFormat.COORDINATE, Field.PATTERN, Symmetry.SKEW), False),
        (MatrixCode(True, StorageFormat.COORDINATE, Field.PATTERN, Symmetry.SYMMETRIC), True),
        (MatrixCode(True, StorageFormat.COORDINATE, Field.COMPLEX, Symmetry.HERMITIAN), True),
    ],
)
def test_is_valid(code, valid):
    assert code.is_valid() is valid


def test_read_crd_size_skips_comments():
    stream = io.StringIO("% c1\n%c2\n5 6 7\n1 1 1.0\n")
    assert read_crd_size(stream) == (5, 6, 7)
    assert stream.readline() == "1 1 1.0\n"


def test_read_crd_size_after_blank_line():
    assert read_crd_size(io.StringIO("%c\n\n5 6 7\n")) == (5, 6, 7)


def test_read_crd_size_premature_eof():
    with pytest.raises(PrematureEOFError):
        read_crd_size(io.StringIO("% only comments\n"))


def test_size_write_read_roundtrip():
    out = io.StringIO()
    write_crd_size(out, 10, 20, 30)
    write_array_size(out, 8, 9)
    out.seek(0)
    assert read_crd_size(out) == (10, 20, 30)
    assert read_array_size(out) == (8, 9)


def test_read_crd_entry_variants():
    pattern = MatrixCode(True, StorageFormat.COORDINATE, Field.PATTERN)
    complex_code = MatrixCode(True, StorageFormat.COORDINATE, Field.COMPLEX)
    assert read_crd_entry(io.StringIO("2 3\n"), pattern) == (2, 3, None)
    assert read_crd_entry(io.StringIO("2 3 1.5 -2\n"), complex_code) == (2, 3, 1.5 - 2j)
    assert read_crd_entry(io.StringIO("4 1 0.25\n"), REAL_GENERAL) == (4, 1, 0.25)


def test_read_crd_entry_malformed_and_unsupported():
    with pytest.raises(PrematureEOFError):
        read_crd_entry(io.StringIO("1 x 2.0\n"), REAL_GENERAL)
    with pytest.raises(PrematureEOFError):
        read_crd_entry(io.StringIO("1 2\n"), REAL_GENERAL)
    integer = MatrixCode(True, StorageFormat.COORDINATE, Field.INTEGER)
    with pytest.raises(UnsupportedTypeError):
        read_crd_entry(io.StringIO("1 2 3\n"), integer)


def test_read_crd_data_keeps_file_indices():
    rows, cols, values = read_crd_data(io.StringIO("1 1 2.5\n3 2 4\n"), 2, REAL_GENERAL)
    assert rows == [1, 3]
    assert cols == [1, 2]
    assert values == [2.5, 4.0]


def test_read_mtx_crd_file(tmp_path):
    path = tmp_path / "a.mtx"
    path.write_text(SAMPLE)
    data = read_mtx_crd(path)
    assert (data.rows, data.cols, data.nnz) == (3, 4, 3)
    assert data.row_indices == [1, 2, 3]
    assert data.col_indices == [1, 3, 4]
    assert data.values == [2.5, -1.0, 7.0]
    assert data.code == REAL_GENERAL


def test_read_mtx_crd_from_stdin(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO(SAMPLE))
    assert read_mtx_crd("stdin").values == [2.5, -1.0, 7.0]


def test_read_mtx_crd_rejects_dense(tmp_path):
    path = tmp_path / "d.mtx"
    path.write_text("%%MatrixMarket matrix array real general\n2 2\n1\n2\n3\n4\n")
    with pytest.raises(UnsupportedTypeError):
        read_mtx_crd(path)


def test_read_mtx_crd_missing_file(tmp_path):
    with pytest.raises(CouldNotReadFileError):
        read_mtx_crd(tmp_path / "missing.mtx")


def test_read_mtx_crd_truncated(tmp_path):
    path = tmp_path / "t.mtx"
    path.write_text("%%MatrixMarket matrix coordinate real general\n3 3 2\n1 1 1.0\n")
    with pytest.raises(PrematureEOFError):
        read_mtx_crd(path)


@pytest.mark.parametrize(
    "field, values",
    [
        (Field.REAL, [1.5, -0.125, 3.0e10]),
        (Field.COMPLEX, [1 + 2j, -0.5j, 3.25]),
        (Field.PATTERN, None),
    ],
)
def test_write_read_roundtrip(tmp_path, field, values):
    code = MatrixCode(True, StorageFormat.COORDINATE, field, Symmetry.GENERAL)
    path = tmp_path / "w.mtx"
    write_mtx_crd(path, 4, 5, [1, 2, 4], [5, 3, 1], values, code)
    data = read_mtx_crd(path)
    assert (data.rows, data.cols) == (4, 5)
    assert data.row_indices == [1, 2, 4]
    assert data.col_indices == [5, 3, 1]
    assert data.code == code
    if values is None:
        assert data.values is None
    else:
        assert data.values == [type(data.values[0])(v) for v in values]


def test_write_real_uses_wide_general_format(tmp_path):
    path = tmp_path / "w.mtx"
    write_mtx_crd(path, 2, 2, [1], [2], [1.5], REAL_GENERAL)
    lines = path.read_text().splitlines()
    assert lines[0] == "%%MatrixMarket matrix coordinate real general"
    assert lines[1] == "2 2 1"
    assert lines[2].split() == ["1", "2", "1.5"]
    assert len(lines[2]) == len("1 2 ") + 20


def test_write_to_stdout(capsys):
    pattern = MatrixCode(True, StorageFormat.COORDINATE, Field.PATTERN)
    write_mtx_crd("stdout", 3, 3, [1, 2], [2, 3], None, pattern)
    out = capsys.readouterr().out
    assert out.splitlines() == [
        "%%MatrixMarket matrix coordinate pattern general",
        "3 3 2",
        "1 2",
        "2 3",
    ]


def test_write_integer_unsupported(tmp_path):
    integer = MatrixCode(True, StorageFormat.COORDINATE, Field.INTEGER)
    with pytest.raises(UnsupportedTypeError):
        write_mtx_crd(tmp_path / "i.mtx", 1, 1, [1], [1], [1], integer)


def test_write_to_unopenable_path(tmp_path):
    with pytest.raises(CouldNotWriteFileError):
        write_mtx_crd(tmp_path / "no" / "dir" / "x.mtx", 1, 1, [1], [1], [1.0], REAL_GENERAL)


def test_read_unsymmetric_sparse_zero_based(tmp_path):
    path = tmp_path / "u.mtx"
    path.write_text(SAMPLE)
    data = read_unsymmetric_sparse(path)
    assert data.row_indices == [0, 1, 2]
    assert data.col_indices == [0, 2, 3]
    assert data.values == [2.5, -1.0, 7.0]


def test_read_unsymmetric_sparse_rejects_pattern(tmp_path):
    path = tmp_path / "p.mtx"
    path.write_text("%%MatrixMarket matrix coordinate pattern general\n2 2 1\n1 1\n")
    with pytest.raises(UnsupportedTypeError):
        read_unsymmetric_sparse(path)


def test_read_unsymmetric_sparse_missing(tmp_path):
    with pytest.raises(CouldNotReadFileError):
        read_unsymmetric_sparse(tmp_path / "nope.mtx")