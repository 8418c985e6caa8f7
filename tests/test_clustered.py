import io

import pytest

from spmvkit.clustered import (
    ClusteredMatrix,
    DiagEntry,
    main,
    read_entries,
    sort_by_offset,
)


def _sample_entries():
    return [
        DiagEntry(1, 1, 2.0),
        DiagEntry(1, 2, 3.0),
        DiagEntry(2, 2, 4.0),
        DiagEntry(3, 1, 5.0),
        DiagEntry(3, 3, 6.0),
    ]


def _dense_product(rows, cols, entries, x):
    dense = [[0.0] * cols for _ in range(rows)]
    for e in entries:
        dense[e.row - 1][e.col - 1] = e.value
    return [sum(a * b for a, b in zip(row, x)) for row in dense]


def test_sort_by_offset_orders_and_is_stable():
    entries = [DiagEntry(2, 2, 1.0), DiagEntry(1, 2, 2.0), DiagEntry(1, 1, 3.0)]
    ordered = sort_by_offset(entries)
    assert [e.offset for e in ordered] == [0, 0, 1]
    # ties keep their input order
    assert ordered[0] is entries[0]
    assert ordered[1] is entries[2]


def test_clusters_of_sample_matrix():
    matrix = ClusteredMatrix.from_entries(3, 3, sort_by_offset(_sample_entries()))
    assert matrix.num_clusters() == 3
    assert matrix.cluster_sizes == [1, 3, 1]
    assert matrix.start_rows == [3, 1, 1]
    assert matrix.start_cols == [1, 1, 2]
    assert matrix.values == [5.0, 2.0, 4.0, 6.0, 3.0]


def test_gap_on_diagonal_splits_cluster():
    entries = [DiagEntry(1, 1, 1.0), DiagEntry(3, 3, 1.0)]
    matrix = ClusteredMatrix.from_entries(3, 3, entries)
    assert matrix.num_clusters() == 2
    assert matrix.cluster_sizes == [1, 1]


def test_sizes_sum_to_entry_count():
    entries = _sample_entries()
    matrix = ClusteredMatrix.from_entries(3, 3, sort_by_offset(entries))
    assert sum(matrix.cluster_sizes) == len(entries)
    assert len(matrix.values) == len(entries)


def test_spmv_matches_dense_product():
    entries = _sample_entries()
    matrix = ClusteredMatrix.from_entries(3, 3, sort_by_offset(entries))
    x = [1.0, -2.0, 0.5]
    assert matrix.spmv(x) == pytest.approx(_dense_product(3, 3, entries, x))


def test_spmv_with_ones_gives_row_sums():
    entries = _sample_entries()
    matrix = ClusteredMatrix.from_entries(3, 3, sort_by_offset(entries))
    assert matrix.spmv([1.0, 1.0, 1.0]) == pytest.approx([5.0, 4.0, 11.0])


def test_spmv_rejects_short_vector():
    matrix = ClusteredMatrix.from_entries(3, 3, _sample_entries())
    with pytest.raises(ValueError):
        matrix.spmv([1.0])


def test_space_bytes():
    matrix = ClusteredMatrix.from_entries(3, 3, sort_by_offset(_sample_entries()))
    assert matrix.space_bytes() == 64


def test_empty_matrix():
    matrix = ClusteredMatrix.from_entries(2, 2, [])
    assert matrix.num_clusters() == 0
    assert matrix.spmv([1.0, 1.0]) == [0.0, 0.0]
    assert matrix.space_bytes() == 0


def test_read_entries_skips_comments_and_out_of_bounds(capsys):
    text = (
        "%%MatrixMarket matrix coordinate real general\n"
        "% comment\n"
        "\n"
        "2 2 3\n"
        "1 1 1.5\n"
        "5 1 9.0\n"
        "2 2 -2.5\n"
    )
    rows, cols, entries = read_entries(io.StringIO(text))
    assert (rows, cols) == (2, 2)
    assert entries == [DiagEntry(1, 1, 1.5), DiagEntry(2, 2, -2.5)]
    assert "Index out of bounds (5, 1)" in capsys.readouterr().err


def test_read_entries_stops_at_bad_entry():
    text = "2 2 3\n1 1 1.0\nx y z\n2 2 2.0\n"
    _, _, entries = read_entries(io.StringIO(text))
    assert entries == [DiagEntry(1, 1, 1.0)]


def test_read_entries_bad_header():
    with pytest.raises(ValueError):
        read_entries(io.StringIO("% only comments\n"))


def test_main_reports_clusters(tmp_path, capsys):
    path = tmp_path / "m.mtx"
    path.write_text(
        "%%MatrixMarket matrix coordinate real general\n"
        "3 3 5\n1 1 2\n1 2 3\n2 2 4\n3 1 5\n3 3 6\n",
        encoding="utf-8",
    )
    assert main([str(path)]) == 0
    out = capsys.readouterr().out
    assert "The no. of Rows: 3" in out
    assert "Num of clusters : 3" in out
    assert "Time taken for SPMV_CC is" in out


def test_main_missing_file(tmp_path):
    assert main([str(tmp_path / "missing.mtx")]) == 1