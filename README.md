# spmvkit

spmvkit is a set of sparse matrix storage formats and sparse
matrix-vector multiplication (SpMV) routines. It reads matrices from
Matrix Market (`.mtx`) coordinate files. It uses only the standard library.

## Modules

| Module                   | What it holds                                                       |
|--------------------------|---------------------------------------------------------------------|
| `spmvkit.mmio`           | Matrix Market banners, size lines and coordinate data, read and written |
| `spmvkit.coo`            | `COOMatrix` (coordinate form) and its conversion to `DIAMatrix` (diagonal form) |
| `spmvkit.csr`            | `CSRMatrix`, compressed sparse rows built from coordinate triplets  |
| `spmvkit.jds`            | `Entry` lists sorted by diagonal (`col - row`), then by row         |
| `spmvkit.cds`            | `CDSMatrix`, compressed diagonal storage of a square integer matrix |
| `spmvkit.compressed_dia` | Diagonal offsets of a dense matrix, a product over them and a `DiaReport` of the work done |
| `spmvkit.clustered`      | `ClusteredMatrix`, runs of consecutive entries along each diagonal, built from sorted `DiagEntry` items |
| `spmvkit.diag_clusters`  | `DiagonalClusters`, runs of non-zeros found by walking every diagonal of a dense matrix |

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Commands

Each format has a command that reads a Matrix Market file, builds the
format, runs the product and prints figures such as timing, storage size or
the first values of the result:

```
spmv-jds matrix.mtx
spmv-cds matrix.mtx
spmv-clustered matrix.mtx
spmv-diag-clusters matrix.mtx [threads]
spmv-compressed-dia matrix.mtx
spmv-csr matrix.mtx
spmv-coo matrix.mtx
```

- `spmv-jds` and `spmv-coo` need the file argument.
- The others fall back to a default path under `matrixDataset/`
  (`spmv-csr` to `try.mtx`) when no file is given.
- `spmv-cds` needs a square matrix with integer values.
- `spmv-diag-clusters` takes an optional thread count for its threaded
  product. The default is 1.
- `spmv-coo` reads the banner line. It rejects complex coordinate matrices.
  It multiplies by a random vector.
- The other commands skip `%` lines and multiply by a vector of ones.

## Library use

Read a coordinate file. Indices are kept as written (1-based):

```python
from spmvkit.mmio import read_mtx_crd, MatrixMarketError

try:
    data = read_mtx_crd("matrix.mtx")
except MatrixMarketError as err:
    print("could not read matrix:", err)
else:
    print(data.rows, data.cols, data.nnz, data.code)
```

`read_unsymmetric_sparse` reads a real sparse file and turns its indices
to 0-based. `write_mtx_crd` writes pattern, real and complex coordinate
files. A path of `"stdin"` or `"stdout"` uses the standard streams.

Each failure raises its own subclass of `MatrixMarketError`:

- `PrematureEOFError`
- `NoHeaderError`
- `UnsupportedTypeError`
- `CouldNotReadFileError`
- `CouldNotWriteFileError`

Multiply a CSR matrix by a vector:

```python
from spmvkit.csr import CSRMatrix

matrix = CSRMatrix.from_coo(
    2, 3,
    [0, 0, 1],        # row indices (0-based)
    [0, 2, 1],        # column indices (0-based)
    [1.0, 2.0, 3.0],  # values
)
y = matrix.spmv([1.0, 1.0, 1.0])   # [3.0, 3.0]
```

Use coordinate and diagonal forms. `spmv(x, y)` returns `y + A x`, and
`y` is taken as zeros when left out:

```python
from spmvkit.coo import COOMatrix

coo = COOMatrix(2, 2, rows=[0, 1], cols=[1, 0], values=[2.0, 3.0])
coo.spmv([1.0, 1.0])            # [2.0, 3.0]
coo.spmv_parallel([1.0, 1.0])   # same, with worker threads
dia = coo.to_dia()
dia.offsets                      # [-1, 1]
dia.spmv([1.0, 1.0])            # [2.0, 3.0]
```

Find runs of non-zeros along the diagonals of a dense matrix:

```python
from spmvkit.diag_clusters import DiagonalClusters

clusters = DiagonalClusters.from_dense([
    [4.0, 1.0, 0.0],
    [1.0, 4.0, 1.0],
    [0.0, 1.0, 4.0],
])
clusters.spmv([1.0, 1.0, 1.0])                # [5.0, 6.0, 5.0]
clusters.spmv_parallel([1.0, 1.0, 1.0], 2)    # same, with 2 threads
clusters.flop_count(), clusters.space_bytes()  # (14, 80)
```

Build compressed diagonal storage from a square dense matrix:

```python
from spmvkit.cds import CDSMatrix

dense = [[1, 2], [0, 3]]
cds = CDSMatrix.from_dense(dense, 2 * len(dense) - 1)
cds.spmv()   # [3.0, 3.0]
```

`CDSMatrix.spmv` takes no vector. It adds up the stored diagonal values of
each row, which is the same as multiplying by a vector of ones.
`from_dense` raises `TooManyDiagonalsError` when the matrix has more
non-zero diagonals than `max_diags`.

## Limits

- Only coordinate data is read. `mmio` reads the size line of a dense
  `array` file but none of its values.
- Symmetric, skew-symmetric and hermitian files are not expanded. Only the
  entries written in the file are used.
- The commands print timings taken with `time.process_time`. They are not a
  benchmarking harness.