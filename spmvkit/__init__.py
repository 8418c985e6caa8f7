"""Sparse matrix storage formats, sparse matrix-vector products and Matrix Market I/O."""

__version__ = "0.1.0"