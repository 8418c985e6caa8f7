[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "spmvkit"
version = "0.1.0"
description = "Sparse matrix storage formats and sparse matrix-vector multiplication, with Matrix Market I/O"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "sparse",
    "matrix",
    "spmv",
    "matrix-market",
    "csr",
    "coo",
    "dia",
    "diagonal",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
spmv-jds = "spmvkit.jds:main"
spmv-cds = "spmvkit.cds:main"
spmv-clustered = "spmvkit.clustered:main"
spmv-diag-clusters = "spmvkit.diag_clusters:main"
spmv-compressed-dia = "spmvkit.compressed_dia:main"
spmv-csr = "spmvkit.csr:main"
spmv-coo = "spmvkit.coo:main"

[tool.hatch.build.targets.wheel]
packages = ["spmvkit"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
