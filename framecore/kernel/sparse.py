# framecore/kernel/sparse.py
"""
Sparse matrix storage for large frame models.

Entries live in a dict keyed by integer (row, col) pairs; anything with
magnitude below `threshold` is not stored. Every numeric traversal goes
through `items()`, which yields entries in row-major order (row, then
column ascending), so sums are always accumulated in the same order and
results are bit-for-bit repeatable.
"""

from typing import Dict, Iterable, Iterator, List, Tuple

import numpy as np
from scipy import sparse as sp

DEFAULT_THRESHOLD = 1e-12


class SparseMatrix:
    """Coordinate-map sparse matrix with canonical row-major iteration."""

    def __init__(self, n_rows: int, n_cols: int = None, threshold: float = DEFAULT_THRESHOLD):
        self.n_rows = int(n_rows)
        self.n_cols = int(n_rows if n_cols is None else n_cols)
        self.threshold = threshold
        self._data: Dict[Tuple[int, int], float] = {}

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.n_rows, self.n_cols)

    @property
    def nnz(self) -> int:
        return len(self._data)

    def _check(self, i: int, j: int) -> None:
        if not (0 <= i < self.n_rows and 0 <= j < self.n_cols):
            raise IndexError(f"({i}, {j}) outside matrix of shape {self.shape}")

    def __getitem__(self, key: Tuple[int, int]) -> float:
        return self._data.get(key, 0.0)

    def __setitem__(self, key: Tuple[int, int], value: float) -> None:
        i, j = key
        self._check(i, j)
        if abs(value) < self.threshold:
            self._data.pop((i, j), None)
        else:
            self._data[(i, j)] = float(value)

    def add(self, i: int, j: int, value: float) -> None:
        """Accumulate into (i, j); the entry disappears if the sum falls below threshold."""
        self[i, j] = self._data.get((i, j), 0.0) + value

    def items(self) -> Iterator[Tuple[Tuple[int, int], float]]:
        """Entries in row-major order."""
        for key in sorted(self._data):
            yield key, self._data[key]

    def rows(self) -> List[Dict[int, float]]:
        """Row-wise view: one {col: value} dict per row, columns ascending."""
        out: List[Dict[int, float]] = [dict() for _ in range(self.n_rows)]
        for (i, j), v in self.items():
            out[i][j] = v
        return out

    def diagonal(self) -> np.ndarray:
        n = min(self.n_rows, self.n_cols)
        return np.array([self._data.get((i, i), 0.0) for i in range(n)], dtype=float)

    def matvec(self, x: np.ndarray) -> np.ndarray:
        """y = A·x, accumulated in row-major order."""
        x = np.asarray(x, dtype=float)
        if x.shape != (self.n_cols,):
            raise ValueError(f"Vector of shape {x.shape} incompatible with matrix {self.shape}")
        y = np.zeros(self.n_rows, dtype=float)
        for (i, j), v in self.items():
            y[i] += v * x[j]
        return y

    def __matmul__(self, x: np.ndarray) -> np.ndarray:
        return self.matvec(x)

    def copy(self) -> "SparseMatrix":
        other = SparseMatrix(self.n_rows, self.n_cols, self.threshold)
        other._data = dict(self._data)
        return other

    def is_symmetric(self, rtol: float = 1e-10) -> bool:
        scale = max((abs(v) for v in self._data.values()), default=0.0)
        for (i, j), v in self._data.items():
            if abs(v - self._data.get((j, i), 0.0)) > rtol * scale:
                return False
        return True

    def to_dense(self) -> np.ndarray:
        A = np.zeros(self.shape, dtype=float)
        for (i, j), v in self._data.items():
            A[i, j] = v
        return A

    def to_csr(self) -> sp.csr_matrix:
        """CSR copy with sorted column indices (same canonical order as items())."""
        if not self._data:
            return sp.csr_matrix(self.shape, dtype=float)
        keys = sorted(self._data)
        rows = np.fromiter((k[0] for k in keys), dtype=np.int64, count=len(keys))
        cols = np.fromiter((k[1] for k in keys), dtype=np.int64, count=len(keys))
        data = np.fromiter((self._data[k] for k in keys), dtype=float, count=len(keys))
        A = sp.csr_matrix((data, (rows, cols)), shape=self.shape)
        A.sort_indices()
        return A

    @classmethod
    def from_dense(cls, A: np.ndarray, threshold: float = DEFAULT_THRESHOLD) -> "SparseMatrix":
        A = np.asarray(A, dtype=float)
        if A.ndim != 2:
            raise ValueError("from_dense expects a 2D array")
        out = cls(A.shape[0], A.shape[1], threshold)
        for i, j in zip(*np.nonzero(np.abs(A) >= threshold)):
            out._data[(int(i), int(j))] = float(A[i, j])
        return out

    @classmethod
    def from_entries(
        cls,
        n: int,
        entries: Iterable[Tuple[int, int, float]],
        threshold: float = DEFAULT_THRESHOLD,
    ) -> "SparseMatrix":
        out = cls(n, n, threshold)
        for i, j, v in entries:
            out.add(i, j, v)
        return out

    def __repr__(self) -> str:
        return f"SparseMatrix(shape={self.shape}, nnz={self.nnz})"
