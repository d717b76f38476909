"""
Dense memo table for global alignment scores.

Each cell holds an int64 score together with a "resolved" flag, so an
unset cell is never confused with a real score. Cells are write-once.
"""

from __future__ import annotations

import numbers
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np


INT64_MIN = int(np.iinfo(np.int64).min)
INT64_MAX = int(np.iinfo(np.int64).max)


# =========================
# Errors
# =========================
class AlignmentError(Exception):
    """Base class for alignment engine errors"""


class TableIndexError(AlignmentError, IndexError):
    """Row/column outside the table"""


class CellOverwriteError(AlignmentError, ValueError):
    """Attempt to change a cell that is already resolved"""


class UnresolvedCellError(AlignmentError, LookupError):
    """Read of a cell that has not been computed yet"""


class ScoreOverflowError(AlignmentError, OverflowError):
    """Score does not fit in a 64-bit signed integer"""


def check_score(value) -> int:
    """Return value as a Python int, raising if it does not fit in int64."""
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise TypeError(f"Score must be an integer, got {type(value).__name__}")
    value = int(value)
    if value < INT64_MIN or value > INT64_MAX:
        raise ScoreOverflowError(f"Score {value} exceeds the int64 range")
    return value


# =========================
# Table
# =========================
class AlignmentTable:
    """
    Memo table addressed by (row, col), row in [0, len(seq1)] and
    col in [0, len(seq2)].

    Parameters:
    -----------
    n_rows, n_cols : int
        Table dimensions (len(seq1) + 1, len(seq2) + 1)
    strict : bool
        If True (default) any write to a resolved cell raises
        CellOverwriteError. If False, re-writing the same value is ignored;
        a different value still raises.
    """

    def __init__(self, n_rows: int, n_cols: int, strict: bool = True):
        if n_rows < 1 or n_cols < 1:
            raise ValueError(f"Table dimensions must be positive, got {n_rows} x {n_cols}")
        self.strict = strict
        self._scores = np.zeros((n_rows, n_cols), dtype=np.int64)
        self._resolved = np.zeros((n_rows, n_cols), dtype=bool)

    @classmethod
    def for_sequences(cls, seq1: str, seq2: str, strict: bool = True) -> "AlignmentTable":
        return cls(len(seq1) + 1, len(seq2) + 1, strict=strict)

    # ---------- shape ----------
    @property
    def shape(self) -> Tuple[int, int]:
        return self._scores.shape

    @property
    def n_rows(self) -> int:
        return self._scores.shape[0]

    @property
    def n_cols(self) -> int:
        return self._scores.shape[1]

    @property
    def n_resolved(self) -> int:
        return int(self._resolved.sum())

    def __len__(self) -> int:
        return self._scores.size

    def __repr__(self) -> str:
        return (f"AlignmentTable(shape={self.shape}, "
                f"resolved={self.n_resolved}/{len(self)})")

    def _check_index(self, row, col) -> Tuple[int, int]:
        for name, idx, size in (("row", row, self.n_rows), ("col", col, self.n_cols)):
            if isinstance(idx, bool) or not isinstance(idx, numbers.Integral):
                raise TableIndexError(f"{name} index must be an integer, got {idx!r}")
            if idx < 0 or idx >= size:
                raise TableIndexError(f"{name} index {idx} out of range [0, {size - 1}]")
        return int(row), int(col)

    # ---------- read ----------
    def is_set(self, row: int, col: int) -> bool:
        row, col = self._check_index(row, col)
        return bool(self._resolved[row, col])

    def at(self, row: int, col: int) -> Optional[int]:
        """Score at (row, col), or None if the cell is unset"""
        row, col = self._check_index(row, col)
        if not self._resolved[row, col]:
            return None
        return int(self._scores[row, col])

    def resolved(self, row: int, col: int) -> int:
        """Score at (row, col); raises UnresolvedCellError if unset"""
        value = self.at(row, col)
        if value is None:
            raise UnresolvedCellError(f"Cell ({row}, {col}) has not been computed")
        return value

    def _check_batch(self, rows, cols) -> Tuple[np.ndarray, np.ndarray]:
        rows = np.asarray(rows, dtype=np.int64)
        cols = np.asarray(cols, dtype=np.int64)
        if rows.shape != cols.shape:
            raise ValueError("rows and cols must have the same shape")
        if rows.size and (rows.min() < 0 or rows.max() >= self.n_rows
                          or cols.min() < 0 or cols.max() >= self.n_cols):
            raise TableIndexError(f"Batch index out of range for table of shape {self.shape}")
        return rows, cols

    def is_set_many(self, rows: Sequence[int], cols: Sequence[int]) -> np.ndarray:
        rows, cols = self._check_batch(rows, cols)
        return self._resolved[rows, cols].copy()

    def values_at(self, rows: Sequence[int], cols: Sequence[int]) -> np.ndarray:
        """int64 scores of a batch of cells; every cell must be resolved"""
        rows, cols = self._check_batch(rows, cols)
        ok = self._resolved[rows, cols]
        if not ok.all():
            k = int(np.flatnonzero(~ok)[0])
            raise UnresolvedCellError(f"Cell ({rows[k]}, {cols[k]}) has not been computed")
        return self._scores[rows, cols].copy()

    def is_complete(self) -> bool:
        return bool(self._resolved.all())

    def rows(self) -> Iterator[List[Optional[int]]]:
        for r in range(self.n_rows):
            yield [int(v) if ok else None
                   for v, ok in zip(self._scores[r], self._resolved[r])]

    def to_array(self) -> np.ma.MaskedArray:
        """Read-only copy of the scores, unset cells masked"""
        arr = np.ma.MaskedArray(self._scores.copy(), mask=~self._resolved)
        arr.flags.writeable = False
        return arr

    # ---------- write ----------
    def set(self, row: int, col: int, value) -> None:
        row, col = self._check_index(row, col)
        value = check_score(value)
        if self._resolved[row, col]:
            current = int(self._scores[row, col])
            if self.strict or current != value:
                raise CellOverwriteError(
                    f"Cell ({row}, {col}) already holds {current}, refusing to write {value}"
                )
            return
        self._scores[row, col] = value
        self._resolved[row, col] = True

    def set_many(self, rows: Sequence[int], cols: Sequence[int], values: Sequence[int]) -> None:
        """Write a batch of cells; the whole batch is validated before writing"""
        rows, cols = self._check_batch(rows, cols)
        values = np.asarray(values)
        if values.shape != rows.shape:
            raise ValueError("rows, cols and values must have the same shape")
        if rows.size == 0:
            return
        if values.dtype.kind != "i":
            raise TypeError(f"Scores must be integers, got dtype {values.dtype}")

        already = self._resolved[rows, cols]
        if already.any():
            same = self._scores[rows, cols] == values
            if self.strict or not same[already].all():
                k = int(np.flatnonzero(already)[0])
                raise CellOverwriteError(f"Cell ({rows[k]}, {cols[k]}) is already resolved")

        todo = ~already
        self._scores[rows[todo], cols[todo]] = values[todo]
        self._resolved[rows[todo], cols[todo]] = True
