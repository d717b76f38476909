"""
Pairwise Global Alignment Module
Needleman-Wunsch scoring with a memoized table and deterministic traceback
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Literal, Optional, Tuple, Union

import numpy as np

from .table import (
    INT64_MAX,
    INT64_MIN,
    AlignmentTable,
    ScoreOverflowError,
    check_score,
)


GAP = "_"
# placeholder so that index 0 of a padded sequence is the empty prefix
PREFIX = " "

Strategy = Literal["memoized", "iterative", "wavefront"]
STRATEGIES = ("memoized", "iterative", "wavefront")

# traceback moves
UP = "up"        # seq1 char against a gap in seq2
LEFT = "left"    # seq2 char against a gap in seq1
DIAG = "diag"    # match / mismatch


@dataclass(frozen=True)
class ScoringScheme:
    """Linear scoring model: match reward, mismatch penalty, gap penalty"""
    match: int = 1
    mismatch: int = -1
    gap: int = -1

    def __post_init__(self):
        for name in ("match", "mismatch", "gap"):
            object.__setattr__(self, name, check_score(getattr(self, name)))

    def substitution(self, a: str, b: str) -> int:
        return self.match if a == b else self.mismatch


@dataclass
class AlignmentResult:
    """Store alignment results and metadata"""
    seq1_aligned: str
    seq2_aligned: str
    score: int
    table: AlignmentTable = field(repr=False)
    scheme: ScoringScheme
    match_string: str
    gaps: int
    seq1_original: str
    seq2_original: str

    def __str__(self) -> str:
        """String representation of alignment"""
        return (
            f"Alignment Score: {self.score}\n"
            f"Type: global\n"
            f"Identity: {self.identity:.2%}\n"
            f"Gaps: {self.gaps}\n"
            f"Length: {len(self.seq1_aligned)}\n"
        )

    def plot(self, width: int = 80) -> None:
        """Display alignment with match indicators"""
        lines = []
        lines.append("")
        lines.append(f"Sequence 1: {self.seq1_original}")
        lines.append(f"Sequence 2: {self.seq2_original}")
        lines.append("")
        lines.append(f"match: {self.scheme.match}")
        lines.append(f"mismatch: {self.scheme.mismatch}")
        lines.append(f"gap: {self.scheme.gap}")
        lines.append("")
        lines.append(f"Score: {self.score}")
        lines.append("")

        for start in range(0, len(self.seq1_aligned), width):
            end = min(start + width, len(self.seq1_aligned))
            lines.append(f"seq1: {self.seq1_aligned[start:end]}")
            lines.append(f"      {self.match_string[start:end]}")
            lines.append(f"seq2: {self.seq2_aligned[start:end]}")
            lines.append("")

        for line in lines:
            print(line)

    def view(self, width: int = 80) -> None:
        """Alias for plot method"""
        self.plot(width)

    def nmatch(self) -> int:
        """Number of matching positions"""
        return sum(1 for a, b in zip(self.seq1_aligned, self.seq2_aligned)
                   if a == b and a != GAP)

    @property
    def identity(self) -> float:
        """Fraction of alignment columns that are matches"""
        if not self.seq1_aligned:
            return 0.0
        return self.nmatch() / len(self.seq1_aligned)

    def rescore(self) -> int:
        """Score of the aligned pair summed column by column"""
        return score_alignment(self.seq1_aligned, self.seq2_aligned,
                               self.scheme.match, self.scheme.mismatch, self.scheme.gap)


def _check_sequence(seq, name: str) -> str:
    if not isinstance(seq, str):
        raise TypeError(f"{name} must be a str, got {type(seq).__name__}")
    if GAP in seq:
        raise ValueError(f"{name} must not contain the gap marker {GAP!r}")
    return seq


def _check_shifted(values: np.ndarray, addend: int) -> None:
    """Raise if values + addend leaves the int64 range for any element"""
    if values.size == 0:
        return
    low = int(values.min()) + addend
    high = int(values.max()) + addend
    if low < INT64_MIN or high > INT64_MAX:
        raise ScoreOverflowError(
            f"Score {low if low < INT64_MIN else high} exceeds the int64 range"
        )


def _check_shape(table: AlignmentTable, seq1: str, seq2: str) -> None:
    expected = (len(seq1) + 1, len(seq2) + 1)
    if table.shape != expected:
        raise ValueError(f"Table shape {table.shape} does not match sequences {expected}")


class GlobalAligner:
    """Global (Needleman-Wunsch) aligner with a linear gap penalty"""

    def __init__(
        self,
        match: int = 1,
        mismatch: int = -1,
        gap: int = -1,
        scheme: Optional[ScoringScheme] = None,
        strict: bool = True
    ):
        """
        Initialize aligner

        Parameters:
        -----------
        match : int
            Reward for two identical characters (default 1)
        mismatch : int
            Score for two different characters (default -1)
        gap : int
            Score for a character aligned to a gap (default -1)
        scheme : ScoringScheme, optional
            Ready-made scoring scheme; overrides match/mismatch/gap
        strict : bool
            Tables created by this aligner reject any overwrite (default True)
        """
        self.scheme = scheme if scheme is not None else ScoringScheme(match, mismatch, gap)
        self.strict = strict

    def __repr__(self) -> str:
        s = self.scheme
        return f"GlobalAligner(match={s.match}, mismatch={s.mismatch}, gap={s.gap})"

    # ---------- recurrence ----------
    @staticmethod
    def _predecessors(i: int, j: int) -> List[Tuple[int, int]]:
        if i == 0 and j == 0:
            return []
        if i == 0:
            return [(0, j - 1)]
        if j == 0:
            return [(i - 1, 0)]
        return [(i - 1, j), (i, j - 1), (i - 1, j - 1)]

    def _cell_value(self, s: str, t: str, table: AlignmentTable, i: int, j: int) -> int:
        """Value of cell (i, j); all predecessors must already be resolved"""
        gap = self.scheme.gap
        if i == 0 and j == 0:
            return 0
        if i == 0:
            return check_score(table.resolved(0, j - 1) + gap)
        if j == 0:
            return check_score(table.resolved(i - 1, 0) + gap)
        return max(
            check_score(table.resolved(i - 1, j) + gap),
            check_score(table.resolved(i, j - 1) + gap),
            check_score(table.resolved(i - 1, j - 1) + self.scheme.substitution(s[i], t[j])),
        )

    def _opt(self, s: str, t: str, table: AlignmentTable, i: int, j: int) -> int:
        """
        Lazy memoized evaluation of cell (i, j).

        An explicit stack stands in for the call stack: a cell is evaluated
        once all its predecessors are resolved, and a resolved cell is
        never recomputed.
        """
        stack = [(i, j)]
        while stack:
            r, c = stack[-1]
            if table.is_set(r, c):
                stack.pop()
                continue
            pending = [p for p in self._predecessors(r, c) if not table.is_set(*p)]
            if pending:
                stack.extend(pending)
                continue
            stack.pop()
            table.set(r, c, self._cell_value(s, t, table, r, c))
        return table.resolved(i, j)

    def _fill_iterative(self, s: str, t: str, table: AlignmentTable) -> None:
        for i in range(table.n_rows):
            for j in range(table.n_cols):
                if not table.is_set(i, j):
                    table.set(i, j, self._cell_value(s, t, table, i, j))

    def _fill_wavefront(self, s: str, t: str, table: AlignmentTable) -> None:
        """Fill one anti-diagonal per step; cells on a diagonal are independent"""
        n1, n2 = table.n_rows - 1, table.n_cols - 1
        gap = self.scheme.gap

        s_codes = np.fromiter((ord(c) for c in s), dtype=np.int64, count=len(s))
        t_codes = np.fromiter((ord(c) for c in t), dtype=np.int64, count=len(t))

        def write(rows, cols, values):
            todo = ~table.is_set_many(rows, cols)
            table.set_many(rows[todo], cols[todo], values[todo])

        # boundaries; the extreme values sit at the far ends
        check_score(n2 * gap)
        check_score(n1 * gap)
        cols0 = np.arange(n2 + 1, dtype=np.int64)
        write(np.zeros_like(cols0), cols0, cols0 * gap)
        rows0 = np.arange(1, n1 + 1, dtype=np.int64)
        write(rows0, np.zeros_like(rows0), rows0 * gap)

        for d in range(2, n1 + n2 + 1):
            lo, hi = max(1, d - n2), min(n1, d - 1)
            if lo > hi:
                continue
            rows = np.arange(lo, hi + 1, dtype=np.int64)
            cols = d - rows
            up = table.values_at(rows - 1, cols)
            left = table.values_at(rows, cols - 1)
            diag = table.values_at(rows - 1, cols - 1)
            hits = s_codes[rows] == t_codes[cols]

            # checked before any int64 addition can wrap
            _check_shifted(up, gap)
            _check_shifted(left, gap)
            _check_shifted(diag[hits], self.scheme.match)
            _check_shifted(diag[~hits], self.scheme.mismatch)

            up = up + gap
            left = left + gap
            diag = diag + np.where(hits, self.scheme.match, self.scheme.mismatch)
            write(rows, cols, np.maximum(np.maximum(up, left), diag).astype(np.int64))

    def score(
        self,
        seq1: str,
        seq2: str,
        table: Optional[AlignmentTable] = None,
        strategy: Strategy = "memoized",
        verbose: bool = False
    ) -> Tuple[int, AlignmentTable]:
        """
        Optimal global alignment score of seq1 and seq2

        Parameters:
        -----------
        seq1, seq2 : str
            Sequences to align (may be empty)
        table : AlignmentTable, optional
            Table to fill; a fresh one is allocated if None
        strategy : str
            "memoized" (lazy, driven from the terminal cell), "iterative"
            (row-major) or "wavefront" (numpy, one anti-diagonal at a time)
        verbose : bool
            If True, display progress

        Returns:
        --------
        (int, AlignmentTable)
            Score at the terminal cell and the populated table
        """
        seq1 = _check_sequence(seq1, "seq1")
        seq2 = _check_sequence(seq2, "seq2")
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown strategy: {strategy!r} (expected one of {STRATEGIES})")

        if table is None:
            table = AlignmentTable.for_sequences(seq1, seq2, strict=self.strict)
        else:
            _check_shape(table, seq1, seq2)

        s, t = PREFIX + seq1, PREFIX + seq2
        n1, n2 = len(seq1), len(seq2)

        if verbose:
            print(f"\nFilling alignment table for sequences of length {n1} x {n2}")
            print(f"Strategy: {strategy}")
            print(f"Total cells: {len(table)} ({table.n_resolved} already resolved)")

        if strategy == "memoized":
            best = self._opt(s, t, table, n1, n2)
        else:
            if strategy == "iterative":
                self._fill_iterative(s, t, table)
            else:
                self._fill_wavefront(s, t, table)
            best = table.resolved(n1, n2)

        if verbose:
            print(f"✓ Table computation complete! Resolved cells: {table.n_resolved}")
            print(f"Optimal score: {best}")

        return best, table

    # ---------- traceback ----------
    def _walk(
        self,
        table: AlignmentTable,
        seq1: str,
        seq2: str
    ) -> Iterator[Tuple[int, int, str]]:
        return _walk(table, seq1, seq2, self.scheme.gap, self.scheme.substitution)

    def traceback(
        self,
        table: AlignmentTable,
        seq1: str,
        seq2: str,
        verbose: bool = False
    ) -> Tuple[str, str]:
        """
        Reconstruct one optimal alignment from a completed table.

        Ties are broken in a fixed order: gap in seq2 (move up), then gap
        in seq1 (move left), then diagonal.
        """
        seq1 = _check_sequence(seq1, "seq1")
        seq2 = _check_sequence(seq2, "seq2")
        if verbose:
            print(f"\nPerforming traceback from ({len(seq1)}, {len(seq2)})")

        aligned1, aligned2 = _build_alignment(self._walk(table, seq1, seq2), seq1, seq2)

        if verbose:
            print(f"✓ Traceback complete! Alignment length: {len(aligned1)}")
        return aligned1, aligned2

    def traceback_path(self, table: AlignmentTable, seq1: str, seq2: str) -> List[Tuple[int, int]]:
        """Cells visited by the traceback, from the terminal cell to (0, 0)"""
        seq1 = _check_sequence(seq1, "seq1")
        seq2 = _check_sequence(seq2, "seq2")
        return _path(self._walk(table, seq1, seq2))

    # ---------- driver ----------
    def _calculate_match_string(self, aligned1: str, aligned2: str) -> str:
        """Generate match string"""
        match_str = []
        for a, b in zip(aligned1, aligned2):
            if a == GAP or b == GAP:
                match_str.append(' ')
            elif a == b:
                match_str.append('|')
            else:
                match_str.append('.')
        return ''.join(match_str)

    def align(
        self,
        seq1: str,
        seq2: str,
        score_only: bool = False,
        strategy: Strategy = "memoized",
        verbose: bool = False
    ) -> Union[AlignmentResult, int]:
        """
        Perform global pairwise alignment

        Parameters:
        -----------
        seq1 : str
            First sequence
        seq2 : str
            Second sequence
        score_only : bool
            If True, return only the alignment score
        strategy : str
            Table fill strategy, see GlobalAligner.score
        verbose : bool
            If True, display progress during alignment

        Returns:
        --------
        AlignmentResult or int
            Alignment result object or score if score_only=True
        """
        if verbose:
            print("\n" + "=" * 70)
            print("GLOBAL PAIRWISE ALIGNMENT")
            print("=" * 70)
            print(f"Sequence 1: {seq1}")
            print(f"Sequence 2: {seq2}")
            print(f"match: {self.scheme.match}")
            print(f"mismatch: {self.scheme.mismatch}")
            print(f"gap: {self.scheme.gap}")
            print("=" * 70)

        best, table = self.score(seq1, seq2, strategy=strategy, verbose=verbose)

        if score_only:
            if verbose:
                print("=" * 70 + "\n")
            return best

        aligned1, aligned2 = self.traceback(table, seq1, seq2, verbose=verbose)


        result = AlignmentResult(
            seq1_aligned=aligned1,
            seq2_aligned=aligned2,
            score=best,
            table=table,
            scheme=self.scheme,
            match_string=self._calculate_match_string(aligned1, aligned2),
            gaps=aligned1.count(GAP) + aligned2.count(GAP),
            seq1_original=seq1,
            seq2_original=seq2
        )

        if verbose:
            print(f"\nALIGNMENT RESULTS")
            print("=" * 70)
            print(f"Score: {best}")
            print(f"Identity: {result.identity:.2%} ({result.nmatch()} matches)")
            print(f"Gaps: {result.gaps}")
            print(f"Length: {len(aligned1)}")
            print("=" * 70 + "\n")

        return result


# =========================
# Traceback internals
# =========================
def _walk(
    table: AlignmentTable,
    seq1: str,
    seq2: str,
    gap: int,
    substitution: Optional[Callable[[str, str], int]] = None
) -> Iterator[Tuple[int, int, str]]:
    """Yield (i, j, move) for every step from the terminal cell to (0, 0)"""
    _check_shape(table, seq1, seq2)
    s, t = PREFIX + seq1, PREFIX + seq2
    i, j = len(seq1), len(seq2)

    while not (i == 0 and j == 0):
        current = table.resolved(i, j)
        if i != 0 and table.resolved(i - 1, j) + gap == current:
            move = UP
        elif j != 0 and table.resolved(i, j - 1) + gap == current:
            move = LEFT
        else:
            if i == 0 or j == 0:
                raise ValueError(f"Table is inconsistent at boundary cell ({i}, {j})")
            if (substitution is not None
                    and table.resolved(i - 1, j - 1) + substitution(s[i], t[j]) != current):
                raise ValueError(f"Table is inconsistent at cell ({i}, {j})")
            move = DIAG
        yield i, j, move
        if move == UP:
            i -= 1
        elif move == LEFT:
            j -= 1
        else:
            i -= 1
            j -= 1


def _build_alignment(steps: Iterator[Tuple[int, int, str]], seq1: str, seq2: str) -> Tuple[str, str]:
    s, t = PREFIX + seq1, PREFIX + seq2
    aligned1, aligned2 = [], []
    for i, j, move in steps:
        if move == UP:
            aligned1.append(s[i])
            aligned2.append(GAP)
        elif move == LEFT:
            aligned1.append(GAP)
            aligned2.append(t[j])
        else:
            aligned1.append(s[i])
            aligned2.append(t[j])
    return ''.join(reversed(aligned1)), ''.join(reversed(aligned2))


def _path(steps: Iterator[Tuple[int, int, str]]) -> List[Tuple[int, int]]:
    path = [(i, j) for i, j, _ in steps]
    path.append((0, 0))
    return path


# =========================
# Convenience functions
# =========================
def score(
    seq1: str,
    seq2: str,
    match: int = 1,
    mismatch: int = -1,
    gap: int = -1,
    strategy: Strategy = "memoized"
) -> int:
    """
    Optimal global alignment score of seq1 and seq2.

    Only the score is returned; use GlobalAligner.score to keep the table.
    """
    best, _ = GlobalAligner(match, mismatch, gap).score(seq1, seq2, strategy=strategy)
    return best


def traceback(table: AlignmentTable, seq1: str, seq2: str, gap: int) -> Tuple[str, str]:
    """One optimal alignment read back from a completed table"""
    seq1 = _check_sequence(seq1, "seq1")
    seq2 = _check_sequence(seq2, "seq2")
    return _build_alignment(_walk(table, seq1, seq2, check_score(gap)), seq1, seq2)


def traceback_path(table: AlignmentTable, seq1: str, seq2: str, gap: int) -> List[Tuple[int, int]]:
    """Cells visited by traceback(), terminal cell first"""
    seq1 = _check_sequence(seq1, "seq1")
    seq2 = _check_sequence(seq2, "seq2")
    return _path(_walk(table, seq1, seq2, check_score(gap)))


def score_alignment(
    aligned1: str,
    aligned2: str,
    match: int = 1,
    mismatch: int = -1,
    gap: int = -1
) -> int:
    """Sum the per-column contributions of an aligned pair"""
    if len(aligned1) != len(aligned2):
        raise ValueError(
            f"Aligned sequences differ in length: {len(aligned1)} != {len(aligned2)}"
        )
    total = 0
    for col, (a, b) in enumerate(zip(aligned1, aligned2)):
        if a == GAP and b == GAP:
            raise ValueError(f"Column {col} aligns a gap against a gap")
        if a == GAP or b == GAP:
            total += gap
        elif a == b:
            total += match
        else:
            total += mismatch
    return total


# MAIN CONVENIENCE FUNCTION
def needleman_wunsch(
    seq1: str,
    seq2: str,
    match: int = 1,
    mismatch: int = -1,
    gap: int = -1,
    strategy: Strategy = "memoized",
    verbose: bool = False
) -> AlignmentResult:
    """
    Global pairwise alignment with a linear gap penalty

    Parameters:
    -----------
    seq1 : str
        First sequence
    seq2 : str
        Second sequence
    match : int
        Match reward (default 1)
    mismatch : int
        Mismatch penalty (default -1)
    gap : int
        Gap penalty (default -1)
    strategy : str
        "memoized" (default), "iterative" or "wavefront"
    verbose : bool
        Show progress (default False)

    Returns:
    --------
    AlignmentResult
        Alignment result with .view() method

    Examples:
    ---------
    >>> result = needleman_wunsch("GCATGCU", "GATTACA")
    >>> result.score
    0
    >>> result.seq1_aligned, result.seq2_aligned
    ('GCATG_CU', 'G_ATTACA')
    """
    aligner = GlobalAligner(match=match, mismatch=mismatch, gap=gap)
    return aligner.align(seq1, seq2, strategy=strategy, verbose=verbose)
