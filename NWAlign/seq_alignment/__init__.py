"""
Sequence Alignment Module
Provides global pairwise alignment with a memoized scoring table
"""

from .table import (
    AlignmentTable,
    AlignmentError,
    TableIndexError,
    CellOverwriteError,
    UnresolvedCellError,
    ScoreOverflowError
)
from .pairwise import (
    GAP,
    ScoringScheme,
    GlobalAligner,
    AlignmentResult,
    score,
    traceback,
    traceback_path,
    score_alignment,
    needleman_wunsch
)
from .display import format_table, print_table, plot_table

__all__ = [
    "AlignmentTable",
    "AlignmentError",
    "TableIndexError",
    "CellOverwriteError",
    "UnresolvedCellError",
    "ScoreOverflowError",
    "GAP",
    "ScoringScheme",
    "GlobalAligner",
    "AlignmentResult",
    "score",
    "traceback",
    "traceback_path",
    "score_alignment",
    "needleman_wunsch",
    "format_table",
    "print_table",
    "plot_table"
]
