"""
Alignment table display: plain-text dump and heatmap
"""
from typing import List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .pairwise import PREFIX
from .table import AlignmentTable


FIELD_WIDTH = 6
LEFT_LABEL_WIDTH = 6
LEFT_INDEX_WIDTH = 3
UNSET_TEXT = "inf"


def format_table(table: AlignmentTable, seq1: str, seq2: str) -> str:
    """
    Render the memo table as text.

    Header rows hold the characters of seq2 and their column indices; each
    table row starts with its seq1 character and row index. Unset cells are
    shown as "inf".
    """
    s, t = PREFIX + seq1, PREFIX + seq2
    if table.shape != (len(s), len(t)):
        raise ValueError(f"Table shape {table.shape} does not match sequences {(len(s), len(t))}")

    lines: List[str] = []
    lines.append(" " * LEFT_LABEL_WIDTH + "".join(f"{ch:>{FIELD_WIDTH}}" for ch in t))
    lines.append(" " * LEFT_LABEL_WIDTH + "".join(f"{col:>{FIELD_WIDTH}}" for col in range(len(t))))
    lines.append(f"{'+':>{LEFT_LABEL_WIDTH}}" + "".join(f"{'---':>{FIELD_WIDTH}}" for _ in t))

    for row, values in enumerate(table.rows()):
        cells = "".join(
            f"{UNSET_TEXT if v is None else v:>{FIELD_WIDTH}}" for v in values
        )
        lines.append(f"{s[row]}{row:>{LEFT_INDEX_WIDTH}} |{cells}")
    return "\n".join(lines)


def print_table(table: AlignmentTable, seq1: str, seq2: str) -> None:
    print(format_table(table, seq1, seq2))


def plot_table(
    table: AlignmentTable,
    seq1: str,
    seq2: str,
    path: Optional[Sequence[Tuple[int, int]]] = None,
    figsize: Tuple[int, int] = (8, 7),
    annotate: bool = True,
    font_size: int = 10,
    cmap: str = "viridis",
    title: Optional[str] = None,
) -> plt.Figure:
    """
    Heatmap of the memo table.
    - Rows labelled with seq1, columns with seq2 (index 0 = empty prefix).
    - Unset cells left blank.
    - Optional traceback path drawn as a line through cell centres.
    """
    s, t = PREFIX + seq1, PREFIX + seq2
    if table.shape != (len(s), len(t)):
        raise ValueError(f"Table shape {table.shape} does not match sequences {(len(s), len(t))}")

    data = table.to_array()
    fig, ax = plt.subplots(figsize=figsize)
    im = ax.imshow(data, cmap=cmap, aspect="equal")
    fig.colorbar(im, ax=ax, shrink=0.8, label="score")

    if annotate:
        for (r, c), v in np.ndenumerate(data.filled(0)):
            if not data.mask[r, c]:
                ax.text(c, r, str(v), ha="center", va="center",
                        fontsize=font_size, color="white")

    if path:
        rows = [r for r, _ in path]
        cols = [c for _, c in path]
        ax.plot(cols, rows, "r-", lw=2, marker="o", ms=4)

    ax.set_xticks(range(len(t)))
    ax.set_xticklabels(["-"] + list(seq2), fontsize=font_size)
    ax.set_yticks(range(len(s)))
    ax.set_yticklabels(["-"] + list(seq1), fontsize=font_size)
    ax.xaxis.tick_top()

    if title:
        ax.set_title(title, fontsize=font_size + 2, fontweight="bold")

    plt.tight_layout()
    return fig
