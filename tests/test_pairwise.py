import numpy as np
import pytest

from NWAlign.seq_alignment import (
    AlignmentResult,
    AlignmentTable,
    CellOverwriteError,
    GlobalAligner,
    ScoreOverflowError,
    ScoringScheme,
    UnresolvedCellError,
    needleman_wunsch,
    score,
    score_alignment,
    traceback,
    traceback_path,
)

STRATEGIES = ["memoized", "iterative", "wavefront"]

TEXTBOOK_TABLE = [
    [0, -1, -2, -3, -4, -5, -6, -7],
    [-1, 1, 0, -1, -2, -3, -4, -5],
    [-2, 0, 0, -1, -2, -3, -2, -3],
    [-3, -1, 1, 0, -1, -1, -2, -1],
    [-4, -2, 0, 2, 1, 0, -1, -2],
    [-5, -3, -1, 1, 1, 0, -1, -2],
    [-6, -4, -2, 0, 0, 0, 1, 0],
    [-7, -5, -3, -1, -1, -1, 0, 0],
]

PAIRS = [
    ("GCATGCU", "GATTACA"),
    ("ACGTGGTT", "GCTTTTGTA"),
    ("AAAA", "A"),
    ("", "ACG"),
    ("kitten", "sitting"),
    ("ACACACTA", "AGCACACA"),
]


# ---------- scoring scheme ----------
def test_scoring_scheme_defaults_and_substitution():
    scheme = ScoringScheme()
    assert (scheme.match, scheme.mismatch, scheme.gap) == (1, -1, -1)
    assert scheme.substitution("A", "A") == 1
    assert scheme.substitution("A", "C") == -1


def test_scoring_scheme_normalises_numpy_integers():
    scheme = ScoringScheme(np.int32(2), np.int64(-3), -4)
    assert type(scheme.match) is int
    assert type(scheme.mismatch) is int


@pytest.mark.parametrize("bad", [1.5, "1", True, None])
def test_scoring_scheme_rejects_non_integers(bad):
    with pytest.raises(TypeError):
        ScoringScheme(match=bad)


def test_scoring_scheme_rejects_out_of_range():
    with pytest.raises(ScoreOverflowError):
        ScoringScheme(gap=-(2 ** 64))


# ---------- scoring engine ----------
@pytest.mark.parametrize("strategy", STRATEGIES)
def test_textbook_score_and_table(aligner, textbook_pair, strategy):
    best, table = aligner.score(*textbook_pair, strategy=strategy)
    assert best == 0
    assert table.is_complete()
    assert [list(r) for r in table.rows()] == TEXTBOOK_TABLE


def test_identical_sequences_score_length_times_match():
    best = score("AT", "AT", match=1, mismatch=-1, gap=-2)
    assert best == 2
    best = score("GATTACA", "GATTACA", match=3, mismatch=-1, gap=-2)
    assert best == 21


@pytest.mark.parametrize("strategy", STRATEGIES)
@pytest.mark.parametrize("seq1, seq2", PAIRS)
def test_boundary_row_and_column(seq1, seq2, strategy):
    gap = -3
    _, table = GlobalAligner(2, -1, gap).score(seq1, seq2, strategy=strategy)
    assert table.at(0, 0) == 0
    for i in range(len(seq1) + 1):
        assert table.at(i, 0) == i * gap
    for j in range(len(seq2) + 1):
        assert table.at(0, j) == j * gap


@pytest.mark.parametrize("seq1, seq2", PAIRS)
def test_score_is_symmetric(seq1, seq2):
    forward = score(seq1, seq2, match=2, mismatch=-1, gap=-2)
    backward = score(seq2, seq1, match=2, mismatch=-1, gap=-2)
    assert forward == backward


@pytest.mark.parametrize("seq1, seq2", PAIRS)
def test_strategies_agree_cell_for_cell(seq1, seq2):
    aligner = GlobalAligner(match=2, mismatch=-3, gap=-2)
    tables = [aligner.score(seq1, seq2, strategy=s)[1] for s in STRATEGIES]
    reference = list(tables[0].rows())
    for table in tables[1:]:
        assert list(table.rows()) == reference


def test_score_is_idempotent(aligner, textbook_pair):
    first, t1 = aligner.score(*textbook_pair)
    second, t2 = aligner.score(*textbook_pair)
    assert first == second
    assert list(t1.rows()) == list(t2.rows())


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_completed_table_is_reused_without_rewrites(aligner, textbook_pair, strategy):
    _, table = aligner.score(*textbook_pair)
    before = list(table.rows())
    best, same = aligner.score(*textbook_pair, table=table, strategy=strategy)
    assert same is table
    assert best == 0
    assert list(table.rows()) == before


def test_memoized_fill_survives_long_sequences():
    seq1 = "A" * 3000
    seq2 = "AAA"
    best, table = GlobalAligner().score(seq1, seq2)
    assert best == 3 - (3000 - 3)
    assert table.is_complete()


@pytest.mark.parametrize("seq1, seq2", PAIRS)
def test_monotone_in_match_reward(seq1, seq2):
    scores = [score(seq1, seq2, match=m, mismatch=-2, gap=-1) for m in range(-2, 6)]
    assert scores == sorted(scores)


def test_empty_sequence_scores_all_gaps():
    assert score("", "ACGT", gap=-2) == -8
    assert score("ACGT", "", gap=-2) == -8
    assert score("", "") == 0


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_overflow_is_detected(strategy):
    aligner = GlobalAligner(match=2 ** 62, mismatch=-1, gap=-1)
    with pytest.raises(ScoreOverflowError):
        aligner.score("AA", "AA", strategy=strategy)


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_negative_overflow_is_detected(strategy):
    aligner = GlobalAligner(gap=-(2 ** 62))
    with pytest.raises(OverflowError):
        aligner.score("", "AAA", strategy=strategy)


@pytest.mark.parametrize("strategy", STRATEGIES)
@pytest.mark.parametrize("seq1, seq2, match, expected", [
    ("A", "C", 2 ** 62, -1),
    ("AAA", "AAA", 2 ** 61, 3 * 2 ** 61),
])
def test_large_scores_that_fit_agree_across_strategies(seq1, seq2, match, expected, strategy):
    aligner = GlobalAligner(match=match, mismatch=-1, gap=-1)
    best, table = aligner.score(seq1, seq2, strategy=strategy)
    assert best == expected
    assert table.is_complete()


def test_lenient_aligner_builds_lenient_tables(textbook_pair):
    aligner = GlobalAligner(strict=False)
    best, table = aligner.score(*textbook_pair)
    assert table.strict is False
    # identical rewrite is ignored, a different value is not
    table.set(7, 7, best)
    with pytest.raises(CellOverwriteError):
        table.set(7, 7, best + 1)
    for strategy in STRATEGIES:
        again, same = aligner.score(*textbook_pair, table=table, strategy=strategy)
        assert same is table
        assert again == best == 0
    assert aligner.traceback(table, *textbook_pair) == ("GCATG_CU", "G_ATTACA")


def test_strict_aligner_keeps_caller_filled_cells():
    aligner = GlobalAligner()
    table = AlignmentTable.for_sequences("AC", "AG")
    table.set(0, 0, 0)
    table.set(0, 1, -1)
    best, _ = aligner.score("AC", "AG", table=table, strategy="iterative")
    assert best == 0
    with pytest.raises(CellOverwriteError):
        table.set(0, 1, -1)


def test_invalid_inputs(aligner):
    with pytest.raises(TypeError):
        aligner.score(None, "A")
    with pytest.raises(ValueError):
        aligner.score("A_C", "AC")
    with pytest.raises(ValueError):
        aligner.score("A", "C", strategy="banded")
    with pytest.raises(ValueError):
        aligner.score("AC", "AC", table=AlignmentTable(2, 2))


# ---------- traceback ----------
def test_textbook_traceback_is_pinned(aligner, textbook_pair, textbook_table):
    aligned1, aligned2 = aligner.traceback(textbook_table, *textbook_pair)
    assert (aligned1, aligned2) == ("GCATG_CU", "G_ATTACA")
    assert score_alignment(aligned1, aligned2, 1, -1, -1) == 0


def test_module_level_traceback_matches_aligner(aligner, textbook_pair, textbook_table):
    assert traceback(textbook_table, *textbook_pair, gap=-1) == \
        aligner.traceback(textbook_table, *textbook_pair)


def test_traceback_path(aligner, textbook_pair, textbook_table):
    path = aligner.traceback_path(textbook_table, *textbook_pair)
    assert path == [(7, 7), (6, 6), (5, 5), (5, 4), (4, 3), (3, 2), (2, 1), (1, 1), (0, 0)]
    assert traceback_path(textbook_table, *textbook_pair, gap=-1) == path


def test_tie_prefers_gap_in_seq2_then_gap_in_seq1():
    # every candidate for cell (1, 1) scores -2
    aligner = GlobalAligner(match=1, mismatch=-2, gap=-1)
    best, table = aligner.score("A", "T")
    assert best == -2
    # walking back from (1, 1): up first, then left along row 0
    assert aligner.traceback(table, "A", "T") == ("_A", "T_")


def test_traceback_is_idempotent(aligner, textbook_pair, textbook_table):
    first = aligner.traceback(textbook_table, *textbook_pair)
    second = aligner.traceback(textbook_table, *textbook_pair)
    assert first == second


@pytest.mark.parametrize("strategy", STRATEGIES)
@pytest.mark.parametrize("seq1, seq2", PAIRS)
def test_traceback_length_and_rescore(seq1, seq2, strategy):
    aligner = GlobalAligner(match=2, mismatch=-1, gap=-2)
    best, table = aligner.score(seq1, seq2, strategy=strategy)
    aligned1, aligned2 = aligner.traceback(table, seq1, seq2)
    assert len(aligned1) == len(aligned2)
    assert len(aligned1) <= len(seq1) + len(seq2)
    assert aligned1.replace("_", "") == seq1
    assert aligned2.replace("_", "") == seq2
    assert score_alignment(aligned1, aligned2, 2, -1, -2) == best


def test_traceback_with_empty_sequence():
    aligner = GlobalAligner(gap=-2)
    _, table = aligner.score("", "ACG")
    assert aligner.traceback(table, "", "ACG") == ("___", "ACG")
    _, table = aligner.score("ACG", "")
    assert aligner.traceback(table, "ACG", "") == ("ACG", "___")
    _, table = aligner.score("", "")
    assert aligner.traceback(table, "", "") == ("", "")


def test_traceback_requires_resolved_cells(aligner):
    with pytest.raises(UnresolvedCellError):
        aligner.traceback(AlignmentTable(3, 3), "AC", "AC")


def test_traceback_rejects_mismatched_table(aligner, textbook_table):
    with pytest.raises(ValueError):
        aligner.traceback(textbook_table, "GCA", "GAT")


def test_traceback_detects_corrupt_table(aligner):
    table = AlignmentTable(2, 2)
    table.set(0, 0, 0)
    table.set(0, 1, -1)
    table.set(1, 0, -1)
    table.set(1, 1, 5)
    with pytest.raises(ValueError):
        aligner.traceback(table, "A", "A")


# ---------- re-scoring ----------
def test_score_alignment():
    assert score_alignment("AC_T", "A_GT", 2, -1, -3) == 2 - 3 - 3 + 2
    with pytest.raises(ValueError):
        score_alignment("AC", "A")
    with pytest.raises(ValueError):
        score_alignment("A_", "C_")


# ---------- driver ----------
def test_needleman_wunsch_result(textbook_pair):
    result = needleman_wunsch(*textbook_pair)
    assert isinstance(result, AlignmentResult)
    assert result.score == 0
    assert result.seq1_aligned == "GCATG_CU"
    assert result.seq2_aligned == "G_ATTACA"
    assert result.match_string == "| ||. |."
    assert result.nmatch() == 4
    assert result.identity == pytest.approx(0.5)
    assert result.gaps == 2
    assert result.rescore() == result.score
    assert result.table.is_complete()
    assert "Alignment Score: 0" in str(result)


def test_align_score_only(aligner, textbook_pair):
    assert aligner.align(*textbook_pair, score_only=True) == 0


def test_verbose_and_view_output(aligner, capsys):
    result = aligner.align("GCATGCU", "GATTACA", verbose=True)
    out = capsys.readouterr().out
    assert "GLOBAL PAIRWISE ALIGNMENT" in out
    assert "Traceback complete" in out
    assert "Identity: 50.00% (4 matches)" in out

    result.view(width=4)
    out = capsys.readouterr().out
    assert "seq1: GCAT" in out
    assert "seq2: G_AT" in out
    assert "seq1: G_CU" in out


def test_quiet_by_default(aligner, capsys):
    aligner.align("GCATGCU", "GATTACA")
    assert capsys.readouterr().out == ""
