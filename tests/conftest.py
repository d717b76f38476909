"""Shared fixtures for the alignment tests"""

import matplotlib

matplotlib.use("Agg")

import pytest

from NWAlign.seq_alignment import GlobalAligner


@pytest.fixture
def aligner():
    """match=1, mismatch=-1, gap=-1"""
    return GlobalAligner(match=1, mismatch=-1, gap=-1)


@pytest.fixture
def textbook_pair():
    return "GCATGCU", "GATTACA"


@pytest.fixture
def textbook_table(aligner, textbook_pair):
    _, table = aligner.score(*textbook_pair)
    return table
