"""Tests for text normalization and similarity helpers."""

import pytest

from subsidy_matcher.utils.text import (
    jaccard_similarity,
    levenshtein_similarity,
    normalize_text,
    tokenize,
)


def test_normalize_text():
    assert normalize_text("  Énergie   Renouvelable!  ") == "energie renouvelable"
    assert normalize_text("Aide à l'export") == "aide a l export"
    assert normalize_text("") == ""


def test_levenshtein_similarity():
    assert levenshtein_similarity("", "") == 1.0
    assert levenshtein_similarity("Aide PME", "aide pme") == 1.0
    assert levenshtein_similarity("chat", "chats") == pytest.approx(0.8)
    assert levenshtein_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)
    assert levenshtein_similarity("abc", "") == 0.0


def test_tokenize_drops_short_tokens():
    assert tokenize("Aide à la R&D pour PME") == {"aide", "pour", "pme"}


def test_jaccard_similarity():
    assert jaccard_similarity("", "") == 1.0
    assert jaccard_similarity("", "aide innovation") == 0.0
    assert jaccard_similarity("aide innovation pme", "aide innovation tpe") == pytest.approx(0.5)
    assert jaccard_similarity("Aide Innovation", "aide innovation") == 1.0


@pytest.mark.parametrize("a, b", [
    ("Aide à l'innovation", "Prêt innovation Bpifrance"),
    ("Subvention export", "Chèque export Occitanie"),
    ("", "texte"),
])
def test_similarities_are_symmetric(a, b):
    assert levenshtein_similarity(a, b) == levenshtein_similarity(b, a)
    assert jaccard_similarity(a, b) == jaccard_similarity(b, a)
