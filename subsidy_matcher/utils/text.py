"""
Text normalization and string similarity helpers
"""
import re
import unicodedata
from typing import Set

from rapidfuzz.distance import Levenshtein


def normalize_text(text: str) -> str:
    """
    Normalize text for comparison

    Lowercases, strips diacritics, replaces punctuation with spaces and
    collapses whitespace.
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize('NFD', text.lower())
    stripped = ''.join(c for c in decomposed if not unicodedata.combining(c))
    cleaned = re.sub(r'[^a-z0-9\s]', ' ', stripped)
    return re.sub(r'\s+', ' ', cleaned).strip()


def levenshtein_similarity(a: str, b: str) -> float:
    """
    Edit-distance similarity ratio between two normalized strings

    Args:
        a: First string
        b: Second string

    Returns:
        1 - distance / longest length, 1.0 when both are empty
    """
    norm_a = normalize_text(a)
    norm_b = normalize_text(b)
    if not norm_a and not norm_b:
        return 1.0
    return Levenshtein.normalized_similarity(norm_a, norm_b)


def tokenize(text: str) -> Set[str]:
    """Normalized tokens longer than two characters"""
    return {token for token in normalize_text(text).split(' ') if len(token) > 2}


def jaccard_similarity(a: str, b: str) -> float:
    """
    Token-set similarity between two strings

    Args:
        a: First string
        b: Second string

    Returns:
        Jaccard index of the token sets, 1.0 when both are empty, 0.0 when only one is
    """
    tokens_a = tokenize(a)
    tokens_b = tokenize(b)
    if not tokens_a and not tokens_b:
        return 1.0
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)
