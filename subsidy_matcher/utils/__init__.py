"""
Utility functions for the subsidy matching engine
"""

from .text import (
    normalize_text,
    levenshtein_similarity,
    jaccard_similarity
)
from .validators import (
    validate_profile_data,
    extract_text_snippet
)

__all__ = [
    "normalize_text",
    "levenshtein_similarity",
    "jaccard_similarity",
    "validate_profile_data",
    "extract_text_snippet"
]
