"""
Utility functions for validating incoming payloads
"""
from datetime import datetime
from typing import List, Optional

SIGNAL_FIELDS = ['innovations', 'sustainability', 'export', 'digital', 'growth']


def validate_profile_data(profile_data: dict, current_year: Optional[int] = None) -> List[str]:
    """
    Validate applicant profile data and return list of validation errors

    Missing fields are not errors: scoring degrades gracefully without them.

    Args:
        profile_data: Dictionary containing profile data
        current_year: Reference year for the founding-year check

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    if current_year is None:
        current_year = datetime.now().year

    # Turnover validation
    if profile_data.get('annual_turnover') is not None:
        try:
            turnover = float(profile_data['annual_turnover'])
            if turnover < 0:
                errors.append("Annual turnover cannot be negative")
        except (ValueError, TypeError):
            errors.append("Annual turnover must be a valid number")

    # Founding year validation
    if profile_data.get('year_created') is not None:
        try:
            year = int(profile_data['year_created'])
            if year > current_year:
                errors.append(f"Founding year cannot be after {current_year}")
        except (ValueError, TypeError):
            errors.append("Founding year must be a valid number")

    # Enrichment sub-scores
    intelligence = profile_data.get('website_intelligence') or {}
    if isinstance(intelligence, dict):
        for field in SIGNAL_FIELDS:
            signal = intelligence.get(field)
            if not isinstance(signal, dict) or signal.get('score') is None:
                continue
            try:
                score = float(signal['score'])
                if score < 0 or score > 100:
                    errors.append(f"{field} score must be between 0 and 100")
            except (ValueError, TypeError):
                errors.append(f"{field} score must be a valid number")

    return errors


def extract_text_snippet(text: str, max_length: int = 200) -> str:
    """
    Extract a snippet of text for display purposes

    Args:
        text: Full text
        max_length: Maximum length of snippet

    Returns:
        Text snippet
    """
    if not text:
        return ""

    if len(text) <= max_length:
        return text

    # Try to break at word boundary
    snippet = text[:max_length]
    last_space = snippet.rfind(' ')

    if last_space > max_length * 0.8:
        snippet = snippet[:last_space]

    return snippet + "..."
