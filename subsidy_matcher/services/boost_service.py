"""
Amount and agency boosts layered on top of the pre-score
"""
from typing import Optional

from ..models.profile import AnalyzedProfile
from ..models.subsidy import Subsidy, get_subsidy_text
from ..taxonomy import AGENCY_TIERS, AMOUNT_BOOST_TIERS


def has_sector_relevance(subsidy: Subsidy, analyzed: AnalyzedProfile) -> bool:
    """
    Check whether a subsidy shows any sector relevance for the profile

    Relevant means flagged universal, sharing the sector label, or
    mentioning at least one thematic keyword.
    """
    if subsidy.is_universal_sector:
        return True

    if subsidy.primary_sector and analyzed.sector:
        subsidy_sector = subsidy.primary_sector.lower()
        profile_sector = analyzed.sector.lower()
        if profile_sector in subsidy_sector or subsidy_sector in profile_sector:
            return True

    text = get_subsidy_text(subsidy)
    return any(kw.lower() in text for kw in analyzed.thematic_keywords)


def get_sector_aware_amount_boost(subsidy: Subsidy, analyzed: AnalyzedProfile) -> int:
    """
    Boost for large awards, granted only to sector-relevant subsidies

    Args:
        subsidy: Subsidy candidate
        analyzed: Analyzed profile

    Returns:
        Boost points (0 to 12)
    """
    if not subsidy.amount_max:
        return 0
    if not has_sector_relevance(subsidy, analyzed):
        return 0

    for threshold, boost in AMOUNT_BOOST_TIERS:
        if subsidy.amount_max >= threshold:
            return boost
    return 0


def get_agency_boost(agency: Optional[str]) -> int:
    """Prestige boost for the funding agency, 0 when unknown"""
    if not agency:
        return 0
    for pattern, boost in AGENCY_TIERS:
        if pattern in agency:
            return boost
    return 0
