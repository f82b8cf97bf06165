"""
Profile analyzer: turns an applicant profile into scoring input
"""
import logging
import re
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from ..models.profile import AnalyzedProfile, ApplicantProfile, SizeCategory
from ..taxonomy import (
    ACTIVITY_KEYWORDS,
    CERTIFICATION_KEYWORDS,
    CERTIFICATION_SEARCH_SYNONYMS,
    DEFAULT_ENTITY_TYPES,
    DESCRIPTION_KEYWORDS,
    GENERIC_DESCRIPTION_WORDS,
    INITIATIVE_KEYWORDS,
    LEGAL_FORM_TO_ENTITY,
    NAF_SECTOR_MAP,
    PROJECT_TYPE_KEYWORDS,
    SECTOR_EXCLUSIONS,
    SECTOR_INDICATOR_KEYWORDS,
    SIGNAL_KEYWORD_TIERS,
    STOP_WORDS,
    UNKNOWN_FORM_ENTITY_TYPES,
)

logger = logging.getLogger(__name__)

MAX_SEARCH_TERMS = 25
MAX_DESCRIPTION_WORDS = 10
MAX_AI_DESCRIPTION_WORDS = 8

# Legal forms by length so "SASU" is tried before "SAS" and "SA"
_FORMS_BY_LENGTH = sorted(LEGAL_FORM_TO_ENTITY, key=lambda item: len(item[0]), reverse=True)


def dedupe(items: Iterable[str]) -> List[str]:
    """Remove duplicates, keeping first-seen order"""
    return list(dict.fromkeys(items))


def _contains_any(text: str, needles: Tuple[str, ...]) -> bool:
    return any(needle in text for needle in needles)


def get_sector_from_naf_code(naf_code: Optional[str]) -> Optional[str]:
    """
    Resolve a sector from the industry-group prefix of a NAF code

    Args:
        naf_code: NAF code such as "01.21Z"

    Returns:
        Sector label, or None when the prefix is unknown
    """
    if not naf_code:
        return None
    return NAF_SECTOR_MAP.get(naf_code.strip()[:2])


def get_company_size_category(employees: Optional[str]) -> SizeCategory:
    """
    Map an employee count or bracket ("12", "10-49", "250+") to a size band

    Unparseable values count as zero employees.
    """
    match = re.match(r'\s*(\d+)', employees or '')
    count = int(match.group(1)) if match else 0
    if count < 10:
        return 'TPE'
    if count < 250:
        return 'PME'
    if count < 5000:
        return 'ETI'
    return 'GE'


def get_entity_types(legal_form: Optional[str]) -> List[str]:
    """
    Entity-type labels compatible with a legal form

    Exact (case-insensitive) names win; otherwise the longest form name
    contained in the input is used.
    """
    if not legal_form or not legal_form.strip():
        return list(DEFAULT_ENTITY_TYPES)

    wanted = legal_form.strip().upper()
    for form, types in LEGAL_FORM_TO_ENTITY:
        if form.upper() == wanted:
            return list(types)

    for form, types in _FORMS_BY_LENGTH:
        if form.upper() in wanted:
            return list(types)

    return list(UNKNOWN_FORM_ENTITY_TYPES)


def _split_words(text: str, pattern: str, min_length: int) -> List[str]:
    return [
        word for word in re.split(pattern, text.lower())
        if len(word) > min_length and word not in STOP_WORDS
    ]


def extract_search_terms(profile: ApplicantProfile) -> List[str]:
    """
    Collect literal search terms from every descriptive profile field

    Args:
        profile: Applicant profile

    Returns:
        Deduplicated terms in discovery order, at most 25
    """
    terms: List[str] = []

    if profile.naf_label:
        terms.extend(_split_words(profile.naf_label, r'[\s,;]+', 3))

    if profile.sector:
        terms.append(profile.sector.lower())
    if profile.sub_sector:
        terms.append(profile.sub_sector.lower())

    terms.extend(p.lower() for p in profile.project_types)

    for certification in profile.certifications:
        cert_lower = certification.lower()
        terms.append(cert_lower)
        for trigger, synonyms in CERTIFICATION_SEARCH_SYNONYMS:
            if trigger in cert_lower:
                terms.extend(synonyms)

    if profile.description:
        words = [
            w for w in _split_words(profile.description, r'[\s,;.!?]+', 4)
            if w not in GENERIC_DESCRIPTION_WORDS
        ]
        terms.extend(words[:MAX_DESCRIPTION_WORDS])

    intelligence = profile.website_intelligence
    if intelligence:
        for activity in intelligence.business_activities:
            activity_lower = activity.lower()
            terms.append(activity_lower)
            terms.extend(w for w in activity_lower.split() if len(w) > 3)

        if intelligence.company_description:
            words = _split_words(intelligence.company_description, r'[\s,;.]+', 4)
            terms.extend(words[:MAX_AI_DESCRIPTION_WORDS])

        if intelligence.innovations:
            terms.extend(i.lower() for i in intelligence.innovations.indicators)
        if intelligence.sustainability:
            terms.extend(i.lower() for i in intelligence.sustainability.initiatives)

    return dedupe(t for t in terms if t)[:MAX_SEARCH_TERMS]


def _signal_score(profile: ApplicantProfile, name: str) -> float:
    intelligence = profile.website_intelligence
    signal = getattr(intelligence, name, None) if intelligence else None
    if signal is None or signal.score is None:
        return 0
    return signal.score


def extract_thematic_keywords(profile: ApplicantProfile, sector: Optional[str] = None) -> List[str]:
    """
    Build the broader thematic vocabulary used for semantic matching

    Args:
        profile: Applicant profile
        sector: Resolved sector, derived from the profile when omitted

    Returns:
        Deduplicated keywords in discovery order
    """
    if sector is None:
        sector = profile.sector or get_sector_from_naf_code(profile.naf_code)

    keywords: List[str] = list(SECTOR_INDICATOR_KEYWORDS.get(sector, ())) if sector else []

    for certification in profile.certifications:
        cert_lower = certification.lower()
        for triggers, cluster in CERTIFICATION_KEYWORDS:
            if _contains_any(cert_lower, triggers):
                keywords.extend(cluster)

    if profile.description:
        description = profile.description.lower()
        for triggers, cluster in DESCRIPTION_KEYWORDS:
            if _contains_any(description, triggers):
                keywords.extend(cluster)

    intelligence = profile.website_intelligence
    if intelligence:
        for signal, minimum, cluster in SIGNAL_KEYWORD_TIERS:
            if _signal_score(profile, signal) >= minimum:
                keywords.extend(cluster)

        for activity in intelligence.business_activities:
            activity_lower = activity.lower()
            for triggers, cluster in ACTIVITY_KEYWORDS:
                if _contains_any(activity_lower, triggers):
                    keywords.extend(cluster)

        if intelligence.sustainability:
            for initiative in intelligence.sustainability.initiatives:
                initiative_lower = initiative.lower()
                for triggers, cluster in INITIATIVE_KEYWORDS:
                    if _contains_any(initiative_lower, triggers):
                        keywords.extend(cluster)

    for project_type in profile.project_types:
        project_lower = project_type.lower()
        for triggers, cluster in PROJECT_TYPE_KEYWORDS:
            if _contains_any(project_lower, triggers):
                keywords.extend(cluster)

    return dedupe(keywords)


def analyze_profile(profile: ApplicantProfile, current_year: Optional[int] = None) -> AnalyzedProfile:
    """
    Analyze a profile and extract all matching-relevant data

    Args:
        profile: Applicant profile snapshot
        current_year: Reference year for the company age (defaults to now)

    Returns:
        AnalyzedProfile derived deterministically from the snapshot
    """
    if current_year is None:
        current_year = datetime.now().year

    sector = profile.sector or get_sector_from_naf_code(profile.naf_code)
    exclusions = list(SECTOR_EXCLUSIONS.get(sector, ())) if sector else []

    analyzed = AnalyzedProfile(
        sector=sector,
        size_category=get_company_size_category(profile.employees),
        entity_type=profile.legal_form or None,
        search_terms=extract_search_terms(profile),
        thematic_keywords=extract_thematic_keywords(profile, sector),
        exclusion_keywords=exclusions,
        project_types=list(profile.project_types),
        certifications=list(profile.certifications),
        region=profile.region or None,
        company_age=current_year - profile.year_created if profile.year_created else None,
        annual_turnover=profile.annual_turnover,
    )

    logger.debug(
        f"Analyzed profile {profile.id}: sector={analyzed.sector}, size={analyzed.size_category}, "
        f"{len(analyzed.search_terms)} search terms, {len(analyzed.thematic_keywords)} thematic keywords"
    )
    return analyzed
