"""
Deterministic pre-scoring of subsidies against an analyzed profile

Every function here is pure: no I/O and no shared mutable state, so it can
be called concurrently for any number of (profile, subsidy) pairs.
"""
import logging
import re
from typing import List, Optional, Sequence, Tuple

from ..models.matching import ScoreResult
from ..models.profile import AnalyzedProfile
from ..models.subsidy import Subsidy, get_description, get_subsidy_text, get_title
from ..taxonomy import GENERIC_ENTITY_LABELS, NEGATION_MARKERS, NEGATION_WINDOW
from .profile_analyzer import get_entity_types

logger = logging.getLogger(__name__)

NATIONAL_REGION = "National"

SECTOR_EXCLUSION_SCORE = -50
ENTITY_MISMATCH_SCORE = -100
SIZE_MATCH_BONUS = 10

REGION_EXACT_POINTS = 30
REGION_NATIONAL_POINTS = 25
REGION_UNSPECIFIED_POINTS = 15

SECTOR_MATCH_POINTS = 25
SECTOR_UNIVERSAL_POINTS = 15
SECTOR_UNSPECIFIED_POINTS = 10

TEXT_FULL_MATCHES = 3
TEXT_FULL_POINTS = 20
TEXT_POINTS_PER_MATCH = 7

THEMATIC_POINTS_PER_MATCH = 5
THEMATIC_MAX_POINTS = 15

KEYWORD_POINTS_PER_MATCH = 3
KEYWORD_MAX_POINTS = 10

CERTIFICATION_POINTS = 10

YOUNG_COMPANY_BONUS = 10
OVER_AGE_PENALTY = -20
ESTABLISHED_COMPANY_BONUS = 5

# (pattern, default max age, default min age); the first pattern found in the text applies
AGE_PATTERNS: Tuple[Tuple[re.Pattern, Optional[int], Optional[int]], ...] = (
    (re.compile(r"jeune entreprise|moins de (\d+) ans|créée? depuis moins", re.IGNORECASE), 5, None),
    (re.compile(r"startup|jeune pousse", re.IGNORECASE), 7, None),
    (re.compile(r"entreprise établie|plus de (\d+) ans", re.IGNORECASE), None, 3),
)


def check_entity_compatibility(subsidy_entities: Optional[Sequence[str]],
                               analyzed: AnalyzedProfile) -> Tuple[bool, bool, Optional[str]]:
    """
    Check whether the profile's legal form fits the subsidy's eligible entities

    Args:
        subsidy_entities: Entity labels declared by the subsidy
        analyzed: Analyzed profile

    Returns:
        Tuple of (compatible, exact size-category match, mismatch reason)
    """
    if not subsidy_entities:
        return True, False, None

    size = analyzed.size_category.lower()
    profile_types = [t.lower() for t in get_entity_types(analyzed.entity_type)]

    def accepts(label: str) -> bool:
        label = label.lower()
        if size in label:
            return True
        if any(t in label or label in t for t in profile_types):
            return True
        return label in GENERIC_ENTITY_LABELS

    if not any(accepts(label) for label in subsidy_entities):
        return False, False, f"Entités requises: {', '.join(subsidy_entities)} - Profil: {analyzed.size_category}"

    exact = any(label.lower() == size for label in subsidy_entities)
    return True, exact, None


def has_exclusion_context(text: str, term: str) -> bool:
    """True when a negation marker precedes the first occurrence of term"""
    index = text.find(term)
    if index == -1:
        return False
    context = text[max(0, index - NEGATION_WINDOW):index]
    return any(marker in context for marker in NEGATION_MARKERS)


def _filtered(subsidy: Subsidy, score: int, reason: str) -> ScoreResult:
    return ScoreResult(
        subsidy=subsidy,
        pre_score=score,
        hard_filtered=True,
        filter_reason=reason,
        pre_reasons=[],
    )


def _score_region(subsidy: Subsidy, analyzed: AnalyzedProfile) -> Tuple[int, Optional[str]]:
    if not subsidy.region:
        return REGION_UNSPECIFIED_POINTS, "Région non spécifiée"
    if analyzed.region and analyzed.region in subsidy.region:
        return REGION_EXACT_POINTS, f"Région: {analyzed.region}"
    if NATIONAL_REGION in subsidy.region:
        return REGION_NATIONAL_POINTS, "Programme national"
    return 0, None


def _score_sector(subsidy: Subsidy, analyzed: AnalyzedProfile) -> Tuple[int, Optional[str]]:
    if subsidy.primary_sector and analyzed.sector:
        subsidy_sector = subsidy.primary_sector.lower()
        profile_sector = analyzed.sector.lower()
        if subsidy_sector in profile_sector or profile_sector in subsidy_sector:
            return SECTOR_MATCH_POINTS, f"Secteur: {subsidy.primary_sector}"
        if subsidy.is_universal_sector:
            return SECTOR_UNIVERSAL_POINTS, "Multi-secteurs"
        return 0, None
    if subsidy.is_universal_sector:
        return SECTOR_UNIVERSAL_POINTS, "Secteur universel"
    if not subsidy.primary_sector:
        return SECTOR_UNSPECIFIED_POINTS, "Secteur non spécifié"
    return 0, None


def _score_age(text: str, company_age: int) -> Tuple[int, Optional[str]]:
    for pattern, max_age, min_age in AGE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        extracted = int(match.group(1)) if match.groups() and match.group(1) else None
        if min_age is not None:
            minimum = extracted if extracted is not None else min_age
            if company_age >= minimum:
                return ESTABLISHED_COMPANY_BONUS, f"Entreprise établie ({company_age} ans)"
            return 0, None
        limit = extracted if extracted is not None else max_age
        if company_age <= limit:
            return YOUNG_COMPANY_BONUS, f"Jeune entreprise ({company_age} ans)"
        return OVER_AGE_PENALTY, f"Ancienneté: {company_age} ans > {limit} ans requis"
    return 0, None


def calculate_pre_score(subsidy: Subsidy, analyzed: AnalyzedProfile) -> ScoreResult:
    """
    Score one subsidy against an analyzed profile

    Hard filters run first and short-circuit with an empty reason list.
    Soft factors add capped points; missing data earns neutral or partial
    credit and never counts against the subsidy.

    Args:
        subsidy: Subsidy candidate
        analyzed: Analyzed profile

    Returns:
        ScoreResult with pre_score clamped to [-100, 100]
    """
    subsidy_text = get_subsidy_text(subsidy)
    title = get_title(subsidy).lower()

    # Sector exclusion: keyword in the title, not carved out by a negation
    for exclusion in analyzed.exclusion_keywords:
        if exclusion in title and not has_exclusion_context(subsidy_text, exclusion):
            logger.debug(f"Subsidy {subsidy.id} excluded by sector keyword '{exclusion}'")
            return _filtered(subsidy, SECTOR_EXCLUSION_SCORE, f'Secteur exclu: "{exclusion}" dans le titre')

    score = 0
    reasons: List[str] = []

    if subsidy.legal_entities:
        compatible, size_match, reason = check_entity_compatibility(subsidy.legal_entities, analyzed)
        if not compatible:
            logger.debug(f"Subsidy {subsidy.id} excluded by entity type: {reason}")
            return _filtered(subsidy, ENTITY_MISMATCH_SCORE, reason)
        if size_match:
            score += SIZE_MATCH_BONUS
            reasons.append(f"Taille {analyzed.size_category} éligible")

    for factor in (_score_region, _score_sector):
        points, reason = factor(subsidy, analyzed)
        score += points
        if reason:
            reasons.append(reason)

    # Literal search terms against title and description
    title_and_description = f"{title} {get_description(subsidy).lower()}"
    matched_terms = [term for term in analyzed.search_terms if term in title_and_description]
    if len(matched_terms) >= TEXT_FULL_MATCHES:
        score += TEXT_FULL_POINTS
        reasons.append(f"Mots-clés: {', '.join(matched_terms[:3])}")
    elif matched_terms:
        score += TEXT_POINTS_PER_MATCH * len(matched_terms)
        reasons.append(f"Texte: {', '.join(matched_terms)}")

    thematic_matches = [kw for kw in analyzed.thematic_keywords if kw.lower() in subsidy_text]
    if thematic_matches:
        score += min(THEMATIC_MAX_POINTS, THEMATIC_POINTS_PER_MATCH * len(thematic_matches))
        reasons.append(f"Thématique: {', '.join(thematic_matches[:2])}")

    if subsidy.keywords:
        thematic_lower = [kw.lower() for kw in analyzed.thematic_keywords]
        keyword_matches = [
            kw for kw in subsidy.keywords
            if any(t in kw.lower() for t in thematic_lower)
            or any(term in kw.lower() for term in analyzed.search_terms)
        ]
        if keyword_matches:
            score += min(KEYWORD_MAX_POINTS, KEYWORD_POINTS_PER_MATCH * len(keyword_matches))
            reasons.append(f"Keywords: {len(keyword_matches)} correspondances")

    for certification in analyzed.certifications:
        if certification.lower() in subsidy_text:
            score += CERTIFICATION_POINTS
            reasons.append(f"Certification: {certification}")
            break

    if analyzed.company_age is not None:
        points, reason = _score_age(subsidy_text, analyzed.company_age)
        score += points
        if reason:
            reasons.append(reason)

    return ScoreResult(
        subsidy=subsidy,
        pre_score=max(-100, min(100, score)),
        hard_filtered=False,
        pre_reasons=reasons,
    )


def pre_score_subsidies(candidates: Sequence[Subsidy], analyzed: AnalyzedProfile,
                        min_score: int = 10, max_results: int = 100,
                        include_uncertain: bool = True) -> List[ScoreResult]:
    """
    Pre-score all candidates and return the kept results, best first

    Args:
        candidates: Subsidies to score
        analyzed: Analyzed profile
        min_score: Minimum pre-score to keep
        max_results: Maximum results to return
        include_uncertain: Also keep subsidies without a primary sector

    Returns:
        Non-filtered results sorted by descending pre-score
    """
    results = [calculate_pre_score(subsidy, analyzed) for subsidy in candidates]
    kept = [
        r for r in results
        if not r.hard_filtered and (
            r.pre_score >= min_score or (include_uncertain and not r.subsidy.primary_sector)
        )
    ]
    # sorted() is stable, ties keep candidate order
    kept = sorted(kept, key=lambda r: r.pre_score, reverse=True)[:max_results]

    filtered = sum(1 for r in results if r.hard_filtered)
    logger.info(f"Pre-scored {len(results)} subsidies: {filtered} hard-filtered, {len(kept)} kept")
    return kept
