"""
Eligibility-criteria inheritance from similar template subsidies
"""
import asyncio
import logging
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import Settings
from ..exceptions import LLMServiceError, StorageError
from ..models.inheritance import (
    InheritanceAnalysis,
    InheritanceOutcome,
    InheritanceSummary,
    SimilarityMatch,
    ValidationResult,
)
from ..models.subsidy import Subsidy, get_description, get_title
from ..utils.text import jaccard_similarity, levenshtein_similarity, normalize_text
from .llm_service import LLMService
from .mongo_service import MongoService

logger = logging.getLogger(__name__)

AGENCY_WEIGHT = 0.35
TITLE_WEIGHT = 0.25
TITLE_MIN_SIMILARITY = 0.4
FUNDING_TYPE_WEIGHT = 0.10
REGION_WEIGHT = 0.10
SECTOR_WEIGHT = 0.10
CATEGORY_WEIGHT = 0.05
ENTITY_WEIGHT = 0.10
DESCRIPTION_WEIGHT = 0.10
DESCRIPTION_MIN_LENGTH = 20
DESCRIPTION_MIN_SIMILARITY = 0.25


def calculate_similarity(source: Subsidy, template: Subsidy) -> Tuple[float, List[str]]:
    """
    Composite similarity between a subsidy lacking criteria and a template

    Args:
        source: Subsidy without eligibility criteria
        template: Subsidy with eligibility criteria

    Returns:
        Tuple of (score, reason tags)
    """
    score = 0.0
    reasons: List[str] = []

    if source.agency and source.agency == template.agency:
        score += AGENCY_WEIGHT
        reasons.append("same_agency")

    title_a = get_title(source)
    title_b = get_title(template)
    title_sim = max(levenshtein_similarity(title_a, title_b), jaccard_similarity(title_a, title_b))
    if title_sim > TITLE_MIN_SIMILARITY:
        score += title_sim * TITLE_WEIGHT
        reasons.append(f"title_sim:{title_sim * 100:.0f}%")

    if source.funding_type and source.funding_type == template.funding_type:
        score += FUNDING_TYPE_WEIGHT
        reasons.append("same_funding_type")

    if source.region and template.region and set(source.region) & set(template.region):
        score += REGION_WEIGHT
        reasons.append("region_overlap")

    if source.primary_sector and source.primary_sector == template.primary_sector:
        score += SECTOR_WEIGHT
        reasons.append("same_sector")

    if source.categories and template.categories and set(source.categories) & set(template.categories):
        score += CATEGORY_WEIGHT
        reasons.append("category_overlap")

    if source.legal_entities and template.legal_entities:
        common = [e for e in source.legal_entities if e in template.legal_entities]
        if common:
            ratio = len(common) / max(len(source.legal_entities), len(template.legal_entities))
            score += ratio * ENTITY_WEIGHT
            reasons.append(f"legal_entities:{ratio * 100:.0f}%")

    description_a = normalize_text(get_description(source))
    description_b = normalize_text(get_description(template))
    if len(description_a) > DESCRIPTION_MIN_LENGTH and len(description_b) > DESCRIPTION_MIN_LENGTH:
        description_sim = jaccard_similarity(description_a, description_b)
        if description_sim > DESCRIPTION_MIN_SIMILARITY:
            score += description_sim * DESCRIPTION_WEIGHT
            reasons.append(f"desc_sim:{description_sim * 100:.0f}%")

    return score, reasons


def order_templates(source: Subsidy, templates: Sequence[Subsidy]) -> List[Subsidy]:
    """Same-agency templates first, then all the others"""
    same_agency = [t for t in templates if source.agency and t.agency == source.agency]
    others = [t for t in templates if not (source.agency and t.agency == source.agency)]
    return same_agency + others


def find_best_match(source: Subsidy, templates: Sequence[Subsidy], threshold: float = 0.6) -> Optional[SimilarityMatch]:
    """
    Best-scoring template at or above the threshold

    Args:
        source: Subsidy without eligibility criteria
        templates: Candidate templates
        threshold: Minimum composite score

    Returns:
        SimilarityMatch, or None when no template qualifies
    """
    best: Optional[SimilarityMatch] = None
    for template in order_templates(source, templates):
        if template.id == source.id:
            continue
        score, reasons = calculate_similarity(source, template)
        if score >= threshold and (best is None or score > best.score):
            best = SimilarityMatch(source=source, template=template, score=score, reasons=reasons)
    return best


class TemplateInheritanceService:
    """Batch driver that copies validated eligibility criteria from templates"""

    def __init__(self, settings: Settings, storage: MongoService, llm: LLMService):
        self.settings = settings
        self.storage = storage
        self.llm = llm

    async def validate_with_ai(self, match: SimilarityMatch) -> ValidationResult:
        """Validate a match with a time-bounded AI call"""
        return await asyncio.wait_for(
            self.llm.validate_inheritance(match, self.settings.min_validation_confidence),
            timeout=self.settings.ai_batch_timeout_seconds
        )

    async def analyze(self, limit: Optional[int] = None, threshold: Optional[float] = None) -> InheritanceAnalysis:
        """
        Report how many incomplete subsidies have a template match

        Args:
            limit: Maximum incomplete subsidies to analyze
            threshold: Similarity threshold override

        Returns:
            InheritanceAnalysis with per-agency match counts (top 10)
        """
        limit = limit or self.settings.inheritance_analyze_limit
        threshold = self.settings.similarity_threshold if threshold is None else threshold

        templates = await self.storage.get_template_subsidies()
        agencies = {t.agency for t in templates}
        logger.info(f"Found {len(templates)} template subsidies spanning {len(agencies)} agencies")

        incomplete = await self.storage.get_incomplete_subsidies(limit)
        logger.info(f"Analyzing {len(incomplete)} incomplete subsidies")

        matched_agencies: Counter = Counter()
        matched = 0
        for source in incomplete:
            if find_best_match(source, templates, threshold):
                matched += 1
                matched_agencies[source.agency or "Inconnu"] += 1

        return InheritanceAnalysis(
            templates=len(templates),
            template_agencies=len(agencies),
            analyzed=len(incomplete),
            matched=matched,
            top_agencies=dict(matched_agencies.most_common(10)),
        )

    async def _process(self, source: Subsidy, templates: Sequence[Subsidy], threshold: float,
                       dry_run: bool) -> InheritanceOutcome:
        match = find_best_match(source, templates, threshold)
        if not match:
            return InheritanceOutcome(
                subsidy_id=source.id,
                status="skipped",
                reason="No template above threshold",
            )

        try:
            validation = await self.validate_with_ai(match)
        except (LLMServiceError, asyncio.TimeoutError) as e:
            logger.error(f"Validation failed for {source.id}: {e!r}")
            return InheritanceOutcome(
                subsidy_id=source.id,
                status="error",
                template_id=match.template.id,
                score=match.score,
                reason=f"Validation failed: {e}",
            )

        if not validation.valid:
            logger.info(f"Not valid for {source.id} (conf: {validation.confidence}%): {validation.reason}")
            return InheritanceOutcome(
                subsidy_id=source.id,
                status="skipped",
                template_id=match.template.id,
                score=match.score,
                confidence=validation.confidence,
                reason=validation.reason,
            )

        logger.info(f"Valid for {source.id} (conf: {validation.confidence}%): {validation.reason}")
        written = False
        if not dry_run:
            try:
                written = await self.storage.update_eligibility_criteria(source.id, validation.adapted_criteria)
            except StorageError as e:
                return InheritanceOutcome(
                    subsidy_id=source.id,
                    status="error",
                    template_id=match.template.id,
                    score=match.score,
                    confidence=validation.confidence,
                    reason=str(e),
                )
            if not written:
                return InheritanceOutcome(
                    subsidy_id=source.id,
                    status="error",
                    template_id=match.template.id,
                    score=match.score,
                    confidence=validation.confidence,
                    reason=f"No stored subsidy matched id {source.id}",
                )

        return InheritanceOutcome(
            subsidy_id=source.id,
            status="inherited",
            template_id=match.template.id,
            score=match.score,
            confidence=validation.confidence,
            reason=validation.reason,
            written=written,
        )

    async def run(self, batch_size: Optional[int] = None, dry_run: bool = True,
                  threshold: Optional[float] = None) -> InheritanceSummary:
        """
        Match, validate and (unless dry_run) write criteria for one batch

        Args:
            batch_size: Number of incomplete subsidies to process
            dry_run: Run the full pipeline without the write step
            threshold: Similarity threshold override

        Returns:
            InheritanceSummary with one outcome per processed subsidy
        """
        batch_size = batch_size or self.settings.inheritance_batch_size
        threshold = self.settings.similarity_threshold if threshold is None else threshold

        templates = await self.storage.get_template_subsidies()
        incomplete = await self.storage.get_incomplete_subsidies(batch_size)
        logger.info(f"Processing {len(incomplete)} incomplete subsidies against {len(templates)} templates")

        summary = InheritanceSummary(dry_run=dry_run)
        counts: Dict[str, int] = Counter()
        for position, source in enumerate(incomplete):
            logger.info(f"[{position + 1}/{len(incomplete)}] {get_title(source)[:50]}")
            outcome = await self._process(source, templates, threshold, dry_run)
            summary.outcomes.append(outcome)
            counts[outcome.status] += 1

            # Space out AI calls
            if outcome.template_id and position < len(incomplete) - 1:
                await asyncio.sleep(self.settings.inheritance_delay_seconds)

        summary.processed = len(incomplete)
        summary.inherited = counts["inherited"]
        summary.skipped = counts["skipped"]
        summary.errors = counts["error"]
        return summary
