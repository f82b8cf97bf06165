"""
Matching pipeline: candidates, pre-scoring, AI re-ranking and final ranking
"""
import asyncio
import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import Settings
from ..exceptions import LLMServiceError, LLMTimeoutError
from ..models.matching import (
    FallbackReason,
    MatchResponse,
    PipelineStats,
    RerankAdjustment,
    ScoreResult,
    SubsidyMatch,
    TokenUsage,
)
from ..models.profile import AnalyzedProfile, ApplicantProfile
from .boost_service import get_agency_boost, get_sector_aware_amount_boost
from .llm_service import MAX_SCORE_ADJUSTMENT, LLMService
from .mongo_service import MongoService
from .profile_analyzer import analyze_profile
from .scoring_service import pre_score_subsidies

logger = logging.getLogger(__name__)

PIPELINE_VERSION = "v5.1-prescored"
AI_UNAVAILABLE_CRITERION = "Évaluation AI non disponible"
STRATEGIC_AGENCY_MIN_BOOST = 4

# Reported reason when batches fail differently, lowest rank wins
_FALLBACK_PRIORITY = {"rate_limited": 0, "timeout": 1, "ai_error": 2, "ai_unavailable": 3}


def ai_success_probability(score: int) -> int:
    if score >= 90:
        return 70
    if score >= 70:
        return 50
    if score >= 50:
        return 30
    return 15


def fallback_success_probability(score: int) -> int:
    if score >= 70:
        return 40
    if score >= 50:
        return 25
    return 15


def ai_score(result: ScoreResult, adjustment: RerankAdjustment) -> int:
    """AI score if given, else the pre-score moved by the bounded adjustment"""
    if adjustment.score is not None:
        raw = adjustment.score
    else:
        delta = adjustment.adjustment or 0
        raw = result.pre_score + max(-MAX_SCORE_ADJUSTMENT, min(MAX_SCORE_ADJUSTMENT, delta))
    return int(round(max(0, min(100, raw))))


def classify_failure(error: BaseException) -> FallbackReason:
    if isinstance(error, (asyncio.TimeoutError, LLMTimeoutError)):
        return "timeout"
    if isinstance(error, LLMServiceError) and error.status_code == 429:
        return "rate_limited"
    if isinstance(error, LLMServiceError) and error.status_code is None and not error.retryable:
        return "ai_unavailable"
    return "ai_error"


def _boosted(score: int, result: ScoreResult, analyzed: AnalyzedProfile,
             reasons: List[str]) -> Tuple[int, List[str]]:
    amount_boost = get_sector_aware_amount_boost(result.subsidy, analyzed)
    agency_boost = get_agency_boost(result.subsidy.agency)
    reasons = list(reasons)
    if amount_boost > 0:
        reasons.append(f"Montant élevé (+{amount_boost} pts)")
    if agency_boost >= STRATEGIC_AGENCY_MIN_BOOST:
        reasons.append(f"Programme stratégique (+{agency_boost} pts)")
    return min(100, score + amount_boost + agency_boost), reasons


def build_ai_match(result: ScoreResult, adjustment: RerankAdjustment, analyzed: AnalyzedProfile) -> SubsidyMatch:
    score, reasons = _boosted(ai_score(result, adjustment), result, analyzed, adjustment.reasons)
    return SubsidyMatch(
        subsidy_id=result.subsidy.id,
        match_score=score,
        success_probability=ai_success_probability(score),
        match_reasons=reasons,
        matching_criteria=adjustment.matching_criteria,
        missing_criteria=adjustment.missing_criteria,
        ai_evaluated=True,
    )


def build_fallback_match(result: ScoreResult, analyzed: AnalyzedProfile) -> SubsidyMatch:
    """Match built from the deterministic score alone"""
    score, reasons = _boosted(result.display_score, result, analyzed, result.pre_reasons)
    return SubsidyMatch(
        subsidy_id=result.subsidy.id,
        match_score=score,
        success_probability=fallback_success_probability(score),
        match_reasons=reasons,
        matching_criteria=[reason.split(":")[0] for reason in result.pre_reasons],
        missing_criteria=[AI_UNAVAILABLE_CRITERION],
        ai_evaluated=False,
    )


class MatchingService:
    """Runs the full recommendation pipeline for one profile"""

    def __init__(self, settings: Settings, storage: MongoService, llm: Optional[LLMService] = None):
        self.settings = settings
        self.storage = storage
        self.llm = llm

    async def _rerank_batch(self, semaphore: asyncio.Semaphore, analyzed: AnalyzedProfile,
                            profile: ApplicantProfile, batch: Sequence[ScoreResult], limit: int):
        async with semaphore:
            return await asyncio.wait_for(
                self.llm.rerank(analyzed, profile, batch, min(limit, len(batch))),
                timeout=self.settings.ai_batch_timeout_seconds
            )

    async def rerank(self, analyzed: AnalyzedProfile, profile: ApplicantProfile,
                     shortlist: List[ScoreResult], limit: int
                     ) -> Tuple[Dict[int, RerankAdjustment], TokenUsage, Optional[FallbackReason]]:
        """
        Re-rank the shortlist in independent, time-bounded batches

        A failing batch only loses AI adjustments for its own candidates.

        Returns:
            Tuple of (adjustments by shortlist index, token usage, fallback reason if any batch failed)
        """
        usage = TokenUsage()
        if not self.llm or not self.llm.is_configured:
            return {}, usage, "ai_unavailable"

        size = max(1, self.settings.ai_rerank_batch_size)
        batches = [shortlist[start:start + size] for start in range(0, len(shortlist), size)]
        semaphore = asyncio.Semaphore(max(1, self.settings.ai_max_concurrency))

        results = await asyncio.gather(
            *(self._rerank_batch(semaphore, analyzed, profile, batch, limit) for batch in batches),
            return_exceptions=True
        )

        adjustments: Dict[int, RerankAdjustment] = {}
        failures: List[FallbackReason] = []
        for batch_number, result in enumerate(results):
            offset = batch_number * size
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                reason = classify_failure(result)
                failures.append(reason)
                logger.warning(f"AI re-ranking failed for batch {batch_number} ({reason}): {result!r}")
                continue
            usage.input += result.usage.input
            usage.output += result.usage.output
            for adjustment in result.adjustments:
                adjustments.setdefault(offset + adjustment.index, adjustment)

        fallback_reason = min(failures, key=_FALLBACK_PRIORITY.get) if failures else None
        return adjustments, usage, fallback_reason

    async def calculate_matches(self, profile: ApplicantProfile, limit: Optional[int] = None) -> MatchResponse:
        """
        Compute ranked subsidy recommendations for a profile

        Args:
            profile: Applicant profile
            limit: Maximum matches to return

        Returns:
            MatchResponse, always best-effort when the AI step is unavailable

        Raises:
            StorageError: Candidates could not be fetched
        """
        start = time.perf_counter()
        limit = limit or self.settings.default_match_limit
        stats = PipelineStats()

        logger.info(f"Phase 1: analyzing profile {profile.id}")
        analyzed = analyze_profile(profile)
        logger.info(
            f"Profile: sector={analyzed.sector}, size={analyzed.size_category}, region={analyzed.region}"
        )

        logger.info("Phase 2: fetching candidates")
        candidates = await self.storage.get_candidate_subsidies(analyzed.region, analyzed.sector)
        stats.candidates_fetched = len(candidates)

        if not candidates:
            return MatchResponse(
                profile_id=profile.id,
                processing_time_ms=(time.perf_counter() - start) * 1000,
                pipeline_stats=stats,
            )

        logger.info("Phase 3: pre-scoring candidates")
        shortlist = pre_score_subsidies(
            candidates,
            analyzed,
            min_score=self.settings.pre_score_min,
            max_results=self.settings.pre_scored_limit,
            include_uncertain=True,
        )
        stats.pre_scored_count = len(shortlist)

        logger.info("Phase 4: AI evaluation")
        adjustments, usage, fallback_reason = await self.rerank(analyzed, profile, shortlist, limit)
        stats.ai_evaluated = bool(adjustments)
        stats.fallback_reason = fallback_reason
        if fallback_reason:
            logger.warning(f"Using deterministic scores for part of the shortlist: {fallback_reason}")

        logger.info("Phase 5: final ranking")
        matches = []
        for index, result in enumerate(shortlist):
            adjustment = adjustments.get(index)
            if adjustment:
                matches.append(build_ai_match(result, adjustment, analyzed))
            else:
                matches.append(build_fallback_match(result, analyzed))
        matches = sorted(matches, key=lambda m: m.match_score, reverse=True)[:limit]

        response = MatchResponse(
            profile_id=profile.id,
            matches=matches,
            processing_time_ms=(time.perf_counter() - start) * 1000,
            tokens_used=usage,
            pipeline_stats=stats,
        )
        await self._log_compliance(profile, analyzed, len(candidates), response)
        return response

    async def _log_compliance(self, profile: ApplicantProfile, analyzed: AnalyzedProfile,
                              candidate_count: int, response: MatchResponse):
        event = {
            "event_type": "subsidy_recommendation_generated",
            "profile_id": profile.id,
            "input_snapshot": {
                "profile_summary": {
                    "company_name": profile.company_name,
                    "sector": analyzed.sector,
                    "region": profile.region,
                    "employees": profile.employees,
                },
                "subsidies_analyzed": candidate_count,
                "pre_scored_count": response.pipeline_stats.pre_scored_count,
            },
            "ai_output": {
                "matches_count": len(response.matches),
                "top_match_score": response.matches[0].match_score if response.matches else 0,
                "processing_time_ms": response.processing_time_ms,
                "pipeline_version": PIPELINE_VERSION,
                "degraded": response.pipeline_stats.fallback_reason is not None,
                "fallback_reason": response.pipeline_stats.fallback_reason,
            },
            "model_version": self.llm.model if self.llm else None,
            "input_tokens": response.tokens_used.input,
            "output_tokens": response.tokens_used.output,
        }
        await self.storage.log_compliance_event(event)
