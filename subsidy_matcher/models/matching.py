"""
Pydantic models for scoring results and match responses
"""
from datetime import datetime, timezone
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

from .profile import ApplicantProfile
from .subsidy import Subsidy


def get_current_utc_time():
    """Get current UTC time for default values"""
    return datetime.now(timezone.utc)


class ScoreResult(BaseModel):
    """Deterministic pre-score of one subsidy against one profile"""
    subsidy: Subsidy
    pre_score: int = Field(..., ge=-100, le=100, description="Clamped relevance score")
    hard_filtered: bool = Field(False, description="A disqualifying condition applied")
    filter_reason: Optional[str] = Field(None, description="Why the subsidy was hard-filtered")
    pre_reasons: List[str] = Field(default_factory=list, description="Reason tags in evaluation order")

    @property
    def display_score(self) -> int:
        """Score clamped to 0-100 for display"""
        return max(0, min(100, self.pre_score))


class ScoringOptions(BaseModel):
    """Options for batch pre-scoring"""
    min_score: int = Field(10, description="Minimum pre-score to keep")
    max_results: int = Field(100, ge=1, description="Maximum results to return")
    include_uncertain: bool = Field(True, description="Keep subsidies without a primary sector")


class RerankAdjustment(BaseModel):
    """One candidate adjustment returned by the AI re-ranking step"""
    index: int
    adjustment: Optional[float] = None
    score: Optional[float] = None
    reasons: List[str] = Field(default_factory=list)
    matching_criteria: List[str] = Field(default_factory=list)
    missing_criteria: List[str] = Field(default_factory=list)


class SubsidyMatch(BaseModel):
    """Final ranked recommendation"""
    subsidy_id: str
    match_score: int = Field(..., ge=0, le=100)
    success_probability: int = Field(..., ge=0, le=100)
    match_reasons: List[str] = Field(default_factory=list)
    matching_criteria: List[str] = Field(default_factory=list)
    missing_criteria: List[str] = Field(default_factory=list)
    ai_evaluated: bool = False


class TokenUsage(BaseModel):
    input: int = 0
    output: int = 0


FallbackReason = Literal["ai_unavailable", "rate_limited", "timeout", "ai_error"]


class PipelineStats(BaseModel):
    candidates_fetched: int = 0
    pre_scored_count: int = 0
    ai_evaluated: bool = False
    fallback_reason: Optional[FallbackReason] = None


class MatchResponse(BaseModel):
    """Complete match response for a profile"""
    profile_id: Optional[str] = None
    matches: List[SubsidyMatch] = Field(default_factory=list)
    processing_time_ms: float = 0.0
    tokens_used: TokenUsage = Field(default_factory=TokenUsage)
    pipeline_stats: PipelineStats = Field(default_factory=PipelineStats)
    generated_at: datetime = Field(default_factory=get_current_utc_time)


class MatchRequest(BaseModel):
    """Request to compute recommendations for a profile"""
    profile: ApplicantProfile
    limit: int = Field(20, ge=1, le=100, description="Maximum matches to return")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "profile": {
                    "id": "p-42",
                    "company_name": "Ferme du Causse",
                    "sector": "Agriculture",
                    "region": "Occitanie",
                    "employees": "3",
                    "legal_form": "EARL"
                },
                "limit": 20
            }
        }
    )


class PreScoreRequest(BaseModel):
    """Request to pre-score an explicit candidate list"""
    profile: ApplicantProfile
    subsidies: List[Subsidy]
    options: ScoringOptions = Field(default_factory=ScoringOptions)
