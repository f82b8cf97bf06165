"""
Models package for the subsidy matching service
"""

from .subsidy import (
    Subsidy,
    LocalizedText,
    localized_text
)

from .profile import (
    ApplicantProfile,
    AnalyzedProfile,
    WebsiteIntelligence
)

from .matching import (
    ScoreResult,
    ScoringOptions,
    RerankAdjustment,
    SubsidyMatch,
    MatchResponse,
    MatchRequest,
    PreScoreRequest
)

from .inheritance import (
    SimilarityMatch,
    ValidationResult,
    InheritanceSummary,
    InheritanceAnalysis
)

__all__ = [
    # Subsidy models
    "Subsidy",
    "LocalizedText",
    "localized_text",

    # Profile models
    "ApplicantProfile",
    "AnalyzedProfile",
    "WebsiteIntelligence",

    # Matching models
    "ScoreResult",
    "ScoringOptions",
    "RerankAdjustment",
    "SubsidyMatch",
    "MatchResponse",
    "MatchRequest",
    "PreScoreRequest",

    # Inheritance models
    "SimilarityMatch",
    "ValidationResult",
    "InheritanceSummary",
    "InheritanceAnalysis"
]
