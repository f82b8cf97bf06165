"""
Pydantic models for eligibility-criteria inheritance between subsidies
"""
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field

from .subsidy import Subsidy


class SimilarityMatch(BaseModel):
    """Best template found for a subsidy lacking eligibility criteria"""
    source: Subsidy
    template: Subsidy
    score: float = Field(..., description="Composite similarity, 0 to ~1.15")
    reasons: List[str] = Field(default_factory=list)


class ValidationResult(BaseModel):
    """Verdict on transferring a template's criteria to a source subsidy"""
    valid: bool = False
    confidence: int = Field(0, ge=0, le=100)
    adapted_criteria: Optional[str] = None
    reason: str = ""


InheritanceStatus = Literal["inherited", "skipped", "error"]


class InheritanceOutcome(BaseModel):
    subsidy_id: str
    status: InheritanceStatus
    template_id: Optional[str] = None
    score: Optional[float] = None
    confidence: Optional[int] = None
    reason: str = ""
    written: bool = False


class InheritanceSummary(BaseModel):
    """Totals of one inheritance batch"""
    processed: int = 0
    inherited: int = 0
    skipped: int = 0
    errors: int = 0
    dry_run: bool = True
    outcomes: List[InheritanceOutcome] = Field(default_factory=list)


class InheritanceAnalysis(BaseModel):
    """Match coverage report over incomplete subsidies"""
    templates: int = 0
    template_agencies: int = 0
    analyzed: int = 0
    matched: int = 0
    top_agencies: Dict[str, int] = Field(default_factory=dict)

    @property
    def match_rate(self) -> float:
        if not self.analyzed:
            return 0.0
        return self.matched / self.analyzed
