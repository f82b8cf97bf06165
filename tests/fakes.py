"""In-memory stand-ins for the storage and AI collaborators."""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from subsidy_matcher.config import Settings
from subsidy_matcher.exceptions import StorageError
from subsidy_matcher.models.inheritance import SimilarityMatch, ValidationResult
from subsidy_matcher.models.matching import RerankAdjustment, ScoreResult, TokenUsage
from subsidy_matcher.models.profile import AnalyzedProfile, ApplicantProfile
from subsidy_matcher.models.subsidy import Subsidy
from subsidy_matcher.services.llm_service import RerankResult


def make_settings(**overrides: Any) -> Settings:
    values = {
        "ai_api_key": None,
        "ai_backoff_base_seconds": 0,
        "ai_backoff_max_seconds": 0,
        "inheritance_delay_seconds": 0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_subsidy(subsidy_id: str = "sub-1", **fields: Any) -> Subsidy:
    data = {"id": subsidy_id, "title": "Aide générique"}
    data.update(fields)
    return Subsidy(**data)


def make_profile(**fields: Any) -> ApplicantProfile:
    data = {
        "id": "p-1",
        "company_name": "Ferme du Causse",
        "sector": "Agriculture",
        "region": "Occitanie",
        "employees": "3",
        "legal_form": "EARL",
    }
    data.update(fields)
    return ApplicantProfile(**data)


class FakeStorage:
    """Storage collaborator backed by lists"""

    def __init__(self, candidates: Sequence[Subsidy] = (), templates: Sequence[Subsidy] = (),
                 incomplete: Sequence[Subsidy] = (), profiles: Optional[Dict[str, ApplicantProfile]] = None,
                 fail_candidates: bool = False, missing_ids: Sequence[str] = ()):
        self.candidates = list(candidates)
        self.templates = list(templates)
        self.incomplete = list(incomplete)
        self.profiles = profiles or {}
        self.fail_candidates = fail_candidates
        self.missing_ids = set(missing_ids)
        self.updates: List[Tuple[str, str]] = []
        self.events: List[Dict[str, Any]] = []

    async def health_check(self) -> bool:
        return True

    async def get_candidate_subsidies(self, region, sector, limit=None) -> List[Subsidy]:
        if self.fail_candidates:
            raise StorageError("All candidate queries failed")
        return list(self.candidates)

    async def get_template_subsidies(self) -> List[Subsidy]:
        return list(self.templates)

    async def get_incomplete_subsidies(self, limit: int) -> List[Subsidy]:
        return self.incomplete[:limit]

    async def get_profile(self, profile_id: str) -> Optional[ApplicantProfile]:
        return self.profiles.get(profile_id)

    async def update_eligibility_criteria(self, subsidy_id: str, criteria: str) -> bool:
        if subsidy_id in self.missing_ids:
            return False
        self.updates.append((subsidy_id, criteria))
        return True

    async def log_compliance_event(self, event: Dict[str, Any]) -> bool:
        self.events.append(event)
        return True


RerankHandler = Callable[[Sequence[ScoreResult]], List[RerankAdjustment]]


class FakeLLM:
    """AI collaborator whose answers come from plain callables"""

    model = "fake-model"

    def __init__(self, rerank_handler: Optional[RerankHandler] = None,
                 validation: Optional[Callable[[SimilarityMatch], ValidationResult]] = None,
                 configured: bool = True, delay: float = 0, slow_sources: Optional[Sequence[str]] = None):
        self.rerank_handler = rerank_handler
        self.validation = validation
        self.configured = configured
        self.delay = delay
        self.slow_sources = slow_sources
        self.rerank_calls: List[List[str]] = []
        self.validated: List[str] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def rerank(self, analyzed: AnalyzedProfile, profile: ApplicantProfile,
                     shortlist: Sequence[ScoreResult], limit: int) -> RerankResult:
        self.rerank_calls.append([r.subsidy.id for r in shortlist])
        if self.delay:
            await asyncio.sleep(self.delay)
        adjustments = self.rerank_handler(shortlist) if self.rerank_handler else []
        return RerankResult(adjustments=adjustments, usage=TokenUsage(input=10, output=5))

    async def validate_inheritance(self, match: SimilarityMatch, min_confidence: Optional[int] = None) -> ValidationResult:
        self.validated.append(match.source.id)
        if self.delay and (self.slow_sources is None or match.source.id in self.slow_sources):
            await asyncio.sleep(self.delay)
        return self.validation(match)
