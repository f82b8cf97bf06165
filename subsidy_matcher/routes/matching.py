"""
API routes for profile analysis and subsidy matching
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_matching_service, get_mongo_service
from ..exceptions import ProfileNotFoundError, StorageError
from ..models.matching import MatchRequest, MatchResponse, PreScoreRequest, ScoreResult
from ..models.profile import AnalyzedProfile, ApplicantProfile
from ..services.matching_service import MatchingService
from ..services.mongo_service import MongoService
from ..services.profile_analyzer import analyze_profile
from ..services.scoring_service import pre_score_subsidies
from ..utils.validators import validate_profile_data

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/matching", tags=["matching"])


def _check_profile(profile: ApplicantProfile):
    validation_errors = validate_profile_data(profile.model_dump(by_alias=False))
    if validation_errors:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid profile data: {'; '.join(validation_errors)}"
        )


@router.post("/analyze", response_model=AnalyzedProfile)
async def analyze(profile: ApplicantProfile):
    """
    Analyze a profile into scoring input
    """
    _check_profile(profile)
    return analyze_profile(profile)


@router.post("/prescore", response_model=List[ScoreResult])
async def prescore(request: PreScoreRequest):
    """
    Pre-score an explicit list of subsidies for a profile
    """
    _check_profile(request.profile)
    try:
        analyzed = analyze_profile(request.profile)
        return pre_score_subsidies(
            request.subsidies,
            analyzed,
            min_score=request.options.min_score,
            max_results=request.options.max_results,
            include_uncertain=request.options.include_uncertain
        )
    except Exception as e:
        logger.error(f"Error pre-scoring subsidies: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to pre-score subsidies: {str(e)}")


@router.post("/matches", response_model=MatchResponse)
async def calculate_matches(
    request: MatchRequest,
    matching_service: MatchingService = Depends(get_matching_service)
):
    """
    Compute ranked subsidy recommendations for a profile
    """
    _check_profile(request.profile)
    try:
        return await matching_service.calculate_matches(request.profile, request.limit)
    except StorageError as e:
        logger.error(f"Storage error while matching: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch subsidies: {str(e)}")
    except Exception as e:
        logger.error(f"Error calculating matches: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to calculate matches: {str(e)}")


@router.get("/profiles/{profile_id}/matches", response_model=MatchResponse)
async def get_profile_matches(
    profile_id: str,
    limit: int = Query(20, ge=1, le=100, description="Maximum matches to return"),
    mongo_service: MongoService = Depends(get_mongo_service),
    matching_service: MatchingService = Depends(get_matching_service)
):
    """
    Compute recommendations for a stored profile
    """
    try:
        profile = await mongo_service.get_profile(profile_id)
        if profile is None:
            raise ProfileNotFoundError(profile_id)
        return await matching_service.calculate_matches(profile, limit)
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error calculating matches for profile {profile_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to calculate matches: {str(e)}")
