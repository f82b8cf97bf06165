"""
FastAPI dependencies exposing the services built at startup
"""
from fastapi import HTTPException, Request

from .services.matching_service import MatchingService
from .services.mongo_service import MongoService


def get_mongo_service(request: Request) -> MongoService:
    service = getattr(request.app.state, "mongo_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Storage not available")
    return service


def get_matching_service(request: Request) -> MatchingService:
    service = getattr(request.app.state, "matching_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Matching service not available")
    return service
