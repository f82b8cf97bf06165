"""
Services package for the subsidy matching service
"""

from .mongo_service import MongoService
from .llm_service import LLMService
from .matching_service import MatchingService
from .template_inheritance import TemplateInheritanceService

__all__ = [
    "MongoService",
    "LLMService",
    "MatchingService",
    "TemplateInheritanceService"
]
