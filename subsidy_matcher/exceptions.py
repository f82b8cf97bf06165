"""
Exception types raised at the service boundaries
"""
from typing import Optional


class SubsidyMatcherError(Exception):
    """Base class for all service errors"""


class StorageError(SubsidyMatcherError):
    """The storage collaborator failed to answer a query or apply a write"""


class ProfileNotFoundError(SubsidyMatcherError):
    """No applicant profile exists for the requested id"""

    def __init__(self, profile_id: str):
        super().__init__(f"Profile not found: {profile_id}")
        self.profile_id = profile_id


class LLMServiceError(SubsidyMatcherError):
    """The AI provider call failed"""

    def __init__(self, message: str, status_code: Optional[int] = None, retryable: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class LLMTimeoutError(LLMServiceError):
    """The AI provider did not answer in time"""

    def __init__(self, message: str = "AI request timed out"):
        super().__init__(message, status_code=None, retryable=True)
