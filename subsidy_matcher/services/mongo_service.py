"""
MongoDB service for subsidy and profile storage
"""
import asyncio
import logging
import re
from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient
from pydantic import ValidationError
from pymongo import ASCENDING, DESCENDING

from ..config import Settings
from ..exceptions import StorageError
from ..models.matching import get_current_utc_time
from ..models.profile import ApplicantProfile
from ..models.subsidy import DEFAULT_LANGUAGE, Subsidy, get_eligibility

logger = logging.getLogger(__name__)

NATIONAL_REGION = "National"
HIGH_VALUE_MIN_AMOUNT = 50_000
TEMPLATE_MIN_CRITERIA_LENGTH = 50

ACTIVE_FILTER = {"is_active": True, "is_business_relevant": True}
TEMPLATE_SORT = [("agency", ASCENDING), ("title.fr", ASCENDING)]


def _id_filter(record_id: str) -> Dict[str, Any]:
    """Match a record by its Mongo _id (ObjectId or string) or by its id field"""
    clauses: List[Dict[str, Any]] = [{"_id": record_id}, {"id": record_id}]
    if ObjectId.is_valid(record_id):
        clauses.insert(0, {"_id": ObjectId(record_id)})
    return {"$or": clauses}


def merge_and_dedupe(*batches: Optional[List[Subsidy]]) -> List[Subsidy]:
    """Concatenate query results, keeping the first occurrence of each id"""
    merged: Dict[str, Subsidy] = {}
    for batch in batches:
        for subsidy in batch or []:
            merged.setdefault(subsidy.id, subsidy)
    return list(merged.values())


def document_to_subsidy(doc: Dict[str, Any]) -> Optional[Subsidy]:
    """Build a Subsidy from a stored document, None when the document is unusable"""
    data = dict(doc)
    raw_id = data.pop("_id", None)
    data.setdefault("id", raw_id)
    try:
        return Subsidy(**data)
    except ValidationError as e:
        logger.warning(f"Skipping malformed subsidy document {raw_id}: {e.error_count()} errors")
        return None


class MongoService:
    """Service for MongoDB operations"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.client: Optional[AsyncIOMotorClient] = None
        self.db = None

    async def connect(self):
        """Connect to MongoDB"""
        try:
            self.client = AsyncIOMotorClient(self.settings.mongodb_url)
            self.db = self.client[self.settings.mongodb_db_name]

            # Test connection
            await self.client.admin.command('ping')
            logger.info("Connected to MongoDB successfully")

        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise StorageError(f"Failed to connect to MongoDB: {e}") from e

    async def close(self):
        """Close MongoDB connection"""
        if self.client:
            self.client.close()
            logger.info("MongoDB connection closed")

    async def health_check(self) -> bool:
        """Check MongoDB connection health"""
        if not self.client:
            return False
        try:
            await self.client.admin.command('ping')
            return True
        except Exception:
            return False

    @property
    def subsidies(self):
        return self.db[self.settings.subsidies_collection]

    async def _find_subsidies(self, query: Dict[str, Any], limit: int, sort=None) -> List[Subsidy]:
        cursor = self.subsidies.find(query)
        if sort:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(limit)
        subsidies = []
        async for doc in cursor:
            subsidy = document_to_subsidy(doc)
            if subsidy:
                subsidies.append(subsidy)
        return subsidies

    # Candidate selection
    async def get_candidate_subsidies(self, region: Optional[str], sector: Optional[str],
                                      limit: Optional[int] = None) -> List[Subsidy]:
        """
        Fetch scoring candidates with three targeted queries run concurrently

        Args:
            region: Profile region, if known
            sector: Resolved profile sector, if known
            limit: Per-query limit for the region query

        Returns:
            Merged candidates, de-duplicated by id in query order

        Raises:
            StorageError: Every query failed
        """
        limit = limit or self.settings.db_query_limit

        region_clauses: List[Dict[str, Any]] = [
            {"region": NATIONAL_REGION},
            {"region": None},
            {"region": {"$size": 0}},
        ]
        if region:
            region_clauses.insert(0, {"region": region})

        queries = {
            "region": self._find_subsidies({**ACTIVE_FILTER, "$or": region_clauses}, limit),
            "national": self._find_subsidies(
                {**ACTIVE_FILTER, "region": NATIONAL_REGION, "amount_max": {"$gte": HIGH_VALUE_MIN_AMOUNT}},
                self.settings.national_query_limit,
                sort=[("amount_max", DESCENDING)]
            ),
        }
        if sector:
            queries["sector"] = self._find_subsidies(
                {**ACTIVE_FILTER, "primary_sector": {"$regex": re.escape(sector), "$options": "i"}},
                self.settings.sector_query_limit
            )

        names = list(queries)
        results = await asyncio.gather(*queries.values(), return_exceptions=True)

        batches: Dict[str, List[Subsidy]] = {}
        for name, result in zip(names, results):
            if isinstance(result, Exception):
                logger.error(f"Candidate {name} query failed: {result}")
            else:
                batches[name] = result

        if not batches:
            raise StorageError("All candidate queries failed")

        candidates = merge_and_dedupe(batches.get("region"), batches.get("sector"), batches.get("national"))
        logger.info(f"Fetched {len(candidates)} unique candidates")
        return candidates

    # Template inheritance selections
    async def get_template_subsidies(self) -> List[Subsidy]:
        """Active subsidies whose French eligibility text is longer than 50 characters"""
        try:
            subsidies = await self._find_subsidies(
                {**ACTIVE_FILTER, "eligibility_criteria": {"$ne": None}},
                0,
                sort=TEMPLATE_SORT
            )
        except Exception as e:
            logger.error(f"Failed to get template subsidies: {e}")
            raise StorageError(f"Failed to get template subsidies: {e}") from e
        return [s for s in subsidies if len(get_eligibility(s)) > TEMPLATE_MIN_CRITERIA_LENGTH]

    async def get_incomplete_subsidies(self, limit: int) -> List[Subsidy]:
        """Active subsidies with no eligibility text"""
        query = {
            **ACTIVE_FILTER,
            "$or": [
                {"eligibility_criteria": None},
                {"eligibility_criteria": ""},
                {"eligibility_criteria": {}},
                {"eligibility_criteria.fr": {"$in": [None, ""]}},
            ],
        }
        try:
            subsidies = await self._find_subsidies(query, limit, sort=TEMPLATE_SORT)
        except Exception as e:
            logger.error(f"Failed to get incomplete subsidies: {e}")
            raise StorageError(f"Failed to get incomplete subsidies: {e}") from e
        return [s for s in subsidies if not get_eligibility(s).strip()]

    # Profile operations
    async def get_profile(self, profile_id: str) -> Optional[ApplicantProfile]:
        """Get an applicant profile by id"""
        try:
            doc = await self.db[self.settings.profiles_collection].find_one(_id_filter(profile_id))
        except Exception as e:
            logger.error(f"Failed to get profile {profile_id}: {e}")
            raise StorageError(f"Failed to get profile {profile_id}: {e}") from e

        if not doc:
            return None
        data = dict(doc)
        raw_id = data.pop("_id", None)
        data.setdefault("id", raw_id)
        return ApplicantProfile(**data)

    # Write path
    async def update_eligibility_criteria(self, subsidy_id: str, criteria: str) -> bool:
        """
        Replace a subsidy's eligibility criteria with French text

        Returns:
            True when a subsidy was matched
        """
        try:
            result = await self.subsidies.update_one(
                _id_filter(subsidy_id),
                {"$set": {
                    "eligibility_criteria": {DEFAULT_LANGUAGE: criteria},
                    "updated_at": get_current_utc_time()
                }}
            )
        except Exception as e:
            logger.error(f"Failed to update eligibility criteria for {subsidy_id}: {e}")
            raise StorageError(f"Failed to update eligibility criteria for {subsidy_id}: {e}") from e

        if result.matched_count == 0:
            logger.warning(f"No subsidy matched id {subsidy_id} for criteria update")
            return False
        logger.info(f"Eligibility criteria updated: {subsidy_id}")
        return True

    async def log_compliance_event(self, event: Dict[str, Any]) -> bool:
        """Record a recommendation audit event; failures are logged, never raised"""
        try:
            await self.db[self.settings.compliance_collection].insert_one(
                {**event, "created_at": get_current_utc_time()}
            )
            return True
        except Exception as e:
            logger.error(f"Failed to log compliance event: {e}")
            return False
