"""
Pydantic models for subsidy records
"""
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

# A text field is either plain text or a map keyed by language code
LocalizedText = Union[str, Dict[str, Optional[str]]]

DEFAULT_LANGUAGE = "fr"


def localized_text(value: Optional[LocalizedText], language: str = DEFAULT_LANGUAGE, fallback: bool = True) -> str:
    """
    Resolve a plain or language-keyed text value

    Args:
        value: Plain string, language map, or None
        language: Preferred language key
        fallback: Use any other non-empty entry when the preferred one is missing

    Returns:
        The resolved text, or an empty string
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    preferred = value.get(language)
    if preferred:
        return preferred
    if fallback:
        for text in value.values():
            if text:
                return text
    return ""


class Subsidy(BaseModel):
    """Subsidy candidate as stored by the ingestion process"""
    id: str = Field(..., description="Subsidy identifier")
    title: LocalizedText = Field(default="", description="Title, plain or per language")
    description: Optional[LocalizedText] = Field(None, description="Description, plain or per language")
    agency: Optional[str] = Field(None, description="Funding agency name")
    region: Optional[List[str]] = Field(None, description="Applicable regions, empty means universal")
    primary_sector: Optional[str] = Field(None, description="Primary sector label")
    categories: Optional[List[str]] = Field(None, description="Free-form category labels")
    keywords: Optional[List[str]] = Field(None, description="Free-form keywords")
    funding_type: Optional[str] = Field(None, description="Funding mechanism type")
    amount_min: Optional[float] = Field(None, description="Minimum award amount")
    amount_max: Optional[float] = Field(None, description="Maximum award amount")
    deadline: Optional[str] = Field(None, description="Application deadline, None when open-ended")
    eligibility_criteria: Optional[LocalizedText] = Field(None, description="Eligibility text")
    legal_entities: Optional[List[str]] = Field(None, description="Eligible legal-entity labels")
    is_universal_sector: bool = Field(False, description="Deliberately sector-agnostic")
    is_active: bool = Field(True, description="Active status")
    is_business_relevant: bool = Field(True, description="Relevant to businesses")

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator('title', mode='before')
    @classmethod
    def coerce_missing_title(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator('deadline', mode='before')
    @classmethod
    def coerce_deadline(cls, v: Any) -> Optional[str]:
        # Mongo returns datetimes, the ingestion API returns ISO strings
        if v is None or isinstance(v, str):
            return v
        if hasattr(v, "isoformat"):
            return v.isoformat()
        return str(v)

    @field_validator('is_universal_sector', 'is_active', 'is_business_relevant', mode='before')
    @classmethod
    def coerce_null_flag(cls, v: Any, info: ValidationInfo) -> bool:
        if v is None:
            return info.field_name != 'is_universal_sector'
        return v

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": "sub-001",
                "title": {"fr": "Aide à l'investissement agricole"},
                "description": {"fr": "Soutien aux exploitations agricoles d'Occitanie"},
                "agency": "Région Occitanie",
                "region": ["Occitanie"],
                "primary_sector": "Agriculture",
                "keywords": ["agriculture", "investissement"],
                "funding_type": "Subvention",
                "amount_max": 150000,
                "legal_entities": ["Exploitation agricole", "PME"],
                "is_universal_sector": False
            }
        }
    )


def get_title(subsidy: Subsidy) -> str:
    """Title text, French first, any language otherwise"""
    return localized_text(subsidy.title)


def get_description(subsidy: Subsidy) -> str:
    """Description text (French only)"""
    return localized_text(subsidy.description, fallback=False)


def get_eligibility(subsidy: Subsidy) -> str:
    """Eligibility criteria text (French only)"""
    return localized_text(subsidy.eligibility_criteria, fallback=False)


def get_subsidy_text(subsidy: Subsidy) -> str:
    """Lowercased title, description and eligibility text for searching"""
    return f"{get_title(subsidy)} {get_description(subsidy)} {get_eligibility(subsidy)}".lower()
