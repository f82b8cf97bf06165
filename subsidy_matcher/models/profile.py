"""
Pydantic models for applicant profiles and their analyzed form
"""
from typing import Any, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

SizeCategory = Literal["TPE", "PME", "ETI", "GE"]


class _Signal(BaseModel):
    """Common shape of a website-intelligence sub-score"""
    score: Optional[float] = Field(None, description="0-100 signal strength")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class InnovationSignal(_Signal):
    indicators: List[str] = Field(default_factory=list)
    technologies: List[str] = Field(default_factory=list)


class SustainabilitySignal(_Signal):
    initiatives: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)


class ExportSignal(_Signal):
    markets: List[str] = Field(default_factory=list)
    multilingual_site: Optional[bool] = Field(None, alias="multilingualSite")


class DigitalSignal(_Signal):
    technologies: List[str] = Field(default_factory=list)
    ecommerce: Optional[bool] = None


class GrowthSignal(_Signal):
    signals: List[str] = Field(default_factory=list)
    recent_investment: Optional[bool] = Field(None, alias="recentInvestment")


class WebsiteIntelligence(BaseModel):
    """Structured data extracted from the applicant's website"""
    company_description: Optional[str] = Field(None, alias="companyDescription")
    business_activities: List[str] = Field(default_factory=list, alias="businessActivities")
    innovations: Optional[InnovationSignal] = None
    sustainability: Optional[SustainabilitySignal] = None
    export: Optional[ExportSignal] = None
    digital: Optional[DigitalSignal] = None
    growth: Optional[GrowthSignal] = None

    @field_validator('business_activities', mode='before')
    @classmethod
    def coerce_null_list(cls, v: Any) -> Any:
        return [] if v is None else v

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ApplicantProfile(BaseModel):
    """Applicant business profile"""
    id: Optional[str] = Field(None, description="Profile identifier")
    company_name: Optional[str] = Field(None, description="Company name")
    siret: Optional[str] = None
    siren: Optional[str] = None
    naf_code: Optional[str] = Field(None, description="Industry (NAF) code")
    naf_label: Optional[str] = Field(None, description="Industry code label")
    sector: Optional[str] = Field(None, description="Declared sector")
    sub_sector: Optional[str] = Field(None, description="Declared sub-sector")
    region: Optional[str] = None
    department: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    employees: Optional[str] = Field(None, description="Employee count or bracket, e.g. '10-49'")
    annual_turnover: Optional[float] = Field(None, description="Annual turnover in euros")
    year_created: Optional[int] = Field(None, description="Founding year")
    legal_form: Optional[str] = Field(None, description="Legal form, e.g. SAS, SARL, GAEC")
    company_category: Optional[str] = None
    project_types: List[str] = Field(default_factory=list, description="Declared project-interest tags")
    certifications: List[str] = Field(default_factory=list)
    description: Optional[str] = Field(None, description="Free-text activity description")
    website_url: Optional[str] = None
    website_intelligence: Optional[WebsiteIntelligence] = None

    @field_validator('id', 'employees', 'siret', 'siren', 'naf_code', 'postal_code', mode='before')
    @classmethod
    def coerce_to_string(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return str(v)

    @field_validator('project_types', 'certifications', mode='before')
    @classmethod
    def coerce_null_list(cls, v: Any) -> Any:
        return [] if v is None else v

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": "p-42",
                "company_name": "Ferme du Causse",
                "naf_code": "01.21Z",
                "naf_label": "Culture de la vigne",
                "region": "Occitanie",
                "employees": "3",
                "year_created": 2019,
                "legal_form": "EARL",
                "certifications": ["Agriculture biologique"],
                "project_types": ["Investissement", "Transition écologique"]
            }
        }
    )


class AnalyzedProfile(BaseModel):
    """Normalized profile used as scoring input"""
    sector: Optional[str] = None
    size_category: SizeCategory = "TPE"
    entity_type: Optional[str] = None
    search_terms: List[str] = Field(default_factory=list)
    thematic_keywords: List[str] = Field(default_factory=list)
    exclusion_keywords: List[str] = Field(default_factory=list)
    project_types: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)
    region: Optional[str] = None
    company_age: Optional[int] = None
    annual_turnover: Optional[float] = None

    model_config = ConfigDict(frozen=True)
