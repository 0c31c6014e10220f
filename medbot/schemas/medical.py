from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

EmergencyLevel = Literal["none", "low", "medium", "high", "critical"]
InteractionSeverity = Literal["minor", "moderate", "major", "contraindicated"]
ResponseType = Literal["general_info", "symptom_analysis", "drug_info", "emergency", "referral"]


class Location(BaseModel):
    country: str = "Unknown"
    city: Optional[str] = None


class QueryContext(BaseModel):
    symptoms: List[str] = Field(default_factory=list)
    duration: Optional[str] = None
    severity: Optional[Literal["mild", "moderate", "severe"]] = None
    previous_conditions: List[str] = Field(default_factory=list)
    location: Optional[Location] = None


class MedicalQuery(BaseModel):
    text: str
    user_id: str
    context: Optional[QueryContext] = None


class UserMedicalProfile(BaseModel):
    conditions: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    medications: List[str] = Field(default_factory=list)
    blood_group: str = ""
    genotype: str = ""
    age: int = 0
    gender: str = ""
    location: Location = Field(default_factory=Location)

    @classmethod
    def empty(cls) -> "UserMedicalProfile":
        return cls()

    def location_label(self) -> str:
        if self.location.city:
            return f"{self.location.country}, {self.location.city}"
        return self.location.country


class EmergencyCheckResult(BaseModel):
    is_emergency: bool = False
    condition: str = ""
    trigger_keywords: List[str] = Field(default_factory=list)
    required_action: str = ""
    emergency_number: Optional[str] = None
    country_code: Optional[str] = None


class SafetyValidationResult(BaseModel):
    is_safe: bool = True
    reason: str = ""
    warnings: List[str] = Field(default_factory=list)
    requires_professional_review: bool = False
    emergency_level: EmergencyLevel = "none"

    @classmethod
    def fail_closed(cls) -> "SafetyValidationResult":
        """An unevaluable query is never treated as safe."""
        return cls(
            is_safe=False,
            reason="Safety validation system error",
            warnings=["System error - defaulting to restricted mode"],
            requires_professional_review=True,
            emergency_level="medium",
        )


class DrugInteraction(BaseModel):
    drug1: str
    drug2: str
    severity: InteractionSeverity
    description: str
    mechanism: Optional[str] = None
    recommendation: str


class LocationMedicalInfo(BaseModel):
    country: str
    city: Optional[str] = None
    emergency_number: str
    common_diseases: List[str] = Field(default_factory=list)
    vaccination_requirements: List[str] = Field(default_factory=list)
    healthcare_system_info: str = ""
    drug_regulations: List[str] = Field(default_factory=list)
    climate_considerations: List[str] = Field(default_factory=list)


class ResponseMetadata(BaseModel):
    query_id: str
    processed_at: str
    response_time: int = Field(0, ge=0, description="Elapsed milliseconds")
    model_used: str


class MedicalResponse(BaseModel):
    response: str
    type: ResponseType
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    safety_warnings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    disclaimer: str = ""
    metadata: ResponseMetadata


class ProfessionalLocation(BaseModel):
    city: Optional[str] = None
    state: Optional[str] = None
    country: str = "Unknown"


class ProfessionalRecommendation(BaseModel):
    id: str
    name: str
    specialization: str = ""
    rating: float = 0.0
    total_ratings: int = 0
    response_time: int = 0
    availability: bool = False
    location: ProfessionalLocation = Field(default_factory=ProfessionalLocation)
