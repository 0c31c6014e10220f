from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from medbot.schemas.medical import MedicalResponse, ProfessionalRecommendation, QueryContext


class MedicalQueryIn(BaseModel):
    user_id: str
    query: str
    context: Optional[QueryContext] = None


class MedicalQueryOut(BaseModel):
    success: bool
    response: MedicalResponse


class ConversationView(BaseModel):
    id: int
    query: str
    response: Dict[str, Any]
    response_type: str
    confidence: float
    created_at: datetime


class ConditionsUpdate(BaseModel):
    conditions: List[str] = Field(default_factory=list)


class WelcomeOut(BaseModel):
    message: str


class ProfessionalsOut(BaseModel):
    success: bool
    recommendations: List[ProfessionalRecommendation] = Field(default_factory=list)
