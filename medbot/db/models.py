# medbot/db/models.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column, Index
from sqlmodel import Field, SQLModel


# -------------------------
# Helpers
# -------------------------

def utcnow() -> datetime:
    """Timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


# -------------------------
# Base mixins
# -------------------------

class TimeStamped(SQLModel):
    """Common timestamps for auditing."""
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)


# -------------------------
# Medical profile
# -------------------------

class MedicalProfileBase(SQLModel):
    user_id: str = Field(index=True, unique=True, nullable=False)
    conditions: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    allergies: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    medications: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    blood_group: str = Field(default="")
    genotype: str = Field(default="")
    age: int = Field(default=0)
    gender: str = Field(default="")
    country: str = Field(default="Unknown")
    city: Optional[str] = Field(default=None)


class MedicalProfileRecord(MedicalProfileBase, TimeStamped, table=True):
    """One medical profile per user; the pipeline only ever reads it."""
    __tablename__ = "medical_profile"

    id: str = Field(default_factory=new_id, primary_key=True)


# -------------------------
# Conversations
# -------------------------

class ConversationBase(SQLModel):
    user_id: str = Field(index=True, nullable=False)
    query: str = Field(description="Query text as received.")
    # Full MedicalResponse as produced by the pipeline
    response_json: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    conversation_type: str = Field(default="medical_query", index=True)
    response_type: str = Field(default="unknown")
    confidence: float = Field(default=0.0)
    created_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)


class ConversationRecord(ConversationBase, table=True):
    __tablename__ = "conversation"

    # autoincrement keeps insertion order stable for retention
    id: Optional[int] = Field(default=None, primary_key=True)


# -------------------------
# Safety audit
# -------------------------

class SafetyLogBase(SQLModel):
    validation_id: str = Field(index=True, nullable=False)
    query: str = Field(description="Query truncated to 500 characters.")
    result_json: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)


class SafetyLogRecord(SafetyLogBase, table=True):
    """Immutable audit trail of safety validations."""
    __tablename__ = "safety_log"

    id: str = Field(default_factory=new_id, primary_key=True)


class RestrictedDrugRecord(SQLModel, table=True):
    __tablename__ = "restricted_drug"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str = Field(index=True, unique=True, nullable=False)


# -------------------------
# Healthcare professionals
# -------------------------

class HealthcareProfessionalBase(SQLModel):
    name: str = Field(nullable=False)
    email: str = Field(default="", index=True)
    role: str = Field(default="doctor", index=True, description="doctor or nurse")
    specialization: str = Field(default="")
    department: str = Field(default="")
    city: Optional[str] = Field(default=None)
    state: Optional[str] = Field(default=None)
    country: str = Field(default="Unknown")
    is_active: bool = Field(default=True)
    approved: bool = Field(default=False)
    is_available: bool = Field(default=False)
    average_rating: float = Field(default=0.0)
    total_ratings: int = Field(default=0)
    total_consultations: int = Field(default=0)
    # typical minutes to first reply
    response_time: int = Field(default=0)


class HealthcareProfessionalRecord(HealthcareProfessionalBase, table=True):
    __tablename__ = "healthcare_professional"

    id: str = Field(default_factory=new_id, primary_key=True)


# -------------------------
# Table indexes
# -------------------------

Index(
    "ix_conversation_user_created",
    ConversationRecord.__table__.c.user_id,
    ConversationRecord.__table__.c.created_at,
)
