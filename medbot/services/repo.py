# medbot/services/repo.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Union

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from medbot import config
from medbot.db.models import (
    ConversationRecord,
    HealthcareProfessionalRecord,
    MedicalProfileRecord,
    RestrictedDrugRecord,
    SafetyLogRecord,
    utcnow,
)
from medbot.schemas.medical import Location, MedicalResponse, UserMedicalProfile

logger = logging.getLogger(__name__)

PROFESSIONAL_ROLES = ("doctor", "nurse")


class Repo:
    """
    Data Access Layer for profiles, conversations and the safety audit trail.

    Usage patterns:
      - Simple read/write (auto session/commit):
          await repo.save_conversation(...)

      - Composed writes with atomicity:
          async with repo.transaction() as s:
              await repo.update_medical_conditions(..., session=s)
              await repo.log_safety_check(..., session=s)
              # any error -> full rollback
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        history_limit: int = config.CONVERSATION_HISTORY_LIMIT,
    ):
        self._session_factory = session_factory
        self.history_limit = history_limit

    # ---------------------------
    # Transactions
    # ---------------------------
    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Yield a session with an active transaction. Rollbacks on exception."""
        async with self._session_factory() as session:
            async with session.begin():
                yield session

    @asynccontextmanager
    async def _scope(self, session: Optional[AsyncSession]) -> AsyncIterator[AsyncSession]:
        """Use the caller's session, or open one that commits on success."""
        if session is not None:
            yield session
            return

        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # ---------------------------
    # Medical profiles
    # ---------------------------
    async def _profile_record(self, session: AsyncSession, user_id: str) -> Optional[MedicalProfileRecord]:
        stmt = select(MedicalProfileRecord).where(MedicalProfileRecord.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def get_medical_profile(
        self,
        user_id: str,
        *,
        session: Optional[AsyncSession] = None,
    ) -> Optional[UserMedicalProfile]:
        """Return the stored profile, or None when the user has none."""
        async with self._scope(session) as s:
            record = await self._profile_record(s, user_id)
            if record is None:
                return None
            return UserMedicalProfile(
                conditions=list(record.conditions or []),
                allergies=list(record.allergies or []),
                medications=list(record.medications or []),
                blood_group=record.blood_group,
                genotype=record.genotype,
                age=record.age,
                gender=record.gender,
                location=Location(country=record.country, city=record.city),
            )

    async def save_medical_profile(
        self,
        user_id: str,
        profile: UserMedicalProfile,
        *,
        session: Optional[AsyncSession] = None,
    ) -> MedicalProfileRecord:
        """Insert or replace the user's profile."""
        values = dict(
            conditions=list(profile.conditions),
            allergies=list(profile.allergies),
            medications=list(profile.medications),
            blood_group=profile.blood_group,
            genotype=profile.genotype,
            age=profile.age,
            gender=profile.gender,
            country=profile.location.country,
            city=profile.location.city,
        )
        async with self._scope(session) as s:
            record = await self._profile_record(s, user_id)
            if record is None:
                record = MedicalProfileRecord(user_id=user_id, **values)
                s.add(record)
            else:
                for key, value in values.items():
                    setattr(record, key, value)
                record.updated_at = utcnow()
            await s.flush()
            return record

    async def update_medical_conditions(
        self,
        user_id: str,
        conditions: List[str],
        *,
        session: Optional[AsyncSession] = None,
    ) -> bool:
        """Set the user's conditions, creating a bare profile if none exists."""
        async with self._scope(session) as s:
            record = await self._profile_record(s, user_id)
            if record is None:
                s.add(MedicalProfileRecord(user_id=user_id, conditions=list(conditions)))
            else:
                record.conditions = list(conditions)
                record.updated_at = utcnow()
            await s.flush()
        return True

    # ---------------------------
    # Conversations
    # ---------------------------
    async def save_conversation(
        self,
        user_id: str,
        query: str,
        response: Union[MedicalResponse, Dict[str, Any]],
        conversation_type: str = "medical_query",
        *,
        session: Optional[AsyncSession] = None,
    ) -> ConversationRecord:
        """Append a conversation and trim the user's history to the newest ``history_limit``."""
        payload = response.model_dump(mode="json") if isinstance(response, MedicalResponse) else dict(response)
        async with self._scope(session) as s:
            record = ConversationRecord(
                user_id=user_id,
                query=query,
                response_json=payload,
                conversation_type=conversation_type,
                response_type=str(payload.get("type", "unknown")),
                confidence=float(payload.get("confidence", 0.0) or 0.0),
            )
            s.add(record)
            await s.flush()
            await self._trim_history(s, user_id)
            return record

    async def _trim_history(self, session: AsyncSession, user_id: str) -> None:
        total = await session.scalar(
            select(func.count()).select_from(ConversationRecord).where(ConversationRecord.user_id == user_id)
        )
        if not total or total <= self.history_limit:
            return
        stale = (
            select(ConversationRecord.id)
            .where(ConversationRecord.user_id == user_id)
            .order_by(ConversationRecord.id.desc())
            .offset(self.history_limit)
        )
        stale_ids = list((await session.execute(stale)).scalars().all())
        await session.execute(delete(ConversationRecord).where(ConversationRecord.id.in_(stale_ids)))
        logger.debug("Trimmed %d old conversations for user %s", len(stale_ids), user_id)

    async def get_conversation_history(
        self,
        user_id: str,
        limit: int = 50,
        *,
        session: Optional[AsyncSession] = None,
    ) -> List[ConversationRecord]:
        """Newest first."""
        async with self._scope(session) as s:
            stmt = (
                select(ConversationRecord)
                .where(ConversationRecord.user_id == user_id)
                .order_by(ConversationRecord.id.desc())
                .limit(limit)
            )
            result = await s.execute(stmt)
            return list(result.scalars().all())

    async def clear_conversation(
        self,
        user_id: str,
        *,
        session: Optional[AsyncSession] = None,
    ) -> int:
        async with self._scope(session) as s:
            result = await s.execute(delete(ConversationRecord).where(ConversationRecord.user_id == user_id))
            return result.rowcount or 0

    # ---------------------------
    # Safety data
    # ---------------------------
    async def get_restricted_drugs(self, *, session: Optional[AsyncSession] = None) -> List[str]:
        async with self._scope(session) as s:
            result = await s.execute(select(RestrictedDrugRecord.name).order_by(RestrictedDrugRecord.name))
            return list(result.scalars().all())

    async def add_restricted_drug(self, name: str, *, session: Optional[AsyncSession] = None) -> None:
        async with self._scope(session) as s:
            s.add(RestrictedDrugRecord(name=name.lower()))
            await s.flush()

    async def log_safety_check(
        self,
        entry: Dict[str, Any],
        *,
        session: Optional[AsyncSession] = None,
    ) -> None:
        """Write a safety audit entry. If no session provided, autocommits."""
        timestamp = entry.get("timestamp")
        async with self._scope(session) as s:
            s.add(SafetyLogRecord(
                validation_id=str(entry["validation_id"]),
                query=str(entry.get("query", ""))[:500],
                result_json=dict(entry.get("result") or {}),
                created_at=timestamp if isinstance(timestamp, datetime) else utcnow(),
            ))
            await s.flush()

    async def list_safety_logs(
        self,
        *,
        limit: int = 50,
        session: Optional[AsyncSession] = None,
    ) -> List[SafetyLogRecord]:
        async with self._scope(session) as s:
            stmt = select(SafetyLogRecord).order_by(SafetyLogRecord.created_at.desc()).limit(limit)
            result = await s.execute(stmt)
            return list(result.scalars().all())

    # ---------------------------
    # Healthcare professionals
    # ---------------------------
    async def add_healthcare_professional(
        self,
        professional: HealthcareProfessionalRecord,
        *,
        session: Optional[AsyncSession] = None,
    ) -> HealthcareProfessionalRecord:
        async with self._scope(session) as s:
            s.add(professional)
            await s.flush()
            return professional

    async def find_healthcare_professionals(
        self,
        *,
        specialization: Optional[str] = None,
        location: Optional[str] = None,
        availability: bool = False,
        min_rating: Optional[float] = None,
        limit: int = 20,
        session: Optional[AsyncSession] = None,
    ) -> List[HealthcareProfessionalRecord]:
        """
        Active, approved doctors and nurses. ``specialization`` and ``location``
        are case-insensitive substring filters; ``location`` matches city, state
        or country.
        """
        P = HealthcareProfessionalRecord
        stmt = select(P).where(
            P.role.in_(PROFESSIONAL_ROLES),
            P.is_active.is_(True),
            P.approved.is_(True),
        )
        if specialization:
            stmt = stmt.where(P.specialization.ilike(f"%{specialization}%"))
        if location:
            pattern = f"%{location}%"
            stmt = stmt.where(or_(P.city.ilike(pattern), P.state.ilike(pattern), P.country.ilike(pattern)))
        if availability:
            stmt = stmt.where(P.is_available.is_(True))
        if min_rating is not None:
            stmt = stmt.where(P.average_rating >= min_rating)

        async with self._scope(session) as s:
            result = await s.execute(stmt.limit(limit))
            return list(result.scalars().all())
