# medbot/services/profile_store.py
from __future__ import annotations

import logging
from typing import Optional, Protocol

from medbot.schemas.medical import UserMedicalProfile

logger = logging.getLogger(__name__)


class ProfileStore(Protocol):
    async def get_medical_profile(self, user_id: str) -> Optional[UserMedicalProfile]: ...


async def load_profile_or_empty(store: Optional[ProfileStore], user_id: str) -> UserMedicalProfile:
    """The user's stored profile; a missing store, profile or a failing read all give the empty profile."""
    if store is None:
        return UserMedicalProfile.empty()
    try:
        return await store.get_medical_profile(user_id) or UserMedicalProfile.empty()
    except Exception as exc:
        logger.warning("Profile load failed for user %s, using empty profile: %s", user_id, exc)
        return UserMedicalProfile.empty()
