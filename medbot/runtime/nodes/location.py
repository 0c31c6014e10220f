# medbot/runtime/nodes/location.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pocketflow import AsyncNode

from medbot.runtime import outcomes
from medbot.schemas.medical import LocationMedicalInfo, QueryContext, UserMedicalProfile
from medbot.services.location_info import LocationBasedMedicalInfo, default_medical_context

logger = logging.getLogger(__name__)


class LocationContextNode(AsyncNode):
    """Country context for the prompt; any failure yields the default context."""

    def __init__(self, location_info: LocationBasedMedicalInfo, **kwargs):
        super().__init__(**kwargs)
        self.location_info = location_info

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        profile: UserMedicalProfile = shared["profile"]
        context: Optional[QueryContext] = shared.get("context")
        location = context.location if context and context.location else profile.location
        return {"country": location.country, "city": location.city}

    async def exec_async(self, prep: Dict[str, Any]) -> LocationMedicalInfo:
        return await self.location_info.get_medical_context(prep["country"], prep["city"])

    async def exec_fallback_async(self, prep: Dict[str, Any], exc: Exception) -> LocationMedicalInfo:
        logger.warning("Location lookup failed for %r, using default context: %s", prep["country"], exc)
        return default_medical_context(prep["city"])

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: LocationMedicalInfo) -> str:
        shared["location_info"] = exec_res
        shared["location_aware"] = exec_res.country != "Unknown"
        shared.setdefault("stages", []).append("location_context")
        return outcomes.CONTINUE
