# medbot/runtime/nodes/profile.py
from __future__ import annotations

from typing import Any, Dict

from pocketflow import AsyncNode

from medbot.runtime import outcomes
from medbot.schemas.medical import UserMedicalProfile
from medbot.services.profile_store import load_profile_or_empty


class ProfileLoadNode(AsyncNode):
    """Loads the user's profile from shared["profile_store"]; never fails the run."""

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        return {"store": shared.get("profile_store"), "user_id": shared["user_id"]}

    async def exec_async(self, prep: Dict[str, Any]) -> UserMedicalProfile:
        return await load_profile_or_empty(prep["store"], prep["user_id"])

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: UserMedicalProfile) -> str:
        shared["profile"] = exec_res
        shared.setdefault("stages", []).append("profile_load")
        return outcomes.CONTINUE
