# medbot/runtime/nodes/persist.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pocketflow import AsyncNode

from medbot.schemas.medical import MedicalResponse

logger = logging.getLogger(__name__)


class ConversationLogNode(AsyncNode):
    """
    Persist a finished query/response pair.
    - prep_async: snapshot inputs (no side-effects)
    - exec_async: single repo write
    - exec_fallback_async: swallow and log; logging never affects the reply
    """

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        response: MedicalResponse = shared["response"]
        return {
            "repo": shared["repo"],
            "user_id": shared["user_id"],
            "query": str(shared.get("query", "")),
            "response": response.model_copy(deep=True),
            "conversation_type": shared.get("conversation_type", "medical_query"),
        }

    async def exec_async(self, prep: Dict[str, Any]) -> Optional[int]:
        record = await prep["repo"].save_conversation(
            prep["user_id"],
            prep["query"],
            prep["response"],
            prep["conversation_type"],
        )
        return getattr(record, "id", None)

    async def exec_fallback_async(self, prep: Dict[str, Any], exc: Exception) -> None:
        logger.warning("Failed to save conversation for user %s: %s", prep["user_id"], exc)
        return None

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: Optional[int]) -> str:
        shared["conversation_id"] = exec_res
        shared["conversation_saved"] = exec_res is not None
        return "saved" if exec_res is not None else "skipped"
