# medbot/runtime/nodes/context.py
from __future__ import annotations

import logging
from typing import Any, Dict

from pocketflow import AsyncNode

from medbot.runtime import outcomes
from medbot.services.context_builder import MedicalContextBuilder

logger = logging.getLogger(__name__)


class ContextBuildNode(AsyncNode):
    def __init__(self, builder: MedicalContextBuilder, **kwargs):
        super().__init__(**kwargs)
        self.builder = builder

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "query": shared["query"],
            "profile": shared["profile"],
            "context": shared.get("context"),
        }

    async def exec_async(self, prep: Dict[str, Any]) -> str:
        return await self.builder.build_prompt(prep["query"], prep["profile"], prep["context"])

    async def exec_fallback_async(self, prep: Dict[str, Any], exc: Exception) -> str:
        logger.warning("Context build failed, using raw query: %s", exc)
        return prep["query"]

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: str) -> str:
        shared["prompt"] = exec_res
        shared.setdefault("stages", []).append("context_build")
        return outcomes.CONTINUE
