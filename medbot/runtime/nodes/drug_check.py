# medbot/runtime/nodes/drug_check.py
from __future__ import annotations

import logging
from typing import Any, Dict, List

from pocketflow import AsyncNode

from medbot.runtime import outcomes
from medbot.services.drug_interactions import DrugInteractionChecker

logger = logging.getLogger(__name__)


class DrugCheckNode(AsyncNode):
    """Post-filter over the generated text. Warnings never block delivery."""

    def __init__(self, checker: DrugInteractionChecker, **kwargs):
        super().__init__(**kwargs)
        self.checker = checker

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        return {"text": shared["generated"], "medications": list(shared["profile"].medications)}

    async def exec_async(self, prep: Dict[str, Any]) -> List[str]:
        if not prep["medications"]:
            return []
        return await self.checker.check_interactions(prep["text"], prep["medications"])

    async def exec_fallback_async(self, prep: Dict[str, Any], exc: Exception) -> List[str]:
        logger.warning("Drug interaction check failed, no warnings added: %s", exc)
        return []

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: List[str]) -> str:
        shared["drug_warnings"] = exec_res
        shared.setdefault("stages", []).append("drug_check")
        return outcomes.CONTINUE
