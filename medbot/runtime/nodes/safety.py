# medbot/runtime/nodes/safety.py
from __future__ import annotations

import logging
from typing import Any, Dict

from pocketflow import AsyncNode

from medbot.logging_utils import log_pipeline_event
from medbot.runtime import outcomes
from medbot.schemas.medical import SafetyValidationResult
from medbot.services.guardrail import SafetyGuardrail

logger = logging.getLogger(__name__)


class SafetyValidationNode(AsyncNode):
    """Routes "blocked" when the query is not safe. Fails closed."""

    def __init__(self, guardrail: SafetyGuardrail, **kwargs):
        super().__init__(**kwargs)
        self.guardrail = guardrail

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        return {"query": shared["query"], "profile": shared["profile"]}

    async def exec_async(self, prep: Dict[str, Any]) -> SafetyValidationResult:
        return await self.guardrail.validate_query(prep["query"], prep["profile"])

    async def exec_fallback_async(self, prep: Dict[str, Any], exc: Exception) -> SafetyValidationResult:
        logger.error("Safety validation raised, failing closed: %s", exc)
        return SafetyValidationResult.fail_closed()

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: SafetyValidationResult) -> str:
        shared["safety"] = exec_res
        shared.setdefault("stages", []).append("safety_validation")
        log_pipeline_event(logger, "safety", "validated", {
            "is_safe": exec_res.is_safe,
            "review": exec_res.requires_professional_review,
            "level": exec_res.emergency_level,
        })
        if not exec_res.is_safe:
            return outcomes.BLOCKED
        return outcomes.CONTINUE
