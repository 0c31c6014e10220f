# medbot/runtime/nodes/assemble.py
from __future__ import annotations

from typing import Any, Dict

from pocketflow import AsyncNode

from medbot.runtime import outcomes
from medbot.runtime.nodes.responses import build_metadata
from medbot.schemas.medical import MedicalResponse
from medbot.services.response_builder import (
    calculate_confidence,
    classify_response_type,
    format_medical_response,
    generate_disclaimer,
    generate_recommendations,
)


class AssembleResponseNode(AsyncNode):
    """Terminal: builds the SUCCESS response from everything gathered upstream."""

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "query": shared["query"],
            "generated": shared["generated"],
            "profile": shared["profile"],
            "safety_warnings": list(shared["safety"].warnings),
            "drug_warnings": list(shared.get("drug_warnings", [])),
            "safety_checked": bool(shared.get("safety_checked")),
            "location_aware": bool(shared.get("location_aware")),
            "model_used": shared["model_used"],
            "query_id": shared["query_id"],
            "started": shared["started"],
        }

    async def exec_async(self, prep: Dict[str, Any]) -> MedicalResponse:
        profile = prep["profile"]
        return MedicalResponse(
            response=format_medical_response(prep["generated"], prep["drug_warnings"]),
            type=classify_response_type(prep["query"]),
            confidence=calculate_confidence(prep["safety_checked"], prep["location_aware"]),
            safety_warnings=prep["safety_warnings"] + prep["drug_warnings"],
            recommendations=generate_recommendations(profile),
            disclaimer=generate_disclaimer(profile),
            metadata=build_metadata(prep["query_id"], prep["started"], prep["model_used"]),
        )

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: MedicalResponse) -> str:
        shared["response"] = exec_res
        return outcomes.SUCCESS
