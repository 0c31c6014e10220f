# medbot/runtime/nodes/responses.py
from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict

from pocketflow import AsyncNode

from medbot.runtime import outcomes
from medbot.schemas.medical import (
    EmergencyCheckResult,
    MedicalResponse,
    ResponseMetadata,
    SafetyValidationResult,
)

EMERGENCY_MODEL = "emergency_alert"
BLOCKED_MODEL = "safety_filter"
ERROR_MODEL = "error"

EMERGENCY_WARNINGS = [
    "EMERGENCY SITUATION DETECTED",
    "IMMEDIATE PROFESSIONAL HELP REQUIRED",
    "DO NOT DELAY SEEKING MEDICAL ATTENTION",
]

CRISIS_SUPPORT = (
    "If you are thinking about harming yourself or someone else, please contact a crisis "
    "line or emergency services right now. You do not have to go through this alone."
)


def build_metadata(query_id: str, started: float, model_used: str) -> ResponseMetadata:
    """``started`` is a ``time.perf_counter()`` reading."""
    return ResponseMetadata(
        query_id=query_id,
        processed_at=datetime.now(timezone.utc).isoformat(),
        response_time=max(0, int((time.perf_counter() - started) * 1000)),
        model_used=model_used,
    )


def emergency_response(check: EmergencyCheckResult, query_id: str, started: float) -> MedicalResponse:
    if check.emergency_number:
        code = f" ({check.country_code})" if check.country_code else ""
        dial = f"Dial {check.emergency_number}{code}"
    else:
        dial = "Dial your local emergency number"

    text = (
        "EMERGENCY ALERT\n\n"
        f'Your query mentions "{", ".join(check.trigger_keywords)}" which may indicate a medical emergency.\n\n'
        "IMMEDIATE ACTION REQUIRED:\n\n"
        "1. Call Emergency Services Now:\n"
        f"   - {dial}\n"
        "   - Or go to the nearest emergency room immediately\n\n"
        "2. Do NOT wait:\n"
        f"   - {check.condition} requires immediate medical attention\n"
        f"   - {check.required_action}\n"
        "   - Do not attempt to self-treat\n\n"
        "3. While waiting for help:\n"
        "   - Stay calm and follow dispatcher instructions\n"
        "   - Have someone stay with you if possible\n"
        "   - Prepare your ID and insurance information"
    )
    return MedicalResponse(
        response=text,
        type="emergency",
        confidence=1.0,
        safety_warnings=list(EMERGENCY_WARNINGS),
        recommendations=[
            "Call emergency services immediately",
            "Go to the nearest hospital emergency room",
            "Do not attempt to drive yourself",
        ],
        disclaimer="This is an automated emergency alert. Actual emergency protocols may vary by location.",
        metadata=build_metadata(query_id, started, EMERGENCY_MODEL),
    )


def blocked_response(safety: SafetyValidationResult, query_id: str, started: float) -> MedicalResponse:
    text = (
        "QUERY BLOCKED FOR SAFETY REASONS\n\n"
        "I cannot provide information on this topic due to safety restrictions.\n\n"
        f"Reason: {safety.reason}\n\n"
        "Alternative Actions:\n"
        "1. Consult with a licensed healthcare professional\n"
        "2. Contact emergency services if this is urgent\n"
        "3. Speak with a pharmacist for medication questions"
    )
    recommendations = [
        "Consult a licensed healthcare professional",
        "Do not self-diagnose or self-treat",
    ]
    if safety.emergency_level in ("high", "critical"):
        text += f"\n\n{CRISIS_SUPPORT}"
        recommendations.insert(0, "Contact a crisis support line or emergency services now")

    return MedicalResponse(
        response=text,
        type="general_info",
        confidence=0.0,
        safety_warnings=list(safety.warnings),
        recommendations=recommendations,
        disclaimer="This response was blocked by safety protocols to prevent potential harm.",
        metadata=build_metadata(query_id, started, BLOCKED_MODEL),
    )


def error_response(query_id: str, started: float) -> MedicalResponse:
    text = (
        "I apologize, but I encountered an error while processing your medical query.\n\n"
        "What you can do:\n"
        "1. Try rephrasing your question\n"
        "2. Contact our support team\n"
        "3. Consult directly with a healthcare professional\n\n"
        "Important: For urgent medical concerns, please contact emergency services "
        "or visit the nearest healthcare facility immediately."
    )
    return MedicalResponse(
        response=text,
        type="general_info",
        confidence=0.0,
        safety_warnings=["System error occurred"],
        recommendations=["Please try again or contact support"],
        disclaimer=(
            "This response was generated due to a system error. "
            "Please verify with a healthcare professional."
        ),
        metadata=build_metadata(query_id, started, ERROR_MODEL),
    )


class EmergencyResponseNode(AsyncNode):
    """Terminal: templated emergency reply, nothing downstream runs."""

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        return {"check": shared["emergency"], "query_id": shared["query_id"], "started": shared["started"]}

    async def exec_async(self, prep: Dict[str, Any]) -> MedicalResponse:
        return emergency_response(prep["check"], prep["query_id"], prep["started"])

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: MedicalResponse) -> str:
        shared["response"] = exec_res
        return outcomes.EMERGENCY


class BlockedResponseNode(AsyncNode):
    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        return {"safety": shared["safety"], "query_id": shared["query_id"], "started": shared["started"]}

    async def exec_async(self, prep: Dict[str, Any]) -> MedicalResponse:
        return blocked_response(prep["safety"], prep["query_id"], prep["started"])

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: MedicalResponse) -> str:
        shared["response"] = exec_res
        return outcomes.BLOCKED


class ErrorResponseNode(AsyncNode):
    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        return {"query_id": shared["query_id"], "started": shared["started"]}

    async def exec_async(self, prep: Dict[str, Any]) -> MedicalResponse:
        return error_response(prep["query_id"], prep["started"])

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: MedicalResponse) -> str:
        shared["response"] = exec_res
        return outcomes.ERROR
