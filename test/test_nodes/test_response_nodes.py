# test/test_nodes/test_response_nodes.py
import time
from typing import Any, Dict

import pytest
from pocketflow import AsyncFlow as Flow

from medbot.runtime.nodes.responses import (
    CRISIS_SUPPORT,
    BlockedResponseNode,
    EmergencyResponseNode,
    ErrorResponseNode,
    blocked_response,
    emergency_response,
)
from medbot.schemas.medical import EmergencyCheckResult, SafetyValidationResult


def _base() -> Dict[str, Any]:
    return {"query_id": "q-9", "started": time.perf_counter()}


@pytest.mark.asyncio
async def test_emergency_node_produces_alert():
    shared = _base()
    shared["emergency"] = EmergencyCheckResult(
        is_emergency=True,
        condition="Myocardial infarction",
        trigger_keywords=["heart attack"],
        required_action="Call emergency services immediately",
        emergency_number="911",
        country_code="US",
    )
    node = EmergencyResponseNode()
    node.successors = {}

    assert await Flow(start=node).run_async(shared) == "emergency"

    response = shared["response"]
    assert response.type == "emergency"
    assert response.confidence == 1.0
    assert response.safety_warnings[0] == "EMERGENCY SITUATION DETECTED"
    assert "Dial 911 (US)" in response.response
    assert "heart attack" in response.response
    assert response.metadata.model_used == "emergency_alert"


def test_emergency_without_number_uses_generic_dial():
    check = EmergencyCheckResult(is_emergency=True, condition="Seizure", trigger_keywords=["seizure"])
    response = emergency_response(check, "q", time.perf_counter())
    assert "Dial your local emergency number" in response.response


@pytest.mark.asyncio
async def test_blocked_node_reports_reason():
    shared = _base()
    shared["safety"] = SafetyValidationResult(
        is_safe=False, reason="Restricted topic: steroids", warnings=["Information about steroids requires professional consultation"]
    )
    node = BlockedResponseNode()
    node.successors = {}

    assert await Flow(start=node).run_async(shared) == "blocked"

    response = shared["response"]
    assert response.confidence == 0.0
    assert "Reason: Restricted topic: steroids" in response.response
    assert CRISIS_SUPPORT not in response.response
    assert response.metadata.model_used == "safety_filter"


def test_blocked_self_harm_includes_crisis_support():
    safety = SafetyValidationResult(is_safe=False, reason="Self-harm risk detected", emergency_level="high")
    response = blocked_response(safety, "q", time.perf_counter())
    assert CRISIS_SUPPORT in response.response
    assert response.recommendations[0].startswith("Contact a crisis support line")


@pytest.mark.asyncio
async def test_error_node_hides_details():
    shared = _base()
    shared["generation_error"] = "secret upstream stacktrace"
    node = ErrorResponseNode()
    node.successors = {}

    assert await Flow(start=node).run_async(shared) == "error"

    response = shared["response"]
    assert response.confidence == 0.0
    assert response.safety_warnings == ["System error occurred"]
    assert "secret upstream" not in response.response
    assert response.metadata.model_used == "error"
