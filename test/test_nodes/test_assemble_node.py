# test/test_nodes/test_assemble_node.py
import time
from typing import Any, Dict

import pytest
from pocketflow import AsyncFlow as Flow

from medbot.runtime.nodes.assemble import AssembleResponseNode
from medbot.schemas.medical import SafetyValidationResult


@pytest.mark.asyncio
async def test_assemble_builds_success_response(warfarin_profile):
    shared: Dict[str, Any] = {
        "query": "Which drug helps with my knee pain?",
        "generated": "Ibuprofen is commonly used.",
        "profile": warfarin_profile,
        "safety": SafetyValidationResult(warnings=["Review with a clinician"]),
        "drug_warnings": ["WARN-1"],
        "safety_checked": True,
        "location_aware": True,
        "model_used": "gemini-test",
        "query_id": "q-1",
        "started": time.perf_counter(),
    }
    node = AssembleResponseNode()
    node.successors = {}

    assert await Flow(start=node).run_async(shared) == "success"

    response = shared["response"]
    assert response.type == "symptom_analysis"
    assert response.confidence == 0.95
    assert response.response == "Ibuprofen is commonly used.\n\nDRUG INTERACTION WARNINGS:\n- WARN-1"
    assert response.safety_warnings == ["Review with a clinician", "WARN-1"]
    assert response.metadata.query_id == "q-1"
    assert response.metadata.model_used == "gemini-test"
    assert response.metadata.response_time >= 0
    assert len(response.recommendations) >= 3
    assert response.disclaimer


@pytest.mark.asyncio
async def test_assemble_without_location_lowers_confidence(warfarin_profile):
    shared: Dict[str, Any] = {
        "query": "General wellness tips",
        "generated": "Sleep well.",
        "profile": warfarin_profile,
        "safety": SafetyValidationResult(),
        "safety_checked": True,
        "location_aware": False,
        "model_used": "m",
        "query_id": "q-2",
        "started": time.perf_counter(),
    }
    node = AssembleResponseNode()
    node.successors = {}
    await Flow(start=node).run_async(shared)

    assert shared["response"].confidence == 0.9
    assert shared["response"].response == "Sleep well."
