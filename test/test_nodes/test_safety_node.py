# test/test_nodes/test_safety_node.py
from typing import Any, Dict

import pytest
from pocketflow import AsyncFlow as Flow

from medbot.runtime.nodes.safety import SafetyValidationNode
from medbot.schemas.medical import UserMedicalProfile
from medbot.services.guardrail import SafetyGuardrail


class BrokenGuardrail(SafetyGuardrail):
    async def validate_query(self, query, profile):
        raise RuntimeError("unreachable rules store")


async def _run(guardrail: SafetyGuardrail, query: str) -> Dict[str, Any]:
    node = SafetyValidationNode(guardrail)
    node.successors = {}
    shared: Dict[str, Any] = {"query": query, "profile": UserMedicalProfile.empty()}
    shared["action"] = await Flow(start=node).run_async(shared)
    return shared


@pytest.mark.asyncio
async def test_safe_query_continues():
    shared = await _run(SafetyGuardrail(), "What foods are high in iron?")
    assert shared["action"] == "continue"
    assert shared["safety"].is_safe
    assert shared["stages"] == ["safety_validation"]


@pytest.mark.asyncio
async def test_restricted_topic_is_blocked():
    shared = await _run(SafetyGuardrail(), "Tell me about opioids dosing")
    assert shared["action"] == "blocked"
    assert shared["safety"].reason == "Restricted topic: opioids"


@pytest.mark.asyncio
async def test_guardrail_crash_fails_closed():
    shared = await _run(BrokenGuardrail(), "anything")
    assert shared["action"] == "blocked"
    assert shared["safety"].reason == "Safety validation system error"
    assert shared["safety"].emergency_level == "medium"
