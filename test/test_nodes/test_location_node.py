# test/test_nodes/test_location_node.py
from typing import Any, Dict

import pytest
from pocketflow import AsyncFlow as Flow

from medbot.runtime.nodes.location import LocationContextNode
from medbot.schemas.medical import Location, QueryContext, UserMedicalProfile
from medbot.services.location_info import LocationBasedMedicalInfo


class FailingLocationInfo(LocationBasedMedicalInfo):
    async def get_medical_context(self, country, city=None):
        raise TimeoutError("geo service")


async def _run(info, profile, context=None) -> Dict[str, Any]:
    node = LocationContextNode(info)
    node.successors = {}
    shared: Dict[str, Any] = {"profile": profile, "context": context}
    await Flow(start=node).run_async(shared)
    return shared


@pytest.mark.asyncio
async def test_profile_location_is_used(warfarin_profile):
    shared = await _run(LocationBasedMedicalInfo(), warfarin_profile)
    assert shared["location_info"].country == "United States"
    assert shared["location_info"].emergency_number == "911"
    assert shared["location_aware"] is True
    assert shared["stages"] == ["location_context"]


@pytest.mark.asyncio
async def test_query_context_location_wins(warfarin_profile):
    context = QueryContext(location=Location(country="IN", city="Pune"))
    shared = await _run(LocationBasedMedicalInfo(), warfarin_profile, context)
    assert shared["location_info"].country == "India"
    assert shared["location_info"].city == "Pune"


@pytest.mark.asyncio
async def test_unknown_country_is_not_location_aware():
    shared = await _run(LocationBasedMedicalInfo(), UserMedicalProfile.empty())
    assert shared["location_info"].emergency_number == "112"
    assert shared["location_aware"] is False


@pytest.mark.asyncio
async def test_lookup_failure_uses_default(warfarin_profile):
    shared = await _run(FailingLocationInfo(), warfarin_profile)
    assert shared["location_info"].country == "Unknown"
    assert shared["location_info"].city == "Boston"
    assert shared["location_aware"] is False
