# test/test_nodes/test_profile_node.py
from typing import Any, Dict

import pytest
from pocketflow import AsyncFlow as Flow

from conftest import FakeProfileStore
from medbot.runtime.nodes.profile import ProfileLoadNode
from medbot.schemas.medical import UserMedicalProfile


async def _run(shared: Dict[str, Any]) -> str:
    node = ProfileLoadNode()
    node.successors = {}
    return await Flow(start=node).run_async(shared)


@pytest.mark.asyncio
async def test_loads_stored_profile(warfarin_profile):
    store = FakeProfileStore({"u1": warfarin_profile})
    shared: Dict[str, Any] = {"user_id": "u1", "profile_store": store}

    assert await _run(shared) == "continue"
    assert shared["profile"] == warfarin_profile
    assert store.calls == ["u1"]
    assert shared["stages"] == ["profile_load"]


@pytest.mark.asyncio
async def test_missing_profile_is_empty():
    shared: Dict[str, Any] = {"user_id": "ghost", "profile_store": FakeProfileStore()}
    await _run(shared)
    assert shared["profile"] == UserMedicalProfile.empty()


@pytest.mark.asyncio
async def test_store_failure_falls_back_to_empty():
    shared: Dict[str, Any] = {"user_id": "u1", "profile_store": FakeProfileStore(error=ConnectionError("db down"))}

    assert await _run(shared) == "continue"
    assert shared["profile"] == UserMedicalProfile.empty()


@pytest.mark.asyncio
async def test_no_store_configured():
    shared: Dict[str, Any] = {"user_id": "u1"}
    await _run(shared)
    assert shared["profile"].location.country == "Unknown"
