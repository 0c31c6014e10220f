import pytest

from conftest import FakeProfileStore
from medbot.schemas.medical import UserMedicalProfile
from medbot.services.profile_store import load_profile_or_empty


@pytest.mark.asyncio
async def test_stored_profile_is_returned(warfarin_profile):
    store = FakeProfileStore({"u1": warfarin_profile})
    assert await load_profile_or_empty(store, "u1") == warfarin_profile


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "store",
    [None, FakeProfileStore(), FakeProfileStore(error=TimeoutError("slow db"))],
)
async def test_missing_or_failing_store_gives_empty_profile(store):
    assert await load_profile_or_empty(store, "u1") == UserMedicalProfile.empty()
