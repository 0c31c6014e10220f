# test/conftest.py
from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import medbot.db.models  # noqa: F401  register tables on the metadata
from medbot.schemas.medical import Location, UserMedicalProfile
from medbot.services.repo import Repo


# -----------------------------
# Fakes
# -----------------------------
class FakeModelClient:
    """Captures calls and returns a canned reply (or raises)."""

    def __init__(self, reply: str = "Rest, fluids and monitor your symptoms.", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, prompt: str, *, temperature: float, max_output_tokens: int, model: Optional[str] = None) -> str:
        self.calls.append({
            "prompt": prompt,
            "temperature": temperature,
            "max_output_tokens": max_output_tokens,
            "model": model,
        })
        if self.error is not None:
            raise self.error
        return self.reply


class FakeProfileStore:
    def __init__(self, profiles: Optional[Dict[str, UserMedicalProfile]] = None, error: Optional[Exception] = None):
        self.profiles = profiles or {}
        self.error = error
        self.calls: List[str] = []

    async def get_medical_profile(self, user_id: str) -> Optional[UserMedicalProfile]:
        self.calls.append(user_id)
        if self.error is not None:
            raise self.error
        return self.profiles.get(user_id)


class FakeAuditSink:
    def __init__(self, error: Optional[Exception] = None):
        self.entries: List[Dict[str, Any]] = []
        self.error = error

    async def log_safety_check(self, entry: Dict[str, Any]) -> None:
        if self.error is not None:
            raise self.error
        self.entries.append(entry)


@pytest.fixture()
def model_client():
    return FakeModelClient()


@pytest.fixture()
def warfarin_profile():
    return UserMedicalProfile(
        conditions=["hypertension"],
        allergies=["penicillin"],
        medications=["warfarin"],
        age=58,
        gender="female",
        location=Location(country="US", city="Boston"),
    )


# -----------------------------
# Database
# -----------------------------
@pytest.fixture()
async def engine():
    # Shared in-memory DB across connections
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    try:
        yield eng
    finally:
        await eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture()
def repo(session_factory):
    return Repo(session_factory)
