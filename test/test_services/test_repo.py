# test/test_services/test_repo.py
from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from medbot.db.models import HealthcareProfessionalRecord, SafetyLogRecord
from medbot.schemas.medical import Location, UserMedicalProfile
from medbot.services.repo import Repo


@pytest.mark.asyncio
async def test_profile_absent_returns_none(repo):
    assert await repo.get_medical_profile("nobody") is None


@pytest.mark.asyncio
async def test_profile_round_trip_and_replace(repo):
    profile = UserMedicalProfile(
        conditions=["asthma"],
        allergies=["latex"],
        medications=["salbutamol"],
        blood_group="A+",
        genotype="AA",
        age=34,
        gender="female",
        location=Location(country="NG", city="Abuja"),
    )
    await repo.save_medical_profile("u1", profile)
    loaded = await repo.get_medical_profile("u1")
    assert loaded == profile

    await repo.save_medical_profile("u1", profile.model_copy(update={"age": 35}))
    assert (await repo.get_medical_profile("u1")).age == 35


@pytest.mark.asyncio
async def test_update_conditions_upserts(repo):
    assert await repo.update_medical_conditions("u2", ["diabetes"]) is True
    created = await repo.get_medical_profile("u2")
    assert created.conditions == ["diabetes"]
    assert created.location.country == "Unknown"

    await repo.update_medical_conditions("u2", ["diabetes", "hypertension"])
    assert (await repo.get_medical_profile("u2")).conditions == ["diabetes", "hypertension"]


@pytest.mark.asyncio
async def test_conversation_history_newest_first_and_clear(repo):
    for i in range(3):
        await repo.save_conversation("u3", f"q{i}", {"type": "general_info", "confidence": 0.9, "response": f"a{i}"})
    await repo.save_conversation("other", "x", {"type": "referral"})

    history = await repo.get_conversation_history("u3", limit=2)
    assert [h.query for h in history] == ["q2", "q1"]
    assert history[0].response_type == "general_info"
    assert history[0].confidence == pytest.approx(0.9)
    assert history[0].response_json["response"] == "a2"

    assert await repo.clear_conversation("u3") == 3
    assert await repo.get_conversation_history("u3") == []
    assert len(await repo.get_conversation_history("other")) == 1


@pytest.mark.asyncio
async def test_conversation_retention_keeps_newest(session_factory):
    repo = Repo(session_factory, history_limit=3)
    for i in range(5):
        await repo.save_conversation("u4", f"q{i}", {"type": "general_info"})

    history = await repo.get_conversation_history("u4", limit=10)
    assert [h.query for h in history] == ["q4", "q3", "q2"]


@pytest.mark.asyncio
async def test_restricted_drugs(repo):
    assert await repo.get_restricted_drugs() == []
    await repo.add_restricted_drug("Tramadol")
    await repo.add_restricted_drug("codeine")
    assert await repo.get_restricted_drugs() == ["codeine", "tramadol"]


@pytest.mark.asyncio
async def test_log_safety_check_persists_entry(repo, session_factory):
    ts = datetime(2025, 1, 2, tzinfo=timezone.utc)
    await repo.log_safety_check({
        "validation_id": "v-1",
        "query": "q" * 700,
        "result": {"is_safe": False, "reason": "Restricted topic: opioids"},
        "timestamp": ts,
    })

    async with session_factory() as s:
        rows = (await s.execute(select(SafetyLogRecord))).scalars().all()
    assert len(rows) == 1
    assert rows[0].validation_id == "v-1"
    assert len(rows[0].query) == 500
    assert rows[0].result_json["is_safe"] is False

    logs = await repo.list_safety_logs()
    assert [log.validation_id for log in logs] == ["v-1"]


@pytest.mark.asyncio
async def test_transaction_rolls_back_composed_writes(repo):
    with pytest.raises(RuntimeError):
        async with repo.transaction() as s:
            await repo.update_medical_conditions("u5", ["gout"], session=s)
            raise RuntimeError("abort")
    assert await repo.get_medical_profile("u5") is None


async def _seed_professionals(repo):
    rows = [
        dict(name="Dr. Okafor", specialization="Cardiology", city="Lagos", country="NG", average_rating=4.7),
        dict(name="Nurse Bello", role="nurse", specialization="Pediatric nursing", state="Lagos State", country="NG", average_rating=4.2),
        dict(name="Dr. Idle", specialization="Cardiology", city="Lagos", country="NG", average_rating=4.9, is_available=False),
        dict(name="Dr. Pending", specialization="Cardiology", city="Lagos", country="NG", average_rating=5.0, approved=False),
        dict(name="Dr. Retired", specialization="Cardiology", city="Lagos", country="NG", average_rating=4.8, is_active=False),
        dict(name="Admin Ola", role="admin", city="Lagos", country="NG", average_rating=5.0),
        dict(name="Dr. Low", specialization="Dermatology", city="Toronto", country="CA", average_rating=3.1),
    ]
    for row in rows:
        values = {"approved": True, "is_available": True, **row}
        await repo.add_healthcare_professional(HealthcareProfessionalRecord(**values))


@pytest.mark.asyncio
async def test_find_professionals_only_active_approved_clinicians(repo):
    await _seed_professionals(repo)
    names = {p.name for p in await repo.find_healthcare_professionals()}
    assert names == {"Dr. Okafor", "Nurse Bello", "Dr. Idle", "Dr. Low"}


@pytest.mark.asyncio
async def test_find_professionals_filters(repo):
    await _seed_professionals(repo)

    cardio = await repo.find_healthcare_professionals(specialization="CARDIO", availability=True)
    assert [p.name for p in cardio] == ["Dr. Okafor"]

    # location matches city, state or country
    lagos = await repo.find_healthcare_professionals(location="lagos", min_rating=4.0)
    assert {p.name for p in lagos} == {"Dr. Okafor", "Nurse Bello", "Dr. Idle"}

    rated = await repo.find_healthcare_professionals(location="CA", min_rating=4.0)
    assert rated == []
