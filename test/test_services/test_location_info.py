import pytest

from medbot.services.location_info import DEFAULT_EMERGENCY_NUMBER, LocationBasedMedicalInfo


@pytest.fixture()
def info():
    return LocationBasedMedicalInfo(
        city_data={("NG", "lagos"): {"climate_considerations": ["Coastal humidity"]}}
    )


@pytest.mark.asyncio
async def test_known_country_by_code(info):
    ctx = await info.get_medical_context("uk")
    assert ctx.country == "United Kingdom"
    assert ctx.emergency_number == "999"
    assert "MHRA regulated" in ctx.drug_regulations


@pytest.mark.asyncio
async def test_known_country_by_name_with_city_extras(info):
    ctx = await info.get_medical_context("Nigeria", "Lagos")
    assert ctx.country == "Nigeria"
    assert ctx.city == "Lagos"
    assert ctx.climate_considerations[-1] == "Coastal humidity"
    assert "Malaria" in ctx.common_diseases


@pytest.mark.asyncio
async def test_unknown_country_gets_default_context(info):
    ctx = await info.get_medical_context("Atlantis")
    assert ctx.country == "Unknown"
    assert ctx.emergency_number == DEFAULT_EMERGENCY_NUMBER
    assert ctx.drug_regulations == ["Verify local regulations"]


@pytest.mark.parametrize(
    "country, number",
    [("US", "911"), ("gb", "999"), ("Australia", "000"), ("JP", "119"), ("CN", "120"), ("Unknown", "112"), (None, "112")],
)
def test_emergency_numbers(info, country, number):
    assert info.get_emergency_number(country) == number


def test_country_specific_drug_info(info):
    uk = info.get_country_specific_drug_info("Paracetamol", "UK")
    assert uk.availability == "otc"
    assert uk.brand_names == ("Panadol",)

    fallback = info.get_country_specific_drug_info("ibuprofen", "FR")
    assert fallback.availability == "prescription"
    assert fallback.brand_names == ()


def test_is_known(info):
    assert info.is_known("ca")
    assert not info.is_known("JP")
    assert not info.is_known("Unknown")
