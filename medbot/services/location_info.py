from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from medbot.schemas.medical import LocationMedicalInfo

logger = logging.getLogger(__name__)

DEFAULT_EMERGENCY_NUMBER = "112"


@dataclass(frozen=True)
class CountryData:
    emergency_number: str
    common_diseases: Tuple[str, ...]
    vaccination_requirements: Tuple[str, ...]
    healthcare_system: str
    drug_regulations: Tuple[str, ...]
    climate_considerations: Tuple[str, ...]
    language: str


@dataclass(frozen=True)
class DrugAvailability:
    availability: str  # otc | prescription | restricted | unavailable
    brand_names: Tuple[str, ...] = ()
    regulations: str = "Consult local healthcare provider for availability"


COUNTRY_DATA: Mapping[str, CountryData] = MappingProxyType({
    "US": CountryData(
        emergency_number="911",
        common_diseases=("Heart disease", "Diabetes", "Cancer", "Obesity", "Hypertension"),
        vaccination_requirements=("COVID-19", "Influenza", "Tetanus", "MMR"),
        healthcare_system="Mixed public-private system with insurance-based care",
        drug_regulations=("FDA regulated", "Prescription required for many drugs", "Insurance coverage varies"),
        climate_considerations=("Varies by region - consider local climate",),
        language="English",
    ),
    "UK": CountryData(
        emergency_number="999",
        common_diseases=("Heart disease", "Cancer", "Stroke", "Respiratory diseases"),
        vaccination_requirements=("COVID-19", "Influenza", "MMR", "HPV"),
        healthcare_system="National Health Service (NHS) providing free healthcare",
        drug_regulations=("MHRA regulated", "Some drugs available OTC", "Prescription charges apply"),
        climate_considerations=("Temperate climate with seasonal variations",),
        language="English",
    ),
    "NG": CountryData(
        emergency_number="112",
        common_diseases=("Malaria", "Typhoid", "Cholera", "HIV/AIDS", "Lassa fever"),
        vaccination_requirements=("Yellow fever", "Hepatitis A & B", "Typhoid", "Malaria prophylaxis"),
        healthcare_system="Mixed system with public and private providers",
        drug_regulations=("NAFDAC regulated", "Many drugs available OTC", "Counterfeit drug risk"),
        climate_considerations=("Tropical climate with rainy season",),
        language="English",
    ),
    "IN": CountryData(
        emergency_number="112",
        common_diseases=("Cardiovascular diseases", "Diabetes", "Respiratory infections", "Tuberculosis"),
        vaccination_requirements=("COVID-19", "Hepatitis B", "Typhoid", "Rabies"),
        healthcare_system="Mixed public-private system with significant out-of-pocket expenses",
        drug_regulations=("CDSCO regulated", "Many drugs available OTC", "Generic drugs widely available"),
        climate_considerations=("Tropical and subtropical climate with monsoon season",),
        language="Hindi, English",
    ),
    "CA": CountryData(
        emergency_number="911",
        common_diseases=("Cancer", "Heart disease", "Diabetes", "Mental health disorders"),
        vaccination_requirements=("COVID-19", "Influenza", "HPV", "Shingles"),
        healthcare_system="Publicly funded healthcare system (Medicare)",
        drug_regulations=("Health Canada regulated", "Prescription drug coverage varies by province"),
        climate_considerations=("Cold winters in many regions",),
        language="English, French",
    ),
    "AU": CountryData(
        emergency_number="000",
        common_diseases=("Cancer", "Heart disease", "Mental health disorders", "Diabetes"),
        vaccination_requirements=("COVID-19", "Influenza", "MMR", "Hepatitis B"),
        healthcare_system="Medicare provides public healthcare with private insurance options",
        drug_regulations=("TGA regulated", "Pharmaceutical Benefits Scheme subsidizes many drugs"),
        climate_considerations=("High UV index, skin cancer risk",),
        language="English",
    ),
})

# Countries we only know the emergency number for
EXTRA_EMERGENCY_NUMBERS: Mapping[str, str] = MappingProxyType({
    "DE": "112",
    "FR": "112",
    "JP": "119",
    "KR": "119",
    "CN": "120",
    "BR": "192",
    "ZA": "10177",
})

COUNTRY_NAMES: Mapping[str, str] = MappingProxyType({
    "US": "United States",
    "UK": "United Kingdom",
    "NG": "Nigeria",
    "IN": "India",
    "CA": "Canada",
    "AU": "Australia",
    "DE": "Germany",
    "FR": "France",
    "JP": "Japan",
    "KR": "South Korea",
    "CN": "China",
    "BR": "Brazil",
    "ZA": "South Africa",
})

_CODE_ALIASES: Mapping[str, str] = MappingProxyType({"GB": "UK", "USA": "US"})

DRUG_AVAILABILITY: Mapping[str, Mapping[str, DrugAvailability]] = MappingProxyType({
    "US": {
        "ibuprofen": DrugAvailability("otc", ("Advil", "Motrin")),
        "amoxicillin": DrugAvailability("prescription", ("Amoxil",)),
        "atorvastatin": DrugAvailability("prescription", ("Lipitor",)),
    },
    "UK": {
        "ibuprofen": DrugAvailability("otc", ("Nurofen",)),
        "paracetamol": DrugAvailability("otc", ("Panadol",)),
    },
    "NG": {
        "ibuprofen": DrugAvailability("otc", ("Ibufem",)),
        "artemether": DrugAvailability("prescription", ("Coartem",)),
    },
    "IN": {
        "ibuprofen": DrugAvailability("otc", ("Ibugesic",)),
        "paracetamol": DrugAvailability("otc", ("Crocin", "Calpol")),
    },
})


def default_medical_context(city: Optional[str] = None) -> LocationMedicalInfo:
    return LocationMedicalInfo(
        country="Unknown",
        city=city,
        emergency_number=DEFAULT_EMERGENCY_NUMBER,
        healthcare_system_info="Consult local healthcare providers",
        drug_regulations=["Verify local regulations"],
    )


class LocationBasedMedicalInfo:
    """Country lookups for emergency numbers and regulatory context."""

    def __init__(
        self,
        country_data: Mapping[str, CountryData] = COUNTRY_DATA,
        city_data: Optional[Dict[Tuple[str, str], Dict[str, List[str]]]] = None,
    ) -> None:
        self.country_data = country_data
        self._city_data = city_data or {}
        self._names_to_codes = {name.lower(): code for code, name in COUNTRY_NAMES.items()}

    def resolve_code(self, country: Optional[str]) -> Optional[str]:
        """Country code for a code or a full country name, ``None`` if unrecognized."""
        if not country:
            return None
        raw = country.strip()
        code = _CODE_ALIASES.get(raw.upper(), raw.upper())
        if code in COUNTRY_NAMES:
            return code
        return self._names_to_codes.get(raw.lower())

    def is_known(self, country: Optional[str]) -> bool:
        return self.resolve_code(country) in self.country_data

    def get_country_name(self, code: str) -> str:
        return COUNTRY_NAMES.get(code.upper(), code)

    def get_emergency_number(self, country: Optional[str]) -> str:
        code = self.resolve_code(country)
        if code is None:
            return DEFAULT_EMERGENCY_NUMBER
        if code in self.country_data:
            return self.country_data[code].emergency_number
        return EXTRA_EMERGENCY_NUMBERS.get(code, DEFAULT_EMERGENCY_NUMBER)

    async def get_medical_context(self, country: str, city: Optional[str] = None) -> LocationMedicalInfo:
        code = self.resolve_code(country)
        data = self.country_data.get(code) if code else None
        if data is None:
            logger.info("No medical data for country %r; using default context", country)
            return default_medical_context(city)

        local = self._city_data.get((code, (city or "").lower()), {}) if city else {}
        return LocationMedicalInfo(
            country=self.get_country_name(code),
            city=city,
            emergency_number=data.emergency_number,
            common_diseases=[*data.common_diseases, *local.get("common_diseases", [])],
            vaccination_requirements=list(data.vaccination_requirements),
            healthcare_system_info=data.healthcare_system,
            drug_regulations=list(data.drug_regulations),
            climate_considerations=[*data.climate_considerations, *local.get("climate_considerations", [])],
        )

    def get_country_specific_drug_info(self, drug: str, country: str) -> DrugAvailability:
        code = self.resolve_code(country) or ""
        return DRUG_AVAILABILITY.get(code, {}).get(drug.lower(), DrugAvailability("prescription"))
