from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Optional

from medbot.schemas.medical import UserMedicalProfile
from medbot.services.tables import DEFAULT_TABLES, MedicalTables

logger = logging.getLogger(__name__)

_MEDICATION_PHRASES = (
    re.compile(r"(?:take|using|on) (?:a |an )?(.+?) (?:for|to treat|medication)", re.I),
    re.compile(r"(?:prescribed|recommended) (?:me )?(.+?) (?:for)", re.I),
    re.compile(r"(?:side effects|interactions) (?:of|with) (.+?)(?: |$)", re.I),
)

RESPONSE_GUIDELINES = (
    "Consider the user's specific medical conditions and allergies",
    "Account for potential drug interactions with current medications",
    "Provide age-appropriate advice",
    "Consider gender-specific health concerns if relevant",
    "Be mindful of the user's location for relevant healthcare resources",
    "Use simplified explanations for complex medical terms",
    "Always emphasize when professional medical consultation is needed",
    "Include specific warnings based on user's medical profile",
)

NO_SAFETY_NOTES = "No specific safety notes based on profile"


def _listed(items: List[str], empty: str) -> str:
    return ", ".join(items) if items else empty


class MedicalContextBuilder:
    """Turns a raw query plus the user's profile into the generation prompt."""

    def __init__(self, tables: MedicalTables = DEFAULT_TABLES) -> None:
        self.tables = tables

    async def build_prompt(
        self,
        query: str,
        profile: UserMedicalProfile,
        context: Optional[Any] = None,
    ) -> str:
        try:
            return self._compose(query, profile, context)
        except Exception:
            logger.exception("Error building medical context; using raw query")
            return query

    def _compose(self, query: str, profile: UserMedicalProfile, context: Optional[Any]) -> str:
        terminology = self.extract_terminology(query)
        conditions = self.identify_potential_conditions(query, profile)
        drugs = self.extract_drug_mentions(query)
        guidelines = "\n".join(f"{i}. {g}" for i, g in enumerate(RESPONSE_GUIDELINES, start=1))

        return (
            f"USER QUERY: {query}\n\n"
            "USER MEDICAL PROFILE:\n"
            f"- Age: {profile.age} years\n"
            f"- Gender: {profile.gender}\n"
            f"- Blood Group: {profile.blood_group or 'Not specified'}\n"
            f"- Genotype: {profile.genotype or 'Not specified'}\n"
            f"- Location: {profile.location_label()}\n"
            f"- Medical Conditions: {_listed(profile.conditions, 'None recorded')}\n"
            f"- Allergies: {_listed(profile.allergies, 'None recorded')}\n"
            f"- Current Medications: {_listed(profile.medications, 'None recorded')}\n\n"
            "QUERY ANALYSIS:\n"
            f"- Medical Terminology Detected: {_listed(terminology, 'None')}\n"
            f"- Drug Mentions: {_listed(drugs, 'None')}\n"
            f"- Potential Related Conditions: {_listed(conditions, 'None')}\n\n"
            f"ADDITIONAL CONTEXT: {self._serialize_context(context)}\n\n"
            f"RESPONSE GUIDELINES:\n{guidelines}\n\n"
            f"IMPORTANT SAFETY NOTES:\n{self.safety_notes(profile, drugs)}"
        )

    @staticmethod
    def _serialize_context(context: Optional[Any]) -> str:
        if not context:
            return "None provided"
        if hasattr(context, "model_dump"):
            context = context.model_dump(exclude_none=True)
        return json.dumps(context, default=str)

    def extract_terminology(self, query: str) -> List[str]:
        text = query.lower()
        return [
            f"{term} ({explanation})"
            for term, explanation in self.tables.medical_terminology.items()
            if term in text
        ]

    def identify_potential_conditions(self, query: str, profile: UserMedicalProfile) -> List[str]:
        text = query.lower()
        found: List[str] = []
        for condition, symptoms in self.tables.symptom_patterns.items():
            if sum(1 for s in symptoms if s in text) >= 2:
                found.append(condition)
        for condition in profile.conditions:
            if condition.lower() in text and condition not in found:
                found.append(condition)
        return found

    def extract_drug_mentions(self, query: str) -> List[str]:
        text = query.lower()
        drugs: List[str] = []
        for drug_class, members in self.tables.drug_classes.items():
            if drug_class in text:
                drugs.append(drug_class)
            drugs.extend(d for d in members if d in text)
        for generic, aliases in self.tables.drug_aliases.items():
            if generic in text or any(a in text for a in aliases):
                drugs.append(generic)
        for pattern in _MEDICATION_PHRASES:
            m = pattern.search(query)
            if m and m.group(1):
                drugs.append(m.group(1).strip())
        # ordered dedupe
        return list(dict.fromkeys(drugs))

    def safety_notes(self, profile: UserMedicalProfile, drug_mentions: List[str]) -> str:
        notes: List[str] = []
        conditions = [c.lower() for c in profile.conditions]

        def has(*keywords: str) -> bool:
            return any(k in c for c in conditions for k in keywords)

        if profile.age < 18:
            notes.append("User is a minor - pediatric considerations required")
        elif profile.age > 65:
            notes.append("User is elderly - consider age-related metabolism changes and polypharmacy risks")

        if has("pregnan", "breastfeeding"):
            notes.append("User may be pregnant or breastfeeding - teratogenic risks must be considered")
        if has("kidney", "renal"):
            notes.append("User has kidney disease - dose adjustments may be needed for renally cleared drugs")
        if has("liver", "hepatic"):
            notes.append("User has liver disease - hepatotoxic drugs should be avoided or monitored")

        if profile.allergies:
            notes.append(
                f"User has allergies: {', '.join(profile.allergies)} - avoid cross-reactive substances"
            )
        if profile.medications and drug_mentions:
            notes.append("Potential drug interactions must be checked against current medications")

        return "\n".join(notes) if notes else NO_SAFETY_NOTES

    def simplify_medical_term(self, term: str) -> str:
        return self.tables.medical_terminology.get(term.lower(), term)

    def get_drug_class(self, drug_name: str) -> Optional[str]:
        name = drug_name.lower()
        for drug_class, members in self.tables.drug_classes.items():
            if name in members:
                return drug_class
        return None
