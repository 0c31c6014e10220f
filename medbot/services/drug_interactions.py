"""
Drug interaction post-filter.

Runs over the *generated* answer, never over the user's query. Lookups are
local first (exact generic pair, then class pair); an optional OpenFDA label
search is consulted only on a local miss and is strictly best-effort.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set

import httpx

from medbot.schemas.medical import DrugInteraction
from medbot.services.tables import DEFAULT_TABLES, MedicalTables

logger = logging.getLogger(__name__)

SEVERITY_MARKERS = {
    "minor": "⚠️",
    "moderate": "⚠️⚠️",
    "major": "🚨",
    "contraindicated": "🚫",
}

CONSULT_LINE = (
    "Always consult your healthcare provider or pharmacist before starting, "
    "stopping, or changing any medication."
)


EXTERNAL_TEXT_LIMIT = 500


def external_search_query(drug1: str, drug2: str) -> str:
    """OpenFDA label search for labels whose interaction section names both drugs.

    Spaces are sent form-encoded as ``+``, which OpenFDA reads as the boolean separator.
    """
    return f'drug_interactions:"{drug1}" AND drug_interactions:"{drug2}"'


def format_interaction_warning(interaction: DrugInteraction) -> str:
    lines = [
        f"{SEVERITY_MARKERS[interaction.severity]} DRUG INTERACTION WARNING: "
        f"{interaction.drug1} + {interaction.drug2}",
        f"Severity: {interaction.severity.upper()}",
        f"Description: {interaction.description}",
    ]
    if interaction.mechanism:
        lines.append(f"Mechanism: {interaction.mechanism}")
    lines.append(f"Recommendation: {interaction.recommendation}")
    lines.append(CONSULT_LINE)
    return "\n".join(lines)


class DrugInteractionChecker:
    def __init__(
        self,
        tables: MedicalTables = DEFAULT_TABLES,
        api_url: str = "",
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self.tables = tables
        self.api_url = api_url
        self._client = http_client
        self._timeout = timeout

    async def check_interactions(self, text: str, medications: List[str]) -> List[str]:
        """Warnings for the user's medications against drugs named in ``text``."""
        warnings: List[str] = []
        if not medications:
            return warnings

        try:
            mentioned = self.extract_drug_mentions(text)
            for med in medications:
                user_drug = self.normalize(med)
                for drug in mentioned:
                    other = self.normalize(drug)
                    if user_drug == other:
                        continue
                    interaction = await self.check_interaction(user_drug, other)
                    if interaction is not None:
                        warnings.append(format_interaction_warning(interaction))

            warnings.extend(self.check_disease_contraindications(text))
        except Exception:
            logger.exception("Drug interaction check error")
        return warnings

    def extract_drug_mentions(self, text: str) -> List[str]:
        lowered = text.lower()
        found: List[str] = []
        for generic, aliases in self.tables.drug_aliases.items():
            if generic in lowered or any(a in lowered for a in aliases):
                found.append(generic)
        for members in self.tables.drug_classes.values():
            found.extend(m for m in members if m in lowered)
        for drug_class in self.tables.drug_class_keywords:
            if drug_class in lowered:
                found.append(drug_class)
        return list(dict.fromkeys(found))

    def normalize(self, drug: str) -> str:
        name = drug.strip().lower()
        for generic, aliases in self.tables.drug_aliases.items():
            if name == generic or name in aliases:
                return generic
        return name

    def drug_class(self, drug: str) -> Optional[str]:
        for drug_class, members in self.tables.drug_classes.items():
            if drug in members:
                return drug_class
        return None

    def _expand(self, drug: str) -> Set[str]:
        names = {drug}
        drug_class = self.drug_class(drug)
        if drug_class:
            names.add(drug_class)
        return names

    def find_local_interaction(self, drug1: str, drug2: str) -> Optional[DrugInteraction]:
        a, b = self.normalize(drug1), self.normalize(drug2)
        table = self.tables.drug_interactions

        for entry in table:
            if {entry.drug1, entry.drug2} == {a, b}:
                return entry

        names_a, names_b = self._expand(a), self._expand(b)
        for entry in table:
            if (entry.drug1 in names_a and entry.drug2 in names_b) or (
                entry.drug1 in names_b and entry.drug2 in names_a
            ):
                return entry.model_copy(update={"drug1": a, "drug2": b})
        return None

    async def check_interaction(self, drug1: str, drug2: str) -> Optional[DrugInteraction]:
        local = self.find_local_interaction(drug1, drug2)
        if local is not None:
            return local
        if not self.api_url:
            return None
        return await self.check_external_interaction(drug1, drug2)

    async def check_external_interaction(self, drug1: str, drug2: str) -> Optional[DrugInteraction]:
        params = {"search": external_search_query(drug1, drug2), "limit": 1}
        try:
            if self._client is not None:
                resp = await self._client.get(self.api_url, params=params, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.get(self.api_url, params=params)
            resp.raise_for_status()
            results = resp.json().get("results") or []
        except Exception as exc:
            logger.debug("External interaction check failed for %s and %s: %s", drug1, drug2, exc)
            return None

        if not results:
            return None
        text = results[0].get("drug_interactions") or ""
        if isinstance(text, list):
            text = " ".join(text)
        return DrugInteraction(
            drug1=drug1,
            drug2=drug2,
            severity="moderate",
            description=text.strip()[:EXTERNAL_TEXT_LIMIT] or "Drug interaction detected",
            recommendation="Consult healthcare provider before use",
        )

    def check_disease_contraindications(self, text: str) -> List[str]:
        # co-occurrence in the text only; not matched against the user's own conditions
        lowered = text.lower()
        return [
            warning
            for condition, drugs, warning in self.tables.disease_contraindications
            if condition in lowered and any(d in lowered for d in drugs)
        ]
