"""
Emergency detection.

Keyword and pattern scan run before anything else in the pipeline.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Tuple

from medbot.config import DEFAULT_EMERGENCY_KEYWORDS, DEFAULT_RED_FLAG_SYMPTOMS
from medbot.schemas.medical import EmergencyCheckResult
from medbot.services.tables import DEFAULT_TABLES, MedicalTables

logger = logging.getLogger(__name__)

COMPLEX_PATTERN_MARKER = "complex_emergency_pattern"
RED_FLAG_CONDITION = "Red flag symptom requiring immediate evaluation"


@dataclass(frozen=True)
class EmergencyRule:
    keyword: str
    severity: str
    condition: str


def emergency_action(severity: str) -> str:
    if severity == "critical":
        return "Call emergency services immediately"
    if severity == "high":
        return "Seek emergency medical attention within 1 hour"
    return "Consult a healthcare professional soon"


class EmergencyDetector:
    def __init__(
        self,
        emergency_keywords: Tuple[str, ...] = DEFAULT_EMERGENCY_KEYWORDS,
        red_flag_symptoms: Tuple[str, ...] = DEFAULT_RED_FLAG_SYMPTOMS,
        tables: MedicalTables = DEFAULT_TABLES,
    ) -> None:
        rules: Dict[str, EmergencyRule] = {}
        for kw in emergency_keywords:
            key = kw.lower()
            rules[key] = EmergencyRule(
                key, "critical", tables.emergency_conditions.get(key, "Medical emergency")
            )
        for symptom in red_flag_symptoms:
            key = symptom.lower()
            # an emergency keyword keeps its critical severity
            rules.setdefault(key, EmergencyRule(key, "high", RED_FLAG_CONDITION))
        self._rules: Tuple[EmergencyRule, ...] = tuple(rules.values())
        self._patterns: Tuple[Pattern[str], ...] = self._compile_patterns(
            [kw.lower() for kw in emergency_keywords], tables.combined_symptom_patterns
        )

    @staticmethod
    def _compile_patterns(keywords: List[str], combined: Tuple[str, ...]) -> Tuple[Pattern[str], ...]:
        patterns = [re.compile(p, re.I) for p in combined]
        first, second = keywords[:5], keywords[5:10]
        if first and second:
            cross = "({}).*({})".format(
                "|".join(re.escape(k) for k in first),
                "|".join(re.escape(k) for k in second),
            )
            patterns.append(re.compile(cross, re.I))
        return tuple(patterns)

    @property
    def keywords(self) -> List[str]:
        return [r.keyword for r in self._rules]

    def check(
        self,
        query: str,
        *,
        emergency_number: Optional[str] = None,
        country_code: Optional[str] = None,
    ) -> EmergencyCheckResult:
        text = (query or "").lower()
        triggers: List[str] = []
        condition = ""
        action = ""

        for rule in self._rules:
            if rule.keyword in text:
                if rule.keyword not in triggers:
                    triggers.append(rule.keyword)
                if not condition:
                    condition = rule.condition
                    action = emergency_action(rule.severity)

        if any(p.search(text) for p in self._patterns):
            if COMPLEX_PATTERN_MARKER not in triggers:
                triggers.append(COMPLEX_PATTERN_MARKER)
            if not condition:
                condition = "Multiple emergency symptoms detected"
                action = "Seek immediate medical attention"

        is_emergency = bool(triggers)
        if is_emergency:
            logger.warning("Emergency indicators detected: %s", triggers)

        return EmergencyCheckResult(
            is_emergency=is_emergency,
            condition=condition,
            trigger_keywords=triggers,
            required_action=action,
            emergency_number=emergency_number if is_emergency else None,
            country_code=country_code if is_emergency else None,
        )
