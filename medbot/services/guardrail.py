"""
Safety guardrail: the battery of non-emergency checks run before generation.

Checks run in a fixed order on the same query and profile:
restricted topics, self-harm, medication requests, condition conflicts, then a
best-effort audit write. Any unexpected failure yields a fail-closed result.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Iterable, List, Optional, Pattern, Protocol, Tuple

from medbot.config import DEFAULT_RESTRICTED_DRUGS
from medbot.schemas.medical import SafetyValidationResult, UserMedicalProfile
from medbot.services.tables import DEFAULT_TABLES, MedicalTables

logger = logging.getLogger(__name__)

AUDIT_QUERY_LIMIT = 500


class AuditSink(Protocol):
    async def log_safety_check(self, entry: Dict[str, Any]) -> None: ...


RestrictedDrugSource = Callable[[], Awaitable[List[str]]]


@dataclass(frozen=True)
class TopicCheck:
    allowed: bool
    reason: str = ""
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MedicationRequest:
    requires_prescription: bool
    medications: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ConditionConflict:
    condition: str
    keyword: str

    @property
    def warning(self) -> str:
        return f'Query mentions "{self.keyword}" which may conflict with your condition: {self.condition}'


class RestrictedTopicFilter:
    def __init__(self, topics: Iterable[str], patterns: Iterable[str]) -> None:
        self.topics: FrozenSet[str] = frozenset(t.lower() for t in topics if t)
        self._patterns: Tuple[Pattern[str], ...] = tuple(re.compile(p, re.I) for p in patterns)

    def check(self, query: str) -> TopicCheck:
        text = query.lower()
        for topic in sorted(self.topics):
            if topic in text:
                return TopicCheck(
                    allowed=False,
                    reason=f"Restricted topic: {topic}",
                    warnings=(f"Information about {topic} requires professional consultation",),
                )
        for pattern in self._patterns:
            if pattern.search(query):
                return TopicCheck(
                    allowed=False,
                    reason="Medication requests require proper medical consultation",
                    warnings=("Potential drug-seeking behavior detected",),
                )
        return TopicCheck(allowed=True)


class SelfHarmDetector:
    def __init__(self, keywords: Iterable[str]) -> None:
        self.keywords: Tuple[str, ...] = tuple(k.lower() for k in keywords)

    def check(self, query: str) -> List[str]:
        text = query.lower()
        return [k for k in self.keywords if k in text]


class MedicationRequestDetector:
    def __init__(
        self,
        patterns: Iterable[str],
        prescription_classes: Iterable[str],
        change_phrases: Iterable[str],
    ) -> None:
        self._patterns = tuple(re.compile(p, re.I) for p in patterns)
        self.prescription_classes = tuple(c.lower() for c in prescription_classes)
        self.change_phrases = tuple(p.lower() for p in change_phrases)

    def is_prescription_medication(self, medication: str) -> bool:
        med = medication.lower()
        return any(c in med for c in self.prescription_classes)

    def check(self, query: str) -> MedicationRequest:
        medications: List[str] = []
        requires = False
        for pattern in self._patterns:
            m = pattern.search(query)
            if m and m.groups() and m.group(1):
                med = m.group(1).strip()
                medications.append(med)
                if self.is_prescription_medication(med):
                    requires = True
        text = query.lower()
        if any(p in text for p in self.change_phrases):
            requires = True
        return MedicationRequest(requires_prescription=requires, medications=tuple(medications))


class ConditionConflictChecker:
    def __init__(self, conflicts: Dict[str, Tuple[str, ...]]) -> None:
        self._conflicts = conflicts

    def check(self, query: str, profile: UserMedicalProfile) -> List[ConditionConflict]:
        text = query.lower()
        found: List[ConditionConflict] = []
        for condition in profile.conditions:
            for keyword in self._conflicts.get(condition.lower(), ()):
                if keyword in text:
                    found.append(ConditionConflict(condition=condition, keyword=keyword))
                    break
        return found


@dataclass
class _Verdict:
    is_safe: bool = True
    reason: str = ""
    warnings: List[str] = field(default_factory=list)
    requires_professional_review: bool = False
    emergency_level: str = "none"

    def result(self) -> SafetyValidationResult:
        return SafetyValidationResult(
            is_safe=self.is_safe,
            reason=self.reason,
            warnings=list(self.warnings),
            requires_professional_review=self.requires_professional_review,
            emergency_level=self.emergency_level,
        )


class SafetyGuardrail:
    """Runs the non-emergency safety checks and writes the audit trail."""

    def __init__(
        self,
        restricted_drugs: Iterable[str] = DEFAULT_RESTRICTED_DRUGS,
        tables: MedicalTables = DEFAULT_TABLES,
        audit_sink: Optional[AuditSink] = None,
    ) -> None:
        self.tables = tables
        self.audit_sink = audit_sink
        self._configured_drugs = tuple(restricted_drugs)
        self.topic_filter = RestrictedTopicFilter(self._configured_drugs, tables.drug_seeking_patterns)
        self.self_harm = SelfHarmDetector(tables.self_harm_keywords)
        self.medication_requests = MedicationRequestDetector(
            tables.medication_request_patterns,
            tables.prescription_only_classes,
            tables.medication_change_phrases,
        )
        self.condition_conflicts = ConditionConflictChecker(tables.condition_conflicts)
        self.initialized = False

    async def initialize(self, restricted_drug_source: Optional[RestrictedDrugSource] = None) -> None:
        """Merge the stored restricted-drug list into the topic filter, once."""
        if self.initialized:
            return
        loaded: List[str] = []
        if restricted_drug_source is not None:
            try:
                loaded = list(await restricted_drug_source())
            except Exception as exc:
                logger.error("Failed to load restricted drugs, using defaults: %s", exc)
                loaded = list(DEFAULT_RESTRICTED_DRUGS)
        self.topic_filter = RestrictedTopicFilter(
            [*self._configured_drugs, *loaded], self.tables.drug_seeking_patterns
        )
        self.initialized = True
        logger.info("Safety guardrail initialized with %d restricted topics", len(self.topic_filter.topics))

    async def validate_query(self, query: str, profile: UserMedicalProfile) -> SafetyValidationResult:
        validation_id = str(uuid.uuid4())
        try:
            verdict = self._evaluate(query, profile)
        except Exception:
            logger.exception("Safety validation error %s", validation_id)
            return SafetyValidationResult.fail_closed()

        result = verdict.result()
        await self._audit(validation_id, query, result)
        return result

    def _evaluate(self, query: str, profile: UserMedicalProfile) -> _Verdict:
        verdict = _Verdict()

        topic = self.topic_filter.check(query)
        if not topic.allowed:
            verdict.is_safe = False
            verdict.reason = topic.reason
            verdict.warnings.extend(topic.warnings)

        if self.self_harm.check(query):
            verdict.is_safe = False
            verdict.reason = "Content related to self-harm or harm to others detected"
            verdict.warnings.append("CRISIS SUPPORT REQUIRED")
            verdict.emergency_level = "high"
            verdict.requires_professional_review = True

        if self.medication_requests.check(query).requires_prescription:
            verdict.warnings.append("Medication information requires professional prescription")
            verdict.requires_professional_review = True

        conflicts = self.condition_conflicts.check(query, profile)
        if conflicts:
            verdict.warnings.extend(c.warning for c in conflicts)
            verdict.requires_professional_review = True

        return verdict

    async def _audit(self, validation_id: str, query: str, result: SafetyValidationResult) -> None:
        if self.audit_sink is None:
            return
        entry = {
            "validation_id": validation_id,
            "query": query[:AUDIT_QUERY_LIMIT],
            "result": result.model_dump(),
            "timestamp": datetime.now(timezone.utc),
        }
        try:
            await self.audit_sink.log_safety_check(entry)
        except Exception as exc:
            logger.warning("Failed to log safety check %s: %s", validation_id, exc)
