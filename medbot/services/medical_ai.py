"""
Top-level orchestrator for medical queries.

Owns the pipeline components and the flow built from them; per-request state
lives only in the ``shared`` dict handed to the flow.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence

from medbot.config import DRUG_INTERACTION_API_URL, MedicalConfig, load_medical_config
from medbot.logging_utils import log_pipeline_event
from medbot.runtime.flow import make_medical_flow
from medbot.runtime.nodes.responses import error_response
from medbot.schemas.medical import (
    MedicalResponse,
    ProfessionalLocation,
    ProfessionalRecommendation,
    QueryContext,
    UserMedicalProfile,
)
from medbot.services.context_builder import MedicalContextBuilder
from medbot.services.drug_interactions import DrugInteractionChecker
from medbot.services.emergency import EmergencyDetector
from medbot.services.guardrail import AuditSink, SafetyGuardrail
from medbot.services.location_info import LocationBasedMedicalInfo
from medbot.services.profile_store import ProfileStore, load_profile_or_empty
from medbot.services.response_builder import calculate_confidence, classify_response_type
from medbot.services.tables import DEFAULT_TABLES, MedicalTables

logger = logging.getLogger(__name__)

MIN_PROFESSIONAL_RATING = 4.0
MAX_RECOMMENDATIONS = 5

__all__ = [
    "MedicalAIService",
    "ServiceNotInitializedError",
    "calculate_confidence",
    "classify_response_type",
]


class ServiceNotInitializedError(RuntimeError):
    pass


class ModelClient(Protocol):
    async def generate(
        self, prompt: str, *, temperature: float, max_output_tokens: int, model: Optional[str] = None
    ) -> str: ...


class ProfessionalDirectory(Protocol):
    async def find_healthcare_professionals(
        self,
        *,
        specialization: Optional[str] = None,
        location: Optional[str] = None,
        availability: bool = False,
        min_rating: Optional[float] = None,
    ) -> Sequence[Any]: ...


class MedicalAIService:
    def __init__(
        self,
        *,
        model_client: ModelClient,
        profile_store: Optional[ProfileStore] = None,
        professional_directory: Optional[ProfessionalDirectory] = None,
        config: Optional[MedicalConfig] = None,
        tables: MedicalTables = DEFAULT_TABLES,
        location_info: Optional[LocationBasedMedicalInfo] = None,
        drug_checker: Optional[DrugInteractionChecker] = None,
        audit_sink: Optional[AuditSink] = None,
        restricted_drug_source: Optional[Callable[[], Awaitable[List[str]]]] = None,
    ) -> None:
        self.config = config or load_medical_config()
        self.model_client = model_client
        self.profile_store = profile_store
        self.professional_directory = professional_directory
        self._restricted_drug_source = restricted_drug_source

        self.detector = EmergencyDetector(
            self.config.emergency_keywords, self.config.red_flag_symptoms, tables
        )
        self.guardrail = SafetyGuardrail(self.config.restricted_drugs, tables, audit_sink)
        self.context_builder = MedicalContextBuilder(tables)
        self.location_info = location_info or LocationBasedMedicalInfo()
        self.drug_checker = drug_checker or DrugInteractionChecker(tables, api_url=DRUG_INTERACTION_API_URL)

        self._flow = make_medical_flow(
            detector=self.detector,
            guardrail=self.guardrail,
            context_builder=self.context_builder,
            location_info=self.location_info,
            drug_checker=self.drug_checker,
            generation=self.config.generation,
        )
        self.initialized = False

    async def initialize(self) -> None:
        """Load start-up data. Safe to call more than once."""
        await self.guardrail.initialize(self._restricted_drug_source)
        self.initialized = True
        logger.info("Medical AI service initialized (model=%s)", self.config.generation.model)

    def is_emergency(self, query: str) -> bool:
        return self.detector.check(query).is_emergency

    async def process_medical_query(
        self,
        query: str,
        user_id: str,
        context: Optional[QueryContext] = None,
    ) -> MedicalResponse:
        query_id = str(uuid.uuid4())
        started = time.perf_counter()

        try:
            if not self.initialized:
                raise ServiceNotInitializedError("Medical AI service not initialized")

            logger.info("Processing medical query %s for user %s", query_id, user_id)
            shared: Dict[str, Any] = {
                "query": query,
                "user_id": user_id,
                "context": context,
                "query_id": query_id,
                "started": started,
                "profile_store": self.profile_store,
                "model_client": self.model_client,
            }
            outcome = await self._flow.run_async(shared)
            response: Optional[MedicalResponse] = shared.get("response")
            if response is None:
                raise RuntimeError(f"Pipeline ended without a response (outcome={outcome!r})")
        except Exception:
            logger.exception("Error processing medical query %s", query_id)
            return error_response(query_id, started)

        log_pipeline_event(logger, "pipeline", outcome, {
            "query_id": query_id,
            "type": response.type,
            "response_time": response.metadata.response_time,
            "stages": shared.get("stages", []),
        })
        return response

    async def load_profile(self, user_id: str) -> UserMedicalProfile:
        return await load_profile_or_empty(self.profile_store, user_id)

    async def recommend_medical_professional(
        self,
        user_id: str,
        specialization: Optional[str] = None,
        location: Optional[str] = None,
    ) -> List[ProfessionalRecommendation]:
        """Top available, well-rated professionals near the user.

        ``location`` defaults to the city on the user's profile. Ranked by rating,
        then by faster response time. Lookup failures give an empty list.
        """
        if self.professional_directory is None:
            return []
        try:
            if not location:
                location = (await self.load_profile(user_id)).location.city
            found = await self.professional_directory.find_healthcare_professionals(
                specialization=specialization,
                location=location,
                availability=True,
                min_rating=MIN_PROFESSIONAL_RATING,
            )
        except Exception:
            logger.exception("Error recommending medical professionals for user %s", user_id)
            return []

        ranked = sorted(found, key=lambda p: (-(p.average_rating or 0), p.response_time or 0))
        return [
            ProfessionalRecommendation(
                id=str(p.id),
                name=p.name,
                specialization=p.specialization,
                rating=p.average_rating,
                total_ratings=p.total_ratings,
                response_time=p.response_time,
                availability=p.is_available,
                location=ProfessionalLocation(city=p.city, state=p.state, country=p.country),
            )
            for p in ranked[:MAX_RECOMMENDATIONS]
        ]

    async def generate_welcome_message(self, user_id: str, name: str) -> str:
        profile = await self.load_profile(user_id)
        conditions = (
            f"Conditions: {', '.join(profile.conditions)}"
            if profile.conditions else "No specific conditions recorded"
        )
        allergies = (
            f"Allergies: {', '.join(profile.allergies)}"
            if profile.allergies else "No known allergies"
        )
        return (
            f"Hello {name}!\n\n"
            "I'm your AI Health Assistant.\n\n"
            "I can help you with:\n"
            "- Symptom analysis and explanation\n"
            "- Medication information and interactions\n"
            "- General health guidance\n"
            "- Healthcare professional recommendations\n"
            "- Medical terminology explanations\n\n"
            "Important Disclaimer:\n"
            "I am an AI assistant and cannot replace professional medical advice.\n"
            "Always consult with a qualified healthcare provider for diagnosis and treatment.\n\n"
            "Your medical profile indicates:\n"
            f"- {conditions}\n"
            f"- {allergies}\n"
            f"- Location: {profile.location_label()}\n\n"
            "How can I assist you with your health concerns today?"
        )
