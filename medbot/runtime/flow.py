# medbot/runtime/flow.py
from __future__ import annotations

from pocketflow import AsyncFlow

from medbot.config import GenerationSettings
from medbot.runtime import outcomes
from medbot.runtime.nodes.assemble import AssembleResponseNode
from medbot.runtime.nodes.context import ContextBuildNode
from medbot.runtime.nodes.drug_check import DrugCheckNode
from medbot.runtime.nodes.emergency import EmergencyCheckNode
from medbot.runtime.nodes.generate import GenerateNode
from medbot.runtime.nodes.location import LocationContextNode
from medbot.runtime.nodes.persist import ConversationLogNode
from medbot.runtime.nodes.profile import ProfileLoadNode
from medbot.runtime.nodes.responses import BlockedResponseNode, EmergencyResponseNode, ErrorResponseNode
from medbot.runtime.nodes.safety import SafetyValidationNode
from medbot.services.context_builder import MedicalContextBuilder
from medbot.services.drug_interactions import DrugInteractionChecker
from medbot.services.emergency import EmergencyDetector
from medbot.services.guardrail import SafetyGuardrail
from medbot.services.location_info import LocationBasedMedicalInfo


def make_medical_flow(
    *,
    detector: EmergencyDetector,
    guardrail: SafetyGuardrail,
    context_builder: MedicalContextBuilder,
    location_info: LocationBasedMedicalInfo,
    drug_checker: DrugInteractionChecker,
    generation: GenerationSettings,
) -> AsyncFlow:
    """Medical query flow:
    emergency_check → (emergency → emergency_response)
                    → (continue → profile → context → safety)
    safety → (blocked → blocked_response)
           → (continue → location → generate)
    generate → (error → error_response)
             → (continue → drug_check → assemble)

    Shared inputs: query, user_id, context, query_id, started,
    profile_store, model_client. Result lands in shared["response"].
    """

    # Instantiate all nodes
    emergency = EmergencyCheckNode(detector, location_info)
    profile = ProfileLoadNode()
    context = ContextBuildNode(context_builder)
    safety = SafetyValidationNode(guardrail)
    location = LocationContextNode(location_info)
    generate = GenerateNode(generation)
    drug_check = DrugCheckNode(drug_checker)
    assemble = AssembleResponseNode()

    emergency_response = EmergencyResponseNode()
    blocked_response = BlockedResponseNode()
    error_response = ErrorResponseNode()

    # --- Routing setup ---

    # 1. emergency short-circuit
    emergency.successors = {
        outcomes.EMERGENCY: emergency_response,
        outcomes.CONTINUE: profile,
    }
    profile.successors = {outcomes.CONTINUE: context}
    context.successors = {outcomes.CONTINUE: safety}

    # 2. safety gate
    safety.successors = {
        outcomes.BLOCKED: blocked_response,
        outcomes.CONTINUE: location,
    }
    location.successors = {outcomes.CONTINUE: generate}

    # 3. generation, the only fatal stage
    generate.successors = {
        outcomes.ERROR: error_response,
        outcomes.CONTINUE: drug_check,
    }
    drug_check.successors = {outcomes.CONTINUE: assemble}

    # --- Flow entry point ---
    return AsyncFlow(start=emergency)


def make_conversation_log_flow() -> AsyncFlow:
    """Single-node flow: shared needs repo, user_id, query, response."""
    return AsyncFlow(start=ConversationLogNode())
