# medbot/api/medical.py
import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query

from medbot.api.deps import get_medical_service, get_repo
from medbot.runtime.flow import make_conversation_log_flow
from medbot.schemas.chat import ConversationView, MedicalQueryIn, MedicalQueryOut, ProfessionalsOut, WelcomeOut
from medbot.schemas.medical import MedicalResponse
from medbot.services.medical_ai import MedicalAIService
from medbot.services.query_validator import MAX_QUERY_LENGTH, sanitize_query, validate_query_payload
from medbot.services.repo import Repo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/medical", tags=["medical"])


async def log_conversation(repo: Repo, user_id: str, query: str, response: MedicalResponse) -> None:
    """Fire-and-forget conversation persistence."""
    shared = {"repo": repo, "user_id": user_id, "query": query, "response": response}
    await make_conversation_log_flow().run_async(shared)


@router.post("/query", response_model=MedicalQueryOut)
async def medical_query(
    payload: MedicalQueryIn,
    background_tasks: BackgroundTasks,
    service: MedicalAIService = Depends(get_medical_service),
    repo: Repo = Depends(get_repo),
):
    """
    1. Reject malformed or unsafe payloads (422), unless the query is an emergency
    2. Run the medical pipeline on the sanitized query
    3. Persist the conversation after the reply is sent
    """
    context = payload.context.model_dump(exclude_none=True) if payload.context else None
    errors = validate_query_payload(payload.query, context)
    emergency = service.is_emergency(payload.query)
    if errors and not emergency:
        raise HTTPException(status_code=422, detail=errors)
    if errors:
        logger.warning("Emergency query accepted despite validation errors: %s", errors)

    # an emergency keyword past the length cap must still reach detection
    query = sanitize_query(payload.query, max_length=None if emergency else MAX_QUERY_LENGTH)
    response = await service.process_medical_query(query, payload.user_id, payload.context)

    background_tasks.add_task(log_conversation, repo, payload.user_id, query, response)
    return MedicalQueryOut(success=True, response=response)


@router.get("/history/{user_id}", response_model=List[ConversationView])
async def conversation_history(
    user_id: str,
    limit: int = Query(50, ge=1, le=100),
    repo: Repo = Depends(get_repo),
):
    records = await repo.get_conversation_history(user_id, limit)
    return [
        ConversationView(
            id=r.id,
            query=r.query,
            response=r.response_json,
            response_type=r.response_type,
            confidence=r.confidence,
            created_at=r.created_at,
        )
        for r in records
    ]


@router.delete("/history/{user_id}")
async def clear_history(user_id: str, repo: Repo = Depends(get_repo)):
    deleted = await repo.clear_conversation(user_id)
    return {"success": True, "deleted": deleted}


@router.get("/welcome/{user_id}", response_model=WelcomeOut)
async def welcome(
    user_id: str,
    name: str = Query("there"),
    service: MedicalAIService = Depends(get_medical_service),
):
    return WelcomeOut(message=await service.generate_welcome_message(user_id, name))


@router.get("/professionals/{user_id}", response_model=ProfessionalsOut)
async def professional_recommendations(
    user_id: str,
    specialization: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    service: MedicalAIService = Depends(get_medical_service),
):
    recommendations = await service.recommend_medical_professional(user_id, specialization, location)
    return ProfessionalsOut(success=True, recommendations=recommendations)
