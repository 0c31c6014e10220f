# medbot/api/deps.py
from fastapi import HTTPException, Request

from medbot.db.session import SessionLocal
from medbot.services.medical_ai import MedicalAIService
from medbot.services.repo import Repo


def get_repo() -> Repo:
    return Repo(SessionLocal)


def get_medical_service(request: Request) -> MedicalAIService:
    service = getattr(request.app.state, "medical_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Medical AI service unavailable")
    return service
