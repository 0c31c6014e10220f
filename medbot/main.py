import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI

from medbot import config
from medbot.api import medical, profiles
from medbot.db.session import SessionLocal, init_db
from medbot.logging_utils import setup_logging
from medbot.services.gemini_client import GeminiClient, GeminiError
from medbot.services.medical_ai import MedicalAIService
from medbot.services.repo import Repo

logger = logging.getLogger(__name__)

SERVICE_NAME = "medical-ai-bot"


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(config.LOG_LEVEL, config.LOG_FILE or None, config.LOG_JSON)
    await init_db()

    repo = Repo(SessionLocal)
    client = None
    app.state.medical_service = None
    try:
        client = GeminiClient()
    except GeminiError as e:
        logger.error("Medical AI service disabled: %s", e)
    else:
        service = MedicalAIService(
            model_client=client,
            profile_store=repo,
            professional_directory=repo,
            audit_sink=repo,
            restricted_drug_source=repo.get_restricted_drugs,
        )
        await service.initialize()
        app.state.medical_service = service

    yield

    if client is not None:
        await client.aclose()


app = FastAPI(title="Medical AI Bot API", lifespan=lifespan)

app.include_router(medical.router)
app.include_router(profiles.router)


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
