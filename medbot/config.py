import os
from dataclasses import dataclass, field
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> Tuple[str, ...]:
    raw = os.getenv(name, "")
    return tuple(item.strip() for item in raw.split(",") if item.strip())


# Generative model (Gemini REST API)
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_BASE = os.getenv("GEMINI_BASE", "https://generativelanguage.googleapis.com")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash-exp")
GEMINI_TEMPERATURE = float(os.getenv("GEMINI_TEMPERATURE", "0.7"))
GEMINI_MAX_OUTPUT_TOKENS = int(os.getenv("GEMINI_MAX_OUTPUT_TOKENS", "2048"))
GEMINI_TIMEOUT_SECONDS = float(os.getenv("GEMINI_TIMEOUT_SECONDS", "60"))

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./medbot.db")
SQL_ECHO = _env_bool("SQL_ECHO")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "")
LOG_JSON = _env_bool("LOG_JSON")

# Optional external interaction lookup (OpenFDA label search); empty disables it
DRUG_INTERACTION_API_URL = os.getenv("DRUG_INTERACTION_API_URL", "")

# Conversations kept per user
CONVERSATION_HISTORY_LIMIT = int(os.getenv("CONVERSATION_HISTORY_LIMIT", "100"))


DEFAULT_EMERGENCY_KEYWORDS: Tuple[str, ...] = (
    "chest pain",
    "heart attack",
    "stroke",
    "difficulty breathing",
    "severe bleeding",
    "unconscious",
    "suicidal",
    "homicidal",
    "severe allergic reaction",
    "overdose",
    "seizure",
)

DEFAULT_RED_FLAG_SYMPTOMS: Tuple[str, ...] = (
    "fever over 103",
    "stiff neck",
    "severe headache",
    "sudden vision loss",
    "sudden weakness",
    "confusion",
    "severe abdominal pain",
    "vomiting blood",
    "black stools",
)

DEFAULT_RESTRICTED_DRUGS: Tuple[str, ...] = (
    "opioids",
    "benzodiazepines",
    "amphetamine",
    "steroids",
    "chemotherapy",
    "controlled substances",
)


@dataclass(frozen=True)
class GenerationSettings:
    model: str = GEMINI_MODEL
    temperature: float = GEMINI_TEMPERATURE
    max_output_tokens: int = GEMINI_MAX_OUTPUT_TOKENS


@dataclass(frozen=True)
class MedicalConfig:
    """Start-up configuration; read-only once loaded."""
    emergency_keywords: Tuple[str, ...] = DEFAULT_EMERGENCY_KEYWORDS
    red_flag_symptoms: Tuple[str, ...] = DEFAULT_RED_FLAG_SYMPTOMS
    restricted_drugs: Tuple[str, ...] = DEFAULT_RESTRICTED_DRUGS
    generation: GenerationSettings = field(default_factory=GenerationSettings)


def load_medical_config() -> MedicalConfig:
    return MedicalConfig(
        emergency_keywords=_env_list("EMERGENCY_KEYWORDS") or DEFAULT_EMERGENCY_KEYWORDS,
        red_flag_symptoms=_env_list("RED_FLAG_SYMPTOMS") or DEFAULT_RED_FLAG_SYMPTOMS,
        restricted_drugs=_env_list("RESTRICTED_DRUGS") or DEFAULT_RESTRICTED_DRUGS,
        generation=GenerationSettings(),
    )
